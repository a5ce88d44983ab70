"""wpsmith — the CLI for WordPress wordsmiths."""

__version__ = "0.1.0"
