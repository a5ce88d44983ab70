"""Click command groups, registered by ``wpsmith.main``."""
