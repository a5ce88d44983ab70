"""
WP-CLI runner — the single place where wpsmith calls ``wp``.

WP-CLI is invoked through PHP so the memory limit can be raised:

    php -d memory_limit=512M /usr/local/bin/wp <args> --path=<project>

Callers pass WP-CLI arguments only; the PHP prefix and ``--path`` are
added here.  Captured runs raise ``WpCliError`` on a non-zero exit;
``try_run`` is for steps that are allowed to fail (deleting sample
content that may already be gone, optional plugins).
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from wpsmith.core.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# Keep WP-CLI from phoning home on every call
_WP_CLI_ENV = {"WP_CLI_DISABLE_AUTO_CHECK_UPDATE": "1"}


class WpCliNotInstalled(Exception):
    hint = (
        "Install WP-CLI:\n"
        "  curl -O https://raw.githubusercontent.com/wp-cli/builds/gh-pages/phar/wp-cli.phar\n"
        "  chmod +x wp-cli.phar\n"
        "  sudo mv wp-cli.phar /usr/local/bin/wp\n"
        "Or visit: https://wp-cli.org/#installing"
    )

    def __init__(self, detail: str = ""):
        message = "WP-CLI is not installed or not in PATH."
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class WpCliError(Exception):
    """A WP-CLI command exited non-zero."""

    hint = "Re-run with --debug to see the full WP-CLI command line."

    def __init__(self, args: Sequence[str], returncode: int, stderr: str = "", stdout: str = ""):
        self.args_ = list(args)
        self.returncode = returncode
        self.stderr = stderr
        self.stdout = stdout
        detail = (stderr or stdout).strip() or f"exit code {returncode}"
        super().__init__(f"wp {' '.join(self.args_)} failed: {detail}")


@dataclass
class WpResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def wp_cli_prefix(settings: Settings | None = None) -> list[str]:
    """``php -d memory_limit=… <wp>``, the argv every WP-CLI call starts with."""
    s = settings or get_settings()
    return [s.php, "-d", f"memory_limit={s.php_memory_limit}", s.wp_cli]


def build_wp_args(args: Sequence[str], settings: Settings | None = None) -> list[str]:
    """Full argv for a WP-CLI call (prefix + ``args``)."""
    return [*wp_cli_prefix(settings), *args]


def wp_cli_env() -> dict[str, str]:
    env = os.environ.copy()
    for key, value in _WP_CLI_ENV.items():
        env.setdefault(key, value)
    return env


def check_wp_cli(settings: Settings | None = None) -> bool:
    """Whether ``wp --version`` runs. Never raises."""
    s = settings or get_settings()
    argv = [s.php, "-d", "memory_limit=128M", s.wp_cli, "--version"]
    try:
        result = subprocess.run(argv, capture_output=True, text=True, timeout=30, env=wp_cli_env())
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("WP-CLI check failed: %s", e)
        return False
    if result.returncode != 0:
        logger.debug("WP-CLI check exited %d: %s", result.returncode, result.stderr.strip())
    return result.returncode == 0


def ensure_wp_cli(settings: Settings | None = None) -> None:
    """Raise ``WpCliNotInstalled`` unless WP-CLI is usable."""
    if not check_wp_cli(settings):
        raise WpCliNotInstalled()


class WpCli:
    """WP-CLI bound to one WordPress installation."""

    def __init__(self, project_path: Path, settings: Settings | None = None, timeout: int = 600):
        self._project_path = project_path
        self._settings = settings or get_settings()
        self._timeout = timeout

    @property
    def project_path(self) -> Path:
        return self._project_path

    def argv(self, args: Sequence[str]) -> list[str]:
        return build_wp_args([*args, f"--path={self._project_path}"], self._settings)

    def run(self, args: Sequence[str] | str, *, check: bool = True) -> WpResult:
        """Run a WP-CLI command with captured output.

        Args:
            args: WP-CLI arguments, or a string split with shell rules.
            check: Raise ``WpCliError`` on a non-zero exit.

        Raises:
            WpCliNotInstalled: PHP or WP-CLI could not be started.
            WpCliError: The command failed and ``check`` is set.
        """
        if isinstance(args, str):
            args = shlex.split(args)
        argv = self.argv(args)
        logger.debug("Executing: %s", shlex.join(argv))

        try:
            proc = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                env=wp_cli_env(),
            )
        except FileNotFoundError as e:
            raise WpCliNotInstalled(str(e)) from e
        except subprocess.TimeoutExpired as e:
            raise WpCliError(args, -1, stderr=f"timed out after {self._timeout}s") from e

        result = WpResult(proc.returncode, proc.stdout or "", proc.stderr or "")
        if check and not result.ok:
            raise WpCliError(args, result.returncode, result.stderr, result.stdout)
        return result

    def try_run(self, args: Sequence[str] | str) -> bool:
        """Run a command whose failure is tolerated. Returns success."""
        try:
            result = self.run(args, check=False)
        except WpCliError as e:
            logger.warning("%s", e)
            return False
        if not result.ok:
            logger.info(
                "Ignoring failed wp %s: %s",
                args if isinstance(args, str) else " ".join(args),
                (result.stderr or result.stdout).strip(),
            )
        return result.ok

    def run_interactive(self, args: Sequence[str]) -> int:
        """Run with the terminal attached (``wp shell``, passthrough). Returns the exit code."""
        argv = self.argv(args)
        logger.debug("Executing (interactive): %s", shlex.join(argv))
        try:
            return subprocess.call(argv, cwd=self._project_path, env=wp_cli_env())
        except FileNotFoundError as e:
            raise WpCliNotInstalled(str(e)) from e
        except KeyboardInterrupt:
            return 130
