"""
Playground runner — start the WordPress Playground server on a project.

The project directory is mounted as ``/wordpress`` inside Playground and
the SQLite database stays on disk, so checkpoints and ``db`` commands
see the same data the server uses.

Playground's own banner is swallowed: once the server prints
``Ready!`` the caller gets an ``on_ready`` callback and only non-banner
output is passed through.
"""

from __future__ import annotations

import errno
import logging
import shlex
import signal
import socket
import subprocess
import webbrowser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, TextIO

from wpsmith.core.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

READY_MARKER = "Ready!"

# Lines Playground prints while starting; hidden once we show our own summary
_STARTUP_NOISE = (
    READY_MARKER,
    "WordPress Playground CLI",
    "PHP 8.",
    "Extensions",
    "Mount ",
    "127.0.0.1",
)


class PlaygroundError(Exception):
    hint = "Make sure Node.js (npx) is installed and on PATH."


@dataclass
class ServerOptions:
    """Everything ``serve`` needs to start Playground."""

    project_path: Path
    port: int = 9400
    php: str = "8.3"
    wp: str | None = None
    xdebug: bool = False
    login: bool = True
    blueprint: Path | None = None
    extra_args: list[str] = field(default_factory=list)

    @property
    def url(self) -> str:
        return f"http://localhost:{self.port}"

    @property
    def admin_url(self) -> str:
        return f"{self.url}/wp-admin"


# ── Ports ───────────────────────────────────────────────────────


def port_is_free(port: int, host: str = "127.0.0.1") -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError as e:
            if e.errno in (errno.EADDRINUSE, errno.EACCES):
                return False
            raise
    return True


def find_available_port(preferred: int, attempts: int = 50) -> int:
    """``preferred`` if free, otherwise the next free port above it."""
    for port in range(preferred, min(preferred + attempts, 65536)):
        if port_is_free(port):
            return port
    raise PlaygroundError(f"No free port in {preferred}-{preferred + attempts - 1}")


# ── Argument lists ──────────────────────────────────────────────


def server_args(options: ServerOptions, settings: Settings | None = None) -> list[str]:
    """argv for ``npx @wp-playground/cli server`` on an installed project."""
    s = settings or get_settings()
    args = [
        s.npx,
        "--yes",
        s.playground_package,
        "server",
        "--wordpress-install-mode=do-not-attempt-installing",
        "--skip-sqlite-setup",
        f"--mount={options.project_path}:/wordpress",
        f"--port={options.port}",
        f"--php={options.php}",
    ]
    if options.wp and options.wp != "latest":
        args.append(f"--wp={options.wp}")
    if options.xdebug:
        args.append("--xdebug")
    if options.blueprint:
        args.append(f"--blueprint={options.blueprint}")
    if options.login:
        args.append("--login")
    args.extend(options.extra_args)
    return args


def run_blueprint_args(
    blueprint: Path,
    php: str | None = None,
    wp: str | None = None,
    settings: Settings | None = None,
) -> list[str]:
    """argv for ``run-blueprint`` (apply a blueprint without serving)."""
    s = settings or get_settings()
    args = [s.npx, "--yes", s.playground_package, "run-blueprint", f"--blueprint={blueprint}"]
    if php:
        args.append(f"--php={php}")
    if wp:
        args.append(f"--wp={wp}")
    return args


def build_snapshot_args(
    blueprint: Path,
    outfile: Path,
    php: str | None = None,
    wp: str | None = None,
    settings: Settings | None = None,
) -> list[str]:
    """argv for ``build-snapshot`` (bake a blueprint into a zip)."""
    s = settings or get_settings()
    args = [
        s.npx, "--yes", s.playground_package, "build-snapshot",
        f"--blueprint={blueprint}", f"--outfile={outfile}",
    ]
    if php:
        args.append(f"--php={php}")
    if wp:
        args.append(f"--wp={wp}")
    return args


def is_startup_noise(line: str) -> bool:
    return any(marker in line for marker in _STARTUP_NOISE)


# ── Running ─────────────────────────────────────────────────────


def run_to_completion(args: list[str], cwd: Path | None = None) -> int:
    """Run a Playground command with the terminal attached."""
    logger.debug("Executing: %s", shlex.join(args))
    try:
        return subprocess.call(args, cwd=cwd)
    except FileNotFoundError as e:
        raise PlaygroundError(f"npx not found: {e}") from e


def serve(
    options: ServerOptions,
    *,
    on_ready: Callable[[], None] | None = None,
    out: TextIO | None = None,
    settings: Settings | None = None,
) -> int:
    """Run the Playground server until it exits. Returns its exit code.

    Ctrl+C is forwarded to the child as SIGINT and the server is given
    the chance to shut down cleanly.

    Raises:
        PlaygroundError: npx could not be started, or the server exited
            with an error before becoming ready.
    """
    args = server_args(options, settings)
    logger.debug("Executing: %s", shlex.join(args))

    try:
        proc = subprocess.Popen(
            args,
            cwd=str(options.project_path),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except FileNotFoundError as e:
        raise PlaygroundError("npx not found. Make sure Node.js is installed.") from e

    ready = False
    try:
        assert proc.stdout is not None
        for line in proc.stdout:
            if not ready:
                if READY_MARKER in line:
                    ready = True
                    if on_ready:
                        on_ready()
                elif "error" in line.lower() and "EADDRINUSE" not in line:
                    logger.error("%s", line.rstrip())
                else:
                    logger.debug("playground: %s", line.rstrip())
                continue

            if out is not None and line.strip() and not is_startup_noise(line):
                out.write(line)
                out.flush()
        proc.wait()
    except KeyboardInterrupt:
        logger.info("Stopping Playground server")
        proc.send_signal(signal.SIGINT)
        try:
            proc.wait(timeout=10)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()

    if not ready and proc.returncode not in (0, None, -signal.SIGINT):
        raise PlaygroundError(f"Playground exited with code {proc.returncode} before it was ready")
    return proc.returncode or 0


def open_browser(url: str) -> None:
    """Open ``url`` in the default browser; failure is not an error."""
    try:
        webbrowser.open(url)
    except webbrowser.Error as e:
        logger.debug("Could not open browser: %s", e)
