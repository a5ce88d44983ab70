"""
Tests for the Playground runner — argument lists, ports, output handling.
"""

import io
import socket
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from wpsmith.core.config.settings import Settings
from wpsmith.core.services.playground import (
    PlaygroundError,
    ServerOptions,
    build_snapshot_args,
    find_available_port,
    is_startup_noise,
    port_is_free,
    run_blueprint_args,
    serve,
    server_args,
)

SETTINGS = Settings(npx="npx", playground_package="@wp-playground/cli", wp_cli="wp")


class TestServerArgs:
    """server_args."""

    def test_defaults(self, tmp_path: Path):
        args = server_args(ServerOptions(project_path=tmp_path), SETTINGS)
        assert args == [
            "npx", "--yes", "@wp-playground/cli", "server",
            "--wordpress-install-mode=do-not-attempt-installing",
            "--skip-sqlite-setup",
            f"--mount={tmp_path}:/wordpress",
            "--port=9400",
            "--php=8.3",
            "--login",
        ]

    def test_latest_wp_not_passed(self, tmp_path: Path):
        args = server_args(ServerOptions(project_path=tmp_path, wp="latest"), SETTINGS)
        assert not any(a.startswith("--wp=") for a in args)

    def test_all_options(self, tmp_path: Path):
        options = ServerOptions(
            project_path=tmp_path,
            port=9500,
            php="8.1",
            wp="6.5",
            xdebug=True,
            blueprint=tmp_path / "blueprint.json",
            extra_args=["--quiet"],
        )
        args = server_args(options, SETTINGS)
        assert "--port=9500" in args
        assert "--php=8.1" in args
        assert "--wp=6.5" in args
        assert "--xdebug" in args
        assert f"--blueprint={tmp_path / 'blueprint.json'}" in args
        assert args[-1] == "--quiet"

    def test_urls(self, tmp_path: Path):
        options = ServerOptions(project_path=tmp_path, port=9401)
        assert options.url == "http://localhost:9401"
        assert options.admin_url == "http://localhost:9401/wp-admin"


class TestOtherArgs:
    """run-blueprint and build-snapshot."""

    def test_run_blueprint(self, tmp_path: Path):
        bp = tmp_path / "blueprint.json"
        assert run_blueprint_args(bp, php="8.2", settings=SETTINGS) == [
            "npx", "--yes", "@wp-playground/cli", "run-blueprint", f"--blueprint={bp}", "--php=8.2",
        ]

    def test_build_snapshot(self, tmp_path: Path):
        bp, out = tmp_path / "blueprint.json", tmp_path / "site.zip"
        args = build_snapshot_args(bp, out, wp="6.7", settings=SETTINGS)
        assert args[3] == "build-snapshot"
        assert f"--outfile={out}" in args
        assert args[-1] == "--wp=6.7"


class TestPorts:
    """Port probing."""

    def test_free_port(self):
        with socket.socket() as s:
            s.bind(("127.0.0.1", 0))
            port = s.getsockname()[1]
        assert port_is_free(port)

    def test_busy_port_skipped(self):
        with socket.socket() as s:
            s.bind(("127.0.0.1", 0))
            s.listen()
            busy = s.getsockname()[1]
            assert not port_is_free(busy)
            assert find_available_port(busy) != busy

    @patch("wpsmith.core.services.playground.port_is_free", return_value=False)
    def test_no_free_port(self, _mock: MagicMock):
        with pytest.raises(PlaygroundError):
            find_available_port(9400, attempts=3)


class _FakeProc:
    def __init__(self, lines, returncode=0):
        self.stdout = iter(lines)
        self.returncode = None
        self._final = returncode

    def wait(self, timeout=None):
        self.returncode = self._final
        return self._final


class TestServe:
    """serve() output handling."""

    def test_ready_callback_and_filtered_output(self, tmp_path: Path):
        lines = [
            "WordPress Playground CLI\n",
            "PHP 8.3 ...\n",
            "Ready! WordPress is running on http://127.0.0.1:9400\n",
            "GET /wp-admin 200\n",
            "\n",
        ]
        out = io.StringIO()
        ready = MagicMock()
        with patch("wpsmith.core.services.playground.subprocess.Popen", return_value=_FakeProc(lines)):
            code = serve(ServerOptions(project_path=tmp_path), on_ready=ready, out=out, settings=SETTINGS)

        assert code == 0
        ready.assert_called_once()
        assert out.getvalue() == "GET /wp-admin 200\n"

    def test_exit_before_ready(self, tmp_path: Path):
        proc = _FakeProc(["Error: something broke\n"], returncode=1)
        with patch("wpsmith.core.services.playground.subprocess.Popen", return_value=proc):
            with pytest.raises(PlaygroundError):
                serve(ServerOptions(project_path=tmp_path), settings=SETTINGS)

    def test_npx_missing(self, tmp_path: Path):
        with patch(
            "wpsmith.core.services.playground.subprocess.Popen",
            side_effect=FileNotFoundError("npx"),
        ):
            with pytest.raises(PlaygroundError, match="npx"):
                serve(ServerOptions(project_path=tmp_path), settings=SETTINGS)

    def test_startup_noise(self):
        assert is_startup_noise("Mount /x -> /wordpress")
        assert not is_startup_noise("GET / 200")
