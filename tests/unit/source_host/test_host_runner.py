from dataclasses import asdict
from unittest.mock import MagicMock, patch

import pytest

from common.config import HostConfig, config
from source_host import host_runner


@pytest.fixture
def fake_server():
    with patch("source_host.host_runner.configure_logging"), \
            patch("source_host.screen_capture.ScreenCapturer") as capturer_cls, \
            patch("source_host.server.RemoteDesktopServer") as server_cls:
        server_cls.return_value.running = False
        yield server_cls, capturer_cls


@pytest.mark.parametrize("argv", [
    ["--fps", "-5"],
    ["--fps", "0"],
    ["--quality", "500"],
    ["--port", "70000"],
])
def test_invalid_command_line_values_are_rejected(fake_server, argv, capsys):
    server_cls, capturer_cls = fake_server

    assert host_runner.main(argv) == 2

    server_cls.assert_not_called()
    capturer_cls.assert_not_called()
    assert "Invalid configuration" in capsys.readouterr().err


def test_command_line_values_reach_the_server(fake_server):
    server_cls, capturer_cls = fake_server

    assert host_runner.main(["--host", "127.0.0.1", "--port", "6001", "--fps", "20",
                             "--quality", "80", "--monitor", "2"]) == 0

    capturer_cls.assert_called_once_with(2)
    kwargs = server_cls.call_args.kwargs
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 6001
    assert kwargs["fps"] == 20
    assert kwargs["jpeg_quality"] == 80
    server_cls.return_value.start.assert_called_once()
    server_cls.return_value.stop.assert_called_once()


def test_command_line_does_not_change_global_config(fake_server):
    before = asdict(config.host)
    host_runner.main(["--monitor", "3", "--fps", "25"])
    assert asdict(config.host) == before


def test_apply_overrides_returns_a_copy():
    original = HostConfig()
    args = host_runner.parse_args(["--fps", "30", "--port", "0"])

    updated = host_runner.apply_overrides(original, args)

    assert updated.fps == 30
    assert updated.port == 0
    assert updated.jpeg_quality == original.jpeg_quality
    assert original == HostConfig()
