import json

import pytest

from common.config import AppConfig, HostConfig, ViewerConfig


def test_defaults():
    app_config = AppConfig.load(None, environ={})
    assert app_config.host == HostConfig()
    assert app_config.host.port == 5900
    assert app_config.host.fps == 10
    assert app_config.host.jpeg_quality == 50
    assert app_config.viewer == ViewerConfig()
    assert app_config.viewer.window_width == 1024
    assert app_config.viewer.window_height == 768
    assert app_config.debug is False


def test_load_from_file(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({
        "host": {"port": 6000, "fps": 15},
        "viewer": {"server_host": "10.0.0.5"},
        "debug": True,
    }))

    app_config = AppConfig.load(str(config_file), environ={})

    assert app_config.host.port == 6000
    assert app_config.host.fps == 15
    assert app_config.host.jpeg_quality == 50
    assert app_config.viewer.server_host == "10.0.0.5"
    assert app_config.debug is True


def test_environment_overrides_file(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({"host": {"port": 6000}}))
    environ = {
        "REMOTEDESK_PORT": "7000",
        "REMOTEDESK_JPEG_QUALITY": "80",
        "REMOTEDESK_SERVER_PORT": "7001",
        "REMOTEDESK_DEBUG": "true",
    }

    app_config = AppConfig.load(str(config_file), environ=environ)

    assert app_config.host.port == 7000
    assert app_config.host.jpeg_quality == 80
    assert app_config.viewer.server_port == 7001
    assert app_config.debug is True


@pytest.mark.parametrize("environ", [
    {"REMOTEDESK_FPS": "0"},
    {"REMOTEDESK_JPEG_QUALITY": "101"},
    {"REMOTEDESK_SEND_QUEUE_SIZE": "0"},
    {"REMOTEDESK_PORT": "70000"},
])
def test_invalid_values_rejected(environ):
    with pytest.raises(ValueError):
        AppConfig.load(None, environ=environ)


def test_save_and_reload(tmp_path):
    app_config = AppConfig(host=HostConfig(port=6100, log_file=None), viewer=ViewerConfig(window_title="x"))
    config_file = tmp_path / "saved.json"
    app_config.save(str(config_file))

    reloaded = AppConfig.load(str(config_file), environ={})
    assert reloaded == app_config
