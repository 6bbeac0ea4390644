import os
import json
from dataclasses import dataclass, asdict
from typing import Optional


@dataclass
class HostConfig:
    host: str = '0.0.0.0'
    port: int = 5900
    fps: int = 10
    jpeg_quality: int = 50
    send_queue_size: int = 8
    monitor: int = 1
    log_file: Optional[str] = 'host.log'

    def validate(self):
        if not 0 <= self.port <= 65535:
            raise ValueError(f"Invalid port: {self.port}")
        if self.fps <= 0:
            raise ValueError(f"fps must be positive, got {self.fps}")
        if not 1 <= self.jpeg_quality <= 100:
            raise ValueError(f"jpeg_quality must be in 1..100, got {self.jpeg_quality}")
        if self.send_queue_size < 1:
            raise ValueError(f"send_queue_size must be at least 1, got {self.send_queue_size}")


@dataclass
class ViewerConfig:
    server_host: str = '127.0.0.1'
    server_port: int = 5900
    window_title: str = 'Remote Desktop Viewer'
    window_width: int = 1024
    window_height: int = 768
    refresh_interval: float = 0.03
    forward_keyboard: bool = True
    connect_timeout: float = 5.0

    def validate(self):
        if not 0 < self.server_port <= 65535:
            raise ValueError(f"Invalid server port: {self.server_port}")
        if self.window_width <= 0 or self.window_height <= 0:
            raise ValueError(f"Invalid window size: {self.window_width}x{self.window_height}")


@dataclass
class AppConfig:
    host: HostConfig
    viewer: ViewerConfig
    debug: bool = False

    @classmethod
    def load(cls, config_file: Optional[str] = None, environ=None) -> 'AppConfig':
        """Load configuration from file and environment variables."""
        environ = os.environ if environ is None else environ
        config_data = {}

        if config_file and os.path.exists(config_file):
            with open(config_file, 'r') as f:
                config_data = json.load(f)

        host_data = config_data.get('host', {})
        viewer_data = config_data.get('viewer', {})

        # Environment wins over the file
        env_overrides = {
            'debug': environ.get('REMOTEDESK_DEBUG'),
            'host': {
                'host': environ.get('REMOTEDESK_HOST'),
                'port': environ.get('REMOTEDESK_PORT'),
                'fps': environ.get('REMOTEDESK_FPS'),
                'jpeg_quality': environ.get('REMOTEDESK_JPEG_QUALITY'),
                'send_queue_size': environ.get('REMOTEDESK_SEND_QUEUE_SIZE'),
            },
            'viewer': {
                'server_host': environ.get('REMOTEDESK_SERVER_HOST'),
                'server_port': environ.get('REMOTEDESK_SERVER_PORT'),
            },
        }
        for key, value in env_overrides['host'].items():
            if value is not None:
                host_data[key] = value if key == 'host' else int(value)
        for key, value in env_overrides['viewer'].items():
            if value is not None:
                viewer_data[key] = value if key == 'server_host' else int(value)

        debug = config_data.get('debug', False)
        if env_overrides['debug'] is not None:
            debug = env_overrides['debug'].lower() == 'true'

        host_config = HostConfig(**host_data)
        viewer_config = ViewerConfig(**viewer_data)
        host_config.validate()
        viewer_config.validate()

        return cls(host=host_config, viewer=viewer_config, debug=debug)

    def save(self, config_file: str):
        """Save configuration to file."""
        config_data = {
            'host': asdict(self.host),
            'viewer': asdict(self.viewer),
            'debug': self.debug
        }

        with open(config_file, 'w') as f:
            json.dump(config_data, f, indent=2)


# Global configuration instance - load from default config file if it exists
_default_config_path = os.path.join(os.path.dirname(__file__), '..', '..', 'config.json')
config = AppConfig.load(_default_config_path if os.path.exists(_default_config_path) else None)
