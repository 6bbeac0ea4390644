import sys
import logging
import argparse
from dataclasses import replace

from common.config import AppConfig, config


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="View and control a remote screen.")
    parser.add_argument("server_host", nargs="?", help="Address of the source host")
    parser.add_argument("--port", type=int, help="TCP port of the source host")
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument("--no-keyboard", action="store_true", help="Do not forward local key events")
    parser.add_argument("--debug", action="store_true")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    app_config = AppConfig.load(args.config) if args.config else config
    viewer_config = app_config.viewer
    if args.server_host or args.port is not None:
        viewer_config = replace(
            viewer_config,
            server_host=args.server_host or viewer_config.server_host,
            server_port=viewer_config.server_port if args.port is None else args.port,
        )
    try:
        viewer_config.validate()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(level=logging.DEBUG if (args.debug or app_config.debug) else logging.INFO,
                        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s')
    logger = logging.getLogger("viewer")

    from .client import ViewerClient
    from .window import ViewerWindow

    client = ViewerClient(
        server_host=viewer_config.server_host,
        server_port=viewer_config.server_port,
    )
    window = ViewerWindow(
        client,
        title=viewer_config.window_title,
        size=(viewer_config.window_width, viewer_config.window_height),
        refresh_interval=viewer_config.refresh_interval,
        forward_keyboard=False if args.no_keyboard else viewer_config.forward_keyboard,
    )

    try:
        client.connect(timeout=viewer_config.connect_timeout)
    except OSError as e:
        logger.error(f"Failed to connect to {client.server_host}:{client.server_port}: {e}")
        return 1

    try:
        window.run()
    except KeyboardInterrupt:
        logger.info("Shutting down viewer...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
