import sys
import time
import logging
import argparse
from dataclasses import replace

from common.config import AppConfig, config


def configure_logging(debug=False, log_file=None):
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO,
                        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
                        handlers=handlers)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Share this screen with remote viewers.")
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument("--host", help="Address to listen on")
    parser.add_argument("--port", type=int, help="TCP port to listen on")
    parser.add_argument("--fps", type=int, help="Target frames per second")
    parser.add_argument("--quality", type=int, help="JPEG quality (1-100)")
    parser.add_argument("--monitor", type=int, help="Monitor index to capture (1 = primary)")
    parser.add_argument("--debug", action="store_true")
    return parser.parse_args(argv)


def apply_overrides(host_config, args):
    """Returns a copy of host_config with the command line values applied."""
    overrides = {
        "host": args.host,
        "port": args.port,
        "fps": args.fps,
        "jpeg_quality": args.quality,
        "monitor": args.monitor,
    }
    return replace(host_config, **{k: v for k, v in overrides.items() if v is not None})


def main(argv=None):
    args = parse_args(argv)
    app_config = AppConfig.load(args.config) if args.config else config
    host_config = apply_overrides(app_config.host, args)
    try:
        host_config.validate()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    configure_logging(args.debug or app_config.debug, host_config.log_file)
    logger = logging.getLogger("source_host")

    # Imported after logging is set up so startup messages are not lost
    from .screen_capture import ScreenCapturer
    from .server import RemoteDesktopServer

    server = None
    try:
        server = RemoteDesktopServer(
            host=host_config.host,
            port=host_config.port,
            fps=host_config.fps,
            jpeg_quality=host_config.jpeg_quality,
            send_queue_size=host_config.send_queue_size,
            capturer=ScreenCapturer(host_config.monitor),
        )
        server.start()
        while server.running:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Shutting down server...")
    except OSError as e:
        logger.critical(f"Failed to start server: {e}")
        return 1
    finally:
        if server:
            server.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
