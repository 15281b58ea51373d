"""Server bootstrap helpers for config, logging, and frame source wiring."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from deskview.common.config import Config, ConfigLoader
from deskview.common.settings import settings
from deskview.frames.factory import frameSource_create
from deskview.frames.source import FrameSource

logger = logging.getLogger(__name__)


def configWithSettings_load(args: argparse.Namespace) -> Config:
    """
    Load configuration and initialize settings singleton.

    Args:
        args: Parsed server CLI args.

    Returns:
        Loaded config.
    """
    config_path: Path | None = Path(args.config) if args.config else None
    try:
        config: Config = ConfigLoader.configWithOverrides_load(
            file_path=config_path,
            host=args.host,
            port=args.port,
            width=args.width,
            height=args.height,
            show_cursor=args.show_cursor,
            frame_interval_ms=args.frame_interval_ms,
            boundary=args.boundary,
            jpeg_quality=args.jpeg_quality,
            source=args.source,
            image_path=args.image_path,
            log_level=args.log_level,
        )
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Create a config.yml file or omit --config to use defaults", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)
    settings.initialize(config)
    return config


def loggingWithConfig_setup(config: Config, logging_setup_func) -> None:
    """
    Setup logging from config (CLI overrides are already applied).

    Args:
        config: Loaded config.
        logging_setup_func: Logging setup callback.
    """
    logging_setup_func(config.logging.level, config.logging.format, config.logging.file)


def frameSourceWithConfig_create(config: Config) -> FrameSource:
    """
    Create the configured frame source.

    Args:
        config: Loaded config.

    Returns:
        Frame source sized to the server config.
    """
    try:
        source: FrameSource = frameSource_create(
            source_name=config.source.name,
            server_config=config.server,
            image_path=config.source.image_path,
        )
    except (ValueError, OSError) as e:
        logger.error(f"Cannot create frame source '{config.source.name}': {e}")
        sys.exit(1)
    logger.info(
        f"Frame source: {config.source.name} "
        f"({config.server.width}x{config.server.height}, cursor={config.server.show_cursor})"
    )
    return source
