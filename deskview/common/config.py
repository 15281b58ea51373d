"""Configuration file loading and management"""

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_BOUNDARY = "--boundary"
DEFAULT_PORT = 8080
DEFAULT_FRAME_INTERVAL_MS = 50
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def boundary_validate(boundary: str) -> str:
    """
    Check that a boundary token can be written on a header line

    Args:
        boundary: Multipart boundary token

    Returns:
        The same token

    Raises:
        ValueError: If the token is empty, non-ASCII or contains line breaks
    """
    if not boundary:
        raise ValueError("Boundary token must not be empty")
    if not boundary.isascii() or not boundary.isprintable():
        raise ValueError(f"Boundary token must be printable ASCII, got {boundary!r}")
    return boundary


@dataclass(frozen=True)
class ServerConfig:
    """Streaming server settings, fixed for the lifetime of one server"""
    width: int
    height: int
    show_cursor: bool = True
    frame_interval_ms: int = DEFAULT_FRAME_INTERVAL_MS
    boundary: str = DEFAULT_BOUNDARY
    port: int = DEFAULT_PORT
    host: str = "0.0.0.0"
    jpeg_quality: int = 75
    client_queue_size: int = 2
    send_timeout_sec: float = 5.0
    accept_backlog: int = 10

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Width and height must be positive, got {self.width}x{self.height}")
        if self.frame_interval_ms < 0:
            raise ValueError(f"frame_interval_ms must be >= 0, got {self.frame_interval_ms}")
        if not 0 <= self.port <= 65535:
            raise ValueError(f"Port must be in 0..65535, got {self.port}")
        if not 1 <= self.jpeg_quality <= 95:
            raise ValueError(f"jpeg_quality must be in 1..95, got {self.jpeg_quality}")
        if self.client_queue_size < 1:
            raise ValueError("client_queue_size must be at least 1")
        if self.send_timeout_sec <= 0:
            raise ValueError("send_timeout_sec must be positive")
        if self.accept_backlog < 1:
            raise ValueError("accept_backlog must be at least 1")
        boundary_validate(self.boundary)


@dataclass
class SourceConfig:
    """Frame source selection"""
    name: str = "pattern"
    image_path: Optional[str] = None


@dataclass
class LoggingConfig:
    """Logging configuration settings"""
    level: str = "INFO"
    file: Optional[str] = None
    format: str = DEFAULT_LOG_FORMAT


@dataclass
class Config:
    """Complete application configuration"""
    server: ServerConfig
    source: SourceConfig = field(default_factory=SourceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class ConfigLoader:
    """Loads and parses configuration from YAML files"""

    DEFAULT_CONFIG_PATHS = [
        "config.yml",
        "~/.config/deskview/config.yml",
        "/etc/deskview/config.yml",
    ]

    DEFAULT_WIDTH = 800
    DEFAULT_HEIGHT = 600

    @staticmethod
    def configFile_find() -> Optional[Path]:
        """
        Find configuration file in standard locations

        Returns:
            Path to config file, or None if not found
        """
        for config_path in ConfigLoader.DEFAULT_CONFIG_PATHS:
            path = Path(config_path).expanduser().resolve()
            if path.exists() and path.is_file():
                return path
        return None

    @staticmethod
    def yaml_load(file_path: Path) -> Dict[str, Any]:
        """
        Load YAML configuration file

        Args:
            file_path: Path to YAML file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If file does not exist
            yaml.YAMLError: If file is not valid YAML
        """
        with open(file_path, "r") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Config file {file_path} must contain a YAML dictionary")

        return data

    @staticmethod
    def config_parse(data: Dict[str, Any]) -> Config:
        """
        Parse configuration dictionary into Config object

        Every section and key is optional; missing values take the
        documented defaults.

        Args:
            data: Raw configuration dictionary

        Returns:
            Parsed Config object

        Raises:
            ValueError: If a value is out of range
        """
        server_data = data.get("server") or {}
        server = ServerConfig(
            width=server_data.get("width", ConfigLoader.DEFAULT_WIDTH),
            height=server_data.get("height", ConfigLoader.DEFAULT_HEIGHT),
            show_cursor=server_data.get("show_cursor", True),
            frame_interval_ms=server_data.get("frame_interval_ms", DEFAULT_FRAME_INTERVAL_MS),
            boundary=server_data.get("boundary", DEFAULT_BOUNDARY),
            port=server_data.get("port", DEFAULT_PORT),
            host=server_data.get("host", "0.0.0.0"),
            jpeg_quality=server_data.get("jpeg_quality", 75),
            client_queue_size=server_data.get("client_queue_size", 2),
            send_timeout_sec=server_data.get("send_timeout_sec", 5.0),
            accept_backlog=server_data.get("accept_backlog", 10),
        )

        source_data = data.get("source") or {}
        source = SourceConfig(
            name=source_data.get("name", "pattern"),
            image_path=source_data.get("image_path"),
        )

        logging_data = data.get("logging") or {}
        logging_config = LoggingConfig(
            level=logging_data.get("level", "INFO"),
            file=logging_data.get("file"),
            format=logging_data.get("format", DEFAULT_LOG_FORMAT),
        )

        return Config(server=server, source=source, logging=logging_config)

    @staticmethod
    def config_load(file_path: Optional[Path] = None) -> Config:
        """
        Load configuration from file

        Args:
            file_path: Optional path to config file. If None, searches standard
                locations and falls back to defaults when nothing is found.

        Returns:
            Parsed Config object

        Raises:
            FileNotFoundError: If an explicit config file does not exist
            ValueError: If config file is invalid
        """
        if file_path is None:
            file_path = ConfigLoader.configFile_find()
            if file_path is None:
                logger.debug(
                    f"No config file in {ConfigLoader.DEFAULT_CONFIG_PATHS}, using defaults"
                )
                return ConfigLoader.config_parse({})

        data = ConfigLoader.yaml_load(file_path)
        return ConfigLoader.config_parse(data)

    @staticmethod
    def configWithOverrides_load(
        file_path: Optional[Path] = None,
        **overrides: Any
    ) -> Config:
        """
        Load configuration and apply command-line overrides

        ServerConfig is frozen, so overrides build a replacement instance
        (which re-runs validation).

        Args:
            file_path: Optional path to config file
            **overrides: Key-value pairs to override config values; None means
                "not given on the command line"

        Returns:
            Config object with overrides applied

        Example:
            config = ConfigLoader.configWithOverrides_load(
                port=9000,
                frame_interval_ms=20
            )
        """
        config = ConfigLoader.config_load(file_path)

        server_fields = {
            "host", "port", "width", "height", "show_cursor",
            "frame_interval_ms", "boundary", "jpeg_quality",
        }
        server_overrides = {
            key: value
            for key, value in overrides.items()
            if key in server_fields and value is not None
        }
        if server_overrides:
            config.server = replace(config.server, **server_overrides)

        if overrides.get("source") is not None:
            config.source.name = overrides["source"]
        if overrides.get("image_path") is not None:
            config.source.image_path = overrides["image_path"]
        if overrides.get("log_level") is not None:
            config.logging.level = overrides["log_level"]

        return config
