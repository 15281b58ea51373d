"""Application settings singleton - single source of truth for configuration

This module provides a singleton Settings class that consolidates:
1. Wire-protocol defaults (boundary token, listen port, frame cadence)
2. Timing constants used by the server threads
3. Runtime configuration from config.yml

Usage:
    from deskview.common.settings import settings

    # Initialize once at startup with loaded config
    config = ConfigLoader.config_load()
    settings.initialize(config)

    # Use anywhere in the application
    listener.settimeout(settings.ACCEPT_POLL_SEC)
"""

from typing import Optional

from deskview.common import config as config_defaults
from deskview.common.config import Config


class Settings:
    """Singleton settings manager combining config.yml and protocol constants

    The singleton pattern ensures the CLI host, the server loops and the
    sessions all agree on the same timing constants.
    """

    _instance: Optional["Settings"] = None

    def __new__(cls) -> "Settings":
        """Ensure only one Settings instance exists"""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """Initialize settings singleton (only runs once)"""
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._config: Optional[Config] = None

    def initialize(self, config: Config) -> None:
        """
        Initialize with loaded configuration

        Args:
            config: Loaded application config
        """
        self._config = config

    # =========================================================================
    # Protocol Constants
    # =========================================================================

    DEFAULT_BOUNDARY: str = config_defaults.DEFAULT_BOUNDARY
    """Multipart boundary token written before every frame chunk"""

    DEFAULT_PORT: int = config_defaults.DEFAULT_PORT
    """Listen port used when neither config nor caller names one"""

    DEFAULT_FRAME_INTERVAL_MS: int = config_defaults.DEFAULT_FRAME_INTERVAL_MS
    """Delay between two frame ticks in milliseconds (0 = no delay)"""

    INTERVAL_DIVISOR: float = 1000.0
    """Convert frame_interval_ms from config to seconds for Event.wait()"""

    REQUEST_READ_SIZE: int = 4096
    """Maximum bytes drained from a client's request per read"""

    # =========================================================================
    # Server Thread Constants
    # =========================================================================

    ACCEPT_POLL_SEC: float = 0.2
    """Listener accept() timeout so the accept loop notices a stop request

    Closing a socket from another thread does not reliably wake a blocked
    accept() on every platform, so the loop also polls the stop event.
    """

    SESSION_POLL_SEC: float = 0.1
    """Upper bound on how long a session thread waits for its next frame"""

    IDLE_POLL_SEC: float = 0.05
    """Tick-loop wait while no client is connected and no interval is set"""

    JOIN_TIMEOUT_SEC: float = 2.0
    """How long server_stop() waits for each loop thread to finish"""

    # =========================================================================
    # Host Constants
    # =========================================================================

    STATUS_POLL_MS: int = 200
    """How often the command-line host polls the client count"""

    # =========================================================================
    # Runtime Configuration Access
    # =========================================================================

    @property
    def config(self) -> Config:
        """
        Get loaded configuration object

        Returns:
            Loaded configuration

        Raises:
            RuntimeError: If initialize() has not been called
        """
        if self._config is None:
            raise RuntimeError("Settings not initialized. Call settings.initialize(config) first.")
        return self._config


# Global singleton instance
settings = Settings()
"""Global settings singleton instance

Import this anywhere in the application:
    from deskview.common.settings import settings
"""
