"""
mpdash - terminal dashboard for the Music Player Daemon.
"""

__version__ = "0.1.0"

from .client import Client
from .config import Config, load_config
from .logging_config import ConfigError, DaemonConnectionError, DaemonError, MpdashError
from .state import StateStore

__all__ = [
    'Client',
    'Config',
    'load_config',
    'StateStore',
    'MpdashError',
    'DaemonConnectionError',
    'DaemonError',
    'ConfigError',
]
