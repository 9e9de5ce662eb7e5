"""
Configuration for the seed synchronization engine.
"""

from .config_loader import SyncConfig, load_config

__all__ = ["SyncConfig", "load_config"]
