"""Configuration module for hlsladder settings and defaults."""

from .config import AppConfig
from . import default_config

__all__ = ["AppConfig", "default_config"]
