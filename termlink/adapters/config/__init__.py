"""
Configuration loading
"""
from .loader import ConfigLoader, DEFAULT_SETTINGS

__all__ = ["ConfigLoader", "DEFAULT_SETTINGS"]
