"""Utility helpers."""

from cross_keychain.utils.logging_config import configure_logging

__all__ = ["configure_logging"]
