"""Utility modules for the insight cache."""

from .logger import setup_logger

__all__ = ["setup_logger"]
