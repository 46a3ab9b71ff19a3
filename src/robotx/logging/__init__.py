"""Logging configuration for applications embedding robotx."""

from .setup import setup_logging

__all__ = ["setup_logging"]
