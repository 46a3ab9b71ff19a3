"""Configuration package -- typed, validated settings from YAML + env."""

from .settings import PROJECT_ROOT, RobotsSettings

__all__ = [
    "PROJECT_ROOT",
    "RobotsSettings",
    "load_settings",
]


def load_settings() -> RobotsSettings:
    """Load settings from config/robots.yaml with environment overrides."""
    return RobotsSettings()
