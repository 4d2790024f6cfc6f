"""Configuration module initialization."""
import logging
import sys

from .settings import (
    settings,
    EngineSettings,
    MarginProfile,
    load_margin_profiles,
    get_margin_profile,
)


def setup_logging() -> None:
    """Configure application logging."""
    handlers = [logging.StreamHandler(sys.stdout)]

    if settings.log_file:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(settings.log_file, mode="a"))

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


__all__ = [
    "settings",
    "setup_logging",
    "EngineSettings",
    "MarginProfile",
    "load_margin_profiles",
    "get_margin_profile",
]
