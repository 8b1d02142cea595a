"""Top-level package for the biosig-edf recording writer."""

from .edf import __version__

__license__ = "GPL-3.0-only"

__all__ = ["__version__", "__license__"]
