"""Installer for the bb Bitbucket CLI release binaries."""

__all__ = ["__version__"]

__version__ = "0.3.0"
