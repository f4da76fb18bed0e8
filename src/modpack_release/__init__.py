"""Release reconciliation and tagging for multi-target modpacks."""

from modpack_release.version import __version__

__all__ = ['__version__']
