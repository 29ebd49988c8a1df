"""
dnote doctor - diagnose and repair a local dnote store.

Detects the version of the installed dnote, finds the known issues that
apply to it, and fixes them after backing up the store directory.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("dnote-doctor")
except PackageNotFoundError:
    __version__ = "0.1.0"
