"""The installed backporter version, read from the distribution metadata."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("backporter")
except PackageNotFoundError:
    # Running from a source checkout that was never installed
    __version__ = "unknown"
