"""medialib indexes media libraries and reconciles them against an inventory."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("medialib")
except PackageNotFoundError:  # running from a source checkout
    __version__ = "0.0.0"

__all__ = ["__version__"]
