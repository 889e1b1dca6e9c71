"""cfdecode - Grammar-driven decoder for CF configuration objects."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("cfdecode")
except PackageNotFoundError:
    __version__ = "(local)"
