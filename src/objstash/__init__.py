"""objstash - schema-driven JSON object store with secondary indexes over SQLite."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("objstash")
except PackageNotFoundError:
    __version__ = "unknown"

__all__ = ["__version__"]
