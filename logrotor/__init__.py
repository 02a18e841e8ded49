"""Log file writer that rotates by size or file name pattern, prunes and gzips backups."""

__version__ = "0.1.0"
__all__ = ["logger", "ownership", "timefmt"]