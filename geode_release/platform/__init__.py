"""Platform abstraction layer."""

from .files import scoped_temp_file

__all__ = ["scoped_temp_file"]
