"""
Spixi Directory Utility Modules

File helpers for writing generated site artifacts.
"""

from .atomic_write import (
    atomic_write_text,
    atomic_write_json,
    write_if_changed,
    dump_json,
)

__all__ = [
    "atomic_write_text",
    "atomic_write_json",
    "write_if_changed",
    "dump_json",
]
