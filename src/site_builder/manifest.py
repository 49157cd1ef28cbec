"""
Manifest Parser - Reads the upstream appinfo key=value format.
"""

from __future__ import annotations

from typing import Dict

# Manifest keys the directory consumes; anything else is ignored downstream
KNOWN_KEYS = ("name", "publisher", "version", "description")


def parse_manifest(text: str) -> Dict[str, str]:
    """
    Parse manifest text into a key -> value mapping.

    Every line holding at least one ``=`` contributes an entry: the key is
    the text before the first ``=``, the value everything after it, both
    stripped. Lines without ``=`` are skipped. Never raises.

    Args:
        text: Raw manifest content

    Returns:
        Mapping of keys to values (later duplicates win).
    """
    data: Dict[str, str] = {}
    if not text:
        return data

    for line in text.lstrip("\ufeff").split("\n"):
        key, sep, value = line.partition("=")
        if not sep:
            continue
        data[key.strip()] = value.strip()

    return data
