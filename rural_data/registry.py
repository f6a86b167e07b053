"""Builds the data source registry from configuration entries."""

import re
from typing import Dict, Iterable, List, Mapping

from .application.domain import DataSourceDescriptor
from .application.exceptions import ConfigurationError

# Source keys name files in the cache directory.
_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
_REQUIRED_FIELDS = ("key", "name", "url", "file_name")


def build_registry(
    entries: Iterable[Mapping],
) -> List[DataSourceDescriptor]:
    """
    Converts `[[refresher.sources]]` tables into registry entries.

    Raises:
        ConfigurationError: If an entry is incomplete, a key is not a safe
                            file name, or a key is registered twice.
    """

    registry = []
    seen = set()

    for entry in entries or ():
        missing = [f for f in _REQUIRED_FIELDS if not entry.get(f)]
        if missing:
            raise ConfigurationError(
                f"Data source entry {dict(entry)} is missing {missing}."
            )

        key = str(entry["key"])
        if not _KEY_PATTERN.match(key):
            raise ConfigurationError(f"Invalid data source key '{key}'.")
        if key in seen:
            raise ConfigurationError(f"Duplicate data source key '{key}'.")
        seen.add(key)

        registry.append(
            DataSourceDescriptor(
                key=key,
                display_name=str(entry["name"]),
                source_url=str(entry["url"]),
                local_file_name=str(entry["file_name"]),
            )
        )

    if not registry:
        raise ConfigurationError("No data sources are configured.")
    return registry


def fallback_counts(entries: Iterable[Mapping]) -> Dict[str, int]:
    """The `fallback_count` overrides declared on source entries."""
    return {
        str(entry["key"]): int(entry["fallback_count"])
        for entry in entries or ()
        if entry.get("fallback_count") is not None
    }
