"""File-system implementation of the CacheStore port."""

import logging
import os
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, List, Optional

from pydantic import BaseModel, ValidationError

from ..application.domain import (
    CacheEntry,
    CacheStore,
    DomainRecord,
    RefreshSummary,
    record_from_dict,
    record_to_dict,
    utcnow,
)
from ..application.exceptions import CacheCorruptError, CacheMissError

from .cache_models import CacheFile, SummaryFile, as_utc

SUMMARY_FILE_NAME = "update-summary.json"


class JsonCacheStore(CacheStore):
    """
    Keeps one JSON file per source, plus the run summary, in a flat
    directory.

    Files are written to a temporary sibling and renamed into place, so a
    reader sees either the previous entry or the new one, never a partial
    write.
    """

    def __init__(
        self,
        cache_dir: Path,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.cache_dir = Path(cache_dir)
        self.clock = clock

    def _entry_path(self, source_key: str) -> Path:
        return self.cache_dir / f"{source_key}.json"

    def _atomic_write(self, path: Path, model: BaseModel):
        """Serializes a model next to path, then renames it over path."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        payload = model.model_dump_json(by_alias=True, indent=2)

        fd, tmp_name = tempfile.mkstemp(
            dir=self.cache_dir, prefix=f".{path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def write(
        self, source_key: str, records: List[DomainRecord], source_url: str
    ) -> CacheEntry:
        entry = CacheEntry(
            data=list(records),
            last_updated=self.clock(),
            source=source_url,
            count=len(records),
        )
        model = CacheFile(
            data=[record_to_dict(record) for record in entry.data],
            last_updated=entry.last_updated,
            source=entry.source,
            count=entry.count,
        )

        path = self._entry_path(source_key)
        self._atomic_write(path, model)
        self.logger.info(f"Cached {entry.count} records in {path.name}")
        return entry

    def read(self, source_key: str) -> CacheEntry:
        """
        Loads the cached entry of a source.

        Raises:
            CacheMissError: If no entry file exists.
            CacheCorruptError: If the file cannot be decoded into an entry.
        """

        path = self._entry_path(source_key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise CacheMissError(f"No cached data for '{source_key}'") from e
        except (OSError, UnicodeDecodeError) as e:
            raise CacheCorruptError(
                f"Cached data for '{source_key}' cannot be read: {e}"
            ) from e

        try:
            model = CacheFile.model_validate_json(raw)
            return CacheEntry(
                data=[record_from_dict(source_key, row) for row in model.data],
                last_updated=as_utc(model.last_updated),
                source=model.source,
                count=model.count,
            )
        except (ValidationError, TypeError, ValueError) as e:
            raise CacheCorruptError(
                f"Cached data for '{source_key}' is unreadable: {e}"
            ) from e

    def is_stale(self, entry: CacheEntry, max_age: timedelta) -> bool:
        return entry.age(self.clock()) > max_age

    def write_summary(self, summary: RefreshSummary):
        model = SummaryFile.from_domain(summary)
        self._atomic_write(self.cache_dir / SUMMARY_FILE_NAME, model)
        self.logger.info(f"Saved update summary to {SUMMARY_FILE_NAME}")

    def read_summary(self) -> Optional[RefreshSummary]:
        """
        Loads the last run summary, or None before the first run.

        Raises:
            CacheCorruptError: If the summary file cannot be decoded.
        """

        path = self.cache_dir / SUMMARY_FILE_NAME
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise CacheCorruptError(f"Update summary cannot be read: {e}") from e

        try:
            model = SummaryFile.model_validate_json(raw)
        except ValidationError as e:
            raise CacheCorruptError(f"Update summary is unreadable: {e}") from e

        return model.to_domain()
