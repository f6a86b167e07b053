"""
This module defines the core domain models for the application.

These classes represent the pure, technology-agnostic entities and data
structures that the application's business logic operates on.
"""

import dataclasses
import enum
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


def utcnow() -> datetime:
    """The current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# --- Domain Models ---

@dataclasses.dataclass(frozen=True)
class DataSourceDescriptor:
    """An immutable registry entry for one external dataset."""

    key: str
    display_name: str
    source_url: str
    local_file_name: str


# One parsed CSV line, keyed by header. Discarded after filtering.
RawRow = Dict[str, str]


@dataclasses.dataclass(frozen=True)
class FacilityRecord:
    """A Critical Access Hospital."""

    provider_name: str
    state_code: str
    county_name: str
    address: str = ""
    city: str = ""
    zip: str = ""


@dataclasses.dataclass(frozen=True)
class ClinicRecord:
    """A Rural Health Clinic."""

    facility_name: str
    state_code: str
    county_name: str
    rural_status: str = "Rural"


@dataclasses.dataclass(frozen=True)
class ShortageAreaRecord:
    """A Health Professional Shortage Area designation."""

    area_name: str
    state_code: str
    designation_type: str
    rural_status: str = "Rural"


# Unregistered sources pass their raw rows through unchanged.
DomainRecord = Union[FacilityRecord, ClinicRecord, ShortageAreaRecord, RawRow]

RECORD_TYPES = {
    "cahFacilities": FacilityRecord,
    "ruralClinics": ClinicRecord,
    "shortageAreas": ShortageAreaRecord,
}


def record_to_dict(record: DomainRecord) -> Dict[str, str]:
    if dataclasses.is_dataclass(record):
        return dataclasses.asdict(record)
    return dict(record)


def record_from_dict(source_key: str, payload: Dict[str, Any]) -> DomainRecord:
    """Rebuilds a typed record for known sources, a plain mapping otherwise."""
    record_type = RECORD_TYPES.get(source_key)
    if record_type is None:
        return {str(k): str(v) for k, v in payload.items()}
    return record_type(**payload)


@dataclasses.dataclass(frozen=True)
class DownloadedFile:
    """A raw dataset file written to disk by the downloader."""

    path: Path
    url: str


@dataclasses.dataclass(frozen=True)
class CacheEntry:
    """
    The persisted unit of the cache store: all records of one source as of
    its last successful refresh.
    """

    data: List[DomainRecord]
    last_updated: datetime
    source: str
    count: int

    def __post_init__(self):
        if self.count != len(self.data):
            raise ValueError(
                f"Cache entry count {self.count} does not match "
                f"{len(self.data)} records"
            )

    def age(self, now: datetime) -> timedelta:
        return now - self.last_updated


@dataclasses.dataclass(frozen=True)
class SourceResult:
    """The outcome of refreshing a single source."""

    success: bool
    count: Optional[int] = None
    error: Optional[str] = None
    last_updated: Optional[datetime] = None
    last_attempt: Optional[datetime] = None


@dataclasses.dataclass(frozen=True)
class RefreshSummary:
    """The record of one orchestration run, rewritten in full each run."""

    last_update_attempt: datetime
    results: Dict[str, SourceResult]
    next_update: datetime


class Provenance(str, enum.Enum):
    """Where the records of a read result came from."""

    AUTOMATED = "automated"
    STALE_CACHE = "stale-cache"
    FALLBACK = "fallback"


@dataclasses.dataclass(frozen=True)
class DatasetReadResult:
    """Records served to the boundary layer, tagged with their provenance."""

    source_key: str
    records: List[DomainRecord]
    provenance: Provenance
    last_updated: Optional[datetime] = None

    @property
    def count(self) -> int:
        return len(self.records)


# --- Ports (Interfaces) ---

class Downloader(ABC):
    """A port for any file downloader."""

    @abstractmethod
    async def download(self, url: str, destination: Path) -> DownloadedFile:
        """
        Downloads a dataset to a destination path.
        Raises NetworkError or FetchError on failure.
        """
        pass


class RowParser(ABC):
    """A port for turning raw delimited text into rows."""

    @abstractmethod
    def parse(self, text: str) -> List[RawRow]:
        """Parses text into header-keyed rows."""
        pass


class CacheStore(ABC):
    """A port for the on-disk cache of refreshed records."""

    @abstractmethod
    def write(self, source_key: str, records: List[DomainRecord],
              source_url: str) -> CacheEntry:
        """Persists a new entry for a source, replacing any previous one."""
        pass

    @abstractmethod
    def read(self, source_key: str) -> CacheEntry:
        """
        Loads the entry for a source.
        Raises CacheMissError when absent or unreadable.
        """
        pass

    @abstractmethod
    def is_stale(self, entry: CacheEntry, max_age: timedelta) -> bool:
        """Whether the entry is older than max_age."""
        pass

    @abstractmethod
    def write_summary(self, summary: RefreshSummary):
        """Persists the summary of an orchestration run."""
        pass

    @abstractmethod
    def read_summary(self) -> Optional[RefreshSummary]:
        """Loads the last run summary, or None if there is none."""
        pass
