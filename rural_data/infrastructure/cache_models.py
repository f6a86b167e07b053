"""
Pydantic models for the JSON files kept in the cache directory.

These models are the strict on-disk contract: a file that does not match
them is treated as corrupt by the cache store. Field aliases keep the
camelCase keys read by the dashboard collaborators.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..application.domain import RefreshSummary, SourceResult


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CacheFile(_CamelModel):
    """The content of `{sourceKey}.json`."""

    data: List[Dict[str, str]]
    last_updated: datetime = Field(alias="lastUpdated")
    source: str
    count: int

    @model_validator(mode="after")
    def _count_matches_data(self):
        if self.count != len(self.data):
            raise ValueError(
                f"count {self.count} does not match {len(self.data)} records"
            )
        return self


class SourceResultFile(_CamelModel):
    """One per-source slot of the update summary."""

    success: bool
    count: Optional[int] = None
    error: Optional[str] = None
    last_updated: Optional[datetime] = Field(default=None, alias="lastUpdated")
    last_attempt: Optional[datetime] = Field(default=None, alias="lastAttempt")


class SummaryFile(_CamelModel):
    """The content of `update-summary.json`."""

    last_update_attempt: datetime = Field(alias="lastUpdateAttempt")
    results: Dict[str, SourceResultFile]
    next_update: datetime = Field(alias="nextUpdate")

    @classmethod
    def from_domain(cls, summary: RefreshSummary) -> "SummaryFile":
        return cls(
            last_update_attempt=summary.last_update_attempt,
            results={
                key: SourceResultFile(
                    success=result.success,
                    count=result.count,
                    error=result.error,
                    last_updated=result.last_updated,
                    last_attempt=result.last_attempt,
                )
                for key, result in summary.results.items()
            },
            next_update=summary.next_update,
        )

    def to_domain(self) -> RefreshSummary:
        return RefreshSummary(
            last_update_attempt=as_utc(self.last_update_attempt),
            results={
                key: SourceResult(
                    success=result.success,
                    count=result.count,
                    error=result.error,
                    last_updated=as_utc(result.last_updated),
                    last_attempt=as_utc(result.last_attempt),
                )
                for key, result in self.results.items()
            },
            next_update=as_utc(self.next_update),
        )
