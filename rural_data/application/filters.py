"""
Per-source row predicates and projections.

Rows are matched with case-insensitive substring heuristics on a single
column, not validated against a schema: a provider type such as
"Clinical Laboratory" is accepted as a rural clinic because it contains
"clinic". Projections coalesce the alternative column names used by the
different government exports and map absent values to empty strings.
"""

import logging
from typing import Callable, Dict, List

import pandas

from .domain import (
    ClinicRecord,
    DomainRecord,
    FacilityRecord,
    RawRow,
    ShortageAreaRecord,
)

logger = logging.getLogger(__name__)


def _coalesce(
    frame: pandas.DataFrame, *columns: str, default: str = ""
) -> pandas.Series:
    """Per row, the first non-empty value among columns, else default."""
    result = pandas.Series(default, index=frame.index, dtype=object)
    for column in reversed(columns):
        if column in frame:
            values = frame[column]
            result = values.where(values != "", result)
    return result


def _contains(frame: pandas.DataFrame, column: str, *needles: str) -> pandas.Series:
    mask = pandas.Series(False, index=frame.index)
    if column not in frame:
        return mask
    lowered = frame[column].str.lower()
    for needle in needles:
        mask |= lowered.str.contains(needle, regex=False)
    return mask


def _critical_access_facilities(frame: pandas.DataFrame) -> List[FacilityRecord]:
    frame = frame[_contains(frame, "Provider Type", "critical access")]
    projected = pandas.DataFrame({
        "provider_name": _coalesce(frame, "Provider Name", "Facility Name"),
        "state_code": _coalesce(frame, "State", "State Code"),
        "county_name": _coalesce(frame, "County", "County Name"),
        "address": _coalesce(frame, "Address"),
        "city": _coalesce(frame, "City"),
        "zip": _coalesce(frame, "ZIP", "Zip Code"),
    })
    return [FacilityRecord(**row) for row in projected.to_dict(orient="records")]


def _rural_clinics(frame: pandas.DataFrame) -> List[ClinicRecord]:
    frame = frame[_contains(frame, "Provider Type", "rural", "clinic")]
    projected = pandas.DataFrame({
        "facility_name": _coalesce(frame, "Provider Name", "Facility Name"),
        "state_code": _coalesce(frame, "State", "State Code"),
        "county_name": _coalesce(frame, "County", "County Name"),
    })
    return [
        ClinicRecord(rural_status="Rural", **row)
        for row in projected.to_dict(orient="records")
    ]


def _shortage_areas(frame: pandas.DataFrame) -> List[ShortageAreaRecord]:
    frame = frame[_contains(frame, "Rural Status", "rural")]
    projected = pandas.DataFrame({
        "area_name": _coalesce(frame, "HPSA Name", "Area Name"),
        "state_code": _coalesce(frame, "State", "State Abbreviation"),
        "designation_type": _coalesce(
            frame, "Designation Type", default="Primary Care"
        ),
        "rural_status": _coalesce(frame, "Rural Status", default="Rural"),
    })
    return [
        ShortageAreaRecord(**row) for row in projected.to_dict(orient="records")
    ]


_PROJECTIONS: Dict[str, Callable[[pandas.DataFrame], List[DomainRecord]]] = {
    "cahFacilities": _critical_access_facilities,
    "ruralClinics": _rural_clinics,
    "shortageAreas": _shortage_areas,
}


def filter_records(rows: List[RawRow], source_key: str) -> List[DomainRecord]:
    """
    Select and project the rows relevant to a source.

    Args:
        rows: Header-keyed rows produced by the CSV parser.
        source_key: The registry key of the source the rows came from.

    Returns:
        Typed records for known sources. Rows of unrecognized sources are
        returned unfiltered as plain mappings.
    """

    project = _PROJECTIONS.get(source_key)
    if project is None:
        logger.info(f"No filter for '{source_key}', passing rows through.")
        return [dict(row) for row in rows]
    if not rows:
        return []

    frame = pandas.DataFrame(rows).fillna("").astype(str)
    records = project(frame)

    logger.info(
        f"Filtered {len(rows)} rows down to {len(records)} "
        f"records for '{source_key}'."
    )
    return records
