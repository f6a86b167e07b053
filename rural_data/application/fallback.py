"""Deterministic placeholder datasets served when no cache can be read."""

import logging
from typing import Dict, List, Optional

from .domain import (
    ClinicRecord,
    DomainRecord,
    FacilityRecord,
    ShortageAreaRecord,
)

# Published national totals for each registered dataset.
DEFAULT_FALLBACK_COUNTS = {
    "cahFacilities": 1320,
    "ruralClinics": 4400,
    "shortageAreas": 7800,
}

_FACILITY_STATES = ("MT", "WY", "ND", "SD", "NE", "KS", "OK", "TX", "AK", "NM")
_CLINIC_STATES = ("TX", "CA", "MT", "WY", "ND", "SD", "NE", "KS", "OK", "AK")
_DESIGNATION_TYPES = ("Primary Care", "Dental Health", "Mental Health")


def _facility(i: int) -> FacilityRecord:
    return FacilityRecord(
        provider_name=f"Critical Access Hospital {i + 1}",
        state_code=_FACILITY_STATES[i % len(_FACILITY_STATES)],
        county_name=f"Rural County {i // 10 + 1}",
    )


def _clinic(i: int) -> ClinicRecord:
    return ClinicRecord(
        facility_name=f"Rural Health Clinic {i + 1}",
        state_code=_CLINIC_STATES[i % len(_CLINIC_STATES)],
        county_name="",
    )


def _shortage_area(i: int) -> ShortageAreaRecord:
    return ShortageAreaRecord(
        area_name=f"Health Professional Shortage Area {i + 1}",
        state_code=_CLINIC_STATES[i % len(_CLINIC_STATES)],
        designation_type=_DESIGNATION_TYPES[i % len(_DESIGNATION_TYPES)],
    )


_BUILDERS = {
    "cahFacilities": _facility,
    "ruralClinics": _clinic,
    "shortageAreas": _shortage_area,
}


class FallbackGenerator:
    """
    Synthesizes a fixed-size dataset for a source.

    Output depends only on the source key and the configured counts, so
    every call for the same key yields equal records.
    """

    def __init__(self, counts: Optional[Dict[str, int]] = None):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.counts = {**DEFAULT_FALLBACK_COUNTS, **(counts or {})}

    def generate(self, source_key: str) -> List[DomainRecord]:
        build = _BUILDERS.get(source_key)
        if build is None:
            self.logger.warning(f"No fallback data defined for '{source_key}'.")
            return []

        count = self.counts.get(source_key, 0)
        self.logger.info(f"Using {count} fallback records for '{source_key}'.")
        return [build(i) for i in range(count)]
