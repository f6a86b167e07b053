"""
Tests for the per-source row filters and projections.
"""

from rural_data.application.domain import (
    ClinicRecord,
    FacilityRecord,
    ShortageAreaRecord,
)
from rural_data.application.filters import filter_records


class TestCriticalAccessFacilities:

    def test_keeps_only_critical_access_rows(self):
        rows = [
            {"Provider Type": "Critical Access Hospital", "Provider Name": "X"},
            {"Provider Type": "General", "Provider Name": "Y"},
        ]

        records = filter_records(rows, "cahFacilities")

        assert len(records) == 1
        assert records[0].provider_name == "X"

    def test_match_is_case_insensitive(self):
        rows = [{"Provider Type": "CRITICAL ACCESS HOSPITAL", "Provider Name": "X"}]
        assert len(filter_records(rows, "cahFacilities")) == 1

    def test_projects_fields_with_empty_string_for_absent_columns(self):
        rows = [{
            "Provider Type": "Critical Access Hospital",
            "Provider Name": "Mercy",
            "State": "MT",
            "County": "Lewis",
        }]

        records = filter_records(rows, "cahFacilities")

        assert records == [FacilityRecord(
            provider_name="Mercy",
            state_code="MT",
            county_name="Lewis",
            address="",
            city="",
            zip="",
        )]

    def test_falls_back_to_alternative_column_names(self):
        rows = [{
            "Provider Type": "Critical Access Hospital",
            "Provider Name": "",
            "Facility Name": "Prairie Health",
            "State Code": "ND",
            "County Name": "Burleigh",
            "Zip Code": "58501",
        }]

        record = filter_records(rows, "cahFacilities")[0]

        assert record.provider_name == "Prairie Health"
        assert record.state_code == "ND"
        assert record.county_name == "Burleigh"
        assert record.zip == "58501"

    def test_rows_without_provider_type_are_dropped(self):
        rows = [{"Provider Name": "X"}]
        assert filter_records(rows, "cahFacilities") == []


class TestRuralClinics:

    def test_keeps_rural_or_clinic_rows(self):
        rows = [
            {"Provider Type": "Rural Health Clinic", "Provider Name": "A", "State": "WY"},
            {"Provider Type": "Federally Qualified Clinic", "Provider Name": "B", "State": "TX"},
            {"Provider Type": "Rural Emergency Hospital", "Provider Name": "C", "State": "NE"},
            {"Provider Type": "Laboratory", "Provider Name": "D", "State": "NY"},
        ]

        records = filter_records(rows, "ruralClinics")

        assert [r.facility_name for r in records] == ["A", "B", "C"]
        assert all(isinstance(r, ClinicRecord) for r in records)
        assert all(r.rural_status == "Rural" for r in records)
        assert records[0].county_name == ""


class TestShortageAreas:

    def test_keeps_rural_rows_and_defaults_designation(self):
        rows = [
            {"HPSA Name": "Big Sky", "State": "MT", "Rural Status": "Rural"},
            {"HPSA Name": "Metro", "State": "NY", "Rural Status": "Urban"},
            {
                "Area Name": "Badlands",
                "State Abbreviation": "SD",
                "Designation Type": "Mental Health",
                "Rural Status": "Partially Rural",
            },
        ]

        records = filter_records(rows, "shortageAreas")

        assert records == [
            ShortageAreaRecord(
                area_name="Big Sky",
                state_code="MT",
                designation_type="Primary Care",
                rural_status="Rural",
            ),
            ShortageAreaRecord(
                area_name="Badlands",
                state_code="SD",
                designation_type="Mental Health",
                rural_status="Partially Rural",
            ),
        ]


class TestUnknownSources:

    def test_rows_pass_through_unfiltered(self):
        rows = [{"a": "1"}, {"a": "2"}]

        records = filter_records(rows, "somethingElse")

        assert records == rows
        assert records[0] is not rows[0]

    def test_empty_input(self):
        assert filter_records([], "cahFacilities") == []
        assert filter_records([], "somethingElse") == []
