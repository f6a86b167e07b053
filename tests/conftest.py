"""
Fixtures and test configuration for the rural_data test suite.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict

import httpx
import pytest

from rural_data.application.domain import DataSourceDescriptor
from rural_data.infrastructure.cache_store import JsonCacheStore
from rural_data.infrastructure.csv_parser import CsvRowParser
from rural_data.infrastructure.downloader import HttpDownloader


CAH_CSV = (
    "Provider Name,Provider Type,State,County,Address,City,ZIP\n"
    '"Mercy Hospital, Inc",Critical Access Hospital,MT,Lewis and Clark,'
    "1 Main St,Helena,59601\n"
    "Bay General,Short Term Hospital,CA,Alameda,2 Bay Rd,Oakland,94601\n"
    "Prairie Health,CRITICAL ACCESS HOSPITAL,ND,Burleigh,,Bismarck,58501\n"
)

CLINIC_CSV = (
    "Provider Name,Provider Type,State,County\n"
    "Valley Clinic,Rural Health Clinic,WY,Park\n"
    "City Lab,Independent Laboratory,NY,Kings\n"
)

HPSA_CSV = (
    "HPSA Name,State,Designation Type,Rural Status\n"
    "Big Sky Area,MT,Primary Care,Rural\n"
    "Metro Area,NY,Dental Health,Urban\n"
)


class FakeClock:
    """A controllable clock returning aware UTC datetimes."""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2024, 9, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta):
        self.now = self.now + delta


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache_store(tmp_path, clock):
    return JsonCacheStore(tmp_path / "cache", clock=clock)


@pytest.fixture
def parser():
    return CsvRowParser()


@pytest.fixture
def sources():
    return [
        DataSourceDescriptor(
            key="cahFacilities",
            display_name="Critical Access Hospitals",
            source_url="https://data.example.test/cah.csv",
            local_file_name="cah-facilities.csv",
        ),
        DataSourceDescriptor(
            key="ruralClinics",
            display_name="Rural Health Clinics",
            source_url="https://data.example.test/clinics.csv",
            local_file_name="rural-clinics.csv",
        ),
        DataSourceDescriptor(
            key="shortageAreas",
            display_name="Health Professional Shortage Areas",
            source_url="https://data.example.test/hpsa.csv",
            local_file_name="hpsa-primary-care.csv",
        ),
    ]


@pytest.fixture
def make_downloader():
    """Builds an HttpDownloader whose client is served by a handler."""

    def _make(
        handler: Callable[[httpx.Request], httpx.Response],
        max_redirects: int = 5,
    ) -> HttpDownloader:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return HttpDownloader(
            client=client,
            timeout=30,
            chunk_size=1024,
            max_redirects=max_redirects,
            show_progress=False,
        )

    return _make


def _serve(routes: Dict[str, httpx.Response]):
    """A MockTransport handler answering by URL, 404 for anything else."""

    def handler(request: httpx.Request) -> httpx.Response:
        response = routes.get(str(request.url))
        if response is None:
            return httpx.Response(404, text="Not Found")
        # A fresh copy per request; response streams are single-use.
        return httpx.Response(
            response.status_code,
            headers=response.headers,
            content=response.content,
        )

    return handler


@pytest.fixture
def serve():
    return _serve


@pytest.fixture
def csv_bodies():
    return {
        "cahFacilities": CAH_CSV,
        "ruralClinics": CLINIC_CSV,
        "shortageAreas": HPSA_CSV,
    }
