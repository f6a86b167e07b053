"""
Tests for the dependency injection wiring.
"""

from datetime import timedelta

import pytest
from dependency_injector import providers
from dynaconf import Dynaconf

from rural_data.application.domain import Provenance
from rural_data.infrastructure.containers import Container

SETTINGS = """
[logging]
level = "DEBUG"

[paths]
base_dir = "{base_dir}"
cache_dir_name = "cache"
download_dir_name = "data"

[refresher]
refresh_interval_hours = 12
stale_after_hours = 6
max_acceptable_age_hours = 36
initial_delay_seconds = 1
serverless = true
concurrent_downloads = 2
timeout = 10
max_redirects = 2
chunk_size = 1024
show_progress = false

[[refresher.sources]]
key = "cahFacilities"
name = "Critical Access Hospitals"
url = "https://data.example.test/cah.csv"
file_name = "cah.csv"
fallback_count = 7
"""


@pytest.fixture
def container(tmp_path):
    settings_file = tmp_path / "settings.toml"
    settings_file.write_text(SETTINGS.format(base_dir=tmp_path.as_posix()))

    container = Container()
    container.config.override(
        providers.Object(Dynaconf(settings_files=[str(settings_file)]))
    )
    yield container
    container.config.reset_override()


def test_wires_configuration_into_components(container, tmp_path):
    service = container.rural_data_service()
    orchestrator = container.orchestrator()

    assert service.stale_after == timedelta(hours=6)
    assert service.max_acceptable_age == timedelta(hours=36)
    assert orchestrator.refresh_interval == timedelta(hours=12)
    assert orchestrator.concurrent_downloads == 2
    assert [s.key for s in orchestrator.sources] == ["cahFacilities"]
    assert container.cache_store().cache_dir == tmp_path.resolve() / "cache"
    assert orchestrator.pipeline.download_dir == tmp_path.resolve() / "data"
    assert orchestrator.pipeline.downloader.max_redirects == 2
    assert orchestrator.show_progress is False
    assert container.scheduler().serverless is True


@pytest.mark.asyncio
async def test_configured_fallback_count_is_used(container):
    result = await container.rural_data_service().get_records("cahFacilities")

    assert result.provenance is Provenance.FALLBACK
    assert result.count == 7
    await container.http_client().aclose()
