"""
Initializes the Dynaconf settings object for the rural_data component.
This module is the single source of truth for all configuration.

Any value can be overridden from the environment with the RURAL_DATA_
prefix, e.g. RURAL_DATA_PATHS__BASE_DIR=/tmp for serverless deployments.
"""

from pathlib import Path

from dynaconf import Dynaconf

PROJECT_ROOT = Path(__file__).parent.parent

settings = Dynaconf(
    root_path=PROJECT_ROOT,
    settings_files=["config/settings.toml"],
    secrets=["config/.secrets.toml"],
    envvar_prefix="RURAL_DATA",
    merge_enabled=True,
)
