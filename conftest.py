import sys
from pathlib import Path

import pytest

# ==============================================================================
# CRITICAL INFRASTRUCTURE FILE - DO NOT DELETE
# ==============================================================================
# Puts 'src' on sys.path before test collection so the common, dal and
# inventory_api packages import without an editable install.
# ==============================================================================

if sys.version_info < (3, 10):
    print(
        f"ERROR: This project requires Python 3.10+ (found {sys.version.split()[0]}).",
        file=sys.stderr,
    )
    sys.exit(1)


ROOT_DIR = Path(__file__).parent.absolute()
src_dir = ROOT_DIR / "src"

if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))


_BACKEND_ENV_VARS = (
    "DEMO_MODE",
    "MSSQL_SERVER",
    "ORACLE_USER",
    "SDWIS_SCHEMA",
    "SDWIS_ST_CODE",
    "QUERY_TIMEOUT_SECONDS",
    "DAL_TRACE_QUERIES",
    "OTEL_EXPORTER_OTLP_ENDPOINT",
)


@pytest.fixture(autouse=True)
def _isolated_backend_env(monkeypatch):
    """Start every test from postgres selection with no tracing or schema overrides."""
    for name in _BACKEND_ENV_VARS:
        monkeypatch.delenv(name, raising=False)

