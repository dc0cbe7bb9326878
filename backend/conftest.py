"""Root conftest: test environment, structlog routing and isolated data paths."""

from pathlib import Path

import pytest
import structlog
from dotenv import load_dotenv

from shared.logging import _serialize_enums

load_dotenv(Path(__file__).resolve().parent.parent / ".env.tests")

# Same processor chain as setup_logging, but rendered by stdlib so caplog
# sees session and server events.
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        _serialize_enums,
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.render_to_log_kwargs,
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=False,
)


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Prevent context leaking between tests."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


@pytest.fixture(autouse=True)
def _isolated_data_paths(tmp_path, monkeypatch):
    """Point every TRACKER_ path setting into the test's tmp directory."""
    monkeypatch.setenv("TRACKER_DATA_DIR", str(tmp_path / "sessions"))
    monkeypatch.setenv("TRACKER_RESULTS_PATH", str(tmp_path / "results.json"))
    monkeypatch.setenv("TRACKER_LOG_DIR", str(tmp_path / "logs"))
