"""
Root pytest configuration for backend tests.

Provides:
- Shared fixtures (service_conf, app, client)
- The schema cache reset between tests
"""

import sys
from pathlib import Path

# Add backend directory to Python path so imports like
# `from api.contracts import ...` and `from config import ...` work
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

import pytest


@pytest.fixture(autouse=True)
def _contract_env(monkeypatch):
    """Keep validation/response modes independent of the developer's shell."""
    monkeypatch.delenv("CONTRACT_VALIDATION_POLICY", raising=False)
    monkeypatch.delenv("CONTRACT_MODE", raising=False)


@pytest.fixture
def service_conf():
    """Service configuration used by the app fixture."""
    from config import ServiceConf

    return ServiceConf(
        service_name="routeguide",
        version="v1",
        description="Route guide demo",
        listen_addr=":8080",
        debug_on=True,
    )


@pytest.fixture
def app(service_conf):
    """Create test Flask application serving the bundled API sets."""
    from app import create_app

    app = create_app(conf=service_conf)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()
