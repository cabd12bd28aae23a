"""
Pytest configuration & fixtures for PetCheck backend tests.

Key design decisions:
  - Uses sqlite:///:memory: for speed and isolation.
  - Swaps the SQL cache for an InMemoryCacheStore so tests never share
    cached openFDA responses or interaction results.
  - The openFDA client gets a mocked requests session; no test touches
    the network.
  - Disables the background scheduler and request spacing.
"""

import os
import sys
from unittest import mock

import pytest

# ── 1. Ensure backend package is importable ──
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# ── 2. Set test environment BEFORE anything else ──
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["FLASK_SECRET_KEY"] = "test-secret-key"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["APP_ENV"] = "testing"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["OPENFDA_DELAY"] = "0"
os.environ["OPENFDA_API_KEY"] = ""

# ── 3. NOW safe to import application modules ──
from petcheck.main import create_app
from petcheck.database import db as _db
from petcheck.services.cache_service import InMemoryCacheStore
from petcheck.services.container import build_services
from petcheck.services.interactions.base_source import InteractionDataSource
from petcheck.services.openfda.client import OpenFDAClient


# ═══════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════

class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


def openfda_payload(results, total=None, skip=0, limit=20):
    return {
        "meta": {"results": {"skip": skip, "limit": limit, "total": len(results) if total is None else total}},
        "results": results,
    }


class RecordingSource(InteractionDataSource):
    """Interaction source that records calls and returns canned records."""

    def __init__(self, drug_drug=None, species=None, condition=None):
        self.drug_drug = drug_drug or {}
        self.species = species or {}
        self.condition = condition or {}
        self.calls = []

    @property
    def source_name(self):
        return "recording"

    def lookup_drug_drug(self, name_a, name_b):
        self.calls.append(("drug_drug", name_a, name_b))
        return list(self.drug_drug.get(frozenset((name_a, name_b)), []))

    def lookup_species(self, name, species):
        self.calls.append(("species", name, species))
        return list(self.species.get(name, []))

    def lookup_condition(self, name, condition, species=None):
        self.calls.append(("condition", name, condition))
        return list(self.condition.get((name, condition), []))


class FailingSource(RecordingSource):
    """Raises for the categories named in ``failing``."""

    def __init__(self, failing, **kwargs):
        super().__init__(**kwargs)
        self.failing = set(failing)

    def lookup_drug_drug(self, name_a, name_b):
        if "drug_drug" in self.failing:
            raise RuntimeError("drug-drug backend down")
        return super().lookup_drug_drug(name_a, name_b)

    def lookup_species(self, name, species):
        if "species" in self.failing:
            raise RuntimeError("species backend down")
        return super().lookup_species(name, species)

    def lookup_condition(self, name, condition, species=None):
        if "condition" in self.failing:
            raise RuntimeError("condition backend down")
        return super().lookup_condition(name, condition, species)


# ═══════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════

@pytest.fixture(scope="session")
def fda_session():
    """Mocked requests.Session shared by the app's openFDA client."""
    return mock.MagicMock()


@pytest.fixture(scope="session")
def services(fda_session):
    cache = InMemoryCacheStore()
    client = OpenFDAClient(base_url="https://api.fda.gov", api_key="", delay=0,
                           cache=cache, session=fda_session)
    return build_services(cache=cache, openfda_client=client)


@pytest.fixture(scope="session")
def app(services):
    """Create application for testing."""
    application = create_app(services)
    application.config["TESTING"] = True
    return application


@pytest.fixture(autouse=True)
def _reset_state(services, fda_session):
    services.cache.clear()
    fda_session.reset_mock(return_value=True, side_effect=True)
    fda_session.get.return_value = FakeResponse(200, openfda_payload([]))
    yield


@pytest.fixture
def client(app):
    """Flask test client with database ready."""
    with app.test_client() as c:
        with app.app_context():
            yield c
            _db.session.remove()
