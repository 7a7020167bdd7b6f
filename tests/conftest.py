"""
Pytest configuration and shared fixtures for the beauty advisor tests.
"""
import base64
import io
import os
import sys
from typing import Generator
from unittest.mock import MagicMock, patch

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), "src"))

# Load environment variables
from dotenv import load_dotenv
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(__file__)), ".env"))

# Tests never talk to real services; these win over anything in .env
os.environ["JWT_SECRET"] = "test-secret-key-with-enough-length-0123"
os.environ["ENVIRONMENT"] = "testing"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["CATALOG_SOURCE"] = "file"
os.environ["OPENAI_API_KEY"] = ""
os.environ["FIREBASE_PROJECT_ID"] = ""


# ============================================================================
# Singleton reset
# ============================================================================

@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Every test starts with fresh settings, storage and lookup tables."""
    from analysis.client import reset_vision_analyzer
    from catalog.store import reset_catalog
    from config.settings import get_settings
    from core.auth import revoked_tokens
    from integrations.identity import reset_identity_verifier
    from storage.repository import reset_storage
    from tutorials.resolver import reset_tutorial_resolver

    get_settings.cache_clear()
    reset_storage()
    reset_catalog()
    reset_tutorial_resolver()
    reset_vision_analyzer()
    reset_identity_verifier()
    revoked_tokens.clear()
    yield
    get_settings.cache_clear()


# ============================================================================
# Fixtures: Test Data Factories
# ============================================================================

@pytest.fixture
def sample_product_records() -> list[dict]:
    """Small catalog: one Medium/Neutral foundation and three mismatched ones."""
    return [
        {
            "id": 1,
            "name": "Satin Glow Foundation - Fair Cool",
            "brand": "TestBrand",
            "category": "Foundation",
            "price": "$30.00",
            "shade_family": "Fair",
            "undertone": "Cool",
        },
        {
            "id": 2,
            "name": "Satin Glow Foundation - Deep Warm",
            "brand": "TestBrand",
            "category": "Foundation",
            "price": "$30.00",
            "shade_family": "Deep",
            "undertone": "Warm",
        },
        {
            "id": 3,
            "name": "Satin Glow Foundation - Medium Neutral",
            "brand": "TestBrand",
            "category": "Foundation",
            "price": "$30.00",
            "shade_family": "Medium",
            "undertone": "Neutral",
        },
        {
            "id": 4,
            "name": "Satin Glow Foundation - Tan Cool",
            "brand": "TestBrand",
            "category": "Foundation",
            "price": "$30.00",
            "shade_family": "Tan",
            "undertone": "Cool",
        },
    ]


@pytest.fixture
def sample_catalog(sample_product_records):
    from catalog.store import CatalogStore
    return CatalogStore.from_records(sample_product_records)


@pytest.fixture
def bundled_catalog():
    """The catalog shipped with the package."""
    from catalog.store import CatalogStore
    from config.settings import get_settings
    return CatalogStore.from_file(get_settings().catalog_file)


def make_image_b64(fmt: str = "PNG", size: tuple = (8, 8)) -> str:
    """A tiny solid-color image encoded as base64."""
    from PIL import Image

    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 160, 130)).save(buffer, format=fmt)
    return base64.b64encode(buffer.getvalue()).decode("ascii")


@pytest.fixture
def png_b64() -> str:
    return make_image_b64("PNG")


@pytest.fixture
def jpeg_b64() -> str:
    return make_image_b64("JPEG")


SAMPLE_ANALYSIS_TEXT = (
    "Skin Tone: Medium\n"
    "Undertone: Neutral\n"
    "Skin Type: Combination\n"
    "Suggested Foundation: Luminous Silk in 4 Medium\n"
)


@pytest.fixture
def sample_analysis_text() -> str:
    return SAMPLE_ANALYSIS_TEXT


# ============================================================================
# Fixtures: Mock Services
# ============================================================================

@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client for unit tests."""
    mock_client = MagicMock()

    # Mock table operations
    mock_client.table.return_value.select.return_value.execute.return_value.data = []
    mock_client.table.return_value.insert.return_value.execute.return_value.data = [{"id": 1}]
    mock_client.table.return_value.upsert.return_value.execute.return_value.data = [{"id": 1}]

    return mock_client


@pytest.fixture
def mock_supabase(mock_supabase_client):
    """Patch Supabase client creation."""
    from config.database import get_supabase_client

    get_supabase_client.cache_clear()
    with patch("config.database.create_client", return_value=mock_supabase_client):
        yield mock_supabase_client
    get_supabase_client.cache_clear()


@pytest.fixture
def mock_analyzer(sample_analysis_text):
    """Vision analyzer that returns canned text without calling OpenAI."""
    analyzer = MagicMock()
    analyzer.enabled = True
    analyzer.analyze.return_value = sample_analysis_text
    return analyzer


@pytest.fixture
def always_live_checker():
    checker = MagicMock()
    checker.is_available.return_value = True
    checker.check_many.side_effect = lambda refs: {r: True for r in refs}
    return checker


@pytest.fixture
def tutorial_resolver(always_live_checker):
    from config.settings import get_settings
    from tutorials.resolver import TutorialResolver, TutorialTables

    tables = TutorialTables.from_file(get_settings().tutorials_file)
    return TutorialResolver(tables, checker=always_live_checker)


# ============================================================================
# Fixtures: FastAPI Test Client
# ============================================================================

@pytest.fixture
def storage():
    from storage.repository import InMemoryStorage
    return InMemoryStorage()


@pytest.fixture
def app(storage, mock_analyzer, tutorial_resolver):
    """FastAPI application with external services replaced."""
    from api.app import create_app
    from api.dependencies import analyzer_dep, storage_dep, tutorials_dep

    application = create_app()
    application.dependency_overrides[storage_dep] = lambda: storage
    application.dependency_overrides[analyzer_dep] = lambda: mock_analyzer
    application.dependency_overrides[tutorials_dep] = lambda: tutorial_resolver
    return application


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    with TestClient(app) as test_client:
        yield test_client


# ============================================================================
# Auth helpers
# ============================================================================

def register_user(client, email: str = "ada@example.com", password: str = "secret-pass", name: str = "Ada") -> dict:
    resp = client.post("/api/register", json={"email": email, "password": password, "name": name})
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def auth_headers(client) -> dict:
    """Bearer headers for a freshly registered user."""
    session = register_user(client)
    return {"Authorization": f"Bearer {session['token']}"}


# ============================================================================
# Markers
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "supabase: marks tests that require Supabase")


def pytest_collection_modifyitems(config, items):
    """Auto-skip Supabase tests when no credentials are configured."""
    skip_supabase = pytest.mark.skip(reason="Supabase tests require credentials")
    supabase_url = os.getenv("SUPABASE_URL")

    for item in items:
        if "supabase" in item.keywords and not supabase_url:
            item.add_marker(skip_supabase)
