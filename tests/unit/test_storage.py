"""
Tests for the storage backends.
"""

import pytest

from storage.models import AnalysisRecord, User
from storage.repository import (
    DuplicateUserError,
    InMemoryStorage,
    StorageError,
    SupabaseStorage,
    create_storage,
)

@pytest.fixture
def store():
    return InMemoryStorage()

class TestUsers:

    def test_create_and_lookup(self, store):
        user = store.create_user("Ada@Example.com ", "Ada", "hash")

        assert user.id == 1
        assert user.email == "ada@example.com"
        assert store.get_user(1) == user
        assert store.get_user_by_email("ADA@example.com") == user

    def test_duplicate_email(self, store):
        store.create_user("ada@example.com", "Ada", "hash")
        with pytest.raises(DuplicateUserError):
            store.create_user("ADA@example.com", "Other", "hash")

    def test_public_excludes_password_hash(self, store):
        user = store.create_user("ada@example.com", "Ada", "secret-hash")
        public = user.public()

        assert "password_hash" not in public
        assert "secret-hash" not in str(public)

    def test_update_ignores_none(self, store):
        user = store.create_user("ada@example.com", "Ada", "hash")
        updated = store.update_user(user.id, name=None, skin_tone="Tan")

        assert updated.name == "Ada"
        assert updated.skin_tone == "Tan"
        assert store.update_user(999, name="x") is None

class TestAnalyses:

    def test_list_newest_first_and_scoped(self, store):
        first = store.create_analysis(1, skin_type="Dry", skin_tone="Fair")
        second = store.create_analysis(1, skin_type="Oily", skin_tone="Tan")
        store.create_analysis(2, skin_type="Normal")

        listed = store.list_analyses(1)

        assert [a.id for a in listed] == [second.id, first.id]
        assert store.get_analysis(first.id).skin_tone == "Fair"
        assert store.get_analysis(404) is None

    def test_payload_round_trip(self, store):
        record = store.create_analysis(
            1,
            skin_type="Dry",
            skin_tone="Light",
            undertone="Cool",
            concerns=["Dryness"],
            recommendations=[{"category": "serum", "productType": "Serum"}],
            foundation_shades=["Porcelain"],
        )
        payload = record.to_analysis_payload()

        assert payload["skinTone"] == "Light"
        assert payload["foundationShades"] == ["Porcelain"]
        assert payload["recommendations"][0]["productType"] == "Serum"

class TestSavedProducts:

    def test_add_is_idempotent(self, store):
        first = store.add_user_product(1, 101)
        second = store.add_user_product(1, 101, is_favorite=True)

        assert first.id == second.id
        assert len(store.list_user_products(1)) == 1

    def test_toggle_favorite(self, store):
        assert store.toggle_favorite(1, 101).is_favorite is True
        assert store.toggle_favorite(1, 101).is_favorite is False
        assert store.toggle_favorite(1, 101).is_favorite is True

    def test_set_favorite_requires_saved_product(self, store):
        with pytest.raises(StorageError):
            store.set_favorite(1, 101, True)

    def test_remove(self, store):
        store.add_user_product(1, 101)

        assert store.remove_user_product(1, 101) is True
        assert store.remove_user_product(1, 101) is False
        assert store.list_user_products(1) == []

class TestSupabaseStorage:

    def test_get_user(self, mock_supabase_client):
        query = mock_supabase_client.table.return_value.select.return_value.eq.return_value.limit.return_value
        query.execute.return_value.data = [
            {"id": 3, "email": "ada@example.com", "name": "Ada", "password_hash": "h"}
        ]

        user = SupabaseStorage(client=mock_supabase_client).get_user(3)

        assert isinstance(user, User)
        assert user.id == 3
        mock_supabase_client.table.assert_called_with("users")

    def test_create_analysis(self, mock_supabase_client):
        mock_supabase_client.table.return_value.insert.return_value.execute.return_value.data = [
            {"id": 9, "user_id": 3, "skin_type": "Dry"}
        ]

        record = SupabaseStorage(client=mock_supabase_client).create_analysis(3, skin_type="Dry")

        assert isinstance(record, AnalysisRecord)
        assert record.id == 9
        row = mock_supabase_client.table.return_value.insert.call_args.args[0]
        assert row["user_id"] == 3
        assert "created_at" in row

    def test_query_errors_become_storage_errors(self, mock_supabase_client):
        mock_supabase_client.table.return_value.select.return_value.eq.return_value \
            .limit.return_value.execute.side_effect = RuntimeError("boom")

        with pytest.raises(StorageError):
            SupabaseStorage(client=mock_supabase_client).get_user(1)

    def test_health_check(self, mock_supabase_client):
        assert SupabaseStorage(client=mock_supabase_client).health_check() is True

        mock_supabase_client.table.side_effect = RuntimeError("down")
        assert SupabaseStorage(client=mock_supabase_client).health_check() is False

class TestCreateStorage:

    def test_memory_backend(self):
        assert isinstance(create_storage(), InMemoryStorage)

    def test_supabase_backend(self, monkeypatch):
        from config.settings import get_settings

        monkeypatch.setenv("STORAGE_BACKEND", "supabase")
        get_settings.cache_clear()

        assert isinstance(create_storage(), SupabaseStorage)

    def test_auto_without_credentials(self, monkeypatch):
        from config.settings import get_settings

        monkeypatch.setenv("STORAGE_BACKEND", "auto")
        monkeypatch.setenv("SUPABASE_URL", "")
        get_settings.cache_clear()

        assert isinstance(create_storage(), InMemoryStorage)

class TestSupabaseClient:

    def test_requires_configuration(self, mock_supabase, monkeypatch):
        from config.database import SupabaseClientError, get_supabase_client, get_supabase_client_optional
        from config.settings import get_settings

        monkeypatch.setenv("SUPABASE_URL", "")
        get_settings.cache_clear()

        with pytest.raises(SupabaseClientError):
            get_supabase_client()
        assert get_supabase_client_optional() is None

    def test_client_is_cached(self, mock_supabase, monkeypatch):
        from config.database import get_supabase_client
        from config.settings import get_settings

        monkeypatch.setenv("SUPABASE_URL", "https://test.supabase.co")
        monkeypatch.setenv("SUPABASE_SERVICE_KEY", "service-key")
        get_settings.cache_clear()

        assert get_supabase_client() is mock_supabase
        assert get_supabase_client() is mock_supabase
