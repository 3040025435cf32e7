"""
Grading Credential Store Tests.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import PyMongoError

from mock_interview.core.errors import RemoteError
from mock_interview.providers.credentials import (
    InMemoryCredentialStore,
    MongoCredentialStore,
    create_credential_store,
)
from mock_interview.providers.grading.base import GradingCredentials, GradingProvider


class TestInMemoryCredentialStore:
    """Tests for InMemoryCredentialStore."""

    @pytest.fixture
    def store(self):
        return InMemoryCredentialStore()

    @pytest.mark.asyncio
    async def test_empty_for_unknown_user(self, store):
        assert await store.get_credentials("nobody") == GradingCredentials()
        assert await store.has_any("nobody") is False

    @pytest.mark.asyncio
    async def test_set_and_get_key(self, store):
        updated = await store.set_key("user-1", "openai", "sk-1")

        assert updated.openai_api_key == "sk-1"
        credentials = await store.get_credentials("user-1")
        assert credentials.for_provider(GradingProvider.OPENAI) == "sk-1"
        assert credentials.perplexity_api_key is None
        assert await store.has_any("user-1") is True

    @pytest.mark.asyncio
    async def test_keys_are_independent_per_provider(self, store):
        await store.set_key("user-1", GradingProvider.OPENAI, "sk-1")
        await store.set_key("user-1", GradingProvider.PERPLEXITY, "pplx-1")

        credentials = await store.get_credentials("user-1")
        assert credentials.configured_providers == [GradingProvider.OPENAI, GradingProvider.PERPLEXITY]

    @pytest.mark.asyncio
    async def test_empty_key_removes_it(self, store):
        await store.set_key("user-1", "openai", "sk-1")

        updated = await store.set_key("user-1", "openai", "")

        assert updated.openai_api_key is None

    @pytest.mark.asyncio
    async def test_returned_credentials_are_copies(self, store):
        await store.set_key("user-1", "openai", "sk-1")
        credentials = await store.get_credentials("user-1")

        credentials.openai_api_key = "tampered"

        assert (await store.get_credentials("user-1")).openai_api_key == "sk-1"

    @pytest.mark.asyncio
    async def test_clear(self, store):
        await store.set_key("user-1", "openai", "sk-1")

        await store.clear("user-1")

        assert await store.has_any("user-1") is False

    @pytest.mark.asyncio
    async def test_unknown_provider(self, store):
        with pytest.raises(ValueError):
            await store.set_key("user-1", "anthropic", "key")


class TestMongoCredentialStore:
    """Tests for MongoCredentialStore with a mocked Motor collection."""

    @pytest.fixture
    def collection(self):
        collection = MagicMock()
        collection.find_one = AsyncMock(return_value=None)
        collection.find_one_and_update = AsyncMock()
        collection.delete_one = AsyncMock()
        return collection

    @pytest.fixture
    def store(self, collection):
        return MongoCredentialStore(collection)

    @pytest.mark.asyncio
    async def test_get_credentials_from_document(self, store, collection):
        collection.find_one.return_value = {"user_id": "user-1", "perplexity_api_key": "pplx-1"}

        credentials = await store.get_credentials("user-1")

        assert credentials == GradingCredentials(perplexity_api_key="pplx-1")
        collection.find_one.assert_awaited_once_with({"user_id": "user-1"})

    @pytest.mark.asyncio
    async def test_get_credentials_missing_document(self, store):
        assert await store.get_credentials("user-1") == GradingCredentials()

    @pytest.mark.asyncio
    async def test_set_key_upserts_field(self, store, collection):
        collection.find_one_and_update.return_value = {"user_id": "user-1", "openai_api_key": "sk-1"}

        updated = await store.set_key("user-1", "openai", "sk-1")

        assert updated.openai_api_key == "sk-1"
        args, kwargs = collection.find_one_and_update.call_args
        assert args == ({"user_id": "user-1"}, {"$set": {"openai_api_key": "sk-1"}})
        assert kwargs["upsert"] is True

    @pytest.mark.asyncio
    async def test_set_empty_key_unsets_field(self, store, collection):
        collection.find_one_and_update.return_value = {"user_id": "user-1"}

        updated = await store.set_key("user-1", "perplexity", None)

        assert updated == GradingCredentials()
        assert collection.find_one_and_update.call_args.args[1] == {"$unset": {"perplexity_api_key": ""}}

    @pytest.mark.asyncio
    async def test_clear_deletes_document(self, store, collection):
        await store.clear("user-1")

        collection.delete_one.assert_awaited_once_with({"user_id": "user-1"})

    @pytest.mark.asyncio
    async def test_driver_errors_become_remote_errors(self, store, collection):
        collection.find_one.side_effect = PyMongoError("timeout")

        with pytest.raises(RemoteError):
            await store.get_credentials("user-1")


class TestCreateCredentialStore:
    """Tests for backend selection."""

    def test_memory_backend(self, settings):
        assert isinstance(create_credential_store(settings), InMemoryCredentialStore)

    def test_mongodb_backend(self, settings):
        settings.credential_store_backend = "mongodb"
        mongodb = MagicMock()

        store = create_credential_store(settings, mongodb)

        assert isinstance(store, MongoCredentialStore)
        assert store.collection is mongodb.grading_credentials
