"""Unit tests for the embedding store, vector resolver and backfill."""

import threading
from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest
import requests

from resume_matcher.clients import EmbeddingClient, ServiceClientError
from resume_matcher.embeddings import EmbeddingBackfill, EmbeddingStore, VectorResolver
from resume_matcher.matching import MatchCandidate, TextAssembler
from resume_matcher.persistence import (
    JobPostingRepository,
    PersistenceError,
    close_database,
    get_session,
    init_database,
)
from tests.helpers import FakeEmbeddingClient, make_posting, store_embedding

MODEL = "all-MiniLM-L6-v2"


@pytest.fixture
def temp_database():
    init_database("sqlite:///:memory:")
    with get_session() as session:
        repo = JobPostingRepository(session)
        for posting_id in (1, 2, 3):
            repo.upsert(make_posting(posting_id, title=f"Posting {posting_id}"))
    yield
    close_database()


@pytest.fixture
def client():
    return FakeEmbeddingClient(default=[0.5, 0.5])


@pytest.fixture
def store(temp_database, client):
    return EmbeddingStore(client, MODEL)


def as_candidate(posting):
    return MatchCandidate(
        job=posting,
        assembled_text=TextAssembler().assemble(posting),
        has_valid_description=True,
    )


class TestEmbeddingStore:
    """Tests for EmbeddingStore."""

    def test_recompute_embedding_persists_vector(self, store, client):
        embedding = store.recompute_embedding(1, "Posting 1 text")

        assert embedding.vector == [0.5, 0.5]
        assert embedding.model_version == MODEL
        assert client.calls == ["Posting 1 text"]
        assert store.get_embeddings([1])[1].vector == [0.5, 0.5]

    def test_recompute_embedding_rejects_blank_text(self, store, client):
        with pytest.raises(ValueError):
            store.recompute_embedding(1, "  ")

        assert client.calls == []

    def test_recompute_embedding_propagates_provider_errors(self, store):
        store.client = FakeEmbeddingClient(fail_on=["Posting"])

        with pytest.raises(ServiceClientError):
            store.recompute_embedding(1, "Posting 1 text")

        assert store.get_embeddings([1]) == {}

    def test_delete_embedding(self, store):
        store.recompute_embedding(2, "Posting 2 text")

        assert store.delete_embedding(2) is True
        assert store.delete_embedding(2) is False
        assert store.get_embeddings([2]) == {}

    def test_get_embeddings_missing_ids_are_absent(self, store):
        store_embedding(1, [1.0, 0.0])

        assert set(store.get_embeddings({1, 2, 3})) == {1}


class TestVectorResolver:
    """Tests for VectorResolver.resolve()."""

    def test_uses_fresh_stored_vectors(self, store, client):
        store_embedding(1, [1.0, 0.0])
        candidates = [as_candidate(make_posting(1, title="Posting 1"))]

        vectors = VectorResolver(store).resolve(candidates)

        assert vectors == {1: [1.0, 0.0]}
        assert client.calls == []

    def test_embeds_missing_vectors_on_the_fly(self, store, client):
        store_embedding(1, [1.0, 0.0])
        candidates = [as_candidate(make_posting(i, title=f"Posting {i}")) for i in (1, 2, 3)]

        vectors = VectorResolver(store, max_concurrency=2).resolve(candidates)

        assert vectors == {1: [1.0, 0.0], 2: [0.5, 0.5], 3: [0.5, 0.5]}
        assert len(client.calls) == 2

    def test_on_the_fly_vectors_are_not_persisted(self, store):
        VectorResolver(store).resolve([as_candidate(make_posting(2, title="Posting 2"))])

        assert store.get_embeddings([2]) == {}

    def test_other_model_version_is_stale(self, store, client):
        store_embedding(1, [1.0, 0.0], model_version="old-model")

        vectors = VectorResolver(store).resolve([as_candidate(make_posting(1, title="Posting 1"))])

        assert vectors == {1: [0.5, 0.5]}
        assert len(client.calls) == 1

    def test_vector_older_than_posting_is_stale(self, store, client):
        store_embedding(1, [1.0, 0.0], updated_at=datetime(2025, 11, 1, tzinfo=timezone.utc))

        vectors = VectorResolver(store).resolve([as_candidate(make_posting(1, title="Posting 1"))])

        assert vectors == {1: [0.5, 0.5]}

    def test_failed_embedding_skips_only_that_candidate(self, store):
        store.client = FakeEmbeddingClient(default=[0.5, 0.5], fail_on=["Posting 2"])
        candidates = [as_candidate(make_posting(i, title=f"Posting {i}")) for i in (1, 2, 3)]

        vectors = VectorResolver(store).resolve(candidates)

        assert set(vectors) == {1, 3}

    def test_oversized_vector_value_skips_only_that_candidate(self, store):
        def respond(method, url, json, timeout):
            response = Mock(status_code=200, reason="OK")
            value = 10**400 if "Posting 2" in json["text"] else 0.5
            response.json.return_value = {"embedding": [value, 0.5]}
            return response

        store.client = EmbeddingClient("http://ml.local:8000")
        candidates = [as_candidate(make_posting(i, title=f"Posting {i}")) for i in (1, 2, 3)]

        with patch.object(requests.Session, "request", side_effect=respond):
            vectors = VectorResolver(store).resolve(candidates)

        assert vectors == {1: [0.5, 0.5], 3: [0.5, 0.5]}

    def test_storage_errors_propagate(self, store):
        with patch.object(store, "get_embeddings", side_effect=PersistenceError("db down")):
            with pytest.raises(PersistenceError):
                VectorResolver(store).resolve([as_candidate(make_posting(1))])


class TestEmbeddingBackfill:
    """Tests for EmbeddingBackfill.run_once()."""

    def test_embeds_missing_and_stale_postings(self, store, client):
        store_embedding(1, [1.0, 0.0])
        store_embedding(2, [1.0, 0.0], model_version="old-model")

        result = EmbeddingBackfill(store).run_once()

        assert result.scanned == 3
        assert result.pending == 2
        assert result.embedded == 2
        assert result.failed == 0
        assert not result.had_errors
        embeddings = store.get_embeddings([1, 2, 3])
        assert embeddings[1].vector == [1.0, 0.0]
        assert embeddings[2].model_version == MODEL
        assert 3 in embeddings

    def test_second_run_has_nothing_to_do(self, store, client):
        backfill = EmbeddingBackfill(store)
        backfill.run_once()

        result = backfill.run_once()

        assert result.pending == 0
        assert result.embedded == 0

    def test_batch_size_bounds_each_run(self, store):
        result = EmbeddingBackfill(store, batch_size=2).run_once()

        assert result.pending == 3
        assert result.embedded == 2
        assert len(store.get_embeddings([1, 2, 3])) == 2

    def test_failures_are_counted(self, store):
        store.client = FakeEmbeddingClient(default=[0.5, 0.5], fail_on=["Posting 2"])

        result = EmbeddingBackfill(store).run_once()

        assert result.embedded == 2
        assert result.failed == 1
        assert result.had_errors

    def test_storage_failure_is_reported(self, store):
        backfill = EmbeddingBackfill(store)

        with patch.object(backfill, "_list_postings", side_effect=PersistenceError("db down")):
            result = backfill.run_once()

        assert result.error_message == "db down"
        assert result.had_errors

    def test_overlapping_run_is_skipped(self, store):
        backfill = EmbeddingBackfill(store)
        started = threading.Event()
        release = threading.Event()
        original = backfill._list_postings

        def slow_list():
            started.set()
            release.wait(timeout=5)
            return original()

        with patch.object(backfill, "_list_postings", side_effect=slow_list):
            worker = threading.Thread(target=backfill.run_once)
            worker.start()
            started.wait(timeout=5)

            second = backfill.run_once()

            release.set()
            worker.join(timeout=5)

        assert second.skipped is True
