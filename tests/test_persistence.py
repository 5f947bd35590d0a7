"""Unit tests for persistence layer."""

import json
from datetime import datetime, timezone

import pytest
from sqlalchemy import text

from resume_matcher.domain.models import JobPostingEmbedding, JobPostingStatus
from resume_matcher.persistence import (
    DatabaseConnectionError,
    DataIntegrityError,
    EmbeddingRepository,
    JobPostingRepository,
    close_database,
    get_engine,
    get_session,
    init_database,
)
from resume_matcher.persistence.database import _redact_url
from resume_matcher.persistence.schema import JobPostingEmbeddingModel
from tests.helpers import load_fixture_postings, make_posting


def seed_fixture_postings():
    with get_session() as session:
        repo = JobPostingRepository(session)
        for posting in load_fixture_postings():
            repo.upsert(posting)


class TestDatabaseInitialization:
    """Tests for database initialization."""

    def test_init_database_creates_parent_directories(self, tmp_path):
        """Test initialization creates parent directories if missing."""
        db_file = tmp_path / "subdir" / "nested" / "matcher.db"

        init_database(f"sqlite:///{db_file}")

        assert db_file.exists()
        close_database()

    def test_init_database_invalid_url_raises_error(self):
        with pytest.raises(DatabaseConnectionError):
            init_database("")

        with pytest.raises(DatabaseConnectionError):
            init_database(None)

    def test_schema_creation_is_idempotent(self, tmp_path):
        db_url = f"sqlite:///{tmp_path / 'matcher.db'}"

        init_database(db_url)
        init_database(db_url)

        with get_session() as session:
            result = session.execute(text("SELECT name FROM sqlite_master WHERE type='table'"))
            tables = {row[0] for row in result.fetchall()}

        assert {
            "employers",
            "categories",
            "job_postings",
            "job_posting_categories",
            "job_posting_embeddings",
        } <= tables
        close_database()

    def test_get_session_without_init_raises_error(self):
        close_database()

        with pytest.raises(DatabaseConnectionError, match="Database not initialized"):
            with get_session():
                pass

    def test_get_engine_without_init_raises_error(self):
        close_database()

        with pytest.raises(DatabaseConnectionError):
            get_engine()

    def test_redact_url_hides_password(self):
        assert _redact_url("postgresql://matcher:secret@db:5432/jobs") == (
            "postgresql://matcher:***@db:5432/jobs"
        )
        assert _redact_url("sqlite:///./data/resume_matcher.db") == (
            "sqlite:///./data/resume_matcher.db"
        )


class TestSessionManagement:
    """Tests for session management."""

    @pytest.fixture(autouse=True)
    def setup_database(self):
        init_database("sqlite:///:memory:")
        yield
        close_database()

    def test_session_commits_on_success(self):
        with get_session() as session:
            JobPostingRepository(session).upsert(make_posting(1))

        with get_session() as session:
            assert JobPostingRepository(session).get_by_id(1) is not None

    def test_session_rolls_back_on_exception(self):
        with pytest.raises(ValueError):
            with get_session() as session:
                JobPostingRepository(session).upsert(make_posting(1))
                raise ValueError("Test exception")

        with get_session() as session:
            assert JobPostingRepository(session).get_by_id(1) is None


class TestJobPostingRepository:
    """Tests for JobPostingRepository."""

    @pytest.fixture(autouse=True)
    def setup_database(self):
        init_database("sqlite:///:memory:")
        seed_fixture_postings()
        yield
        close_database()

    def list_ids(self, **filters):
        with get_session() as session:
            return [p.id for p in JobPostingRepository(session).list_active(**filters)]

    def test_list_active_excludes_inactive_postings(self):
        assert self.list_ids() == [1, 2, 3, 5]

    def test_location_is_case_insensitive_substring(self):
        assert self.list_ids(location="HO CHI MINH") == [1, 3, 5]

    def test_experience_is_case_insensitive_substring(self):
        assert self.list_ids(experience="3") == [3, 5]

    def test_salary_bounds(self):
        assert self.list_ids(min_salary=20_000_000) == [1, 5]
        assert self.list_ids(max_salary=30_000_000) == [2, 3]
        assert self.list_ids(min_salary=18_000_000, max_salary=35_000_000) == [1, 3]

    def test_filters_are_and_combined(self):
        assert self.list_ids(location="ho chi minh", experience="2 years") == [1]
        assert self.list_ids(location="ha noi", min_salary=30_000_000) == []

    def test_like_wildcards_are_literal(self):
        assert self.list_ids(location="%") == []

    def test_get_posting_ids_for_category(self):
        with get_session() as session:
            repo = JobPostingRepository(session)
            assert repo.get_posting_ids_for_category(3) == [1, 3, 5]
            assert repo.get_posting_ids_for_category(5) == [2, 5]
            assert repo.get_posting_ids_for_category(99) == []

    def test_get_by_id_returns_relations(self):
        with get_session() as session:
            posting = JobPostingRepository(session).get_by_id(5)

        assert posting.title == "Machine Learning Engineer"
        assert [c.id for c in posting.categories] == [3, 5]
        assert posting.employer.name == "Model Works"
        assert posting.updated_at == datetime(2025, 12, 1, 9, 0, tzinfo=timezone.utc)

    def test_get_by_id_returns_inactive_postings(self):
        with get_session() as session:
            posting = JobPostingRepository(session).get_by_id(4)

        assert posting.status == JobPostingStatus.INACTIVE

    def test_get_by_id_missing_returns_none(self):
        with get_session() as session:
            assert JobPostingRepository(session).get_by_id(404) is None

    def test_upsert_updates_existing_posting(self):
        with get_session() as session:
            JobPostingRepository(session).upsert(
                make_posting(2, title="Senior Data Analyst", status=JobPostingStatus.RETIRED)
            )

        with get_session() as session:
            posting = JobPostingRepository(session).get_by_id(2)

        assert posting.title == "Senior Data Analyst"
        assert posting.categories == []
        assert 2 not in self.list_ids()


class TestEmbeddingRepository:
    """Tests for EmbeddingRepository."""

    @pytest.fixture(autouse=True)
    def setup_database(self):
        init_database("sqlite:///:memory:")
        seed_fixture_postings()
        yield
        close_database()

    def make_embedding(self, posting_id, vector=None, model_version="all-MiniLM-L6-v2"):
        return JobPostingEmbedding(
            job_posting_id=posting_id,
            vector=vector or [0.1, 0.2, 0.3],
            model_version=model_version,
            updated_at=datetime(2025, 12, 2, tzinfo=timezone.utc),
        )

    def test_get_embeddings_returns_only_stored_ids(self):
        with get_session() as session:
            repo = EmbeddingRepository(session)
            repo.upsert(self.make_embedding(1))
            repo.upsert(self.make_embedding(2, vector=[1.0, 0.0]))

        with get_session() as session:
            embeddings = EmbeddingRepository(session).get_embeddings({1, 2, 3})

        assert set(embeddings) == {1, 2}
        assert embeddings[2].vector == [1.0, 0.0]
        assert embeddings[1].model_version == "all-MiniLM-L6-v2"

    def test_get_embeddings_with_no_ids(self):
        with get_session() as session:
            assert EmbeddingRepository(session).get_embeddings([]) == {}

    def test_upsert_replaces_existing_vector(self):
        with get_session() as session:
            repo = EmbeddingRepository(session)
            repo.upsert(self.make_embedding(1))
            repo.upsert(self.make_embedding(1, vector=[9.0], model_version="v2"))

        with get_session() as session:
            embedding = EmbeddingRepository(session).get_embeddings([1])[1]

        assert embedding.vector == [9.0]
        assert embedding.model_version == "v2"

    def test_upsert_for_unknown_posting_raises_integrity_error(self):
        with pytest.raises(DataIntegrityError):
            with get_session() as session:
                EmbeddingRepository(session).upsert(self.make_embedding(404))

    def test_corrupt_vector_is_treated_as_missing(self):
        with get_session() as session:
            session.add(
                JobPostingEmbeddingModel(
                    job_posting_id=1,
                    vector="not json",
                    model_version="all-MiniLM-L6-v2",
                    updated_at="2025-12-02T00:00:00.000000Z",
                )
            )
            session.add(
                JobPostingEmbeddingModel(
                    job_posting_id=2,
                    vector=json.dumps([0.5, 0.5]),
                    model_version="all-MiniLM-L6-v2",
                    updated_at="2025-12-02T00:00:00.000000Z",
                )
            )

        with get_session() as session:
            embeddings = EmbeddingRepository(session).get_embeddings([1, 2])

        assert set(embeddings) == {2}

    def test_delete(self):
        with get_session() as session:
            EmbeddingRepository(session).upsert(self.make_embedding(1))

        with get_session() as session:
            repo = EmbeddingRepository(session)
            assert repo.delete(1) is True
            assert repo.delete(1) is False
            assert repo.get_embeddings([1]) == {}
