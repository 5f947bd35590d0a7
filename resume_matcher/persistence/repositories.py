"""Data access layer (repositories) for persistence operations.

This module provides repository classes for the job-posting store (read by
the rule filter) and the embedding store. Repositories encapsulate database
operations and return domain models rather than ORM models.
"""

import json
import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from resume_matcher.domain.models import (
    JobPostingEmbedding,
    JobPostingRecord,
    JobPostingStatus,
)
from resume_matcher.utils.timestamps import format_timestamp

from .exceptions import DataIntegrityError, PersistenceError
from .schema import (
    CategoryModel,
    EmployerModel,
    JobPostingEmbeddingModel,
    JobPostingModel,
    job_posting_categories,
)

logger = logging.getLogger(__name__)


def _like_pattern(value: str) -> str:
    escaped = value.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class JobPostingRepository:
    """Repository for job-posting reads (and writes used by the owning service)."""

    def __init__(self, session: Session):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def list_active(
        self,
        location: Optional[str] = None,
        min_salary: Optional[float] = None,
        max_salary: Optional[float] = None,
        experience: Optional[str] = None,
    ) -> List[JobPostingRecord]:
        """Query active postings satisfying every supplied predicate.

        Location and experience are case-insensitive substring matches;
        ``min_salary`` bounds the posting's lower salary from below and
        ``max_salary`` bounds its upper salary from above. A posting with a
        NULL salary bound fails the corresponding predicate.

        Returns:
            JobPostingRecord list ordered by id ascending

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = select(JobPostingModel).where(
                JobPostingModel.status == JobPostingStatus.ACTIVE.value
            )

            if location:
                stmt = stmt.where(
                    func.lower(JobPostingModel.location).like(_like_pattern(location), escape="\\")
                )
            if experience:
                stmt = stmt.where(
                    func.lower(JobPostingModel.experience).like(
                        _like_pattern(experience), escape="\\"
                    )
                )
            if min_salary is not None:
                stmt = stmt.where(JobPostingModel.salary_min >= min_salary)
            if max_salary is not None:
                stmt = stmt.where(JobPostingModel.salary_max <= max_salary)

            stmt = stmt.order_by(JobPostingModel.id.asc())
            result = self.session.execute(stmt)

            return [model.to_domain() for model in result.scalars().all()]

        except SQLAlchemyError as e:
            logger.error(f"Error listing active job postings: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list job postings: {e}") from e

    def get_posting_ids_for_category(self, category_id: int) -> List[int]:
        """Return ids of postings tagged with ``category_id``.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(job_posting_categories.c.job_posting_id)
                .where(job_posting_categories.c.category_id == category_id)
                .order_by(job_posting_categories.c.job_posting_id.asc())
            )
            return list(self.session.execute(stmt).scalars().all())

        except SQLAlchemyError as e:
            logger.error(
                f"Error retrieving postings for category {category_id}: {e}", exc_info=True
            )
            raise PersistenceError(f"Failed to retrieve category postings: {e}") from e

    def get_by_id(self, job_posting_id: int) -> Optional[JobPostingRecord]:
        """Retrieve a posting by id regardless of status.

        Returns:
            JobPostingRecord if found, None otherwise

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            model = self.session.get(JobPostingModel, job_posting_id)
            return model.to_domain() if model is not None else None

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving job posting {job_posting_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve job posting: {e}") from e

    def upsert(self, record: JobPostingRecord) -> JobPostingRecord:
        """Insert a new posting or overwrite an existing one.

        Employer and category rows are created on first sight and updated
        in place afterwards.

        Raises:
            DataIntegrityError: On constraint violations
            PersistenceError: If database error occurs
        """
        try:
            model = self.session.get(JobPostingModel, record.id)
            if model is None:
                model = JobPostingModel(id=record.id)
                self.session.add(model)

            model.title = record.title
            model.description = record.description
            model.location = record.location
            model.salary_min = record.salary_min
            model.salary_max = record.salary_max
            model.experience = record.experience
            model.status = record.status.value
            model.updated_at = format_timestamp(record.updated_at)
            model.employer = self._resolve_employer(record)
            model.categories = [self._resolve_category(c.id, c.name) for c in record.categories]

            self.session.flush()
            return model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error upserting job posting {record.id}: {e}", exc_info=True)
            raise DataIntegrityError(
                f"Failed to upsert job posting due to constraint violation: {e}"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error upserting job posting {record.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to upsert job posting: {e}") from e

    def _resolve_employer(self, record: JobPostingRecord) -> Optional[EmployerModel]:
        employer = record.employer
        if employer is None:
            return None

        model = self.session.get(EmployerModel, employer.id) if employer.id is not None else None
        if model is None:
            model = EmployerModel(id=employer.id)
            self.session.add(model)

        model.name = employer.name
        model.industry = employer.industry
        model.size = employer.size
        model.address = employer.address
        model.website = employer.website
        model.description = employer.description
        return model

    def _resolve_category(self, category_id: int, name: str) -> CategoryModel:
        model = self.session.get(CategoryModel, category_id)
        if model is None:
            model = CategoryModel(id=category_id, name=name)
            self.session.add(model)
        else:
            model.name = name
        return model


class EmbeddingRepository:
    """Repository for persisted job-posting embeddings."""

    def __init__(self, session: Session):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def get_embeddings(self, job_posting_ids: Iterable[int]) -> Dict[int, JobPostingEmbedding]:
        """Batch lookup of stored embeddings.

        Ids without a stored row are simply absent from the mapping. Rows
        whose vector cannot be decoded are logged and treated as absent.

        Raises:
            PersistenceError: If database error occurs
        """
        ids = sorted(set(job_posting_ids))
        if not ids:
            return {}

        try:
            stmt = select(JobPostingEmbeddingModel).where(
                JobPostingEmbeddingModel.job_posting_id.in_(ids)
            )
            models = self.session.execute(stmt).scalars().all()

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving embeddings: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve embeddings: {e}") from e

        embeddings: Dict[int, JobPostingEmbedding] = {}
        for model in models:
            try:
                embeddings[model.job_posting_id] = model.to_domain()
            except (TypeError, ValueError) as e:
                # json.JSONDecodeError and pydantic ValidationError are ValueErrors
                logger.warning(
                    f"Ignoring unreadable embedding for job posting {model.job_posting_id}: {e}",
                    extra={
                        "event": "embedding.corrupt",
                        "job_posting_id": model.job_posting_id,
                    },
                )

        return embeddings

    def upsert(self, embedding: JobPostingEmbedding) -> JobPostingEmbedding:
        """Insert or replace the embedding of one posting.

        Raises:
            DataIntegrityError: If the posting does not exist
            PersistenceError: If database error occurs
        """
        try:
            existing = self.session.get(JobPostingEmbeddingModel, embedding.job_posting_id)

            if existing:
                existing.vector = json.dumps(embedding.vector)
                existing.model_version = embedding.model_version
                existing.updated_at = format_timestamp(embedding.updated_at)
                self.session.flush()
                return existing.to_domain()

            model = JobPostingEmbeddingModel.from_domain(embedding)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()

        except IntegrityError as e:
            logger.error(
                f"Integrity error upserting embedding for {embedding.job_posting_id}: {e}",
                exc_info=True,
            )
            raise DataIntegrityError(
                f"Failed to upsert embedding due to constraint violation: {e}"
            ) from e
        except SQLAlchemyError as e:
            logger.error(
                f"Error upserting embedding for {embedding.job_posting_id}: {e}", exc_info=True
            )
            raise PersistenceError(f"Failed to upsert embedding: {e}") from e

    def delete(self, job_posting_id: int) -> bool:
        """Delete the embedding of one posting.

        Returns:
            True if a row was removed, False if none existed

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = delete(JobPostingEmbeddingModel).where(
                JobPostingEmbeddingModel.job_posting_id == job_posting_id
            )
            result = self.session.execute(stmt)
            self.session.flush()
            return result.rowcount > 0

        except SQLAlchemyError as e:
            logger.error(f"Error deleting embedding for {job_posting_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete embedding: {e}") from e
