"""Rule filter: hard constraints applied before any scoring."""

from typing import Callable, ContextManager, List

from sqlalchemy.orm import Session

from resume_matcher.domain.models import JobPostingRecord, MatchFilters
from resume_matcher.logging import get_logger
from resume_matcher.persistence.repositories import JobPostingRepository

logger = get_logger(__name__, component="ranking")

SessionFactory = Callable[[], ContextManager[Session]]


class RuleFilter:
    """Narrows the active job-posting population with AND-combined predicates.

    Location and experience are case-insensitive substring matches, salary
    bounds compare against the posting's own range, and a category filter
    is resolved through the posting/category association.
    """

    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    def apply(self, filters: MatchFilters) -> List[JobPostingRecord]:
        """Return matching active postings ordered by id.

        Raises:
            PersistenceError: If the job-posting store cannot be read
        """
        with self._session_factory() as session:
            repo = JobPostingRepository(session)
            postings = repo.list_active(
                location=filters.location,
                min_salary=filters.min_salary,
                max_salary=filters.max_salary,
                experience=filters.experience,
            )

            if filters.category_id is not None:
                allowed = set(repo.get_posting_ids_for_category(filters.category_id))
                postings = [p for p in postings if p.id in allowed]

        logger.info(
            f"Rule filter kept {len(postings)} job postings",
            extra={
                "event": "ranking.rule_filter.completed",
                "filters": filters.normalized(),
                "kept": len(postings),
            },
        )
        return postings
