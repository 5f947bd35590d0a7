"""Match orchestration: the public entry point of the matcher.

find_matches() runs the full pipeline:

    cache lookup -> rule filter -> text assembly + vectors -> similarity top-K
    -> reranker top-N (or cosine fallback) -> threshold -> cache store

and always returns a MatchResponse; failures are reported as outcome codes.
"""

from typing import List, Optional
from uuid import uuid4

from resume_matcher.cache import ResultCache
from resume_matcher.clients import EmbeddingClient, RerankerClient, ServiceClientError
from resume_matcher.config.environment import EnvironmentConfig
from resume_matcher.config.models import MatcherConfig
from resume_matcher.domain.models import (
    MatchFilters,
    MatchOutcome,
    MatchResponse,
    ResumeProfile,
    ScoreOneResult,
)
from resume_matcher.embeddings import EmbeddingStore, VectorResolver
from resume_matcher.logging import get_logger
from resume_matcher.logging.context import log_context
from resume_matcher.matching import (
    MatchCandidate,
    Reranker,
    RuleFilter,
    SimilarityRanker,
    TextAssembler,
    apply_threshold,
    build_reasons,
    cosine_similarity,
    has_valid_description,
    score_to_percent,
)
from resume_matcher.matching.filters import SessionFactory
from resume_matcher.persistence.database import get_session
from resume_matcher.persistence.exceptions import PersistenceError
from resume_matcher.persistence.repositories import JobPostingRepository
from resume_matcher.utils.hashing import compute_cache_key, hash_string

logger = get_logger(__name__, component="pipeline")

MESSAGES = {
    MatchOutcome.OK: "Found {count} matching job postings",
    MatchOutcome.EMPTY_FILTER_RESULT: "No job postings match the selected filters",
    MatchOutcome.NO_QUALIFYING_MATCHES: "No job postings are a strong enough match for this resume",
    MatchOutcome.MISSING_RESUME_EMBEDDING: (
        "The resume has no usable text or embedding; upload or re-process the resume"
    ),
    MatchOutcome.STORAGE_ERROR: "Job postings could not be loaded; please try again later",
    MatchOutcome.INTERNAL_ERROR: "Matching failed unexpectedly; please try again later",
}


class MatchOrchestrator:
    """
    Runs resume-to-job matching requests.

    Stage components are injected so tests and alternative deployments can
    swap any of them; from_config() wires the default set.
    """

    def __init__(
        self,
        config: MatcherConfig,
        embedding_store: EmbeddingStore,
        reranker: Reranker,
        cache: ResultCache,
        session_factory: SessionFactory = get_session,
        assembler: Optional[TextAssembler] = None,
    ):
        self.config = config
        self.embedding_store = embedding_store
        self.reranker = reranker
        self.cache = cache
        self.assembler = assembler or TextAssembler()
        self.rule_filter = RuleFilter(session_factory)
        self.resolver = VectorResolver(embedding_store, config.embedding.max_concurrency)
        self.ranker = SimilarityRanker(config.ranking.quality, top_k=config.ranking.top_k)
        self._session_factory = session_factory

    @classmethod
    def from_config(
        cls,
        config: MatcherConfig,
        env_config: EnvironmentConfig,
        session_factory: SessionFactory = get_session,
    ) -> "MatchOrchestrator":
        """Build an orchestrator with HTTP clients and an empty cache."""
        user_agent = config.http.user_agent
        embedding_client = EmbeddingClient(
            env_config.embedding_service_url,
            timeout=config.embedding.timeout,
            user_agent=user_agent,
        )
        reranker_client = RerankerClient(
            env_config.rerank_service_url,
            timeout=config.reranker.timeout,
            health_timeout=config.reranker.health_timeout,
            user_agent=user_agent,
        )

        store = EmbeddingStore(
            embedding_client,
            config.embedding.model_version,
            session_factory=session_factory,
        )
        reranker = Reranker(
            reranker_client,
            top_n=config.ranking.top_n,
            enabled=config.reranker.enabled,
        )
        cache = ResultCache(
            ttl_seconds=config.cache.ttl_seconds,
            sweep_threshold=config.cache.sweep_threshold,
        )
        return cls(config, store, reranker, cache, session_factory=session_factory)

    @property
    def model_version(self) -> str:
        return self.config.embedding.model_version

    def find_matches(
        self, resume: ResumeProfile, filters: Optional[MatchFilters] = None
    ) -> MatchResponse:
        """
        Rank active job postings for ``resume`` under ``filters``.

        Never raises: storage failures map to STORAGE_ERROR and any other
        unexpected exception to INTERNAL_ERROR.
        """
        filters = filters or MatchFilters()

        with log_context(request_id=uuid4().hex, owner_id=resume.owner_id):
            try:
                return self._find_matches(resume, filters)
            except PersistenceError as e:
                logger.error(
                    f"Matching failed: storage error: {e}",
                    extra={"event": "match.request.failed", "error_type": type(e).__name__},
                )
                return self._response(MatchOutcome.STORAGE_ERROR)
            except Exception as e:
                logger.exception(
                    f"Matching failed unexpectedly: {e}",
                    extra={"event": "match.request.failed", "error_type": type(e).__name__},
                )
                return self._response(MatchOutcome.INTERNAL_ERROR)

    def _find_matches(self, resume: ResumeProfile, filters: MatchFilters) -> MatchResponse:
        logger.info(
            "Match request started",
            extra={"event": "match.request.started", "filters": filters.normalized()},
        )

        resume_vector = self._resolve_resume_vector(resume)
        if resume_vector is None:
            logger.warning(
                "Match request rejected: resume has no usable embedding",
                extra={"event": "match.request.missing_embedding"},
            )
            return self._response(MatchOutcome.MISSING_RESUME_EMBEDDING)

        cache_key = compute_cache_key(
            self._resume_fingerprint(resume, resume_vector),
            filters.normalized(),
            self.model_version,
        )
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.info(
                "Match request served from cache",
                extra={"event": "match.cache.hit", "candidates": len(cached.candidates)},
            )
            return cached

        postings = self.rule_filter.apply(filters)
        if not postings:
            response = self._response(MatchOutcome.EMPTY_FILTER_RESULT)
            self.cache.set(cache_key, response)
            return response

        candidates = [
            MatchCandidate(
                job=posting,
                assembled_text=self.assembler.assemble(posting),
                has_valid_description=has_valid_description(posting.description),
            )
            for posting in postings
        ]

        vectors = self.resolver.resolve(candidates)
        shortlist = self.ranker.rank(resume_vector, candidates, vectors)
        if not shortlist:
            # Every posting lost its vector; transient, so nothing is cached
            logger.warning(
                "No job posting could be scored",
                extra={"event": "match.request.unscored", "candidates": len(candidates)},
            )
            return self._response(MatchOutcome.NO_QUALIFYING_MATCHES)

        outcome = self.reranker.rerank(resume.raw_text, shortlist)
        final, dropped = apply_threshold(outcome.candidates, self.config.ranking.min_match_percent)

        for candidate in final:
            candidate.reasons = build_reasons(candidate)

        if final:
            response = MatchResponse(
                code=MatchOutcome.OK,
                message=MESSAGES[MatchOutcome.OK].format(count=len(final)),
                candidates=[candidate.to_summary() for candidate in final],
                reranked=outcome.reranked,
            )
        else:
            response = self._response(MatchOutcome.NO_QUALIFYING_MATCHES, reranked=outcome.reranked)

        self.cache.set(cache_key, response)

        logger.info(
            "Match request completed",
            extra={
                "event": "match.request.completed",
                "code": response.code.value,
                "filtered": len(postings),
                "shortlisted": len(shortlist),
                "returned": len(response.candidates),
                "below_threshold": dropped,
                "reranked": outcome.reranked,
            },
        )
        return response

    def score_one(self, job_posting_id: int, resume: ResumeProfile) -> Optional[ScoreOneResult]:
        """
        Raw cosine score of ``resume`` against a single posting.

        No penalty, reranking or threshold is applied.

        Returns:
            ScoreOneResult, or None when the posting does not exist, the resume
            has no usable vector, or a vector cannot be computed or read
        """
        with log_context(request_id=uuid4().hex, job_posting_id=job_posting_id):
            try:
                with self._session_factory() as session:
                    posting = JobPostingRepository(session).get_by_id(job_posting_id)
                if posting is None:
                    logger.info(
                        f"Job posting {job_posting_id} not found",
                        extra={"event": "match.score_one.not_found"},
                    )
                    return None

                resume_vector = self._resolve_resume_vector(resume)
                if resume_vector is None:
                    return None

                stored = self.embedding_store.get_embeddings([job_posting_id]).get(job_posting_id)
                if stored is not None and not stored.is_stale_for(posting, self.model_version):
                    posting_vector = stored.vector
                else:
                    posting_vector = self.embedding_store.embed_text(self.assembler.assemble(posting))

            except ServiceClientError as e:
                logger.warning(
                    f"Could not embed job posting {job_posting_id}: {e}",
                    extra={"event": "match.score_one.failed", "error_type": type(e).__name__},
                )
                return None
            except PersistenceError as e:
                logger.error(
                    f"Could not read job posting {job_posting_id}: {e}",
                    extra={"event": "match.score_one.failed", "error_type": type(e).__name__},
                )
                return None

            similarity = cosine_similarity(resume_vector, posting_vector)
            return ScoreOneResult(
                job_posting_id=job_posting_id,
                match_score_percent=score_to_percent(similarity),
                cosine_similarity=similarity,
            )

    def _resolve_resume_vector(self, resume: ResumeProfile) -> Optional[List[float]]:
        """Vector to score with, embedding the resume text when needed.

        A vector from another model version is re-embedded when the text is
        available; if that fails the stored vector is used anyway.
        """
        if resume.has_vector and resume.embedding_model_version in (None, self.model_version):
            return resume.embedding_vector

        if not resume.has_text:
            if resume.has_vector:
                logger.warning(
                    "Using resume vector from a different model version",
                    extra={
                        "event": "resume.embedding.version_mismatch",
                        "resume_model_version": resume.embedding_model_version,
                    },
                )
                return resume.embedding_vector
            return None

        try:
            return self.embedding_store.embed_text(resume.raw_text)
        except ServiceClientError as e:
            if resume.has_vector:
                logger.warning(
                    f"Resume re-embedding failed, using stored vector: {e}",
                    extra={
                        "event": "resume.embedding.version_mismatch",
                        "resume_model_version": resume.embedding_model_version,
                        "error_type": type(e).__name__,
                    },
                )
                return resume.embedding_vector

            logger.warning(
                f"Resume embedding failed: {e}",
                extra={"event": "resume.embedding.failed", "error_type": type(e).__name__},
            )
            return None

    @staticmethod
    def _resume_fingerprint(resume: ResumeProfile, vector: List[float]) -> str:
        if resume.content_fingerprint:
            return resume.content_fingerprint
        return hash_string(",".join(repr(value) for value in vector))

    @staticmethod
    def _response(code: MatchOutcome, reranked: bool = False) -> MatchResponse:
        return MatchResponse(code=code, message=MESSAGES[code], reranked=reranked)
