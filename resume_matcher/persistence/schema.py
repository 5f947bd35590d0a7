"""Database schema definition and ORM models.

The job-posting tables mirror what the job-posting management collaborator
owns; the matcher reads them. ``job_posting_embeddings`` is the embedding
store. Conversion helpers map rows to domain models.
"""

import json
import logging

from sqlalchemy import (
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    inspect,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship

from resume_matcher.domain.models import (
    Category,
    Employer,
    JobPostingEmbedding,
    JobPostingRecord,
    JobPostingStatus,
)
from resume_matcher.utils.timestamps import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

Base = declarative_base()

job_posting_categories = Table(
    "job_posting_categories",
    Base.metadata,
    Column("job_posting_id", Integer, ForeignKey("job_postings.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
    Index("idx_job_posting_categories_category", "category_id"),
)


class EmployerModel(Base):
    """ORM model for employers table."""

    __tablename__ = "employers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    industry = Column(String(255), nullable=True)
    size = Column(String(100), nullable=True)
    address = Column(String(255), nullable=True)
    website = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)

    def to_domain(self) -> Employer:
        return Employer(
            id=self.id,
            name=self.name,
            industry=self.industry,
            size=self.size,
            address=self.address,
            website=self.website,
            description=self.description,
        )


class CategoryModel(Base):
    """ORM model for categories table."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)

    def to_domain(self) -> Category:
        return Category(id=self.id, name=self.name)


class JobPostingModel(Base):
    """ORM model for job_postings table."""

    __tablename__ = "job_postings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    salary_min = Column(Float, nullable=True)
    salary_max = Column(Float, nullable=True)
    experience = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default=JobPostingStatus.ACTIVE.value)
    employer_id = Column(Integer, ForeignKey("employers.id"), nullable=True)

    # ISO 8601 string
    updated_at = Column(String(50), nullable=True)

    employer = relationship("EmployerModel", lazy="selectin")
    categories = relationship(
        "CategoryModel",
        secondary=job_posting_categories,
        lazy="selectin",
        order_by="CategoryModel.id",
    )

    __table_args__ = (Index("idx_job_postings_status", "status"),)

    def to_domain(self) -> JobPostingRecord:
        return JobPostingRecord(
            id=self.id,
            title=self.title,
            description=self.description,
            location=self.location,
            salary_min=self.salary_min,
            salary_max=self.salary_max,
            experience=self.experience,
            categories=[category.to_domain() for category in self.categories],
            employer=self.employer.to_domain() if self.employer else None,
            status=JobPostingStatus(self.status),
            updated_at=parse_timestamp(self.updated_at),
        )


class JobPostingEmbeddingModel(Base):
    """ORM model for job_posting_embeddings table (one row per posting)."""

    __tablename__ = "job_posting_embeddings"

    job_posting_id = Column(
        Integer, ForeignKey("job_postings.id", ondelete="CASCADE"), primary_key=True
    )
    # JSON array of floats
    vector = Column(Text, nullable=True)
    model_version = Column(String(100), nullable=False)
    updated_at = Column(String(50), nullable=False)

    def to_domain(self) -> JobPostingEmbedding:
        return JobPostingEmbedding(
            job_posting_id=self.job_posting_id,
            vector=json.loads(self.vector),
            model_version=self.model_version,
            updated_at=parse_timestamp(self.updated_at),
        )

    @classmethod
    def from_domain(cls, embedding: JobPostingEmbedding) -> "JobPostingEmbeddingModel":
        return cls(
            job_posting_id=embedding.job_posting_id,
            vector=json.dumps(embedding.vector),
            model_version=embedding.model_version,
            updated_at=format_timestamp(embedding.updated_at),
        )


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
