"""Test helper utilities for resume matcher tests."""

from .fakes import FakeEmbeddingClient, make_posting, store_embedding
from .fixture_postings import load_fixture_postings

__all__ = ["FakeEmbeddingClient", "make_posting", "store_embedding", "load_fixture_postings"]
