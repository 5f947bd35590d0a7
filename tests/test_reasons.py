"""Tests for match reason generation."""

import pytest

from resume_matcher.matching import MatchCandidate, build_reasons, format_salary
from tests.helpers import make_posting


@pytest.mark.parametrize(
    "salary_min,salary_max,expected",
    [
        (20_000_000, 35_000_000, "20.0 - 35.0 million"),
        (15_500_000, None, "From 15.5 million"),
        (None, 40_000_000, "Up to 40.0 million"),
        (None, None, "Negotiable"),
    ],
)
def test_format_salary(salary_min, salary_max, expected):
    assert format_salary(salary_min, salary_max) == expected


def make_candidate(percent, penalty=1.0, valid=True, reranked=False, **posting_fields):
    c = MatchCandidate(
        job=make_posting(1, **posting_fields),
        assembled_text="text",
        has_valid_description=valid,
    )
    c.match_score_percent = percent
    c.penalty_factor = penalty
    if reranked:
        c.raw_rerank_ratio = percent / 100
    return c


class TestBuildReasons:
    def test_full_reason_list_in_order(self):
        reasons = build_reasons(make_candidate(85))

        assert reasons == [
            "Location: Ho Chi Minh City",
            "Salary: 20.0 - 35.0 million",
            "Experience: 2 years",
            "Strong match: your resume fits the role's requirements very well",
            "Ranked by semantic similarity",
        ]

    @pytest.mark.parametrize(
        "percent,prefix",
        [(80, "Strong match"), (79, "Good match"), (60, "Good match"), (59, "Partial match")],
    )
    def test_strength_tiers(self, percent, prefix):
        assert build_reasons(make_candidate(percent))[3].startswith(prefix)

    def test_no_strength_statement_below_forty(self):
        reasons = build_reasons(make_candidate(39, location=None, experience=None))

        assert reasons == ["Salary: 20.0 - 35.0 million", "Ranked by semantic similarity"]

    def test_penalty_notes(self):
        no_description = build_reasons(make_candidate(70, penalty=0.25, valid=False))
        short_text = build_reasons(make_candidate(70, penalty=0.8, valid=True))

        assert "Score reduced: the posting has no usable description" in no_description
        assert "Score reduced: the posting has very little detail" in short_text

    def test_reranked_stage(self):
        assert build_reasons(make_candidate(70, reranked=True))[-1] == "Ranked by reranker"
