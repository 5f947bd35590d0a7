"""Human-readable explanation lines attached to each ranked posting."""

from typing import List, Optional

from .models import MatchCandidate


def format_salary(salary_min: Optional[float], salary_max: Optional[float]) -> str:
    """Format a salary range in millions with one decimal.

    Example:
        >>> format_salary(20000000, 35000000)
        '20.0 - 35.0 million'
        >>> format_salary(None, None)
        'Negotiable'
    """
    if salary_min and salary_max:
        return f"{salary_min / 1_000_000:.1f} - {salary_max / 1_000_000:.1f} million"
    if salary_min:
        return f"From {salary_min / 1_000_000:.1f} million"
    if salary_max:
        return f"Up to {salary_max / 1_000_000:.1f} million"
    return "Negotiable"


def strength_statement(match_score_percent: int) -> Optional[str]:
    if match_score_percent >= 80:
        return "Strong match: your resume fits the role's requirements very well"
    if match_score_percent >= 60:
        return "Good match: your resume fits the role's requirements well"
    if match_score_percent >= 40:
        return "Partial match: your resume covers some of the role's requirements"
    return None


def build_reasons(candidate: MatchCandidate) -> List[str]:
    """Ordered reasons: location, salary, experience, strength, penalty, stage."""
    job = candidate.job
    reasons: List[str] = []

    if job.location:
        reasons.append(f"Location: {job.location}")

    reasons.append(f"Salary: {format_salary(job.salary_min, job.salary_max)}")

    if job.experience:
        reasons.append(f"Experience: {job.experience}")

    strength = strength_statement(candidate.match_score_percent)
    if strength:
        reasons.append(strength)

    if candidate.penalty_factor < 1.0:
        if not candidate.has_valid_description:
            reasons.append("Score reduced: the posting has no usable description")
        else:
            reasons.append("Score reduced: the posting has very little detail")

    if candidate.was_reranked:
        reasons.append("Ranked by reranker")
    else:
        reasons.append("Ranked by semantic similarity")

    return reasons
