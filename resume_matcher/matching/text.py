"""Canonical job-posting text assembly.

The assembled text is what gets embedded, what the reranker reads, and what
the data-quality penalty measures. Sections appear in a fixed order and
empty sections are left out entirely.
"""

import re
from typing import List, Optional

from resume_matcher.domain.models import JobPostingRecord

SECTION_DELIMITER = "\n"

# Descriptions equal to, or containing as a standalone token, any of these
# are treated as absent
PLACEHOLDER_DESCRIPTIONS = (
    "no description",
    "to be updated",
    "n/a",
    "null",
    "undefined",
    "tbd",
    "na",
)

_PLACEHOLDER_PATTERN = re.compile(
    "|".join(rf"(?<!\w){re.escape(term)}(?!\w)" for term in PLACEHOLDER_DESCRIPTIONS),
    re.IGNORECASE,
)


def has_valid_description(description: Optional[str]) -> bool:
    """Check whether a description carries real content.

    Example:
        >>> has_valid_description("Senior Python engineer for our data platform")
        True
        >>> has_valid_description("Description: N/A")
        False
        >>> has_valid_description("National banking experience")
        True
    """
    if description is None:
        return False

    cleaned = description.strip()
    if not cleaned:
        return False

    return _PLACEHOLDER_PATTERN.search(cleaned) is None


def _format_amount(amount: float) -> str:
    if float(amount).is_integer():
        return f"{int(amount):,}"
    return f"{amount:,.2f}"


def _clean(value: Optional[str]) -> str:
    return value.strip() if value else ""


class TextAssembler:
    """Builds the canonical descriptive string for a job posting."""

    def __init__(self, delimiter: str = SECTION_DELIMITER):
        self.delimiter = delimiter

    def assemble(self, posting: JobPostingRecord) -> str:
        """Concatenate the non-empty sections of ``posting`` in fixed order.

        Order: title, description (only when valid), location, experience,
        salary, categories, employer name and profile fields.
        """
        sections: List[str] = [_clean(posting.title)]

        if has_valid_description(posting.description):
            sections.append(posting.description.strip())

        location = _clean(posting.location)
        if location:
            sections.append(f"location: {location}")

        experience = _clean(posting.experience)
        if experience:
            sections.append(f"experience required: {experience}")

        salary = self._salary_section(posting.salary_min, posting.salary_max)
        if salary:
            sections.append(salary)

        category_names = [c.name.strip() for c in posting.categories if c.name and c.name.strip()]
        if category_names:
            sections.append(f"categories: {', '.join(category_names)}")

        sections.extend(self._employer_sections(posting))

        return self.delimiter.join(section for section in sections if section)

    @staticmethod
    def _salary_section(salary_min: Optional[float], salary_max: Optional[float]) -> str:
        if salary_min is not None and salary_max is not None:
            return f"salary: {_format_amount(salary_min)} - {_format_amount(salary_max)}"
        if salary_min is not None:
            return f"salary: from {_format_amount(salary_min)}"
        if salary_max is not None:
            return f"salary: up to {_format_amount(salary_max)}"
        return ""

    @staticmethod
    def _employer_sections(posting: JobPostingRecord) -> List[str]:
        employer = posting.employer
        if employer is None:
            return []

        fields = [
            ("employer", employer.name),
            ("industry", employer.industry),
            ("company size", employer.size),
            ("address", employer.address),
            ("website", employer.website),
        ]
        sections = [f"{label}: {_clean(value)}" for label, value in fields if _clean(value)]
        if has_valid_description(employer.description):
            sections.append(f"about the employer: {employer.description.strip()}")
        return sections
