"""
Candidate/job-posting fit scoring.

Every dimension scorer returns a DimensionScore. A max_score of 0 marks the
dimension as inapplicable to the pair: it is left out of both the numerator
and the denominator of the aggregate.
"""

import math
from collections.abc import Callable, Iterable
from typing import NamedTuple
from uuid import UUID

from wiseup.schemas.matching import (
    CandidateProfile,
    Coordinates,
    PostingCriteria,
    ProficiencyLevel,
)
from wiseup.services.geo import distance_km

CoordinateResolver = Callable[[str, str], Coordinates | None]


class DimensionScore(NamedTuple):
    score: float
    max_score: float


INAPPLICABLE = DimensionScore(0, 0)


def ratio_to_score(ratio: float) -> int:
    """Map a 0..1 ratio onto 0..100, rewarding high ratios: 0.5 -> 25, 0.9 -> 81."""
    return math.floor((ratio * 10) ** 2)


def sym_norm_diff(a: float, b: float) -> float:
    """Symmetric normalized difference, 0 for equal values and towards 1 as they diverge."""
    return abs(a - b) / (a + b)


FULL_SCORE = ratio_to_score(1)


class ProficiencyLevels:
    """Orders language proficiency levels by rank.

    Ranks come from the reference table's rank column, never from the codes,
    so levels can be renamed or added without touching the comparison.
    """

    def __init__(self, levels: Iterable[ProficiencyLevel]):
        self._rank: dict[UUID, int] = {level.id: level.rank for level in levels}

    def __len__(self) -> int:
        return len(self._rank)

    def at_least(self, level_id: UUID, required_level_id: UUID) -> bool:
        """True if level_id is as high as or higher than required_level_id."""
        rank = self._rank.get(level_id)
        required_rank = self._rank.get(required_level_id)
        if rank is None or required_rank is None:
            return False
        return rank >= required_rank


def _coverage_score(required: Iterable[UUID], offered: Iterable[UUID]) -> DimensionScore:
    required = list(required)
    offered = set(offered)
    matching = [item for item in required if item in offered]
    ratio = len(matching) / (len(required) or 1)
    return DimensionScore(ratio_to_score(ratio), FULL_SCORE)


def _closeness_score(wanted: float | None, offered: float | None) -> DimensionScore:
    if not wanted or not offered or wanted < 0 or offered < 0:
        return INAPPLICABLE
    return DimensionScore(ratio_to_score(1 - sym_norm_diff(wanted, offered)), FULL_SCORE)


def score_skills(candidate: CandidateProfile, posting: PostingCriteria) -> DimensionScore:
    return _coverage_score(posting.skill_ids, candidate.skill_ids)


def score_expertise(candidate: CandidateProfile, posting: PostingCriteria) -> DimensionScore:
    return _coverage_score(posting.expertise_area_ids, candidate.expertise_area_ids)


def score_languages(
    candidate: CandidateProfile,
    posting: PostingCriteria,
    levels: ProficiencyLevels,
) -> DimensionScore:
    pleased = [
        required
        for required in posting.languages
        if any(
            spoken.language_id == required.language_id
            and levels.at_least(spoken.level_id, required.level_id)
            for spoken in candidate.languages
        )
    ]
    ratio = len(pleased) / (len(posting.languages) or 1)
    return DimensionScore(ratio_to_score(ratio), FULL_SCORE)


def score_hours_per_week(candidate: CandidateProfile, posting: PostingCriteria) -> DimensionScore:
    return _closeness_score(posting.approx_hours_per_week, candidate.desired_hours_per_week)


def score_salary(candidate: CandidateProfile, posting: PostingCriteria) -> DimensionScore:
    return _closeness_score(posting.approx_hourly_rate, candidate.expected_hourly_rate)


def score_position(candidate: CandidateProfile, posting: PostingCriteria) -> DimensionScore:
    # one matching past position is enough
    if not posting.position_ids:
        return INAPPLICABLE
    held = {
        element.position_id
        for element in candidate.career_elements
        if element.kind == "job" and element.position_id is not None
    }
    return DimensionScore(100 if held.intersection(posting.position_ids) else 0, 100)


def score_degree(candidate: CandidateProfile, posting: PostingCriteria) -> DimensionScore:
    if not posting.degree_ids:
        return INAPPLICABLE
    earned = {
        element.degree_id
        for element in candidate.career_elements
        if element.kind == "education" and element.degree_id is not None
    }
    return DimensionScore(100 if earned.intersection(posting.degree_ids) else 0, 100)


def score_location(
    candidate: CandidateProfile,
    posting: PostingCriteria,
    resolve: CoordinateResolver,
) -> DimensionScore:
    """100 for the same city, otherwise one point less per 10 km between zip centers."""
    if not (
        posting.required_zip
        and posting.required_country
        and candidate.address_zip
        and candidate.address_country
    ):
        return INAPPLICABLE

    if (
        posting.required_city
        and posting.required_city == candidate.address_city
        and posting.required_country == candidate.address_country
    ):
        return DimensionScore(100, 100)

    candidate_coords = resolve(candidate.address_zip, candidate.address_country)
    posting_coords = resolve(posting.required_zip, posting.required_country)
    if candidate_coords is None or posting_coords is None:
        return INAPPLICABLE

    km = distance_km(candidate_coords, posting_coords)
    return DimensionScore(max(0.0, 100 - km / 10), 100)


def score_breakdown(
    candidate: CandidateProfile,
    posting: PostingCriteria,
    levels: ProficiencyLevels,
    resolve: CoordinateResolver,
) -> dict[str, DimensionScore]:
    return {
        "skills": score_skills(candidate, posting),
        "expertise": score_expertise(candidate, posting),
        "languages": score_languages(candidate, posting, levels),
        "hours_per_week": score_hours_per_week(candidate, posting),
        "salary": score_salary(candidate, posting),
        "position": score_position(candidate, posting),
        "degree": score_degree(candidate, posting),
        "location": score_location(candidate, posting, resolve),
    }


def aggregate(scores: Iterable[DimensionScore]) -> float:
    scores = list(scores)
    total = sum(s.score for s in scores)
    max_total = sum(s.max_score for s in scores)
    return total / max_total if max_total > 0 else 0.0


def aggregate_score(
    candidate: CandidateProfile,
    posting: PostingCriteria,
    levels: ProficiencyLevels,
    resolve: CoordinateResolver,
) -> float:
    """Normalized fit of a candidate for a posting, 0 (no fit) to 1 (perfect)."""
    return aggregate(score_breakdown(candidate, posting, levels, resolve).values())
