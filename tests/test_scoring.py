import math
import uuid
from datetime import date

import pytest
from conftest import BERLIN, make_candidate, make_posting

from wiseup.schemas.matching import (
    CareerElement,
    Coordinates,
    LanguageRequirement,
    ProficiencyLevel,
)
from wiseup.services.scoring import (
    DimensionScore,
    ProficiencyLevels,
    aggregate,
    aggregate_score,
    ratio_to_score,
    score_breakdown,
    score_degree,
    score_expertise,
    score_hours_per_week,
    score_languages,
    score_location,
    score_position,
    score_salary,
    score_skills,
    sym_norm_diff,
)

EARTH_RADIUS_KM = 6371.0088


def north_of(origin: Coordinates, km: float) -> Coordinates:
    return Coordinates(lat=origin.lat + math.degrees(km / EARTH_RADIUS_KM), lon=origin.lon)


def test_ratio_to_score_endpoints_and_curve():
    assert ratio_to_score(0) == 0
    assert ratio_to_score(1) == 100
    assert ratio_to_score(0.5) == 25
    assert ratio_to_score(0.1) == 1
    assert ratio_to_score(0.9) == 81


def test_ratio_to_score_is_monotonic():
    values = [ratio_to_score(i / 100) for i in range(101)]
    assert values == sorted(values)


def test_sym_norm_diff():
    assert sym_norm_diff(10, 10) == 0
    assert sym_norm_diff(10, 30) == 0.5
    assert sym_norm_diff(30, 10) == 0.5


def test_skills_half_covered_scores_25():
    a, b = uuid.uuid4(), uuid.uuid4()
    posting = make_posting(skill_ids=[a, b])
    candidate = make_candidate(skill_ids=[a])
    assert score_skills(candidate, posting) == DimensionScore(25, 100)


def test_skills_without_requirements_scores_zero_out_of_full():
    # an empty requirement list still counts towards the total
    candidate = make_candidate(skill_ids=[uuid.uuid4()])
    assert score_skills(candidate, make_posting()) == DimensionScore(0, 100)


def test_expertise_full_coverage():
    area = uuid.uuid4()
    posting = make_posting(expertise_area_ids=[area])
    candidate = make_candidate(expertise_area_ids=[area, uuid.uuid4()])
    assert score_expertise(candidate, posting) == DimensionScore(100, 100)


def test_languages_require_level_at_least_as_high(levels):
    german, english = uuid.uuid4(), uuid.uuid4()
    posting = make_posting(
        languages=[
            LanguageRequirement(language_id=german, level_id=levels["B2"].id),
            LanguageRequirement(language_id=english, level_id=levels["C1"].id),
        ]
    )
    candidate = make_candidate(
        languages=[
            LanguageRequirement(language_id=german, level_id=levels["C2"].id),
            LanguageRequirement(language_id=english, level_id=levels["B1"].id),
        ]
    )
    ordering = ProficiencyLevels(levels.values())
    assert score_languages(candidate, posting, ordering) == DimensionScore(25, 100)


def test_proficiency_levels_are_ranked_by_table(levels):
    ordering = ProficiencyLevels(reversed(list(levels.values())))
    assert ordering.at_least(levels["C1"].id, levels["B2"].id)
    assert ordering.at_least(levels["A1"].id, levels["A1"].id)
    assert not ordering.at_least(levels["A2"].id, levels["B1"].id)
    assert not ordering.at_least(uuid.uuid4(), levels["A1"].id)
    assert len(ordering) == 6


def test_proficiency_order_comes_from_rank_not_code():
    names = ["Beginner", "Intermediate", "Advanced", "Native"]
    table = {
        name: ProficiencyLevel(id=uuid.uuid4(), code=name, rank=rank)
        for rank, name in enumerate(names)
    }
    ordering = ProficiencyLevels(table.values())

    assert ordering.at_least(table["Advanced"].id, table["Intermediate"].id)
    assert ordering.at_least(table["Native"].id, table["Advanced"].id)
    assert not ordering.at_least(table["Beginner"].id, table["Advanced"].id)


def test_hours_only_apply_when_both_sides_known():
    assert score_hours_per_week(make_candidate(), make_posting(approx_hours_per_week=20)) == (0, 0)
    assert score_hours_per_week(
        make_candidate(desired_hours_per_week=20), make_posting(approx_hours_per_week=20)
    ) == (100, 100)
    # |10 - 30| / 40 = 0.5 -> ratio 0.5 -> 25
    assert score_hours_per_week(
        make_candidate(desired_hours_per_week=30), make_posting(approx_hours_per_week=10)
    ) == (25, 100)


def test_salary_uses_symmetric_difference():
    candidate = make_candidate(expected_hourly_rate=100)
    posting = make_posting(approx_hourly_rate=100)
    assert score_salary(candidate, posting) == (100, 100)
    assert score_salary(make_candidate(), posting) == (0, 0)


def test_negative_hours_or_rates_are_inapplicable():
    assert score_hours_per_week(
        make_candidate(desired_hours_per_week=-10), make_posting(approx_hours_per_week=10)
    ) == (0, 0)
    assert score_hours_per_week(
        make_candidate(desired_hours_per_week=-5), make_posting(approx_hours_per_week=10)
    ) == (0, 0)
    assert score_salary(
        make_candidate(expected_hourly_rate=80), make_posting(approx_hourly_rate=-80)
    ) == (0, 0)


def test_position_is_binary_and_only_counts_jobs():
    cfo = uuid.uuid4()
    posting = make_posting(position_ids=[cfo, uuid.uuid4()])
    held = make_candidate(
        career_elements=[CareerElement(kind="job", from_date=date(1990, 1, 1), position_id=cfo)]
    )
    studied = make_candidate(
        career_elements=[CareerElement(kind="education", from_date=date(1980, 1, 1), position_id=cfo)]
    )
    assert score_position(held, posting) == (100, 100)
    assert score_position(studied, posting) == (0, 100)
    assert score_position(held, make_posting()) == (0, 0)


def test_degree_is_binary_and_only_counts_education():
    phd = uuid.uuid4()
    posting = make_posting(degree_ids=[phd])
    graduate = make_candidate(
        career_elements=[CareerElement(kind="education", from_date=date(1975, 9, 1), degree_id=phd)]
    )
    assert score_degree(graduate, posting) == (100, 100)
    assert score_degree(make_candidate(), posting) == (0, 100)
    assert score_degree(graduate, make_posting()) == (0, 0)


def test_location_same_city_is_perfect(no_coordinates):
    posting = make_posting(required_zip="10115", required_city="Berlin", required_country="Germany")
    candidate = make_candidate(address_zip="10117", address_city="Berlin", address_country="Germany")
    assert score_location(candidate, posting, no_coordinates) == (100, 100)


def test_location_decays_with_distance():
    far = north_of(BERLIN, 45)
    coords = {("10115", "Germany"): BERLIN, ("99999", "Germany"): far}
    posting = make_posting(required_zip="10115", required_city="Berlin", required_country="Germany")
    candidate = make_candidate(address_zip="99999", address_city="Elsewhere", address_country="Germany")

    score, max_score = score_location(candidate, posting, lambda z, c: coords.get((z, c)))
    assert score == pytest.approx(95.5, abs=0.01)
    assert max_score == 100


def test_location_floors_at_zero_beyond_1000_km():
    coords = {("10115", "Germany"): BERLIN, ("00001", "Germany"): north_of(BERLIN, 1500)}
    posting = make_posting(required_zip="10115", required_country="Germany")
    candidate = make_candidate(address_zip="00001", address_country="Germany")
    assert score_location(candidate, posting, lambda z, c: coords.get((z, c))) == (0, 100)


def test_location_unknown_zip_is_inapplicable(no_coordinates):
    posting = make_posting(required_zip="10115", required_city="Berlin", required_country="Germany")
    candidate = make_candidate(address_zip="20095", address_city="Hamburg", address_country="Germany")
    assert score_location(candidate, posting, no_coordinates) == (0, 0)


def test_location_missing_address_is_inapplicable(no_coordinates):
    posting = make_posting(required_zip="10115", required_country="Germany")
    assert score_location(make_candidate(), posting, no_coordinates) == (0, 0)


def test_every_dimension_stays_within_bounds(levels, no_coordinates):
    skill, area, pos, deg, lang = (uuid.uuid4() for _ in range(5))
    posting = make_posting(
        skill_ids=[skill],
        expertise_area_ids=[area],
        position_ids=[pos],
        degree_ids=[deg],
        languages=[LanguageRequirement(language_id=lang, level_id=levels["B1"].id)],
        approx_hours_per_week=10,
        approx_hourly_rate=50,
        required_zip="10115",
        required_city="Berlin",
        required_country="Germany",
    )
    candidate = make_candidate(
        skill_ids=[skill],
        desired_hours_per_week=40,
        expected_hourly_rate=45,
        address_zip="10115",
        address_city="Berlin",
        address_country="Germany",
    )
    breakdown = score_breakdown(candidate, posting, ProficiencyLevels(levels.values()), no_coordinates)
    assert len(breakdown) == 8
    for result in breakdown.values():
        assert result.max_score in (0, 100)
        assert 0 <= result.score <= result.max_score


def test_aggregate_of_nothing_applicable_is_zero():
    assert aggregate([DimensionScore(0, 0)] * 8) == 0.0


def test_aggregate_skills_only_example(levels, no_coordinates):
    a, b = uuid.uuid4(), uuid.uuid4()
    posting = make_posting(skill_ids=[a, b])
    candidate = make_candidate(skill_ids=[a])
    ordering = ProficiencyLevels(levels.values())
    # skills 25/100, expertise 0/100 and languages 0/100 always count
    assert aggregate_score(candidate, posting, ordering, no_coordinates) == pytest.approx(25 / 300)
    assert aggregate([DimensionScore(25, 100)]) == 0.25


def test_aggregate_is_pure(levels, no_coordinates):
    skill = uuid.uuid4()
    posting = make_posting(skill_ids=[skill], approx_hours_per_week=12)
    candidate = make_candidate(skill_ids=[skill], desired_hours_per_week=15)
    ordering = ProficiencyLevels(levels.values())

    first = aggregate_score(candidate, posting, ordering, no_coordinates)
    second = aggregate_score(candidate, posting, ordering, no_coordinates)
    assert first == second
    assert 0.0 <= first <= 1.0
