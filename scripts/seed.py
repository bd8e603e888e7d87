"""Seed reference data (languages, proficiency levels, zip coordinates, ...) and a small demo marketplace.

Usage:
    python scripts/seed.py [--force] [--zip-csv path/to/zip_codes.csv]

The zip CSV needs the columns country, zip, lat, lon.
"""

import csv
import sys
from datetime import date

from sqlalchemy import select

from wiseup.core.database import Base, get_sync_engine, get_sync_session
from wiseup.models import (
    Candidate,
    CandidateLanguage,
    CareerElement,
    Degree,
    ExpertiseArea,
    JobPosition,
    JobPosting,
    JobPostingLanguage,
    Language,
    LanguageProficiencyLevel,
    Skill,
    Startup,
    ZipCoords,
)

PROFICIENCY_LEVELS = ["A1", "A2", "B1", "B2", "C1", "C2"]
LANGUAGES = ["German", "English", "French", "Spanish", "Italian"]
DEGREES = [
    "High School Diploma",
    "University Entrance Qualification",
    "Vocational Training Certificate",
    "Bachelor",
    "Master",
    "Diploma",
    "State Examination",
    "Doctorate / PhD",
]
POSITIONS = [
    "Software Engineer",
    "Product Manager",
    "Data Analyst",
    "Backend Developer",
    "Solutions Architect",
    "Business Analyst",
    "Marketing Manager",
    "Sales Manager",
    "HR Manager",
    "Chief Financial Officer",
]
EXPERTISE_AREAS = ["Finance", "Marketing", "Software Development", "Sales", "Human Resources"]
SKILLS = ["Python", "Accounting", "Negotiation", "Project Management", "SQL", "Public Speaking"]
ZIP_COORDS = [
    ("Germany", "10115", 52.5323, 13.3846),
    ("Germany", "14467", 52.4009, 13.0591),
    ("Germany", "20095", 53.5511, 10.0014),
    ("Germany", "80331", 48.1374, 11.5755),
    ("Germany", "60311", 50.1109, 8.6821),
]


def load_zip_csv(path: str) -> list[tuple[str, str, float, float]]:
    with open(path, newline="", encoding="utf-8") as f:
        return [
            (row["country"], row["zip"], float(row["lat"]), float(row["lon"]))
            for row in csv.DictReader(f)
        ]


def seed():
    Base.metadata.create_all(get_sync_engine())

    with get_sync_session() as session:
        existing = session.execute(select(LanguageProficiencyLevel).limit(1)).scalar_one_or_none()
        if existing:
            print("DB already has data. Use --force to reset.")
            if "--force" not in sys.argv:
                return
            for tbl in reversed(Base.metadata.sorted_tables):
                session.execute(tbl.delete())
            session.commit()
            print("Cleaned existing data.")

        levels = {
            code: LanguageProficiencyLevel(code=code, rank=rank)
            for rank, code in enumerate(PROFICIENCY_LEVELS)
        }
        languages = {name: Language(name=name) for name in LANGUAGES}
        degrees = {title: Degree(title=title) for title in DEGREES}
        positions = {title: JobPosition(title=title) for title in POSITIONS}
        areas = {name: ExpertiseArea(name=name) for name in EXPERTISE_AREAS}
        skills = {name: Skill(name=name) for name in SKILLS}
        for group in (levels, languages, degrees, positions, areas, skills):
            session.add_all(group.values())

        zip_rows = ZIP_COORDS
        if "--zip-csv" in sys.argv:
            zip_rows = load_zip_csv(sys.argv[sys.argv.index("--zip-csv") + 1])
        session.add_all(
            ZipCoords(country=country, zip=zip_code, lat=lat, lon=lon)
            for country, zip_code, lat, lon in zip_rows
        )
        session.flush()
        print(f"=== Reference data: {len(zip_rows)} zip codes ===")

        # --- Demo marketplace ---
        startup = Startup(title="Fintory GmbH", email="founders@fintory.example.com")
        session.add(startup)
        session.flush()

        posting = JobPosting(
            startup_id=startup.id,
            title="Interim CFO (part-time)",
            description="Help us prepare our Series A financials.",
            required_zip="10115",
            required_city="Berlin",
            required_country="Germany",
            approx_duration_weeks=12,
            approx_hours_per_week=15,
            approx_hourly_rate=90,
        )
        posting.required_skills.extend([skills["Accounting"], skills["Negotiation"]])
        posting.required_expertise_areas.append(areas["Finance"])
        posting.required_positions.append(positions["Chief Financial Officer"])
        posting.required_languages.append(
            JobPostingLanguage(language_id=languages["German"].id, level_id=levels["C1"].id)
        )
        session.add(posting)

        candidates = [
            ("Helga", "Brandt", "Berlin", "10115", 15, 85, ["Accounting", "Negotiation"], "C2"),
            ("Jürgen", "Weiss", "Potsdam", "14467", 20, 110, ["Accounting"], "C2"),
            ("Monika", "Krüger", "Munich", "80331", 10, 70, ["Public Speaking"], "B2"),
        ]
        for first, last, city, zip_code, hours, rate, skill_names, level in candidates:
            candidate = Candidate(
                email=f"{first.lower()}.{last.lower()}@example.com",
                name_first=first,
                name_last=last,
                address_zip=zip_code,
                address_city=city,
                address_country="Germany",
                desired_hours_per_week=hours,
                expected_hourly_rate=rate,
            )
            candidate.skills.extend(skills[name] for name in skill_names)
            candidate.expertise_areas.append(areas["Finance"])
            candidate.language_proficiencies.append(
                CandidateLanguage(language_id=languages["German"].id, level_id=levels[level].id)
            )
            candidate.career_elements.append(
                CareerElement(
                    kind="job",
                    title="CFO",
                    from_date=date(2001, 1, 1),
                    until_date=date(2020, 12, 31),
                    position_id=positions["Chief Financial Officer"].id,
                )
            )
            session.add(candidate)

        session.commit()
        print(f"=== 1 startup, 1 job posting, {len(candidates)} candidates ===")
        print("Seed done. Start a worker to run the first matching run.")


if __name__ == "__main__":
    seed()
