from wiseup.models.candidate import Candidate, CandidateLanguage, CareerElement
from wiseup.models.cooperation import Cooperation
from wiseup.models.job_posting import JobPosting, JobPostingLanguage
from wiseup.models.matching import Match, MatchingRun
from wiseup.models.notification import Notification
from wiseup.models.reference import (
    Degree,
    ExpertiseArea,
    JobPosition,
    Language,
    LanguageProficiencyLevel,
    Skill,
    ZipCoords,
)
from wiseup.models.startup import Startup

__all__ = [
    "Skill",
    "ExpertiseArea",
    "Degree",
    "JobPosition",
    "Language",
    "LanguageProficiencyLevel",
    "ZipCoords",
    "Startup",
    "Candidate",
    "CandidateLanguage",
    "CareerElement",
    "JobPosting",
    "JobPostingLanguage",
    "Cooperation",
    "MatchingRun",
    "Match",
    "Notification",
]
