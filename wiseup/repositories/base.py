"""Storage contracts consumed by the matching engine."""

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol
from uuid import UUID

from wiseup.schemas.matching import (
    CandidateProfile,
    Coordinates,
    MatchCreate,
    MatchingRunRead,
    MatchRead,
    NotificationPayload,
    PostingCriteria,
    ProficiencyLevel,
)


class CandidateRepository(Protocol):
    def find_available(
        self, country: str | None = None, candidate_id: UUID | None = None
    ) -> list[CandidateProfile]: ...

    def find_by_id(self, candidate_id: UUID) -> CandidateProfile | None: ...


class PostingRepository(Protocol):
    def find_by_id(self, job_posting_id: UUID) -> PostingCriteria | None: ...

    def find_unfilled_ids(self) -> list[UUID]:
        """Postings without a cooperation in status "accepted"."""
        ...

    def find_startup_ids_for_postings(self, job_posting_ids: Sequence[UUID]) -> list[UUID]: ...

    def find_ids_by_startup(self, startup_id: UUID) -> list[UUID]: ...


class ReferenceData(Protocol):
    def list_proficiency_levels(self) -> list[ProficiencyLevel]: ...

    def find_coordinates(self, zip_code: str, country: str) -> Coordinates | None: ...


class MatchStore(Protocol):
    def insert(self, match: MatchCreate) -> MatchRead: ...

    def count_distinct_acceptable_candidates(
        self,
        job_posting_ids: Sequence[UUID],
        threshold: float,
        exclude_run_id: UUID | None = None,
    ) -> int: ...

    def delete_by_run_ids(self, run_ids: Sequence[UUID]) -> int: ...

    def latest_for_posting(self, job_posting_id: UUID) -> list[MatchRead]: ...


class RunStore(Protocol):
    def create(self, is_full_run: bool) -> MatchingRunRead: ...

    def find_older_than(self, cutoff: datetime) -> list[MatchingRunRead]: ...

    def delete_by_ids(self, run_ids: Sequence[UUID]) -> int: ...


class NotificationSink(Protocol):
    def notify(self, user_id: UUID, payload: NotificationPayload) -> None: ...
