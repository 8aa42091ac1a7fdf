"""Job Transition Enforcement: pure preconditions for every JobLifecycle transition.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Violations raise typed errors (ValidationError, ForbiddenError,
      NotAvailableError, InvalidStateError); success returns the decided outcome
    - budget.min <= budget.max for every draft that passes validate_job_draft
    - assigned_to_id is set iff status in {accepted, in_progress, completed};
      plan_cancellation never produces a plan that breaks this
    - Cancellation outcome depends only on the actor's role:
      creator -> terminal cancelled, assignee -> reopened

Design Decisions:
    - Status values are read through JobStatus(...) before set membership tests:
      str-Enum hashing differs from plain str hashing
"""

from dataclasses import dataclass, field
from datetime import date

from app.core.domain_types import (
    ActorRole,
    ExperienceLevel,
    JobCategory,
    JobStatus,
    UserId,
)
from app.core.errors import (
    ForbiddenError,
    InvalidStateError,
    NotAvailableError,
    ValidationError,
)
from app.core.geo import GeoPoint, validate_coordinates
from app.core.repository_protocols import JobLike

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 2000
NOTES_MAX_LENGTH = 500
MIN_DISTANCE_KM = 1
MAX_DISTANCE_KM = 160


@dataclass(frozen=True)
class Budget:
    min: int
    max: int
    negotiable: bool = True


@dataclass(frozen=True)
class Requirements:
    skills: tuple[JobCategory, ...]
    experience: ExperienceLevel = ExperienceLevel.ANY
    verified_only: bool = False
    notes: str | None = None

    def to_dict(self) -> dict:
        return {
            "skills": [s.value for s in self.skills],
            "experience": self.experience.value,
            "verified_only": self.verified_only,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class JobDraft:
    """Validated, normalized input for creating a job."""
    title: str
    description: str
    category: JobCategory
    budget: Budget
    location: GeoPoint
    preferred_date: date
    preferred_time_start: str
    preferred_time_end: str
    requirements: Requirements
    address: dict = field(default_factory=dict)
    max_distance_km: int = 25
    is_urgent: bool = False


@dataclass(frozen=True)
class CancellationPlan:
    role: ActorRole
    next_status: JobStatus
    reopens: bool


# ─── Input validation ────────────────────────────────────────────

def validate_budget(budget_min: int, budget_max: int, negotiable: bool = True) -> Budget:
    if budget_min < 1 or budget_max < 1:
        raise ValidationError("Budget amounts must be at least 1", field="budget")
    if budget_min > budget_max:
        raise ValidationError(
            "Minimum budget cannot be greater than maximum budget", field="budget",
        )
    return Budget(budget_min, budget_max, negotiable)


def normalize_requirements(
    category: JobCategory, raw: dict | None,
) -> Requirements:
    """Fill requirement defaults: skills fall back to the job category."""
    raw = raw or {}
    skills: list[JobCategory] = []
    for skill in raw.get("skills") or []:
        if isinstance(skill, str) and skill.strip():
            try:
                skills.append(JobCategory(skill.strip()))
            except ValueError:
                raise ValidationError(f"Unknown skill '{skill}'", field="requirements.skills")
    if not skills:
        skills = [category]

    experience = raw.get("experience") or ExperienceLevel.ANY.value
    try:
        level = ExperienceLevel(experience)
    except ValueError:
        level = ExperienceLevel.ANY

    notes = raw.get("notes")
    if notes is not None:
        notes = str(notes).strip()
        if len(notes) > NOTES_MAX_LENGTH:
            raise ValidationError("Requirement notes are too long", field="requirements.notes")

    verified_only = raw.get("verified_only")
    return Requirements(
        skills=tuple(dict.fromkeys(skills)),
        experience=level,
        verified_only=verified_only if isinstance(verified_only, bool) else False,
        notes=notes or None,
    )


def validate_job_draft(
    *,
    title: str,
    description: str,
    category: str,
    budget_min: int,
    budget_max: int,
    budget_negotiable: bool,
    latitude: float,
    longitude: float,
    preferred_date: date,
    preferred_time_start: str,
    preferred_time_end: str,
    requirements: dict | None = None,
    address: dict | None = None,
    max_distance_km: int | None = None,
    default_max_distance_km: int = 25,
    is_urgent: bool = False,
) -> JobDraft:
    """Chain every create-time check. First violation wins."""
    title = (title or "").strip()
    if not title or len(title) > TITLE_MAX_LENGTH:
        raise ValidationError("Title is required (max 100 chars)", field="title")
    description = (description or "").strip()
    if not description or len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError("Description is required (max 2000 chars)", field="description")
    try:
        job_category = JobCategory(category)
    except ValueError:
        raise ValidationError(f"Unknown category '{category}'", field="category")
    if not preferred_time_start or not preferred_time_end:
        raise ValidationError("Preferred time window requires start and end", field="preferred_time")

    distance = max_distance_km or default_max_distance_km
    if not MIN_DISTANCE_KM <= distance <= MAX_DISTANCE_KM:
        raise ValidationError("max_distance_km out of range", field="max_distance_km")

    return JobDraft(
        title=title,
        description=description,
        category=job_category,
        budget=validate_budget(budget_min, budget_max, budget_negotiable),
        location=validate_coordinates(latitude, longitude),
        preferred_date=preferred_date,
        preferred_time_start=preferred_time_start,
        preferred_time_end=preferred_time_end,
        requirements=normalize_requirements(job_category, requirements),
        address=dict(address or {}),
        max_distance_km=distance,
        is_urgent=is_urgent,
    )


# ─── Roles ───────────────────────────────────────────────────────

def resolve_actor_role(job: JobLike, actor_id: UserId) -> ActorRole:
    if job.creator_id == actor_id:
        return ActorRole.CREATOR
    if job.assigned_to_id is not None and job.assigned_to_id == actor_id:
        return ActorRole.ASSIGNEE
    return ActorRole.OUTSIDER


def other_party(job: JobLike, actor_id: UserId) -> UserId | None:
    """The participant on the other side of the job from actor_id, if any."""
    if job.creator_id == actor_id:
        return job.assigned_to_id
    return job.creator_id


def require_participant(job: JobLike, actor_id: UserId, action: str) -> ActorRole:
    role = resolve_actor_role(job, actor_id)
    if role == ActorRole.OUTSIDER:
        raise ForbiddenError(
            f"You can only {action} jobs you created or were assigned to",
        )
    return role


def require_creator(job: JobLike, actor_id: UserId, action: str) -> None:
    if job.creator_id != actor_id:
        raise ForbiddenError(f"Only the job creator can {action} this job")


# ─── Transition checks ───────────────────────────────────────────

def check_available(job: JobLike) -> None:
    if JobStatus(job.status) != JobStatus.OPEN or job.assigned_to_id is not None:
        raise NotAvailableError("This job is no longer available for acceptance")


def check_can_accept(job: JobLike, helper_id: UserId) -> None:
    check_available(job)
    if job.creator_id == helper_id:
        raise ForbiddenError("You cannot accept your own job")


def check_can_complete(job: JobLike, actor_id: UserId) -> ActorRole:
    role = require_participant(job, actor_id, "complete")
    status = JobStatus(job.status)
    if status not in (JobStatus.ACCEPTED, JobStatus.IN_PROGRESS):
        raise InvalidStateError("Job cannot be completed", status.value)
    return role


def plan_cancellation(job: JobLike, actor_id: UserId) -> CancellationPlan:
    role = require_participant(job, actor_id, "cancel")
    status = JobStatus(job.status)
    if role == ActorRole.CREATOR:
        if status not in (JobStatus.OPEN, JobStatus.ACCEPTED):
            raise InvalidStateError(
                f"Cannot cancel a job that is {status.value}", status.value,
            )
        return CancellationPlan(role, JobStatus.CANCELLED, reopens=False)
    if status != JobStatus.ACCEPTED:
        raise InvalidStateError(
            f"Cannot withdraw from a job that is {status.value}", status.value,
        )
    return CancellationPlan(role, JobStatus.OPEN, reopens=True)


def check_can_delete(job: JobLike, actor_id: UserId) -> None:
    require_creator(job, actor_id, "delete")
    status = JobStatus(job.status)
    if status in (JobStatus.IN_PROGRESS, JobStatus.COMPLETED):
        raise InvalidStateError(
            "Cannot delete a job that is in progress or completed", status.value,
        )


def check_can_update(job: JobLike, actor_id: UserId) -> None:
    require_creator(job, actor_id, "update")
    status = JobStatus(job.status)
    if status not in (JobStatus.OPEN, JobStatus.ACCEPTED):
        raise InvalidStateError(f"Cannot edit a job that is {status.value}", status.value)


def check_can_reopen(job: JobLike, actor_id: UserId) -> None:
    require_creator(job, actor_id, "reopen")
    status = JobStatus(job.status)
    if status != JobStatus.ACCEPTED:
        raise InvalidStateError("Only accepted jobs can be reopened", status.value)


def check_can_mark_paid(job: JobLike) -> None:
    status = JobStatus(job.status)
    if status != JobStatus.ACCEPTED:
        raise InvalidStateError("Only accepted jobs can be paid for", status.value)


def check_can_mark_released(job: JobLike) -> bool:
    """Return True when release also completes the job (in_progress -> completed)."""
    status = JobStatus(job.status)
    if status == JobStatus.IN_PROGRESS:
        return True
    if status == JobStatus.COMPLETED:
        return False
    raise InvalidStateError(
        f"Cannot release escrow for a job that is {status.value}", status.value,
    )
