"""
Transcript Working State

The user's transcript and plan as currently edited, next to the copy that
was last persisted. Every command returns a new TranscriptState and bumps
the version, so evaluation results can be memoized by
(version, selected semester).
"""

from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Tuple

from core.grades import is_valid_grade
from core.models import PLANNED_GRADE, Plan, TranscriptAttempt
from core.semester import PLANNED_SUFFIX, SemesterManager, unique_semesters


PLACEHOLDER_CODE = "PLACEHOLDER"
PLACEHOLDER_NAME = "Placeholder Course"


class TranscriptError(Exception):
    """Base class for rejected transcript commands."""
    pass


class AttemptNotFoundError(TranscriptError):
    """Raised when no attempt exists for a (semester, code) pair."""
    pass


class DuplicateAttemptError(TranscriptError):
    """Raised when a course is added twice to the same semester."""
    pass


class FinalizedAttemptError(TranscriptError):
    """Raised when deleting an attempt that already has a final grade."""
    def __init__(self, message: str, attempt: TranscriptAttempt):
        super().__init__(message)
        self.attempt = attempt


class InvalidGradeError(TranscriptError):
    """Raised when a grade edit uses a token outside the grade scale."""
    pass


def placeholder_attempt(semester: str) -> TranscriptAttempt:
    """Row that makes an otherwise empty planned semester visible"""
    return TranscriptAttempt(
        semester=semester,
        code=PLACEHOLDER_CODE,
        name=PLACEHOLDER_NAME,
        credits="0",
        grade=PLANNED_GRADE
    )


def is_planned_semester(label: str, attempts: Iterable[TranscriptAttempt]) -> bool:
    """A semester planned ahead: named "... Planı" or holding only the placeholder"""
    if PLANNED_SUFFIX in label:
        return True
    rows = [a for a in attempts if a.semester == label]
    return len(rows) == 1 and rows[0].code == PLACEHOLDER_CODE


def current_semester(attempts: Iterable[TranscriptAttempt]) -> Optional[str]:
    """Most recent semester that is not a planned one"""
    attempts = list(attempts)
    for label in unique_semesters(attempts, descending=True):
        if not is_planned_semester(label, attempts):
            return label
    return None


@dataclass(frozen=True)
class TranscriptState:
    """Immutable snapshot of the working transcript and plan"""
    attempts: Tuple[TranscriptAttempt, ...] = ()
    plan: Plan = ()
    saved_attempts: Tuple[TranscriptAttempt, ...] = ()
    saved_plan: Plan = ()
    version: int = 0
    selected_semester: Optional[str] = None

    @classmethod
    def loaded(cls, attempts: Iterable[TranscriptAttempt], plan: Plan, version: int = 0) -> "TranscriptState":
        """State for freshly loaded data: clean, with the current semester selected"""
        attempts = tuple(attempts)
        plan = tuple(plan)
        return cls(
            attempts=attempts,
            plan=plan,
            saved_attempts=attempts,
            saved_plan=plan,
            version=version,
            selected_semester=current_semester(attempts)
        )

    @property
    def dirty(self) -> bool:
        return self.attempts != self.saved_attempts or self.plan != self.saved_plan

    @property
    def semesters(self) -> List[str]:
        """Semester labels, most recent first"""
        return unique_semesters(self.attempts, descending=True)

    def _next(self, **changes) -> "TranscriptState":
        return replace(self, version=self.version + 1, **changes)

    def find(self, semester: str, code: str) -> Optional[TranscriptAttempt]:
        for attempt in self.attempts:
            if attempt.semester == semester and attempt.code == code:
                return attempt
        return None

    def _require(self, semester: str, code: str) -> TranscriptAttempt:
        attempt = self.find(semester, code)
        if attempt is None:
            raise AttemptNotFoundError(f"No attempt of {code} in {semester}")
        return attempt

    def _replace_attempt(self, old: TranscriptAttempt, new: TranscriptAttempt) -> "TranscriptState":
        attempts = tuple(new if a is old else a for a in self.attempts)
        return self._next(attempts=attempts)

    # --- Attempt commands ---

    def add_attempt(self, semester: str, code: str, name: str, credits: str) -> "TranscriptState":
        """Add a planned ("--") attempt of a course to a semester"""
        if self.find(semester, code) is not None:
            raise DuplicateAttemptError(f"{code} is already in {semester}")
        attempt = TranscriptAttempt(
            semester=semester,
            code=code,
            name=name,
            credits=credits,
            grade=PLANNED_GRADE
        )
        return self._next(attempts=self.attempts + (attempt,))

    def delete_attempt(self, semester: str, code: str) -> "TranscriptState":
        """Remove an attempt; only attempts still graded "--" can be removed"""
        attempt = self._require(semester, code)
        if not attempt.is_planned:
            raise FinalizedAttemptError(
                f"{code} in {semester} has grade {attempt.grade} and cannot be deleted",
                attempt
            )
        attempts = tuple(a for a in self.attempts if a is not attempt)
        return self._next(attempts=attempts)

    def set_grade(self, semester: str, code: str, grade: str) -> "TranscriptState":
        grade = (grade or "").strip()
        if not is_valid_grade(grade):
            raise InvalidGradeError(f"Invalid grade: {grade!r}")
        attempt = self._require(semester, code)
        return self._replace_attempt(attempt, replace(attempt, grade=grade))

    def set_session(self, semester: str, code: str, session_id: Optional[str]) -> "TranscriptState":
        """Record the lesson chosen for an attempt; None clears it"""
        attempt = self._require(semester, code)
        return self._replace_attempt(attempt, replace(attempt, session_id=session_id or None))

    def append_attempts(self, attempts: Iterable[TranscriptAttempt]) -> "TranscriptState":
        """Append uploaded rows; attempts are never deduplicated"""
        return self._next(attempts=self.attempts + tuple(attempts))

    # --- Semester commands ---

    def select_semester(self, semester: Optional[str]) -> "TranscriptState":
        return self._next(selected_semester=semester)

    def add_semester(self) -> "TranscriptState":
        """
        Append the term after the latest semester, held open by a placeholder row.

        Raises:
            TranscriptError: If the latest semester label cannot be parsed
        """
        labels = unique_semesters(self.attempts)
        latest = labels[-1] if labels else None
        label = SemesterManager.next_label(latest)
        if label is None:
            raise TranscriptError(f"Cannot determine the term after {latest!r}")
        return self._next(attempts=self.attempts + (placeholder_attempt(label),))

    def delete_semester(self, semester: str) -> "TranscriptState":
        """
        Remove every row of a semester whose rows are all still planned.

        A deleted selected semester moves the selection to the previous one.
        """
        rows = [a for a in self.attempts if a.semester == semester]
        if not rows:
            raise AttemptNotFoundError(f"No semester named {semester}")
        for row in rows:
            if not row.is_planned:
                raise FinalizedAttemptError(
                    f"{semester} contains graded course {row.code} and cannot be deleted",
                    row
                )

        selected = self.selected_semester
        if selected == semester:
            labels = unique_semesters(self.attempts)
            index = labels.index(semester)
            selected = labels[index - 1] if index > 0 else None

        attempts = tuple(a for a in self.attempts if a.semester != semester)
        return self._next(attempts=attempts, selected_semester=selected)

    # --- Persistence bookkeeping ---

    def replace_plan(self, plan: Plan) -> "TranscriptState":
        return self._next(plan=tuple(plan))

    def clear_attempts(self) -> "TranscriptState":
        return self._next(attempts=(), selected_semester=None)

    def mark_saved(self, attempts: bool = True, plan: bool = True) -> "TranscriptState":
        """Record the working copy as persisted"""
        return replace(
            self,
            saved_attempts=self.attempts if attempts else self.saved_attempts,
            saved_plan=self.plan if plan else self.saved_plan
        )
