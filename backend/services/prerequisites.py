"""
Prerequisite Engine Service

Decides whether a course's prerequisites are met by a transcript as of a
selected semester.

A course's prerequisites are a list of groups. Courses inside a group are
alternatives (OR); every group must be met (AND). A prerequisite course is
met when the latest attempt of the transcript course it resolves to has an
effective grade at or above the required minimum.
"""

from typing import List, Dict, Any, Iterable, Optional, Sequence

from core.grades import effective_grade, meets_minimum
from core.models import PrerequisiteGroup, TranscriptAttempt
from core.semester import SemesterManager
from services.catalog import CourseCatalog, get_catalogs
from services.equivalence import EquivalenceResolver


def latest_attempt(transcript: Sequence[TranscriptAttempt], code: str) -> Optional[TranscriptAttempt]:
    """
    Chronologically latest attempt of a course code.

    Attempts with the same semester order are resolved in favour of the one
    that appears later in the transcript.
    """
    latest = None
    for attempt in transcript:
        if attempt.code != code:
            continue
        if latest is None or SemesterManager.sort_key(attempt.semester) >= SemesterManager.sort_key(latest.semester):
            latest = attempt
    return latest


class PrerequisiteEngine:
    """
    Engine for evaluating course prerequisites against a transcript.

    Features:
    - Prerequisite groups looked up in the course catalog (loaded lazily)
    - Equivalence-aware matching of prerequisite codes to transcript rows
    - In-progress attempts in earlier semesters assumed passed
    - Per-group report of what is still missing
    """

    def __init__(
        self,
        catalog: Optional[CourseCatalog] = None,
        resolver: Optional[EquivalenceResolver] = None
    ):
        self._catalog = catalog
        self._resolver = resolver

    @property
    def catalog(self) -> CourseCatalog:
        if self._catalog is None:
            self._catalog = get_catalogs().courses
        return self._catalog

    @property
    def resolver(self) -> EquivalenceResolver:
        if self._resolver is None:
            self._resolver = EquivalenceResolver(get_catalogs().equivalences)
        return self._resolver

    def get_prerequisites(self, course_code: str) -> List[PrerequisiteGroup]:
        """Prerequisite groups of a course, empty when the course is unknown"""
        info = self.catalog.get(course_code)
        if info is None:
            return []
        return list(info.prerequisites)

    def is_satisfied(
        self,
        prereq_code: str,
        min_grade: str,
        transcript: Sequence[TranscriptAttempt],
        selected_semester: Optional[str],
        sibling_codes: Iterable[str] = ()
    ) -> bool:
        """
        Check a single prerequisite course.

        Args:
            prereq_code: Required course code
            min_grade: Minimum grade for the requirement
            transcript: Attempts considered (usually filtered up to the
                selected semester)
            selected_semester: Point on the plan timeline
            sibling_codes: Other codes of the same group; never matched
                through equivalences so a group cannot satisfy itself

        Returns:
            True if the requirement is met
        """
        resolved = self.resolver.resolve(prereq_code, transcript, exclude=sibling_codes)
        if resolved is None:
            return False

        attempt = latest_attempt(transcript, resolved.code) or resolved
        grade = effective_grade(attempt, selected_semester)
        return meets_minimum(grade, min_grade)

    def is_group_satisfied(
        self,
        group: PrerequisiteGroup,
        transcript: Sequence[TranscriptAttempt],
        selected_semester: Optional[str]
    ) -> bool:
        """True if any course of the group is satisfied; an empty group never is"""
        codes = [course.code for course in group.courses]
        for course in group.courses:
            siblings = [code for code in codes if code != course.code]
            if self.is_satisfied(course.code, course.min, transcript, selected_semester, siblings):
                return True
        return False

    def has_unsatisfied_prerequisites(
        self,
        course_code: str,
        transcript: Sequence[TranscriptAttempt],
        selected_semester: Optional[str]
    ) -> bool:
        """True if the course has prerequisite groups and at least one is unmet"""
        for group in self.get_prerequisites(course_code):
            if not self.is_group_satisfied(group, transcript, selected_semester):
                return True
        return False

    def missing_prerequisites(
        self,
        course_code: str,
        transcript: Sequence[TranscriptAttempt],
        selected_semester: Optional[str]
    ) -> List[Dict[str, Any]]:
        """
        Unmet prerequisite groups of a course.

        Returns:
            One entry per unmet group:
            {"group": 1, "options": [{"code": "MAT 103", "min": "DD"}, ...]}
        """
        missing = []
        for group in self.get_prerequisites(course_code):
            if self.is_group_satisfied(group, transcript, selected_semester):
                continue
            missing.append({
                "group": group.group,
                "options": [{"code": c.code, "min": c.min} for c in group.courses]
            })
        return missing


# Singleton instance
_prerequisite_engine: Optional[PrerequisiteEngine] = None


def get_prerequisite_engine() -> PrerequisiteEngine:
    """Get singleton instance of PrerequisiteEngine"""
    global _prerequisite_engine
    if _prerequisite_engine is None:
        _prerequisite_engine = PrerequisiteEngine()
    return _prerequisite_engine
