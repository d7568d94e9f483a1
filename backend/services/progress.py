"""
Progress Aggregator

Credits, GPA and class standing as of a selected semester.

Only the latest attempt of each course counts: an earlier failed attempt of
a retaken course contributes neither credits nor GPA.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, List, Optional, Sequence

from core.grades import effective_grade, grade_point, grade_status, is_passing
from core.models import TranscriptAttempt
from core.parsers import parse_credits
from core.semester import SemesterManager


class ClassStanding(Enum):
    """Year level derived from earned credits"""
    YEAR1 = "year1"
    YEAR2 = "year2"
    YEAR3 = "year3"
    YEAR4 = "year4"


# Upper credit bounds (exclusive) for each standing below year 4
STANDING_THRESHOLDS = (
    (30, ClassStanding.YEAR1),
    (60, ClassStanding.YEAR2),
    (95, ClassStanding.YEAR3),
)


@dataclass
class ProgressSummary:
    """Progress metrics as of one semester"""
    total_credits: float = 0.0
    gpa: float = 0.0
    class_standing: ClassStanding = ClassStanding.YEAR1
    completed_course_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalCredits": self.total_credits,
            "gpa": self.gpa,
            "classStanding": self.class_standing.value,
            "completedCourseCount": self.completed_course_count
        }


def round_half_up(value: float, digits: int) -> float:
    """Round like the dashboard display does (halves go up)"""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def class_standing_for(credits: float) -> ClassStanding:
    for limit, standing in STANDING_THRESHOLDS:
        if credits < limit:
            return standing
    return ClassStanding.YEAR4


def transcript_up_to(
    transcript: Sequence[TranscriptAttempt],
    selected_semester: Optional[str]
) -> List[TranscriptAttempt]:
    """
    Attempts in semesters at or before the selected one.

    Returns an empty list when nothing is selected or when the selected
    label does not occur in the transcript.
    """
    if not selected_semester:
        return []

    labels = {attempt.semester for attempt in transcript}
    if selected_semester not in labels:
        return []

    return [
        attempt for attempt in transcript
        if attempt.semester == selected_semester
        or SemesterManager.is_at_or_before(attempt.semester, selected_semester)
    ]


def latest_attempts(transcript: Sequence[TranscriptAttempt]) -> List[TranscriptAttempt]:
    """Latest attempt per course code, in order of first appearance"""
    latest: Dict[str, TranscriptAttempt] = {}
    for attempt in transcript:
        current = latest.get(attempt.code)
        if current is None or SemesterManager.sort_key(attempt.semester) >= SemesterManager.sort_key(current.semester):
            latest[attempt.code] = attempt
    return list(latest.values())


def compute_progress(
    transcript: Sequence[TranscriptAttempt],
    selected_semester: Optional[str]
) -> ProgressSummary:
    """
    Compute progress metrics.

    Args:
        transcript: Full transcript
        selected_semester: Semester the metrics are computed for

    Returns:
        ProgressSummary; all zeros when the semester is not in the transcript
    """
    filtered = transcript_up_to(transcript, selected_semester)
    completed = [a for a in latest_attempts(filtered) if a.grade]

    passed = [
        attempt for attempt in completed
        if is_passing(effective_grade(attempt, selected_semester))
    ]

    total_credits = sum(parse_credits(attempt.credits) for attempt in passed)

    total_points = 0.0
    graded_credits = 0.0
    for attempt in completed:
        point = grade_point(attempt.grade)
        if point is None:
            continue
        credits = parse_credits(attempt.credits)
        total_points += point * credits
        graded_credits += credits

    gpa = total_points / graded_credits if graded_credits > 0 else 0.0

    return ProgressSummary(
        total_credits=round_half_up(total_credits, 1),
        gpa=round_half_up(gpa, 2),
        class_standing=class_standing_for(total_credits),
        completed_course_count=len(passed)
    )


def semester_stats(transcript: Sequence[TranscriptAttempt], semester: str) -> Dict[str, Any]:
    """
    Summary of a single semester's rows.

    Returns:
        Dictionary with total_courses, total_credits, passed, failed and
        in_progress counts. Conditional grades count as passed.
    """
    rows = [attempt for attempt in transcript if attempt.semester == semester]
    statuses = [grade_status(attempt.grade) for attempt in rows]
    return {
        "semester": semester,
        "total_courses": len(rows),
        "total_credits": round_half_up(sum(parse_credits(a.credits) for a in rows), 1),
        "passed": sum(1 for s in statuses if s in ("passed", "conditional")),
        "failed": sum(1 for s in statuses if s == "failed"),
        "in_progress": sum(1 for s in statuses if s == "in_progress")
    }
