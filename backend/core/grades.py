"""
Grade Semantics

Letter grades of the registrar scale, lowest to highest:

    FF, FD, VF, DD, DD+, DC, DC+, CC, CC+, CB, CB+, BB, BB+, BA, BA+, AA, BL

"--" marks a planned / in-progress attempt. A trailing "*" marks a
speculative grade (assumed, not yet final); the marker is ignored when
comparing grades. "?" is the assumed-passed token an in-progress attempt
resolves to once the selected semester is past it; it ranks like CC.
"""

from typing import Dict, Optional

from .models import PLANNED_GRADE, TranscriptAttempt
from .semester import SemesterManager

GRADE_SCALE = (
    "FF", "FD", "VF", "DD", "DD+", "DC", "DC+", "CC",
    "CC+", "CB", "CB+", "BB", "BB+", "BA", "BA+", "AA", "BL",
)

FAILING_GRADES = frozenset({"FF", "FD", "VF"})
CONDITIONAL_GRADES = frozenset({"DD", "DD+", "DC", "DC+"})
PASSING_GRADES = frozenset(GRADE_SCALE) - FAILING_GRADES

SPECULATIVE_MARKER = "*"
ASSUMED_PASSED = "?"
ASSUMED_PASSED_EQUIVALENT = "CC"

GRADE_POINTS: Dict[str, float] = {
    "AA": 4.00,
    "BA+": 3.75,
    "BA": 3.50,
    "BB+": 3.25,
    "BB": 3.00,
    "CB+": 2.75,
    "CB": 2.50,
    "CC+": 2.25,
    "CC": 2.00,
    "DC+": 1.75,
    "DC": 1.50,
    "DD+": 1.25,
    "DD": 1.00,
    "FD": 0.50,
    "FF": 0.00,
    "VF": 0.00,
    "BL": 0.00,
}

_RANKS = {grade: index for index, grade in enumerate(GRADE_SCALE)}


def is_speculative(grade: Optional[str]) -> bool:
    return bool(grade) and grade != PLANNED_GRADE and grade.endswith(SPECULATIVE_MARKER)


def strip_marker(grade: Optional[str]) -> str:
    """Grade without its speculative marker ("CC*" -> "CC")"""
    grade = (grade or "").strip()
    if is_speculative(grade):
        return grade.rstrip(SPECULATIVE_MARKER)
    return grade


def grade_rank(grade: Optional[str]) -> int:
    """Position on the scale; the assumed-passed token ranks as CC; unknown is -1"""
    base = strip_marker(grade)
    if base == ASSUMED_PASSED:
        base = ASSUMED_PASSED_EQUIVALENT
    return _RANKS.get(base, -1)


def is_valid_grade(grade: Optional[str]) -> bool:
    """Accepts scale grades, scale grades with the marker, and the planned sentinel"""
    if grade == PLANNED_GRADE:
        return True
    return strip_marker(grade) in _RANKS


def is_passing(grade: Optional[str]) -> bool:
    """DD and above plus BL; "--" is in progress and therefore not passing"""
    base = strip_marker(grade)
    return base == ASSUMED_PASSED or base in PASSING_GRADES


def is_failing(grade: Optional[str]) -> bool:
    return strip_marker(grade) in FAILING_GRADES


def grade_point(grade: Optional[str]) -> Optional[float]:
    """Grade point for GPA, None for grades that do not count toward GPA"""
    return GRADE_POINTS.get(strip_marker(grade))


def grade_status(grade: Optional[str]) -> str:
    """
    Display status of a grade.

    Returns:
        "passed", "conditional", "failed", "in_progress",
        "assumed_passed" or "unknown"
    """
    if not grade or grade == PLANNED_GRADE:
        return "in_progress"
    base = strip_marker(grade)
    if base == ASSUMED_PASSED:
        return "assumed_passed"
    if base in FAILING_GRADES:
        return "failed"
    if base in CONDITIONAL_GRADES:
        return "conditional"
    if base in PASSING_GRADES:
        return "passed"
    return "unknown"


def effective_grade(attempt: TranscriptAttempt, selected_semester: Optional[str]) -> str:
    """
    Grade to use for decisions as of the selected semester.

    - A recorded grade (with or without the speculative marker) is returned as-is.
    - A "--" attempt in the selected semester is still being taken: "--".
    - A "--" attempt in a semester strictly before the selected one is
      assumed passed: "?".
    - Anything else (later semester, incomparable labels) stays "--".
    """
    grade = (attempt.grade or "").strip() or PLANNED_GRADE
    if grade != PLANNED_GRADE:
        return grade

    if not selected_semester or attempt.semester == selected_semester:
        return PLANNED_GRADE

    if SemesterManager.is_after(selected_semester, attempt.semester):
        return ASSUMED_PASSED
    return PLANNED_GRADE


def meets_minimum(grade: Optional[str], minimum: Optional[str]) -> bool:
    """
    Whether a concrete grade meets a minimum grade.

    "--" and grades off the scale never meet a minimum. An unknown minimum
    ranks -1, so any grade on the scale meets it.
    """
    if not grade or grade == PLANNED_GRADE:
        return False
    rank = grade_rank(grade)
    if rank < 0:
        return False
    return rank >= grade_rank(minimum)
