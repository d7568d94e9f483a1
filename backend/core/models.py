"""
Record types shared by the evaluation engines, the stores and the API.

All records are immutable so that transcripts and plans can be used as
memoization keys. Wire dictionaries use the field names of the transcript
parsing service (``sessionId`` rather than ``session_id``).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

PLANNED_GRADE = "--"


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


@dataclass(frozen=True)
class TranscriptAttempt:
    """One recorded attempt of a course in a semester."""
    semester: str
    code: str
    name: str
    credits: str
    grade: str = PLANNED_GRADE
    session_id: Optional[str] = None

    @property
    def is_planned(self) -> bool:
        return self.grade == PLANNED_GRADE

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "semester": self.semester,
            "code": self.code,
            "name": self.name,
            "credits": self.credits,
            "grade": self.grade,
        }
        if self.session_id is not None:
            data["sessionId"] = self.session_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranscriptAttempt":
        """Build an attempt from a wire row. Never raises on missing fields."""
        session_id = data.get("sessionId", data.get("session_id"))
        return cls(
            semester=_text(data.get("semester")),
            code=_text(data.get("code")),
            name=_text(data.get("name")),
            credits=_text(data.get("credits"), "0"),
            grade=_text(data.get("grade")) or PLANNED_GRADE,
            session_id=_text(session_id) if session_id not in (None, "") else None,
        )


@dataclass(frozen=True)
class CourseSlot:
    """A fixed course in a plan semester."""
    code: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "course", "code": self.code}


@dataclass(frozen=True)
class ElectiveSlot:
    """An elective category filled by one of several eligible course codes."""
    name: str
    category: str
    options: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "elective",
            "name": self.name,
            "category": self.category,
            "options": list(self.options),
        }


PlanSlot = Union[CourseSlot, ElectiveSlot]
Semester = Tuple[PlanSlot, ...]
Plan = Tuple[Semester, ...]


def plan_to_list(plan: Plan) -> List[List[Dict[str, Any]]]:
    """Serialize a plan to nested lists of slot dictionaries."""
    return [[slot.to_dict() for slot in semester] for semester in plan]


def iter_electives(plan: Plan):
    """Yield every elective slot in plan order (semester by semester, left to right)."""
    for semester in plan:
        for slot in semester:
            if isinstance(slot, ElectiveSlot):
                yield slot


@dataclass(frozen=True)
class PrerequisiteCourse:
    code: str
    min: str


@dataclass(frozen=True)
class PrerequisiteGroup:
    """Courses of one group are alternatives; every group must be met."""
    group: int
    courses: Tuple[PrerequisiteCourse, ...] = ()


@dataclass(frozen=True)
class CourseInfo:
    """Course catalog entry."""
    code: str
    name: str
    credits: str = "0"
    prerequisites: Tuple[PrerequisiteGroup, ...] = ()


@dataclass(frozen=True)
class LessonSession:
    location: str
    day: str
    time: str
    room: str


@dataclass(frozen=True)
class Lesson:
    """A timetable offering (section) of a course."""
    lesson_id: str
    course_code: str
    delivery_mode: str
    instructor: str
    capacity: str = ""
    enrolled: str = ""
    sessions: Tuple[LessonSession, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lesson_id": self.lesson_id,
            "course_code": self.course_code,
            "delivery_mode": self.delivery_mode,
            "instructor": self.instructor,
            "capacity": self.capacity,
            "enrolled": self.enrolled,
            "sessions": [
                {"location": s.location, "day": s.day, "time": s.time, "room": s.room}
                for s in self.sessions
            ],
        }


@dataclass(frozen=True)
class SelectedLesson:
    """A lesson the user picked on the calendar for one of their courses."""
    course_code: str
    lesson_id: str
    session: LessonSession
    instructor: str
    delivery_mode: str
