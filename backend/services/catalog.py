"""
Static Reference Catalogs

Read-only data shipped with the backend:
- plans.json:        faculty -> program -> period -> semesters of slots
- courses.json:      course catalog with prerequisite groups
- equivalences.json: course code -> interchangeable codes
- lessons.json:      timetable offerings for the session calendar

Each file is read once. A missing or unreadable file yields an empty
catalog and a warning rather than an exception.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.config import CATALOG_DIR
from core.models import (
    CourseInfo,
    Lesson,
    LessonSession,
    Plan,
    PrerequisiteCourse,
    PrerequisiteGroup,
)
from core.parsers import normalize_course_code, parse_slot


PLANS_FILE = "plans.json"
COURSES_FILE = "courses.json"
EQUIVALENCES_FILE = "equivalences.json"
LESSONS_FILE = "lessons.json"


def load_json_file(path: Path) -> Optional[Any]:
    """Load a JSON document, returning None when it is missing or malformed"""
    if not path.exists():
        print(f"Warning: catalog file not found: {path}")
        return None

    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        print(f"Warning: could not read catalog file {path}: {e}")
        return None


# Plan coercion

def _coerce_semester(raw: Any, index: int) -> tuple:
    """Turn one raw semester entry into a tuple of slots"""
    if isinstance(raw, list):
        items = raw
    elif isinstance(raw, dict) and isinstance(raw.get("courses"), list):
        print(f"[PLAN] Semester {index + 1} is an object with 'courses'; unwrapping")
        items = raw["courses"]
    elif isinstance(raw, dict) and isinstance(raw.get("items"), list):
        items = raw["items"]
    elif isinstance(raw, dict) and raw.get("type") in ("course", "elective"):
        print(f"[PLAN] Semester {index + 1} is a single slot; wrapping")
        items = [raw]
    else:
        print(f"[PLAN] Semester {index + 1} has unsupported shape {type(raw).__name__}; using empty semester")
        return ()

    slots = []
    for item in items:
        slot = parse_slot(item)
        if slot is None:
            print(f"[PLAN] Dropping unrecognised item in semester {index + 1}: {item!r}")
            continue
        slots.append(slot)
    return tuple(slots)


def coerce_plan(raw: Any) -> Plan:
    """
    Coerce a plan from the template catalog or the plan store.

    A plan that is not a list becomes empty. Semesters are coerced one by
    one (see _coerce_semester); malformed entries are logged and repaired
    or dropped, never raised.
    """
    if not isinstance(raw, list):
        if raw is not None:
            print(f"[PLAN] Plan is not a list ({type(raw).__name__}); using empty plan")
        return ()
    return tuple(_coerce_semester(semester, index) for index, semester in enumerate(raw))


# Plan templates

class PlanCatalog:
    """Plan templates keyed by (faculty, program, period)"""

    def __init__(self, data: Optional[Dict[str, Any]] = None, path: Optional[Path] = None):
        self._path = path or CATALOG_DIR / PLANS_FILE
        self._data = data
        self._loaded = data is not None

    def _ensure_loaded(self):
        if not self._loaded:
            data = load_json_file(self._path)
            self._data = data if isinstance(data, dict) else {"faculties": []}
            self._loaded = True

    def _faculties(self) -> List[Dict[str, Any]]:
        self._ensure_loaded()
        faculties = self._data.get("faculties", [])
        return faculties if isinstance(faculties, list) else []

    def list_options(self) -> List[Dict[str, Any]]:
        """Faculty, program and period names for the plan selection view"""
        options = []
        for faculty in self._faculties():
            programs = []
            for program in faculty.get("programs", []) or []:
                programs.append({
                    "name": program.get("name", ""),
                    "periods": [p.get("name", "") for p in program.get("periods", []) or []]
                })
            options.append({"name": faculty.get("name", ""), "programs": programs})
        return options

    def get_plan(self, faculty: str, program: str, period: str) -> Optional[Plan]:
        """Coerced plan for a template, or None when the template does not exist"""
        for fac in self._faculties():
            if fac.get("name") != faculty:
                continue
            for prog in fac.get("programs", []) or []:
                if prog.get("name") != program:
                    continue
                for per in prog.get("periods", []) or []:
                    if per.get("name") == period:
                        return coerce_plan(per.get("semesters"))
        return None


# Course catalog

def _parse_course_info(raw: Dict[str, Any]) -> CourseInfo:
    groups = []
    for index, group in enumerate(raw.get("prerequisites") or []):
        if not isinstance(group, dict):
            continue
        courses = tuple(
            PrerequisiteCourse(code=str(c.get("code", "")), min=str(c.get("min", "")))
            for c in group.get("courses") or []
            if isinstance(c, dict)
        )
        groups.append(PrerequisiteGroup(group=int(group.get("group", index + 1)), courses=courses))

    return CourseInfo(
        code=str(raw.get("code", "")),
        name=str(raw.get("name", "")),
        credits=str(raw.get("credits", "0")),
        prerequisites=tuple(groups)
    )


class CourseCatalog:
    """Course names, credits and prerequisite groups"""

    def __init__(self, courses: Optional[List[Dict[str, Any]]] = None, path: Optional[Path] = None):
        self._path = path or CATALOG_DIR / COURSES_FILE
        self._by_code: Dict[str, CourseInfo] = {}
        self._by_normalized: Dict[str, CourseInfo] = {}
        self._loaded = False
        if courses is not None:
            self._index(courses)

    def _index(self, courses: Any):
        if not isinstance(courses, list):
            courses = []
        for raw in courses:
            if not isinstance(raw, dict) or not raw.get("code"):
                continue
            info = _parse_course_info(raw)
            self._by_code.setdefault(info.code, info)
            self._by_normalized.setdefault(normalize_course_code(info.code), info)
        self._loaded = True

    def _ensure_loaded(self):
        if not self._loaded:
            self._index(load_json_file(self._path))
            print(f"Loaded {len(self._by_code)} courses with prerequisite data")

    def get(self, code: str) -> Optional[CourseInfo]:
        """Catalog entry by exact code, then whitespace-insensitive code"""
        self._ensure_loaded()
        info = self._by_code.get(code)
        if info is None:
            info = self._by_normalized.get(normalize_course_code(code))
        return info

    def all(self) -> List[CourseInfo]:
        self._ensure_loaded()
        return list(self._by_code.values())


# Equivalence table

def load_equivalence_table(path: Optional[Path] = None) -> Dict[str, List[str]]:
    """Course code -> list of interchangeable codes"""
    data = load_json_file(path or CATALOG_DIR / EQUIVALENCES_FILE)
    if not isinstance(data, dict):
        return {}
    table = {}
    for key, alts in data.items():
        if isinstance(alts, str):
            alts = [alts]
        if isinstance(alts, list):
            table[str(key)] = [str(alt) for alt in alts]
    return table


# Lessons

def _parse_lesson(raw: Dict[str, Any]) -> Lesson:
    sessions = tuple(
        LessonSession(
            location=str(s.get("location", "")),
            day=str(s.get("day", "")),
            time=str(s.get("time", "")),
            room=str(s.get("room", ""))
        )
        for s in raw.get("sessions") or []
        if isinstance(s, dict)
    )
    return Lesson(
        lesson_id=str(raw.get("lesson_id", "")),
        course_code=str(raw.get("course_code", "")),
        delivery_mode=str(raw.get("delivery_mode", "")),
        instructor=str(raw.get("instructor", "")),
        capacity=str(raw.get("capacity", "")),
        enrolled=str(raw.get("enrolled", "")),
        sessions=sessions
    )


class LessonCatalog:
    """Timetable offerings, looked up by course or lesson id"""

    def __init__(self, lessons: Optional[List[Dict[str, Any]]] = None, path: Optional[Path] = None):
        self._path = path or CATALOG_DIR / LESSONS_FILE
        self._lessons: List[Lesson] = []
        self._loaded = False
        if lessons is not None:
            self._index(lessons)

    def _index(self, lessons: Any):
        if isinstance(lessons, list):
            self._lessons = [_parse_lesson(raw) for raw in lessons if isinstance(raw, dict)]
        self._loaded = True

    def _ensure_loaded(self):
        if not self._loaded:
            self._index(load_json_file(self._path))

    def lessons_for(self, course_code: str) -> List[Lesson]:
        self._ensure_loaded()
        normalized = normalize_course_code(course_code)
        return [l for l in self._lessons if normalize_course_code(l.course_code) == normalized]

    def find(self, lesson_id: str) -> Optional[Lesson]:
        self._ensure_loaded()
        for lesson in self._lessons:
            if lesson.lesson_id == lesson_id:
                return lesson
        return None


@dataclass
class Catalogs:
    """All static reference data used by the planner"""
    plans: PlanCatalog
    courses: CourseCatalog
    equivalences: Dict[str, List[str]]
    lessons: LessonCatalog


_catalogs: Optional[Catalogs] = None


def get_catalogs() -> Catalogs:
    """Process-wide catalogs loaded from CATALOG_DIR"""
    global _catalogs
    if _catalogs is None:
        _catalogs = Catalogs(
            plans=PlanCatalog(),
            courses=CourseCatalog(),
            equivalences=load_equivalence_table(),
            lessons=LessonCatalog()
        )
    return _catalogs
