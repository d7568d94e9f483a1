"""
Unit test fixtures
"""

import pytest
import sys
from pathlib import Path
from unittest.mock import MagicMock

# Add backend to path for imports
backend_dir = Path(__file__).parent.parent.parent
sys.path.insert(0, str(backend_dir))

from core.models import CourseSlot, ElectiveSlot, TranscriptAttempt
from services.catalog import Catalogs, CourseCatalog, LessonCatalog, PlanCatalog
from services.firebase import StoreResult


FALL_2023 = "2023-2024 Güz Dönemi"
SPRING_2024 = "2023-2024 Bahar Dönemi"
SUMMER_2024 = "2023-2024 Yaz Dönemi"
FALL_2024 = "2024-2025 Güz Dönemi"
SPRING_2025 = "2024-2025 Bahar Dönemi"


def attempt(semester, code, grade="--", credits="3", name=None, session_id=None):
    """Build a transcript attempt with sensible defaults"""
    return TranscriptAttempt(
        semester=semester,
        code=code,
        name=name or code,
        credits=credits,
        grade=grade,
        session_id=session_id
    )


@pytest.fixture
def make_attempt():
    return attempt


@pytest.fixture
def sample_transcript():
    """Two recorded terms and one in-progress term"""
    return [
        attempt(FALL_2023, "MAT 103E", "FF", "4"),
        attempt(FALL_2023, "BLG 101E", "BA", "3"),
        attempt(FALL_2023, "HSS 201E", "CC", "3"),
        attempt(SPRING_2024, "MAT 103E", "CB", "4"),
        attempt(SPRING_2024, "BLG 102E", "DD", "4"),
        attempt(FALL_2024, "BLG 210E", "--", "3"),
    ]


@pytest.fixture
def sample_plan():
    return (
        (
            CourseSlot("MAT 103E"),
            CourseSlot("BLG 101E"),
            ElectiveSlot("Seçmeli Sosyal 1", "Sosyal", ("HSS 201E", "HSS 202E")),
        ),
        (
            CourseSlot("BLG 102E"),
            CourseSlot("BLG 210E"),
        ),
        (
            CourseSlot("BLG 223E"),
            ElectiveSlot("Seçmeli Teknik 1", "Teknik", ("BLG 311E", "BLG 312E")),
        ),
    )


@pytest.fixture
def sample_courses():
    """Course catalog rows with prerequisite groups"""
    return [
        {"code": "MAT 103E", "name": "Mathematics I", "credits": "4", "prerequisites": []},
        {"code": "BLG 101E", "name": "Introduction to Information Systems", "credits": "3"},
        {"code": "BLG 102E", "name": "Scientific Computation", "credits": "4",
         "prerequisites": [{"group": 1, "courses": [{"code": "BLG 101E", "min": "DD"}]}]},
        {"code": "BLG 210E", "name": "Data Structures", "credits": "3",
         "prerequisites": [{"group": 1, "courses": [{"code": "BLG 102E", "min": "DD"}]}]},
        {"code": "BLG 223E", "name": "Algorithms", "credits": "3",
         "prerequisites": [
             {"group": 1, "courses": [{"code": "BLG 210E", "min": "DD"}]},
             {"group": 2, "courses": [{"code": "MAT 103E", "min": "CC"}]},
         ]},
        {"code": "BLG 312E", "name": "Operating Systems", "credits": "3",
         "prerequisites": [{"group": 1, "courses": [{"code": "BLG 210E", "min": "CC"}]}]},
    ]


@pytest.fixture
def sample_plan_data():
    """Plan template catalog document"""
    return {
        "faculties": [
            {
                "name": "Bilgisayar ve Bilişim Fakültesi",
                "programs": [
                    {
                        "name": "Bilgisayar Mühendisliği",
                        "periods": [
                            {
                                "name": "2021-2022 ve Sonrası",
                                "semesters": [
                                    [
                                        {"type": "course", "code": "MAT 103E"},
                                        {"type": "elective", "data": {
                                            "name": "Seçmeli Sosyal 1",
                                            "category": "Sosyal",
                                            "options": ["HSS 201E", "HSS 202E"]
                                        }}
                                    ],
                                    [
                                        {"type": "course", "code": "BLG 102E"}
                                    ]
                                ]
                            }
                        ]
                    }
                ]
            }
        ]
    }


@pytest.fixture
def sample_lessons():
    return [
        {"lesson_id": "21450", "course_code": "BLG 210E", "delivery_mode": "Yüz yüze",
         "instructor": "Ayşe Yılmaz", "capacity": "80", "enrolled": "74",
         "sessions": [{"location": "Ayazağa", "day": "Pazartesi", "time": "0830/1129", "room": "EEB 5202"}]},
        {"lesson_id": "20115", "course_code": "MAT 281E", "delivery_mode": "Yüz yüze",
         "instructor": "Ali Şahin", "capacity": "60", "enrolled": "41",
         "sessions": [{"location": "Ayazağa", "day": "Cuma", "time": "0830/1029", "room": "FEB 1101"}]},
    ]


@pytest.fixture
def catalogs(sample_plan_data, sample_courses, sample_lessons):
    """In-memory catalogs; nothing is read from disk"""
    return Catalogs(
        plans=PlanCatalog(data=sample_plan_data),
        courses=CourseCatalog(courses=sample_courses),
        equivalences={"FIZ 101E": ["FIZ 101"], "MAT 103E": ["MAT 101E"]},
        lessons=LessonCatalog(lessons=sample_lessons)
    )


@pytest.fixture
def mock_transcript_store():
    store = MagicMock()
    store.get.return_value = ([], False)
    store.put.return_value = StoreResult(ok=True, message="Transcript stored")
    store.delete.return_value = StoreResult(ok=True, message="Transcript deleted")
    return store


@pytest.fixture
def mock_plan_store():
    store = MagicMock()
    store.get.return_value = ((), False)
    store.put.return_value = StoreResult(ok=True, message="Plan stored")
    store.delete.return_value = StoreResult(ok=True, message="Plan deleted")
    return store
