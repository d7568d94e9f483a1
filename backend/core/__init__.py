from .config import get_firestore_client, initialize_firebase, FIREBASE_CONFIG
from .semester import SemesterManager, sort_semesters, unique_semesters
from .grades import effective_grade, grade_point, grade_rank, is_passing, meets_minimum
from .models import (
    TranscriptAttempt,
    CourseSlot,
    ElectiveSlot,
    PrerequisiteGroup,
    PrerequisiteCourse,
    CourseInfo,
    Lesson,
    LessonSession,
    SelectedLesson
)
from .parsers import parse_credits, normalize_course_code, parse_slot
from .auth import (
    AuthenticatedUser,
    get_current_user,
    validate_email_domain,
    ALLOWED_EMAIL_DOMAIN
)
