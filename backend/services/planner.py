"""
Degree Planner Service

Controller for one signed-in user: owns the working TranscriptState, talks
to the stores and the transcript parser, and evaluates the plan overview
(course statuses, elective assignment, progress) for a selected semester.

Store and parser failures never discard the working state; the user can
retry the action that failed.
"""

from typing import List, Dict, Any, Optional, Tuple

from core.grades import effective_grade, grade_status, is_speculative
from core.models import (
    CourseSlot,
    ElectiveSlot,
    PlanSlot,
    SelectedLesson,
    TranscriptAttempt,
    plan_to_list,
)
from core.semester import SemesterManager
from services.catalog import Catalogs, get_catalogs
from services.electives import ElectiveAssignment
from services.equivalence import EquivalenceResolver
from services.prerequisites import PrerequisiteEngine, latest_attempt
from services.progress import compute_progress, transcript_up_to
from services.transcript import TranscriptState, current_semester, is_planned_semester


class PlannerError(Exception):
    """Base class for planner flow failures."""
    pass


class TranscriptParseError(PlannerError):
    """Raised when the transcript parser rejects an upload."""
    pass


class EmptyTranscriptError(PlannerError):
    """Raised when an uploaded transcript contains no course rows."""
    pass


class StoreFailureError(PlannerError):
    """Raised when reading or writing the user's stored data fails."""
    pass


class PlanNotFoundError(PlannerError):
    """Raised when a plan template does not exist."""
    pass


class LessonNotFoundError(PlannerError):
    """Raised when a lesson does not exist or belongs to another course."""
    pass


class PlannerService:
    """Working state and flows of one user's degree planner."""

    def __init__(
        self,
        user_id: str,
        transcript_store,
        plan_store,
        parser=None,
        catalogs: Optional[Catalogs] = None
    ):
        self.user_id = user_id
        self.transcript_store = transcript_store
        self.plan_store = plan_store
        self.parser = parser
        self.catalogs = catalogs or get_catalogs()
        self.resolver = EquivalenceResolver(self.catalogs.equivalences)
        self.engine = PrerequisiteEngine(self.catalogs.courses, self.resolver)
        self.state = TranscriptState()
        self.needs_plan_selection = False
        self._overview_cache: Dict[Tuple[int, Optional[str]], Dict[str, Any]] = {}

    # --- Loading and persistence ---

    def load(self) -> TranscriptState:
        """
        Load the stored plan, then the stored transcript.

        A missing document starts empty; a missing plan also asks the user
        to pick a plan template.

        Raises:
            StoreFailureError: If a store read fails
        """
        try:
            plan, plan_found = self.plan_store.get(self.user_id)
        except Exception as e:
            print(f"[PLANNER] Error loading plan for {self.user_id}: {e}")
            raise StoreFailureError(f"Could not load plan: {e}")

        try:
            attempts, transcript_found = self.transcript_store.get(self.user_id)
        except Exception as e:
            print(f"[PLANNER] Error loading transcript for {self.user_id}: {e}")
            raise StoreFailureError(f"Could not load transcript: {e}")

        self.needs_plan_selection = not plan_found or not plan
        self.state = TranscriptState.loaded(attempts, plan, version=self.state.version + 1)
        print(f"[PLANNER] Loaded {len(attempts)} attempts and {len(plan)} plan semesters for {self.user_id}"
              f" (plan found: {plan_found}, transcript found: {transcript_found})")
        return self.state

    def _put_transcript(self):
        result = self.transcript_store.put(self.user_id, list(self.state.attempts))
        if not result.ok:
            raise StoreFailureError(f"Could not save transcript: {result.message}")
        self.state = self.state.mark_saved(attempts=True, plan=False)

    def _put_plan(self):
        result = self.plan_store.put(self.user_id, self.state.plan)
        if not result.ok:
            raise StoreFailureError(f"Could not save plan: {result.message}")
        self.state = self.state.mark_saved(attempts=False, plan=True)

    def save(self) -> TranscriptState:
        """
        Persist the working transcript, then the plan.

        Raises:
            StoreFailureError: If a write fails; unsaved changes stay dirty
        """
        self._put_transcript()
        self._put_plan()
        return self.state

    async def upload_transcript(self, file_bytes: bytes, parser=None) -> List[TranscriptAttempt]:
        """
        Parse an uploaded transcript and append its rows.

        Args:
            file_bytes: Raw PDF bytes
            parser: Parser to use instead of the one given at construction

        Returns:
            The parsed rows

        Raises:
            TranscriptParseError: Parser error text, verbatim
            EmptyTranscriptError: No course rows were found
            StoreFailureError: Rows were appended but could not be saved
        """
        parser = parser or self.parser
        if parser is None:
            raise TranscriptParseError("Transcript parser is not configured")

        result = await parser.parse(file_bytes)
        if result.error:
            print(f"[PLANNER] Transcript parse failed for {self.user_id}: {result.error}")
            raise TranscriptParseError(result.error)
        if not result.courses:
            raise EmptyTranscriptError("No courses found in the transcript")

        self.state = self.state.append_attempts(result.courses)
        if self.state.selected_semester is None:
            self.state = self.state.select_semester(current_semester(self.state.attempts))
        self._put_transcript()
        return list(result.courses)

    def reset_transcript(self) -> TranscriptState:
        """Delete the stored transcript and clear the working rows"""
        result = self.transcript_store.delete(self.user_id)
        if not result.ok:
            raise StoreFailureError(f"Could not delete transcript: {result.message}")
        self.state = self.state.clear_attempts().mark_saved(attempts=True, plan=False)
        return self.state

    # --- Plan ---

    def plan_options(self) -> List[Dict[str, Any]]:
        return self.catalogs.plans.list_options()

    def select_plan(self, faculty: str, program: str, period: str) -> TranscriptState:
        """
        Adopt a plan template and store it for the user.

        Raises:
            PlanNotFoundError: If the template does not exist
            StoreFailureError: If the plan could not be stored
        """
        plan = self.catalogs.plans.get_plan(faculty, program, period)
        if plan is None:
            raise PlanNotFoundError(f"No plan for {faculty} / {program} / {period}")

        self.state = self.state.replace_plan(plan)
        self._put_plan()
        self.needs_plan_selection = False
        return self.state

    def reset_plan(self) -> TranscriptState:
        """Delete the stored plan and ask for a new selection"""
        result = self.plan_store.delete(self.user_id)
        if not result.ok:
            raise StoreFailureError(f"Could not delete plan: {result.message}")
        self.state = self.state.replace_plan(()).mark_saved(attempts=False, plan=True)
        self.needs_plan_selection = True
        return self.state

    # --- Transcript commands ---

    def add_attempt(
        self,
        semester: str,
        code: str,
        name: Optional[str] = None,
        credits: Optional[str] = None
    ) -> TranscriptState:
        """Add a planned course; name and credits default to the catalog entry"""
        info = self.catalogs.courses.get(code)
        if name is None:
            name = info.name if info else code
        if credits is None:
            credits = info.credits if info else "0"
        self.state = self.state.add_attempt(semester, code, name, credits)
        return self.state

    def delete_attempt(self, semester: str, code: str) -> TranscriptState:
        self.state = self.state.delete_attempt(semester, code)
        return self.state

    def set_grade(self, semester: str, code: str, grade: str) -> TranscriptState:
        self.state = self.state.set_grade(semester, code, grade)
        return self.state

    def set_session(self, semester: str, code: str, session_id: Optional[str]) -> TranscriptState:
        self.state = self.state.set_session(semester, code, session_id)
        return self.state

    def select_semester(self, semester: Optional[str]) -> TranscriptState:
        self.state = self.state.select_semester(semester)
        return self.state

    def add_semester(self) -> TranscriptState:
        self.state = self.state.add_semester()
        return self.state

    def delete_semester(self, semester: str) -> TranscriptState:
        self.state = self.state.delete_semester(semester)
        return self.state

    def select_lesson(self, semester: str, code: str, lesson_id: str) -> TranscriptState:
        """
        Record the lesson picked on the calendar as the attempt's session.

        Raises:
            LessonNotFoundError: If the lesson is unknown or not a section of code
        """
        lesson = self.catalogs.lessons.find(lesson_id)
        if lesson is None:
            raise LessonNotFoundError(f"Lesson {lesson_id} not found")
        if lesson not in self.catalogs.lessons.lessons_for(code):
            raise LessonNotFoundError(f"Lesson {lesson_id} is not a section of {code}")
        return self.set_session(semester, code, lesson.lesson_id)

    def selected_lesson(self, semester: str, code: str) -> Optional[SelectedLesson]:
        """Calendar entry for the lesson recorded on an attempt, if any"""
        attempt = self.state.find(semester, code)
        if attempt is None or not attempt.session_id:
            return None
        lesson = self.catalogs.lessons.find(attempt.session_id)
        if lesson is None or not lesson.sessions:
            return None
        return SelectedLesson(
            course_code=attempt.code,
            lesson_id=lesson.lesson_id,
            session=lesson.sessions[0],
            instructor=lesson.instructor,
            delivery_mode=lesson.delivery_mode
        )

    # --- Views ---

    def snapshot(self) -> Dict[str, Any]:
        """Working state as sent to the dashboard"""
        attempts = self.state.attempts
        semesters = []
        for label in self.state.semesters:
            planned = is_planned_semester(label, attempts)
            semesters.append({
                "label": label,
                "display_name": SemesterManager.planned_display_name(label) if planned else label,
                "planned": planned
            })

        return {
            "attempts": [a.to_dict() for a in attempts],
            "plan": plan_to_list(self.state.plan),
            "semesters": semesters,
            "selected_semester": self.state.selected_semester,
            "current_semester": current_semester(attempts),
            "dirty": self.state.dirty,
            "version": self.state.version,
            "needs_plan_selection": self.needs_plan_selection
        }

    def overview(self, selected: Optional[str] = None) -> Dict[str, Any]:
        """
        Plan overview as of a semester (default: the selected one).

        Returns:
            {
                "selected_semester": ...,
                "progress": {...},
                "assignment": {code: elective name},
                "semesters": [[slot view, ...], ...]
            }
        """
        if selected is None:
            selected = self.state.selected_semester

        key = (self.state.version, selected)
        cached = self._overview_cache.get(key)
        if cached is not None:
            return cached

        filtered = transcript_up_to(self.state.attempts, selected)
        assignment = ElectiveAssignment(self.state.plan, filtered)
        plan_codes = {slot.code for semester in self.state.plan for slot in semester if isinstance(slot, CourseSlot)}

        result = {
            "selected_semester": selected,
            "progress": compute_progress(self.state.attempts, selected).to_dict(),
            "assignment": dict(assignment.assignment),
            "semesters": [
                [self._slot_view(slot, filtered, selected, assignment, plan_codes) for slot in semester]
                for semester in self.state.plan
            ]
        }

        self._overview_cache = {key: result}
        return result

    def _slot_view(
        self,
        slot: PlanSlot,
        filtered: List[TranscriptAttempt],
        selected: Optional[str],
        assignment: ElectiveAssignment,
        plan_codes: set
    ) -> Dict[str, Any]:
        number_match = False
        if isinstance(slot, CourseSlot):
            view = {"kind": "course", "code": slot.code, "name": None, "category": None}
            match = self.resolver.resolve(slot.code, filtered)
            if match is None:
                match = self.resolver.find_by_number(slot.code, filtered, plan_codes)
                number_match = match is not None
            requirement_code = slot.code
        elif isinstance(slot, ElectiveSlot):
            view = {"kind": "elective", "code": None, "name": slot.name, "category": slot.category}
            match = assignment.assigned_course_for(slot.name)
            requirement_code = match.code if match else None
        else:
            raise TypeError(f"Unknown plan slot: {slot!r}")

        view.update({
            "display_code": match.code if match else None,
            "grade": None,
            "status": "not_taken",
            "speculative": False,
            "number_match": number_match,
            "missing_prerequisites": []
        })

        if match is not None:
            attempt = latest_attempt(filtered, match.code) or match
            grade = effective_grade(attempt, selected)
            view["grade"] = attempt.grade
            view["status"] = grade_status(grade)
            view["speculative"] = is_speculative(attempt.grade)
        elif requirement_code is not None:
            missing = self.engine.missing_prerequisites(requirement_code, filtered, selected)
            if missing:
                view["status"] = "locked"
                view["missing_prerequisites"] = missing

        return view
