from .catalog import PlanCatalog, CourseCatalog, LessonCatalog, Catalogs, coerce_plan, get_catalogs
from .equivalence import EquivalenceResolver
from .prerequisites import PrerequisiteEngine, get_prerequisite_engine
from .electives import ElectiveAssignment
from .progress import ClassStanding, ProgressSummary, compute_progress, transcript_up_to
from .transcript import TranscriptState, TranscriptError
from .firebase import TranscriptStore, PlanStore, StoreResult, get_transcript_store, get_plan_store
from .planner import PlannerService
