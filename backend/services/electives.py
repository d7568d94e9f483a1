"""
Elective Assignment Service

Credits taken courses to the elective slots of a plan so that a course is
never counted for two electives.

The assignment is greedy and runs in two passes over the plan in plan order
(semester by semester, left to right):

1. A slot matched by exactly one transcript attempt gets that attempt's code.
2. A slot matched by more than one attempt gets the first matching attempt
   whose code is not assigned yet.

Slots with no matching attempt stay unassigned. Because the passes follow
plan order, overlapping option lists can leave a slot unassigned even when
a complete assignment exists.
"""

from typing import Any, Dict, List, Optional, Sequence

from core.models import ElectiveSlot, Plan, TranscriptAttempt, iter_electives
from services.prerequisites import latest_attempt


def _matching_attempts(slot: ElectiveSlot, transcript: Sequence[TranscriptAttempt]) -> List[TranscriptAttempt]:
    options = set(slot.options)
    return [attempt for attempt in transcript if attempt.code in options]


class ElectiveAssignment:
    """Elective slot assignment for one (plan, transcript) pair"""

    def __init__(self, plan: Plan, transcript: Sequence[TranscriptAttempt]):
        self.plan = plan
        self.transcript = list(transcript)
        self.assignment: Dict[str, str] = self._assign()

    def _assign(self) -> Dict[str, str]:
        assignment: Dict[str, str] = {}
        electives = list(iter_electives(self.plan))

        # First pass: single-match slots
        for slot in electives:
            matches = _matching_attempts(slot, self.transcript)
            if len(matches) == 1:
                assignment.setdefault(matches[0].code, slot.name)

        # Second pass: first free match for multi-match slots
        for slot in electives:
            matches = _matching_attempts(slot, self.transcript)
            if len(matches) > 1:
                for attempt in matches:
                    if attempt.code not in assignment:
                        assignment[attempt.code] = slot.name
                        break

        return assignment

    def assigned_code_for(self, elective_name: str) -> Optional[str]:
        for code, name in self.assignment.items():
            if name == elective_name:
                return code
        return None

    def assigned_course_for(self, elective_name: str) -> Optional[TranscriptAttempt]:
        """First transcript row of the course credited to an elective, or None"""
        code = self.assigned_code_for(elective_name)
        if code is None:
            return None
        for attempt in self.transcript:
            if attempt.code == code:
                return attempt
        return None

    def options_for(self, elective_name: str) -> List[Dict[str, Any]]:
        """
        Option codes of an elective annotated for the "choose a course" view.

        Returns:
            One entry per option code of the first slot with that name:
            - code: option course code
            - taken: number of transcript attempts of the code
            - latest_grade: grade of the latest attempt, or None
            - assigned_elsewhere: credited to a different elective
        """
        slot = next((s for s in iter_electives(self.plan) if s.name == elective_name), None)
        if slot is None:
            return []

        options = []
        for code in slot.options:
            attempts = [a for a in self.transcript if a.code == code]
            latest = latest_attempt(attempts, code)
            assigned_to = self.assignment.get(code)
            options.append({
                "code": code,
                "taken": len(attempts),
                "latest_grade": latest.grade if latest else None,
                "assigned_elsewhere": assigned_to is not None and assigned_to != elective_name
            })
        return options
