"""
Course Equivalence Resolver

Maps a requested course code to a transcript attempt. Resolution order,
first match wins:

1. exact code
2. code ignoring whitespace ("MAT 103" == "MAT103")
3. equivalence table alternatives of the code
4. reverse lookup: table keys listing the code as an alternative
5. steps 3 and 4 on whitespace-normalized codes
6. alternate-delivery suffix: "MAT103E" <-> "MAT103"

Exact matches always win so that a real retake is never masked by a stale
table entry.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Set

from core.config import EQUIVALENCE_SUFFIX
from core.models import TranscriptAttempt
from core.parsers import course_number, normalize_course_code


class EquivalenceResolver:
    """Resolves course codes against a transcript using an equivalence table."""

    def __init__(self, table: Optional[Dict[str, List[str]]] = None, suffix: str = EQUIVALENCE_SUFFIX):
        self.table: Dict[str, List[str]] = {
            str(key): [str(alt) for alt in (alts or [])]
            for key, alts in (table or {}).items()
        }
        self.suffix = suffix or ""

    def alternatives(self, code: str) -> List[str]:
        """Codes listed as interchangeable with ``code`` (either direction)"""
        found = list(self.table.get(code, []))
        for key, alts in self.table.items():
            if code in alts and key not in found and key != code:
                found.append(key)
        return found

    def resolve(
        self,
        target: str,
        transcript: Sequence[TranscriptAttempt],
        exclude: Iterable[str] = ()
    ) -> Optional[TranscriptAttempt]:
        """
        Find the transcript attempt that stands for ``target``.

        Args:
            target: Requested course code
            transcript: Attempts to search
            exclude: Codes that must not be matched through the equivalence
                table or the suffix heuristic (sibling prerequisites)

        Returns:
            The first matching attempt, or None
        """
        if not target:
            return None

        excluded: Set[str] = {normalize_course_code(code) for code in exclude}
        normalized = normalize_course_code(target)

        # 1. exact
        match = self._first_exact(transcript, target)
        if match:
            return match

        # 2. whitespace-insensitive
        match = self._first_normalized(transcript, normalized)
        if match:
            return match

        # 3. table alternatives
        for alt in self.table.get(target, []):
            if normalize_course_code(alt) in excluded:
                continue
            match = self._first_exact(transcript, alt)
            if match:
                return match

        # 4. reverse lookup
        for key, alts in self.table.items():
            if target not in alts or normalize_course_code(key) in excluded:
                continue
            match = self._first_exact(transcript, key)
            if match:
                return match

        # 5. table lookups on normalized codes
        for key, alts in self.table.items():
            if normalize_course_code(key) != normalized:
                continue
            for alt in alts:
                alt_normalized = normalize_course_code(alt)
                if alt_normalized in excluded:
                    continue
                match = self._first_normalized(transcript, alt_normalized)
                if match:
                    return match

        for key, alts in self.table.items():
            key_normalized = normalize_course_code(key)
            if key_normalized in excluded:
                continue
            if normalized not in {normalize_course_code(alt) for alt in alts}:
                continue
            match = self._first_normalized(transcript, key_normalized)
            if match:
                return match

        # 6. alternate-delivery suffix
        if self.suffix:
            if normalized.endswith(self.suffix) and len(normalized) > len(self.suffix):
                candidate = normalized[:-len(self.suffix)]
            else:
                candidate = normalized + self.suffix
            if candidate not in excluded:
                match = self._first_normalized(transcript, candidate)
                if match:
                    return match

        return None

    def find_by_number(
        self,
        target: str,
        transcript: Sequence[TranscriptAttempt],
        plan_codes: Iterable[str] = ()
    ) -> Optional[TranscriptAttempt]:
        """
        Display fallback: a transcript row with the same course number.

        Only rows whose own code is not part of the plan are considered, so a
        plan course never borrows another plan course's history. Never used
        for prerequisite decisions.
        """
        number = course_number(target)
        if not number:
            return None
        plan_set = set(plan_codes)
        for attempt in transcript:
            if attempt.code in plan_set:
                continue
            if course_number(attempt.code) == number:
                return attempt
        return None

    @staticmethod
    def _first_exact(transcript: Sequence[TranscriptAttempt], code: str) -> Optional[TranscriptAttempt]:
        for attempt in transcript:
            if attempt.code == code:
                return attempt
        return None

    @staticmethod
    def _first_normalized(transcript: Sequence[TranscriptAttempt], normalized: str) -> Optional[TranscriptAttempt]:
        for attempt in transcript:
            if normalize_course_code(attempt.code) == normalized:
                return attempt
        return None
