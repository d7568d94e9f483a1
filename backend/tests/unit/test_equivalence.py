"""
Tests for services/equivalence.py - Course code resolution
"""

from core.models import TranscriptAttempt
from services.equivalence import EquivalenceResolver


FALL_2023 = "2023-2024 Güz Dönemi"


def row(code, grade="CC"):
    return TranscriptAttempt(FALL_2023, code, code, "3", grade)


class TestResolve:
    """Tests for EquivalenceResolver.resolve"""

    def test_exact_match(self):
        resolver = EquivalenceResolver({})
        transcript = [row("BLG 101E")]
        assert resolver.resolve("BLG 101E", transcript) is transcript[0]

    def test_whitespace_insensitive(self):
        resolver = EquivalenceResolver({})
        transcript = [row("MAT103E")]
        assert resolver.resolve("MAT 103E", transcript) is transcript[0]

    def test_table_alternative(self):
        resolver = EquivalenceResolver({"FIZ 101E": ["FIZ 101"]})
        transcript = [row("FIZ 101")]
        assert resolver.resolve("FIZ 101E", transcript) is transcript[0]

    def test_reverse_lookup(self):
        resolver = EquivalenceResolver({"FIZ 101E": ["FIZ 101"]})
        transcript = [row("FIZ 101E")]
        assert resolver.resolve("FIZ 101", transcript) is transcript[0]

    def test_table_on_normalized_codes(self):
        resolver = EquivalenceResolver({"FIZ101E": ["KIM 101"]})
        transcript = [row("KIM101")]
        assert resolver.resolve("FIZ 101E", transcript) is transcript[0]

    def test_suffix_heuristic(self):
        resolver = EquivalenceResolver({}, suffix="E")
        assert resolver.resolve("MAT 103E", [row("MAT 103")]).code == "MAT 103"
        assert resolver.resolve("MAT 103", [row("MAT 103E")]).code == "MAT 103E"

    def test_suffix_heuristic_disabled(self):
        resolver = EquivalenceResolver({}, suffix="")
        assert resolver.resolve("MAT 103E", [row("MAT 103")]) is None

    def test_exact_match_wins_over_table(self):
        """A retake under the same code is never masked by an equivalent course"""
        resolver = EquivalenceResolver({"MAT 103E": ["MAT 101E"]})
        transcript = [row("MAT 101E", "AA"), row("MAT 103E", "DD")]
        assert resolver.resolve("MAT 103E", transcript).code == "MAT 103E"

    def test_no_match(self):
        resolver = EquivalenceResolver({"FIZ 101E": ["FIZ 101"]})
        assert resolver.resolve("BLG 210E", [row("FIZ 101")]) is None
        assert resolver.resolve("", [row("FIZ 101")]) is None

    def test_exclude_blocks_table_and_suffix(self):
        resolver = EquivalenceResolver({"MAT 103E": ["MAT 101E"]}, suffix="E")
        transcript = [row("MAT 101E"), row("MAT 103")]
        assert resolver.resolve("MAT 103E", transcript, exclude=["MAT 101E", "MAT 103"]) is None

    def test_exclude_does_not_block_exact(self):
        resolver = EquivalenceResolver({})
        transcript = [row("MAT 103E")]
        assert resolver.resolve("MAT 103E", transcript, exclude=["MAT 103E"]) is transcript[0]

    def test_sibling_group_does_not_cross_match(self):
        """A group listing both codes of an equivalence pair needs each on its own"""
        resolver = EquivalenceResolver({"FIZ 101E": ["FIZ 101"]})
        transcript = [row("FIZ 101")]
        assert resolver.resolve("FIZ 101E", transcript, exclude=["FIZ 101"]) is None
        assert resolver.resolve("FIZ 101", transcript, exclude=["FIZ 101E"]) is transcript[0]

    def test_alternatives_both_directions(self):
        resolver = EquivalenceResolver({"FIZ 101E": ["FIZ 101"], "FIZ 103E": ["FIZ 101E"]})
        assert resolver.alternatives("FIZ 101E") == ["FIZ 101", "FIZ 103E"]
        assert resolver.alternatives("FIZ 101") == ["FIZ 101E"]


class TestFindByNumber:

    def test_matches_course_number(self):
        resolver = EquivalenceResolver({})
        transcript = [row("BLG 101E"), row("YZV 210E")]
        assert resolver.find_by_number("BLG 210E", transcript).code == "YZV 210E"

    def test_skips_plan_courses(self):
        resolver = EquivalenceResolver({})
        transcript = [row("MAT 210E")]
        assert resolver.find_by_number("BLG 210E", transcript, plan_codes={"MAT 210E"}) is None

    def test_code_without_number(self):
        resolver = EquivalenceResolver({})
        assert resolver.find_by_number("STAJ", [row("STAJ")]) is None
