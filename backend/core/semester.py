"""
Semester Ordering Utilities

Semester labels come from the registrar transcript:

    "<startYear>-<endYear> <Term> <Suffix>"   e.g. "2023-2024 Güz Dönemi"

Term ranks within an academic year:
- Güz / Fall    = 1
- Bahar / Spring = 2
- Yaz / Summer  = 3

order(label) = startYear * 10 + termRank. A label whose term is not
recognised ranks 0, a label without a year has year component 0.

Synthetic "Semester N" labels (plan positions rather than calendar terms)
are ordered by N alone and cannot be compared with calendar labels.
"""

import re
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

RECORDED_SUFFIX = "Dönemi"
PLANNED_SUFFIX = "Planı"
DEFAULT_FIRST_SEMESTER = "2024-2025 Güz Dönemi"

_YEAR_RANGE = re.compile(r'(\d{4})-(\d{4})')
_YEAR = re.compile(r'(\d{4})')
_SYNTHETIC = re.compile(r'^\s*Semester\s+(\d+)\s*$')


class SemesterManager:
    """Total order over semester labels and label arithmetic"""

    # Checked in this order; the first name found in the label wins
    TERM_NAMES: Tuple[Tuple[str, int], ...] = (
        ("Güz", 1),
        ("Fall", 1),
        ("Bahar", 2),
        ("Spring", 2),
        ("Yaz", 3),
        ("Summer", 3),
    )

    # Canonical (Turkish) name used when generating labels
    TERM_BY_RANK: Dict[int, str] = {1: "Güz", 2: "Bahar", 3: "Yaz"}

    @staticmethod
    def term_rank(label: str) -> int:
        """Rank of the term named in a label, 0 when unrecognised"""
        for name, rank in SemesterManager.TERM_NAMES:
            if name in label:
                return rank
        return 0

    @staticmethod
    def start_year(label: str) -> int:
        """First four-digit year in a label, 0 when absent"""
        match = _YEAR.search(label or "")
        return int(match.group(1)) if match else 0

    @staticmethod
    def synthetic_index(label: str) -> Optional[int]:
        """N for a "Semester N" label, None for calendar labels"""
        match = _SYNTHETIC.match(label or "")
        return int(match.group(1)) if match else None

    @staticmethod
    def is_synthetic(label: str) -> bool:
        return SemesterManager.synthetic_index(label) is not None

    @staticmethod
    def order(label: str) -> int:
        """
        Numeric position of a semester label.

        Calendar labels: startYear * 10 + termRank.
        Synthetic labels: N. Not comparable with calendar orders.
        """
        index = SemesterManager.synthetic_index(label)
        if index is not None:
            return index
        label = label or ""
        return SemesterManager.start_year(label) * 10 + SemesterManager.term_rank(label)

    @staticmethod
    def compare(a: str, b: str) -> Optional[int]:
        """
        Compare two semester labels chronologically.

        Returns:
            -1 if a < b, 0 if simultaneous, 1 if a > b,
            None when one label is synthetic and the other is not
        """
        if SemesterManager.is_synthetic(a) != SemesterManager.is_synthetic(b):
            return None
        order_a = SemesterManager.order(a)
        order_b = SemesterManager.order(b)
        if order_a == order_b:
            return 0
        return -1 if order_a < order_b else 1

    @staticmethod
    def is_after(label: str, other: str) -> bool:
        """True only when label is strictly later than other and both are comparable"""
        return SemesterManager.compare(label, other) == 1

    @staticmethod
    def is_at_or_before(label: str, other: str) -> bool:
        """True when label is not later than other and both are comparable"""
        result = SemesterManager.compare(label, other)
        return result is not None and result <= 0

    @staticmethod
    def sort_key(label: str) -> Tuple[int, int]:
        return (1 if SemesterManager.is_synthetic(label) else 0, SemesterManager.order(label))

    @staticmethod
    def sort(labels: Iterable[str], descending: bool = False) -> List[str]:
        """Stable chronological sort; descending gives most recent first"""
        return sorted(labels, key=SemesterManager.sort_key, reverse=descending)

    @staticmethod
    def next_label(latest: Optional[str]) -> Optional[str]:
        """
        Label of the term following ``latest``.

        Güz -> Bahar (same years), Bahar -> Yaz (same years),
        Yaz -> Güz of the following academic year.

        Returns:
            The new label, DEFAULT_FIRST_SEMESTER when latest is None,
            or None when latest cannot be parsed
        """
        if latest is None:
            return DEFAULT_FIRST_SEMESTER

        match = _YEAR_RANGE.search(latest)
        if not match:
            return None

        start_year = int(match.group(1))
        end_year = int(match.group(2))
        rank = SemesterManager.term_rank(latest)
        if rank == 0:
            return None

        if rank == 3:
            start_year += 1
            end_year += 1
            next_rank = 1
        else:
            next_rank = rank + 1

        term = SemesterManager.TERM_BY_RANK[next_rank]
        return f"{start_year}-{end_year} {term} {RECORDED_SUFFIX}"

    @staticmethod
    def planned_display_name(label: str) -> str:
        """Rewrite "<Term> Dönemi" to "<Term> Planı" for planned semesters"""
        for term in SemesterManager.TERM_BY_RANK.values():
            recorded = f"{term} {RECORDED_SUFFIX}"
            if recorded in label:
                return label.replace(recorded, f"{term} {PLANNED_SUFFIX}")
        return label

    @staticmethod
    def parse_label(label: str) -> Dict[str, Union[str, int, bool]]:
        """Break a label into its components"""
        match = _YEAR_RANGE.search(label or "")
        rank = SemesterManager.term_rank(label or "")
        return {
            "label": label,
            "start_year": int(match.group(1)) if match else SemesterManager.start_year(label),
            "end_year": int(match.group(2)) if match else 0,
            "term_rank": rank,
            "term": SemesterManager.TERM_BY_RANK.get(rank, "Unknown"),
            "synthetic": SemesterManager.is_synthetic(label),
            "order": SemesterManager.order(label),
        }


def semester_order(label: str) -> int:
    """Convenience function for SemesterManager.order"""
    return SemesterManager.order(label)


def sort_semesters(labels: Iterable[str], descending: bool = False) -> List[str]:
    """Convenience function for SemesterManager.sort"""
    return SemesterManager.sort(labels, descending=descending)


def unique_semesters(attempts: Sequence, descending: bool = False) -> List[str]:
    """Distinct semester labels of a transcript in chronological order"""
    seen: Dict[str, None] = {}
    for attempt in attempts:
        seen.setdefault(attempt.semester, None)
    return SemesterManager.sort(seen.keys(), descending=descending)


def compare_semesters(a: str, b: str) -> Optional[int]:
    """Convenience function for SemesterManager.compare"""
    return SemesterManager.compare(a, b)


def next_semester_label(latest: Optional[str]) -> Optional[str]:
    """Convenience function for SemesterManager.next_label"""
    return SemesterManager.next_label(latest)
