"""
Shared parsing utilities for transcript and plan data.

These parsers are used by the stores, the catalogs and the evaluation
engines so that raw rows are interpreted consistently.
"""

import re
from typing import Any, Dict, Optional

from .models import CourseSlot, ElectiveSlot, PlanSlot

_WHITESPACE = re.compile(r'\s+')
_LETTERS = re.compile(r'[A-Za-z]')


def parse_credits(credits: Any) -> float:
    """
    Parse a credits value from a transcript row.

    Args:
        credits: Decimal string such as "3", "4.5" or "3,5" (comma decimal)

    Returns:
        Credits as a float, 0.0 for missing or malformed values
    """
    if credits is None:
        return 0.0
    if isinstance(credits, (int, float)):
        return float(credits)

    text = str(credits).strip().replace(',', '.')
    if not text:
        return 0.0
    try:
        value = float(text)
    except ValueError:
        return 0.0
    if value != value or value in (float('inf'), float('-inf')):
        return 0.0
    return value


def normalize_course_code(code: str) -> str:
    """Remove all whitespace from a course code ("MAT 103E" -> "MAT103E")."""
    return _WHITESPACE.sub('', code or '')


def course_number(code: str) -> str:
    """Numeric part of a course code ("BLG 210" -> "210")."""
    return _WHITESPACE.sub('', _LETTERS.sub('', code or ''))


def parse_slot(item: Any) -> Optional[PlanSlot]:
    """
    Convert a plan item dictionary into a slot.

    Elective fields may be given directly or nested under a "data" key,
    which is how the plan template catalog ships them.

    Returns:
        CourseSlot, ElectiveSlot, or None when the item is not recognised
    """
    if not isinstance(item, dict):
        return None

    slot_type = item.get('type')
    if slot_type == 'course':
        return CourseSlot(code=str(item.get('code') or ''))

    if slot_type == 'elective':
        data: Dict[str, Any] = item.get('data') if isinstance(item.get('data'), dict) else {}
        options = data.get('options') or item.get('options') or []
        if not isinstance(options, (list, tuple)):
            options = []
        return ElectiveSlot(
            name=str(data.get('name') or item.get('name') or ''),
            category=str(data.get('category') or item.get('category') or ''),
            options=tuple(str(o) for o in options)
        )

    return None
