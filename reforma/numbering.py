"""Sequential business document numbers (estimations, work orders)"""
from datetime import date
from typing import Any, Iterable, Optional

from config import NUMBER_FAMILIES, NUMBER_PADDING


def number_prefix(family: str, year: int, month: int) -> str:
    """Build the per-month prefix, e.g. ``BE2505`` for May 2025"""
    if family not in NUMBER_FAMILIES:
        raise ValueError(f"Unknown number family: {family!r}")
    return f"{family}{year % 100:02d}{month:02d}"


def existing_number(record: Any, family: str) -> Optional[str]:
    """Read the family's number from a Job or a raw job dict"""
    field_name = NUMBER_FAMILIES[family]
    if isinstance(record, dict):
        if field_name == 'estimation_number':
            return (record.get('estimate_data') or {}).get(field_name)
        return record.get(field_name)
    if field_name == 'estimation_number':
        estimate = getattr(record, 'estimate_data', None)
        return getattr(estimate, field_name, None)
    return getattr(record, field_name, None)


def next_number(family: str, year: int, month: int, records: Iterable[Any]) -> str:
    """
    Next number in the family's monthly sequence.

    Scans the numbers already present in ``records`` that start with the
    month prefix and returns the highest suffix + 1, zero padded to four
    digits. Suffixes that are not purely numeric are skipped.

    Works only on the snapshot it is given and persists nothing: two
    callers holding the same stale snapshot get the same number.
    """
    prefix = number_prefix(family, year, month)
    max_seq = 0
    for record in records:
        number = existing_number(record, family)
        if not number or not number.startswith(prefix):
            continue
        suffix = number[len(prefix):]
        if not (suffix.isascii() and suffix.isdigit()):
            continue
        max_seq = max(max_seq, int(suffix))
    return f"{prefix}{max_seq + 1:0{NUMBER_PADDING}d}"


def next_number_for(family: str, records: Iterable[Any], today: date) -> str:
    """next_number using the year and month of ``today``"""
    return next_number(family, today.year, today.month, records)
