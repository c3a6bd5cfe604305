"""Advisory overlap checks for a student's personal timetable.

Unlike the admin clash detector these checks have no notion of rooms,
teachers or enrolment: two entries clash when they fall on the same date and
their times overlap. Everything here is a pure function of its arguments.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from app.schemas.timetable import ClashInfo, TimeOverlap, TimetableEntry
from app.services.clash_messages import clash_message
from app.services.time_overlap import time_ranges_overlap


def _is_scheduled(entry: TimetableEntry) -> bool:
    return bool(entry.date and entry.start_time and entry.end_time)


def entry_key(entry: TimetableEntry) -> tuple:
    if entry.id is not None:
        return ("id", entry.id)
    return ("slot", entry.course_code, entry.date, entry.start_time, entry.end_time)


def detect_timetable_clashes(candidate: TimetableEntry, selected: Iterable[TimetableEntry]) -> list[ClashInfo]:
    if not _is_scheduled(candidate):
        return []

    clashes: list[ClashInfo] = []
    for existing in selected:
        if not _is_scheduled(existing) or existing.date != candidate.date:
            continue
        if not time_ranges_overlap(candidate.start_time, candidate.end_time, existing.start_time, existing.end_time):
            continue
        clashes.append(
            ClashInfo(
                new_entry=candidate,
                conflicting_entry=existing,
                date=candidate.date,
                time_overlap=TimeOverlap(
                    new_start=candidate.start_time,
                    new_end=candidate.end_time,
                    conflicting_start=existing.start_time,
                    conflicting_end=existing.end_time,
                ),
            )
        )
    return clashes


def detect_course_clashes(
    course_code: str,
    selected: Sequence[TimetableEntry],
    catalog: Iterable[TimetableEntry],
) -> list[ClashInfo]:
    """Clashes between every exam of ``course_code`` in the catalog and the selection.

    Any clash at all means the course as a whole cannot be added.
    """
    clashes: list[ClashInfo] = []
    for exam in catalog:
        if exam.course_code != course_code:
            continue
        clashes.extend(detect_timetable_clashes(exam, selected))
    return clashes


def find_selection_clashes(entries: Sequence[TimetableEntry]) -> list[ClashInfo]:
    """Clashes already inside a selection, one per unordered pair of entries."""
    clashes: list[ClashInfo] = []
    for index, entry in enumerate(entries):
        later = [other for other in entries[index + 1 :] if entry_key(other) != entry_key(entry)]
        clashes.extend(detect_timetable_clashes(entry, later))
    return clashes


def unique_clash_messages(clashes: Iterable[ClashInfo]) -> list[str]:
    seen: set[frozenset] = set()
    messages: list[str] = []
    for clash in clashes:
        pair = frozenset((entry_key(clash.new_entry), entry_key(clash.conflicting_entry)))
        if pair in seen:
            continue
        seen.add(pair)
        messages.append(clash_message(clash))
    return messages
