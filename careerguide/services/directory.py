"""Counselor directory helpers: specialties, search filtering, slot labels."""

SPECIALIZATIONS = (
    'Technology',
    'Healthcare',
    'Business',
    'Education',
    'Arts',
    'Engineering',
    'Law',
    'Finance',
    'Science',
    'Other',
)

ALL_SPECIALTIES = 'All'


def _field(counselor, key: str):
    if isinstance(counselor, dict):
        return counselor.get(key)
    return getattr(counselor, key, None)


def matches_search(counselor, search: str | None) -> bool:
    query = (search or '').strip().lower()
    if not query:
        return True
    name = (_field(counselor, 'name') or '').lower()
    specialization = (_field(counselor, 'specialization') or '').lower()
    return query in name or query in specialization


def matches_specialty(counselor, specialty: str | None) -> bool:
    if not specialty or specialty == ALL_SPECIALTIES:
        return True
    return _field(counselor, 'specialization') == specialty


def filter_counselors(counselors, search: str | None = None, specialty: str | None = None) -> list:
    """Filter a fetched counselor list the way the directory screen does.

    ``search`` is a case-insensitive substring of the name or the
    specialization. ``specialty`` must match exactly unless it is ``All``.
    """
    return [
        counselor
        for counselor in counselors
        if matches_search(counselor, search) and matches_specialty(counselor, specialty)
    ]


def format_availability_slot(slot: dict) -> str:
    day = str(slot.get('day') or '')
    return f"{day[:3]} {slot.get('start', '')}-{slot.get('end', '')}"


def availability_labels(availability) -> list[str]:
    # Slots are shown in stored order, duplicates and overlaps included.
    return [format_availability_slot(slot) for slot in availability or [] if isinstance(slot, dict)]
