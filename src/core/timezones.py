"""
Resolution of naive source timestamps to US/Pacific instants.

The dataset publishes "Date/Time Updated" as civil Pacific time with no offset,
so every value has to be mapped through the tz database. DST transitions make
that mapping ambiguous (fall-back) or empty (spring-forward).
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from src.core.errors import InvalidLocalTime

PACIFIC = ZoneInfo("America/Los_Angeles")

UPDATED_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


def localize(naive: datetime, tz: ZoneInfo = PACIFIC) -> list[datetime]:
    """
    Return every instant that the civil time `naive` denotes in `tz`.

    Args:
        naive: Civil date-time without tzinfo
        tz: Zone to interpret it in

    Returns:
        Zero, one or two aware datetimes in `tz`, sorted by UTC instant
    """
    candidates = []
    for fold in (0, 1):
        utc = naive.replace(tzinfo=tz, fold=fold).astimezone(timezone.utc)
        # A gap time converts to UTC but does not round-trip to the same wall clock
        if utc.astimezone(tz).replace(tzinfo=None, fold=0) != naive:
            continue
        if utc not in candidates:
            candidates.append(utc)

    return [instant.astimezone(tz) for instant in sorted(candidates)]


def resolve_pacific(text: str, line_number: int | None = None) -> datetime:
    """
    Parse a naive "YYYY-MM-DD HH:MM:SS.ffffff" string as US/Pacific time.

    Ambiguous times (clock turned back) resolve to the later UTC instant.
    Non-existent times (clock turned forward) are rejected.

    Args:
        text: Timestamp text as it appears in the source file
        line_number: Row number, attached to errors

    Returns:
        Timezone-aware datetime in America/Los_Angeles

    Raises:
        ValueError: If the text does not match the expected format
        InvalidLocalTime: If the time falls in a spring-forward gap
    """
    naive = datetime.strptime(text, UPDATED_FORMAT)
    instants = localize(naive)

    if not instants:
        raise InvalidLocalTime(text, line_number=line_number)

    return instants[-1]
