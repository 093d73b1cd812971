"""Query-string validation shared by the routers.

Every helper raises ValueError with the message the client should see.
"""

from typing import Optional, Tuple

from explorer.models import ErrorResponse
from explorer.types import ResponseType

ID_LENGTH = 64


def error(message: str) -> dict:
    return ErrorResponse(error=message).to_response()


def _parse_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_count(value: str, maximum: int) -> int:
    count = _parse_int(value)
    if count is None or count <= 0:
        raise ValueError("Invalid count")
    if count > maximum:
        raise ValueError(f"Maximum count is {maximum}")
    return count


def parse_page(value: Optional[str]) -> int:
    if not value:
        return 1
    page = _parse_int(value)
    if page is None or page < 1:
        raise ValueError("Invalid page number")
    return page


def parse_id(value: str, label: str) -> str:
    if len(value) != ID_LENGTH:
        raise ValueError(f"Invalid {label}")
    return value.lower()


def parse_timestamp(value: Optional[str], label: str) -> Optional[int]:
    if not value:
        return None
    ts = _parse_int(value)
    if ts is None or ts < 0:
        raise ValueError(f"Invalid {label}")
    return ts


def parse_cycle_range(
    start: Optional[str], end: Optional[str], max_range: int
) -> Tuple[Optional[int], Optional[int]]:
    """A lone startCycle means that single cycle."""
    if not start:
        return None, None
    start_cycle = _parse_int(start)
    if start_cycle is None or start_cycle < 0:
        raise ValueError("Invalid start cycle number")
    end_cycle = start_cycle
    if end:
        end_cycle = _parse_int(end)
        if end_cycle is None or end_cycle < 0 or end_cycle < start_cycle:
            raise ValueError("Invalid end cycle number")
        if end_cycle - start_cycle > max_range:
            raise ValueError(
                f"The cycle range is too big. Max cycle range is {max_range} cycles."
            )
    return start_cycle, end_cycle


def parse_response_type(value: Optional[str], default: ResponseType = ResponseType.OBJECT) -> ResponseType:
    if not value:
        return default
    try:
        return ResponseType(value)
    except ValueError:
        raise ValueError("Invalid responseType")


def parse_flag(value: Optional[str], name: str) -> bool:
    if value is None:
        return False
    if value != "true":
        raise ValueError(f"Invalid {name}")
    return True
