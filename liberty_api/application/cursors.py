"""
Opaque feed cursors

A cursor is the keyset position of the last item on a page, serialized as
base64url JSON. Clients must treat it as an opaque string.
"""
import base64
import binascii
import json
from datetime import datetime
from typing import Optional

from liberty_api.config import settings
from liberty_api.domain.exceptions import ValidationError
from liberty_api.domain.models import MAX_ID, FeedPosition


def encode_cursor(position: FeedPosition) -> str:
    payload = json.dumps(
        {"createdAt": position.created_at.isoformat(), "id": position.id},
        separators=(",", ":"),
    )
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(cursor: Optional[str]) -> Optional[FeedPosition]:
    """
    Parse a cursor produced by encode_cursor

    Raises:
        ValidationError: If the cursor is not one we issued
    """
    if cursor is None or cursor == "":
        return None

    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
        created_at = datetime.fromisoformat(data["createdAt"])
        position_id = data["id"]
    except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError):
        raise ValidationError("Invalid cursor")

    if isinstance(position_id, bool) or not isinstance(position_id, int):
        raise ValidationError("Invalid cursor")
    if not 1 <= position_id <= MAX_ID:
        raise ValidationError("Invalid cursor")

    return FeedPosition(created_at=created_at, id=position_id)


def clamp_page_size(take: Optional[int]) -> int:
    """Apply the default page size and keep it within bounds"""
    if take is None:
        return settings.FEED_DEFAULT_PAGE_SIZE
    return max(1, min(take, settings.FEED_MAX_PAGE_SIZE))
