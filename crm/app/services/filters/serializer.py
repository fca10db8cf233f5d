"""URL-safe encoding of analytics filter rows.

A token is the compact JSON array of rows encoded as unpadded base64url, so
it can sit in a query string without escaping. Decoding is forgiving: a
broken token yields no filters rather than an error.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from collections.abc import Sequence

from pydantic import ValidationError

from crm.app.schemas.analytics import FilterRow

logger = logging.getLogger("crm.analytics")


def serialize_filters(rows: Sequence[FilterRow] | None) -> str:
    payload = [row.model_dump(mode="json", exclude_none=True) for row in rows or []]
    text = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def deserialize_filters(token: str | None) -> list[FilterRow]:
    if not token:
        return []
    try:
        raw = token.strip()
        raw += "=" * (-len(raw) % 4)
        text = base64.b64decode(raw.encode("ascii"), altchars=b"-_", validate=True).decode("utf-8")
        parsed = json.loads(text)
    except (ValueError, binascii.Error, RecursionError) as exc:
        # UnicodeError and JSONDecodeError are both ValueError subclasses
        logger.debug("deserialize_filters: unreadable token len=%s err=%s", len(token), exc)
        return []
    if not isinstance(parsed, list):
        return []

    rows: list[FilterRow] = []
    for item in parsed:
        try:
            rows.append(FilterRow.model_validate(item))
        except ValidationError:
            logger.debug("deserialize_filters: dropping malformed row %r", item)
    return rows
