from __future__ import annotations

import logging
from datetime import datetime

from fastapi import Query

from crm.app.core.config import get_settings
from crm.app.schemas.analytics import DateRange, FilterState
from crm.app.services.filters.compiler import Predicate, compile_filters
from crm.app.services.filters.serializer import deserialize_filters

logger = logging.getLogger("crm.analytics")


def get_predicate(
    filters: str | None = Query(default=None, description="Serialized filter rows"),
    from_: datetime | None = Query(default=None, alias="from"),
    to: datetime | None = Query(default=None),
) -> Predicate:
    """Decode the ``filters`` token and the optional created-at window."""
    state = FilterState(filters=deserialize_filters(filters), date_range=DateRange(from_=from_, to=to))
    predicate = compile_filters(state.filters, date_range=state.date_range, tz=get_settings().tzinfo)
    logger.info("filters: rows=%s applied=%s", len(state.filters), len(predicate.conditions))
    return predicate
