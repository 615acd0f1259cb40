"""Shared helpers for Supabase repositories."""

from datetime import datetime
from typing import Any

import httpx
from postgrest.exceptions import APIError

from meal_adherence.domain.errors import StorageUnavailable


def execute(query: Any) -> Any:  # noqa: ANN401
    """Run a PostgREST query, mapping transport and API failures."""
    try:
        return query.execute()
    except (APIError, httpx.HTTPError) as exc:
        raise StorageUnavailable(str(exc)) from exc


def parse_timestamp(raw: object) -> datetime | None:
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw)
    return None
