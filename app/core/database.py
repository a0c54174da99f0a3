import logging

import httpx
from postgrest.exceptions import APIError
from supabase import create_client, Client

from app.core.config import settings
from app.core.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)

_supabase_client: Client | None = None


def get_supabase() -> Client:
    global _supabase_client
    if _supabase_client is None:
        _supabase_client = create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_SERVICE_KEY or settings.SUPABASE_KEY,
        )
    return _supabase_client


def execute(query):
    """Run a PostgREST query builder, turning transport/store errors into StoreUnavailable."""
    try:
        return query.execute()
    except APIError as e:
        logger.error("Store rejected query: %s (code=%s)", e.message, e.code)
        raise StoreUnavailable(details={"code": e.code}) from e
    except httpx.HTTPError as e:
        logger.error("Store unreachable: %s", e)
        raise StoreUnavailable() from e


def fetch_one(query) -> dict | None:
    """Execute a `.maybe_single()` query and return the row, or None."""
    result = execute(query)
    # maybe_single() yields no response object at all when nothing matched
    if result is None or not result.data:
        return None
    return result.data


def fetch_all(query) -> list[dict]:
    result = execute(query)
    return result.data or []
