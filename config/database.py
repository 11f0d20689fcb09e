"""
Supabase clients for the document store and auth.

The store client is created once per process and never signs anyone in,
so its service key header stays fixed. Auth calls run on separate
clients that keep no session. Tests patch the factories.
"""

from supabase import create_client, Client, ClientOptions
from functools import lru_cache
from typing import Optional
import structlog

from config.settings import settings
from exceptions import PersistenceError

logger = structlog.get_logger(__name__)


def _create(options: Optional[ClientOptions] = None) -> Client:
    try:
        if options is None:
            return create_client(settings.supabase_url, settings.supabase_key)
        return create_client(settings.supabase_url, settings.supabase_key, options=options)
    except Exception as e:
        logger.error(
            "supabase_client_failed",
            url=settings.supabase_url[:30] + "...",
            error=str(e),
            error_type=type(e).__name__
        )
        raise PersistenceError("connect", str(e)) from e


@lru_cache()
def get_supabase_client() -> Client:
    """
    Cached Supabase client for the documents table.

    Raises:
        PersistenceError: If the client cannot be created (bad URL or key)
    """
    client = _create()
    logger.info("supabase_client_created", table=settings.documents_table)
    return client


def create_auth_client() -> Client:
    """
    Fresh client for one sign-in or sign-up.

    A successful sign-in rebinds the client's Authorization header to the
    user's token, so these clients are never shared and never touch tables.
    """
    return _create(ClientOptions(auto_refresh_token=False, persist_session=False))


@lru_cache()
def get_auth_client() -> Client:
    """Cached sessionless client for token checks and sign-out."""
    return create_auth_client()


def check_connection() -> dict:
    """
    Probe the documents table.

    Returns:
        {"status": "healthy", "documents_count": n} or
        {"status": "unhealthy", "error": "..."}
    """
    try:
        result = (
            get_supabase_client()
            .table(settings.documents_table)
            .select("document_id", count="exact")
            .limit(1)
            .execute()
        )
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}

    return {"status": "healthy", "documents_count": result.count}
