"""
Configuration module.

Exports:
    settings: Application settings instance
    get_settings: Cached settings loader
    get_supabase_client: Cached Supabase client for the document store
    create_auth_client: Fresh sessionless client for sign-in and sign-up
    get_auth_client: Cached sessionless client for token checks
    check_connection: Document store health check
"""

from config.settings import settings, get_settings, Settings
from config.database import (
    get_supabase_client,
    create_auth_client,
    get_auth_client,
    check_connection,
)

__all__ = [
    "settings",
    "get_settings",
    "Settings",
    "get_supabase_client",
    "create_auth_client",
    "get_auth_client",
    "check_connection",
]
