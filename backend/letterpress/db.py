"""
Database client configuration.
Uses Supabase for PostgreSQL (templates, generated PDFs) and Storage.
"""

from functools import lru_cache

from supabase import create_client, Client

from letterpress.config import get_settings


@lru_cache(maxsize=1)
def get_supabase_admin() -> Client:
    """
    Return the service-level Supabase client (bypasses RLS).

    Created on first use so that modules importing this one can be loaded
    without credentials (tests, local rendering with the local backend).
    """
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_service_key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set in environment variables")

    return create_client(settings.supabase_url, settings.supabase_service_key)
