"""
Supabase client configuration for calendar sync service.

Provides a configured Supabase client for token validation and table access.
"""

from typing import Optional

import structlog
from supabase import Client, create_client

from app.config import settings
from app.exceptions import ConfigurationError

logger = structlog.get_logger(__name__)

_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Get or create the service-role Supabase client.

    The service role bypasses Row Level Security, so every query made
    with this client must filter by user_id itself.

    Returns:
        Configured Supabase client

    Raises:
        ConfigurationError: If Supabase is not properly configured
    """
    global _supabase_client

    if not settings.supabase_configured:
        logger.error(
            "Supabase credentials not configured",
            supabase_url=bool(settings.SUPABASE_URL),
            supabase_service_key=bool(settings.SUPABASE_SERVICE_KEY),
        )
        raise ConfigurationError("Supabase")

    if _supabase_client is None:
        logger.info("Initializing Supabase client")
        _supabase_client = create_client(
            settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY
        )
        logger.info("Supabase client initialized")

    return _supabase_client


def reset_supabase_client() -> None:
    """Drop the cached client so the next call rebuilds it from settings."""
    global _supabase_client
    _supabase_client = None
