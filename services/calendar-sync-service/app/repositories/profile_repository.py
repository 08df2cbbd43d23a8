"""
Profile repository for cached Google OAuth credentials.

One profile row exists per user, enforced by upserting on user_id.
"""

from datetime import datetime
from typing import Any, Dict, Optional

import structlog
from supabase import Client

from app.exceptions import RepositoryError
from app.models import GoogleCredentials

logger = structlog.get_logger(__name__)

PROFILES_TABLE = "profiles"
CREDENTIAL_COLUMNS = "google_access_token, google_refresh_token, google_token_expires_at"


class ProfileRepository:
    """Supabase-backed access to the profiles table."""

    def __init__(self, client: Client):
        """
        Initialize profile repository.

        Args:
            client: Service-role Supabase client
        """
        self.client = client

    def get_google_credentials(self, user_id: str) -> Optional[GoogleCredentials]:
        """
        Load the Google tokens stored on a user's profile.

        Args:
            user_id: Supabase user id

        Returns:
            GoogleCredentials, or None when the user has no profile

        Raises:
            RepositoryError: If the query fails
        """
        try:
            result = (
                self.client.table(PROFILES_TABLE)
                .select(CREDENTIAL_COLUMNS)
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("Profile fetch failed", user_id=user_id, error=str(e))
            raise RepositoryError("get_google_credentials", str(e)) from e

        row = result.data[0] if result.data else None
        if row is None:
            return None

        return GoogleCredentials(
            access_token=row.get("google_access_token"),
            refresh_token=row.get("google_refresh_token"),
            expires_at=row.get("google_token_expires_at"),
        )

    def save_google_tokens(
        self,
        user_id: str,
        email: Optional[str],
        access_token: str,
        refresh_token: Optional[str],
        expires_at: datetime,
        now: datetime,
    ) -> None:
        """
        Upsert the user's Google tokens.

        A missing refresh token leaves the stored one untouched, since
        Google only issues it on the first consent.

        Raises:
            RepositoryError: If the upsert fails
        """
        row: Dict[str, Any] = {
            "user_id": user_id,
            "email": email,
            "google_access_token": access_token,
            "google_token_expires_at": expires_at.isoformat(),
            "updated_at": now.isoformat(),
        }
        if refresh_token:
            row["google_refresh_token"] = refresh_token

        try:
            self.client.table(PROFILES_TABLE).upsert(row, on_conflict="user_id").execute()
        except Exception as e:
            logger.error("Saving Google tokens failed", user_id=user_id, error=str(e))
            raise RepositoryError("save_google_tokens", str(e)) from e

        logger.info(
            "Google tokens saved",
            user_id=user_id,
            has_refresh_token=bool(refresh_token),
        )

    def update_access_token(
        self,
        user_id: str,
        access_token: str,
        expires_at: datetime,
        now: datetime,
    ) -> None:
        """
        Store a refreshed access token and its expiry.

        Raises:
            RepositoryError: If the update fails
        """
        try:
            (
                self.client.table(PROFILES_TABLE)
                .update(
                    {
                        "google_access_token": access_token,
                        "google_token_expires_at": expires_at.isoformat(),
                        "updated_at": now.isoformat(),
                    }
                )
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            raise RepositoryError("update_access_token", str(e)) from e
