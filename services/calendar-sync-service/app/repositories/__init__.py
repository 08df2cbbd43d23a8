"""
Repository layer - Data access abstractions.

Repositories wrap the Supabase table API for the profiles and events
tables, hiding PostgREST query details from the business logic.
"""

from app.repositories.event_repository import EventRepository
from app.repositories.profile_repository import ProfileRepository

__all__ = ["EventRepository", "ProfileRepository"]
