"""Catalog repository interface.

Every read and write of catalog entities goes through a ``CatalogRepository``.
Implementations return ``None`` for absent records and raise
``geektunes.exceptions`` errors for everything else, so the HTTP layer maps
failures the same way whichever backend is configured.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, List, Optional

from .. import schemas
from ..exceptions import InvalidArgument

# Fields that an update may set back to null
ARTIST_NULLABLE = {"banner", "music_url", "user_id"}
PROJECT_NULLABLE = {"preview_url", "preview_video_url", "release_date"}
USER_NULLABLE = {"email", "first_name", "last_name", "profile_image_url"}
TRACK_NULLABLE = {"cover_url", "genre", "duration"}


def normalize_query(query: Optional[str]) -> str:
    """Lower-cased search term; blank queries are a caller error."""
    if query is None or not query.strip():
        raise InvalidArgument("Search query is required")
    return query.strip().lower()


def artist_matches(artist: schemas.Artist, needle: str) -> bool:
    return (
        needle in artist.name.lower()
        or needle in artist.description.lower()
        or any(needle in role.lower() for role in artist.roles)
    )


def project_matches(project: schemas.Project, needle: str) -> bool:
    return (
        needle in project.name.lower()
        or needle in project.description.lower()
        or any(needle in genre.lower() for genre in project.genres)
    )


def clean_changes(changes: dict, nullable: Iterable[str]) -> dict:
    """Drop explicit nulls aimed at required columns."""
    return {k: v for k, v in changes.items() if v is not None or k in nullable}


def newest_first(records: list) -> list:
    """Sort notifications or tracks by creation time, newest first, id breaking ties."""
    return sorted(
        records,
        key=lambda r: (r.created_at.timestamp() if r.created_at else 0, r.id),
        reverse=True,
    )


class CatalogRepository(ABC):
    """Repository for users, artists, projects, likes, notifications and chat."""

    # --- lifecycle ---

    def initialize(self) -> None:
        """Prepare the backing store (create tables, ...)."""

    @abstractmethod
    def is_empty(self) -> bool:
        """True when no artist, project or notification exists yet."""

    # --- users ---

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[schemas.UserInDB]:
        pass

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[schemas.UserInDB]:
        pass

    @abstractmethod
    def create_user(self, username: str, hashed_password: str, **fields) -> schemas.UserInDB:
        """Store a new user under a fresh id. Raises DuplicateKey if the username is taken."""

    @abstractmethod
    def get_all_users(self) -> List[schemas.UserInDB]:
        """All users in creation order."""

    @abstractmethod
    def update_user_profile(self, user_id: str, changes: dict) -> Optional[schemas.UserInDB]:
        pass

    @abstractmethod
    def update_user_admin_status(self, user_id: str, is_admin: bool) -> Optional[schemas.UserInDB]:
        pass

    @abstractmethod
    def get_user_artist_profile(self, user_id: str) -> Optional[schemas.Artist]:
        """The active artist profile owned by ``user_id``, if any."""

    # --- artists ---

    @abstractmethod
    def get_all_artists(self) -> List[schemas.Artist]:
        """Active artists in insertion order."""

    @abstractmethod
    def get_artist(self, artist_id: int) -> Optional[schemas.Artist]:
        """Lookup by id, active or not."""

    @abstractmethod
    def get_artists_by_role(self, role: str) -> List[schemas.Artist]:
        """Active artists whose roles contain ``role`` exactly (case-sensitive)."""

    @abstractmethod
    def search_artists(self, query: str) -> List[schemas.Artist]:
        """Active artists whose name, description or any role contains ``query``, ignoring case.

        Raises InvalidArgument for an empty or blank query.
        """

    @abstractmethod
    def get_all_artists_admin(self) -> List[schemas.Artist]:
        """Every artist, inactive ones included."""

    @abstractmethod
    def create_artist(self, data: schemas.ArtistCreate) -> schemas.Artist:
        """Raises InvalidArgument when ``user_id`` names no user."""

    @abstractmethod
    def update_artist(self, artist_id: int, changes: dict) -> Optional[schemas.Artist]:
        """Partial update; an unknown ``user_id`` is InvalidArgument."""

    @abstractmethod
    def delete_artist(self, artist_id: int) -> bool:
        """Soft delete. Returns False if there is no such artist."""

    # --- projects ---

    @abstractmethod
    def get_all_projects(self) -> List[schemas.Project]:
        pass

    @abstractmethod
    def get_project(self, project_id: int) -> Optional[schemas.Project]:
        pass

    @abstractmethod
    def get_projects_by_status(self, status: str) -> List[schemas.Project]:
        pass

    @abstractmethod
    def search_projects(self, query: str) -> List[schemas.Project]:
        pass

    @abstractmethod
    def create_project(self, data: schemas.ProjectCreate) -> schemas.Project:
        """Raises InvalidArgument when a collaborator id names no artist."""

    @abstractmethod
    def update_project(self, project_id: int, changes: dict) -> Optional[schemas.Project]:
        pass

    @abstractmethod
    def delete_project(self, project_id: int) -> bool:
        pass

    # --- likes ---

    @abstractmethod
    def like_artist(self, user_id: str, artist_id: int) -> schemas.Like:
        """Record a like and bump the artist's counter.

        Raises NotFound for an unknown or inactive artist and DuplicateKey when
        the user already likes it.
        """

    @abstractmethod
    def unlike_artist(self, user_id: str, artist_id: int) -> bool:
        """Remove a like. Returns False when there was none."""

    @abstractmethod
    def get_user_likes(self, user_id: str) -> List[schemas.Like]:
        pass

    @abstractmethod
    def is_artist_liked(self, user_id: str, artist_id: int) -> bool:
        pass

    # --- notifications ---

    @abstractmethod
    def get_all_notifications(self) -> List[schemas.Notification]:
        pass

    @abstractmethod
    def get_active_notifications(self) -> List[schemas.Notification]:
        pass

    @abstractmethod
    def get_user_notifications(self, user_id: str) -> List[schemas.Notification]:
        pass

    @abstractmethod
    def create_notification(self, data: schemas.NotificationCreate) -> schemas.Notification:
        """Raises InvalidArgument when ``user_id`` names no user."""

    @abstractmethod
    def delete_notification(self, notification_id: int) -> bool:
        pass

    # --- chat ---

    @abstractmethod
    def get_chat_messages(self) -> List[schemas.ChatMessage]:
        """Non-deleted messages, oldest first, each with its author."""

    @abstractmethod
    def get_chat_message(self, message_id: int) -> Optional[schemas.ChatMessage]:
        pass

    @abstractmethod
    def create_chat_message(self, user_id: str, message: str) -> schemas.ChatMessage:
        pass

    @abstractmethod
    def delete_chat_message(self, message_id: int) -> bool:
        pass

    # --- tracks ---

    @abstractmethod
    def get_all_tracks(self) -> List[schemas.Track]:
        """Every track, newest first."""

    @abstractmethod
    def get_artist_tracks(self, artist_id: int) -> List[schemas.Track]:
        pass

    @abstractmethod
    def get_track(self, track_id: int) -> Optional[schemas.Track]:
        pass

    @abstractmethod
    def create_track(self, artist_id: int, data: schemas.TrackCreate) -> schemas.Track:
        """Raises NotFound when ``artist_id`` names no artist."""

    @abstractmethod
    def update_track(self, track_id: int, changes: dict) -> Optional[schemas.Track]:
        pass

    @abstractmethod
    def delete_track(self, track_id: int) -> bool:
        """Hard delete. Returns False if there is no such track."""

    # --- refresh tokens ---

    @abstractmethod
    def store_refresh_token(self, user_id: str, token: str, expires_at: datetime) -> None:
        pass

    @abstractmethod
    def is_refresh_token_active(self, token: str) -> bool:
        pass

    @abstractmethod
    def revoke_refresh_token(self, token: str) -> None:
        pass
