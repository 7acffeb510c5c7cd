"""In-memory catalog repository for tests and development."""

import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Tuple

from .. import schemas
from ..exceptions import DuplicateKey, InvalidArgument, NotFound
from .base import (
    ARTIST_NULLABLE,
    PROJECT_NULLABLE,
    TRACK_NULLABLE,
    USER_NULLABLE,
    CatalogRepository,
    artist_matches,
    clean_changes,
    newest_first,
    normalize_query,
    project_matches,
)


def _now():
    return datetime.now(timezone.utc)


class MemStorage(CatalogRepository):
    """Dict-backed implementation of CatalogRepository.

    Records are copied on the way in and out so callers never hold a reference
    into the store. A lock serializes access because FastAPI runs sync routes
    in a thread pool.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._users: Dict[str, schemas.UserInDB] = {}
        self._artists: Dict[int, schemas.Artist] = {}
        self._projects: Dict[int, schemas.Project] = {}
        self._likes: Dict[Tuple[str, int], schemas.Like] = {}
        self._notifications: Dict[int, schemas.Notification] = {}
        self._chat_messages: Dict[int, schemas.ChatMessage] = {}
        self._tracks: Dict[int, schemas.Track] = {}
        self._refresh_tokens: Dict[str, str] = {}  # token -> user id
        self._next_artist_id = 1
        self._next_project_id = 1
        self._next_like_id = 1
        self._next_notification_id = 1
        self._next_chat_message_id = 1
        self._next_track_id = 1

    def is_empty(self) -> bool:
        with self._lock:
            return not (self._artists or self._projects or self._notifications)

    # --- users ---

    def get_user(self, user_id):
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy(deep=True) if user else None

    def get_user_by_username(self, username):
        with self._lock:
            for user in self._users.values():
                if user.username == username:
                    return user.model_copy(deep=True)
            return None

    def create_user(self, username, hashed_password, **fields):
        with self._lock:
            if any(u.username == username for u in self._users.values()):
                raise DuplicateKey("Username already exists")
            now = _now()
            user = schemas.UserInDB(
                id=uuid.uuid4().hex,
                username=username,
                hashed_password=hashed_password,
                email=fields.get("email"),
                first_name=fields.get("first_name"),
                last_name=fields.get("last_name"),
                profile_image_url=fields.get("profile_image_url"),
                is_admin=fields.get("is_admin", False),
                created_at=now,
                updated_at=now,
            )
            self._users[user.id] = user
            return user.model_copy(deep=True)

    def get_all_users(self):
        with self._lock:
            return [u.model_copy(deep=True) for u in self._users.values()]

    def update_user_profile(self, user_id, changes):
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            changes = clean_changes(changes, USER_NULLABLE)
            updated = user.model_copy(update={**changes, "updated_at": _now()})
            self._users[user_id] = updated
            return updated.model_copy(deep=True)

    def update_user_admin_status(self, user_id, is_admin):
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            updated = user.model_copy(update={"is_admin": is_admin, "updated_at": _now()})
            self._users[user_id] = updated
            return updated.model_copy(deep=True)

    def get_user_artist_profile(self, user_id):
        with self._lock:
            for artist in self._artists.values():
                if artist.user_id == user_id and artist.is_active:
                    return artist.model_copy(deep=True)
            return None

    # --- artists ---

    def _check_user_ref(self, user_id):
        if user_id is not None and user_id not in self._users:
            raise InvalidArgument(f"Unknown user id: {user_id}")

    def _active_artists(self) -> List[schemas.Artist]:
        return [a.model_copy(deep=True) for a in self._artists.values() if a.is_active]

    def get_all_artists(self):
        with self._lock:
            return self._active_artists()

    def get_artist(self, artist_id):
        with self._lock:
            artist = self._artists.get(artist_id)
            return artist.model_copy(deep=True) if artist else None

    def get_artists_by_role(self, role):
        with self._lock:
            return [a for a in self._active_artists() if role in a.roles]

    def search_artists(self, query):
        needle = normalize_query(query)
        with self._lock:
            return [a for a in self._active_artists() if artist_matches(a, needle)]

    def get_all_artists_admin(self):
        with self._lock:
            return [a.model_copy(deep=True) for a in self._artists.values()]

    def create_artist(self, data):
        with self._lock:
            self._check_user_ref(data.user_id)
            artist = schemas.Artist(id=self._next_artist_id, **data.model_dump())
            self._next_artist_id += 1
            self._artists[artist.id] = artist
            return artist.model_copy(deep=True)

    def update_artist(self, artist_id, changes):
        with self._lock:
            artist = self._artists.get(artist_id)
            if artist is None:
                return None
            changes = clean_changes(changes, ARTIST_NULLABLE)
            changes.pop("id", None)
            self._check_user_ref(changes.get("user_id"))
            updated = artist.model_copy(update=changes)
            self._artists[artist_id] = updated
            return updated.model_copy(deep=True)

    def delete_artist(self, artist_id):
        with self._lock:
            artist = self._artists.get(artist_id)
            if artist is None:
                return False
            self._artists[artist_id] = artist.model_copy(update={"is_active": False})
            return True

    # --- projects ---

    def _check_collaborators(self, collaborators):
        missing = [c for c in collaborators if c not in self._artists]
        if missing:
            raise InvalidArgument(f"Unknown collaborator ids: {missing}")

    def _active_projects(self) -> List[schemas.Project]:
        return [p.model_copy(deep=True) for p in self._projects.values() if p.is_active]

    def get_all_projects(self):
        with self._lock:
            return self._active_projects()

    def get_project(self, project_id):
        with self._lock:
            project = self._projects.get(project_id)
            return project.model_copy(deep=True) if project else None

    def get_projects_by_status(self, status):
        with self._lock:
            return [p for p in self._active_projects() if p.status == status]

    def search_projects(self, query):
        needle = normalize_query(query)
        with self._lock:
            return [p for p in self._active_projects() if project_matches(p, needle)]

    def create_project(self, data):
        with self._lock:
            self._check_collaborators(data.collaborators)
            project = schemas.Project(id=self._next_project_id, created_at=_now(), **data.model_dump())
            self._next_project_id += 1
            self._projects[project.id] = project
            return project.model_copy(deep=True)

    def update_project(self, project_id, changes):
        with self._lock:
            project = self._projects.get(project_id)
            if project is None:
                return None
            changes = clean_changes(changes, PROJECT_NULLABLE)
            changes.pop("id", None)
            if "collaborators" in changes:
                self._check_collaborators(changes["collaborators"])
            updated = project.model_copy(update=changes)
            self._projects[project_id] = updated
            return updated.model_copy(deep=True)

    def delete_project(self, project_id):
        with self._lock:
            project = self._projects.get(project_id)
            if project is None:
                return False
            self._projects[project_id] = project.model_copy(update={"is_active": False})
            return True

    # --- likes ---

    def like_artist(self, user_id, artist_id):
        with self._lock:
            artist = self._artists.get(artist_id)
            if artist is None or not artist.is_active:
                raise NotFound("Artist not found")
            key = (user_id, artist_id)
            if key in self._likes:
                raise DuplicateKey("Artist already liked")
            like = schemas.Like(id=self._next_like_id, user_id=user_id, artist_id=artist_id, created_at=_now())
            self._next_like_id += 1
            self._likes[key] = like
            self._artists[artist_id] = artist.model_copy(update={"likes_count": artist.likes_count + 1})
            return like.model_copy()

    def unlike_artist(self, user_id, artist_id):
        with self._lock:
            if self._likes.pop((user_id, artist_id), None) is None:
                return False
            artist = self._artists.get(artist_id)
            if artist is not None:
                self._artists[artist_id] = artist.model_copy(
                    update={"likes_count": max(0, artist.likes_count - 1)}
                )
            return True

    def get_user_likes(self, user_id):
        with self._lock:
            return [like.model_copy() for (uid, _), like in self._likes.items() if uid == user_id]

    def is_artist_liked(self, user_id, artist_id):
        with self._lock:
            return (user_id, artist_id) in self._likes

    # --- notifications ---

    def get_all_notifications(self):
        with self._lock:
            return newest_first([n.model_copy() for n in self._notifications.values()])

    def get_active_notifications(self):
        with self._lock:
            return newest_first([n.model_copy() for n in self._notifications.values() if n.is_active])

    def get_user_notifications(self, user_id):
        with self._lock:
            is_artist = any(a.user_id == user_id for a in self._artists.values())
            visible = []
            for n in self._notifications.values():
                if not n.is_active:
                    continue
                if (
                    n.target_type == "all"
                    or n.user_id == user_id
                    or (n.target_type == "artists_only" and is_artist)
                ):
                    visible.append(n.model_copy())
            return newest_first(visible)

    def create_notification(self, data):
        with self._lock:
            self._check_user_ref(data.user_id)
            notification = schemas.Notification(
                id=self._next_notification_id,
                is_active=True,
                created_at=_now(),
                **data.model_dump(),
            )
            self._next_notification_id += 1
            self._notifications[notification.id] = notification
            return notification.model_copy()

    def delete_notification(self, notification_id):
        with self._lock:
            return self._notifications.pop(notification_id, None) is not None

    # --- chat ---

    def _with_author(self, message: schemas.ChatMessage) -> schemas.ChatMessage:
        author = self._users.get(message.user_id)
        user = schemas.UserPublic.model_validate(author) if author else None
        return message.model_copy(update={"user": user})

    def get_chat_messages(self):
        with self._lock:
            return [self._with_author(m) for m in self._chat_messages.values() if not m.is_deleted]

    def get_chat_message(self, message_id):
        with self._lock:
            message = self._chat_messages.get(message_id)
            return self._with_author(message) if message else None

    def create_chat_message(self, user_id, message):
        with self._lock:
            if user_id not in self._users:
                raise NotFound("User not found")
            chat_message = schemas.ChatMessage(
                id=self._next_chat_message_id,
                user_id=user_id,
                message=message,
                created_at=_now(),
            )
            self._next_chat_message_id += 1
            self._chat_messages[chat_message.id] = chat_message
            return self._with_author(chat_message)

    def delete_chat_message(self, message_id):
        with self._lock:
            message = self._chat_messages.get(message_id)
            if message is None or message.is_deleted:
                return False
            self._chat_messages[message_id] = message.model_copy(update={"is_deleted": True})
            return True

    # --- tracks ---

    def get_all_tracks(self):
        with self._lock:
            return newest_first([t.model_copy() for t in self._tracks.values()])

    def get_artist_tracks(self, artist_id):
        with self._lock:
            return newest_first([t.model_copy() for t in self._tracks.values() if t.artist_id == artist_id])

    def get_track(self, track_id):
        with self._lock:
            track = self._tracks.get(track_id)
            return track.model_copy() if track else None

    def create_track(self, artist_id, data):
        with self._lock:
            if artist_id not in self._artists:
                raise NotFound("Artist not found")
            now = _now()
            track = schemas.Track(
                id=self._next_track_id,
                artist_id=artist_id,
                created_at=now,
                updated_at=now,
                **data.model_dump(),
            )
            self._next_track_id += 1
            self._tracks[track.id] = track
            return track.model_copy()

    def update_track(self, track_id, changes):
        with self._lock:
            track = self._tracks.get(track_id)
            if track is None:
                return None
            changes = clean_changes(changes, TRACK_NULLABLE)
            # ownership is fixed at creation
            for key in ("id", "artist_id"):
                changes.pop(key, None)
            updated = track.model_copy(update={**changes, "updated_at": _now()})
            self._tracks[track_id] = updated
            return updated.model_copy()

    def delete_track(self, track_id):
        with self._lock:
            return self._tracks.pop(track_id, None) is not None

    # --- refresh tokens ---

    def store_refresh_token(self, user_id, token, expires_at):
        with self._lock:
            self._refresh_tokens[token] = user_id

    def is_refresh_token_active(self, token):
        with self._lock:
            return token in self._refresh_tokens

    def revoke_refresh_token(self, token):
        with self._lock:
            self._refresh_tokens.pop(token, None)
