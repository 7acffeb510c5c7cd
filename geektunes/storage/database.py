"""SQLAlchemy implementation of the catalog repository."""

import logging
from contextlib import contextmanager

from sqlalchemy import delete, select, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import joinedload

from .. import models, schemas
from ..exceptions import CatalogError, DuplicateKey, InvalidArgument, NotFound, StorageError
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

logger = logging.getLogger(__name__)

# SQLSTATE for unique_violation (PostgreSQL); SQLite and MySQL say so in the message
UNIQUE_VIOLATION = "23505"


def is_unique_violation(error: IntegrityError) -> bool:
    if getattr(error.orig, "pgcode", None) == UNIQUE_VIOLATION:
        return True
    text = str(error.orig)
    return "UNIQUE constraint failed" in text or "Duplicate entry" in text


class DatabaseStorage(CatalogRepository):
    """Opens one session per operation from the given session factory."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    @contextmanager
    def _session(self):
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except IntegrityError as e:
            session.rollback()
            logger.warning("Integrity error: %s", e.orig)
            if is_unique_violation(e):
                raise DuplicateKey("Record already exists") from e
            # foreign key, check or not-null constraint
            raise InvalidArgument("Invalid reference or value") from e
        except SQLAlchemyError as e:
            session.rollback()
            logger.exception("Database error")
            raise StorageError("Database error") from e
        except CatalogError:
            session.rollback()
            raise
        finally:
            session.close()

    def initialize(self):
        try:
            models.Base.metadata.create_all(bind=self.session_factory.kw["bind"])
        except SQLAlchemyError as e:
            logger.exception("Could not create tables")
            raise StorageError("Database error") from e

    def is_empty(self):
        with self._session() as db:
            for model in (models.Artist, models.Project, models.Notification):
                if db.scalar(select(func.count()).select_from(model)):
                    return False
            return True

    # --- users ---

    def get_user(self, user_id):
        with self._session() as db:
            user = db.get(models.User, user_id)
            return schemas.UserInDB.model_validate(user) if user else None

    def get_user_by_username(self, username):
        with self._session() as db:
            user = db.scalars(select(models.User).filter(models.User.username == username)).first()
            return schemas.UserInDB.model_validate(user) if user else None

    def create_user(self, username, hashed_password, **fields):
        with self._session() as db:
            # check first for a clean error; the unique constraint still guards the race
            if db.scalars(select(models.User).filter(models.User.username == username)).first():
                raise DuplicateKey("Username already exists")
            new_user = models.User(username=username, hashed_password=hashed_password, **fields)
            db.add(new_user)
            db.flush()
            return schemas.UserInDB.model_validate(new_user)

    def get_all_users(self):
        with self._session() as db:
            users = db.scalars(select(models.User).order_by(models.User.created_at)).all()
            return [schemas.UserInDB.model_validate(u) for u in users]

    def update_user_profile(self, user_id, changes):
        with self._session() as db:
            db_user = db.get(models.User, user_id)
            if db_user is None:
                return None
            for key, value in clean_changes(changes, USER_NULLABLE).items():
                setattr(db_user, key, value)
            db.flush()
            return schemas.UserInDB.model_validate(db_user)

    def update_user_admin_status(self, user_id, is_admin):
        with self._session() as db:
            db_user = db.get(models.User, user_id)
            if db_user is None:
                return None
            db_user.is_admin = is_admin
            db.flush()
            return schemas.UserInDB.model_validate(db_user)

    def get_user_artist_profile(self, user_id):
        with self._session() as db:
            artist = db.scalars(
                select(models.Artist).filter(models.Artist.user_id == user_id, models.Artist.is_active.is_(True))
            ).first()
            return schemas.Artist.model_validate(artist) if artist else None

    # --- artists ---

    def _check_user_ref(self, db, user_id):
        if user_id is not None and db.get(models.User, user_id) is None:
            raise InvalidArgument(f"Unknown user id: {user_id}")

    def _active_artists(self, db):
        rows = db.scalars(
            select(models.Artist).filter(models.Artist.is_active.is_(True)).order_by(models.Artist.id)
        ).all()
        return [schemas.Artist.model_validate(a) for a in rows]

    def get_all_artists(self):
        with self._session() as db:
            return self._active_artists(db)

    def get_artist(self, artist_id):
        with self._session() as db:
            artist = db.get(models.Artist, artist_id)
            return schemas.Artist.model_validate(artist) if artist else None

    # Tag lists are JSON columns, so tag filters run in Python over the active set
    def get_artists_by_role(self, role):
        with self._session() as db:
            return [a for a in self._active_artists(db) if role in a.roles]

    def search_artists(self, query):
        needle = normalize_query(query)
        with self._session() as db:
            return [a for a in self._active_artists(db) if artist_matches(a, needle)]

    def get_all_artists_admin(self):
        with self._session() as db:
            rows = db.scalars(select(models.Artist).order_by(models.Artist.id)).all()
            return [schemas.Artist.model_validate(a) for a in rows]

    def create_artist(self, data):
        with self._session() as db:
            self._check_user_ref(db, data.user_id)
            new_artist = models.Artist(**data.model_dump())
            db.add(new_artist)
            db.flush()
            return schemas.Artist.model_validate(new_artist)

    def update_artist(self, artist_id, changes):
        with self._session() as db:
            db_artist = db.get(models.Artist, artist_id)
            if db_artist is None:
                return None
            changes = clean_changes(changes, ARTIST_NULLABLE)
            changes.pop("id", None)
            self._check_user_ref(db, changes.get("user_id"))
            for key, value in changes.items():
                setattr(db_artist, key, value)
            db.flush()
            return schemas.Artist.model_validate(db_artist)

    def delete_artist(self, artist_id):
        with self._session() as db:
            db_artist = db.get(models.Artist, artist_id)
            if db_artist is None:
                return False
            db_artist.is_active = False
            return True

    # --- projects ---

    def _check_collaborators(self, db, collaborators):
        if not collaborators:
            return
        found = set(db.scalars(select(models.Artist.id).filter(models.Artist.id.in_(collaborators))).all())
        missing = [c for c in collaborators if c not in found]
        if missing:
            raise InvalidArgument(f"Unknown collaborator ids: {missing}")

    def _active_projects(self, db):
        rows = db.scalars(
            select(models.Project).filter(models.Project.is_active.is_(True)).order_by(models.Project.id)
        ).all()
        return [schemas.Project.model_validate(p) for p in rows]

    def get_all_projects(self):
        with self._session() as db:
            return self._active_projects(db)

    def get_project(self, project_id):
        with self._session() as db:
            project = db.get(models.Project, project_id)
            return schemas.Project.model_validate(project) if project else None

    def get_projects_by_status(self, status):
        with self._session() as db:
            rows = db.scalars(
                select(models.Project)
                .filter(models.Project.is_active.is_(True), models.Project.status == status)
                .order_by(models.Project.id)
            ).all()
            return [schemas.Project.model_validate(p) for p in rows]

    def search_projects(self, query):
        needle = normalize_query(query)
        with self._session() as db:
            return [p for p in self._active_projects(db) if project_matches(p, needle)]

    def create_project(self, data):
        with self._session() as db:
            self._check_collaborators(db, data.collaborators)
            new_project = models.Project(**data.model_dump())
            db.add(new_project)
            db.flush()
            return schemas.Project.model_validate(new_project)

    def update_project(self, project_id, changes):
        with self._session() as db:
            db_project = db.get(models.Project, project_id)
            if db_project is None:
                return None
            changes = clean_changes(changes, PROJECT_NULLABLE)
            changes.pop("id", None)
            if "collaborators" in changes:
                self._check_collaborators(db, changes["collaborators"])
            for key, value in changes.items():
                setattr(db_project, key, value)
            db.flush()
            return schemas.Project.model_validate(db_project)

    def delete_project(self, project_id):
        with self._session() as db:
            db_project = db.get(models.Project, project_id)
            if db_project is None:
                return False
            db_project.is_active = False
            return True

    # --- likes ---

    def _find_like(self, db, user_id, artist_id):
        return db.scalars(
            select(models.Like).filter(models.Like.user_id == user_id, models.Like.artist_id == artist_id)
        ).first()

    def like_artist(self, user_id, artist_id):
        with self._session() as db:
            db_artist = db.get(models.Artist, artist_id)
            if db_artist is None or not db_artist.is_active:
                raise NotFound("Artist not found")
            if self._find_like(db, user_id, artist_id):
                raise DuplicateKey("Artist already liked")
            new_like = models.Like(user_id=user_id, artist_id=artist_id)
            db.add(new_like)
            # counter update in the same transaction as the insert
            db_artist.likes_count = models.Artist.likes_count + 1
            db.flush()
            return schemas.Like.model_validate(new_like)

    def unlike_artist(self, user_id, artist_id):
        with self._session() as db:
            db_like = self._find_like(db, user_id, artist_id)
            if db_like is None:
                return False
            db.delete(db_like)
            db_artist = db.get(models.Artist, artist_id)
            if db_artist is not None and db_artist.likes_count > 0:
                db_artist.likes_count = models.Artist.likes_count - 1
            return True

    def get_user_likes(self, user_id):
        with self._session() as db:
            rows = db.scalars(select(models.Like).filter(models.Like.user_id == user_id).order_by(models.Like.id)).all()
            return [schemas.Like.model_validate(like) for like in rows]

    def is_artist_liked(self, user_id, artist_id):
        with self._session() as db:
            return self._find_like(db, user_id, artist_id) is not None

    # --- notifications ---

    def _notifications(self, db, *criteria):
        rows = db.scalars(select(models.Notification).filter(*criteria)).all()
        return newest_first([schemas.Notification.model_validate(n) for n in rows])

    def get_all_notifications(self):
        with self._session() as db:
            return self._notifications(db)

    def get_active_notifications(self):
        with self._session() as db:
            return self._notifications(db, models.Notification.is_active.is_(True))

    def get_user_notifications(self, user_id):
        with self._session() as db:
            is_artist = db.scalars(select(models.Artist.id).filter(models.Artist.user_id == user_id)).first() is not None
            visible = []
            for n in self._notifications(db, models.Notification.is_active.is_(True)):
                if n.target_type == "all" or n.user_id == user_id or (n.target_type == "artists_only" and is_artist):
                    visible.append(n)
            return visible

    def create_notification(self, data):
        with self._session() as db:
            self._check_user_ref(db, data.user_id)
            new_notification = models.Notification(**data.model_dump(), is_active=True)
            db.add(new_notification)
            db.flush()
            return schemas.Notification.model_validate(new_notification)

    def delete_notification(self, notification_id):
        with self._session() as db:
            db_notification = db.get(models.Notification, notification_id)
            if db_notification is None:
                return False
            db.delete(db_notification)
            return True

    # --- chat ---

    def get_chat_messages(self):
        with self._session() as db:
            rows = db.scalars(
                select(models.ChatMessage)
                .options(joinedload(models.ChatMessage.user))
                .filter(models.ChatMessage.is_deleted.is_(False))
                .order_by(models.ChatMessage.created_at, models.ChatMessage.id)
            ).all()
            return [schemas.ChatMessage.model_validate(m) for m in rows]

    def get_chat_message(self, message_id):
        with self._session() as db:
            message = db.get(models.ChatMessage, message_id, options=[joinedload(models.ChatMessage.user)])
            return schemas.ChatMessage.model_validate(message) if message else None

    def create_chat_message(self, user_id, message):
        with self._session() as db:
            if db.get(models.User, user_id) is None:
                raise NotFound("User not found")
            new_message = models.ChatMessage(user_id=user_id, message=message)
            db.add(new_message)
            db.flush()
            db.refresh(new_message)
            return schemas.ChatMessage.model_validate(new_message)

    def delete_chat_message(self, message_id):
        with self._session() as db:
            db_message = db.get(models.ChatMessage, message_id)
            if db_message is None or db_message.is_deleted:
                return False
            db_message.is_deleted = True
            return True

    # --- tracks ---

    def _tracks(self, db, *criteria):
        rows = db.scalars(select(models.Track).filter(*criteria)).all()
        return newest_first([schemas.Track.model_validate(t) for t in rows])

    def get_all_tracks(self):
        with self._session() as db:
            return self._tracks(db)

    def get_artist_tracks(self, artist_id):
        with self._session() as db:
            return self._tracks(db, models.Track.artist_id == artist_id)

    def get_track(self, track_id):
        with self._session() as db:
            track = db.get(models.Track, track_id)
            return schemas.Track.model_validate(track) if track else None

    def create_track(self, artist_id, data):
        with self._session() as db:
            if db.get(models.Artist, artist_id) is None:
                raise NotFound("Artist not found")
            new_track = models.Track(artist_id=artist_id, **data.model_dump())
            db.add(new_track)
            db.flush()
            return schemas.Track.model_validate(new_track)

    def update_track(self, track_id, changes):
        with self._session() as db:
            db_track = db.get(models.Track, track_id)
            if db_track is None:
                return None
            changes = clean_changes(changes, TRACK_NULLABLE)
            for key in ("id", "artist_id"):
                changes.pop(key, None)
            for key, value in changes.items():
                setattr(db_track, key, value)
            db.flush()
            return schemas.Track.model_validate(db_track)

    def delete_track(self, track_id):
        with self._session() as db:
            db_track = db.get(models.Track, track_id)
            if db_track is None:
                return False
            db.delete(db_track)
            return True

    # --- refresh tokens ---

    def store_refresh_token(self, user_id, token, expires_at):
        with self._session() as db:
            db.add(models.RefreshToken(user_id=user_id, token=token, expires_at=expires_at))

    def is_refresh_token_active(self, token):
        with self._session() as db:
            return db.scalars(select(models.RefreshToken).filter(models.RefreshToken.token == token)).first() is not None

    def revoke_refresh_token(self, token):
        with self._session() as db:
            db.execute(delete(models.RefreshToken).where(models.RefreshToken.token == token))
