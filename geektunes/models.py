import datetime
import uuid

from sqlalchemy import create_engine, Column, Integer, String, Text, Boolean, ForeignKey, DateTime, Date, JSON, UniqueConstraint, Index, CheckConstraint
from sqlalchemy.orm import relationship, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()


# --- 1. Database connection ---
# SQLite for development and tests, PostgreSQL in production.
def create_session_factory(database_url: str):
    """
    Build an engine and a session factory for ``database_url``.
    An in-memory SQLite URL gets a single shared connection so every session
    sees the same database.
    """
    engine_kwargs = {}
    if database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            engine_kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, **engine_kwargs)
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def _new_user_id():
    return uuid.uuid4().hex


def _now():
    return datetime.datetime.now(datetime.timezone.utc)


# --- 2. Tables ---

class User(Base):
    __tablename__ = 'users'
    id = Column(String(64), primary_key=True, default=_new_user_id)
    username = Column(String(100), nullable=False, unique=True, index=True)
    hashed_password = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    profile_image_url = Column(Text, nullable=True)
    is_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=_now)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now)

    likes = relationship("Like", back_populates="user", cascade="all, delete-orphan")
    refresh_tokens = relationship("RefreshToken", back_populates="user", cascade="all, delete-orphan")


class Artist(Base):
    __tablename__ = 'artists'
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    avatar = Column(Text, nullable=False)
    banner = Column(Text, nullable=True)
    description = Column(Text, nullable=False)
    # Tag lists are JSON arrays so the same schema runs on SQLite and PostgreSQL
    roles = Column(JSON, nullable=False, default=list)
    social_links = Column(Text, nullable=False, default="{}")  # JSON object string
    music_url = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    musical_styles = Column(JSON, nullable=False, default=list)
    artist_types = Column(JSON, nullable=False, default=list)
    likes_count = Column(Integer, nullable=False, default=0)
    user_id = Column(String(64), ForeignKey('users.id'), nullable=True, index=True)

    likes = relationship("Like", back_populates="artist", cascade="all, delete-orphan")
    tracks = relationship("Track", back_populates="artist", cascade="all, delete-orphan")


class Project(Base):
    __tablename__ = 'projects'
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    cover = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    genres = Column(JSON, nullable=False, default=list)
    collaborators = Column(JSON, nullable=False, default=list)  # artist ids
    preview_url = Column(Text, nullable=True)
    preview_video_url = Column(Text, nullable=True)
    status = Column(String(50), nullable=False, default="em_desenvolvimento")
    release_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('em_desenvolvimento', 'finalizado', 'lancado')",
            name="valid_project_status"
        ),
    )


class Track(Base):
    __tablename__ = 'tracks'
    id = Column(Integer, primary_key=True, index=True)
    artist_id = Column(Integer, ForeignKey('artists.id'), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    audio_url = Column(Text, nullable=False)
    cover_url = Column(Text, nullable=True)
    genre = Column(String(100), nullable=True)
    duration = Column(Integer, nullable=True)  # seconds
    created_at = Column(DateTime(timezone=True), default=_now, index=True)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now)

    artist = relationship("Artist", back_populates="tracks")


class Like(Base):
    __tablename__ = 'likes'
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey('users.id'), nullable=False)
    artist_id = Column(Integer, ForeignKey('artists.id'), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now)

    __table_args__ = (
        Index('idx_likes_user', 'user_id'),
        # one like per (user, artist)
        UniqueConstraint('user_id', 'artist_id', name='_user_artist_like_uc'),
    )

    user = relationship("User", back_populates="likes")
    artist = relationship("Artist", back_populates="likes")


class Notification(Base):
    __tablename__ = 'notifications'
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, default="info")
    user_id = Column(String(64), ForeignKey('users.id'), nullable=True)
    target_type = Column(String(20), nullable=False, default="all")
    related_message_id = Column(Integer, ForeignKey('chat_messages.id'), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=_now, index=True)


class ChatMessage(Base):
    __tablename__ = 'chat_messages'
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey('users.id'), nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now)
    edited_at = Column(DateTime(timezone=True), nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)

    user = relationship("User")


class RefreshToken(Base):
    __tablename__ = 'refresh_tokens'
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey('users.id'), nullable=False)
    token = Column(String(512), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now)

    user = relationship("User", back_populates="refresh_tokens")
