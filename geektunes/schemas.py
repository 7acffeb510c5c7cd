import json
from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StrictBool, field_validator
from pydantic.alias_generators import to_camel


ProjectStatus = Literal["em_desenvolvimento", "finalizado", "lancado"]
NotificationType = Literal["info", "success", "warning", "error", "system", "mention"]
NotificationTarget = Literal["all", "specific_user", "artists_only"]


class CamelModel(BaseModel):
    # JSON on the wire is camelCase (isActive, socialLinks); snake_case is accepted on input
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _check_social_links(value):
    if value is None:
        return value
    if isinstance(value, dict):
        value = json.dumps(value)
    try:
        parsed = json.loads(value)
    except ValueError:
        raise ValueError("socialLinks must be a JSON object")
    if not isinstance(parsed, dict):
        raise ValueError("socialLinks must be a JSON object")
    return value


# --- User ---

# What the API receives at registration
class UserCreate(CamelModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @field_validator("username")
    @classmethod
    def username_not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("username must not be blank")
        return v


class LoginRequest(CamelModel):
    username: str
    password: str


# Stored record, password hash included. Never used as a response model.
class UserInDB(CamelModel):
    id: str
    username: str
    hashed_password: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    is_admin: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# What the API returns about a user
class User(CamelModel):
    id: str
    username: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    is_admin: bool = False
    created_at: Optional[datetime] = None


class UserPublic(CamelModel):
    """Author info attached to chat messages and the mention list."""
    id: str
    username: str
    profile_image_url: Optional[str] = None
    is_admin: bool = False


class UserMini(CamelModel):
    id: str
    username: str


class RegisterResponse(CamelModel):
    user: UserMini


class UserProfileUpdate(CamelModel):
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None


class AdminStatusUpdate(CamelModel):
    is_admin: StrictBool


# --- Token ---

class Token(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginResponse(Token):
    user: User


class RefreshRequest(CamelModel):
    refresh_token: str


# --- Artist ---

# What the API receives when an admin creates an artist
class ArtistCreate(CamelModel):
    name: str = Field(..., min_length=1)
    avatar: str
    banner: Optional[str] = None
    description: str
    roles: List[str] = []
    social_links: str = "{}"
    music_url: Optional[str] = None
    is_active: bool = True
    musical_styles: List[str] = []
    artist_types: List[str] = []
    likes_count: int = Field(0, ge=0)
    user_id: Optional[str] = None

    @field_validator("social_links", mode="before")
    @classmethod
    def social_links_is_json_object(cls, v):
        return _check_social_links(v)


# Partial update: fields left out of the body are not touched
class ArtistUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    avatar: Optional[str] = None
    banner: Optional[str] = None
    description: Optional[str] = None
    roles: Optional[List[str]] = None
    social_links: Optional[str] = None
    music_url: Optional[str] = None
    is_active: Optional[bool] = None
    musical_styles: Optional[List[str]] = None
    artist_types: Optional[List[str]] = None
    user_id: Optional[str] = None

    @field_validator("social_links", mode="before")
    @classmethod
    def social_links_is_json_object(cls, v):
        return _check_social_links(v)


# What the API returns (after registration or lookup)
class Artist(CamelModel):
    id: int
    name: str
    avatar: str
    banner: Optional[str] = None
    description: str
    roles: List[str] = []
    social_links: str = "{}"
    music_url: Optional[str] = None
    is_active: bool = True
    musical_styles: List[str] = []
    artist_types: List[str] = []
    likes_count: int = 0
    user_id: Optional[str] = None


# --- Project ---

class ProjectCreate(CamelModel):
    name: str = Field(..., min_length=1)
    cover: str
    description: str
    genres: List[str] = []
    collaborators: List[int] = []  # artist ids
    preview_url: Optional[str] = None
    preview_video_url: Optional[str] = None
    status: ProjectStatus = "em_desenvolvimento"
    release_date: Optional[date] = None
    is_active: bool = True


class ProjectUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    cover: Optional[str] = None
    description: Optional[str] = None
    genres: Optional[List[str]] = None
    collaborators: Optional[List[int]] = None
    preview_url: Optional[str] = None
    preview_video_url: Optional[str] = None
    status: Optional[ProjectStatus] = None
    release_date: Optional[date] = None
    is_active: Optional[bool] = None


class Project(CamelModel):
    id: int
    name: str
    cover: str
    description: str
    genres: List[str] = []
    collaborators: List[int] = []
    preview_url: Optional[str] = None
    preview_video_url: Optional[str] = None
    status: ProjectStatus = "em_desenvolvimento"
    release_date: Optional[date] = None
    created_at: Optional[datetime] = None
    is_active: bool = True


# --- Like ---

class Like(CamelModel):
    id: int
    user_id: str
    artist_id: int
    created_at: Optional[datetime] = None


class LikeStatus(CamelModel):
    is_liked: bool


# --- Notification ---

class NotificationCreate(CamelModel):
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    type: NotificationType = "info"
    user_id: Optional[str] = None
    target_type: NotificationTarget = "all"
    related_message_id: Optional[int] = None


class Notification(CamelModel):
    id: int
    title: str
    message: str
    type: NotificationType = "info"
    user_id: Optional[str] = None
    target_type: NotificationTarget = "all"
    related_message_id: Optional[int] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


# --- Track ---

# The owning artist comes from the logged-in user, never from the body
class TrackCreate(CamelModel):
    title: str = Field(..., min_length=1)
    audio_url: str = Field(..., min_length=1)
    cover_url: Optional[str] = None
    genre: Optional[str] = None
    duration: Optional[int] = Field(None, ge=0)  # seconds


class TrackUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    audio_url: Optional[str] = Field(None, min_length=1)
    cover_url: Optional[str] = None
    genre: Optional[str] = None
    duration: Optional[int] = Field(None, ge=0)


class Track(CamelModel):
    id: int
    artist_id: int
    title: str
    audio_url: str
    cover_url: Optional[str] = None
    genre: Optional[str] = None
    duration: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# --- Chat ---

class ChatMessageCreate(CamelModel):
    message: str


class ChatMessage(CamelModel):
    id: int
    user_id: str
    message: str
    created_at: Optional[datetime] = None
    edited_at: Optional[datetime] = None
    is_deleted: bool = False
    user: Optional[UserPublic] = None
