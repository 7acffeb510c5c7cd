import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import Settings

# Password hashing (bcrypt)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


# --- 1. Passwords ---

def verify_password(plain_password, hashed_password):
    """
    Compare a plain password with the stored hash.
    """
    return pwd_context.verify(plain_password, hashed_password)


def dummy_verify():
    """
    Run a hash check against nothing, for logins with an unknown username.
    """
    pwd_context.dummy_verify()


def get_password_hash(password):
    """
    Hash a password (salt is generated by bcrypt).
    """
    return pwd_context.hash(password)


# --- 2. JWT ---

def _encode(data: dict, expire: datetime, token_type: str, settings: Settings):
    to_encode = data.copy()
    to_encode.update({"exp": expire, "type": token_type})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_access_token(data: dict, settings: Settings, expires_delta: Optional[timedelta] = None):
    """
    Build a signed access token.
    Payload: data (``sub`` = user id) + exp + type
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    expire = datetime.now(timezone.utc) + expires_delta
    return _encode(data, expire, ACCESS_TOKEN_TYPE, settings)


def create_refresh_token(data: dict, settings: Settings, expires_delta: Optional[timedelta] = None):
    if expires_delta is None:
        expires_delta = timedelta(days=settings.refresh_token_expire_days)
    expire = datetime.now(timezone.utc) + expires_delta
    # jti keeps two refresh tokens issued in the same second distinct
    payload = {**data, "jti": uuid.uuid4().hex}
    return _encode(payload, expire, REFRESH_TOKEN_TYPE, settings), expire


def decode_token(token: str, settings: Settings):
    """
    Decode a JWT and return its payload, or None if it is invalid or expired.
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
