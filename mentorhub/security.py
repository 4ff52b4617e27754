# mentorhub/security.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Cookie, Depends, Header, HTTPException, Request, status
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session, selectinload

from .config import get_settings
from .constants import ErrorMessages
from .database import get_db
from .models import User
from .schemas import TokenData

logger = logging.getLogger(__name__)

settings = get_settings()

# bcrypt hashes for stored passwords
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Signs a JWT for `data`; `sub` carries the username."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    return jwt.encode({**data, "exp": expire}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def decode_access_token(token: str) -> Optional[TokenData]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.info("JWT decode failed: %s", e)
        return None
    username = payload.get("sub")
    return TokenData(username=username) if username else None

def get_user(db: Session, username: str) -> Optional[User]:
    """Loads a user with the roles and mentor profile most endpoints look at."""
    return db.query(User).options(
        selectinload(User.roles),
        selectinload(User.mentor_profile),
    ).filter(User.username == username).first()

def authenticate_user(db: Session, username: str, password: str) -> Optional[User]:
    user = get_user(db, username)
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user

def extract_token(request: Request, authorization: Optional[str], access_token_cookie: Optional[str]) -> Optional[str]:
    """Bearer header first (Swagger, API clients), then the HttpOnly cookie set by /token."""
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials:
            return credentials
        logger.info("Authorization header present but not Bearer.")
    return access_token_cookie or request.cookies.get("access_token")

def _resolve_user(request: Request, db: Session, authorization: Optional[str], access_token_cookie: Optional[str]) -> Optional[User]:
    token = extract_token(request, authorization, access_token_cookie)
    if not token:
        return None
    token_data = decode_access_token(token)
    if token_data is None:
        return None
    user = get_user(db, token_data.username)
    if user is None or not user.is_active:
        return None
    return user

def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(None),
    access_token_cookie: Optional[str] = Cookie(None, alias="access_token"),
) -> User:
    """The signed-in, active caller; 401 otherwise."""
    user = _resolve_user(request, db, authorization, access_token_cookie)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=ErrorMessages.UNAUTHORIZED)
    return user

def get_optional_user(
    request: Request,
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(None),
    access_token_cookie: Optional[str] = Cookie(None, alias="access_token"),
) -> Optional[User]:
    """Same as get_current_user but anonymous callers get None instead of a 401."""
    return _resolve_user(request, db, authorization, access_token_cookie)
