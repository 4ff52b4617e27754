# mentorhub/routers/auth_router.py
from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from datetime import timedelta, datetime, timezone

from ..database import get_db
from ..schemas import ApiResponse, UserCreate, UserResponse, Token
from ..models import User, UserRole
from ..security import authenticate_user, create_access_token, get_password_hash, get_current_user
from ..config import get_settings

router = APIRouter(tags=["authentication"])
settings = get_settings()

def _set_auth_cookie(response: Response, token: str, lifetime: timedelta) -> None:
    # Browsers authenticate with this cookie, API clients with the bearer token
    response.set_cookie(
        key="access_token",
        value=token,
        httponly=True,
        max_age=int(lifetime.total_seconds()),
        expires=datetime.now(timezone.utc) + lifetime,
        samesite="lax",
        secure=settings.COOKIE_SECURE,
    )

def _user_data(user: User) -> dict:
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        is_active=user.is_active,
        created_at=user.created_at,
        updated_at=user.updated_at,
        roles=sorted(r.role for r in user.roles),
        has_mentor_profile=user.mentor_profile is not None,
    ).model_dump(mode="json")

@router.post("/register", response_model=ApiResponse, status_code=201)
async def register_user(user: UserCreate, db: Session = Depends(get_db)):
    """Register a new student or mentor account"""
    if db.query(User).filter(User.username == user.username).first():
        raise HTTPException(status_code=409, detail="Username already registered")
    if user.email and db.query(User).filter(User.email == user.email).first():
        raise HTTPException(status_code=409, detail="Email already registered")

    db_user = User(
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        hashed_password=get_password_hash(user.password)
    )
    db_user.roles.append(UserRole(role=user.role))
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return ApiResponse(success=True, message="Registration successful", data=_user_data(db_user))

@router.post("/token", response_model=Token)
async def login(
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """Login and set HttpOnly cookie, also return OAuth2 token payload"""
    user = authenticate_user(db, form_data.username, form_data.password)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Incorrect username or password")

    lifetime = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token({"sub": user.username}, expires_delta=lifetime)
    _set_auth_cookie(response, access_token, lifetime)
    return Token(access_token=access_token, token_type="bearer")

@router.get("/users/me", response_model=ApiResponse)
async def get_current_user_profile(current_user: User = Depends(get_current_user)):
    """Current user with roles and whether a mentor profile exists"""
    return ApiResponse(success=True, data=_user_data(current_user))

@router.post("/logout", response_model=ApiResponse)
async def logout(response: Response):
    """Logout user by clearing cookie"""
    response.delete_cookie(key="access_token")
    return ApiResponse(success=True, message="Logged out successfully")
