"""Authentication routes.

This module handles HTTP endpoints for user authentication and registration.
Registering a user also creates their profile.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

import pytz
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    ADMIN_TOKEN,
    JWT_ALGORITHM,
    JWT_SECRET_KEY,
)
from core.dependencies import UserManagerDep
from schemas.user import (
    CurrentUserResponse,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    User,
)
from utils.user_manager import UserAlreadyExistsError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

# HTTP Bearer token security
security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)

_INVALID_CREDENTIALS = "Invalid authentication credentials"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token.

    Args:
        data: Data to encode in the token.
        expires_delta: Optional expiration time delta.

    Returns:
        Encoded JWT token string.
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(pytz.utc) + expires_delta
    else:
        expire = datetime.now(pytz.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def _decode_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=_INVALID_CREDENTIALS,
        )
    if payload.get("sub") is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=_INVALID_CREDENTIALS,
        )
    return payload


def verify_token(credentials: HTTPAuthorizationCredentials = Depends(security)) -> dict:
    """Verify JWT token from Authorization header.

    Args:
        credentials: HTTP Bearer token credentials.

    Returns:
        Decoded token payload.

    Raises:
        HTTPException: If token is invalid or expired.
    """
    return _decode_token(credentials.credentials)


def get_current_user(
    token_payload: dict = Depends(verify_token),
    user_manager: UserManagerDep = None,
) -> User:
    """Get current authenticated user.

    Args:
        token_payload: Decoded JWT token payload.
        user_manager: Injected UserManager instance.

    Returns:
        Current User object.

    Raises:
        HTTPException: If user is not found.
    """
    user = user_manager.get_user_by_username(token_payload["sub"])
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    user_manager: UserManagerDep = None,
) -> Optional[User]:
    """Current user when a bearer token is sent, None for anonymous requests.

    A token that is sent but invalid is still rejected.
    """
    if credentials is None:
        return None
    payload = _decode_token(credentials.credentials)
    user = user_manager.get_user_by_username(payload["sub"])
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


def _public_user_dict(user: User, user_manager) -> dict:
    user_dict = user.model_dump()
    user_dict.pop("password_hash", None)
    user_dict["role"] = user_manager.get_user_role(user.user_id)
    return user_dict


@router.post("/register", summary="Register a user")
def register(
    req: RegisterRequest,
    user_manager: UserManagerDep = None,
) -> dict:
    """Register a new user and create their profile.

    Registration requirements:
    - Regular users: no extra requirement.
    - Admin: requires ``admin_token`` matching ADMIN_TOKEN.

    Args:
        req: Registration request with username, password, full name, etc.
        user_manager: Injected UserManager instance.

    Returns:
        Dictionary with success message and user_id.

    Raises:
        HTTPException: If registration fails.
    """
    role = "user"
    if req.admin_token is not None:
        if not ADMIN_TOKEN:
            logger.error("ADMIN_TOKEN is not set in environment variables")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Admin registration is not configured. ADMIN_TOKEN not set.",
            )
        if req.admin_token != ADMIN_TOKEN:
            logger.warning("Rejected admin registration for %s", req.username)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid admin token",
            )
        role = "admin"

    try:
        user = user_manager.create_user(
            username=req.username,
            password=req.password,
            full_name=req.full_name,
            email=req.email,
            role=role,
        )
    except UserAlreadyExistsError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )

    return {
        "success": True,
        "message": "User registered successfully",
        "user_id": user.user_id,
    }


@router.post("/login", summary="Log in")
def login(
    req: LoginRequest,
    user_manager: UserManagerDep = None,
) -> LoginResponse:
    """Login with username and password.

    Args:
        req: Login request with username and password.
        user_manager: Injected UserManager instance.

    Returns:
        LoginResponse with user information and JWT token.

    Raises:
        HTTPException: If login fails.
    """
    user = user_manager.get_user_by_username(req.username)
    if user is None or not user_manager.verify_password(req.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )

    access_token = create_access_token(
        data={"sub": user.username},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return LoginResponse(user=_public_user_dict(user, user_manager), token=access_token)


@router.post("/logout", summary="Log out")
def logout() -> dict:
    """Logout endpoint.

    Note: Since we're using stateless JWT tokens, logout is handled
    client-side by removing the token. This endpoint exists for API
    consistency.
    """
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me", response_model=CurrentUserResponse, summary="Current user")
def get_current_user_info(
    current_user: User = Depends(get_current_user),
    user_manager: UserManagerDep = None,
) -> CurrentUserResponse:
    """Get current authenticated user information."""
    return CurrentUserResponse(user=_public_user_dict(current_user, user_manager))
