"""Profile routes."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from api.routes.auth import get_current_user
from core.dependencies import ProfileManagerDep, UserManagerDep
from core.exceptions import PolicyViolationError, ProfileNotFoundError, ValidationError
from schemas.profile import (
    AvatarSeedResponse,
    Profile,
    UpdateProfileRequest,
    UpdateRoleRequest,
)
from schemas.user import User
from utils.profile_manager import avatar_url_for_seed, random_avatar_seed

router = APIRouter(prefix="/api/profiles", tags=["Profile"])


def _profile_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Profile not found",
    )


def _with_avatar_seed(profile: Profile, profile_manager) -> Profile:
    return profile.model_copy(
        update={"avatar_seed": profile_manager.current_avatar_seed(profile.user_id)}
    )


@router.get("", response_model=List[Profile], summary="List profiles")
def list_profiles(profile_manager: ProfileManagerDep) -> List[Profile]:
    return profile_manager.list_profiles()


@router.get("/me", response_model=Profile, summary="Current user's profile")
def get_my_profile(
    profile_manager: ProfileManagerDep,
    current_user: User = Depends(get_current_user),
) -> Profile:
    """Own profile, including the seed behind the current avatar."""
    try:
        profile = profile_manager.get_profile(current_user.user_id)
    except ProfileNotFoundError:
        raise _profile_not_found()
    return _with_avatar_seed(profile, profile_manager)


@router.patch("/me", response_model=Profile, summary="Update current user's profile")
def update_my_profile(
    req: UpdateProfileRequest,
    profile_manager: ProfileManagerDep,
    current_user: User = Depends(get_current_user),
) -> Profile:
    """Update the display name and/or avatar seed of the current user."""
    try:
        profile = profile_manager.update_profile(
            current_user.user_id,
            current_user.user_id,
            full_name=req.full_name,
            avatar_seed=req.avatar_seed,
        )
    except ProfileNotFoundError:
        raise _profile_not_found()
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    return _with_avatar_seed(profile, profile_manager)


@router.get(
    "/me/avatar/random",
    response_model=AvatarSeedResponse,
    summary="Suggest a random avatar",
)
def suggest_random_avatar(
    current_user: User = Depends(get_current_user),
) -> AvatarSeedResponse:
    """Return a fresh seed and its preview URL. Nothing is saved."""
    seed = random_avatar_seed()
    return AvatarSeedResponse(avatar_seed=seed, avatar_url=avatar_url_for_seed(seed))


@router.get("/{user_id}", response_model=Profile, summary="Get a profile")
def get_profile(user_id: str, profile_manager: ProfileManagerDep) -> Profile:
    try:
        return profile_manager.get_profile(user_id)
    except ProfileNotFoundError:
        raise _profile_not_found()


@router.put("/{user_id}/role", response_model=Profile, summary="Change a user's role")
def set_role(
    user_id: str,
    req: UpdateRoleRequest,
    profile_manager: ProfileManagerDep,
    user_manager: UserManagerDep,
    current_user: User = Depends(get_current_user),
) -> Profile:
    """Grant or revoke premium/admin roles. Admins only."""
    try:
        return profile_manager.set_role(
            user_id, req.role, user_manager.get_user_role(current_user.user_id)
        )
    except PolicyViolationError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e),
        )
    except ProfileNotFoundError:
        raise _profile_not_found()
