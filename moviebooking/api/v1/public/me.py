from fastapi import APIRouter, Depends

from moviebooking.api.deps import get_current_user
from moviebooking.models.user import User
from moviebooking.schemas.user import User as UserSchema, MembershipInfo
from moviebooking.services.membership import membership_progress

router = APIRouter(prefix="/me", tags=["Me"])


@router.get("/", response_model=UserSchema)
def get_me(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's profile."""
    return current_user


@router.get("/membership", response_model=MembershipInfo)
def get_my_membership(current_user: User = Depends(get_current_user)):
    """Points balance, tier, and how far the next tier is."""
    return MembershipInfo(**membership_progress(current_user))
