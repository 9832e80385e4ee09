from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from moviebooking.db.session import get_db, commit_or_raise
from moviebooking.api.deps import get_current_admin_user
from moviebooking.models.user import User
from moviebooking.schemas.user import UserCreate, User as UserSchema
from moviebooking.schemas.common import PaginatedResponse
from moviebooking.services import membership

router = APIRouter(prefix="/admin/users", tags=["Admin - Users"])


@router.post("/", response_model=UserSchema, status_code=status.HTTP_201_CREATED)
def create_user(
    data: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """
    Register a user known to the auth provider.
    The starting level is derived from `membership_points`.
    """
    if data.role not in ("user", "admin"):
        raise HTTPException(status_code=400, detail="role must be 'user' or 'admin'")
    if data.membership_points < 0:
        raise HTTPException(status_code=400, detail="membership_points must be non-negative")
    if db.query(User).filter(User.email == data.email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        email=data.email,
        full_name=data.full_name,
        phone=data.phone,
        role=data.role,
        membership_points=data.membership_points,
        membership_level=membership.tier_for(data.membership_points),
    )
    db.add(user)
    commit_or_raise(db)
    db.refresh(user)
    return user


@router.get("/", response_model=PaginatedResponse[UserSchema])
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    query = db.query(User)
    total = query.count()
    users = (
        query.order_by(User.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return PaginatedResponse(
        data=users,
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.post("/{user_id}/premium", response_model=UserSchema)
def grant_premium(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """PREMIUM is an administrative tier; points alone never reach it."""
    return membership.grant_premium(db, user_id)


@router.delete("/{user_id}/premium", response_model=UserSchema)
def revoke_premium(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    return membership.revoke_premium(db, user_id)
