# backend/app/routers/users.py
# Users are created by the identity provider sync (auth.py); only profile PATCH here.

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..models.generated import Users as DBUsers
from ..schemas.ebooks import EbookWithAccess
from ..schemas.subscriptions import PremiumAccessResponse
from ..schemas.users import UserRead, UserUpdate
from ..services.ebooks import get_user_ebooks
from ..services.premium import PremiumAccessResolver, get_premium_resolver

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserRead)
def get_me(user: DBUsers = Depends(get_current_user)):
    return user


@router.patch("/me", response_model=UserRead)
def update_me(
    data: UserUpdate,
    user: DBUsers = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(user, field, value)

    db.commit()
    db.refresh(user)
    return user


@router.get("/me/premium-access", response_model=PremiumAccessResponse)
def get_my_premium_access(
    user: DBUsers = Depends(get_current_user),
    resolver: PremiumAccessResolver = Depends(get_premium_resolver),
):
    return PremiumAccessResponse(user_id=user.id, has_access=resolver.has_premium_access(user.id))


@router.get("/me/ebooks", response_model=list[EbookWithAccess])
def list_my_ebooks(
    downloaded: bool = False,
    user: DBUsers = Depends(get_current_user),
    db: Session = Depends(get_db),
    resolver: PremiumAccessResolver = Depends(get_premium_resolver),
):
    return get_user_ebooks(db, user.id, resolver, only_downloaded=downloaded)


@router.get("/{user_id}/premium-access", response_model=PremiumAccessResponse)
def get_premium_access(
    user_id: int,
    current: DBUsers = Depends(get_current_user),
    db: Session = Depends(get_db),
    resolver: PremiumAccessResolver = Depends(get_premium_resolver),
):
    if current.id != user_id and current.role != "ADMIN":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

    if not db.get(DBUsers, user_id):
        raise HTTPException(status_code=404, detail="User not found")

    return PremiumAccessResponse(user_id=user_id, has_access=resolver.has_premium_access(user_id))
