"""
backend/app/services/ebooks.py

E-book library: listing with premium flags, access tracking, downloads
and admin statistics.

Premium gating goes through PremiumAccessResolver; it is consulted at most
once per call and only when a premium e-book is actually involved.
"""

import logging
import math
from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from ..errors import EbookUnavailableError, NotFoundError, PremiumRequiredError
from ..models.generated import (
    EbookCategories as DBCategory,
    Ebooks as DBEbook,
    UserEbookAccess as DBAccess,
)
from ..schemas.ebooks import EbookRead, UserEbookAccessRead
from .premium import PremiumAccessResolver

logger = logging.getLogger(__name__)


def to_ebook_with_access(
    ebook: DBEbook,
    has_access: bool,
    access: Optional[DBAccess] = None,
) -> dict:
    data = EbookRead.model_validate(ebook).model_dump()
    data["has_access"] = has_access
    data["user_access"] = (
        UserEbookAccessRead.model_validate(access).model_dump() if access else None
    )
    return data


class _LazyPremium:
    """Resolve premium entitlement on first use only."""

    def __init__(self, resolver: Optional[PremiumAccessResolver], user_id: Optional[int]):
        self._resolver = resolver
        self._user_id = user_id
        self._value: Optional[bool] = None

    def __call__(self) -> bool:
        if self._value is None:
            if self._resolver is None or self._user_id is None:
                self._value = False
            else:
                self._value = self._resolver.has_premium_access(self._user_id)
        return self._value


def list_ebooks(
    db: Session,
    *,
    resolver: Optional[PremiumAccessResolver] = None,
    user_id: Optional[int] = None,
    category_id: Optional[int] = None,
    is_premium: Optional[bool] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    include_inactive: bool = False,
) -> dict:
    """Paginated catalog, newest first."""
    query = db.query(DBEbook)

    if not include_inactive:
        query = query.filter(DBEbook.is_active == 1)
    if category_id is not None:
        query = query.filter(DBEbook.category_id == category_id)
    if is_premium is not None:
        query = query.filter(DBEbook.is_premium == int(is_premium))
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                DBEbook.title.ilike(pattern),
                DBEbook.description.ilike(pattern),
                DBEbook.author.ilike(pattern),
            )
        )

    total = query.count()
    ebooks = (
        query.options(joinedload(DBEbook.category))
        .order_by(DBEbook.created_at.desc(), DBEbook.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    access_by_ebook: dict[int, DBAccess] = {}
    if user_id is not None and ebooks:
        rows = (
            db.query(DBAccess)
            .filter(
                DBAccess.user_id == user_id,
                DBAccess.ebook_id.in_([e.id for e in ebooks]),
            )
            .all()
        )
        access_by_ebook = {r.ebook_id: r for r in rows}

    premium = _LazyPremium(resolver, user_id)
    items = [
        to_ebook_with_access(
            e,
            has_access=not e.is_premium or premium(),
            access=access_by_ebook.get(e.id),
        )
        for e in ebooks
    ]

    return {
        "items": items,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if total else 0,
    }


def get_ebook(db: Session, ebook_id: int) -> DBEbook:
    ebook = db.get(DBEbook, ebook_id)
    if not ebook:
        raise NotFoundError("Ebook not found")
    return ebook


def register_view(db: Session, ebook: DBEbook) -> DBEbook:
    ebook.view_count = DBEbook.view_count + 1
    db.commit()
    db.refresh(ebook)
    return ebook


def _get_or_create_access(db: Session, user_id: int, ebook_id: int) -> DBAccess:
    access = (
        db.query(DBAccess)
        .filter(DBAccess.user_id == user_id, DBAccess.ebook_id == ebook_id)
        .first()
    )
    if access:
        return access

    now = datetime.now()
    access = DBAccess(
        user_id=user_id,
        ebook_id=ebook_id,
        download_count=0,
        first_access=now,
        last_access=now,
    )
    db.add(access)
    db.flush()
    return access


def record_access(db: Session, user_id: int, ebook: DBEbook) -> DBAccess:
    """Upsert the user's access row (first_access kept, last_access bumped)."""
    if not ebook.is_active:
        raise EbookUnavailableError("Ebook is not available")

    access = _get_or_create_access(db, user_id, ebook.id)
    access.last_access = datetime.now()
    db.commit()
    db.refresh(access)
    return access


def register_download(
    db: Session,
    ebook: DBEbook,
    resolver: PremiumAccessResolver,
    user_id: Optional[int] = None,
) -> dict:
    """
    Gate and count a download.

    Raises:
        EbookUnavailableError: ebook is inactive
        PremiumRequiredError: premium ebook without entitlement
    """
    if not ebook.is_active:
        raise EbookUnavailableError("Ebook is not available")

    if ebook.is_premium:
        if user_id is None or not resolver.has_premium_access(user_id):
            logger.info("Premium download denied: ebook=%s user=%s", ebook.id, user_id)
            raise PremiumRequiredError("Premium access required for this ebook")

    ebook.download_count = DBEbook.download_count + 1

    if user_id is not None:
        now = datetime.now()
        access = _get_or_create_access(db, user_id, ebook.id)
        access.download_count = DBAccess.download_count + 1
        access.last_download = now
        access.last_access = now

    db.commit()

    return {
        "download_url": ebook.file_url,
        "filename": f"{ebook.title}.{ebook.file_type}",
        "file_size": ebook.file_size,
        "file_type": ebook.file_type,
    }


def get_user_ebooks(
    db: Session,
    user_id: int,
    resolver: PremiumAccessResolver,
    only_downloaded: bool = False,
) -> list[dict]:
    """E-books the user has opened, most recently accessed first."""
    query = (
        db.query(DBAccess)
        .options(joinedload(DBAccess.ebook).joinedload(DBEbook.category))
        .filter(DBAccess.user_id == user_id)
    )
    if only_downloaded:
        query = query.filter(DBAccess.download_count > 0)

    rows = query.order_by(DBAccess.last_access.desc(), DBAccess.id.desc()).all()

    premium = _LazyPremium(resolver, user_id)
    return [
        to_ebook_with_access(
            r.ebook,
            has_access=not r.ebook.is_premium or premium(),
            access=r,
        )
        for r in rows
    ]


def get_ebook_stats(db: Session) -> dict:
    active = DBEbook.is_active == 1

    total = db.query(func.count(DBEbook.id)).filter(active).scalar() or 0
    premium = (
        db.query(func.count(DBEbook.id))
        .filter(active, DBEbook.is_premium == 1)
        .scalar()
        or 0
    )
    downloads = db.query(func.sum(DBEbook.download_count)).filter(active).scalar() or 0
    views = db.query(func.sum(DBEbook.view_count)).filter(active).scalar() or 0
    categories = db.query(func.count(DBCategory.id)).scalar() or 0

    return {
        "total_ebooks": total,
        "premium_ebooks": premium,
        "free_ebooks": total - premium,
        "total_downloads": downloads,
        "total_views": views,
        "categories_count": categories,
    }
