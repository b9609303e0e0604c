# backend/app/routers/ebooks.py
"""
E-book endpoints.

GET    /ebooks                 - catalog (filters, pagination, has_access)
GET    /ebooks/stats           - admin statistics
GET    /ebooks/{id}            - details (+1 view)
POST   /ebooks                 - admin multipart upload
PATCH  /ebooks/{id}            - admin edit
DELETE /ebooks/{id}            - admin delete (hard, removes stored files)
POST   /ebooks/{id}/access     - record the caller's access
GET    /ebooks/{id}/download   - premium-gated download
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.encoders import jsonable_encoder
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..auth import get_current_user, get_optional_user, require_admin
from ..database import get_db
from ..errors import EbookUnavailableError, NotFoundError, PremiumRequiredError, UploadError
from ..models.generated import (
    EbookCategories as DBCategory,
    Ebooks as DBEbook,
    UserEbookAccess as DBAccess,
    Users as DBUsers,
)
from ..schemas.ebooks import (
    EbookCreate,
    EbookDownloadResponse,
    EbookListResponse,
    EbookRead,
    EbookStats,
    EbookUpdate,
    EbookWithAccess,
    UserEbookAccessRead,
)
from ..services import ebooks as ebook_service
from ..services.file_upload import (
    COVER_CONTENT_TYPES,
    EBOOK_CONTENT_TYPES,
    delete_upload,
    save_upload,
)
from ..services.premium import PremiumAccessResolver, get_premium_resolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ebooks", tags=["ebooks"])


def _get_or_404(db: Session, id: int) -> DBEbook:
    try:
        return ebook_service.get_ebook(db, id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Not found") from None


@router.get("/", response_model=EbookListResponse)
def list_ebooks(
    category_id: Optional[int] = None,
    is_premium: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    user: Optional[DBUsers] = Depends(get_optional_user),
    resolver: PremiumAccessResolver = Depends(get_premium_resolver),
):
    return ebook_service.list_ebooks(
        db,
        resolver=resolver,
        user_id=user.id if user else None,
        category_id=category_id,
        is_premium=is_premium,
        search=search,
        page=page,
        limit=limit,
    )


@router.get("/stats", response_model=EbookStats)
def get_stats(
    db: Session = Depends(get_db),
    _admin=Depends(require_admin),
):
    return ebook_service.get_ebook_stats(db)


@router.get("/{id}", response_model=EbookWithAccess)
def get_ebook(
    id: int,
    db: Session = Depends(get_db),
    user: Optional[DBUsers] = Depends(get_optional_user),
    resolver: PremiumAccessResolver = Depends(get_premium_resolver),
):
    ebook = ebook_service.register_view(db, _get_or_404(db, id))

    access = None
    has_access = not ebook.is_premium
    if user:
        access = (
            db.query(DBAccess)
            .filter(DBAccess.user_id == user.id, DBAccess.ebook_id == id)
            .first()
        )
        if ebook.is_premium:
            has_access = resolver.has_premium_access(user.id)

    return ebook_service.to_ebook_with_access(ebook, has_access, access)


@router.post("/", response_model=EbookRead, status_code=status.HTTP_201_CREATED)
def create_ebook(
    title: str = Form(...),
    author: str = Form(...),
    category_id: int = Form(...),
    description: Optional[str] = Form(None),
    is_premium: bool = Form(False),
    price: Optional[float] = Form(None),
    ebook_file: UploadFile = File(...),
    cover_image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    _admin=Depends(require_admin),
):
    try:
        data = EbookCreate(
            title=title,
            description=description,
            author=author,
            category_id=category_id,
            is_premium=is_premium,
            price=price,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=jsonable_encoder(e.errors(include_url=False, include_context=False)),
        ) from None

    if not db.get(DBCategory, data.category_id):
        raise HTTPException(status_code=400, detail="Category not found")

    stored = []
    try:
        ebook_upload = save_upload(ebook_file, EBOOK_CONTENT_TYPES)
        stored.append(ebook_upload["url"])
        cover_upload = None
        if cover_image is not None and cover_image.filename:
            cover_upload = save_upload(cover_image, COVER_CONTENT_TYPES)
            stored.append(cover_upload["url"])
    except UploadError as e:
        for url in stored:
            delete_upload(url)
        raise HTTPException(status_code=400, detail=str(e)) from None

    obj = DBEbook(
        **data.model_dump(),
        file_url=ebook_upload["url"],
        file_size=ebook_upload["size"],
        file_type=ebook_upload["extension"],
        cover_image=cover_upload["url"] if cover_upload else None,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)

    logger.info("Ebook created: id=%s title=%r premium=%s", obj.id, obj.title, obj.is_premium)
    return obj


@router.patch("/{id}", response_model=EbookRead)
def update_ebook(
    id: int,
    data: EbookUpdate,
    db: Session = Depends(get_db),
    _admin=Depends(require_admin),
):
    obj = _get_or_404(db, id)

    changes = data.model_dump(exclude_unset=True)
    if changes.get("category_id") is not None and not db.get(DBCategory, changes["category_id"]):
        raise HTTPException(status_code=400, detail="Category not found")

    is_premium = changes.get("is_premium", bool(obj.is_premium))
    price = changes.get("price", obj.price)
    if is_premium and (not price or price <= 0):
        raise HTTPException(status_code=400, detail="Premium ebooks must have a valid price")

    for field, value in changes.items():
        setattr(obj, field, value)

    db.commit()
    db.refresh(obj)
    return obj


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ebook(
    id: int,
    db: Session = Depends(get_db),
    _admin=Depends(require_admin),
):
    obj = _get_or_404(db, id)
    file_url, cover_url = obj.file_url, obj.cover_image

    db.delete(obj)
    db.commit()

    delete_upload(file_url)
    delete_upload(cover_url)


@router.post("/{id}/access", response_model=UserEbookAccessRead)
def record_access(
    id: int,
    db: Session = Depends(get_db),
    user: DBUsers = Depends(get_current_user),
):
    ebook = _get_or_404(db, id)
    try:
        return ebook_service.record_access(db, user.id, ebook)
    except EbookUnavailableError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None


@router.get("/{id}/download", response_model=EbookDownloadResponse)
def download_ebook(
    id: int,
    db: Session = Depends(get_db),
    user: Optional[DBUsers] = Depends(get_optional_user),
    resolver: PremiumAccessResolver = Depends(get_premium_resolver),
):
    ebook = _get_or_404(db, id)

    if ebook.is_premium and user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        return ebook_service.register_download(
            db, ebook, resolver, user_id=user.id if user else None
        )
    except EbookUnavailableError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    except PremiumRequiredError as e:
        raise HTTPException(status_code=403, detail=str(e)) from None
