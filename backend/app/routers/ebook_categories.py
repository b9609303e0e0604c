# backend/app/routers/ebook_categories.py
# GET = public, POST/PATCH/DELETE = admin. DELETE is hard, blocked while ebooks reference it.

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..auth import require_admin
from ..database import get_db
from ..models.generated import EbookCategories as DBCategory, Ebooks as DBEbook
from ..schemas.ebooks import (
    EbookCategoryCreate,
    EbookCategoryUpdate,
    EbookCategoryRead,
)

router = APIRouter(prefix="/ebook-categories", tags=["ebook-categories"])


def _read(obj: DBCategory, ebook_count: int) -> EbookCategoryRead:
    data = EbookCategoryRead.model_validate(obj)
    data.ebook_count = ebook_count
    return data


def _ebook_count(db: Session, category_id: int, active_only: bool = False) -> int:
    query = db.query(func.count(DBEbook.id)).filter(DBEbook.category_id == category_id)
    if active_only:
        query = query.filter(DBEbook.is_active == 1)
    return query.scalar() or 0


@router.get("/", response_model=list[EbookCategoryRead])
def list_categories(db: Session = Depends(get_db)):
    counts = dict(
        db.query(DBEbook.category_id, func.count(DBEbook.id))
        .filter(DBEbook.is_active == 1)
        .group_by(DBEbook.category_id)
        .all()
    )
    categories = db.query(DBCategory).order_by(DBCategory.name.asc()).all()
    return [_read(c, counts.get(c.id, 0)) for c in categories]


@router.post("/", response_model=EbookCategoryRead, status_code=status.HTTP_201_CREATED)
def create_category(
    data: EbookCategoryCreate,
    db: Session = Depends(get_db),
    _admin=Depends(require_admin),
):
    if db.query(DBCategory).filter(DBCategory.name == data.name).first():
        raise HTTPException(status_code=400, detail="Category with this name already exists")

    obj = DBCategory(**data.model_dump())
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return _read(obj, 0)


@router.patch("/{id}", response_model=EbookCategoryRead)
def update_category(
    id: int,
    data: EbookCategoryUpdate,
    db: Session = Depends(get_db),
    _admin=Depends(require_admin),
):
    obj = db.get(DBCategory, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    changes = data.model_dump(exclude_unset=True)
    new_name = changes.get("name")
    if new_name and new_name != obj.name:
        if db.query(DBCategory).filter(DBCategory.name == new_name).first():
            raise HTTPException(status_code=400, detail="Category with this name already exists")

    for field, value in changes.items():
        setattr(obj, field, value)

    db.commit()
    db.refresh(obj)
    return _read(obj, _ebook_count(db, id, active_only=True))


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    id: int,
    db: Session = Depends(get_db),
    _admin=Depends(require_admin),
):
    obj = db.get(DBCategory, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    if _ebook_count(db, id) > 0:
        raise HTTPException(status_code=400, detail="Cannot delete a category with ebooks")

    db.delete(obj)
    db.commit()
