# backend/app/schemas/ebooks.py

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator, model_validator


FileType = Literal["pdf", "epub", "mobi"]


# ── Categories ───────────────────────────────────────────────────────────


class EbookCategoryCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=500)

    model_config = {"from_attributes": True}


class EbookCategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=500)

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v):
        if v is None:
            raise ValueError("name cannot be null")
        return v

    model_config = {"from_attributes": True}


class EbookCategoryRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    ebook_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class EbookCategoryBrief(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    model_config = {"from_attributes": True}


# ── Ebooks ───────────────────────────────────────────────────────────────


class EbookCreate(BaseModel):
    """Metadata part of the multipart upload."""
    title: str = Field(min_length=3, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    author: str = Field(min_length=2, max_length=100)
    category_id: int
    is_premium: bool = False
    price: Optional[float] = Field(None, ge=0, le=9999.99)

    @model_validator(mode="after")
    def premium_requires_price(self):
        if self.is_premium and (not self.price or self.price <= 0):
            raise ValueError("Premium ebooks must have a valid price")
        return self

    model_config = {"from_attributes": True}


class EbookUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    author: Optional[str] = Field(None, min_length=2, max_length=100)
    category_id: Optional[int] = None
    is_premium: Optional[bool] = None
    price: Optional[float] = Field(None, ge=0, le=9999.99)
    is_active: Optional[bool] = None

    @field_validator("title", "author", "category_id", "is_premium", "is_active")
    @classmethod
    def required_columns_not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    model_config = {"from_attributes": True}


class EbookRead(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    author: str
    cover_image: Optional[str] = None
    file_url: str
    file_type: FileType
    file_size: Optional[int] = None
    is_premium: bool
    price: Optional[float] = None
    category_id: int
    is_active: bool
    download_count: int
    view_count: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    category: Optional[EbookCategoryBrief] = None

    model_config = {"from_attributes": True}


class UserEbookAccessRead(BaseModel):
    id: int
    user_id: int
    ebook_id: int
    download_count: int
    last_download: Optional[datetime] = None
    first_access: Optional[datetime] = None
    last_access: Optional[datetime] = None

    model_config = {"from_attributes": True}


class EbookWithAccess(EbookRead):
    has_access: bool
    user_access: Optional[UserEbookAccessRead] = None


class EbookListResponse(BaseModel):
    items: list[EbookWithAccess]
    total: int
    page: int
    limit: int
    total_pages: int


class EbookDownloadResponse(BaseModel):
    download_url: str
    filename: str
    file_size: Optional[int] = None
    file_type: FileType


class EbookStats(BaseModel):
    total_ebooks: int
    premium_ebooks: int
    free_ebooks: int
    total_downloads: int
    total_views: int
    categories_count: int
