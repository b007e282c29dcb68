from pydantic import BaseModel, Field, field_validator
from typing import Literal, Optional, List

HEX_COLOR_PATTERN = r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$"


def _strip(value):
    return value.strip() if isinstance(value, str) else value


def _blank_to_none(value):
    value = _strip(value)
    return value or None


class ResourceCategoryBase(BaseModel):
    description: Optional[str] = Field(default=None, max_length=1000)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)
    icon: Optional[str] = Field(default=None, max_length=255)
    featured_image: Optional[str] = Field(default=None, max_length=255)
    parent_id: Optional[int] = None
    meta_title: Optional[str] = Field(default=None, max_length=255)
    meta_description: Optional[str] = Field(default=None, max_length=500)
    meta_keywords: Optional[str] = Field(default=None, max_length=255)

    @field_validator("description", "color", "icon", "featured_image",
                     "meta_title", "meta_description", "meta_keywords", mode="before")
    @classmethod
    def blank_strings_are_none(cls, value):
        return _blank_to_none(value)


class ResourceCategoryCreate(ResourceCategoryBase):
    name: str = Field(min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, max_length=255)
    is_active: bool = True
    is_featured: bool = False
    sort_order: Optional[int] = Field(default=None, ge=0)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return _strip(value)

    @field_validator("slug", mode="before")
    @classmethod
    def blank_slug_is_none(cls, value):
        return _blank_to_none(value)


class ResourceCategoryUpdate(ResourceCategoryBase):
    """Partial update: only the fields actually sent are applied."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, max_length=255)
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    sort_order: Optional[int] = Field(default=None, ge=0)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return _strip(value)

    @field_validator("slug", mode="before")
    @classmethod
    def blank_slug_is_none(cls, value):
        return _blank_to_none(value)


class ResourceCategoryRead(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    color: str
    icon: Optional[str] = None
    parent_id: Optional[int] = None
    is_active: bool
    is_featured: bool
    sort_order: int
    resource_count: int
    full_url: str
    featured_image_url: Optional[str] = None

    class Config:
        from_attributes = True


class CategoryNode(ResourceCategoryRead):
    children: List["CategoryNode"] = []


class BreadcrumbItem(BaseModel):
    id: int
    name: str
    slug: str
    url: str


class FlatCategory(BaseModel):
    id: int
    name: str
    slug: str
    level: int


class CategoryStats(BaseModel):
    total_categories: int
    root_categories: int
    featured_categories: int
    categories_with_resources: int


class SortOrderItem(BaseModel):
    id: int
    sort_order: int = Field(ge=0)


class CategoryReorder(BaseModel):
    categories: List[SortOrderItem] = Field(min_length=1)


class CategoryBulkAction(BaseModel):
    action: Literal["activate", "deactivate", "feature", "unfeature", "delete"]
    category_ids: List[int] = Field(min_length=1)


CategoryNode.model_rebuild()
