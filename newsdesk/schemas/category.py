from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional

class CategoryBase(BaseModel):
    """Category base model"""
    name: str = Field(..., min_length=1, max_length=100, description="Category name")
    description: Optional[str] = Field(None, description="Category description")

class CategoryCreate(CategoryBase):
    """Create category request"""
    pass

class CategoryUpdate(BaseModel):
    """Update category request"""
    name: Optional[str] = Field(None, min_length=1, max_length=100, description="Category name")
    description: Optional[str] = Field(None, description="Category description")

class CategoryResponse(CategoryBase):
    """Category response"""
    id: str = Field(..., description="Category ID")
    slug: str = Field(..., description="URL slug")
    created_by: str = Field(..., description="Creator ID")
    created_at: datetime = Field(..., description="Creation time")
    updated_at: datetime = Field(..., description="Last update time")

    class Config:
        from_attributes = True

class CategorySummary(BaseModel):
    id: str
    name: str
    slug: str

    class Config:
        from_attributes = True
