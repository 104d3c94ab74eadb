from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from newsdesk.core.errors import Conflict, InvalidInput, InvalidState, NotFound
from newsdesk.core.policy import Caller, Operation, enforce
from newsdesk.core.security import get_caller
from newsdesk.core.slugs import category_slug
from newsdesk.db.database import get_session
from newsdesk.models.article import Article
from newsdesk.models.category import Category
from newsdesk.schemas.category import CategoryCreate, CategoryUpdate, CategoryResponse

router = APIRouter()

def get_category_or_404(session: Session, category_id: str) -> Category:
    category = session.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise NotFound("Category not found")
    return category

def ensure_name_available(session: Session, name: str, exclude_id: str | None = None) -> str:
    """Check name and slug uniqueness and return the slug"""
    slug = category_slug(name)
    if not slug:
        raise InvalidInput("Category name must contain letters or digits")
    query = session.query(Category).filter((Category.name == name) | (Category.slug == slug))
    if exclude_id:
        query = query.filter(Category.id != exclude_id)
    if query.first():
        raise Conflict("Category already exists")
    return slug

def commit_category(session: Session) -> None:
    """Commit, reporting a name taken by a concurrent request as a Conflict"""
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise Conflict("Category already exists") from None

@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED, summary="Create a new category")
def create_category(
    category: CategoryCreate,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session)
):
    """Create a new category"""
    enforce(caller, Operation.CATEGORY_CREATE)
    name = category.name.strip()
    slug = ensure_name_available(session, name)

    db_category = Category(
        name=name,
        slug=slug,
        description=category.description,
        created_by=caller.id
    )
    session.add(db_category)
    commit_category(session)
    session.refresh(db_category)
    return db_category

@router.get("", response_model=List[CategoryResponse], summary="List all categories")
def list_categories(
    session: Session = Depends(get_session)
):
    """List all categories"""
    return session.query(Category).order_by(Category.name).all()

@router.get("/{category_id}", response_model=CategoryResponse, summary="Get a specific category")
def get_category(
    category_id: str,
    session: Session = Depends(get_session)
):
    """Get a specific category"""
    return get_category_or_404(session, category_id)

@router.put("/{category_id}", response_model=CategoryResponse, summary="Update a category")
def update_category(
    category_id: str,
    category_update: CategoryUpdate,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session)
):
    """Update a category"""
    category = get_category_or_404(session, category_id)
    enforce(caller, Operation.CATEGORY_UPDATE)

    if category_update.name is not None:
        name = category_update.name.strip()
        category.slug = ensure_name_available(session, name, exclude_id=category.id)
        category.name = name
    if category_update.description is not None:
        category.description = category_update.description

    commit_category(session)
    session.refresh(category)
    return category

@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a category")
def delete_category(
    category_id: str,
    caller: Caller = Depends(get_caller),
    session: Session = Depends(get_session)
):
    """Delete a category that no article uses"""
    category = get_category_or_404(session, category_id)
    enforce(caller, Operation.CATEGORY_DELETE)

    in_use = session.query(Article).filter(Article.category_id == category_id).count()
    if in_use:
        raise InvalidState(f"Category is still used by {in_use} article(s)")

    session.delete(category)
    session.commit()
