import uuid
from slugify import slugify


def category_slug(name: str) -> str:
    """Slug for a category name, e.g. Thời sự -> thoi-su"""
    return slugify(name, max_length=100)


def article_slug(title: str) -> str:
    """Slug from the title with a short random suffix, titles are not unique"""
    base = slugify(title, max_length=200) or "bai-viet"
    return f"{base}-{uuid.uuid4().hex[:8]}"
