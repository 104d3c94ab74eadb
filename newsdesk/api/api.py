from fastapi import APIRouter
from newsdesk.api.endpoints import (
    auth,
    users,
    categories,
    articles,
    comments,
    deletion_requests
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(categories.router, prefix="/categories", tags=["categories"])
api_router.include_router(comments.article_router, prefix="/articles/{article_id}/comments", tags=["comments"])
api_router.include_router(articles.router, prefix="/articles", tags=["articles"])
api_router.include_router(comments.router, prefix="/comments", tags=["comments"])
api_router.include_router(deletion_requests.router, prefix="/deletion-requests", tags=["deletion-requests"])
