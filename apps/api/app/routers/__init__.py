"""API routers."""

from app.routers.abstracts import router as abstracts_router
from app.routers.auth import router as auth_router
from app.routers.public import router as public_router
from app.routers.reviewers import router as reviewers_router

__all__ = [
    "abstracts_router",
    "auth_router",
    "public_router",
    "reviewers_router",
]
