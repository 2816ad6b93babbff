"""
API v1 Router
"""

from fastapi import APIRouter

from survivor_hub.api.v1 import admin, auth, chat, directory, reports, translations, users

router = APIRouter()

# Include all endpoint routers
router.include_router(reports.router)
router.include_router(admin.router)
router.include_router(auth.router)
router.include_router(users.router)
router.include_router(directory.router)
router.include_router(translations.router)
router.include_router(chat.router)

__all__ = ["router"]
