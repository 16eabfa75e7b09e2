# routes.py

from fastapi import APIRouter

from event_analytics.api.analytics import router as analytics_router
from event_analytics.api.apps import router as apps_router
from event_analytics.api.auth import router as auth_router
from event_analytics.api.users import router as users_router

router = APIRouter()

router.include_router(auth_router)
router.include_router(apps_router)
router.include_router(analytics_router)
router.include_router(users_router)
