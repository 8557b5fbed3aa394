"""API main router.

Aggregates all API routers into a single router for inclusion in the app.
"""

from fastapi import APIRouter

from statsproxy.api.visitors import router as visitors_router

router = APIRouter()

router.include_router(visitors_router, tags=["Visitors"])
