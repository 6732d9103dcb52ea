from __future__ import annotations
"""Master API router: mounts all sub-routers."""

from fastapi import APIRouter

from empire.api.pages import router as pages_router

api_router = APIRouter(prefix="/api", redirect_slashes=False)

api_router.include_router(pages_router, prefix="/pages", tags=["Pages"])
