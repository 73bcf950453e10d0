"""
API Routes
"""

from fastapi import APIRouter

from .scans import router as scans_router
from .sites import router as sites_router

api_router = APIRouter()

api_router.include_router(scans_router, prefix="/scans", tags=["Scans"])
api_router.include_router(sites_router, prefix="/sites", tags=["Sites & Citations"])
