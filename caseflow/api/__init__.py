from fastapi import APIRouter

from .drafts import router as drafts_router
from .exports import router as exports_router
from .groups import router as groups_router
from .test_cases import router as test_cases_router

api_router = APIRouter()

api_router.include_router(exports_router)
api_router.include_router(test_cases_router)
api_router.include_router(drafts_router)
api_router.include_router(groups_router)
