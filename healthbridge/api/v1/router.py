"""V1 API router."""

from fastapi import APIRouter

from healthbridge.api.v1.authorization import router as authorization_router
from healthbridge.api.v1.records import router as records_router
from healthbridge.api.v1.status import router as status_router

router = APIRouter()

# Status endpoint
router.include_router(status_router)

# Availability and permission endpoints
router.include_router(authorization_router)

# Record endpoints
router.include_router(records_router)
