from fastapi import APIRouter

from midgard_history.api import history, status

router = APIRouter()
router.include_router(history.router, tags=["history"])
router.include_router(status.router, tags=["status"])
