from fastapi import APIRouter
from loguru import logger

router = APIRouter()


@router.get("/health")
def health():
    logger.debug("Health check hit")
    return {"status": "ok"}
