from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.core.config import CORS_ALLOW_ORIGINS
from app.core.db import SessionLocal
from app.core.errors import register_exception_handlers
from app.core.init_db import init_db
from app.core.logging import setup_logging
from app.api.router import api_router
from app.modules.notifications.service import NotificationEmitter

setup_logging()
logger.info("Starting delegate networking backend")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Init DB before serving
    init_db()
    yield


app = FastAPI(
    title="Delegate Networking Backend",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# one emitter for the process, writing through its own sessions
app.state.notifier = NotificationEmitter(SessionLocal)

app.include_router(api_router)
