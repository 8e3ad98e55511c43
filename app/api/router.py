from fastapi import APIRouter, Response

from app.api.routes import health
from app.modules.connections.routes import router as connections_router
from app.modules.messages.routes import router as messages_router
from app.modules.notifications.router import router as notifications_router

api_router = APIRouter(prefix="/api")

api_router.include_router(health.router, tags=["health"])
api_router.include_router(connections_router)
api_router.include_router(messages_router)
api_router.include_router(notifications_router)


# bare OPTIONS requests (no Origin / Access-Control-Request-Method) never reach
# CORSMiddleware's preflight path; answer them the same way
@api_router.options("/{path:path}", include_in_schema=False)
def options_preflight(path: str):
    return Response(
        status_code=200,
        headers={
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
            "Access-Control-Allow-Headers": "*",
        },
    )
