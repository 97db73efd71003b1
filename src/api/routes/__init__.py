"""HTTP routers mounted by ``create_app``."""

from src.api.routes.messages import router as messages_router

__all__ = ["messages_router"]
