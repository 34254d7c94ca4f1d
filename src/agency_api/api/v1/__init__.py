from .entities import build_entity_router, build_entity_routers
from .error_handlers import register_exception_handlers

__all__ = ["build_entity_router", "build_entity_routers", "register_exception_handlers"]
