"""Me feature: views over the logged-in user."""

from .router import router as me_router
from .service import MeService

__all__ = ["me_router", "MeService"]
