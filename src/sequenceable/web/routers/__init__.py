from sequenceable.web.routers.counters import router as counters_router
from sequenceable.web.routers.sequences import router as sequences_router

__all__ = [
    "counters_router",
    "sequences_router",
]
