"""CLI commands for setpace."""

from .init import init
from .plans import plans
from .serve import serve
from .session import session
from .streak import streak

__all__ = [
    "init",
    "plans",
    "serve",
    "session",
    "streak",
]
