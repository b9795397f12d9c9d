"""Reviews Domain - patient ratings of past appointments"""

from .router import router

__all__ = ["router"]
