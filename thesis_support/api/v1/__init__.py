"""API v1: router and dependencies."""

from thesis_support.api.v1.router import api_router

__all__ = ["api_router"]
