"""
Authentication monitoring middleware.
Logs requests to protected routes that carry no bearer token; actual
validation is done by the FastAPI dependencies, which answer 401/403.
"""
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from typing import List

from auth.principal import client_ip
from core.logger import logger

# Public routes that don't require authentication
PUBLIC_ROUTES: List[str] = [
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
    "/api/auth/login",
]


class AuthRequiredMiddleware(BaseHTTPMiddleware):
    """Flag unauthenticated requests to protected routes."""

    def __init__(self, app, public_routes: List[str] = None):
        """
        Initialize authentication middleware.

        Args:
            app: FastAPI application
            public_routes: List of public route prefixes that don't require auth
        """
        super().__init__(app)
        self.public_routes = public_routes or PUBLIC_ROUTES

    def is_public(self, path: str) -> bool:
        return path == "/" or any(path.startswith(route) for route in self.public_routes)

    async def dispatch(self, request: Request, call_next):
        """Process request with authentication check."""
        path = request.url.path

        # Allow OPTIONS for CORS preflight
        if self.is_public(path) or request.method == "OPTIONS":
            return await call_next(request)

        if not request.headers.get("authorization"):
            logger.warning(
                f"Request without authentication headers: {request.method} {path} from {client_ip(request)}"
            )

        return await call_next(request)
