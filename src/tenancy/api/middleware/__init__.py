"""API middleware package."""

from src.tenancy.api.middleware.logging import LoggingMiddleware
from src.tenancy.api.middleware.tenant import TenantResolutionMiddleware

__all__ = ["LoggingMiddleware", "TenantResolutionMiddleware"]
