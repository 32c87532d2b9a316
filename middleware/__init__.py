"""
Middleware package exports.
"""

from middleware.request_id import RequestIDMiddleware, request_id_var
from middleware.rate_limiter import limiter, get_user_id

__all__ = ["RequestIDMiddleware", "request_id_var", "limiter", "get_user_id"]
