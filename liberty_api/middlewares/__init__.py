from .request_id import RequestIdMiddleware
from .request_logger import RequestLoggerMiddleware


__all__ = [
    "RequestIdMiddleware",
    "RequestLoggerMiddleware",
]
