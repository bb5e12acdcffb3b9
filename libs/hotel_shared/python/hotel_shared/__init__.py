from .request_id import RequestIDMiddleware, get_request_id
from .health import add_standard_health
from .logging import setup_json_logging

__all__ = [
    "RequestIDMiddleware",
    "get_request_id",
    "add_standard_health",
    "setup_json_logging",
]
