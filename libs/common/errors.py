"""Base error type shared by all services.

Business operations raise subclasses of ``AppError``; the HTTP layer turns them
into JSON responses via ``libs.common.error_handler``.
"""

from typing import Any, Optional


class AppError(Exception):
    """Base exception for expected, user-facing failures."""

    status_code: int = 400
    code: str = "APP_ERROR"
    default_message: str = "Request could not be completed"

    def __init__(self, message: Optional[str] = None, **context: Any):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"
