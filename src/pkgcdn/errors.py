"""
Error taxonomy for serving package content
Each error carries the HTTP status and the client-facing text
"""
from typing import Optional

from pkgcdn.models import RewriteError


class ServeError(Exception):
    """A request that ends in a plain-text error response"""
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(ServeError):
    status_code = 404


class NotServableError(ServeError):
    """Neither a file nor an indexable directory, or ?module on a non-JS file"""
    status_code = 403


class ReadError(ServeError):
    """stat/read/list failed on the server side"""
    status_code = 500


class TransformError(ServeError):
    """The module rewrite failed; the failure is deterministic"""
    status_code = 500

    def __init__(self, message: str, error: RewriteError):
        super().__init__(message)
        self.error = error
