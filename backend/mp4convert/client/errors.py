"""
Client-side errors.
"""

from typing import Optional


class ClientError(Exception):
    """The server rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
