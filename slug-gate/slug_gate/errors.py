from typing import Optional


class GateError(Exception):
    """Base exception for every failure the gate turns into an HTTP status."""
    status_code: int = 500

    def __init__(self, message: str = "", status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(f"{message} (Status: {self.status_code})")

class BadRequestError(GateError):
    """Raised when the requested file parameter is empty or unusable."""
    status_code = 400

class ForbiddenError(GateError):
    """Raised on guard failures and every authorization failure."""
    status_code = 403

class ProtectedMapError(ForbiddenError):
    """Raised when the protected-file map cannot be loaded or trusted."""
    pass

class NotFoundError(GateError):
    """Raised when the request does not resolve to a file under the upload root."""
    status_code = 404

class RangeNotSatisfiableError(GateError):
    """Raised for malformed or unsatisfiable Range headers."""
    status_code = 416

    def __init__(self, message: str = "", file_size: int = 0):
        self.file_size = file_size
        super().__init__(message)

class MisconfiguredError(GateError):
    """Raised when a forced delivery method cannot be carried out."""
    status_code = 500
