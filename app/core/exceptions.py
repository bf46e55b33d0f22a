class ChallengeException(Exception):
    """Base exception for competition-related errors."""
    pass


class UpstreamError(ChallengeException):
    """Raised when the FPL API cannot be reached or keeps failing."""
    pass


class UpstreamHTTPError(UpstreamError):
    """Raised when the FPL API answers with a non-retryable error status."""

    def __init__(self, status_code: int, message: str = ""):
        self.status_code = status_code
        super().__init__(message or f"HTTP {status_code}")


class EntryNotFound(ChallengeException):
    """Raised when an FPL entry does not exist upstream."""

    def __init__(self, entry_id: int):
        self.entry_id = entry_id
        super().__init__(f"FPL team with ID {entry_id} not found")


class InvalidEntryId(ChallengeException):
    """Raised when an entry id is outside the accepted range."""
    pass


class RateLimitExceeded(ChallengeException):
    """Raised when a local rate limit denies a call."""

    def __init__(self, message: str = "Rate limit exceeded", retry_after: int = 0, headers: dict = None):
        self.retry_after = retry_after
        self.headers = headers or {}
        super().__init__(message)


class UserNotFound(ChallengeException):
    """Raised when a user is not found."""
    pass


class AuthenticationFailed(ChallengeException):
    """Raised when admin credentials are missing or wrong."""
    pass


class TooManyLoginAttempts(ChallengeException):
    """Raised when a client is locked out of admin login."""

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__("Too many failed login attempts")
