from .base import AuthenticationError


class InvalidCredentialsError(AuthenticationError):
    """Raised when credentials are invalid or cannot be refreshed."""
    pass
