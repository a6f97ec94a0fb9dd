"""
Error taxonomy shared by the conversation and enhancement sessions.
"""

from typing import Optional


class SessionError(Exception):
    """Base class for failures inside a session flow"""

    title = "Error"

    def __init__(self, message: str, user_message: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.user_message = user_message

    def describe(self, action: str) -> str:
        """Text shown to the user for a failure while trying to `action`"""
        return self.user_message or f"Failed to {action}."


class ValidationError(SessionError):
    """Blank or otherwise invalid input, handled locally"""

    title = "Hold up!"

    def describe(self, action: str) -> str:
        return self.user_message or self.message


class StoreError(SessionError):
    """Backend store create/read/update/delete failure"""

    title = "Storage error"


class ServiceError(SessionError):
    """Assistant or enhancement service failure"""

    title = "Service unavailable"


class UnexpectedError(SessionError):
    """Any other failure in a session flow"""

    title = "Oops!"

    def describe(self, action: str) -> str:
        return f"Something went wrong while trying to {action}. Please try again."


def as_session_error(error: Exception) -> SessionError:
    """Wrap unknown exceptions so every failure reaches the user the same way"""
    if isinstance(error, SessionError):
        return error
    wrapped = UnexpectedError(f"{type(error).__name__}: {error}")
    wrapped.__cause__ = error
    return wrapped
