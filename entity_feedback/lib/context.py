"""Context variables for request-scoped data.

The API layer sets the request id and the calling user's entity ref at the
start of each request; the logging filter reads them back so every log line
emitted while serving that request carries them.

Note: These use contextvars which are properly isolated per async task.
"""

from contextvars import ContextVar
from typing import Optional

_current_request_id: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
_current_user_ref: ContextVar[Optional[str]] = ContextVar('user_ref', default=None)


def set_current_request_id(request_id: Optional[str]) -> None:
    """Set the correlation id of the request being served."""
    _current_request_id.set(request_id)


def get_current_request_id() -> Optional[str]:
    """Get the correlation id of the request being served, if any."""
    return _current_request_id.get()


def set_current_user_ref(user_ref: Optional[str]) -> None:
    """Set the calling principal's user entity ref.

    Called by the auth dependency once credentials are resolved.

    Args:
        user_ref: User entity ref (e.g. ``user:default/jane.doe``)
    """
    _current_user_ref.set(user_ref)


def get_current_user_ref() -> Optional[str]:
    """Get the calling principal's user entity ref, if any."""
    return _current_user_ref.get()


def clear_context() -> None:
    """Clear all context variables.

    Useful for testing or cleanup. In production, context variables
    are automatically isolated per request/async task.
    """
    _current_request_id.set(None)
    _current_user_ref.set(None)
