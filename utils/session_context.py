"""Propagate the customer's checkout session through the call stack using contextvars.

The invoice cache is scoped per checkout session. Middleware binds the
session id for the duration of a request; services read it without having
the request object passed around.
"""

from contextlib import contextmanager
from contextvars import ContextVar

_current_session_id: ContextVar[str | None] = ContextVar("current_checkout_session", default=None)


def get_current_session_id() -> str:
    """
    Get current checkout session ID from context.

    Raises RuntimeError if no session is bound. Session-scoped code running
    outside a checkout request is a bug, not something to paper over.
    """
    session_id = _current_session_id.get()
    if session_id is None:
        raise RuntimeError(
            "No checkout session bound. This usually means session-scoped "
            "code ran outside of a checkout request."
        )
    return session_id


def set_current_session_id(session_id: str) -> None:
    """Bind checkout session ID. Called by CheckoutSessionMiddleware."""
    if not session_id:
        raise ValueError("session_id must be non-empty")
    _current_session_id.set(session_id)


def clear_current_session_id() -> None:
    """
    Clear checkout session context.

    Must be called in a finally block to prevent context leakage.
    """
    _current_session_id.set(None)


@contextmanager
def checkout_session(session_id: str):
    """
    Context manager for temporarily binding a checkout session.

    Example:
        with checkout_session("abc123"):
            result = checkout_service.process_payment("1001")
    """
    previous = _current_session_id.get()
    set_current_session_id(session_id)
    try:
        yield
    finally:
        if previous is None:
            clear_current_session_id()
        else:
            set_current_session_id(previous)
