"""Request-scoped middleware for API requests."""

import secrets
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from utils.session_context import checkout_session


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns a request ID to every request, keeping one the caller sent."""

    HEADER = "X-Request-ID"

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(self.HEADER) or str(uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers[self.HEADER] = request_id
        return response


class CheckoutSessionMiddleware(BaseHTTPMiddleware):
    """Binds the customer's checkout session for checkout routes.

    The session id comes from the checkout_session cookie. A new one is
    minted (and set on the response) when the cookie is absent. Other
    paths, notifications included, run without a session.
    """

    COOKIE_NAME = "checkout_session"
    SESSION_PATHS = [
        "/api/yellow/checkout",
    ]

    def __init__(self, app, secure_cookie: bool = True, max_age_seconds: int = 86400):
        super().__init__(app)
        self._secure_cookie = secure_cookie
        self._max_age_seconds = max_age_seconds

    def _needs_session(self, path: str) -> bool:
        return any(path == p or path.startswith(p + "/") for p in self.SESSION_PATHS)

    async def dispatch(self, request: Request, call_next):
        if not self._needs_session(request.url.path):
            return await call_next(request)

        session_id = request.cookies.get(self.COOKIE_NAME)
        minted = not session_id
        if minted:
            session_id = secrets.token_urlsafe(32)

        request.state.checkout_session = session_id
        with checkout_session(session_id):
            response = await call_next(request)

        if minted:
            response.set_cookie(
                key=self.COOKIE_NAME,
                value=session_id,
                httponly=True,
                secure=self._secure_cookie,
                samesite="lax",
                max_age=self._max_age_seconds,
            )
        return response
