"""
Dependencies handing request-scoped authentication state to route handlers.
"""

from fastapi import Request

from oauth_gate.services.auth_context import AuthContext


def get_auth_context(request: Request) -> AuthContext:
    """Return the context attached by the authentication middleware."""
    context = getattr(request.state, "auth", None)
    if context is None:
        raise RuntimeError(
            "No authentication context on request; is the auth middleware installed?"
        )
    return context


__all__ = ["get_auth_context"]
