"""
Bloom Agent Auth FastAPI Integration.

Protects dashboard routes with agent tokens. The token is read from the
``token`` query parameter (the dashboard link format) or from an
``Authorization: Bearer`` header.

Usage:
    from fastapi import Depends, FastAPI
    from bloomauth import AuthConfig, Session, Verifier
    from bloomauth.integrations.fastapi import AgentTokenAuth

    app = FastAPI()
    auth = AgentTokenAuth(Verifier(AuthConfig.from_env()))

    @app.get("/identity")
    async def identity(session: Session = Depends(auth.session_required(["read:identity"]))):
        return {"address": session.address}
"""

import logging
from typing import Callable, List, Optional

from fastapi import HTTPException, Request

from bloomauth.session import Session
from bloomauth.verifier import Verifier

logger = logging.getLogger(__name__)


def extract_token(request: Request) -> Optional[str]:
    """Return the agent token carried by a request, if any."""
    token = request.query_params.get("token")
    if token:
        return token

    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


class AgentTokenAuth:
    """FastAPI dependency factory backed by a ``Verifier``."""

    def __init__(self, verifier: Verifier):
        self._verifier = verifier

    def session_required(self, scopes: Optional[List[str]] = None) -> Callable:
        """
        Create a dependency that resolves to the caller's Session.

        Args:
            scopes: Scopes the session must hold. Unknown scope strings in a
                token never satisfy a requirement.

        Returns:
            An async dependency raising HTTP 401 for missing or rejected
            tokens and HTTP 403 for missing scopes.
        """
        verifier = self._verifier
        required = list(scopes or [])

        async def _dependency(request: Request) -> Session:
            token = extract_token(request)
            if not token:
                raise HTTPException(status_code=401, detail="Missing agent token")

            result = verifier.verify(token)
            if not result.ok:
                raise HTTPException(
                    status_code=401,
                    detail=f"Invalid agent token: {result.reason.value}",
                )

            session = result.session
            missing = [s for s in required if not session.has_scope(s)]
            if missing:
                logger.info(f"Session {session.session_id} lacks scopes: {', '.join(missing)}")
                raise HTTPException(
                    status_code=403,
                    detail=f"Missing required scopes: {', '.join(missing)}",
                )

            return session

        return _dependency
