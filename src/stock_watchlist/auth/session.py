"""Session reading: the boundary to the external auth subsystem."""
from abc import ABC, abstractmethod
from collections.abc import Mapping

from stock_watchlist.schemas import SessionIdentity


class SessionReaderABC(ABC):
    """Reads the authenticated user from an incoming request.

    Sign-in, sign-up and sign-out belong to the auth subsystem; this service
    only needs the identity of the current request.
    """

    @abstractmethod
    async def get_session(self, headers: Mapping[str, str]) -> SessionIdentity | None:
        """Return the session identity for the request, or None if unauthenticated."""


class TrustedHeaderSessionReader(SessionReaderABC):
    """Reads identity from headers set by the fronting auth gateway.

    The gateway is trusted to strip these headers from client requests and
    set them only after validating the session.
    """

    def __init__(
        self,
        user_id_header: str = "X-Auth-User-Id",
        email_header: str = "X-Auth-User-Email",
    ) -> None:
        self._user_id_header = user_id_header
        self._email_header = email_header

    async def get_session(self, headers: Mapping[str, str]) -> SessionIdentity | None:
        user_id = headers.get(self._user_id_header)
        email = headers.get(self._email_header)
        if not user_id and not email:
            return None
        return SessionIdentity(id=user_id, email=email)
