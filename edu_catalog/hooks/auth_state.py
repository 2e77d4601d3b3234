"""View-scoped mirror of the signed-in user."""

from typing import Optional

from edu_catalog.services.auth import AuthBridge, AuthEvent, Session, Subscription
from edu_catalog.services.result import Result


class AuthState:
    """Tracks the current user through the auth bridge.

    ``start()`` loads the current user and subscribes to session changes;
    ``close()`` releases the subscription.
    """

    def __init__(self, bridge: AuthBridge):
        self.bridge = bridge
        self.user: Optional[dict] = None
        self.loading = True
        self._subscription: Optional[Subscription] = None

    @property
    def user_id(self) -> Optional[str]:
        return (self.user or {}).get("id")

    async def start(self) -> None:
        if self._subscription is None:
            self._subscription = self.bridge.on_auth_state_change(self._on_change)
        result = await self.bridge.get_user()
        self.user = (result.data or {}).get("user")
        self.loading = False

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _on_change(self, event: AuthEvent, session: Optional[Session]) -> None:
        self.user = session.user if session else None
        self.loading = False

    async def sign_up(self, email: str, password: str) -> Result:
        return await self.bridge.sign_up(email, password)

    async def sign_in(self, email: str, password: str) -> Result:
        return await self.bridge.sign_in(email, password)

    async def sign_out(self) -> Result:
        return await self.bridge.sign_out()

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.close()
