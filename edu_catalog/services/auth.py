"""Auth bridge over the hosted session service.

Wraps email/password sign up, sign in, sign out and current-user fetch,
and fans session transitions out to subscribers. Each subscriber gets a
``Subscription`` handle and releases it on teardown.
"""

import asyncio
import inspect
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

import structlog

from edu_catalog.errors import ServiceError
from edu_catalog.services.client import ServiceClient
from edu_catalog.services.result import Result

logger = structlog.get_logger(__name__)


class AuthEvent(str, Enum):
    """Session transitions delivered to subscribers."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


@dataclass
class Session:
    """A live session as returned by the token endpoint."""

    access_token: str
    refresh_token: Optional[str]
    expires_at: Optional[float]
    user: Optional[dict]

    @classmethod
    def from_payload(cls, payload: dict) -> Optional["Session"]:
        """Build a session from a token response; None if it carries no token."""
        access_token = payload.get("access_token")
        if not access_token:
            return None
        expires_at = payload.get("expires_at")
        if expires_at is None and payload.get("expires_in") is not None:
            expires_at = time.time() + float(payload["expires_in"])
        return cls(
            access_token=access_token,
            refresh_token=payload.get("refresh_token"),
            expires_at=expires_at,
            user=payload.get("user"),
        )

    @property
    def user_id(self) -> Optional[str]:
        return (self.user or {}).get("id")


AuthCallback = Callable[[AuthEvent, Optional[Session]], Union[None, Awaitable[None]]]


class Subscription:
    """Handle returned by ``on_auth_state_change``."""

    def __init__(self, bridge: "AuthBridge", callback: AuthCallback):
        self._bridge = bridge
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        """Stop receiving events. Safe to call more than once."""
        if self.active:
            self.active = False
            self._bridge._subscriptions.remove(self)


class AuthBridge:
    """Session operations plus a publish-subscribe channel for transitions."""

    def __init__(self, client: ServiceClient):
        self.client = client
        self.session: Optional[Session] = None
        self._subscriptions: list[Subscription] = []
        self._pending: set[asyncio.Task] = set()

    async def sign_up(self, email: str, password: str) -> Result[dict]:
        """Register a user. With auto-confirm the response also signs in."""
        result = await self.client.auth_request(
            "POST", "/signup", json={"email": email, "password": password}
        )
        if result.error:
            return Result.fail(result.error)
        payload = result.data or {}
        session = Session.from_payload(payload)
        user = session.user if session else payload.get("user", payload)
        if session:
            await self._set_session(AuthEvent.SIGNED_IN, session)
        return Result.ok({"user": user, "session": session})

    async def sign_in(self, email: str, password: str) -> Result[dict]:
        result = await self.client.auth_request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if result.error:
            return Result.fail(result.error)
        session = Session.from_payload(result.data or {})
        if session is None:
            return Result.fail(
                ServiceError("Sign in response did not include a session", code="no_session")
            )
        await self._set_session(AuthEvent.SIGNED_IN, session)
        return Result.ok({"user": session.user, "session": session})

    async def sign_out(self) -> Result[None]:
        """End the session remotely, then locally.

        The local session is cleared even when the remote call fails.
        """
        error = None
        if self.session is not None:
            result = await self.client.auth_request(
                "POST", "/logout", token=self.session.access_token
            )
            error = result.error
        await self._set_session(AuthEvent.SIGNED_OUT, None)
        return Result(data=None, error=error)

    async def get_user(self) -> Result[dict]:
        """Fetch the current user. Without a session the user is None."""
        if self.session is None:
            return Result.ok({"user": None})
        result = await self.client.auth_request(
            "GET", "/user", token=self.session.access_token
        )
        if result.error:
            return Result.fail(result.error)
        return Result.ok({"user": result.data})

    async def refresh_session(self) -> Result[dict]:
        """Exchange the refresh token for a new access token."""
        if self.session is None or not self.session.refresh_token:
            return Result.fail(ServiceError("No session to refresh", code="no_session"))
        result = await self.client.auth_request(
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": self.session.refresh_token},
        )
        if result.error:
            return Result.fail(result.error)
        session = Session.from_payload(result.data or {})
        if session is None:
            return Result.fail(
                ServiceError("Refresh response did not include a session", code="no_session")
            )
        await self._set_session(AuthEvent.TOKEN_REFRESHED, session)
        return Result.ok({"user": session.user, "session": session})

    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        """Register ``callback(event, session)`` for every session transition.

        The new subscriber first receives INITIAL_SESSION with the current
        session (None when signed out). Plain callbacks get it before this
        returns; coroutine callbacks run as a task on the running loop.
        Callbacks may be plain functions or coroutines. A failing callback is
        logged and does not stop delivery to the others.
        """
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        logger.debug("auth_subscriber_added", subscribers=len(self._subscriptions))
        self._deliver_initial(subscription)
        return subscription

    def _deliver_initial(self, subscription: Subscription) -> None:
        event = AuthEvent.INITIAL_SESSION
        try:
            outcome = subscription.callback(event, self.session)
        except Exception as e:
            logger.error("auth_subscriber_failed", auth_event=event.value, error=str(e))
            return
        if not inspect.isawaitable(outcome):
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(outcome):
                outcome.close()
            logger.warning("auth_initial_event_dropped", reason="no running event loop")
            return
        task = loop.create_task(self._settle(outcome, event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _settle(self, outcome: Awaitable[None], event: AuthEvent) -> None:
        try:
            await outcome
        except Exception as e:
            logger.error("auth_subscriber_failed", auth_event=event.value, error=str(e))

    async def _set_session(self, event: AuthEvent, session: Optional[Session]) -> None:
        self.session = session
        self.client.access_token = session.access_token if session else None
        logger.info(
            "auth_state_changed",
            auth_event=event.value,
            user_id=session.user_id if session else None,
        )
        for subscription in list(self._subscriptions):
            await self._deliver(subscription, event, session)

    async def _deliver(
        self, subscription: Subscription, event: AuthEvent, session: Optional[Session]
    ) -> None:
        if not subscription.active:
            return
        try:
            outcome = subscription.callback(event, session)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.error("auth_subscriber_failed", auth_event=event.value, error=str(e))

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

