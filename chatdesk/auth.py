"""
Identity collaborator.

The conversation store only needs a subscription that delivers the current
user identity (or None when signed out). ``LocalIdentityProvider`` is an
in-process implementation suitable for single-user desktop sessions and tests.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class UserIdentity(BaseModel):
    """Authenticated user."""

    id: str = Field(..., min_length=1, description="Stable user identifier")
    email: str | None = Field(None, description="Contact email, if known")
    display_name: str | None = Field(None, description="Human readable name")

    model_config = ConfigDict(frozen=True)


class IdentityState(BaseModel):
    """Payload delivered on every identity change."""

    identity: UserIdentity | None = None

    model_config = ConfigDict(frozen=True)


IdentityCallback = Callable[[IdentityState], None]
Unsubscribe = Callable[[], None]


class IdentityProvider(ABC):
    """Source of identity-change notifications."""

    @abstractmethod
    def on_identity_change(self, callback: IdentityCallback) -> Unsubscribe:
        """
        Subscribe to identity changes.

        The callback receives the current state immediately and then once per
        transition. The returned callable releases the subscription.
        """


class LocalIdentityProvider(IdentityProvider):
    """Holds the signed-in identity in memory and notifies subscribers."""

    def __init__(self, identity: UserIdentity | None = None) -> None:
        self._state = IdentityState(identity=identity)
        self._callbacks: list[IdentityCallback] = []

    @property
    def current(self) -> UserIdentity | None:
        return self._state.identity

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks)

    def on_identity_change(self, callback: IdentityCallback) -> Unsubscribe:
        self._callbacks.append(callback)
        callback(self._state)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def sign_in(self, identity: UserIdentity) -> None:
        self._transition(identity)

    def sign_out(self) -> None:
        self._transition(None)

    def _transition(self, identity: UserIdentity | None) -> None:
        if identity == self._state.identity:
            return
        self._state = IdentityState(identity=identity)
        logger.info(
            "identity_changed",
            extra={"user_id": identity.id if identity else None},
        )
        for callback in list(self._callbacks):
            callback(self._state)
