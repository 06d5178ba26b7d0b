# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Browsing contexts and access checks for the HTTP layer.

Two signed cookies identify a client:
- the context cookie names a browsing context, which owns a private volatile
  store and ends with the browser session;
- the long-lived browser cookie names the browser, and scopes its remember
  pointer inside the shared durable store.

The users directory is shared by everyone.
"""

from __future__ import annotations

import secrets
import time
from typing import Callable, Dict, Optional

from fastapi import HTTPException, Request
from itsdangerous import BadSignature, BadTimeSignature, URLSafeTimedSerializer

from tia.auth.facade import SessionFacade, build_facade
from tia.auth.session import SessionRecord, remember_key_for
from tia.auth.users import UserDirectory, role_rank
from tia.config import Settings
from tia.infra.storage import KeyValueStore, MemoryStore

CONTEXT_MAX_AGE_SECONDS = 8 * 60 * 60
BROWSER_MAX_AGE_SECONDS = 365 * 24 * 60 * 60


class ContextRegistry:
    def __init__(
        self,
        settings: Settings,
        durable: KeyValueStore,
        directory: UserDirectory,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self.durable = durable
        self.directory = directory
        self._clock = clock
        self._volatile: Dict[str, MemoryStore] = {}
        self._created: Dict[str, float] = {}

    def _serializer(self, salt: str) -> URLSafeTimedSerializer:
        if not self.settings.secret_key:
            raise RuntimeError("Missing TIA_SECRET_KEY (or SECRET_KEY) in environment")
        return URLSafeTimedSerializer(secret_key=self.settings.secret_key, salt=salt)

    def _load(self, salt: str, token: str, max_age: int) -> Optional[str]:
        if not token:
            return None
        try:
            data = self._serializer(salt).loads(token, max_age=max_age)
        except (BadSignature, BadTimeSignature):
            return None
        value = str((data or {}).get("i") or "").strip()
        return value or None

    def context_count(self) -> int:
        return len(self._volatile)

    def sweep(self) -> int:
        """Drop contexts whose cookie can no longer verify."""
        cutoff = self._clock() - CONTEXT_MAX_AGE_SECONDS
        expired = [cid for cid, created in self._created.items() if created < cutoff]
        for cid in expired:
            self.drop(cid)
        return len(expired)

    def new_context(self) -> str:
        self.sweep()
        context_id = secrets.token_urlsafe(16)
        self._volatile[context_id] = MemoryStore()
        self._created[context_id] = self._clock()
        return context_id

    def sign_context(self, context_id: str) -> str:
        return self._serializer("tia.context.v1").dumps({"i": context_id})

    def verify_context(self, token: str) -> Optional[str]:
        context_id = self._load("tia.context.v1", token, CONTEXT_MAX_AGE_SECONDS)
        # Unknown ids (after a restart or a sweep) get a fresh context.
        if context_id is None or context_id not in self._volatile:
            return None
        return context_id

    def new_browser(self) -> str:
        return secrets.token_urlsafe(16)

    def sign_browser(self, browser_id: str) -> str:
        return self._serializer("tia.browser.v1").dumps({"i": browser_id})

    def verify_browser(self, token: str) -> Optional[str]:
        return self._load("tia.browser.v1", token, BROWSER_MAX_AGE_SECONDS)

    def facade_for(self, context_id: str, browser_id: str) -> SessionFacade:
        volatile = self._volatile[context_id]
        return build_facade(
            self.durable,
            volatile,
            self.settings,
            directory=self.directory,
            remember_key=remember_key_for(browser_id),
        )

    def drop(self, context_id: str) -> None:
        self._volatile.pop(context_id, None)
        self._created.pop(context_id, None)


def get_facade(request: Request) -> SessionFacade:
    """Facade for the calling browser; contexts are created on first use."""
    facade = getattr(request.state, "facade", None)
    if facade is not None:
        return facade

    registry: ContextRegistry = request.app.state.contexts
    context_id = getattr(request.state, "context_id", None)
    if context_id is None:
        context_id = registry.new_context()
        request.state.context_id = context_id
        request.state.issue_context = True
    browser_id = getattr(request.state, "browser_id", None)
    if browser_id is None:
        browser_id = registry.new_browser()
        request.state.browser_id = browser_id
        request.state.issue_browser = True

    facade = registry.facade_for(context_id, browser_id)
    request.state.facade = facade
    return facade


def require_session(request: Request) -> SessionRecord:
    session = get_facade(request).get_session()
    if session is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return session


def require_role(min_role: str):
    def _dep(request: Request) -> SessionRecord:
        session = require_session(request)
        if role_rank(session.role) < role_rank(min_role):
            raise HTTPException(status_code=403, detail="Forbidden")
        return session

    return _dep


def cookie_settings(settings: Settings) -> dict:
    return {"httponly": True, "samesite": "lax", "secure": settings.cookie_secure}
