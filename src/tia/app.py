# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Form, Request
from fastapi.responses import JSONResponse, RedirectResponse

from tia.auth.authenticator import AuthSuccess
from tia.auth.errors import DuplicateUser, InvalidInput
from tia.auth.facade import SessionFacade, build_facade
from tia.auth.passwords import CredentialHasher
from tia.auth.session import SessionRecord
from tia.auth.users import DEFAULT_ROLE, UserDirectory
from tia.config import load_settings
from tia.infra.storage import FileStore, MemoryStore
from tia.permissions import (
    BROWSER_MAX_AGE_SECONDS,
    ContextRegistry,
    cookie_settings,
    get_facade,
    require_role,
    require_session,
)

logger = logging.getLogger(__name__)

SETTINGS = load_settings()
DURABLE = FileStore(SETTINGS.storage_path)
DIRECTORY = UserDirectory(DURABLE, CredentialHasher(SETTINGS.hash_salt))
CONTEXTS = ContextRegistry(SETTINGS, DURABLE, DIRECTORY)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Bootstrap only touches the shared durable store.
    await build_facade(DURABLE, MemoryStore(), SETTINGS, directory=DIRECTORY).ensure_default_account()
    logger.info("TIA auth ready (storage=%s)", SETTINGS.storage_path)
    yield


app = FastAPI(title="Tile Inventory auth", lifespan=lifespan)
app.state.contexts = CONTEXTS


@app.middleware("http")
async def _context_middleware(request: Request, call_next):
    request.state.context_id = CONTEXTS.verify_context(request.cookies.get(SETTINGS.cookie_name, ""))
    request.state.browser_id = CONTEXTS.verify_browser(request.cookies.get(SETTINGS.browser_cookie_name, ""))

    response = await call_next(request)
    if getattr(request.state, "issue_context", False):
        response.set_cookie(
            SETTINGS.cookie_name,
            CONTEXTS.sign_context(request.state.context_id),
            **cookie_settings(SETTINGS),
        )
    if getattr(request.state, "issue_browser", False):
        response.set_cookie(
            SETTINGS.browser_cookie_name,
            CONTEXTS.sign_browser(request.state.browser_id),
            max_age=BROWSER_MAX_AGE_SECONDS,
            **cookie_settings(SETTINGS),
        )
    return response


# ------------------ Routes ------------------


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/")
def index(facade: SessionFacade = Depends(get_facade)):
    return {"authenticated": facade.is_authenticated()}


@app.post("/login")
async def login_post(
    username: str = Form(""),
    password: str = Form(""),
    remember: bool = Form(False),
    facade: SessionFacade = Depends(get_facade),
):
    result = await facade.login(username, password, remember=remember)
    if isinstance(result, AuthSuccess):
        return {"success": True, "user": result.user.public_dict()}
    return JSONResponse({"success": False, "reason": result.reason.value}, status_code=401)


@app.post("/logout")
def logout_post(forget: bool = Form(False), facade: SessionFacade = Depends(get_facade)):
    facade.logout(forget=forget)
    return RedirectResponse(url="/", status_code=303)


@app.get("/session")
def session_get(session: SessionRecord = Depends(require_session)):
    return session.to_dict()


@app.get("/users/{username}")
def user_get(
    username: str,
    _session: SessionRecord = Depends(require_session),
    facade: SessionFacade = Depends(get_facade),
):
    user = facade.find_user_by_username(username)
    if user is None:
        return JSONResponse({"detail": "User not found"}, status_code=404)
    return user.public_dict()


@app.post("/users", status_code=201)
async def user_create(
    username: str = Form(""),
    password: str = Form(""),
    role: str = Form(DEFAULT_ROLE),
    _admin: SessionRecord = Depends(require_role("admin")),
    facade: SessionFacade = Depends(get_facade),
):
    try:
        user = await facade.create_user(username, password, role)
    except InvalidInput as exc:
        return JSONResponse({"detail": str(exc)}, status_code=400)
    except DuplicateUser as exc:
        return JSONResponse({"detail": str(exc)}, status_code=409)
    return user.public_dict()
