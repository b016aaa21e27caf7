from __future__ import annotations
from typing import Iterator, Optional
from urllib.parse import quote

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response

from backend import AuthUser, Backend, BackendClient, BackendError
from config import settings
from crud.users import get_profile, signup as signup_user
from schemas.common import toast
from schemas.users import LoginIn, SignupIn
from utils.auth_state import HOME_VIEW, LOGIN_VIEW, SessionContext, gate
from utils.errors import Forbidden, ViewRedirect

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Authorization"])


# ---------- Helpers ----------
def backend_failure(title: str, e: BackendError, status_code: int = 400) -> HTTPException:
    """Remote-call failure as a destructive toast carrying the backend's message."""
    if e.not_found:
        status_code = 404
    return HTTPException(status_code=status_code, detail=toast(title, e.message, destructive=True))


def safe_next(next_url: Optional[str]) -> str:
    # only same-site paths; anything else goes home
    if next_url and next_url.startswith("/") and not next_url.startswith("//"):
        return next_url
    return HOME_VIEW


def session_payload(ctx: SessionContext, profile: Optional[dict]) -> dict:
    user = ctx.user
    return {
        "state": ctx.state.value,
        "user": {"id": user.id, "email": user.email} if user else None,
        "profile": profile,
        "approved": bool(profile and profile.get("approved")),
    }


# ---------- Auth dependencies ----------
def get_backend(request: Request) -> Backend:
    return request.app.state.backend


def get_access_token(request: Request, authorization: str = Header(None)) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return request.cookies.get(settings.SESSION_COOKIE) or None


def get_client(
    backend: Backend = Depends(get_backend),
    token: Optional[str] = Depends(get_access_token),
) -> BackendClient:
    return BackendClient(backend, token)


def get_session_context(client: BackendClient = Depends(get_client)) -> Iterator[SessionContext]:
    ctx = SessionContext(client.channel)
    try:
        client.get_session()
        yield ctx
    finally:
        ctx.close()


def require_user(request: Request, ctx: SessionContext = Depends(get_session_context)) -> AuthUser:
    decision = gate(ctx.state, request.url.path)
    if decision.action == "wait":
        raise HTTPException(status_code=503, detail="Session is still loading")
    if decision.action == "redirect":
        nxt = request.url.path + (f"?{request.url.query}" if request.url.query else "")
        raise ViewRedirect(f"{decision.target}?next={quote(nxt)}")
    return ctx.user


def redirect_if_authenticated(request: Request, ctx: SessionContext = Depends(get_session_context)) -> SessionContext:
    decision = gate(ctx.state, request.url.path)
    if decision.action == "redirect":
        raise ViewRedirect(decision.target)
    return ctx


def require_roles(*allowed: str):
    allowed_set = set(allowed)

    def inner(user: AuthUser = Depends(require_user), client: BackendClient = Depends(get_client)) -> dict:
        try:
            profile = get_profile(client, user.id)
        except BackendError as e:
            raise backend_failure("Could not load your profile", e)
        if not profile or profile.get("role") not in allowed_set:
            raise Forbidden("This page is only available to administrators")
        return profile

    return inner


# ---------- Views ----------
@router.get("/")
def root():
    raise ViewRedirect(HOME_VIEW)


@router.get("/login")
def login_view(next: Optional[str] = None, _ctx: SessionContext = Depends(redirect_if_authenticated)):
    return {"view": "login", "next": safe_next(next)}


@router.get("/signup")
def signup_view(_ctx: SessionContext = Depends(redirect_if_authenticated)):
    return {"view": "signup"}


@router.get("/session")
def session_view(ctx: SessionContext = Depends(get_session_context), client: BackendClient = Depends(get_client)):
    profile = None
    if ctx.user:
        try:
            profile = get_profile(client, ctx.user.id)
        except BackendError as e:
            raise backend_failure("Could not load your profile", e)
    return session_payload(ctx, profile)


@router.post("/login")
def login(
    payload: LoginIn,
    response: Response,
    next: Optional[str] = None,
    client: BackendClient = Depends(get_client),
):
    ctx = SessionContext(client.channel)
    try:
        try:
            client.sign_in(payload.email, payload.password)
        except BackendError as e:
            logger.info("login_failed", error=e.message)
            raise backend_failure("Login failed", e, status_code=401)
        user_id = ctx.user.id
        try:
            profile = get_profile(client, user_id)
        except BackendError as e:
            # the fresh token must not outlive a failed login
            logger.warning("login_profile_failed", user_id=user_id, error=e.message)
            try:
                client.sign_out()
            except BackendError as out:
                logger.warning("login_sign_out_failed", user_id=user_id, error=out.message)
            raise backend_failure("Could not load your profile", e)
    finally:
        ctx.close()

    response.set_cookie(
        settings.SESSION_COOKIE,
        client.access_token,
        httponly=True,
        samesite="lax",
        max_age=settings.ACCESS_MIN * 60,
    )
    logger.info("login_succeeded", user_id=ctx.user.id)
    return {
        "toast": toast("Welcome back", f"Signed in as {ctx.user.email}"),
        "redirect": safe_next(next),
        "access_token": client.access_token,
        "token_type": "bearer",
        "session": session_payload(ctx, profile),
    }


@router.post("/signup", status_code=201)
def signup(payload: SignupIn, client: BackendClient = Depends(get_client)):
    try:
        session = signup_user(client, payload)
    except BackendError as e:
        raise backend_failure("Signup failed", e)
    return {
        "toast": toast("Account created", "Your account is pending approval by an administrator."),
        "redirect": LOGIN_VIEW,
        "user": {"id": session.user.id, "email": session.user.email},
    }


@router.post("/logout")
def logout(response: Response, client: BackendClient = Depends(get_client)):
    try:
        client.sign_out()
    except BackendError as e:
        raise backend_failure("Logout failed", e)
    response.delete_cookie(settings.SESSION_COOKIE)
    return {"toast": toast("Signed out"), "redirect": LOGIN_VIEW}
