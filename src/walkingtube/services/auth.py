"""Supabase authentication client and the session state built on top of it."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

import httpx
from pydantic import ValidationError
from rich.console import Console

from walkingtube.config.settings import Settings, get_settings
from walkingtube.models.session import AuthEvent, AuthSession, SessionUser
from walkingtube.utils.subscriptions import Subscription

AuthListener = Callable[[AuthEvent, Optional[AuthSession]], None]
DEFAULT_EXPIRY_SECONDS = 3600


class AuthError(RuntimeError):
    """Raised when the auth service rejects a request."""


class SupabaseAuthClient:
    """Minimal client for the Supabase auth REST API (``/auth/v1``)."""

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._settings = (settings or get_settings()).require()
        anon_key = self._settings.supabase_anon_key.get_secret_value()  # type: ignore[union-attr]
        self._base_url = f"{str(self._settings.supabase_url).rstrip('/')}/auth/v1"
        self._http = http_client or httpx.Client(timeout=self._settings.http_timeout_seconds)
        self._headers = {"apikey": anon_key, "Content-Type": "application/json"}

    def sign_up(self, email: str, password: str) -> Optional[AuthSession]:
        """Create an account; returns a session unless e-mail confirmation is pending."""

        payload = self._request("POST", "/signup", json={"email": email, "password": password})
        if "access_token" not in payload:
            return None
        return self._session_from_payload(payload)

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """Exchange e-mail and password for a session."""

        payload = self._request(
            "POST", "/token", params={"grant_type": "password"}, json={"email": email, "password": password}
        )
        return self._session_from_payload(payload)

    def refresh_session(self, refresh_token: str) -> AuthSession:
        """Exchange a refresh token for a new session."""

        payload = self._request(
            "POST", "/token", params={"grant_type": "refresh_token"}, json={"refresh_token": refresh_token}
        )
        return self._session_from_payload(payload)

    def get_user(self, access_token: str) -> SessionUser:
        """Return the user that owns ``access_token``."""

        payload = self._request("GET", "/user", access_token=access_token)
        return self._user_from_payload(payload)

    def sign_out(self, access_token: str) -> None:
        """Revoke the refresh tokens of the session behind ``access_token``."""

        self._request("POST", "/logout", access_token=access_token)

    def close(self) -> None:
        self._http.close()

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #
    def _request(
        self,
        method: str,
        path: str,
        *,
        access_token: Optional[str] = None,
        params: Optional[Mapping[str, str]] = None,
        json: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        headers = dict(self._headers)
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        try:
            response = self._http.request(method, f"{self._base_url}{path}", headers=headers, params=params, json=json)
        except httpx.HTTPError as exc:
            raise AuthError(f"Auth service unreachable: {exc}") from exc

        if response.status_code >= 400:
            raise AuthError(self._error_message(response))
        if not response.content:
            return {}
        return response.json()

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"Auth request failed with HTTP {response.status_code}"
        for key in ("error_description", "msg", "message", "error"):
            if body.get(key):
                return str(body[key])
        return f"Auth request failed with HTTP {response.status_code}"

    @staticmethod
    def _user_from_payload(payload: Mapping[str, Any]) -> SessionUser:
        try:
            return SessionUser(id=str(payload["id"]), email=payload.get("email"))
        except (KeyError, ValidationError) as exc:
            raise AuthError(f"Unexpected user payload from auth service: {exc}") from exc

    def _session_from_payload(self, payload: Mapping[str, Any]) -> AuthSession:
        try:
            if payload.get("expires_at") is not None:
                expires_at = datetime.fromtimestamp(int(payload["expires_at"]), tz=timezone.utc)
            else:
                expires_in = int(payload.get("expires_in") or DEFAULT_EXPIRY_SECONDS)
                expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        except (TypeError, ValueError, OverflowError, OSError) as exc:
            raise AuthError(f"Unexpected token expiry from auth service: {exc}") from exc
        try:
            return AuthSession(
                access_token=payload["access_token"],
                refresh_token=payload["refresh_token"],
                expires_at=expires_at,
                user=self._user_from_payload(payload["user"]),
            )
        except (KeyError, ValidationError) as exc:
            raise AuthError(f"Unexpected session payload from auth service: {exc}") from exc


class SessionState:
    """Current authenticated session, persisted between runs and observable by subscribers.

    ``load`` restores the stored session (refreshing it when expired) and announces it as
    :attr:`AuthEvent.INITIAL_SESSION`. Later sign-ins, sign-outs and refreshes are broadcast to
    every listener registered with :meth:`subscribe`.
    """

    def __init__(
        self,
        auth_client: SupabaseAuthClient,
        *,
        session_file: Optional[Path] = None,
        console: Optional[Console] = None,
    ) -> None:
        self._auth = auth_client
        self._session_file = session_file
        self._console = console or Console()
        self._session: Optional[AuthSession] = None
        self._listeners: Dict[int, AuthListener] = {}
        self._next_handle = 0

    @property
    def session(self) -> Optional[AuthSession]:
        return self._session

    @property
    def user(self) -> Optional[SessionUser]:
        return self._session.user if self._session else None

    def subscribe(self, listener: AuthListener) -> Subscription:
        """Register ``listener`` for auth-state changes until the returned handle is released."""

        handle = self._next_handle
        self._next_handle += 1
        self._listeners[handle] = listener
        return Subscription(lambda: self._listeners.pop(handle, None))

    # ------------------------------------------------------------------ #
    # Session lifecycle                                                  #
    # ------------------------------------------------------------------ #
    def load(self) -> Optional[SessionUser]:
        """Restore the persisted session, if any, and return its user."""

        stored = self._read_session_file()
        if stored is not None and stored.is_expired():
            try:
                stored = self._auth.refresh_session(stored.refresh_token)
                self._write_session_file(stored)
            except AuthError as exc:
                self._console.log(f"[yellow]Auth:[/yellow] stored session could not be refreshed ({exc})")
                self._clear_session_file()
                stored = None

        self._session = stored
        self._emit(AuthEvent.INITIAL_SESSION)
        return self.user

    def sign_in(self, email: str, password: str) -> SessionUser:
        session = self._auth.sign_in_with_password(email, password)
        self._set_session(session, AuthEvent.SIGNED_IN)
        return session.user

    def sign_up(self, email: str, password: str) -> Optional[SessionUser]:
        """Register a new account and sign in when the service returns a session immediately."""

        session = self._auth.sign_up(email, password)
        if session is None:
            return None
        self._set_session(session, AuthEvent.SIGNED_IN)
        return session.user

    def refresh(self) -> Optional[SessionUser]:
        if self._session is None:
            return None
        session = self._auth.refresh_session(self._session.refresh_token)
        self._set_session(session, AuthEvent.TOKEN_REFRESHED)
        return session.user

    def sign_out(self) -> None:
        """Forget the local session; a failed remote revoke is logged, not raised."""

        session, self._session = self._session, None
        if session is not None:
            try:
                self._auth.sign_out(session.access_token)
            except AuthError as exc:
                self._console.log(f"[yellow]Auth:[/yellow] remote sign-out failed ({exc})")
        self._clear_session_file()
        self._emit(AuthEvent.SIGNED_OUT)

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #
    def _set_session(self, session: AuthSession, event: AuthEvent) -> None:
        self._session = session
        self._write_session_file(session)
        self._emit(event)

    def _emit(self, event: AuthEvent) -> None:
        for listener in list(self._listeners.values()):
            listener(event, self._session)

    def _read_session_file(self) -> Optional[AuthSession]:
        if self._session_file is None or not self._session_file.exists():
            return None
        try:
            return AuthSession.model_validate(json.loads(self._session_file.read_text(encoding="utf-8")))
        except (ValueError, ValidationError) as exc:
            self._console.log(f"[yellow]Auth:[/yellow] ignoring unreadable session file ({exc})")
            return None

    def _write_session_file(self, session: AuthSession) -> None:
        if self._session_file is None:
            return
        self._session_file.parent.mkdir(parents=True, exist_ok=True)
        self._session_file.write_text(session.model_dump_json(), encoding="utf-8")
        self._session_file.chmod(0o600)

    def _clear_session_file(self) -> None:
        if self._session_file is not None and self._session_file.exists():
            self._session_file.unlink()


__all__ = ["AuthError", "AuthListener", "SessionState", "SupabaseAuthClient"]
