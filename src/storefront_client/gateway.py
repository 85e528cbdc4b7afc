#   Copyright 2026 UCP Authors
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.

"""Gateway client for the commerce API.

Every outbound call goes through `GatewayClient.request`, which:
- attaches the bearer token of the current session, read at send time;
- on a 401, joins or starts a single refresh cycle and replays the call once;
- ends the session and redirects to login when the refresh fails;
- normalizes failures into `StorefrontError` subclasses;
- optionally aborts on a signal, or when superseded by a newer request that
  shares the same cancel key.
"""

import logging
from typing import Any, Optional
import urllib.parse

import httpx

from . import boundary
from . import constants
from .config import ClientConfig
from .exceptions import AuthError
from .exceptions import StorefrontError
from .host import LoggingNavigator
from .host import Navigator
from .models.auth_types import RefreshGrant
from .models.auth_types import RefreshRequest
from .refresh import RefreshCoordinator
from .scheduling import AbortController
from .scheduling import AbortSignal
from .scheduling import run_abortable
from .session import SessionStore

logger = logging.getLogger(__name__)


def _skips_refresh(path: str) -> bool:
  return any(path.startswith(skip) for skip in constants.SKIP_REFRESH_PATHS)


def _is_unauthenticated_route(path: str) -> bool:
  route = path.split("?", 1)[0].split("#", 1)[0].rstrip("/") or "/"
  return any(
      route == entry or route.startswith(entry + "/")
      for entry in constants.UNAUTHENTICATED_ROUTES
  )


class GatewayClient:
  """Authenticated, self-refreshing access to the commerce API."""

  def __init__(
      self,
      config: ClientConfig,
      session_store: SessionStore,
      navigator: Optional[Navigator] = None,
      transport: Optional[httpx.AsyncBaseTransport] = None,
  ):
    self.config = config
    self.session_store = session_store
    self.navigator = navigator or LoggingNavigator()
    self.refresh = RefreshCoordinator(self._refresh_access_token)
    self._http = httpx.AsyncClient(
        base_url=config.api_base_url,
        timeout=config.request_timeout,
        transport=transport,
        headers={"Content-Type": "application/json"},
    )
    self._keyed: dict[str, AbortController] = {}

  async def __aenter__(self) -> "GatewayClient":
    return self

  async def __aexit__(self, *exc_info) -> None:
    await self.aclose()

  async def aclose(self) -> None:
    self.cancel_all()
    await self._http.aclose()

  async def request(
      self,
      method: str,
      path: str,
      *,
      json: Optional[Any] = None,
      params: Optional[dict[str, Any]] = None,
      abort: Optional[AbortSignal] = None,
      cancel_key: Optional[str] = None,
  ) -> Any:
    """Sends one logical request and returns its decoded JSON body.

    Args:
      method: HTTP method.
      path: Path relative to the API base URL.
      json: Request body, already in wire form.
      params: Query parameters.
      abort: Abandons the request with `CancellationError` when fired.
      cancel_key: Aborts any in-flight request issued with the same key.

    Returns:
      The decoded response body (still enveloped, see `boundary.unwrap`).

    Raises:
      StorefrontError: Normalized failure of the request or of the token
        refresh it triggered.
    """
    controller = None
    unlink = None
    if cancel_key is not None:
      if abort is not None:
        abort.raise_if_aborted()
      controller = self._claim(cancel_key)
      if abort is not None:
        outer = abort
        unlink = outer.add_listener(lambda: controller.abort(outer.reason))
      abort = controller.signal

    try:
      return await run_abortable(
          self._request(method, path, json, params), abort
      )
    finally:
      if unlink is not None:
        unlink()
      if controller is not None and self._keyed.get(cancel_key) is controller:
        del self._keyed[cancel_key]

  async def get(self, path: str, **kwargs) -> Any:
    return await self.request("GET", path, **kwargs)

  async def post(self, path: str, **kwargs) -> Any:
    return await self.request("POST", path, **kwargs)

  async def patch(self, path: str, **kwargs) -> Any:
    return await self.request("PATCH", path, **kwargs)

  async def delete(self, path: str, **kwargs) -> Any:
    return await self.request("DELETE", path, **kwargs)

  def cancel(self, cancel_key: str) -> None:
    """Aborts the in-flight request registered under `cancel_key`, if any."""
    controller = self._keyed.pop(cancel_key, None)
    if controller is not None:
      controller.abort(f"Request {cancel_key} was cancelled")

  def cancel_all(self) -> None:
    for cancel_key in list(self._keyed):
      self.cancel(cancel_key)

  def _claim(self, cancel_key: str) -> AbortController:
    previous = self._keyed.get(cancel_key)
    if previous is not None:
      logger.debug("Superseding in-flight %s request", cancel_key)
      previous.abort(f"Superseded by a newer {cancel_key} request")
    controller = AbortController()
    self._keyed[cancel_key] = controller
    return controller

  async def _request(
      self,
      method: str,
      path: str,
      json: Optional[Any],
      params: Optional[dict[str, Any]],
  ) -> Any:
    response = await self._send(method, path, json, params)
    if response.status_code == 401 and not _skips_refresh(path):
      logger.info("%s %s unauthorized, refreshing access token", method, path)
      await self.refresh.fresh_token()
      # Replayed once; a second 401 is surfaced as is.
      response = await self._send(method, path, json, params)
    if response.is_error:
      raise boundary.error_from_response(response)
    return boundary.parse_body(response)

  async def _send(
      self,
      method: str,
      path: str,
      json: Optional[Any],
      params: Optional[dict[str, Any]],
  ) -> httpx.Response:
    headers = {}
    session = self.session_store.get()
    if session is not None:
      headers["Authorization"] = f"Bearer {session.access_token}"
    try:
      return await self._http.request(
          method, path, json=json, params=params, headers=headers
      )
    except httpx.TransportError as exc:
      logger.warning("%s %s failed: %s", method, path, exc)
      raise boundary.error_from_transport(exc) from exc

  async def _refresh_access_token(self) -> str:
    session = self.session_store.get()
    try:
      if session is None or not session.refresh_token:
        raise AuthError("No refresh token available")
      grant = await self._call_refresh_endpoint(session.refresh_token)
    except StorefrontError as exc:
      logger.warning("Token refresh failed: %s", exc.message)
      self._end_session()
      if isinstance(exc, AuthError):
        raise
      raise AuthError(exc.message) from exc

    current = self.session_store.get()
    if current is None or current.session_id != session.session_id:
      # Logged out, or signed in again, while the refresh was in flight.
      logger.info("Session ended during token refresh, discarding new token")
      raise AuthError("Session ended during token refresh")
    self.session_store.set(
        current.with_access_token(grant.access_token, grant.expires_in)
    )
    logger.info("Access token refreshed")
    return grant.access_token

  async def _call_refresh_endpoint(self, refresh_token: str) -> RefreshGrant:
    body = boundary.to_wire(RefreshRequest(refresh_token=refresh_token))
    try:
      response = await self._http.post(constants.AUTH_REFRESH_PATH, json=body)
    except httpx.TransportError as exc:
      raise AuthError(f"Token refresh failed: {exc}", status_code=None) from exc
    if response.is_error:
      raise AuthError(
          f"Token refresh rejected with status {response.status_code}",
          status_code=response.status_code,
      )
    return boundary.from_wire(RefreshGrant, boundary.parse_body(response))

  def _end_session(self) -> None:
    self.session_store.clear()
    path = self.navigator.current_path()
    if _is_unauthenticated_route(path):
      return
    self.navigator.redirect(
        f"{constants.LOGIN_ROUTE}?redirect={urllib.parse.quote(path, safe='')}"
    )
