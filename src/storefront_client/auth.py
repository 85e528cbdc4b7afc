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

"""Login, registration and logout."""

import logging
from typing import Optional

from pydantic import BaseModel

from . import boundary
from . import constants
from .cart import CartReconciler
from .cart import MergeOutcome
from .exceptions import StorefrontError
from .gateway import GatewayClient
from .models.auth_types import LoginRequest
from .models.auth_types import RegisterRequest
from .models.auth_types import TokenGrant
from .session import Session
from .session import SessionStore
from .session import expiry_after

logger = logging.getLogger(__name__)


class SignIn(BaseModel):
  session: Session
  merge: Optional[MergeOutcome] = None


class AuthService:
  """Owns the session lifecycle outside of token refresh."""

  def __init__(
      self,
      gateway: GatewayClient,
      session_store: SessionStore,
      reconciler: Optional[CartReconciler] = None,
  ):
    self._gateway = gateway
    self._session_store = session_store
    self._reconciler = reconciler

  async def login(self, email: str, password: str) -> SignIn:
    request = LoginRequest(email=email, password=password)
    payload = await self._gateway.post(
        constants.AUTH_LOGIN_PATH, json=boundary.to_wire(request)
    )
    return await self._sign_in(boundary.from_wire(TokenGrant, payload))

  async def register(self, request: RegisterRequest) -> SignIn:
    payload = await self._gateway.post(
        constants.AUTH_REGISTER_PATH, json=boundary.to_wire(request)
    )
    return await self._sign_in(boundary.from_wire(TokenGrant, payload))

  async def logout(self) -> None:
    """Ends the session on the server, then locally no matter what."""
    try:
      if self._session_store.get() is not None:
        await self._gateway.post(constants.AUTH_LOGOUT_PATH)
    except StorefrontError as exc:
      logger.warning("Server logout failed: %s", exc.message)
    finally:
      self._gateway.cancel_all()
      self._session_store.clear()

  async def _sign_in(self, grant: TokenGrant) -> SignIn:
    session = Session(
        access_token=grant.access_token,
        refresh_token=grant.refresh_token,
        expires_at=expiry_after(grant.expires_in),
        user=grant.user,
    )
    self._session_store.set(session)
    logger.info("Signed in as %s", grant.user.get("email", "<unknown>"))
    merge = None
    if self._reconciler is not None:
      merge = await self._reconciler.on_authenticated()
    return SignIn(session=session, merge=merge)
