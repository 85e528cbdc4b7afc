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

"""Tests for login, registration and logout."""

import asyncio

from absl.testing import absltest
import httpx

from storefront_client.auth import AuthService
from storefront_client.cart import CartReconciler
from storefront_client.exceptions import AuthError
from storefront_client.gateway import GatewayClient
from storefront_client.models.auth_types import RegisterRequest
from storefront_client.session import InMemoryKeyValueStore
from storefront_client.session import InMemorySessionStore
from storefront_client.session import Session
from storefront_client.testing_util import FakeApi
from storefront_client.testing_util import RecordingNavigator
from storefront_client.testing_util import json_body
from storefront_client.testing_util import make_config
from storefront_client.testing_util import settle

GRANT = {
    "status": "success",
    "data": {
        "access_token": "access-1",
        "refresh_token": "refresh-1",
        "expires_in": 900,
        "user": {"id": "u-1", "email": "sari@example.com"},
    },
}


class AuthServiceTest(absltest.TestCase):

  def setUp(self) -> None:
    super().setUp()
    self.api = FakeApi()
    self.api.route("GET", "/cart", {"data": {"items": []}})
    self.sessions = InMemorySessionStore()
    self.kv = InMemoryKeyValueStore()

  def _services(self):
    gateway = GatewayClient(
        make_config(),
        self.sessions,
        RecordingNavigator(),
        transport=self.api.transport(),
    )
    reconciler = CartReconciler(gateway, self.sessions, self.kv)
    return AuthService(gateway, self.sessions, reconciler), reconciler

  def test_login_stores_session_and_merges(self) -> None:
    self.api.route("POST", "/auth/login", GRANT)
    self.api.route("POST", "/cart/merge", {"data": {}})

    async def scenario():
      auth, reconciler = self._services()
      reconciler.local.add("A", 2)
      return await auth.login("sari@example.com", "hunter22")

    sign_in = asyncio.run(scenario())
    session = self.sessions.get()
    self.assertEqual(session, sign_in.session)
    self.assertEqual(session.access_token, "access-1")
    self.assertEqual(session.refresh_token, "refresh-1")
    self.assertIsNotNone(session.expires_at)
    self.assertTrue(sign_in.merge.merged)
    self.assertLen(self.api.calls("POST", "/cart/merge"), 1)
    self.assertEqual(
        json_body(self.api.calls("POST", "/auth/login")[0]),
        {"email": "sari@example.com", "password": "hunter22"},
    )

  def test_register_sends_phone_number(self) -> None:
    self.api.route("POST", "/auth/register", GRANT)

    async def scenario():
      auth, _ = self._services()
      return await auth.register(
          RegisterRequest(
              email="sari@example.com",
              password="hunter22",
              first_name="Sari",
              last_name="Dewi",
              phone="+6281234567890",
          )
      )

    sign_in = asyncio.run(scenario())
    self.assertEqual(sign_in.session.user["id"], "u-1")
    self.assertEqual(
        json_body(self.api.calls("POST", "/auth/register")[0])["phone_number"],
        "+6281234567890",
    )

  def test_logout_clears_session_even_if_server_fails(self) -> None:
    self.sessions.set(Session(access_token="access-1"))
    self.api.route(
        "POST",
        "/auth/logout",
        lambda request: httpx.Response(500, json={"message": "Oops"}),
    )

    async def scenario():
      auth, _ = self._services()
      await auth.logout()

    with self.assertLogs("storefront_client.auth", level="WARNING"):
      asyncio.run(scenario())
    self.assertIsNone(self.sessions.get())
    self.assertLen(self.api.calls("POST", "/auth/logout"), 1)

  def test_logout_wins_over_refresh_in_flight(self) -> None:
    self.sessions.set(Session(access_token="stale", refresh_token="r"))
    self.api.route("POST", "/auth/logout", {"status": "success"})
    self.api.route(
        "GET",
        "/me",
        lambda request: httpx.Response(401, json={"message": "Expired"}),
    )
    release = None

    async def refresh(request: httpx.Request) -> httpx.Response:
      await release.wait()
      return httpx.Response(
          200, json={"data": {"access_token": "new", "expires_in": 900}}
      )

    self.api.route("POST", "/auth/refresh", refresh)

    async def scenario():
      nonlocal release
      release = asyncio.Event()
      gateway = GatewayClient(
          make_config(),
          self.sessions,
          RecordingNavigator(),
          transport=self.api.transport(),
      )
      auth = AuthService(gateway, self.sessions)
      profile = asyncio.ensure_future(gateway.get("/me"))
      await settle()
      await auth.logout()
      self.assertIsNone(self.sessions.get())
      release.set()
      with self.assertRaises(AuthError):
        await profile

    asyncio.run(scenario())
    self.assertIsNone(self.sessions.get())
    self.assertLen(self.api.calls("GET", "/me"), 1)


if __name__ == "__main__":
  absltest.main()
