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

"""Fakes for driving the client deterministically in tests.

`VirtualScheduler` replaces wall-clock timers, `ManualVisibility` replaces
the page visibility source and `FakeApi` serves canned responses through an
`httpx.MockTransport`.
"""

import asyncio
import heapq
import inspect
import itertools
import json
from typing import Any, Callable, Optional, Union

import httpx

from .config import ClientConfig

TEST_BASE_URL = "http://storefront.test/api/v1"
_BASE_PATH = "/api/v1"


def make_config(**overrides) -> ClientConfig:
  return ClientConfig(api_base_url=TEST_BASE_URL, **overrides)


async def settle(rounds: int = 50) -> None:
  """Lets every runnable task proceed until it blocks."""
  for _ in range(rounds):
    await asyncio.sleep(0)


class _Timer:

  def __init__(self, due: float, seq: int, callback: Callable[[], Any]):
    self.due = due
    self.seq = seq
    self.callback = callback
    self.cancelled = False

  def cancel(self) -> None:
    self.cancelled = True

  def __lt__(self, other: "_Timer") -> bool:
    return (self.due, self.seq) < (other.due, other.seq)


class VirtualScheduler:
  """A `Scheduler` whose clock only moves when told to."""

  def __init__(self, start: float = 0.0):
    self._now = start
    self._timers: list[_Timer] = []
    self._seq = itertools.count()

  def now(self) -> float:
    return self._now

  def call_later(self, delay: float, callback: Callable[[], Any]) -> _Timer:
    timer = _Timer(self._now + max(delay, 0.0), next(self._seq), callback)
    heapq.heappush(self._timers, timer)
    return timer

  @property
  def pending_timers(self) -> int:
    return sum(1 for timer in self._timers if not timer.cancelled)

  async def advance(self, seconds: float) -> None:
    """Moves the clock forward, firing due timers in order.

    Tasks are settled after every fired timer so that timers they schedule
    in response are honoured within the same advance.
    """
    target = self._now + seconds
    await settle()
    while self._timers:
      timer = self._timers[0]
      if timer.cancelled:
        heapq.heappop(self._timers)
        continue
      if timer.due > target:
        break
      heapq.heappop(self._timers)
      self._now = timer.due
      timer.callback()
      await settle()
    self._now = target
    await settle()


class ManualVisibility:
  """A `VisibilitySource` flipped by the test."""

  def __init__(self, visible: bool = True):
    self._visible = visible
    self._callbacks: list[Callable[[bool], None]] = []

  def is_visible(self) -> bool:
    return self._visible

  def on_change(self, callback: Callable[[bool], None]) -> Callable[[], None]:
    self._callbacks.append(callback)

    def unsubscribe() -> None:
      if callback in self._callbacks:
        self._callbacks.remove(callback)

    return unsubscribe

  @property
  def subscribers(self) -> int:
    return len(self._callbacks)

  def set_visible(self, visible: bool) -> None:
    self._visible = visible
    for callback in list(self._callbacks):
      callback(visible)


class RecordingNavigator:
  """A `Navigator` that remembers every redirect."""

  def __init__(self, path: str = "/"):
    self.path = path
    self.redirects: list[str] = []

  def current_path(self) -> str:
    return self.path

  def redirect(self, url: str) -> None:
    self.redirects.append(url)


Handler = Union[
    httpx.Response,
    dict,
    list,
    Callable[[httpx.Request], Any],
]


class FakeApi:
  """Canned commerce API keyed by method and path.

  A route answers with a response, a JSON body (served with status 200), a
  list of those served in turn (the last one repeats), or a callable, sync
  or async, receiving the request. Unknown routes answer 404.
  """

  def __init__(self):
    self._routes: dict[tuple[str, str], Handler] = {}
    self.requests: list[httpx.Request] = []

  def route(self, method: str, path: str, handler: Handler) -> None:
    self._routes[(method.upper(), path)] = handler

  def transport(self) -> httpx.MockTransport:
    return httpx.MockTransport(self._handle)

  def calls(self, method: str, path: str) -> list[httpx.Request]:
    return [
        request
        for request in self.requests
        if request.method == method.upper() and _route_path(request) == path
    ]

  async def _handle(self, request: httpx.Request) -> httpx.Response:
    self.requests.append(request)
    handler = self._routes.get((request.method, _route_path(request)))
    if handler is None:
      return httpx.Response(404, json={"message": "Not found"})
    if isinstance(handler, list):
      handler = handler.pop(0) if len(handler) > 1 else handler[0]
    if callable(handler) and not isinstance(handler, httpx.Response):
      handler = handler(request)
      if inspect.isawaitable(handler):
        handler = await handler
    if isinstance(handler, httpx.Response):
      return handler
    return httpx.Response(200, json=handler)


def _route_path(request: httpx.Request) -> str:
  path = request.url.path
  if path.startswith(_BASE_PATH):
    return path[len(_BASE_PATH):]
  return path


def json_body(request: httpx.Request) -> Optional[Any]:
  return json.loads(request.content) if request.content else None
