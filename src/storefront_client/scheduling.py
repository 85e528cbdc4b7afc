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

"""Timers and abort signals for the orchestration layer.

Waiting is expressed as a scheduled callback with a cancel handle rather than
a bare `asyncio.sleep`, so that tests can swap in a virtual clock and advance
time deterministically.
"""

import asyncio
from typing import Any, Callable, Optional, Protocol

from .exceptions import CancellationError
from .host import VisibilitySource


class TimerHandle(Protocol):

  def cancel(self) -> None:
    ...


class Scheduler(Protocol):
  """Clock plus delayed callbacks."""

  def now(self) -> float:
    ...

  def call_later(
      self, delay: float, callback: Callable[[], Any]
  ) -> TimerHandle:
    ...


class LoopScheduler:
  """`Scheduler` backed by the running asyncio event loop."""

  def now(self) -> float:
    return asyncio.get_running_loop().time()

  def call_later(
      self, delay: float, callback: Callable[[], Any]
  ) -> asyncio.TimerHandle:
    return asyncio.get_running_loop().call_later(delay, callback)


class AbortSignal:
  """Read side of an `AbortController`."""

  def __init__(self):
    self._reason: Optional[str] = None
    self._listeners: list[Callable[[], None]] = []

  @property
  def aborted(self) -> bool:
    return self._reason is not None

  @property
  def reason(self) -> Optional[str]:
    return self._reason

  def add_listener(self, listener: Callable[[], None]) -> Callable[[], None]:
    """Registers `listener` and returns a function that unregisters it."""
    self._listeners.append(listener)

    def remove() -> None:
      if listener in self._listeners:
        self._listeners.remove(listener)

    return remove

  def raise_if_aborted(self) -> None:
    if self._reason is not None:
      raise CancellationError(self._reason)

  def _abort(self, reason: str) -> None:
    if self._reason is not None:
      return
    self._reason = reason
    listeners, self._listeners = self._listeners, []
    for listener in listeners:
      listener()


class AbortController:
  """Owner side of an abort signal."""

  def __init__(self):
    self.signal = AbortSignal()

  def abort(self, reason: str = "Request was cancelled") -> None:
    self.signal._abort(reason)  # pylint: disable=protected-access


async def wait(
    scheduler: Scheduler,
    delay: float,
    abort: Optional[AbortSignal] = None,
    wake_on_visible: Optional[VisibilitySource] = None,
) -> None:
  """Suspends for `delay` seconds of scheduler time.

  Args:
    scheduler: Clock the delay is measured on.
    delay: Seconds to wait.
    abort: Raises `CancellationError` as soon as this signal fires.
    wake_on_visible: Ends the wait early once this source turns visible.

  Raises:
    CancellationError: The abort signal fired before or during the wait.
  """
  if abort is not None:
    abort.raise_if_aborted()

  waiter = asyncio.get_running_loop().create_future()

  def wake() -> None:
    if not waiter.done():
      waiter.set_result(None)

  def cancel() -> None:
    if not waiter.done():
      waiter.set_exception(CancellationError(abort.reason))

  def on_visibility(visible: bool) -> None:
    if visible:
      wake()

  handle = scheduler.call_later(delay, wake)
  cleanups = [handle.cancel]
  if abort is not None:
    cleanups.append(abort.add_listener(cancel))
  if wake_on_visible is not None:
    cleanups.append(wake_on_visible.on_change(on_visibility))
  try:
    await waiter
  finally:
    for cleanup in cleanups:
      cleanup()


async def run_abortable(awaitable, abort: Optional[AbortSignal]):
  """Awaits `awaitable`, abandoning it if `abort` fires first."""
  if abort is None:
    return await awaitable
  if abort.aborted:
    if asyncio.iscoroutine(awaitable):
      awaitable.close()
    raise CancellationError(abort.reason)

  task = asyncio.ensure_future(awaitable)
  aborted = asyncio.get_running_loop().create_future()

  def on_abort() -> None:
    if not aborted.done():
      aborted.set_result(None)

  remove = abort.add_listener(on_abort)
  try:
    await asyncio.wait({task, aborted}, return_when=asyncio.FIRST_COMPLETED)
  except asyncio.CancelledError:
    task.cancel()
    raise
  finally:
    remove()
  if task.done():
    return task.result()
  task.cancel()
  raise CancellationError(abort.reason)
