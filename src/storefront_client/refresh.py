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

"""Single-flight coordination of access token refreshes.

A refresh cycle moves the coordinator from `IDLE` to `REFRESHING` and back.
The first caller to need a fresh token starts the cycle; every caller that
arrives while it runs is parked as a pending entry and settled, success or
failure, when the cycle ends. The cycle runs in its own task so that a
cancelled initiator can never strand the parked callers.
"""

import asyncio
import enum
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class RefreshState(str, enum.Enum):
  IDLE = "idle"
  REFRESHING = "refreshing"


class RefreshCoordinator:
  """Makes sure at most one token refresh is in flight."""

  def __init__(self, refresh: Callable[[], Awaitable[str]]):
    """Initializes the coordinator.

    Args:
      refresh: Performs one refresh round trip and returns the new access
        token. Any exception it raises fails the whole cycle.
    """
    self._refresh = refresh
    self._cycle: Optional[asyncio.Task] = None
    self._pending: list[asyncio.Future] = []
    self.cycles_started = 0

  @property
  def state(self) -> RefreshState:
    if self._cycle is None:
      return RefreshState.IDLE
    return RefreshState.REFRESHING

  @property
  def pending_count(self) -> int:
    return len(self._pending)

  async def fresh_token(self) -> str:
    """Returns a new access token, joining the running cycle if there is one.

    Returns:
      The access token produced by the cycle.

    Raises:
      Exception: Whatever the refresh callable raised; every caller of the
        cycle receives the same exception.
    """
    if self._cycle is not None:
      entry = asyncio.get_running_loop().create_future()
      self._pending.append(entry)
      logger.debug("Refresh in progress, %d request(s) queued",
                   len(self._pending))
      return await entry

    self.cycles_started += 1
    self._cycle = asyncio.ensure_future(self._run_cycle())
    self._cycle.add_done_callback(_consume_outcome)
    return await asyncio.shield(self._cycle)

  async def _run_cycle(self) -> str:
    try:
      token = await self._refresh()
    except BaseException as exc:
      self._settle(error=exc)
      raise
    self._settle(token=token)
    return token

  def _settle(
      self,
      token: Optional[str] = None,
      error: Optional[BaseException] = None,
  ) -> None:
    pending, self._pending = self._pending, []
    self._cycle = None
    for entry in pending:
      if entry.done():
        continue
      if isinstance(error, asyncio.CancelledError):
        entry.cancel()
      elif error is not None:
        entry.set_exception(error)
      else:
        entry.set_result(token)
    logger.debug("Refresh cycle ended, released %d request(s)", len(pending))


def _consume_outcome(cycle: asyncio.Task) -> None:
  # Pending entries already carry the outcome.
  if not cycle.cancelled():
    cycle.exception()
