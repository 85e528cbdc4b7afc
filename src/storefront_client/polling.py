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

"""Bounded polling of a payment until it leaves PENDING.

Each tick consumes one attempt. While the host page is hidden a tick makes no
network call and the next tick starts one interval later, or as soon as the
page becomes visible again. Polling ends on a terminal status (returned), on
an exhausted attempt budget (last known status returned), on an exhausted
consecutive-error budget (last error raised), or on abort
(`CancellationError` raised).
"""

import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

from . import constants
from .enums import PaymentStatus
from .exceptions import CancellationError
from .exceptions import StorefrontError
from .host import AlwaysVisible
from .host import VisibilitySource
from .scheduling import AbortSignal
from .scheduling import Scheduler
from .scheduling import wait

logger = logging.getLogger(__name__)

StatusFetcher = Callable[
    [str, Optional[AbortSignal]], Awaitable[PaymentStatus]
]
StatusObserver = Callable[[PaymentStatus], Union[None, Awaitable[None]]]


class PaymentStatusPoller:
  """Polls payment status with attempt, error and visibility limits."""

  def __init__(
      self,
      fetch_status: StatusFetcher,
      scheduler: Scheduler,
      visibility: Optional[VisibilitySource] = None,
      interval: float = constants.POLL_INTERVAL_SECONDS,
      max_attempts: int = constants.POLL_MAX_ATTEMPTS,
      max_consecutive_errors: int = constants.POLL_MAX_CONSECUTIVE_ERRORS,
  ):
    self._fetch_status = fetch_status
    self._scheduler = scheduler
    self._visibility = visibility or AlwaysVisible()
    self._interval = interval
    self._max_attempts = max_attempts
    self._max_consecutive_errors = max_consecutive_errors

  async def poll(
      self,
      order_number: str,
      abort: Optional[AbortSignal] = None,
      on_status_change: Optional[StatusObserver] = None,
  ) -> PaymentStatus:
    """Polls until the payment of `order_number` settles.

    Args:
      order_number: Order whose payment is tracked.
      abort: Stops polling with `CancellationError` when fired.
      on_status_change: Called, and awaited if it returns an awaitable, with
        every observed status that differs from the previous observation.
        The first observation counts as a change.

    Returns:
      The terminal status, or the last known status once the attempt budget
      is spent.

    Raises:
      CancellationError: `abort` fired.
      StorefrontError: The consecutive-error budget was exhausted.
    """
    last_status = PaymentStatus.PENDING
    observed: Optional[PaymentStatus] = None
    consecutive_errors = 0
    was_hidden = False

    for attempt in range(1, self._max_attempts + 1):
      if attempt > 1:
        await wait(
            self._scheduler,
            self._interval,
            abort=abort,
            wake_on_visible=self._visibility if was_hidden else None,
        )
      if abort is not None:
        abort.raise_if_aborted()

      if not self._visibility.is_visible():
        logger.debug("Page hidden, skipping status check %d", attempt)
        was_hidden = True
        continue
      was_hidden = False

      try:
        status = await self._fetch_status(order_number, abort)
      except CancellationError:
        raise
      except StorefrontError as exc:
        if abort is not None:
          abort.raise_if_aborted()
        consecutive_errors += 1
        logger.warning(
            "Status check %d for %s failed (%d/%d): %s",
            attempt,
            order_number,
            consecutive_errors,
            self._max_consecutive_errors,
            exc.message,
        )
        if consecutive_errors >= self._max_consecutive_errors:
          raise
        continue

      if abort is not None:
        abort.raise_if_aborted()
      consecutive_errors = 0
      last_status = status
      if status != observed:
        observed = status
        if on_status_change is not None:
          await self._notify(on_status_change, order_number, status)
      if status.is_terminal:
        logger.info("Payment for %s is %s", order_number, status.value)
        return status

    logger.info(
        "Payment for %s still %s after %d attempts",
        order_number,
        last_status.value,
        self._max_attempts,
    )
    return last_status

  async def _notify(
      self,
      observer: StatusObserver,
      order_number: str,
      status: PaymentStatus,
  ) -> None:
    """Runs the observer; its failures are logged and never end polling."""
    try:
      result = observer(status)
      if inspect.isawaitable(result):
        await result
    except CancellationError:
      raise
    except Exception:  # pylint: disable=broad-exception-caught
      logger.exception(
          "Status observer failed for %s on %s", order_number, status.value
      )
