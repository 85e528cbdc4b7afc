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

"""Tests for timers and abort signals."""

import asyncio

from absl.testing import absltest

from storefront_client.exceptions import CancellationError
from storefront_client.scheduling import AbortController
from storefront_client.scheduling import LoopScheduler
from storefront_client.scheduling import run_abortable
from storefront_client.scheduling import wait
from storefront_client.testing_util import ManualVisibility
from storefront_client.testing_util import VirtualScheduler
from storefront_client.testing_util import settle


class WaitTest(absltest.TestCase):

  def test_wait_ends_when_timer_fires(self) -> None:
    scheduler = VirtualScheduler()

    async def scenario():
      waiter = asyncio.ensure_future(wait(scheduler, 5))
      await scheduler.advance(4)
      self.assertFalse(waiter.done())
      await scheduler.advance(1)
      self.assertTrue(waiter.done())

    asyncio.run(scenario())

  def test_wait_wakes_on_visible(self) -> None:
    scheduler = VirtualScheduler()
    visibility = ManualVisibility(visible=False)

    async def scenario():
      waiter = asyncio.ensure_future(
          wait(scheduler, 5, wake_on_visible=visibility)
      )
      await settle()
      visibility.set_visible(False)
      await settle()
      self.assertFalse(waiter.done())
      visibility.set_visible(True)
      await settle()
      self.assertTrue(waiter.done())
      self.assertEqual(scheduler.pending_timers, 0)
      self.assertEqual(visibility.subscribers, 0)

    asyncio.run(scenario())

  def test_aborted_signal_fails_fast(self) -> None:
    controller = AbortController()
    controller.abort("Gone")

    async def scenario():
      await wait(VirtualScheduler(), 5, abort=controller.signal)

    with self.assertRaises(CancellationError) as cm:
      asyncio.run(scenario())
    self.assertEqual(cm.exception.message, "Gone")

  def test_loop_scheduler_waits_real_time(self) -> None:

    async def scenario():
      scheduler = LoopScheduler()
      started = scheduler.now()
      await wait(scheduler, 0.01)
      return scheduler.now() - started

    self.assertGreaterEqual(asyncio.run(scenario()), 0.009)


class RunAbortableTest(absltest.TestCase):

  def test_returns_result(self) -> None:

    async def work():
      await asyncio.sleep(0)
      return 42

    async def scenario():
      return await run_abortable(work(), AbortController().signal)

    self.assertEqual(asyncio.run(scenario()), 42)

  def test_abort_abandons_work(self) -> None:

    async def scenario():
      controller = AbortController()
      blocked = asyncio.Event()
      call = asyncio.ensure_future(
          run_abortable(blocked.wait(), controller.signal)
      )
      await settle()
      controller.abort("Superseded")
      await call

    with self.assertRaises(CancellationError) as cm:
      asyncio.run(scenario())
    self.assertEqual(cm.exception.message, "Superseded")

  def test_listeners_fire_once(self) -> None:
    controller = AbortController()
    fired = []
    remove = controller.signal.add_listener(lambda: fired.append("a"))
    controller.signal.add_listener(lambda: fired.append("b"))
    remove()
    controller.abort()
    controller.abort()
    self.assertEqual(fired, ["b"])
    self.assertTrue(controller.signal.aborted)


if __name__ == "__main__":
  absltest.main()
