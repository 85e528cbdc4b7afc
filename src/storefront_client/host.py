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

"""Capabilities of the page hosting the client (visibility, navigation)."""

import logging
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class VisibilitySource(Protocol):
  """Reports whether the host page is currently shown to the user."""

  def is_visible(self) -> bool:
    ...

  def on_change(self, callback: Callable[[bool], None]) -> Callable[[], None]:
    """Subscribes `callback`; the returned function unsubscribes it."""
    ...


class Navigator(Protocol):
  """Moves the host to another route."""

  def current_path(self) -> str:
    ...

  def redirect(self, url: str) -> None:
    ...


class AlwaysVisible:
  """Visibility for hosts without a notion of hidden pages."""

  def is_visible(self) -> bool:
    return True

  def on_change(self, callback: Callable[[bool], None]) -> Callable[[], None]:
    del callback  # Unused.
    return lambda: None


class LoggingNavigator:
  """Navigator for headless hosts: a redirect is only recorded in the log."""

  def __init__(self, path: str = "/"):
    self._path = path

  def current_path(self) -> str:
    return self._path

  def redirect(self, url: str) -> None:
    logger.warning("Session ended, redirecting to %s", url)
    self._path = url
