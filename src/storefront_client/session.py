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

"""Session state and the host storage capabilities the client relies on.

The client never decides how credentials or the guest cart are persisted.
Hosts hand in a `SessionStore` and a `KeyValueStore`; the in-memory versions
here back tests and the command line client.
"""

import datetime
from typing import Any, Optional, Protocol
import uuid

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


def expiry_after(expires_in: Optional[float]) -> Optional[datetime.datetime]:
  """Absolute expiry of a token issued now and valid for `expires_in` s."""
  if expires_in is None:
    return None
  return datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(
      seconds=expires_in
  )


class Session(BaseModel):
  """The one live authenticated session of a client process."""

  model_config = ConfigDict(frozen=True)

  access_token: str
  refresh_token: Optional[str] = None
  expires_at: Optional[datetime.datetime] = None
  user: dict[str, Any] = Field(default_factory=dict)
  session_id: str = Field(default_factory=lambda: uuid.uuid4().hex)

  def with_access_token(
      self, access_token: str, expires_in: Optional[float]
  ) -> "Session":
    """Returns a copy carrying a refreshed access token."""
    return self.model_copy(
        update={
            "access_token": access_token,
            "expires_at": expiry_after(expires_in),
        }
    )


class SessionStore(Protocol):
  """Holds the current session, if any."""

  def get(self) -> Optional[Session]:
    ...

  def set(self, session: Session) -> None:
    ...

  def clear(self) -> None:
    ...


class KeyValueStore(Protocol):
  """Opaque string storage, e.g. browser local storage."""

  def get(self, key: str) -> Optional[str]:
    ...

  def set(self, key: str, value: str) -> None:
    ...

  def delete(self, key: str) -> None:
    ...


class InMemorySessionStore:
  """Process-local `SessionStore`."""

  def __init__(self, session: Optional[Session] = None):
    self._session = session

  def get(self) -> Optional[Session]:
    return self._session

  def set(self, session: Session) -> None:
    self._session = session

  def clear(self) -> None:
    self._session = None


class InMemoryKeyValueStore:
  """Process-local `KeyValueStore`."""

  def __init__(self):
    self._values: dict[str, str] = {}

  def get(self, key: str) -> Optional[str]:
    return self._values.get(key)

  def set(self, key: str, value: str) -> None:
    self._values[key] = value

  def delete(self, key: str) -> None:
    self._values.pop(key, None)
