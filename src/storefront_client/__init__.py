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

"""Request orchestration for a storefront backed by a remote commerce API."""

from .auth import AuthService
from .cart import CartReconciler
from .cart import MergeOutcome
from .checkout import CheckoutOrchestrator
from .config import ClientConfig
from .gateway import GatewayClient
from .session import InMemoryKeyValueStore
from .session import InMemorySessionStore
from .session import Session

__all__ = [
    "AuthService",
    "CartReconciler",
    "CheckoutOrchestrator",
    "ClientConfig",
    "GatewayClient",
    "InMemoryKeyValueStore",
    "InMemorySessionStore",
    "MergeOutcome",
    "Session",
]
