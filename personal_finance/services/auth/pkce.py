"""
PKCE Verifier Hand-off

The provider redirects back to a fresh page, which means a fresh browser
session and a fresh Supabase client with empty auth storage. The code
verifier created at sign-in is therefore parked here, keyed by a flow id
that travels on the redirect URL, until the callback claims it.

The store is process-wide: every browser session of one app server
shares it.
"""

import secrets
import threading
import time
from functools import lru_cache
from typing import Callable, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit


FLOW_PARAM = "flow"
FLOW_TTL_SECONDS = 900.0


def with_flow_id(url: str, flow_id: str) -> str:
    """Add (or replace) the flow id query parameter on a redirect URL."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != FLOW_PARAM]
    query.append((FLOW_PARAM, flow_id))
    return urlunsplit(parts._replace(query=urlencode(query)))


class CodeVerifierStore:
    """Short-lived map of flow id → PKCE code verifier."""

    def __init__(
        self,
        ttl_seconds: float = FLOW_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ttl = ttl_seconds
        self._clock = clock
        self._items: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    def new_flow_id(self) -> str:
        return secrets.token_urlsafe(16)

    def put(self, flow_id: str, verifier: str) -> None:
        with self._lock:
            self._purge()
            self._items[flow_id] = (verifier, self._clock())

    def claim(self, flow_id: str) -> Optional[str]:
        """Remove and return the verifier; None if unknown or expired."""
        with self._lock:
            self._purge()
            entry = self._items.pop(flow_id, None)
        return entry[0] if entry else None

    def __len__(self) -> int:
        return len(self._items)

    def _purge(self) -> None:
        cutoff = self._clock() - self._ttl
        for flow_id in [k for k, (_, created) in self._items.items() if created < cutoff]:
            del self._items[flow_id]


@lru_cache()
def get_verifier_store() -> CodeVerifierStore:
    """Get the process-wide verifier store."""
    return CodeVerifierStore()
