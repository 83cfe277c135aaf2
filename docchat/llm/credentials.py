"""
API key rotation.

Keeps the configured Gemini keys in priority order (primary, backup) and
remembers which ones were rate-limited or rejected recently:

    pool = CredentialPool(["key-a", "key-b"], cooldown=300)
    key = pool.acquire()          # "key-a"
    pool.mark_unhealthy(key)      # 429 from upstream
    pool.acquire()                # "key-b" for the next 300s
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..exceptions import CredentialsNotConfiguredError

logger = logging.getLogger(__name__)


@dataclass
class CredentialState:
    """Health of a single key."""
    healthy: bool = True
    unhealthy_until: float = 0.0


class CredentialPool:
    """Ordered API keys with per-key cooldown."""

    def __init__(
        self,
        keys: List[str],
        cooldown: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.keys = [k for k in keys if k]
        self.cooldown = cooldown
        self.clock = clock
        self._state: Dict[str, CredentialState] = {k: CredentialState() for k in self.keys}

    def __len__(self) -> int:
        return len(self.keys)

    def is_healthy(self, key: str) -> bool:
        state = self._state[key]
        if state.healthy:
            return True
        if self.clock() >= state.unhealthy_until:
            # Cooldown over
            state.healthy = True
            state.unhealthy_until = 0.0
            return True
        return False

    def acquire(self) -> str:
        """
        Return the first healthy key.

        If every key is cooling down, returns the one that recovers first
        rather than failing: the upstream call may still succeed.
        """
        if not self.keys:
            raise CredentialsNotConfiguredError("No Gemini API keys configured")

        for key in self.keys:
            if self.is_healthy(key):
                return key

        key = min(self.keys, key=lambda k: self._state[k].unhealthy_until)
        logger.warning("All %d API keys are cooling down; using key #%d", len(self.keys), self.keys.index(key))
        return key

    def mark_unhealthy(self, key: str, retry_after: Optional[float] = None) -> None:
        """Skip key until retry_after seconds (default: cooldown) have passed."""
        if key not in self._state:
            return
        wait = self.cooldown if retry_after is None else retry_after
        state = self._state[key]
        state.healthy = False
        state.unhealthy_until = self.clock() + wait
        logger.warning("API key #%d marked unhealthy for %ss", self.keys.index(key), wait)

    def mark_healthy(self, key: str) -> None:
        if key in self._state:
            self._state[key] = CredentialState()
