"""
User Agent Rotation

Cycles deterministically through a fixed pool of realistic browser identity
strings so successive requests present different fingerprints.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from scrapely.exceptions import ValidationError

# Desktop browsers (most common first)
DEFAULT_USER_AGENTS = (
    # Chrome
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_5) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    # Firefox
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:133.0) Gecko/20100101 Firefox/133.0",
    # Safari
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_5) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/18.1 Safari/605.1.15",
)


class UserAgentRotator:
    """
    Manages circular rotation of user agent strings.

    With rotation disabled the identity stays pinned to the first pool entry
    for the lifetime of the instance.
    """

    def __init__(self, agents: Optional[Sequence[str]] = None, enabled: bool = True):
        pool = list(agents) if agents is not None else list(DEFAULT_USER_AGENTS)
        if not pool:
            raise ValidationError("agents", "user agent pool must contain at least one entry")
        self._agents: List[str] = pool
        self.enabled = enabled
        self._index = 0

    @property
    def current(self) -> str:
        """The identity string currently in use."""
        return self._agents[self._index]

    @property
    def index(self) -> int:
        return self._index

    def next(self) -> str:
        """Advance to the next agent (wrapping) and return it."""
        if not self.enabled:
            return self._agents[0]
        self._index = (self._index + 1) % len(self._agents)
        return self._agents[self._index]

    def get_all_agents(self) -> List[str]:
        """Get all available user agents."""
        return self._agents.copy()

    def __len__(self) -> int:
        return len(self._agents)
