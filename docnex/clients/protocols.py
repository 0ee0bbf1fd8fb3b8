"""Client protocols.

Duck typing protocols for external clients so agents and services can be
driven by fakes in tests.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class LLMClient(Protocol):
    """Text-in, text-out language model.

    Implementations raise AIError subclasses (timeout, rate limit, config,
    service) rather than provider-specific exceptions.
    """

    async def generate(self, prompt: str) -> str:
        """Return the model's text reply for ``prompt``."""
        ...

    async def close(self) -> None:
        """Release client resources."""
        ...
