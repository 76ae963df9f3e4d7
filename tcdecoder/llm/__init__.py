"""
LLM Provider — Abstract Interface

The summarizer talks to models only through this interface. Swap
providers by changing TCDECODER_LLM_PROVIDER in env.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class LLMProvider(ABC):
    """Abstract base for LLM providers."""

    name: str = "abstract"

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.7,
    ) -> str:
        """Generate a text response from the LLM."""
        ...

    async def warmup(self) -> None:
        """Prepare the provider for its first call. Raises if it cannot be used."""
