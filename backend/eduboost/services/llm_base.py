"""
EduBoost Gateway — Abstract Study-Assistant Service Interface
==============================================================

What:  Abstract base class for the three AI operations the gateway exposes.
Why:   Routes depend on this contract, not on a provider. Tests swap in a fake
       and the provider can change without touching HTTP code.
How:   OpenAIService implements it over the upstream HTTP API.
"""

from abc import ABC, abstractmethod
from typing import List

from eduboost.schemas.api import Flashcard


class LLMService(ABC):
    """
    Contract:
        - Inputs are already validated (trimmed, non-empty, length-bounded)
        - Every failure is raised as ApiError; nothing provider-specific leaks
        - A missing upstream credential fails fast with MISSING_API_KEY (500)
    """

    @abstractmethod
    async def summarize(self, content: str) -> str:
        """
        Summarize course material for a student.

        Returns:
            Trimmed summary text. An empty upstream answer yields a fixed
            fallback sentence rather than an error.

        Raises:
            ApiError: MISSING_API_KEY, UPSTREAM_* classification,
                UPSTREAM_INVALID_RESPONSE for malformed payloads.
        """
        ...

    @abstractmethod
    async def generate_flashcards(self, content: str) -> List[Flashcard]:
        """
        Generate question/answer cards from course material.

        Returns:
            Possibly empty list of flashcards.

        Raises:
            ApiError: as summarize(); unparseable JSON content is
                UPSTREAM_INVALID_RESPONSE.
        """
        ...

    @abstractmethod
    async def synthesize_speech(self, text: str) -> str:
        """
        Read text aloud.

        Returns:
            A `data:audio/mp3;base64,...` URL the browser can play directly.

        Raises:
            ApiError: as summarize(); empty audio is UPSTREAM_INVALID_RESPONSE.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources. Called once on shutdown."""
        return None
