"""
OpenAI client for the trip extractor.

Provides a cached async client instance and a thin model-client wrapper.
Retries and timeouts are applied by the caller (see
planning/extraction/resilient.py) so each attempt can be bounded separately.
"""

import os
from typing import Dict, List, Optional, Protocol

from openai import AsyncOpenAI
from dotenv import load_dotenv
load_dotenv()

# Module-level cache for OpenAI client
_client: Optional[AsyncOpenAI] = None


class ModelClient(Protocol):
    """Anything that turns chat messages into a completion string."""

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        ...


def get_cached_client() -> AsyncOpenAI:
    """
    Returns a cached instance of the async OpenAI client.

    Uses OPENAI_API_KEY environment variable for authentication.
    The client is created once and reused for all subsequent calls.
    """
    global _client
    if _client is None:
        api_key = os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise ValueError(
                "OPENAI_API_KEY environment variable is not set. "
                "Please set it to your OpenAI API key."
            )
        _client = AsyncOpenAI(api_key=api_key)
    return _client


class OpenAIModelClient:
    """ModelClient backed by the OpenAI Chat Completion API."""

    def __init__(self, model: str = "gpt-4.1-mini", client: Optional[AsyncOpenAI] = None):
        self.model = model
        self._client = client

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        """
        Call the Chat Completion API once.

        Args:
            messages: List of message dicts with 'role' and 'content' keys

        Returns:
            The assistant's response content as a string.
        """
        client = self._client or get_cached_client()

        response = await client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=0,
        )

        content = response.choices[0].message.content or ""
        return content.strip()
