"""OpenAI-compatible chat client (OpenAI or Groq)."""

import re
from typing import Optional

from openai import AsyncOpenAI

from neuroshop.config.settings import settings

_client: Optional[AsyncOpenAI] = None


def get_llm_client() -> AsyncOpenAI:
    """Get the shared LLM client.

    Uses the Groq endpoint when GROQ_API_KEY is set, OpenAI otherwise.
    """
    global _client
    if _client is None:
        api_key = settings.llm_api_key
        if not api_key:
            raise ValueError("Neither GROQ_API_KEY nor OPENAI_API_KEY is set")
        base_url = settings.groq_base_url if settings.groq_api_key else None
        _client = AsyncOpenAI(api_key=api_key, base_url=base_url)
    return _client


def reset_llm_client() -> None:
    """Drop the shared client (for testing)."""
    global _client
    _client = None


async def complete(
    system: str,
    prompt: str,
    temperature: float = 0.2,
    max_tokens: int = 100,
    client: Optional[AsyncOpenAI] = None,
) -> str:
    """Run a single-turn chat completion and return the stripped text."""
    client = client or get_llm_client()
    response = await client.chat.completions.create(
        model=settings.llm_model,
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ],
        temperature=temperature,
        max_tokens=max_tokens,
    )
    return (response.choices[0].message.content or "").strip()


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` block if present."""
    text = text.strip()
    if text.startswith("```"):
        text = re.sub(r"^```(?:json)?\n?", "", text)
        text = re.sub(r"\n?```$", "", text)
    return text.strip()
