"""OpenAI-compatible provider for the edit model.

Edit models are often served by a dedicated host (a local inference server
or a hosted "apply" endpoint) that speaks the OpenAI chat API. Requests get
their own timeout since a whole file is sent and returned per edit.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from openai import AsyncOpenAI
from pydantic_ai.profiles import ModelProfile
from pydantic_ai.profiles.openai import openai_model_profile
from pydantic_ai.providers import Provider

if TYPE_CHECKING:
    from .config import EditorSettings

DEFAULT_EDIT_TIMEOUT = 60.0


class EditModelProvider(Provider[AsyncOpenAI]):
    """Provider for an OpenAI-compatible edit endpoint."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str | None = None,
        timeout: float = DEFAULT_EDIT_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        if http_client is None:
            http_client = httpx.AsyncClient(timeout=httpx.Timeout(timeout, connect=10.0))

        self._client = AsyncOpenAI(
            # The SDK insists on a key; keyless local hosts ignore it
            api_key=api_key or "unused",
            base_url=self._base_url,
            http_client=http_client,
        )

    @classmethod
    def from_settings(cls, settings: "EditorSettings") -> "EditModelProvider":
        if not settings.host:
            raise ValueError("An edit model host is required for an OpenAI-compatible provider")
        return cls(base_url=settings.host, api_key=settings.api_key, timeout=settings.timeout)

    @property
    def name(self) -> str:
        return "llm-dev-editor"

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def client(self) -> AsyncOpenAI:
        return self._client

    def model_profile(self, model_name: str) -> ModelProfile | None:
        return openai_model_profile(model_name)
