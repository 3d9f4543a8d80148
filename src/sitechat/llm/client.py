from typing import List, Dict, Any, Optional
import logging

import httpx

from ..config import settings
from ..core.errors import UpstreamServiceError

logger = logging.getLogger("sitechat.llm")


class GenerationError(UpstreamServiceError):
    """Raised when the chat-completion call fails or returns no text."""


class LLMClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key or settings.ai_api_key.get_secret_value()
        self.model = model or settings.ai_model
        self.base_url = (base_url or settings.ai_base_url).rstrip("/")
        self.temperature = settings.llm_temperature if temperature is None else temperature
        self.timeout = timeout or settings.http_timeout_seconds
        self._client = client

    async def chat(self, messages: List[Dict[str, Any]]) -> str:
        """
        Send ``messages`` (system prompt included) and return the reply text.

        Raises GenerationError on transport failures, non-2xx responses or a
        response without message content.
        """
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
        }

        try:
            if self._client is not None:
                resp = await self._post(self._client, payload)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await self._post(client, payload)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Chat completion failed (%s): %s", type(exc).__name__, exc)
            raise GenerationError(
                f"Reply generation failed: {type(exc).__name__}"
            ) from exc

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise GenerationError("Chat completion response is malformed.") from exc

        if not isinstance(content, str):
            raise GenerationError("Chat completion returned no text.")

        return content.strip()

    async def _post(self, client: httpx.AsyncClient, payload: Dict[str, Any]) -> httpx.Response:
        return await client.post(
            f"{self.base_url}/v1/chat/completions",
            json=payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
        )
