"""
Embedding Client

Test-friendly client for an OpenAI-compatible embeddings endpoint. It is
responsible for:

- Sequential batching of text inputs
- Network and transport error isolation
- Strict response validation
- Deterministic output: one vector per input, in input order

No retries and no caching. A failed batch fails the whole call.
"""

from __future__ import annotations

from typing import List, Sequence, Optional
import logging
import httpx

from ..config import settings
from ..core.errors import UpstreamServiceError

logger = logging.getLogger("sitechat.embedder")


class EmbeddingError(UpstreamServiceError):
    """Raised when embedding generation fails."""


class Embedder:
    """
    Asynchronous embedding generator for batches of text.

    The instance holds configuration only and is safe to share across
    concurrent ingestion runs and chat requests.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        batch_size: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize an Embedder.

        Parameters
        ----------
        api_key : Optional[str]
            Override for the API key. Defaults to settings.ai_api_key.

        model : Optional[str]
            Override for the embedding model. Defaults to settings.embed_model.

        base_url : Optional[str]
            Base URL of the provider; ``/v1/embeddings`` is appended.

        timeout : Optional[float]
            HTTP timeout for each request.

        batch_size : Optional[int]
            Maximum texts per request.

        client : Optional[httpx.AsyncClient]
            Shared client to use instead of one per call (tests inject a
            client backed by ``httpx.MockTransport``).
        """
        self.api_key = api_key or settings.ai_api_key.get_secret_value()
        self.model = model or settings.embed_model
        self.base_url = (base_url or settings.ai_base_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.batch_size = batch_size or settings.embed_batch_size
        self._client = client

        if self.batch_size < 1:
            raise ValueError("batch_size must be a positive integer")

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/v1/embeddings"

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Generate embeddings for a sequence of input texts.

        Parameters
        ----------
        texts : Sequence[str]
            Non-empty strings to embed.

        Returns
        -------
        List[List[float]]
            One vector per input text, in input order.

        Raises
        ------
        ValueError
            If any input text is empty or blank.

        EmbeddingError
            If any batch fails or the response is malformed.
        """
        if not texts:
            return []

        for position, text in enumerate(texts):
            if not text or not text.strip():
                raise ValueError(f"Cannot embed empty text at position {position}")

        if self._client is not None:
            return await self._embed_all(self._client, texts)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await self._embed_all(client, texts)

    async def embed_one(self, text: str) -> List[float]:
        """Embed a single text (a chat query)."""
        return (await self.embed([text]))[0]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _embed_all(
        self,
        client: httpx.AsyncClient,
        texts: Sequence[str],
    ) -> List[List[float]]:
        all_embeddings: List[List[float]] = []
        headers = {"Authorization": f"Bearer {self.api_key}"}

        for start in range(0, len(texts), self.batch_size):
            batch = list(texts[start : start + self.batch_size])
            payload = {
                "model": self.model,
                "input": batch,
            }

            logger.debug(
                "Embedding batch %d-%d of %d",
                start,
                start + len(batch),
                len(texts),
            )

            try:
                response = await client.post(
                    self.endpoint,
                    json=payload,
                    headers=headers,
                    timeout=self.timeout,
                )
                response.raise_for_status()
                data = response.json()
            except (httpx.HTTPError, ValueError) as exc:
                logger.error(
                    "Embedding request failed (%s): batch size=%d, error=%s",
                    type(exc).__name__,
                    len(batch),
                    str(exc),
                )
                raise EmbeddingError(
                    f"Embedding generation failed: {type(exc).__name__}"
                ) from exc

            embeddings = self._extract_embeddings(data)
            if len(embeddings) != len(batch):
                raise EmbeddingError(
                    f"Embedding response has {len(embeddings)} vectors "
                    f"for {len(batch)} inputs."
                )
            all_embeddings.extend(embeddings)

        return all_embeddings

    @staticmethod
    def _extract_embeddings(data: dict) -> List[List[float]]:
        """
        Parse and validate embedding output format.

        OpenAI returns:
            { "data": [ {"index": 0, "embedding": [...]}, ... ] }

        Records are ordered by ``index`` when every record carries one.

        Raises
        ------
        EmbeddingError
            If the API returns unexpected structure.
        """
        if not isinstance(data, dict) or "data" not in data:
            raise EmbeddingError("Embedding response missing 'data' field.")

        records = data["data"]
        if not isinstance(records, list):
            raise EmbeddingError("'data' field must be a list.")

        for index, record in enumerate(records):
            if not isinstance(record, dict) or "embedding" not in record:
                raise EmbeddingError(
                    f"Malformed embedding record at index {index}: {record!r}"
                )

        if all(isinstance(r.get("index"), int) for r in records):
            records = sorted(records, key=lambda r: r["index"])

        embeddings: List[List[float]] = []

        for index, record in enumerate(records):
            emb = record["embedding"]
            if not isinstance(emb, list) or not emb or not all(
                isinstance(x, (float, int)) and not isinstance(x, bool) for x in emb
            ):
                raise EmbeddingError(
                    f"Invalid embedding vector at index {index}: must be float list."
                )

            embeddings.append([float(x) for x in emb])

        return embeddings
