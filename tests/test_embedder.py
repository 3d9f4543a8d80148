import json

import httpx
import pytest

from sitechat.core.errors import UpstreamServiceError
from sitechat.embeddings.embedder import Embedder, EmbeddingError


def _embedder(handler, batch_size=2):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return Embedder(
        api_key="test-key",
        model="embed-test",
        base_url="https://ai.test/",
        batch_size=batch_size,
        client=client,
    )


def _vector_for(text):
    return [float(len(text)), 1.0]


@pytest.mark.asyncio
async def test_batches_are_sequential_and_order_preserved():
    requests = []

    def handler(request):
        payload = json.loads(request.content)
        requests.append((str(request.url), request.headers["Authorization"], payload))
        # Return records in reverse order; the client must restore input order
        data = [
            {"index": i, "embedding": _vector_for(t)}
            for i, t in enumerate(payload["input"])
        ][::-1]
        return httpx.Response(200, json={"data": data})

    texts = ["a", "bb", "ccc", "dddd", "eeeee"]
    vectors = await _embedder(handler).embed(texts)

    assert vectors == [_vector_for(t) for t in texts]
    assert [r[2]["input"] for r in requests] == [["a", "bb"], ["ccc", "dddd"], ["eeeee"]]
    assert all(r[0] == "https://ai.test/v1/embeddings" for r in requests)
    assert all(r[1] == "Bearer test-key" for r in requests)
    assert all(r[2]["model"] == "embed-test" for r in requests)


@pytest.mark.asyncio
async def test_empty_input_makes_no_request():
    def handler(request):
        raise AssertionError("no request expected")

    assert await _embedder(handler).embed([]) == []


@pytest.mark.asyncio
async def test_blank_text_is_rejected():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(ValueError):
        await _embedder(handler).embed(["fine", "   "])


@pytest.mark.asyncio
async def test_http_error_raises_embedding_error():
    def handler(request):
        return httpx.Response(500, json={"error": "boom"})

    with pytest.raises(EmbeddingError) as excinfo:
        await _embedder(handler).embed(["text"])

    assert isinstance(excinfo.value, UpstreamServiceError)


@pytest.mark.asyncio
async def test_transport_error_raises_embedding_error():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(EmbeddingError):
        await _embedder(handler).embed(["text"])


@pytest.mark.asyncio
async def test_wrong_vector_count_raises():
    def handler(request):
        return httpx.Response(200, json={"data": [{"index": 0, "embedding": [1.0]}]})

    with pytest.raises(EmbeddingError):
        await _embedder(handler).embed(["one", "two"])


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"nope": []},
        {"data": "not a list"},
        {"data": [{"index": 0}]},
        {"data": [{"index": 0, "embedding": ["x"]}]},
    ],
)
async def test_malformed_responses_raise(body):
    def handler(request):
        return httpx.Response(200, json=body)

    with pytest.raises(EmbeddingError):
        await _embedder(handler).embed(["one"])


@pytest.mark.asyncio
async def test_embed_one():
    def handler(request):
        return httpx.Response(200, json={"data": [{"index": 0, "embedding": [0.5, 0.5]}]})

    assert await _embedder(handler).embed_one("question") == [0.5, 0.5]
