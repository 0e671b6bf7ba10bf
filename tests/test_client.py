import json
from unittest.mock import MagicMock, patch

import pytest

from interviewer_pro.infrastructure.llm.client import VertexRestClient


def _response(lines, status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = "error body"
    resp.iter_lines.return_value = iter(lines)
    return resp


def _sse(*texts):
    return [f"data: {json.dumps({'candidates': [{'content': {'parts': [{'text': t}]}}]})}" for t in texts]


def test_requires_key_or_project():
    with pytest.raises(ValueError):
        VertexRestClient()


@patch("interviewer_pro.infrastructure.llm.client.requests.post")
def test_streams_chunks_in_order(mock_post):
    resp = _response(_sse("<QUESTION>", "Why?", "</QUESTION>") + ["", ": keep-alive"])
    mock_post.return_value = resp
    client = VertexRestClient(api_key="k", model="gemini-test")

    contents = [{"role": "user", "parts": [{"text": "hi"}]}]
    chunks = list(client.stream_generate_content(contents, temperature=0.2, max_output_tokens=50))

    assert chunks == ["<QUESTION>", "Why?", "</QUESTION>"]
    url = mock_post.call_args.args[0]
    kwargs = mock_post.call_args.kwargs
    assert url.endswith("/models/gemini-test:streamGenerateContent?alt=sse")
    assert kwargs["headers"]["x-goog-api-key"] == "k"
    assert kwargs["stream"] is True
    assert kwargs["json"]["contents"] == contents
    assert kwargs["json"]["generationConfig"] == {"temperature": 0.2, "maxOutputTokens": 50}
    resp.close.assert_called_once()


@patch("interviewer_pro.infrastructure.llm.client.requests.post")
def test_empty_stream_is_valid(mock_post):
    mock_post.return_value = _response([])
    client = VertexRestClient(api_key="k")

    assert client.generate_content([]) == ""


@patch("interviewer_pro.infrastructure.llm.client.requests.post")
def test_http_error_raises(mock_post):
    mock_post.return_value = _response([], status_code=503)
    client = VertexRestClient(api_key="k")

    with pytest.raises(RuntimeError, match="503"):
        list(client.stream_generate_content([]))


@patch("interviewer_pro.infrastructure.llm.client.requests.post")
def test_vertex_uses_bearer_token(mock_post):
    mock_post.return_value = _response(_sse("ok"))
    client = VertexRestClient(project="proj", location="europe-west4", model="m")
    client._token = "tok"

    assert client.generate_content([]) == "ok"
    url = mock_post.call_args.args[0]
    assert url.startswith("https://europe-west4-aiplatform.googleapis.com/v1/projects/proj/locations/europe-west4/")
    assert mock_post.call_args.kwargs["headers"]["Authorization"] == "Bearer tok"


def test_chunks_without_candidates_have_no_text():
    client = VertexRestClient(api_key="k")
    assert client._parse_chunk_text({"usageMetadata": {"totalTokenCount": 3}}) == ""
