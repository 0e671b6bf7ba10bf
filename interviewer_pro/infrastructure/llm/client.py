"""
REST client for one-shot Gemini generation (Vertex AI or the Gemini API).
"""
import json
import logging
from typing import Optional, Dict, Any, List, Iterator

import requests
import google.auth
import google.auth.transport.requests
from google.oauth2 import service_account

from ...config import VERTEX_LOCATION, MODEL_NAME_TEXT, LLM_TIMEOUT, MAX_OUTPUT_TOKENS, TEXT_TEMPERATURE

logger = logging.getLogger("llm_client")

GEMINI_API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


class VertexRestClient:
    """REST-based client for Gemini models with streamed responses."""

    def __init__(self,
                 project: Optional[str] = None,
                 location: str = VERTEX_LOCATION,
                 model: str = MODEL_NAME_TEXT,
                 api_key: Optional[str] = None,
                 credentials_json: Optional[str] = None,
                 timeout: int = LLM_TIMEOUT):
        if not api_key and not project:
            raise ValueError("Either api_key or project is required")

        self.project = project
        self.location = location
        self.model = model
        self.api_key = api_key
        self.credentials_json = credentials_json
        self.timeout = timeout
        self._token = None

    def _refresh_token(self):
        """Refresh the OAuth token for API calls."""
        if self.credentials_json:
            creds = service_account.Credentials.from_service_account_file(
                self.credentials_json,
                scopes=[CLOUD_PLATFORM_SCOPE],
            )
        else:
            creds, _ = google.auth.default(scopes=[CLOUD_PLATFORM_SCOPE])

        auth_req = google.auth.transport.requests.Request()
        creds.refresh(auth_req)
        self._token = creds.token

    def _ensure_token(self):
        """Ensure we have a valid token, refreshing if needed."""
        if not self._token:
            self._refresh_token()

    def _stream_url(self, model: str) -> str:
        if self.api_key:
            return f"{GEMINI_API_BASE_URL}/models/{model}:streamGenerateContent?alt=sse"
        base_url = f"https://{self.location}-aiplatform.googleapis.com/v1"
        model_resource = f"projects/{self.project}/locations/{self.location}/publishers/google/models/{model}"
        return f"{base_url}/{model_resource}:streamGenerateContent?alt=sse"

    def _headers(self) -> Dict[str, str]:
        if self.api_key:
            return {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}
        self._ensure_token()
        return {"Authorization": f"Bearer {self._token}", "Content-Type": "application/json"}

    def stream_generate_content(
        self,
        contents: List[Dict[str, Any]],
        model: Optional[str] = None,
        temperature: float = TEXT_TEMPERATURE,
        max_output_tokens: int = MAX_OUTPUT_TOKENS,
        system_instruction: Optional[str] = None,
    ) -> Iterator[str]:
        """
        Generate content with history, yielding text chunks in arrival order.

        An empty stream is a valid response; deciding whether it is usable is
        left to the caller.
        """
        model = model or self.model
        url = self._stream_url(model)

        body: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": {
                "temperature": float(temperature),
                "maxOutputTokens": int(max_output_tokens),
            },
        }
        if system_instruction:
            body["systemInstruction"] = {"parts": [{"text": system_instruction}]}

        logger.debug("Streaming %d message(s) to %s", len(contents), model)
        resp = requests.post(url, headers=self._headers(), json=body, timeout=self.timeout, stream=True)
        try:
            if resp.status_code >= 400:
                raise RuntimeError(f"Gemini REST error {resp.status_code}: {resp.text}")

            for line in resp.iter_lines(decode_unicode=True):
                if not line or not line.startswith("data:"):
                    continue
                payload = line[len("data:"):].strip()
                if not payload or payload == "[DONE]":
                    continue
                chunk = self._parse_chunk_text(json.loads(payload))
                if chunk:
                    yield chunk
        finally:
            resp.close()

    def generate_content(self, contents: List[Dict[str, Any]], **kwargs) -> str:
        """Generate content and return the concatenated reply."""
        return "".join(self.stream_generate_content(contents, **kwargs))

    def _parse_chunk_text(self, chunk_json: Dict[str, Any]) -> str:
        """
        Extract text from one streamed response chunk.
        Chunks without candidates (usage metadata, safety info) carry no text.
        """
        cands = chunk_json.get("candidates") or []
        if not cands:
            return ""
        content = cands[0].get("content") or {}
        parts = content.get("parts") or []
        return "".join(
            p["text"] for p in parts
            if isinstance(p, dict) and isinstance(p.get("text"), str)
        )
