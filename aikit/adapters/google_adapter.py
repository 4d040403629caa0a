"""
aikit - Google Gemini Stream Adapter

Adapter for `streamGenerateContent` with `alt=sse`. The model is part of
the URL path, not the body.
"""

from typing import Any, AsyncIterable, AsyncIterator, Dict

from .base import BaseStreamAdapter
from .google_stream import process_google_stream
from ..core.models import Provider, StreamChunk
from ..streaming.state import StreamState


class GoogleAdapter(BaseStreamAdapter):
    """Adapter for Google Gemini streaming."""

    provider = Provider.GOOGLE
    DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

    def _headers(self) -> Dict[str, str]:
        return {"x-goog-api-key": self.config.api_key}

    def _model_name(self, payload: Dict[str, Any]) -> str:
        model = payload.get("model") or self.config.model
        if not model:
            raise ValueError("Google streaming requires a model (payload 'model' or GOOGLE_MODEL)")
        # Accept both "gemini-1.5-pro" and "models/gemini-1.5-pro"
        if model.startswith("models/"):
            model = model[len("models/"):]
        return model

    def _endpoint(self, payload: Dict[str, Any]) -> str:
        return f"/models/{self._model_name(payload)}:streamGenerateContent?alt=sse"

    def _build_body(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = dict(payload)
        body.pop("model", None)
        return body

    def decode(
        self,
        data_lines: AsyncIterable[str],
        state: StreamState
    ) -> AsyncIterator[StreamChunk]:
        return process_google_stream(data_lines, state)
