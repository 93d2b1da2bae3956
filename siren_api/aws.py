from __future__ import annotations

import json
from typing import Any, Protocol, runtime_checkable

import boto3
from botocore.client import BaseClient

from .config import AWSSettings

ANTHROPIC_VERSION = "bedrock-2023-05-31"


@runtime_checkable
class _SupportsRead(Protocol):
    def read(self, __n: int | None = ...) -> bytes:  # pragma: no cover - protocol definition
        ...


class AWSClient:
    """Lightweight wrapper around boto3 for Bedrock text generation.

    Uses default credential/provider chain if explicit profile/region are not provided.
    """

    def __init__(self, settings: AWSSettings):
        self._settings = settings
        self._session = boto3.Session(
            profile_name=settings.profile_name or None,
            region_name=settings.region_name or None,
        )

    def _client(self, service: str) -> BaseClient:
        return self._session.client(service)

    @staticmethod
    def build_request_body(
        model_id: str,
        prompt: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        """Build an invoke_model body for the model's provider.

        Anthropic models take the messages API shape; everything else gets the
        Titan 'inputText' shape.
        """
        if model_id.startswith("anthropic."):
            body: dict[str, Any] = {
                "anthropic_version": ANTHROPIC_VERSION,
                "max_tokens": max_tokens or 2048,
                "messages": [{"role": "user", "content": prompt}],
            }
            if temperature is not None:
                body["temperature"] = temperature
            return body

        config: dict[str, Any] = {}
        if temperature is not None:
            config["temperature"] = temperature
        if max_tokens is not None:
            config["maxTokenCount"] = max_tokens
        body = {"inputText": prompt}
        if config:
            body["textGenerationConfig"] = config
        return body

    @staticmethod
    def extract_text(parsed: Any) -> str | None:
        """Pull generated text out of the provider-specific response JSON."""
        if not isinstance(parsed, dict):
            return None
        output_text = parsed.get("outputText")
        if isinstance(output_text, str):
            return output_text
        # Titan nests results
        results = parsed.get("results")
        if isinstance(results, list) and results:
            first = results[0]
            if isinstance(first, dict) and isinstance(first.get("outputText"), str):
                return first["outputText"]
        # Anthropic messages shape
        content = parsed.get("content")
        if isinstance(content, list):
            texts = [
                block["text"]
                for block in content
                if isinstance(block, dict) and isinstance(block.get("text"), str)
            ]
            if texts:
                return "".join(texts)
        return None

    def invoke_bedrock_text(
        self,
        model_id: str,
        prompt: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str | None:
        """Invoke a Bedrock text model and return plain text.

        Uses the data-plane 'bedrock-runtime' invoke_model API. Returns None
        when the response carries no text; SDK and decoding errors propagate
        to the caller.
        """
        runtime = self._client("bedrock-runtime")
        body = json.dumps(self.build_request_body(model_id, prompt, temperature, max_tokens))
        resp: dict[str, Any] = runtime.invoke_model(
            modelId=model_id,
            body=body,
            accept="application/json",
            contentType="application/json",
        )
        raw = resp.get("body")
        data_bytes: bytes
        if isinstance(raw, _SupportsRead):
            data_bytes = raw.read()
        elif isinstance(raw, (bytes, bytearray)):
            data_bytes = bytes(raw)
        elif isinstance(raw, str):
            data_bytes = raw.encode("utf-8")
        else:
            return None
        return self.extract_text(json.loads(data_bytes.decode("utf-8")))
