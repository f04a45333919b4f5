"""Thin Bedrock client wrapper for single-turn LLM invocations."""

from __future__ import annotations

import logging
from typing import Any

from fastapi.concurrency import run_in_threadpool

from parle.config.settings import BedrockConfig
from parle.services.aws import create_boto3_client

logger = logging.getLogger(__name__)


class LlmInvocationError(RuntimeError):
    """Raised when the Bedrock invocation fails."""


class BedrockLlmClient:
    """Invoke Amazon Bedrock models with standard configuration."""

    def __init__(self, config: BedrockConfig, client: Any | None = None) -> None:
        self._config = config
        self._model_id = config.model_id
        self._client = client or create_boto3_client(
            "bedrock-runtime",
            region_name=config.region,
        )

    async def invoke(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
        top_p: float | None = None,
        model_id: str | None = None,
    ) -> str | None:
        """Run a Bedrock `converse` call and return the aggregate text output."""

        target_model_id = model_id or self._model_id
        if not target_model_id:
            raise LlmInvocationError("No Bedrock model id is configured.")

        inference_cfg = {
            "maxTokens": max_tokens or self._config.max_tokens,
            "temperature": (
                temperature
                if temperature is not None
                else self._config.temperature
            ),
            "topP": top_p if top_p is not None else self._config.top_p,
        }

        def _call() -> str:
            response = self._client.converse(
                modelId=target_model_id,
                system=[{"text": system_prompt}],
                messages=[{"role": "user", "content": [{"text": user_prompt}]}],
                inferenceConfig=inference_cfg,
            )
            content_blocks = (
                response.get("output", {})
                .get("message", {})
                .get("content", [])
            )
            texts = [block.get("text", "") for block in content_blocks if block.get("text")]
            return "\n".join(texts).strip()

        try:
            result = await run_in_threadpool(_call)
        except Exception as exc:  # pragma: no cover - external dependency
            raise LlmInvocationError(str(exc)) from exc

        return result or None


__all__ = ["BedrockLlmClient", "LlmInvocationError"]
