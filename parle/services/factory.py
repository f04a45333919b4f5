"""Construct the external collaborators once, from configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from parle.config.settings import Settings
from parle.services.aws import create_boto3_client
from parle.services.llm_client import BedrockLlmClient
from parle.services.storage import LocalObjectStorage, ObjectStorage, S3ObjectStorage
from parle.services.summarize import BedrockSummarizer, MockSummarizer, Summarizer
from parle.services.transcribe import AmazonTranscribeTranscriber, MockTranscriber, Transcriber

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Collaborators:
    """The backends injected into every pipeline orchestrator."""

    storage: ObjectStorage
    transcriber: Transcriber
    summarizer: Summarizer


def build_storage(config: Settings) -> ObjectStorage:
    storage_cfg = config.storage
    if storage_cfg.provider == "local":
        return LocalObjectStorage(storage_cfg.local_root)

    client = create_boto3_client(
        "s3",
        region_name=storage_cfg.region,
        aws_access_key_id=storage_cfg.access_key,
        aws_secret_access_key=storage_cfg.secret_key,
        endpoint_url=storage_cfg.endpoint_url,
    )
    return S3ObjectStorage(client, storage_cfg.bucket_name)


def build_transcriber(config: Settings) -> Transcriber:
    transcribe_cfg = config.transcribe
    if transcribe_cfg.provider == "aws":
        return AmazonTranscribeTranscriber(
            region=transcribe_cfg.region,
            language_code=transcribe_cfg.language_code,
            media_sample_rate_hz=transcribe_cfg.media_sample_rate_hz,
        )
    return MockTranscriber()


def build_summarizer(config: Settings) -> Summarizer:
    if config.bedrock.provider == "aws":
        return BedrockSummarizer(BedrockLlmClient(config.bedrock))
    return MockSummarizer()


def build_collaborators(config: Settings) -> Collaborators:
    """Select each backend according to ``config``."""

    collaborators = Collaborators(
        storage=build_storage(config),
        transcriber=build_transcriber(config),
        summarizer=build_summarizer(config),
    )
    logger.info(
        "Pipeline backends storage=%s transcriber=%s summarizer=%s",
        type(collaborators.storage).__name__,
        type(collaborators.transcriber).__name__,
        type(collaborators.summarizer).__name__,
    )
    return collaborators


__all__ = [
    "Collaborators",
    "build_collaborators",
    "build_storage",
    "build_summarizer",
    "build_transcriber",
]
