"""Shared shape of the two upstream evaluators."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from src.evaluation.errors import (
    EvaluatorDisabled,
    MissingClip,
    MissingCredential,
    PayloadTooLarge,
)
from src.evaluation.models import UpstreamResult
from src.pipeline_config import ClientConfig, EvaluatorMode

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT", bound=UpstreamResult)


class UpstreamEvaluator(ABC, Generic[ResultT]):
    """Base class for the technical and confidence evaluators.

    Subclasses implement :meth:`_evaluate_live` and :meth:`_placeholder`;
    :meth:`evaluate` runs the shared input, mode and credential checks first.
    """

    # Human-readable service name used in error messages
    service_name: str = "upstream"
    credential_name: str = "API key"

    def __init__(self, config: ClientConfig) -> None:
        self.config = config

    async def evaluate(self, clip: bytes, prompt: str, mime_type: str = "video/webm") -> ResultT:
        """Evaluate one clip against ``prompt``.

        Raises:
            EvaluationError: Any input, config or upstream failure.
        """
        if self.precheck(clip):
            logger.info("%s evaluator in placeholder mode; skipping upstream", self.service_name)
            return self._placeholder()
        return await self._evaluate_live(clip, prompt, mime_type)

    def precheck(self, clip: bytes) -> bool:
        """Validate the clip and config; return True for placeholder mode.

        Placeholder mode short-circuits before any credential check.
        """
        if not clip:
            raise MissingClip(f"No clip received for {self.service_name} evaluation.")
        if len(clip) > self.config.max_upload_bytes:
            raise PayloadTooLarge(len(clip), self.config.max_upload_bytes)

        if self.config.mode is EvaluatorMode.PLACEHOLDER:
            return True
        if self.config.mode is EvaluatorMode.DISABLED:
            raise EvaluatorDisabled(f"{self.service_name} evaluation is disabled.")
        if not self.config.api_key:
            raise MissingCredential(f"Missing {self.credential_name} in the environment.")
        return False

    @abstractmethod
    async def _evaluate_live(self, clip: bytes, prompt: str, mime_type: str) -> ResultT:
        """Call the upstream service and return a validated result."""

    @abstractmethod
    def _placeholder(self) -> ResultT:
        """Canned result for placeholder mode."""
