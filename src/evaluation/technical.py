"""Gemini-powered transcript and technical-correctness evaluation."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Any

from src.evaluation.base import UpstreamEvaluator
from src.evaluation.errors import (
    InputError,
    UpstreamMalformedResponse,
    UpstreamTimeout,
    UpstreamTransportError,
)
from src.evaluation.json_extraction import ResponseSchema, parse_upstream
from src.evaluation.models import TechnicalResult
from src.evaluation.placeholders import PLACEHOLDER_TRANSCRIPT, placeholder_technical
from src.pipeline_config import ClientConfig

logger = logging.getLogger(__name__)

CANONICAL_SCALE = 100

TECHNICAL_SCHEMA = ResponseSchema(
    name="technical",
    required={
        "transcript": (str,),
        "technical_score": (int, float),
        "technical_feedback": (list,),
    },
)

_TECHNICAL_PROMPT_TEMPLATE = """\
You are analyzing a candidate's recorded interview answer.

The interview question asked is:
"{question}"

1) Transcribe the audio. Show a large pause with [PAUSE], and filler words \
(like, uhh, umm, ehh, etc.) with [FILLER].

2) Technical correctness: how well did the candidate answer the question \
conceptually? Ignore delivery, confidence, or nervousness.
- Score from 0 to {scale} (integer).
- Give exactly TWO concise feedback points focusing on the key concepts.

Return ONLY a JSON object in this format:

{{
  "transcript": "string",
  "technical_score": integer,
  "technical_feedback": [
    "string",
    "string"
  ]
}}

Be objective, concise, and professional. Do not include any text outside of the JSON."""

TRANSCRIBE_PROMPT = (
    "Transcribe the audio. Show a large pause with [PAUSE], and filler words "
    "(like, uhh, umm, ehh, uhh, etc.) [FILLER]. Return only the transcript text."
)


def build_technical_prompt(question: str, scale: int = CANONICAL_SCALE) -> str:
    return _TECHNICAL_PROMPT_TEMPLATE.format(question=question, scale=scale)


def rescale_score(score: float, scale: int) -> int:
    """Map an upstream score on ``0..scale`` onto the canonical 0-100 scale."""
    if scale <= 0:
        raise ValueError("scale must be positive")
    rescaled = round(score * CANONICAL_SCALE / scale)
    return max(0, min(CANONICAL_SCALE, rescaled))


def _feedback_points(value: list[Any], raw: str) -> tuple[str, str]:
    points = [str(p).strip() for p in value if isinstance(p, str) and p.strip()]
    if len(points) < 2:
        raise UpstreamMalformedResponse(
            f"Malformed technical response: expected two feedback points, got {len(points)}.",
            raw=raw,
        )
    return points[0], points[1]


class TechnicalEvaluator(UpstreamEvaluator[TechnicalResult]):
    """Audio/transcript evaluator backed by Gemini.

    One round trip sends the clip, the question and the rubric; the model
    returns the marked-up transcript, a score and two feedback points.
    """

    service_name = "Technical"
    credential_name = "GEMINI_API_KEY"

    def __init__(
        self,
        config: ClientConfig,
        *,
        score_scale: int = CANONICAL_SCALE,
        transcribe_model_id: str | None = None,
    ) -> None:
        super().__init__(config)
        self.score_scale = score_scale
        self.transcribe_model_id = transcribe_model_id or config.model_id

    async def _evaluate_live(self, clip: bytes, prompt: str, mime_type: str) -> TechnicalResult:
        if not prompt.strip():
            raise InputError("Missing question for technical scoring.")

        text = await self._generate(
            [build_technical_prompt(prompt, self.score_scale), {"mime_type": mime_type, "data": clip}],
            self.config.model_id,
        )
        return self.parse_result(text)

    def parse_result(self, text: str) -> TechnicalResult:
        """Validate a raw technical response into a :class:`TechnicalResult`."""
        data = parse_upstream(text, TECHNICAL_SCHEMA)
        return TechnicalResult(
            technical_score=rescale_score(float(data["technical_score"]), self.score_scale),
            feedback_points=_feedback_points(data["technical_feedback"], text),
            transcript=str(data["transcript"]).strip(),
            raw=text,
        )

    def _placeholder(self) -> TechnicalResult:
        return placeholder_technical()

    async def transcribe(self, clip: bytes, mime_type: str = "video/webm") -> str:
        """Return a transcript with inline [PAUSE]/[FILLER] markers."""
        if self.precheck(clip):
            return PLACEHOLDER_TRANSCRIPT
        text = (
            await self._generate(
                [TRANSCRIBE_PROMPT, {"mime_type": mime_type, "data": clip}],
                self.transcribe_model_id,
            )
        ).strip()
        if not text:
            raise UpstreamMalformedResponse("No transcript returned from Gemini.", raw=text)
        return text

    async def _generate(self, parts: list[Any], model_id: str) -> str:
        """Send ``parts`` to Gemini and return the concatenated response text."""
        import google.generativeai as genai
        from google.api_core import exceptions as google_exceptions

        genai.configure(api_key=self.config.api_key)  # type: ignore[attr-defined]
        model = genai.GenerativeModel(model_id)  # type: ignore[attr-defined]

        try:
            response = await asyncio.wait_for(
                model.generate_content_async(parts, generation_config={"temperature": 0.2}),
                timeout=self.config.timeout_seconds,
            )
        except (asyncio.TimeoutError, google_exceptions.DeadlineExceeded) as exc:
            logger.warning("Gemini call timed out after %d ms", self.config.timeout_ms)
            raise UpstreamTimeout(
                f"Gemini did not answer within {math.ceil(self.config.timeout_seconds)}s."
            ) from exc
        except google_exceptions.GoogleAPIError as exc:
            logger.warning("Gemini call failed: %s", exc)
            raise UpstreamTransportError(f"Gemini request failed: {exc}") from exc

        try:
            return response.text
        except ValueError as exc:
            # No text parts (e.g. the candidate was blocked)
            raise UpstreamMalformedResponse(
                f"No content returned from Gemini: {exc}", raw=str(exc)
            ) from exc
