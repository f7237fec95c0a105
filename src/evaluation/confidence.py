"""Video delivery / confidence evaluation via the TwelveLabs REST API.

Workflow (strictly sequential within one call):
create index (unless one is configured) -> upload asset -> submit the asset
for indexing -> poll until ready -> analyze with the rubric prompt.
"""

from __future__ import annotations

import asyncio
import logging
import math
import uuid
from typing import Any

import httpx

from src.evaluation.base import UpstreamEvaluator
from src.evaluation.errors import (
    IndexCreationFailed,
    IndexedAssetCreationFailed,
    IndexingFailed,
    IndexingTimedOut,
    UploadFailed,
    UpstreamMalformedResponse,
    UpstreamTimeout,
    UpstreamTransportError,
)
from src.evaluation.json_extraction import ResponseSchema, parse_upstream
from src.evaluation.models import ConfidenceResult, IndexingJob, JobStatus, PollOutcome
from src.evaluation.placeholders import placeholder_confidence
from src.evaluation.poller import SleepFn, poll_indexing_job, polling_budget_ms
from src.pipeline_config import ClientConfig, IndexingConfig

logger = logging.getLogger(__name__)

MAX_CONFIDENCE_SCORE = 10

CONFIDENCE_SCHEMA = ResponseSchema(
    name="confidence",
    required={"confidence_score": (int, float)},
    any_of=({"confidence_feedback": (list,), "visual_feedback": (str,)},),
)

FEEDBACK_PROMPT = """\
You are analyzing a candidate's interview performance from video (and audio).

Evaluate the candidate's delivery, confidence, and communication:

1) Confidence & Delivery
- Consider eye contact, nervous behaviors, pacing, and filler words (e.g., "um", "uh", "like").
- Score from 0 to 10 (whole numbers only).
- Provide exactly TWO concise feedback points covering nervous behaviors and clarity of speech.

Return ONLY a JSON object in this format:

{
  "confidence_score": integer,
  "confidence_feedback": [
    "string",
    "string"
  ]
}

Strict rules:
- Output must be valid JSON with double quotes.
- Do not wrap in code fences.
- Do not add any extra text before or after the JSON."""


def _extract_id(payload: dict[str, Any]) -> str | None:
    value = payload.get("_id") or payload.get("id")
    return str(value) if value else None


def _upstream_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(payload.get("error"), dict):
            message = payload["error"].get("message", message)
        if isinstance(message, str) and message:
            return message
    return f"HTTP {response.status_code}"


def _optional_count(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return int(value)


def parse_confidence(text: str) -> ConfidenceResult:
    """Validate a raw analysis response into a :class:`ConfidenceResult`."""
    data = parse_upstream(text, CONFIDENCE_SCHEMA)

    score = round(float(data["confidence_score"]))
    if not 0 <= score <= MAX_CONFIDENCE_SCORE:
        raise UpstreamMalformedResponse(
            f"Malformed confidence response: score {score} outside 0-{MAX_CONFIDENCE_SCORE}.",
            raw=text,
        )

    feedback = data.get("confidence_feedback")
    points = []
    if isinstance(feedback, list):
        points = [p.strip() for p in feedback if isinstance(p, str) and p.strip()]

    visual = data.get("visual_feedback")
    visual_feedback = visual.strip() if isinstance(visual, str) and visual.strip() else None
    if not points and visual_feedback:
        points = [visual_feedback]
    if not points:
        raise UpstreamMalformedResponse(
            "Malformed confidence response: no feedback points.", raw=text
        )

    return ConfidenceResult(
        confidence_score=score,
        feedback_points=tuple(points[:2]),
        visual_feedback=visual_feedback,
        pause_count=_optional_count(data.get("pause_count")),
        filler_word_count=_optional_count(data.get("filler_word_count")),
        raw=text,
    )


class ConfidenceEvaluator(UpstreamEvaluator[ConfidenceResult]):
    """Video evaluator backed by TwelveLabs indexing + analysis."""

    service_name = "Confidence"
    credential_name = "TWELVELABS_API_KEY"

    def __init__(
        self,
        config: ClientConfig,
        indexing: IndexingConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        super().__init__(config)
        self.indexing = indexing or IndexingConfig()
        self._transport = transport
        self._sleep = sleep

    @property
    def polling_budget_ms(self) -> int:
        return polling_budget_ms(self.indexing.poll_interval_ms, self.indexing.poll_max_attempts)

    def _placeholder(self) -> ConfidenceResult:
        return placeholder_confidence()

    async def _evaluate_live(self, clip: bytes, prompt: str, mime_type: str) -> ConfidenceResult:
        # ``prompt`` is the interview question; the video rubric is question-agnostic.
        async with httpx.AsyncClient(
            base_url=self.indexing.base_url,
            headers={"x-api-key": self.config.api_key},
            timeout=httpx.Timeout(self.config.timeout_seconds),
            transport=self._transport,
        ) as client:
            index_id = self.indexing.index_id or await self._create_index(client)
            asset_id = await self._upload_asset(client, clip, mime_type)
            job = await self._submit_for_indexing(client, index_id, asset_id)

            async def status_fn(job_id: str) -> JobStatus:
                payload = await self._request(
                    client, "GET", f"/indexes/{job.index_id}/indexed-assets/{job_id}"
                )
                job.status = JobStatus.from_upstream(payload.get("status"))
                return job.status

            outcome = await poll_indexing_job(
                job.job_id,
                status_fn,
                interval_ms=self.indexing.poll_interval_ms,
                max_attempts=self.indexing.poll_max_attempts,
                sleep=self._sleep,
            )
            if outcome is PollOutcome.FAILED:
                raise IndexingFailed("Indexing failed.")
            if outcome is PollOutcome.TIMED_OUT:
                raise IndexingTimedOut(
                    f"Indexing timed out after {self.polling_budget_ms // 1000}s."
                )

            text = await self._analyze(client, job.job_id)

        return parse_confidence(text)

    async def _request(
        self,
        client: httpx.AsyncClient,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> dict[str, Any]:
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise UpstreamTimeout(f"TwelveLabs request timed out: {method} {path}") from exc
        except httpx.HTTPError as exc:
            raise UpstreamTransportError(f"TwelveLabs request failed: {exc}") from exc

        if response.is_error:
            message = _upstream_message(response)
            logger.warning("TwelveLabs %s %s -> %d: %s", method, path, response.status_code, message)
            raise UpstreamTransportError(message, raw=response.text)

        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}

    async def _create_index(self, client: httpx.AsyncClient) -> str:
        payload = await self._request(
            client,
            "POST",
            "/indexes",
            json={
                "index_name": f"{self.indexing.index_name}-{uuid.uuid4()}",
                "models": [
                    {"model_name": self.config.model_id, "model_options": ["visual", "audio"]}
                ],
            },
        )
        index_id = _extract_id(payload)
        if not index_id:
            raise IndexCreationFailed("Failed to create an index.")
        logger.info("Created TwelveLabs index %s", index_id)
        return index_id

    async def _upload_asset(self, client: httpx.AsyncClient, clip: bytes, mime_type: str) -> str:
        payload = await self._request(
            client,
            "POST",
            "/assets",
            data={"method": "direct"},
            files={"file": (f"{uuid.uuid4()}.webm", clip, mime_type)},
        )
        asset_id = _extract_id(payload)
        if not asset_id:
            raise UploadFailed("Upload succeeded but no asset id returned.")
        return asset_id

    async def _submit_for_indexing(
        self, client: httpx.AsyncClient, index_id: str, asset_id: str
    ) -> IndexingJob:
        payload = await self._request(
            client,
            "POST",
            f"/indexes/{index_id}/indexed-assets",
            json={"asset_id": asset_id},
        )
        job_id = _extract_id(payload)
        if not job_id:
            raise IndexedAssetCreationFailed("Failed to create indexed asset.")
        logger.info("Submitted asset %s for indexing as %s", asset_id, job_id)
        return IndexingJob(job_id=job_id, index_id=index_id)

    async def _analyze(self, client: httpx.AsyncClient, video_id: str) -> str:
        payload = await self._request(
            client,
            "POST",
            "/analyze",
            json={"video_id": video_id, "prompt": FEEDBACK_PROMPT, "stream": False},
        )
        text = payload.get("data")
        if not isinstance(text, str) or not text.strip():
            raise UpstreamMalformedResponse(
                "No analysis text returned from TwelveLabs.", raw=str(payload)
            )
        return text
