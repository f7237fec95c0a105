"""Tests for the TwelveLabs confidence evaluator over a mocked HTTP transport."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable

import httpx
import pytest

from src.evaluation.confidence import ConfidenceEvaluator, parse_confidence
from src.evaluation.errors import (
    IndexCreationFailed,
    IndexedAssetCreationFailed,
    IndexingFailed,
    IndexingTimedOut,
    MissingCredential,
    PayloadTooLarge,
    PollingTransportError,
    UploadFailed,
    UpstreamMalformedResponse,
    UpstreamTransportError,
)
from src.evaluation.placeholders import PLACEHOLDER_CONFIDENCE_SCORE
from src.pipeline_config import ClientConfig, EvaluatorMode, IndexingConfig

CLIP = b"\x1a\x45\xdf\xa3" + b"\x00" * 64
BASE_URL = "https://api.twelvelabs.test/v1.3"

LIVE = ClientConfig(
    mode=EvaluatorMode.LIVE,
    api_key="fake-key",
    model_id="pegasus1.2",
    max_upload_bytes=1024,
)

ANALYSIS = json.dumps(
    {
        "confidence_score": 8,
        "confidence_feedback": ["Good eye contact.", "Slow down slightly."],
    }
)


class FakeTwelveLabs:
    """Routes TwelveLabs-shaped requests to canned responses and records calls."""

    def __init__(
        self,
        statuses: list[str] | None = None,
        *,
        index: dict | None = None,
        asset: dict | None = None,
        indexed_asset: dict | None = None,
        analysis: str = ANALYSIS,
        fail_status_with: Exception | None = None,
    ) -> None:
        self.statuses = list(statuses or ["ready"])
        self.index = {"_id": "idx-1"} if index is None else index
        self.asset = {"_id": "asset-1"} if asset is None else asset
        self.indexed_asset = {"_id": "job-1"} if indexed_asset is None else indexed_asset
        self.analysis = analysis
        self.fail_status_with = fail_status_with
        self.calls: list[tuple[str, str]] = []
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/v1.3")
        self.calls.append((request.method, path))
        self.requests.append(request)

        if request.method == "POST" and path == "/indexes":
            return httpx.Response(200, json=self.index)
        if request.method == "POST" and path == "/assets":
            return httpx.Response(201, json=self.asset)
        if request.method == "POST" and path.endswith("/indexed-assets"):
            return httpx.Response(202, json=self.indexed_asset)
        if request.method == "GET" and "/indexed-assets/" in path:
            if self.fail_status_with is not None:
                raise self.fail_status_with
            status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
            return httpx.Response(200, json={"_id": "job-1", "status": status})
        if request.method == "POST" and path == "/analyze":
            return httpx.Response(200, json={"id": "gen-1", "data": self.analysis})
        return httpx.Response(404, json={"message": "not found"})

    def paths(self, method: str | None = None) -> list[str]:
        return [p for m, p in self.calls if method is None or m == method]


class FakeClock:
    def __init__(self) -> None:
        self.sleeps: list[float] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)


def _evaluator(
    fake: FakeTwelveLabs,
    *,
    config: ClientConfig = LIVE,
    index_id: str | None = None,
    max_attempts: int = 5,
    clock: FakeClock | None = None,
    handler: Callable[[httpx.Request], httpx.Response] | None = None,
) -> ConfidenceEvaluator:
    return ConfidenceEvaluator(
        config,
        IndexingConfig(
            base_url=BASE_URL,
            index_id=index_id,
            poll_interval_ms=1000,
            poll_max_attempts=max_attempts,
        ),
        transport=httpx.MockTransport(handler or fake.handler),
        sleep=(clock or FakeClock()).sleep,
    )


def _run(evaluator: ConfidenceEvaluator, clip: bytes = CLIP):
    return asyncio.run(evaluator.evaluate(clip, "Tell me about yourself."))


class TestWorkflow:
    def test_happy_path_creates_index_when_unconfigured(self) -> None:
        fake = FakeTwelveLabs(statuses=["pending", "indexing", "ready"])
        clock = FakeClock()
        result = _run(_evaluator(fake, clock=clock))

        assert result.confidence_score == 8
        assert result.feedback_points == ("Good eye contact.", "Slow down slightly.")
        assert result.raw == ANALYSIS
        assert fake.calls == [
            ("POST", "/indexes"),
            ("POST", "/assets"),
            ("POST", "/indexes/idx-1/indexed-assets"),
            ("GET", "/indexes/idx-1/indexed-assets/job-1"),
            ("GET", "/indexes/idx-1/indexed-assets/job-1"),
            ("GET", "/indexes/idx-1/indexed-assets/job-1"),
            ("POST", "/analyze"),
        ]
        assert clock.sleeps == [1.0, 1.0]

    def test_configured_index_skips_creation(self) -> None:
        fake = FakeTwelveLabs()
        _run(_evaluator(fake, index_id="preset-index"))
        assert "/indexes" not in fake.paths("POST")
        assert "/indexes/preset-index/indexed-assets" in fake.paths("POST")

    def test_api_key_header_and_analysis_body(self) -> None:
        fake = FakeTwelveLabs()
        _run(_evaluator(fake))
        assert all(r.headers["x-api-key"] == "fake-key" for r in fake.requests)
        analyze = json.loads(fake.requests[-1].content)
        assert analyze["video_id"] == "job-1"
        assert analyze["stream"] is False
        assert "confidence_score" in analyze["prompt"]


class TestWorkflowFailures:
    def test_index_creation_without_id(self) -> None:
        fake = FakeTwelveLabs(index={})
        with pytest.raises(IndexCreationFailed):
            _run(_evaluator(fake))
        assert fake.paths() == ["/indexes"]

    def test_upload_without_asset_id(self) -> None:
        fake = FakeTwelveLabs(asset={"status": "ok"})
        with pytest.raises(UploadFailed):
            _run(_evaluator(fake))

    def test_indexed_asset_without_id(self) -> None:
        fake = FakeTwelveLabs(indexed_asset={})
        with pytest.raises(IndexedAssetCreationFailed):
            _run(_evaluator(fake))

    def test_indexing_failed_skips_analysis(self) -> None:
        fake = FakeTwelveLabs(statuses=["failed"])
        with pytest.raises(IndexingFailed):
            _run(_evaluator(fake))
        assert "/analyze" not in fake.paths()
        assert len(fake.paths("GET")) == 1

    def test_indexing_timeout_skips_analysis(self) -> None:
        fake = FakeTwelveLabs(statuses=["indexing"])
        clock = FakeClock()
        with pytest.raises(IndexingTimedOut) as exc_info:
            _run(_evaluator(fake, max_attempts=3, clock=clock))
        assert "/analyze" not in fake.paths()
        assert len(fake.paths("GET")) == 3
        assert exc_info.value.status_code == 504

    def test_network_error_while_polling(self) -> None:
        fake = FakeTwelveLabs(fail_status_with=httpx.ConnectError("boom"))
        with pytest.raises(PollingTransportError):
            _run(_evaluator(fake))

    def test_http_error_carries_upstream_message(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"code": "api_key_invalid", "message": "Invalid API key"})

        with pytest.raises(UpstreamTransportError) as exc_info:
            _run(_evaluator(FakeTwelveLabs(), handler=handler))
        assert exc_info.value.message == "Invalid API key"
        assert "api_key_invalid" in (exc_info.value.raw or "")

    def test_unparseable_analysis_keeps_raw(self) -> None:
        fake = FakeTwelveLabs(analysis="The candidate seemed confident overall.")
        with pytest.raises(UpstreamMalformedResponse) as exc_info:
            _run(_evaluator(fake))
        assert exc_info.value.raw == "The candidate seemed confident overall."


class TestPrechecks:
    def test_payload_too_large_makes_no_requests(self) -> None:
        fake = FakeTwelveLabs()
        with pytest.raises(PayloadTooLarge):
            _run(_evaluator(fake), clip=b"\x00" * 4096)
        assert fake.calls == []

    def test_missing_credential(self) -> None:
        fake = FakeTwelveLabs()
        config = ClientConfig(mode=EvaluatorMode.LIVE, api_key="", max_upload_bytes=1024)
        with pytest.raises(MissingCredential):
            _run(_evaluator(fake, config=config))
        assert fake.calls == []

    def test_placeholder_makes_no_requests(self) -> None:
        fake = FakeTwelveLabs()
        config = ClientConfig(mode=EvaluatorMode.PLACEHOLDER, max_upload_bytes=1024)
        result = _run(_evaluator(fake, config=config))
        assert result.confidence_score == PLACEHOLDER_CONFIDENCE_SCORE
        assert fake.calls == []


class TestParseConfidence:
    def test_fenced_with_prose(self) -> None:
        text = f"Here is my analysis:\n```json\n{ANALYSIS}\n```"
        assert parse_confidence(text).confidence_score == 8

    def test_visual_feedback_string(self) -> None:
        result = parse_confidence('{"confidence_score": 6, "visual_feedback": "Fidgets with hands."}')
        assert result.feedback_points == ("Fidgets with hands.",)
        assert result.visual_feedback == "Fidgets with hands."

    def test_decimal_score_rounded(self) -> None:
        result = parse_confidence('{"confidence_score": 6.6, "confidence_feedback": ["ok"]}')
        assert result.confidence_score == 7

    def test_optional_counts(self) -> None:
        result = parse_confidence(
            '{"confidence_score": 5, "confidence_feedback": ["a"], "pause_count": 3, "filler_word_count": -1}'
        )
        assert result.pause_count == 3
        assert result.filler_word_count is None

    def test_non_finite_counts_ignored(self) -> None:
        result = parse_confidence(
            '{"confidence_score": 5, "confidence_feedback": ["a"], "pause_count": NaN, "filler_word_count": Infinity}'
        )
        assert result.pause_count is None
        assert result.filler_word_count is None

    @pytest.mark.parametrize(
        "text",
        [
            '{"confidence_score": 11, "confidence_feedback": ["a"]}',
            '{"confidence_score": -1, "confidence_feedback": ["a"]}',
            '{"confidence_score": NaN, "confidence_feedback": ["a"]}',
            '{"confidence_score": Infinity, "confidence_feedback": ["a"]}',
            '{"confidence_score": -Infinity, "confidence_feedback": ["a"]}',
            '{"confidence_score": "high", "confidence_feedback": ["a"]}',
            '{"confidence_feedback": ["a"]}',
            '{"confidence_score": 5}',
            '{"confidence_score": 5, "confidence_feedback": []}',
        ],
    )
    def test_invalid(self, text: str) -> None:
        with pytest.raises(UpstreamMalformedResponse) as exc_info:
            parse_confidence(text)
        assert exc_info.value.raw == text
