"""Error taxonomy for the evaluation pipeline.

Every error carries a human-readable message, the raw upstream text when there
is one, and the HTTP status the API layer reports it with.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.evaluation.models import PartialFailure


class EvaluationError(Exception):
    """Base class for every failure surfaced by the pipeline."""

    status_code: int = 500
    kind: str = "evaluation_error"

    def __init__(self, message: str, *, raw: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.raw = raw

    def to_dict(self) -> dict[str, str]:
        payload = {"error": self.message, "kind": self.kind}
        if self.raw is not None:
            payload["raw"] = self.raw
        return payload


# --- Input -----------------------------------------------------------------


class InputError(EvaluationError):
    status_code = 400
    kind = "input_error"


class MissingClip(InputError):
    kind = "missing_clip"


class PayloadTooLarge(InputError):
    status_code = 413
    kind = "payload_too_large"

    def __init__(self, size_bytes: int, max_bytes: int) -> None:
        size_mb = -(-size_bytes // (1024 * 1024))  # ceil
        max_mb = max_bytes / (1024 * 1024)
        super().__init__(
            f"Clip is too large ({size_mb}MB). Max allowed is {max_mb:g}MB. "
            "Shorten the clip or lower quality."
        )
        self.size_bytes = size_bytes
        self.max_bytes = max_bytes


# --- Configuration -----------------------------------------------------------


class ConfigError(EvaluationError):
    status_code = 500
    kind = "config_error"


class MissingCredential(ConfigError):
    kind = "missing_credential"


class EvaluatorDisabled(ConfigError):
    status_code = 503
    kind = "evaluator_disabled"


# --- Upstream ----------------------------------------------------------------


class UpstreamTransportError(EvaluationError):
    """Network or HTTP-level failure talking to an upstream service."""

    status_code = 502
    kind = "upstream_transport_error"


class UpstreamTimeout(UpstreamTransportError):
    status_code = 504
    kind = "upstream_timeout"


class PollingTransportError(UpstreamTransportError):
    """Transport failure while polling a job; distinct from a ``failed`` status."""

    kind = "polling_transport_error"


class UpstreamMalformedResponse(EvaluationError):
    """Upstream answered, but not with what we asked for."""

    status_code = 502
    kind = "upstream_malformed_response"


# Name used in the technical client's contract.
MalformedUpstreamResponse = UpstreamMalformedResponse


class ExtractionError(UpstreamMalformedResponse):
    kind = "extraction_error"

    def __init__(self, raw: str, reason: str = "not-valid-json") -> None:
        super().__init__("Upstream response was not valid JSON.", raw=raw)
        self.reason = reason


class IndexCreationFailed(UpstreamMalformedResponse):
    kind = "index_creation_failed"


class UploadFailed(UpstreamMalformedResponse):
    kind = "upload_failed"


class IndexedAssetCreationFailed(UpstreamMalformedResponse):
    kind = "indexed_asset_creation_failed"


# --- Indexing ----------------------------------------------------------------


class IndexingFailed(EvaluationError):
    status_code = 502
    kind = "indexing_failed"


class IndexingTimedOut(EvaluationError):
    status_code = 504
    kind = "indexing_timed_out"


# --- Pipeline ----------------------------------------------------------------


class PartialPipelineFailure(EvaluationError):
    """Raised by callers that prefer an exception over a PartialFailure value."""

    status_code = 502
    kind = "partial_pipeline_failure"

    def __init__(self, outcome: PartialFailure) -> None:
        stages = ", ".join(stage.value for stage in outcome.failed_stages)
        super().__init__(f"Evaluation incomplete; failed stages: {stages}")
        self.outcome = outcome
