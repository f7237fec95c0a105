"""Build evaluators and the pipeline from application settings."""

from __future__ import annotations

from src.config import settings
from src.evaluation.confidence import ConfidenceEvaluator
from src.evaluation.history import get_history_store
from src.evaluation.orchestrator import EvaluationPipeline
from src.evaluation.technical import TechnicalEvaluator
from src.pipeline_config import confidence_config, indexing_config, technical_config


def get_technical_evaluator() -> TechnicalEvaluator:
    return TechnicalEvaluator(
        technical_config(settings),
        score_scale=settings.technical_score_scale,
        transcribe_model_id=settings.gemini_transcribe_model,
    )


def get_confidence_evaluator() -> ConfidenceEvaluator:
    return ConfidenceEvaluator(confidence_config(settings), indexing_config(settings))


def get_pipeline() -> EvaluationPipeline:
    return EvaluationPipeline(
        get_technical_evaluator(),
        get_confidence_evaluator(),
        get_history_store(),
        max_clip_bytes=settings.max_upload_bytes,
    )
