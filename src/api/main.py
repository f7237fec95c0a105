import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.models import ErrorResponse
from src.api.routes.evaluate import router as evaluate_router
from src.api.routes.feedback import router as feedback_router
from src.api.routes.history import router as history_router
from src.api.routes.questions import router as questions_router
from src.api.routes.technical import router as technical_router
from src.config import settings
from src.evaluation.errors import EvaluationError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
# Keep HTTP client chatter out of the pipeline logs
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Cadence API",
    description="Automated feedback on recorded interview answers",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
    ],
    allow_origin_regex=r"https://.*\.vercel\.app|http://localhost:\d+",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(technical_router)
app.include_router(feedback_router)
app.include_router(evaluate_router)
app.include_router(history_router)
app.include_router(questions_router)


@app.exception_handler(EvaluationError)
async def evaluation_error_handler(request: Request, exc: EvaluationError) -> JSONResponse:
    """Report pipeline errors as ``{error, kind, raw}`` with the error's status."""
    logger.warning("%s %s failed (%s): %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse.from_error(exc).model_dump(exclude_none=True),
    )


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}
