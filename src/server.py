# File: server.py
# Main FastAPI application for the Phoneme Normalizer Server.
# Handles API requests for phoneme normalization and text phonemization.

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

# --- Internal Project Imports ---
from config import (
    config_manager,
    get_host,
    get_port,
    get_ui_title,
    get_load_on_startup,
)

import engine  # Phonemizer engine interface
from phonemes import DEFAULT_RULE_TABLE
from phonemizer_backend import PhonemizerUnavailableError
from models import (  # Pydantic models
    ErrorResponse,
    HealthResponse,
    NormalizeRequest,
    PhonemeResponse,
    PhonemizeRequest,
    RuleModel,
    RuleTableResponse,
)
import utils  # Utility functions


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[
        logging.StreamHandler(),
    ],
)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logging.getLogger("watchfiles").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def _log_access_urls(host: str, port: int):
    """Logs a readable startup summary with the docs URL."""
    display_host = "localhost" if host == "0.0.0.0" else host
    base_url = f"http://{display_host}:{port}"
    logger.info("")
    logger.info("========================================")
    logger.info("  Phoneme Normalizer Server is ready")
    logger.info("  API Docs:   %s/docs", base_url)
    if display_host != host:
        logger.info("  Listening:  http://%s:%s", host, port)
    logger.info("========================================")


def _new_perf_monitor() -> utils.PerformanceMonitor:
    return utils.PerformanceMonitor(
        enabled=config_manager.get_bool("server.enable_performance_monitor", False)
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manages application startup and shutdown events."""
    logger.info("Phoneme Server: Initializing application...")
    try:
        if not get_load_on_startup():
            logger.info("Phonemizer loading deferred until the first /v1/phonemes request.")
        elif not engine.initialize_phonemizer():
            logger.warning(
                "espeak phonemizer failed to load on startup. "
                "/v1/phonemes will return 503; /v1/phonemes/normalize is unaffected."
            )
        else:
            logger.info("espeak phonemizer loaded successfully via engine.")

        _log_access_urls(get_host(), get_port())

        logger.info("Application startup sequence complete.")
        yield
    except Exception as e_startup:
        logger.error(
            f"FATAL ERROR during application startup: {e_startup}", exc_info=True
        )
        yield
    finally:
        logger.info("Phoneme Server: Application shutdown sequence initiated...")
        logger.info("Phoneme Server: Application shutdown complete.")


# --- FastAPI Application Instance ---
app = FastAPI(
    title=get_ui_title(),
    description="Normalizes espeak phoneme transcriptions for neural speech synthesis.",
    version="1.0.0",
    lifespan=lifespan,
)

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*", "null"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# --- API Endpoints ---


@app.get("/health", response_model=HealthResponse, tags=["Status"])
async def health():
    return HealthResponse(
        ok=True,
        phonemizer_loaded=engine.PHONEMIZER_LOADED,
        espeak_version=engine.get_espeak_version(),
    )


@app.get("/v1/phonemes/rules", response_model=RuleTableResponse, tags=["Phonemes"])
async def rules_endpoint():
    """Lists the rewrite rules in the order they are applied."""
    return RuleTableResponse(
        rules=[
            RuleModel(pattern=entry.pattern, replacement=entry.replacement)
            for entry in DEFAULT_RULE_TABLE
        ]
    )


@app.post(
    "/v1/phonemes/normalize",
    response_model=PhonemeResponse,
    response_model_exclude_none=True,
    tags=["Phonemes"],
    summary="Normalize an espeak phoneme string",
    responses={
        500: {
            "model": ErrorResponse,
            "description": "Internal server error during normalization.",
        },
    },
)
async def normalize_endpoint(request: NormalizeRequest):
    perf_monitor = _new_perf_monitor()
    perf_monitor.record("Normalize request received")

    logger.debug(
        "Input phonemes (first 100 chars): '%s'", utils.preview_text(request.phonemes)
    )
    try:
        normalized, metadata = engine.normalize_phonemes(request.phonemes)
    except Exception as e:
        logger.error(f"Error in normalize_endpoint: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
    perf_monitor.record("Phonemes normalized")

    logger.info(
        "/v1/phonemes/normalize complete: input_len=%d, output_len=%d, stress_removed=%d, rules_applied=%d",
        metadata["input_length"],
        metadata["output_length"],
        metadata["stress_markers_removed"],
        metadata["rules_applied"],
    )
    logger.debug(perf_monitor.report())

    return PhonemeResponse(
        phonemes=normalized,
        metadata=metadata if request.include_metadata else None,
    )


@app.post(
    "/v1/phonemes",
    response_model=PhonemeResponse,
    response_model_exclude_none=True,
    tags=["Phonemes"],
    summary="Convert text to normalized phonemes",
    responses={
        500: {
            "model": ErrorResponse,
            "description": "Internal server error during phonemization.",
        },
        503: {
            "model": ErrorResponse,
            "description": "espeak phonemizer not available on this platform.",
        },
    },
)
async def phonemize_endpoint(request: PhonemizeRequest):
    """
    Phonemizes text with espeak and normalizes the transcription.
    Fails with 503 when espeak is not usable on this host.
    """
    perf_monitor = _new_perf_monitor()
    perf_monitor.record("Phonemize request received")

    logger.info("Received /v1/phonemes request: text_len=%d", len(request.text))
    logger.debug("Input text (first 100 chars): '%s'", utils.preview_text(request.text))

    try:
        normalized, metadata = engine.convert_text_to_phonemes_with_metadata(request.text)
    except PhonemizerUnavailableError as e:
        logger.error("Phonemize request failed: %s", e)
        raise HTTPException(
            status_code=503,
            detail=f"espeak phonemizer is not available on this platform: {e}",
        )
    except Exception as e:
        logger.error(f"Error in phonemize_endpoint: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
    perf_monitor.record("Text phonemized and normalized")

    raw_phonemes = metadata.pop("raw_phonemes", None)
    logger.info(
        "/v1/phonemes complete: raw_len=%d, output_len=%d",
        metadata["input_length"],
        metadata["output_length"],
    )
    logger.debug(perf_monitor.report())

    if not request.include_metadata:
        return PhonemeResponse(phonemes=normalized)
    return PhonemeResponse(
        phonemes=normalized,
        raw_phonemes=raw_phonemes,
        metadata=metadata,
    )


# --- Main Execution ---
if __name__ == "__main__":
    server_host = get_host()
    server_port = get_port()

    logger.info(f"Starting Phoneme Server on http://{server_host}:{server_port}")

    import uvicorn

    uvicorn.run(
        "server:app",
        host=server_host,
        port=server_port,
        log_level="info",
        workers=1,
        reload=False,
    )


# --- End File: server.py ---
