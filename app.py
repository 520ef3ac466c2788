import os
import logging
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

load_dotenv()

# service hooks:
# - services.menu_review.analyze_menu_image(image_bytes, media_type, prompt) -> str (raw model text)
# - services.compression.compress_image(image_bytes, max_size_bytes, ...) -> CompressionResult
from prompts import build_prompt
from schemas import AnalyzeMenuResponse, ErrorResponse, HealthResponse, MenuAnalysisRequest
from services.compression import compress_image, detect_media_type, upload_target
from services.errors import (
    MenuAnalyzerError,
    MissingImage,
    MissingPreferences,
    UploadTooLarge,
)
from services.menu_review import analyze_menu_image, to_data_url
from services.normalizer import normalize_response
from services.utils import split_csv

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("menu_analyzer")

# Raw upload ceiling, checked before any decoding
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(20 * 1024 * 1024)))
# Largest image we forward to the vision model
TARGET_IMAGE_BYTES = upload_target()

app = FastAPI(title="Menu diet analyzer API")


@app.exception_handler(MenuAnalyzerError)
async def analyzer_error_handler(request: Request, exc: MenuAnalyzerError):
    if exc.status_code < 500:
        logger.info("Rejected %s: %s", request.url.path, exc.message)
        return JSONResponse(ErrorResponse(error=exc.message).model_dump(exclude_none=True), status_code=exc.status_code)
    logger.error("Analysis failed: %s", exc.message)
    body = ErrorResponse(error=exc.public_error, message=exc.message)
    return JSONResponse(body.model_dump(), status_code=exc.status_code)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unexpected error on %s", request.url.path)
    body = ErrorResponse(error="Failed to analyze menu", message=str(exc))
    return JSONResponse(body.model_dump(), status_code=500)


async def read_analysis_request(
    menu: Optional[UploadFile],
    dietary_preferences: Optional[str],
    liked_items: Optional[str],
    disliked_items: Optional[str],
) -> MenuAnalysisRequest:
    """Validate the multipart fields. Nothing is decoded or sent anywhere yet."""
    if menu is None or not menu.filename:
        raise MissingImage()
    preferences = split_csv(dietary_preferences)
    if not preferences:
        raise MissingPreferences()

    data = await menu.read(MAX_UPLOAD_BYTES + 1)
    if len(data) > MAX_UPLOAD_BYTES:
        raise UploadTooLarge(f"Menu image must be at most {MAX_UPLOAD_BYTES // (1024 * 1024)}MB")
    media_type = detect_media_type(data)

    disliked = split_csv(disliked_items)
    disliked_keys = {i.lower() for i in disliked}
    liked = [i for i in split_csv(liked_items) if i.lower() not in disliked_keys]
    return MenuAnalysisRequest(
        imageBytes=data,
        mimeType=media_type,
        dietaryPreferences=preferences,
        likedItems=liked,
        dislikedItems=disliked,
    )


# --- Analyze endpoint ----------------------------------------------------
@app.post("/api/analyze-menu")
async def analyze_menu(
    menu: Optional[UploadFile] = File(None),
    dietaryPreferences: Optional[str] = Form(None),
    likedItems: Optional[str] = Form(None),
    dislikedItems: Optional[str] = Form(None),
):
    """
    Analyze a menu photo against dietary preferences. Returns the normalized
    analysis plus the image actually sent to the model as a data URI.
    """
    req = await read_analysis_request(menu, dietaryPreferences, likedItems, dislikedItems)

    compressed = await run_in_threadpool(
        compress_image, req.imageBytes, TARGET_IMAGE_BYTES, media_type=req.mimeType
    )
    image_bytes, media_type = compressed.data, compressed.media_type or req.mimeType

    prompt = build_prompt(req.dietaryPreferences, req.likedItems, req.dislikedItems)
    raw_text = await run_in_threadpool(analyze_menu_image, image_bytes, media_type, prompt)
    analysis = normalize_response(raw_text)

    logger.info(
        "Menu analyzed",
        extra={
            "upload_bytes": len(req.imageBytes),
            "sent_bytes": len(image_bytes),
            "recompressed": compressed.recompressed,
            "structured": analysis.rawResponse is None,
        },
    )
    body = AnalyzeMenuResponse(analysis=analysis, originalImage=to_data_url(image_bytes, media_type))
    return JSONResponse(body.model_dump(exclude_none=True))


@app.get("/api/health")
def health():
    return HealthResponse().model_dump()


# If run directly for local dev
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="0.0.0.0", port=int(os.getenv("PORT", 5000)), reload=True)
