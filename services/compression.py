"""Size-constrained image compression.

Menu photos are text dense, so instead of a single lossy pass we walk a
fixed ladder of (scale, quality) pairs from the most faithful to the most
aggressive and keep the first encoding that fits. The same ladder is used
by the API before calling the vision model and by the Streamlit client
before uploading.
"""

from __future__ import annotations

import io
import logging
import os
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from services.errors import CompressionExhausted, InvalidImage, InvalidTarget

logger = logging.getLogger(__name__)

OUTPUT_FORMAT = "JPEG"
OUTPUT_MEDIA_TYPE = "image/jpeg"

# Vision payload ceiling and the headroom kept below it for base64 overhead variance.
DEFAULT_HARD_LIMIT_BYTES = int(os.getenv("COLLABORATOR_MAX_IMAGE_BYTES", str(5 * 1024 * 1024)))
DEFAULT_SAFETY_MARGIN_BYTES = int(os.getenv("COMPRESSION_SAFETY_MARGIN_BYTES", str(512 * 1024)))


@dataclass(frozen=True)
class CompressionAttempt:
    scale: float
    quality: int

    def __post_init__(self):
        if not 0 < self.scale <= 1:
            raise ValueError(f"scale must be in (0, 1], got {self.scale}")
        if not 1 <= self.quality <= 100:
            raise ValueError(f"quality must be in 1..100, got {self.quality}")


DEFAULT_LADDER: Tuple[CompressionAttempt, ...] = (
    CompressionAttempt(1.0, 75),
    CompressionAttempt(1.0, 60),
    CompressionAttempt(0.8, 70),
    CompressionAttempt(0.8, 55),
    CompressionAttempt(0.6, 65),
    CompressionAttempt(0.6, 50),
    CompressionAttempt(0.5, 55),
    CompressionAttempt(0.4, 50),
    CompressionAttempt(0.3, 45),
)

LAST_RESORT = CompressionAttempt(0.25, 35)


@dataclass(frozen=True)
class CompressionResult:
    data: bytes
    media_type: Optional[str]
    attempt: Optional[CompressionAttempt] = None
    attempts_tried: int = 0

    @property
    def recompressed(self) -> bool:
        return self.attempt is not None


def upload_target(
    hard_limit: int = DEFAULT_HARD_LIMIT_BYTES,
    margin: int = DEFAULT_SAFETY_MARGIN_BYTES,
) -> int:
    """Largest raw size we allow through to the vision model."""
    return hard_limit - margin


def load_image(image_bytes: bytes) -> Image.Image:
    """Decode, apply EXIF orientation and flatten to RGB."""
    if not image_bytes:
        raise InvalidImage("Image is empty")
    try:
        img = Image.open(io.BytesIO(image_bytes))
        img.load()
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
        raise InvalidImage(f"Could not decode image: {e}") from e

    img = ImageOps.exif_transpose(img)
    if img.mode in ("RGBA", "LA", "P", "PA"):
        img = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.getchannel("A"))
        return background
    if img.mode != "RGB":
        img = img.convert("RGB")
    return img


def detect_media_type(image_bytes: bytes) -> str:
    """Media type from the decoded header; raises InvalidImage."""
    if not image_bytes:
        raise InvalidImage("Image is empty")
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            img.verify()
            fmt = img.format
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise InvalidImage(f"Could not decode image: {e}") from e
    return Image.MIME.get(fmt or "", OUTPUT_MEDIA_TYPE)


def encode_attempt(img: Image.Image, attempt: CompressionAttempt) -> bytes:
    width = max(1, int(img.width * attempt.scale))
    height = max(1, int(img.height * attempt.scale))
    if (width, height) != img.size:
        img = img.resize((width, height), Image.Resampling.LANCZOS)
    buf = io.BytesIO()
    img.save(buf, format=OUTPUT_FORMAT, quality=attempt.quality, optimize=True)
    return buf.getvalue()


def compress_image(
    image_bytes: bytes,
    max_size_bytes: int,
    ladder: Sequence[CompressionAttempt] = DEFAULT_LADDER,
    last_resort: CompressionAttempt = LAST_RESORT,
    media_type: Optional[str] = None,
) -> CompressionResult:
    """Fit ``image_bytes`` under ``max_size_bytes``.

    Returns the input untouched (with ``media_type`` passed through) when it
    already fits. Otherwise re-encodes as JPEG with the first ladder entry
    that fits, then the last-resort pass.

    Raises:
        InvalidTarget: ``max_size_bytes`` is not positive.
        InvalidImage: input is empty or cannot be decoded.
        CompressionExhausted: even the last-resort pass is too large.
    """
    if max_size_bytes <= 0:
        raise InvalidTarget(f"Target size must be positive, got {max_size_bytes}")
    if not image_bytes:
        raise InvalidImage("Image is empty")

    original_size = len(image_bytes)
    if original_size <= max_size_bytes:
        return CompressionResult(data=image_bytes, media_type=media_type)

    img = load_image(image_bytes)
    best_size = original_size
    tried = 0
    for attempt in (*ladder, last_resort):
        tried += 1
        data = encode_attempt(img, attempt)
        best_size = min(best_size, len(data))
        logger.debug(
            "Compression attempt",
            extra={"scale": attempt.scale, "quality": attempt.quality, "size": len(data)},
        )
        if len(data) <= max_size_bytes:
            logger.info(
                "Compressed image from %d to %d bytes (scale=%.2f, quality=%d, attempt %d)",
                original_size, len(data), attempt.scale, attempt.quality, tried,
            )
            return CompressionResult(
                data=data,
                media_type=OUTPUT_MEDIA_TYPE,
                attempt=attempt,
                attempts_tried=tried,
            )

    logger.warning(
        "Compression exhausted: best %d bytes, target %d bytes", best_size, max_size_bytes
    )
    raise CompressionExhausted(best_size=best_size, target=max_size_bytes)


def compress(image_bytes: bytes, max_size_bytes: int) -> bytes:
    return compress_image(image_bytes, max_size_bytes).data
