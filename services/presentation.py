"""Helpers the Streamlit client uses to render an analysis."""

import io
from typing import Dict, List, Optional, Sequence

from PIL import Image, ImageDraw

from schemas import Bucket, MenuAnalysisResult, MenuItem
from services.compression import load_image

BUCKET_TITLES: Dict[Bucket, str] = {
    "suitable": "Good choices",
    "neutral": "Ask your server",
    "unsuitable": "Best avoided",
}

BUCKET_COLORS: Dict[Bucket, str] = {
    "suitable": "#2e7d32",
    "neutral": "#f9a825",
    "unsuitable": "#c62828",
}


def stars(rating: Optional[float], out_of: int = 5) -> str:
    if rating is None:
        return ""
    full = max(0, min(out_of, int(round(rating))))
    return "★" * full + "☆" * (out_of - full)


def group_by_bucket(result: MenuAnalysisResult) -> Dict[Bucket, List[MenuItem]]:
    """Items keyed by bucket, each list sorted by rating (best first)."""
    groups: Dict[Bucket, List[MenuItem]] = {
        "suitable": list(result.suitableItems),
        "neutral": list(result.neutralItems),
        "unsuitable": list(result.unsuitableItems),
    }
    for items in groups.values():
        items.sort(key=lambda i: -i.rating)
    return groups


def draw_highlights(image_bytes: bytes, items: Sequence[MenuItem], width: int = 4) -> Optional[bytes]:
    """Outline every item that carries a bbox. None when there is nothing to draw."""
    boxed = [i for i in items if i.bbox is not None]
    if not boxed:
        return None
    img = load_image(image_bytes)
    draw = ImageDraw.Draw(img)
    for item in boxed:
        b = item.bbox
        left, top = b.x * img.width, b.y * img.height
        right = min(img.width - 1, left + b.width * img.width)
        bottom = min(img.height - 1, top + b.height * img.height)
        draw.rectangle([left, top, right, bottom], outline=BUCKET_COLORS[item.bucket], width=width)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
