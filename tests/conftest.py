"""Shared fixtures: synthetic menu images and an API client with the vision model stubbed."""

from __future__ import annotations

import io
import os
import random
from typing import Callable, Iterator

import pytest
from PIL import Image, ImageDraw

os.environ.setdefault("OPENAI_API_KEY", "test-key")


def _png(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def noise_png() -> Callable[[int, int], bytes]:
    """Incompressible RGB noise as PNG; roughly 3 bytes per pixel on disk."""

    def make(width: int, height: int, seed: int = 7) -> bytes:
        rnd = random.Random(seed)
        raw = rnd.randbytes(width * height * 3)
        return _png(Image.frombytes("RGB", (width, height), raw))

    return make


@pytest.fixture
def menu_png() -> bytes:
    """Small, text-like menu picture."""
    img = Image.new("RGB", (320, 240), "white")
    draw = ImageDraw.Draw(img)
    for n, line in enumerate(["STARTERS", "Tomato soup  6", "Caesar salad  9", "MAINS", "Mushroom risotto  14"]):
        draw.text((20, 20 + n * 35), line, fill="black")
    return _png(img)


@pytest.fixture
def client() -> Iterator:
    from fastapi.testclient import TestClient
    import app as app_module

    with TestClient(app_module.app, raise_server_exceptions=False) as c:
        yield c
