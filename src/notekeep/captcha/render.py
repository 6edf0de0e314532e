"""Render a challenge expression as a PNG image with Pillow."""

import io
import random
from typing import Optional

from PIL import Image, ImageDraw, ImageFont


def _random_color(rng: random.Random, low: int, high: int) -> tuple[int, int, int]:
    return (rng.randint(low, high), rng.randint(low, high), rng.randint(low, high))


def render_png(
    text: str,
    width: int = 150,
    height: int = 50,
    noise: int = 2,
    rng: Optional[random.Random] = None,
) -> bytes:
    """Draw text on a light background, crossed by `noise` random lines."""
    rng = rng or random.SystemRandom()
    image = Image.new("RGB", (width, height), _random_color(rng, 225, 255))
    draw = ImageDraw.Draw(image)
    font = ImageFont.load_default(size=max(12, int(height * 0.6)))

    # Spread characters across the width with a little vertical jitter
    step = width / (len(text) + 1)
    for i, ch in enumerate(text):
        x = step * (i + 0.5) + rng.uniform(-2, 2)
        y = height * 0.15 + rng.uniform(-3, 3)
        draw.text((x, y), ch, fill=_random_color(rng, 20, 120), font=font)

    for _ in range(noise):
        start = (rng.randint(0, width), rng.randint(0, height))
        end = (rng.randint(0, width), rng.randint(0, height))
        draw.line([start, end], fill=_random_color(rng, 80, 180), width=2)

    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()
