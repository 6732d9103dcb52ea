"""Mock image provider: paints a dark placeholder frame with the prompt on it."""

from __future__ import annotations

import asyncio
import base64
import io
import logging

from PIL import Image, ImageDraw, ImageFont

from empire.services.media_gen import ContentPart, InlineData

logger = logging.getLogger(__name__)


class MockImageClient:
    """Offline provider used when USE_MOCK_API is set."""

    def __init__(self, size: tuple[int, int] = (960, 540), latency: float = 0.0) -> None:
        self.size = size
        self.latency = latency

    async def generate(self, prompt_text: str) -> list[ContentPart]:
        if self.latency:
            await asyncio.sleep(self.latency)
        png = _render_placeholder(prompt_text, self.size)
        logger.info("mock image: %d bytes for prompt=%.40s", len(png), prompt_text)
        return [
            ContentPart(text="[MOCK IMAGE]"),
            ContentPart(inline_data=InlineData(
                mime_type="image/png",
                data=base64.b64encode(png).decode("ascii"),
            )),
        ]


def _render_placeholder(prompt: str, size: tuple[int, int]) -> bytes:
    img = Image.new("RGB", size, color=(24, 24, 27))
    draw = ImageDraw.Draw(img)
    font = ImageFont.load_default()

    wrapped = prompt[:100] + "..." if len(prompt) > 100 else prompt
    draw.text((30, 30), wrapped, fill=(212, 175, 55), font=font)
    draw.text((30, size[1] - 40), "[MOCK IMAGE - Empire]", fill=(100, 100, 110), font=font)

    buf = io.BytesIO()
    img.save(buf, "PNG")
    return buf.getvalue()
