"""Raw text extraction: PDF text layer via pypdf, OCR via Ollama Vision models."""

import asyncio
import base64
import io
import logging
import re
from typing import List

import httpx
from PIL import Image
from pdf2image import convert_from_bytes
from pypdf import PdfReader

from app.config import Settings
from app.services.sniffing import DocumentFormat

logger = logging.getLogger(__name__)

OCR_PROMPT = (
    "Extract ALL text from this document image. "
    "Return ONLY the extracted text, preserving the original layout and structure. "
    "Include all headers, body text, dates, numbers, names and ID fields. "
    "Do not add commentary. Just raw text."
)


def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run to a single space and trim."""
    return re.sub(r"\s+", " ", text or "").strip()


def extract_pdf_text(data: bytes) -> str:
    """Text layer of every page, joined with spaces."""
    reader = PdfReader(io.BytesIO(data))
    return " ".join(page.extract_text() or "" for page in reader.pages)


class OcrService:
    """OCR using an Ollama vision model."""

    def __init__(self, ollama_url: str, model: str, timeout: float = 300.0, max_size: int = 2240):
        self.ollama_url = ollama_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.max_size = max_size

    def prepare_image(self, img: Image.Image) -> bytes:
        """Convert a PIL image to PNG bytes, resized and aligned for the vision model.

        qwen2.5vl works on 28px patches, so both sides are rounded down to a
        multiple of 28 after capping the longest side at ``max_size``.
        """
        if img.mode not in ("RGB", "L"):
            img = img.convert("RGB")

        w, h = img.size
        if max(w, h) > self.max_size:
            ratio = self.max_size / max(w, h)
            w = int(w * ratio)
            h = int(h * ratio)

        w = max(28, (w // 28) * 28)
        h = max(28, (h // 28) * 28)
        img = img.resize((w, h), Image.LANCZOS)

        output = io.BytesIO()
        img.save(output, format="PNG")
        return output.getvalue()

    async def ocr_prepared(self, image_bytes: bytes) -> str:
        """Run OCR on one prepared PNG."""
        image_b64 = base64.b64encode(image_bytes).decode("utf-8")
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{self.ollama_url}/api/generate",
                json={
                    "model": self.model,
                    "prompt": OCR_PROMPT,
                    "images": [image_b64],
                    "stream": False,
                    "options": {"temperature": 0.1, "num_predict": 4096},
                },
            )
        if response.status_code != 200:
            raise RuntimeError(f"Ollama error {response.status_code}: {response.text[:500]}")
        return response.json().get("response", "").strip()

    async def ocr_image(self, image_bytes: bytes) -> str:
        """OCR raw image file bytes (PNG, JPEG, ...)."""
        img = Image.open(io.BytesIO(image_bytes))
        return await self.ocr_prepared(self.prepare_image(img))

    async def ocr_pages(self, images: List[Image.Image]) -> str:
        """OCR rendered pages; a failing page is skipped."""
        parts = []
        for i, img in enumerate(images):
            try:
                page_text = await self.ocr_prepared(self.prepare_image(img))
            except Exception as e:
                logger.warning(f"OCR failed for page {i + 1}/{len(images)}: {e}")
                continue
            if page_text:
                parts.append(page_text)
        return "\n\n".join(parts)


class TextExtractor:
    """Format-specific text extraction.

    The PDF text layer is always attempted and its errors propagate. OCR is
    best-effort: failures are logged and degrade to empty text.
    """

    def __init__(self, ocr: OcrService):
        self.ocr = ocr

    async def extract(self, data: bytes, fmt: DocumentFormat) -> str:
        if fmt is DocumentFormat.PDF:
            text = await self._extract_pdf(data)
        elif fmt is DocumentFormat.IMAGE:
            text = await self._ocr_image(data)
        else:
            logger.info("Unknown document format, no text extracted")
            text = ""
        return normalize_whitespace(text)

    async def _extract_pdf(self, data: bytes) -> str:
        loop = asyncio.get_running_loop()
        text = await loop.run_in_executor(None, extract_pdf_text, data)
        if text.strip():
            return text

        logger.info("PDF has no text layer, falling back to OCR")
        try:
            images = await loop.run_in_executor(None, convert_from_bytes, data)
            return await self.ocr.ocr_pages(images)
        except Exception as e:
            logger.warning(f"Scanned PDF OCR failed: {e}")
            return ""

    async def _ocr_image(self, data: bytes) -> str:
        try:
            return await self.ocr.ocr_image(data)
        except Exception as e:
            logger.warning(f"Image OCR failed: {e}")
            return ""


def get_text_extractor(settings: Settings) -> TextExtractor:
    return TextExtractor(OcrService(settings.ollama_url, settings.ocr_model, settings.ocr_timeout_seconds))
