# ocrsearch/infrastructure/tesseract_engine.py

import io
import os
from pathlib import Path
from typing import Iterator, Optional

import fitz
import pytesseract
from PIL import Image

from ocrsearch.domain.errors import InvalidInputError
from ocrsearch.domain.interfaces import ExtractionPort
from ocrsearch.domain.models import ExtractionResult


DEFAULT_LANGUAGE = "eng"

# Tesseract does not report a stable per-document confidence through
# image_to_string, so every non-empty extraction is tagged with this
# constant. It is an approximation, not a measured quality score.
ASSUMED_CONFIDENCE = 95.0

# 2x zoom on PyMuPDF's 72 DPI base = ~144 DPI, enough for Tesseract.
PDF_RENDER_SCALE = 2.0


class TesseractExtractor(ExtractionPort):
    """
    OCR adapter around the Tesseract engine.

    Images are opened with Pillow; PDFs are rendered page by page with
    PyMuPDF and every page image is OCRed. Engine errors (unsupported
    format, corrupt file, missing binary) degrade to an empty result so
    the pipeline treats them like a page with no readable text.
    """

    def __init__(
        self,
        tessdata_path: Optional[str] = None,
        language: str = DEFAULT_LANGUAGE,
        assumed_confidence: float = ASSUMED_CONFIDENCE,
    ):
        self._tessdata_path      = tessdata_path
        self._language           = language
        self._assumed_confidence = assumed_confidence
        print(
            f"[OCR] Tesseract ready. Language: {language} | "
            f"Data path: {tessdata_path or 'engine default'}"
        )

    def extract(self, path: str) -> ExtractionResult:
        file_path = Path(path)
        if not file_path.exists() or file_path.is_dir():
            raise InvalidInputError(f"Invalid file path: {path}", stage="extraction")
        if not os.access(file_path, os.R_OK):
            raise InvalidInputError(f"File is not readable: {path}", stage="extraction")

        print(f"[OCR] Performing OCR on: {file_path.name} ...")
        try:
            text = self._run_ocr(file_path)
        except (
            pytesseract.TesseractError,
            Image.DecompressionBombError,
            OSError,
            RuntimeError,
            ValueError,
        ) as error:
            print(f"[OCR] ✗ OCR error on '{file_path.name}': {error}")
            return ExtractionResult.empty()

        text = text.strip()
        if not text:
            print("[OCR] ⚠ OCR extracted no text.")
            return ExtractionResult.empty()

        print(f"[OCR] ✓ OCR complete. Confidence: {self._assumed_confidence:.2f}%")
        return ExtractionResult(text=text, confidence=self._assumed_confidence)

    # ─── Private ──────────────────────────────────────────────────────────────

    def _run_ocr(self, file_path: Path) -> str:
        if file_path.suffix.lower() == ".pdf":
            return "\n".join(self._ocr_image(image) for image in self._render_pdf(file_path))

        with Image.open(file_path) as image:
            return self._ocr_image(image)

    def _ocr_image(self, image: Image.Image) -> str:
        config = f'--tessdata-dir "{self._tessdata_path}"' if self._tessdata_path else ""
        return pytesseract.image_to_string(image, lang=self._language, config=config)

    @staticmethod
    def _render_pdf(file_path: Path) -> Iterator[Image.Image]:
        """Rasterise PDF pages one at a time; each page image is closed once OCR moves on."""
        with fitz.open(str(file_path)) as pdf:
            for page in pdf:
                pix = page.get_pixmap(matrix=fitz.Matrix(PDF_RENDER_SCALE, PDF_RENDER_SCALE))
                image = Image.open(io.BytesIO(pix.tobytes("png")))
                try:
                    yield image
                finally:
                    image.close()
