"""
Text Extractor clients.

Turn a scoresheet image into raw text. Two engines are supported:
- Tesseract via pytesseract (local binary)
- OCR.space HTTP API (no local binary needed)

Both raise ExtractionError for any failure; the orchestrator decides how to
degrade.
"""

import base64
import binascii
import io
import logging
from typing import Optional, Union

import requests

from config import (
    OCR_ENGINE,
    OCR_LANGUAGE,
    OCR_SPACE_API_KEY,
    OCR_SPACE_URL,
    OCR_TIMEOUT_SECONDS,
    TESSERACT_CMD,
)
from scorebook.utils.exceptions import ExtractionError, ValidationError

logger = logging.getLogger(__name__)

ImagePayload = Union[bytes, bytearray, str]


def decode_image_payload(payload: ImagePayload) -> bytes:
    """
    Accept raw bytes, base64 text, or a base64 data URI.

    Raises:
        ValidationError: if nothing was provided.
        ExtractionError: if the text is not valid base64.
    """
    if payload is None or len(payload) == 0:
        raise ValidationError("An image must be provided")

    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload)

    text = payload.strip()
    if text.startswith("data:") and "," in text:
        _, text = text.split(",", 1)
    text = "".join(text.split())

    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ExtractionError(f"Image payload is not valid base64: {e}") from e


class TextExtractor:
    """Contract for OCR engines: recognize(image) -> text."""

    name = "base"

    def recognize(self, image: ImagePayload) -> str:
        raise NotImplementedError


class TesseractExtractor(TextExtractor):
    """OCR with a local tesseract binary through pytesseract."""

    name = "tesseract"

    def __init__(
        self,
        language: str = None,
        timeout: int = None,
        tesseract_cmd: Optional[str] = None
    ):
        self.language = language or OCR_LANGUAGE
        self.timeout = timeout or OCR_TIMEOUT_SECONDS
        self.tesseract_cmd = tesseract_cmd or TESSERACT_CMD

    def recognize(self, image: ImagePayload) -> str:
        data = decode_image_payload(image)

        try:
            from PIL import Image, UnidentifiedImageError
            import pytesseract
        except ImportError as e:
            raise ExtractionError(f"Tesseract engine unavailable: {e}") from e

        if self.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.tesseract_cmd

        try:
            with Image.open(io.BytesIO(data)) as img:
                # Scoresheets are mostly tabular: assume a uniform block of text
                text = pytesseract.image_to_string(
                    img.convert("L"),
                    lang=self.language,
                    config="--psm 6",
                    timeout=self.timeout,
                )
        except UnidentifiedImageError as e:
            raise ExtractionError(f"Unreadable image: {e}") from e
        except pytesseract.TesseractNotFoundError as e:
            raise ExtractionError(f"Tesseract binary not found: {e}") from e
        except (pytesseract.TesseractError, RuntimeError, OSError) as e:
            # pytesseract reports timeouts as RuntimeError
            raise ExtractionError(f"Tesseract failed: {e}") from e

        logger.info(f"OCR completed, extracted text length: {len(text)}")
        return text


class OcrSpaceExtractor(TextExtractor):
    """OCR through the OCR.space HTTP API."""

    name = "ocrspace"

    def __init__(
        self,
        api_key: str = None,
        url: str = None,
        language: str = None,
        timeout: int = None
    ):
        self.api_key = api_key or OCR_SPACE_API_KEY
        self.url = url or OCR_SPACE_URL
        self.language = language or OCR_LANGUAGE
        self.timeout = timeout or OCR_TIMEOUT_SECONDS

        if not self.api_key:
            raise ExtractionError("OCR.space API key not configured. Set OCR_SPACE_API_KEY in .env")

    def recognize(self, image: ImagePayload) -> str:
        data = decode_image_payload(image)

        try:
            response = requests.post(
                self.url,
                data={
                    'apikey': self.api_key,
                    'language': self.language,
                    'isTable': 'true',
                    'OCREngine': '2',
                },
                files={'file': ('scoresheet.png', data)},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.RequestException as e:
            raise ExtractionError(f"OCR.space request failed: {e}") from e
        except ValueError as e:
            raise ExtractionError(f"OCR.space returned invalid JSON: {e}") from e

        if payload.get('IsErroredOnProcessing'):
            message = payload.get('ErrorMessage') or 'unknown error'
            raise ExtractionError(f"OCR.space could not process image: {message}")

        results = payload.get('ParsedResults') or []
        text = "\n".join(result.get('ParsedText', '') for result in results)
        logger.info(f"OCR completed, extracted text length: {len(text)}")
        return text


def get_extractor(engine: str = None) -> TextExtractor:
    """
    Build the configured OCR engine.

    Raises:
        ExtractionError: for an unknown engine or a missing OCR.space key.
    """
    engine = (engine or OCR_ENGINE).lower()
    if engine == "tesseract":
        return TesseractExtractor()
    if engine == "ocrspace":
        return OcrSpaceExtractor()
    raise ExtractionError(f"Unknown OCR engine: {engine}")
