"""
OCR service for extracting on-image text with Claude Vision.

Game artwork carries stylized titles that classic OCR engines misread, so the
image is sent to a vision model with a short extraction prompt. The
credential is supplied per call because it belongs to the session, not to
the process.
"""

import base64
from typing import Optional
import structlog

import anthropic

from config import settings
from exceptions import ExtractionError, InvalidCredentialError

logger = structlog.get_logger(__name__)


NO_TEXT_DETECTED_MARKER = "NO_TEXT_DETECTED"


class OcrService:
    """
    Extract text from images using the Anthropic Messages API.

    Returns None when the model reports that no text is visible.
    """

    PROMPT = (
        "Extract all text visible in this image. If no text is clearly visible, "
        f"respond with '{NO_TEXT_DETECTED_MARKER}'. Focus on game titles or prominent text."
    )

    def __init__(
        self,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None
    ):
        """Initialize OCR service."""
        self.model = model or settings.ocr_model
        self.max_tokens = max_tokens or settings.ocr_max_tokens

    def _build_client(self, credential: str) -> anthropic.AsyncAnthropic:
        return anthropic.AsyncAnthropic(api_key=credential)

    @staticmethod
    def _clean_response(text: Optional[str]) -> Optional[str]:
        """Strip the reply; empty replies and the no-text marker become None."""
        if not text or not text.strip():
            return None
        if NO_TEXT_DETECTED_MARKER in text:
            return None
        return text.strip()

    async def extract_text(
        self,
        credential: str,
        image_bytes: bytes,
        mime_type: str = "image/webp"
    ) -> Optional[str]:
        """
        Send an image to the vision model and return the visible text.

        Args:
            credential: Anthropic API key
            image_bytes: Raw image content
            mime_type: Image content type (image/webp, image/png, ...)

        Returns:
            Extracted text, or None if no text was detected

        Raises:
            InvalidCredentialError: If the API rejects the key
            ExtractionError: On any other failure
        """
        if not credential:
            raise ExtractionError("API key for the OCR service is missing.")

        logger.info("ocr_extraction_started", image_size=len(image_bytes), mime_type=mime_type)

        content = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": mime_type,
                    "data": base64.b64encode(image_bytes).decode("utf-8")
                }
            },
            {
                "type": "text",
                "text": self.PROMPT
            }
        ]

        try:
            client = self._build_client(credential)
            response = await client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{
                    "role": "user",
                    "content": content
                }]
            )
        except anthropic.AuthenticationError as e:
            logger.error("ocr_invalid_credential", error=str(e))
            raise InvalidCredentialError()
        except anthropic.APIError as e:
            logger.error("ocr_api_error", error=str(e))
            raise ExtractionError(details={"reason": str(e)})
        except Exception as e:
            logger.error("ocr_extraction_failed", error=str(e), error_type=type(e).__name__)
            raise ExtractionError(details={"reason": str(e)})

        response_text = "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        )
        text = self._clean_response(response_text)

        logger.info(
            "ocr_extraction_completed",
            text_detected=text is not None,
            response_length=len(response_text)
        )
        return text


# Singleton instance
_ocr_service: Optional[OcrService] = None


def get_ocr_service() -> OcrService:
    """Get or create OcrService instance."""
    global _ocr_service
    if _ocr_service is None:
        _ocr_service = OcrService()
    return _ocr_service
