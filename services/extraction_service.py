"""
Claude Vision extraction service for supplier price lists.

Sends an uploaded PDF or image to Claude and reads back the list of
products with their net purchase prices. The result is only a
proposal; nothing is written until the user reviews it.
"""

import base64
import json
import math
import re
from typing import Any, Optional
import structlog

import anthropic

from config import settings
from models.upload import PriceEntry
from exceptions import ExtractionError, UnsupportedDocumentError

logger = structlog.get_logger(__name__)


PDF_MIME_TYPE = "application/pdf"
IMAGE_MIME_TYPES = ("image/png", "image/jpeg", "image/webp", "image/gif")
SUPPORTED_MIME_TYPES = (PDF_MIME_TYPE, *IMAGE_MIME_TYPES)


class ExtractionService:
    """
    Extract (product, price) pairs from supplier price lists.

    Handles scanned PDFs and photos of printed lists; Claude reads
    both directly.
    """

    # System prompt for price list extraction
    SYSTEM_PROMPT = """You read supplier price lists for a small food business.

IMPORTANT: Return ONLY valid JSON, no markdown, no explanation, no code blocks.

Extract every product with its net purchase price:
- product: the article name exactly as printed (keep pack sizes such as "5kg")
- price: the base net purchase price as a plain number with a dot as decimal separator

Ignore taxes, deposits and discounts. Skip headers, totals and lines without a price.

Return a JSON array in this exact structure:
[
  {"product": "Tomaten 5kg", "price": 12.5},
  {"product": "Gurken Kiste", "price": 8.9}
]"""

    def __init__(self, client: Optional[Any] = None):
        """Initialize extraction service."""
        if client is not None:
            self.client = client
        elif settings.extraction_configured:
            self.client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)
        else:
            self.client = None

    def _build_content(self, document: bytes, mime_type: str) -> list[dict]:
        """Message content: the document block followed by the instruction."""
        data = base64.b64encode(document).decode("utf-8")

        if mime_type == PDF_MIME_TYPE:
            block = {
                "type": "document",
                "source": {"type": "base64", "media_type": mime_type, "data": data},
            }
        else:
            block = {
                "type": "image",
                "source": {"type": "base64", "media_type": mime_type, "data": data},
            }

        return [
            block,
            {"type": "text", "text": "Extract all products and net purchase prices from this price list."},
        ]

    async def extract_prices(self, document: bytes, mime_type: str) -> list[PriceEntry]:
        """
        Send a price list to Claude and parse the answer.

        Args:
            document: File content
            mime_type: MIME type of the file

        Returns:
            Entries in document order

        Raises:
            UnsupportedDocumentError: MIME type Claude cannot read
            ExtractionError: Empty file, API not configured, API failure
                or an unreadable answer
        """
        mime_type = (mime_type or "").split(";")[0].strip().lower()
        if mime_type not in SUPPORTED_MIME_TYPES:
            raise UnsupportedDocumentError(mime_type, list(SUPPORTED_MIME_TYPES))
        if not document:
            raise ExtractionError("Uploaded document is empty")
        if self.client is None:
            raise ExtractionError("Extraction is not configured. Set ANTHROPIC_API_KEY.")

        logger.info("extraction_started", size=len(document), mime_type=mime_type)

        try:
            response = await self.client.messages.create(
                model=settings.extraction_model,
                max_tokens=settings.extraction_max_tokens,
                system=self.SYSTEM_PROMPT,
                messages=[{
                    "role": "user",
                    "content": self._build_content(document, mime_type),
                }],
            )
        except anthropic.APIError as e:
            logger.error("claude_api_error", error=str(e))
            raise ExtractionError(f"Claude API error: {e}")

        response_text = "".join(
            getattr(block, "text", "") for block in response.content
        )
        logger.debug("claude_response_received", response_length=len(response_text))

        entries = self.parse_response(response_text)

        logger.info("extraction_completed", entries=len(entries), mime_type=mime_type)
        return entries

    def parse_response(self, response_text: str) -> list[PriceEntry]:
        """
        Parse Claude's JSON answer into price entries.

        Entries without a name or with a negative or non-numeric price
        are dropped and logged.

        Raises:
            ExtractionError: If the answer is not a JSON list
        """
        # Clean response - remove markdown code blocks if present
        cleaned = response_text.strip()
        if cleaned.startswith("```"):
            cleaned = re.sub(r'^```(?:json)?\s*', '', cleaned)
            cleaned = re.sub(r'\s*```$', '', cleaned)

        if not cleaned:
            return []

        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.error("json_parse_failed", response_preview=response_text[:500], error=str(e))
            raise ExtractionError("Price list could not be read", details={"error": str(e)})

        if isinstance(data, dict):
            data = data.get("items", data.get("products"))
        if not isinstance(data, list):
            raise ExtractionError("Price list could not be read", details={"error": "expected a list"})

        entries = []
        for raw in data:
            entry = self._to_entry(raw)
            if entry is None:
                logger.warning("extracted_entry_dropped", entry=str(raw)[:200])
                continue
            entries.append(entry)
        return entries

    def _to_entry(self, raw: Any) -> Optional[PriceEntry]:
        if not isinstance(raw, dict):
            return None

        product = str(raw.get("product") or "").strip()
        price = raw.get("price")
        if isinstance(price, str):
            try:
                price = float(price.replace(",", ".").strip())
            except ValueError:
                return None

        if (
            not product
            or isinstance(price, bool)
            or not isinstance(price, (int, float))
            or not math.isfinite(price)
            or price < 0
        ):
            return None

        return PriceEntry(product=product, price=float(price))


# Singleton instance
_extraction_service: Optional[ExtractionService] = None


def get_extraction_service() -> ExtractionService:
    """Get or create ExtractionService instance."""
    global _extraction_service
    if _extraction_service is None:
        _extraction_service = ExtractionService()
    return _extraction_service
