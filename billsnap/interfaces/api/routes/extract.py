"""
Extraction Routes - Receipt image to structured data.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from billsnap.domains.extraction import (
    ExtractionGateway,
    ExtractionRequest,
    LocalOcrExtractor,
    result_to_body,
)

from ..deps import get_gateway, get_local_ocr

router = APIRouter()


@router.post("/extract")
async def extract_bill(
    payload: ExtractionRequest,
    gateway: ExtractionGateway = Depends(get_gateway),
) -> JSONResponse:
    """
    Extract bill number, amount, purpose and raw text with Gemini.

    Body: {"image": "<data URI or base64>", "mimeType": "image/jpeg"}
    """
    result = await gateway.extract(payload.image, payload.mime_type)
    status_code, body = result_to_body(result)
    return JSONResponse(status_code=status_code, content=body)


@router.post("/ocr")
async def ocr_bill(
    payload: ExtractionRequest,
    extractor: LocalOcrExtractor = Depends(get_local_ocr),
) -> JSONResponse:
    """Same contract as /extract, using local Tesseract OCR (no API key needed)."""
    result = await extractor.extract(payload.image, payload.mime_type)
    status_code, body = result_to_body(result)
    return JSONResponse(status_code=status_code, content=body)
