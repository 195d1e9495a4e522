import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.errors import ApiError
from app.services.document_extraction import DocumentExtractionService, get_document_extraction_service
from app.services.document_source import DocumentFetchError

logger = logging.getLogger(__name__)
router = APIRouter()


class ExtractRequest(BaseModel):
    url: Optional[str] = None
    path: Optional[str] = None
    docType: Optional[str] = None


@router.post("/extract")
async def extract_document_data(
    request: ExtractRequest,
    service: DocumentExtractionService = Depends(get_document_extraction_service),
):
    """Extract the amount (and name/DOB for government IDs) from an uploaded document."""
    url = (request.url or "").strip() or None
    path = (request.path or "").strip() or None
    if not url and not path:
        raise ApiError(400, "Provide a url or storage path", code="invalid-argument")

    try:
        result = await service.extract(url=url, path=path, doc_type=request.docType)
    except DocumentFetchError as e:
        logger.error(f"Document fetch failed: {e}")
        raise ApiError(503, "Could not fetch document", code="unavailable")
    except Exception:
        logger.exception("Document extraction failed")
        raise ApiError(500, "Document extraction failed", code="internal")

    return result.to_dict()
