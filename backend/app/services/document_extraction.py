"""Document data extraction: amount for financial letters, name/DOB for IDs."""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import Depends

from app.config import Settings, get_settings
from app.services.amounts import AmountHeuristic, amount_candidates
from app.services.document_source import DocumentSource, get_storage_reader
from app.services.identity import parse_dob, parse_name
from app.services.sniffing import classify_document
from app.services.text_extraction import TextExtractor, get_text_extractor
from app.services.upstream import get_http_client

logger = logging.getLogger(__name__)

GOVERNMENT_ID_TYPES = {"government_id", "governmentid", "id", "drivers_license", "driverslicense", "passport"}


def is_government_id(doc_type: Optional[str]) -> bool:
    if not doc_type:
        return False
    return doc_type.strip().lower().replace("-", "_") in GOVERNMENT_ID_TYPES


@dataclass
class ExtractionResult:
    amount: Optional[int] = None
    extracted_name: Optional[str] = None
    extracted_dob: Optional[str] = None

    def to_dict(self):
        return {
            "amount": self.amount,
            "extractedName": self.extracted_name,
            "extractedDob": self.extracted_dob,
        }


class DocumentExtractionService:
    """Fetch, classify, extract text, then run the heuristics. Holds no state."""

    def __init__(self, source: DocumentSource, text_extractor: TextExtractor, amounts: AmountHeuristic = None):
        self.source = source
        self.text_extractor = text_extractor
        self.amounts = amounts or AmountHeuristic()

    async def extract(
        self,
        url: Optional[str] = None,
        path: Optional[str] = None,
        doc_type: Optional[str] = None,
    ) -> ExtractionResult:
        document = await self.source.resolve(url=url, path=path)
        fmt = classify_document(document.data, document.content_type, document.url or url)
        logger.info(f"Extracting {fmt.value} document ({len(document.data)} bytes, docType={doc_type})")

        text = await self.text_extractor.extract(document.data, fmt)
        result = ExtractionResult(amount=self.amounts.best(text))
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Amount candidates: {amount_candidates(text)}")

        if is_government_id(doc_type):
            result.extracted_name = parse_name(text)
            result.extracted_dob = parse_dob(text)
        return result


def get_document_extraction_service(
    settings: Settings = Depends(get_settings),
    http: httpx.AsyncClient = Depends(get_http_client),
) -> DocumentExtractionService:
    """Dependency to get a configured extraction service."""
    source = DocumentSource(http, get_storage_reader(settings))
    return DocumentExtractionService(source, get_text_extractor(settings))
