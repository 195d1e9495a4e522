import io

import httpx
import pytest
from pypdf import PdfWriter

from app.main import app
from app.services.document_extraction import (
    DocumentExtractionService,
    ExtractionResult,
    get_document_extraction_service,
    is_government_id,
)
from app.services.document_source import DocumentFetchError, DocumentSource, FetchedDocument
from app.services.sniffing import DocumentFormat
from app.services.text_extraction import TextExtractor

ID_TEXT = "NAME: JANE DOE DOB: 02/03/1990 Pre-approval amount $450,000"


class FakeSource:
    def __init__(self, document):
        self.document = document

    async def resolve(self, url=None, path=None):
        return self.document


class FakeTextExtractor:
    def __init__(self, text):
        self.text = text
        self.formats = []

    async def extract(self, data, fmt):
        self.formats.append(fmt)
        return self.text


class FailingStorage:
    def read(self, path):
        raise RuntimeError("object not found")


class FakeOcr:
    def __init__(self, fail=False):
        self.fail = fail

    async def ocr_image(self, data):
        if self.fail:
            raise RuntimeError("ollama offline")
        return "  Approved   for\n$80,000 "

    async def ocr_pages(self, images):
        return ""


def test_is_government_id():
    assert is_government_id("government_id")
    assert is_government_id("Drivers-License")
    assert not is_government_id("pre_approval")
    assert not is_government_id(None)


async def test_government_id_gets_name_and_dob():
    document = FetchedDocument(data=b"%PDF-1.4 ...", content_type="image/png", url="https://x/id.png")
    text_extractor = FakeTextExtractor(ID_TEXT)
    service = DocumentExtractionService(FakeSource(document), text_extractor)

    result = await service.extract(url="https://x/id.png", doc_type="government_id")

    assert text_extractor.formats == [DocumentFormat.PDF]
    assert result.to_dict() == {"amount": 450000, "extractedName": "Jane Doe", "extractedDob": "02/03/1990"}


async def test_other_documents_only_get_amount():
    document = FetchedDocument(data=b"\x89PNG\r\n\x1a\n....", content_type=None)
    service = DocumentExtractionService(FakeSource(document), FakeTextExtractor(ID_TEXT))

    result = await service.extract(path="users/u1/letter.png", doc_type="pre_approval")

    assert result.to_dict() == {"amount": 450000, "extractedName": None, "extractedDob": None}


async def test_unreadable_document_yields_nulls():
    document = FetchedDocument(data=b"\x00\x01", content_type="application/octet-stream")
    service = DocumentExtractionService(FakeSource(document), TextExtractor(FakeOcr()))

    result = await service.extract(url="https://x/blob")

    assert result.to_dict() == {"amount": None, "extractedName": None, "extractedDob": None}


async def test_image_ocr_text_is_normalized():
    extractor = TextExtractor(FakeOcr())

    assert await extractor.extract(b"...", DocumentFormat.IMAGE) == "Approved for $80,000"


async def test_image_ocr_failure_degrades_to_empty_text():
    extractor = TextExtractor(FakeOcr(fail=True))

    assert await extractor.extract(b"...", DocumentFormat.IMAGE) == ""


async def test_pdf_without_text_layer_degrades_to_empty_text():
    writer = PdfWriter()
    writer.add_blank_page(width=72, height=72)
    buffer = io.BytesIO()
    writer.write(buffer)

    extractor = TextExtractor(FakeOcr())

    assert await extractor.extract(buffer.getvalue(), DocumentFormat.PDF) == ""


async def test_source_falls_back_to_url_when_storage_fails():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, content=b"%PDF-1.4", headers={"content-type": "application/pdf"})
    )
    async with httpx.AsyncClient(transport=transport) as http:
        source = DocumentSource(http, FailingStorage())
        document = await source.resolve(url="https://files.example.com/a.pdf", path="users/u1/a.pdf")

    assert document.data == b"%PDF-1.4"
    assert document.content_type == "application/pdf"


async def test_source_raises_when_nothing_can_be_fetched():
    transport = httpx.MockTransport(lambda request: httpx.Response(404))
    async with httpx.AsyncClient(transport=transport) as http:
        source = DocumentSource(http, FailingStorage())
        with pytest.raises(DocumentFetchError):
            await source.resolve(path="users/u1/a.pdf")
        with pytest.raises(DocumentFetchError):
            await source.resolve(url="https://files.example.com/missing.pdf")
        with pytest.raises(ValueError):
            await source.resolve()


class StubService:
    def __init__(self, error=None):
        self.error = error

    async def extract(self, url=None, path=None, doc_type=None):
        if self.error:
            raise self.error
        return ExtractionResult(amount=125000)


def test_extract_endpoint_requires_a_location(client):
    app.dependency_overrides[get_document_extraction_service] = lambda: StubService()

    response = client.post("/api/documents/extract", json={"url": "  ", "docType": "government_id"})

    assert response.status_code == 400
    assert response.json() == {"error": "Provide a url or storage path", "code": "invalid-argument"}


def test_extract_endpoint_returns_result(client):
    app.dependency_overrides[get_document_extraction_service] = lambda: StubService()

    response = client.post("/api/documents/extract", json={"url": "https://x/letter.pdf"})

    assert response.status_code == 200
    assert response.json() == {"amount": 125000, "extractedName": None, "extractedDob": None}


def test_extract_endpoint_fetch_failure(client):
    app.dependency_overrides[get_document_extraction_service] = lambda: StubService(DocumentFetchError("404"))

    response = client.post("/api/documents/extract", json={"path": "users/u1/a.pdf"})

    assert response.status_code == 503
    assert response.json() == {"error": "Could not fetch document", "code": "unavailable"}


def test_extract_endpoint_internal_failure(client):
    app.dependency_overrides[get_document_extraction_service] = lambda: StubService(ValueError("bad xref"))

    response = client.post("/api/documents/extract", json={"path": "users/u1/a.pdf"})

    assert response.status_code == 500
    assert response.json() == {"error": "Document extraction failed", "code": "internal"}
