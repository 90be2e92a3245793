# ocrsearch/interface/api.py

import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ocrsearch.bootstrap import Services
from ocrsearch.domain.errors import (
    EmptyKeywordError,
    SearchUnavailableError,
    StoreUnavailableError,
)
from ocrsearch.domain.models import IngestionStatus, Record


STATUS_CODES = {
    IngestionStatus.INDEXED:           201,
    IngestionStatus.INDEXING_DEGRADED: 201,
    IngestionStatus.DUPLICATE_SKIPPED: 409,
    IngestionStatus.NO_READABLE_TEXT:  422,
    IngestionStatus.FILE_ERROR:        400,
    IngestionStatus.STORAGE_FAILURE:   503,
}


# ── API Models ───────────────────────────────────────────────────────────────
class RecordSchema(BaseModel):
    id: int
    filename: str
    text: str
    confidence: float
    upload_time: datetime

    @classmethod
    def from_record(cls, record: Record) -> "RecordSchema":
        return cls(
            id=record.id,
            filename=record.filename,
            text=record.text,
            confidence=record.confidence,
            upload_time=record.upload_time,
        )


class IngestionResponse(BaseModel):
    status: str
    filename: str
    message: str
    record_id: Optional[int] = None
    confidence: Optional[float] = None
    preview: Optional[str] = None
    warning: Optional[str] = None


class HitSchema(BaseModel):
    record_id: int
    filename: str
    score: float
    snippet: str


class SearchResponse(BaseModel):
    query: str
    total: int
    hits: List[HitSchema]
    skipped: int = 0


class ReindexResponse(BaseModel):
    indexed: int
    failed: int
    failures: List[str]


def create_app(services: Services) -> FastAPI:
    app = FastAPI(
        title="OCR Document Search API",
        description="Upload scanned documents, then find them again by keyword.",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:8080", "http://127.0.0.1:8080"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Endpoints ────────────────────────────────────────────────────────────
    @app.get("/")
    def read_root():
        return {
            "message": "OCR Document Search API is running.",
            "index_name": getattr(services.search_index, "index_name", None),
        }

    @app.post("/documents", response_model=IngestionResponse)
    def upload_document(file: UploadFile = File(...)):
        """OCR, store and index one uploaded file."""
        filename = Path(file.filename or "").name
        if not filename:
            raise HTTPException(status_code=400, detail="Uploaded file has no name.")

        # Keep the original base name: it is the record's filename.
        with tempfile.TemporaryDirectory() as workdir:
            file_path = Path(workdir) / filename
            with open(file_path, "wb") as buffer:
                shutil.copyfileobj(file.file, buffer)
            report = services.ingestion.submit(str(file_path))

        record = report.record
        body = IngestionResponse(
            status=report.status.value,
            filename=report.filename,
            message=report.message,
            record_id=record.id if record else None,
            confidence=record.confidence if record else None,
            preview=report.preview or None,
            warning=report.warning,
        )
        return JSONResponse(status_code=STATUS_CODES[report.status], content=body.model_dump())

    @app.get("/documents", response_model=List[RecordSchema])
    def list_documents():
        """Every stored document, most recent first."""
        try:
            records = services.record_store.list_all()
        except StoreUnavailableError as e:
            raise HTTPException(status_code=503, detail=str(e))
        return [RecordSchema.from_record(r) for r in records]

    @app.get("/search", response_model=SearchResponse)
    def search(q: str = Query("", description="Keyword for full-text search")):
        try:
            results = services.query.search(q)
        except EmptyKeywordError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except SearchUnavailableError as e:
            raise HTTPException(status_code=503, detail=str(e))

        return SearchResponse(
            query=results.keyword,
            total=results.total,
            hits=[
                HitSchema(
                    record_id=h.record_id,
                    filename=h.filename,
                    score=round(h.score, 4),
                    snippet=h.snippet,
                )
                for h in results.hits
            ],
            skipped=results.skipped,
        )

    @app.post("/reindex", response_model=ReindexResponse)
    def reindex():
        """Write every stored document into the search index again."""
        try:
            report = services.ingestion.reindex_all()
        except StoreUnavailableError as e:
            print(f"[API] Re-indexing failed: {e}")
            raise HTTPException(status_code=503, detail=f"Re-indexing failed: {e}")
        return ReindexResponse(
            indexed=report.indexed,
            failed=report.failed,
            failures=report.failures,
        )

    return app
