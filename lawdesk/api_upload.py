"""
Document & Arguments API Endpoints
==================================

FastAPI router for case documents and their extracted arguments.

- POST   /upload                    multipart: document, caseId, tags
- GET    /documents?caseId=
- DELETE /documents?caseId=&fileName=
- GET    /uploads/{caseId}/{fileName}
- GET    /get-case-arguments?caseId=
- DELETE /delete-case-arguments?caseId=
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from .ai.enrichment_client import EnrichmentClient, get_enrichment_client
from .auth import AuthContext, get_auth_context
from .db.session import get_db
from .enrichment import CaseArgumentsService
from .errors import ValidationError
from .schemas import envelope
from .storage import CaseDocumentStore, get_document_store, read_limited

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Documents"])


# =============================================================================
# DOCUMENTS
# =============================================================================

@router.post("/upload", status_code=201)
async def upload_document(
    document: Optional[UploadFile] = File(default=None),
    caseId: Optional[str] = Form(default=None),
    tags: Optional[str] = Form(default=None),
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
    store: CaseDocumentStore = Depends(get_document_store),
):
    """
    Upload a document to a case.

    Supports: PDF, DOC, DOCX, TXT. Tags are comma separated and appended to
    the case's tag list.
    """
    if document is None:
        raise ValidationError("No file uploaded")

    data = await read_limited(document, store.max_bytes)
    result = await store.upload(db, caseId, document.filename, data, tags)
    logger.info(f"User {auth.user_id} uploaded {result['fileName']} to case {result['caseId']}")
    return envelope("File uploaded successfully", result)


@router.get("/documents")
async def list_documents(
    request: Request,
    caseId: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
    store: CaseDocumentStore = Depends(get_document_store),
):
    """List a case's documents with download URLs and tags"""
    result = store.list(db, caseId, str(request.base_url))
    return envelope("Documents fetched successfully", result)


@router.delete("/documents")
async def delete_document(
    caseId: Optional[str] = Query(default=None),
    fileName: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
    store: CaseDocumentStore = Depends(get_document_store),
):
    result = await store.delete(db, caseId, fileName)
    logger.info(f"User {auth.user_id} deleted {fileName} from case {caseId}")
    return envelope("File deleted successfully", result)


@router.get("/uploads/{case_id}/{file_name}")
async def download_document(
    case_id: str,
    file_name: str,
    auth: AuthContext = Depends(get_auth_context),
    store: CaseDocumentStore = Depends(get_document_store),
):
    """Download a stored document (target of the public URL)"""
    path = store.resolve(case_id, file_name)
    return FileResponse(str(path), filename=file_name)


# =============================================================================
# CASE ARGUMENTS
# =============================================================================

@router.get("/get-case-arguments")
async def get_case_arguments(
    caseId: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
    store: CaseDocumentStore = Depends(get_document_store),
    client: EnrichmentClient = Depends(get_enrichment_client),
):
    """
    Arguments extracted from the case's documents.

    Served from the stored copy when one exists; otherwise the documents are
    sent to the extraction service once and the answer is stored.
    """
    service = CaseArgumentsService(db, store=store, client=client)
    result = await service.get_arguments(caseId)
    return envelope("Arguments fetched successfully", result)


@router.delete("/delete-case-arguments")
async def delete_case_arguments(
    caseId: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
    store: CaseDocumentStore = Depends(get_document_store),
    client: EnrichmentClient = Depends(get_enrichment_client),
):
    service = CaseArgumentsService(db, store=store, client=client)
    result = service.delete_arguments(caseId)
    return envelope("Arguments deleted successfully", result)
