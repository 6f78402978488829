from pathlib import PurePath
from typing import Any

import structlog
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.engine import Engine

from charity_hub.config import MAX_UPLOAD_BYTES
from charity_hub.db.readers.documents import get_document, list_user_documents
from charity_hub.db.writers.documents import insert_document
from charity_hub.dependencies import get_current_user, get_db_engine, get_upload_storage
from charity_hub.errors import InvalidInputError, NotFoundError
from charity_hub.routes._helpers import require_owner_or_admin
from charity_hub.services.storage import FileTooLargeError, LocalFileStorage
from charity_hub.utils.serialize import serialize_row

logger = structlog.get_logger(__name__)
router = APIRouter()

ALLOWED_EXTENSIONS = ("pdf", "png", "jpg", "jpeg", "doc", "docx")


@router.post("/documents", status_code=status.HTTP_201_CREATED)
def upload_document(
    document_type: str = Form(..., alias="type", min_length=1, max_length=50),
    file: UploadFile = File(...),
    user: dict[str, Any] = Depends(get_current_user),
    db_engine: Engine = Depends(get_db_engine),
    storage: LocalFileStorage = Depends(get_upload_storage),
) -> dict[str, Any]:
    """
    Upload a document for the current user.

    Args:
        document_type: Kind of document, e.g. id, dbs_check
        file: pdf, png, jpg, jpeg, doc or docx up to ``MAX_UPLOAD_BYTES``

    Returns:
        dict: Confirmation message and the document id
    """
    original_name = PurePath(file.filename or "").name
    extension = original_name.rsplit(".", 1)[-1].lower() if "." in original_name else ""
    if extension not in ALLOWED_EXTENSIONS:
        raise InvalidInputError(
            f"file type not allowed, use one of: {', '.join(ALLOWED_EXTENSIONS)}"
        )

    try:
        storage_path, size = storage.save(file.file, extension, MAX_UPLOAD_BYTES)
    except FileTooLargeError as e:
        raise InvalidInputError(str(e))

    try:
        with db_engine.begin() as conn:
            document_id = insert_document(
                conn,
                {
                    "owner_id": user["id"],
                    "document_type": document_type,
                    "original_name": original_name,
                    "storage_path": storage_path,
                    "content_type": file.content_type,
                    "size_bytes": size,
                    "status": "pending",
                },
            )
    except Exception as e:
        logger.exception("document_upload_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")

    logger.info("document_uploaded", document_id=document_id, size_bytes=size)
    return {"message": "Document uploaded", "document_id": document_id}


@router.get("/documents")
def get_my_documents(
    user: dict[str, Any] = Depends(get_current_user),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    with db_engine.connect() as conn:
        rows = list_user_documents(conn, user["id"])
    return {
        "documents": [serialize_row(r, exclude=("storage_path",)) for r in rows],
        "total": len(rows),
    }


@router.get("/documents/{document_id}/download")
def download_document(
    document_id: int,
    user: dict[str, Any] = Depends(get_current_user),
    db_engine: Engine = Depends(get_db_engine),
    storage: LocalFileStorage = Depends(get_upload_storage),
) -> FileResponse:
    with db_engine.connect() as conn:
        document = get_document(conn, document_id)
    if document is None:
        raise NotFoundError("Document not found")
    require_owner_or_admin(user, document["owner_id"])

    try:
        path = storage.path_for(document["storage_path"])
    except FileNotFoundError:
        logger.error("document_file_missing", document_id=document_id)
        raise NotFoundError("Document file not found")

    return FileResponse(
        path,
        media_type=document["content_type"] or "application/octet-stream",
        filename=document["original_name"],
    )
