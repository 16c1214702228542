"""
Quiz import and export API endpoints
"""
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from typing import List, Optional
import logging

from quizsync.config import settings
from quizsync.errors import ImportFormatError
from quizsync.schemas.quiz import ExportResponse, ImportRequest, RecordError, SyncResponse
from quizsync.services.transfer_service import transfer_service
from quizsync.storage import QuizStore, get_quiz_store
from quizsync.utils.cache import cache_service

router = APIRouter(prefix="/api/quizzes", tags=["transfer"])
logger = logging.getLogger(__name__)


def _import(text: str, store: QuizStore) -> SyncResponse:
    try:
        records = transfer_service.parse_import(text)
    except ImportFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        result = store.sync_quizzes(records)
    except Exception as e:
        logger.error(f"Failed to import quizzes: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to import quizzes: {str(e)}")

    if result.changed_ids:
        cache_service.invalidate_listings()

    merged = result.by_id()
    return SyncResponse(
        quizzes=[merged[quiz_id] for quiz_id in result.changed_ids],
        created=result.created,
        updated=result.updated,
        skipped=result.skipped,
        errors=[RecordError(**error.to_dict()) for error in result.errors],
    )


@router.post("/import", response_model=SyncResponse)
async def import_quizzes(request: ImportRequest, store: QuizStore = Depends(get_quiz_store)):
    """
    Import pasted quiz text

    - Plain JSON or obfuscated export text
    - A single quiz or a list of quizzes
    - Reconciled by quiz id and version like a sync
    """
    return _import(request.text, store)


@router.post("/import/file", response_model=SyncResponse)
async def import_quiz_file(
    file: UploadFile = File(...),
    store: QuizStore = Depends(get_quiz_store),
):
    """Import an uploaded export file"""

    content = await file.read()
    if len(content) > settings.MAX_IMPORT_BYTES:
        raise HTTPException(status_code=413, detail="Import file is too large")

    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="Import file must be UTF-8 text")

    logger.info(f"Importing quiz file: {file.filename} ({len(content)} bytes)")
    return _import(text, store)


@router.get("/export", response_model=ExportResponse)
async def export_quizzes(
    ids: Optional[List[str]] = Query(None),
    encode: bool = True,
    store: QuizStore = Depends(get_quiz_store),
):
    """
    Export public quizzes as text for download or sharing

    Encoding is obfuscation only and does not protect the content.
    """
    quizzes = store.list_quizzes(public_only=True)
    if ids:
        known = {quiz["id"] for quiz in quizzes}
        missing = [quiz_id for quiz_id in ids if quiz_id not in known]
        if missing:
            raise HTTPException(status_code=404, detail=f"Quizzes not found: {', '.join(missing)}")

    content = transfer_service.build_export(quizzes, ids=ids, encode=encode)
    count = len(set(ids)) if ids else len(quizzes)
    return ExportResponse(content=content, encoded=encode, count=count)
