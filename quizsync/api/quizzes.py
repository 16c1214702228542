"""
Quiz CRUD, attempt, merge and sync API endpoints
"""

from fastapi import APIRouter, Depends, Header, HTTPException, Response
from typing import List, Optional
import logging

from quizsync.errors import MergeError
from quizsync.schemas.quiz import (
    AttemptSubmission,
    MergeRequest,
    QuizAttempt,
    QuizCreate,
    QuizResponse,
    QuizUpdate,
    RecordError,
    SyncRequest,
    SyncResponse,
)
from quizsync.services.authorization_service import AuthorizationPolicy, get_authorization_policy
from quizsync.services.catalog_service import catalog_service
from quizsync.services.merge_service import merge_service
from quizsync.services.scoring_service import scoring_service
from quizsync.storage import QuizStore, get_quiz_store
from quizsync.utils.cache import cache_service


router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=List[QuizResponse])
async def list_quizzes(
    category: Optional[str] = None,
    q: Optional[str] = None,
    store: QuizStore = Depends(get_quiz_store),
):
    """
    List public quizzes

    - Optional exact category filter
    - Optional fuzzy search over title and description
    - Served from the Redis listing cache when available
    """

    cache_key = cache_service.listing_key(category, q)
    cached = cache_service.get(cache_key)
    if cached is not None:
        return cached

    quizzes = catalog_service.filter_quizzes(
        store.list_quizzes(public_only=True), category=category, query=q
    )
    cache_service.set(cache_key, quizzes)
    return quizzes


@router.post("/", response_model=QuizResponse, status_code=201)
async def create_quiz(quiz: QuizCreate, store: QuizStore = Depends(get_quiz_store)):
    """Create a quiz; a stable id is generated when none is supplied"""

    if quiz.id and store.get_quiz(quiz.id):
        raise HTTPException(status_code=409, detail="Quiz already exists")

    try:
        created = store.create_quiz(quiz.model_dump(mode="json"))
    except Exception as e:
        logger.error(f"Failed to create quiz: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to create quiz: {str(e)}")

    cache_service.invalidate_listings()
    return created


@router.post("/sync", response_model=SyncResponse)
async def sync_quizzes(request: SyncRequest, store: QuizStore = Depends(get_quiz_store)):
    """
    Sync quizzes from a device

    Last write wins per quiz id: the incoming record replaces the stored
    one when its version is equal or newer. Malformed records are reported
    and skipped without failing the batch. Returns all public quizzes.
    """

    try:
        result = store.sync_quizzes(request.quizzes)
    except Exception as e:
        logger.error(f"Failed to sync quizzes: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to sync quizzes: {str(e)}")

    if result.changed_ids:
        cache_service.invalidate_listings()

    return SyncResponse(
        quizzes=store.list_quizzes(public_only=True),
        created=result.created,
        updated=result.updated,
        skipped=result.skipped,
        errors=[RecordError(**error.to_dict()) for error in result.errors],
    )


@router.post("/merge", response_model=QuizResponse, status_code=201)
async def merge_quizzes(request: MergeRequest, store: QuizStore = Depends(get_quiz_store)):
    """Create a new private quiz holding the questions of the selected quizzes"""

    sources = []
    for quiz_id in request.quiz_ids:
        quiz = store.get_quiz(quiz_id)
        if not quiz:
            raise HTTPException(status_code=404, detail=f"Quiz {quiz_id} not found")
        sources.append(quiz)

    try:
        merged = merge_service.merge(sources, request.title, request.category)
    except MergeError as e:
        raise HTTPException(status_code=400, detail=str(e))

    created = store.create_quiz(merged)
    cache_service.invalidate_listings()
    return created


@router.get("/{quiz_id}", response_model=QuizResponse)
async def get_quiz(quiz_id: str, store: QuizStore = Depends(get_quiz_store)):
    """Get a quiz by its stable id"""

    quiz = store.get_quiz(quiz_id)
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return quiz


@router.put("/{quiz_id}", response_model=QuizResponse)
async def update_quiz(
    quiz_id: str,
    update: QuizUpdate,
    x_quiz_password: Optional[str] = Header(None),
    store: QuizStore = Depends(get_quiz_store),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
):
    """
    Update a quiz

    Password-protected quizzes need their own password or the master
    secret in the X-Quiz-Password header. Bumps the version by one.
    """

    quiz = store.get_quiz(quiz_id)
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")

    if not policy.can_edit(quiz, x_quiz_password):
        raise HTTPException(status_code=403, detail="The password you entered is incorrect")

    changes = update.model_dump(mode="json", exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No changes supplied")

    try:
        updated = store.update_quiz(quiz_id, changes)
    except Exception as e:
        logger.error(f"Failed to update quiz {quiz_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to update quiz: {str(e)}")

    cache_service.invalidate_listings()
    return updated


@router.delete("/{quiz_id}", status_code=204)
async def delete_quiz(
    quiz_id: str,
    x_quiz_password: Optional[str] = Header(None),
    store: QuizStore = Depends(get_quiz_store),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
):
    """Delete a quiz; requires the master secret"""

    if not store.get_quiz(quiz_id):
        raise HTTPException(status_code=404, detail="Quiz not found")

    if not policy.can_delete(x_quiz_password):
        raise HTTPException(status_code=403, detail="Incorrect password. Quiz deletion prevented.")

    store.delete_quiz(quiz_id)
    cache_service.invalidate_listings()
    return Response(status_code=204)


@router.post("/{quiz_id}/attempts", response_model=QuizAttempt, status_code=201)
async def submit_attempt(
    quiz_id: str,
    submission: AttemptSubmission,
    store: QuizStore = Depends(get_quiz_store),
):
    """
    Score a quiz run and record it in the quiz history

    Unanswered questions count as wrong; time spent is clamped to the timer.
    """

    quiz = store.get_quiz(quiz_id)
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")

    attempt = scoring_service.score_attempt(quiz, submission.answers, submission.time_spent)

    try:
        store.update_quiz(
            quiz_id,
            {
                "history": list(quiz.get("history") or []) + [attempt],
                "last_taken": attempt["date"],
            },
        )
    except Exception as e:
        logger.error(f"Failed to record attempt on {quiz_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to record attempt: {str(e)}")

    cache_service.invalidate_listings()
    logger.info(f"Attempt recorded on {quiz_id}: {attempt['score']}/{attempt['total_questions']}")
    return attempt
