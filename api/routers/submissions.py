"""
Submissions Router - Endpoint for viewing a single submission.

Endpoints:
- GET /api/submissions/{id} - Submission detail (code + results), owner or admin only
"""

from fastapi import APIRouter, Depends, HTTPException

from app.auth import get_current_user
from app.deps import get_store
from domain.records import UserRecord
from domain.repository import RecordStore

router = APIRouter(prefix="/api/submissions", tags=["submissions"])


@router.get("/{submission_id}")
def get_submission(
    submission_id: str,
    store: RecordStore = Depends(get_store),
    user: UserRecord = Depends(get_current_user),
):
    submission = store.get_submission(submission_id)
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")
    if submission.user_id != user.id and not user.is_admin:
        raise HTTPException(status_code=403, detail="Not allowed to view this submission")
    return submission.to_dict(include_code=True)


__all__ = ["router"]
