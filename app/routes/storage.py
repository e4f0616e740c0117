"""
Media location authorization endpoint consulted by the blob store.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from feedgate.context import AuthContext
from feedgate.policy import Operation
from feedgate.storage_policy import authorize_object
from app.deps import get_auth_context


router = APIRouter(prefix="/storage", tags=["storage"])


@router.get("/authorize")
async def authorize(
    bucket: str,
    key: str,
    operation: str = "read",
    auth: AuthContext = Depends(get_auth_context),
):
    try:
        op = Operation(operation.strip().lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown operation: {operation}",
        )

    decision = authorize_object(bucket, key, op, auth.user_id)
    result = {
        "bucket": bucket,
        "key": key,
        "operation": op.value,
        "decision": decision.value,
    }
    if not decision.allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=result)
    return result
