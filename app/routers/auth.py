"""
Auth router — Current user profile.

Sign-in itself happens against Firebase (or a mock-{email} token in mock
mode); this service only resolves who the caller is.
"""

from fastapi import APIRouter, Depends
from app.core.security import get_current_user, resolve_identity
from app.utils.response import success_response

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.get("/me")
async def get_me(user: dict = Depends(get_current_user)):
    """Return current authenticated user profile with teacher/student id."""
    return success_response(data=resolve_identity(user))
