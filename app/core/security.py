"""
Security module — Firebase JWT verification + Mock auth + Role guard + is_active enforcement.

Auth Flow:
1. User logs in via Firebase → gets JWT
2. Frontend sends JWT to FastAPI
3. FastAPI verifies JWT using Firebase Admin SDK
4. Backend fetches the profile from Supabase (by firebase_uid)
5. Backend checks: is profile.is_active?
6. Backend injects: user_id, role, and the teacher/student record id
7. Services receive the resolved teacher_id / student_id only

Unknown Firebase UIDs are rejected.
"""

import logging
import os
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from app.core.config import settings
from app.core.database import get_supabase, fetch_one
from app.core.exceptions import NotFound, StoreUnavailable

logger = logging.getLogger(__name__)

security_scheme = HTTPBearer()

# ---------------------------------------------------------------------------
# Firebase initialization (lazy)
# ---------------------------------------------------------------------------
_firebase_app = None


def _init_firebase():
    global _firebase_app
    if _firebase_app is not None:
        return
    import firebase_admin
    from firebase_admin import credentials as fb_credentials

    cred_path = settings.FIREBASE_CREDENTIALS_PATH
    if os.path.exists(cred_path):
        cred = fb_credentials.Certificate(cred_path)
        _firebase_app = firebase_admin.initialize_app(cred)
    else:
        # Try default credentials
        _firebase_app = firebase_admin.initialize_app()


# ---------------------------------------------------------------------------
# Mock users (local development without Firebase)
# ---------------------------------------------------------------------------
MOCK_USERS = {
    "admin-token": {
        "uid": "admin-firebase-uid",
        "email": "admin@school.local",
        "role": "admin",
        "name": "School Admin",
        "user_id": "a0000000-0000-0000-0000-000000000001",
    },
}


def _profile_to_user(profile: dict, uid: str) -> dict:
    if not profile.get("is_active", True):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been deactivated. Contact your school admin.",
        )
    return {
        "uid": uid,
        "email": profile.get("email", ""),
        "role": profile["role"],
        "name": profile.get("full_name", ""),
        "user_id": profile["id"],
    }


# ---------------------------------------------------------------------------
# Token verification — the core auth function
# ---------------------------------------------------------------------------
async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security_scheme),
) -> dict:
    """
    Validate the Bearer token and return user dict.
    Only profiles already registered in Supabase can authenticate.
    """
    token = credentials.credentials

    if settings.AUTH_MODE == "mock":
        return await _mock_auth(token)

    return await _firebase_auth(token)


async def _mock_auth(token: str) -> dict:
    """Mock mode: look up token in MOCK_USERS dict or try DB lookup."""
    user = MOCK_USERS.get(token)
    if user:
        return user

    # Email-based token: "mock-email@example.com"
    if token.startswith("mock-"):
        email = token[5:]
        db = get_supabase()
        profile = fetch_one(
            db.table("profiles")
            .select("*")
            .eq("email", email)
            .maybe_single()
        )
        if profile:
            return _profile_to_user(profile, profile.get("firebase_uid") or profile["id"])

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid token. Only registered school users can login.",
    )


async def _firebase_auth(token: str) -> dict:
    """Firebase mode: verify JWT, fetch profile from Supabase, enforce is_active."""
    _init_firebase()
    from firebase_admin import auth as fb_auth

    try:
        decoded = fb_auth.verify_id_token(token)
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired Firebase token",
        )

    uid = decoded["uid"]

    db = get_supabase()
    profile = fetch_one(
        db.table("profiles")
        .select("*")
        .eq("firebase_uid", uid)
        .maybe_single()
    )

    if not profile:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not registered in this school. Contact your school admin.",
        )

    user = _profile_to_user(profile, uid)
    if not user["email"]:
        user["email"] = decoded.get("email", "")
    return user


# ---------------------------------------------------------------------------
# Role guard dependency
# ---------------------------------------------------------------------------
def require_role(allowed_roles: list[str]):
    """
    Usage:
        @router.get("/admin-only")
        async def endpoint(user=Depends(require_role(["admin"]))):
    """

    async def role_checker(
        user: dict = Depends(get_current_user),
    ) -> dict:
        if user["role"] not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{user['role']}' not authorized. Required: {allowed_roles}",
            )
        return user

    return role_checker


# ---------------------------------------------------------------------------
# Role record resolution (profiles.id -> teachers.id / students.id)
# ---------------------------------------------------------------------------
def _role_record_id(table: str, user_id: str) -> str | None:
    db = get_supabase()
    row = fetch_one(
        db.table(table)
        .select("id")
        .eq("user_id", user_id)
        .maybe_single()
    )
    return row["id"] if row else None


async def current_teacher(user: dict = Depends(require_role(["teacher"]))) -> dict:
    """Caller's user dict with `teacher_id` filled in."""
    teacher_id = _role_record_id("teachers", user["user_id"])
    if not teacher_id:
        raise NotFound("Teacher not found")
    return {**user, "teacher_id": teacher_id}


async def current_student(user: dict = Depends(require_role(["student"]))) -> dict:
    """Caller's user dict with `student_id` filled in."""
    student_id = _role_record_id("students", user["user_id"])
    if not student_id:
        raise NotFound("Student not found")
    return {**user, "student_id": student_id}


def resolve_identity(user: dict) -> dict:
    """Attach the teacher/student record id for /me, tolerating a missing record."""
    identity = dict(user)
    table = {"teacher": "teachers", "student": "students"}.get(user["role"])
    if table:
        try:
            identity[f"{user['role']}_id"] = _role_record_id(table, user["user_id"])
        except StoreUnavailable:
            logger.warning("Could not resolve %s record for user %s", user["role"], user["user_id"])
            identity[f"{user['role']}_id"] = None
    return identity
