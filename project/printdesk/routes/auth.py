# printdesk/routes/auth.py

from datetime import timedelta
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm

from printdesk.config import settings
from printdesk.schemas.user import UserCreate, UserUpdate, UserResponse
from printdesk.services.profile import (
    create_user_service,
    read_users_service,
    read_user_service,
    read_user_by_login_service,
    update_user_service,
    delete_user_service,
)
from printdesk.utils.security import (
    TokenError,
    create_access_token,
    decode_access_token,
    verify_password,
)

router = APIRouter()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def bearer_token(request: Request) -> str:
    """Token from 'Authorization: Bearer <token>', or '' when absent."""
    header = request.headers.get("Authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


async def authenticate(token: str, request: Request):
    """
    Resolves a bearer token to the staff user.

    :raises TokenError: missing/expired/invalid token or unknown user
    """
    log = getattr(request.app.state, "log", None)
    try:
        login = decode_access_token(token)
    except TokenError as e:
        if log:
            await log.log_warning("auth", f"Token rejected: {e}")
        raise

    user = await read_user_by_login_service(login, request)
    if user is None:
        raise TokenError("User not found")
    return user


async def get_current_user(request: Request, token: str = Depends(oauth2_scheme)):
    """
    Checks the JWT and returns the user.

    **Statuses:**
    - 200 OK – token is valid
    - 401 Unauthorized – token missing, expired, invalid, or user unknown
    """
    try:
        return await authenticate(token, request)
    except TokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_admin_user(current_user=Depends(get_current_user)):
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return current_user


# ────────────── TOKEN ──────────────
@router.post(
    "/token",
    summary="Get a JWT token (staff login)",
    responses={
        200: {
            "description": "Token issued. Returns access_token, token_type and the user.",
            "content": {
                "application/json": {
                    "example": {
                        "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                        "token_type": "bearer",
                        "user": {"id": 1, "name": "Administrator", "login": "admin", "is_admin": True},
                    }
                }
            },
        },
        401: {"description": "Wrong login or password"},
        422: {"description": "Empty username or password"},
    },
)
async def login_for_access_token(request: Request, form_data: OAuth2PasswordRequestForm = Depends()):
    """
    Checks login and password and returns a bearer token.

    **Input (form-data):** `username`, `password`

    **Output:** `access_token`, `token_type` (always `"bearer"`) and `user`
    (`id`, `name`, `login`, `is_admin`).
    """
    log = request.app.state.log

    user = await read_user_by_login_service(form_data.username, request)
    if not user or not verify_password(form_data.password, user.password or ""):
        await log.log_warning("auth", "Failed login attempt", {"username": form_data.username})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Wrong login or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(
        data={"sub": user.login},
        expires_delta=timedelta(minutes=settings.AUTH_TOKEN_EXPIRE_MINUTES),
    )
    await log.log_info("auth", "User logged in", {"login": user.login})

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": {"id": user.id, "name": user.name, "login": user.login, "is_admin": user.is_admin},
    }


@router.get("/me", response_model=UserResponse, summary="Current user")
async def read_me(current_user=Depends(get_current_user)):
    return current_user


# ────────────── USERS (admin) ──────────────

@router.post(
    "/users",
    response_model=UserResponse,
    status_code=201,
    summary="Create a staff account (admin only)",
    responses={
        201: {"description": "User created"},
        401: {"description": "Missing or invalid token"},
        403: {"description": "Not an administrator"},
        409: {"description": "Login already taken"},
    },
)
async def create_user(user: UserCreate, request: Request, _=Depends(get_admin_user)):
    return await create_user_service(user, request)


@router.get("/users", response_model=List[UserResponse], summary="List staff accounts (admin only)")
async def get_users(request: Request, skip: int = 0, limit: int = 100, _=Depends(get_admin_user)):
    return await read_users_service(request, skip, limit)


@router.get("/users/{user_id}", response_model=UserResponse, summary="Get a staff account")
async def get_user(user_id: int, request: Request, current_user=Depends(get_current_user)):
    if not current_user.is_admin and user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Access denied")
    return await read_user_service(user_id, request)


@router.put(
    "/users/{user_id}",
    response_model=UserResponse,
    summary="Update a staff account",
    responses={
        403: {"description": "Staff may only edit themselves and cannot change is_admin"},
        404: {"description": "User not found"},
        409: {"description": "Login already taken"},
    },
)
async def update_user(user_id: int, user_update: UserUpdate, request: Request, current_user=Depends(get_current_user)):
    """
    - An administrator can edit anyone, including `is_admin`.
    - Other staff can edit only themselves and cannot change `is_admin`.
    """
    if not current_user.is_admin:
        if user_id != current_user.id:
            raise HTTPException(status_code=403, detail="Staff can only edit their own account")
        if user_update.is_admin:
            raise HTTPException(status_code=403, detail="Staff cannot change is_admin")
    return await update_user_service(user_id, user_update, request)


@router.delete("/users/{user_id}", summary="Delete a staff account (admin only)")
async def delete_user(user_id: int, request: Request, current_user=Depends(get_admin_user)):
    if user_id == current_user.id:
        raise HTTPException(status_code=400, detail="Administrators cannot delete themselves")
    await delete_user_service(user_id, request)
    return {"detail": "User deleted"}
