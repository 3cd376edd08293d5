# printdesk/services/profile.py

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select
from fastapi import HTTPException, Request

from printdesk.models.user import User as UserModel
from printdesk.schemas.user import UserCreate, UserUpdate
from printdesk.utils.security import hash_password


async def read_users_service(request: Request, skip: int = 0, limit: int = 100) -> list[UserModel]:
    """
    Staff accounts, oldest first.
    """
    db = request.state.db
    log = request.app.state.log

    result = await db.execute(select(UserModel).order_by(UserModel.id).offset(skip).limit(limit))
    users = result.scalars().all()

    await log.log_info("auth", f"{len(users)} users loaded")
    return users


async def read_user_by_login_service(login: str, request: Request) -> Optional[UserModel]:
    db = request.state.db
    result = await db.execute(select(UserModel).where(UserModel.login == login))
    return result.scalar_one_or_none()


async def read_user_service(id: int, request: Request) -> UserModel:
    db = request.state.db
    log = request.app.state.log

    result = await db.execute(select(UserModel).where(UserModel.id == id))
    db_user = result.scalar_one_or_none()
    if db_user is None:
        await log.log_error("auth", "User not found", {"id": id})
        raise HTTPException(status_code=404, detail="User not found")
    return db_user


async def create_user_service(user: UserCreate, request: Request) -> UserModel:
    """
    Creates a staff account; the password is stored hashed.
    """
    db = request.state.db
    log = request.app.state.log

    data = user.model_dump()
    data["password"] = hash_password(data["password"])
    db_user = UserModel(**data)
    db.add(db_user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail=f"User with login '{user.login}' already exists")
    await db.refresh(db_user)

    await log.log_info("auth", "User created", {"id": db_user.id, "login": db_user.login})
    return db_user


async def update_user_service(id: int, user_update: UserUpdate, request: Request) -> UserModel:
    db = request.state.db
    log = request.app.state.log

    db_user = await read_user_service(id, request)
    for key, value in user_update.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        if key == "password":
            value = hash_password(value)
        setattr(db_user, key, value)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail=f"User with login '{user_update.login}' already exists")
    await db.refresh(db_user)

    await log.log_info("auth", "User updated", {"id": id})
    return db_user


async def delete_user_service(id: int, request: Request) -> None:
    db = request.state.db
    log = request.app.state.log

    db_user = await read_user_service(id, request)
    await db.delete(db_user)
    await db.commit()
    await log.log_info("auth", "User deleted", {"id": id})
