"""Accounts and per-request sessions.

Login is a plaintext email lookup with no password. The signed-in user is
not kept in shared storage: every request names its user through the
``X-User-Id`` header and gets an explicit :class:`Session`.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Depends, Header, HTTPException

from .crud import new_id, now_utc
from .db import USERS, CollectionStore, get_store
from .exceptions import EmailAlreadyRegisteredError
from .schemas import User

logger = logging.getLogger(__name__)


@dataclass
class Session:
    user: User

    @property
    def is_admin(self) -> bool:
        return self.user.role == "admin"


async def get_user(store: CollectionStore, user_id: str) -> Optional[User]:
    for u in await store.read(USERS):
        if u.get("id") == user_id:
            return User.model_validate(u)
    return None


async def get_users(store: CollectionStore, college_id: Optional[str] = None, role: Optional[str] = None) -> list[User]:
    return [
        User.model_validate(u) for u in await store.read(USERS)
        if (college_id is None or u.get("college_id") == college_id)
        and (role is None or u.get("role") == role)
    ]


async def signup(store: CollectionStore, fields: dict[str, Any]) -> User:
    email = str(fields["email"]).lower()
    async with store.lock(USERS):
        users = await store.read(USERS)
        if any(u.get("email") == email for u in users):
            raise EmailAlreadyRegisteredError()
        user = User.model_validate({**fields, "email": email, "id": new_id(users), "created_at": now_utc()})
        users.append(user.model_dump(mode="json"))
        await store.write(USERS, users)
    logger.info("New %s account %s for college %s", user.role, user.id, user.college_id)
    return user


async def login(store: CollectionStore, email: str) -> Optional[User]:
    email = email.lower()
    for u in await store.read(USERS):
        if u.get("email") == email:
            return User.model_validate(u)
    return None


async def update_profile(store: CollectionStore, user_id: str, updates: dict[str, Any]) -> Optional[User]:
    if "email" in updates:
        updates = {**updates, "email": str(updates["email"]).lower()}
    async with store.lock(USERS):
        users = await store.read(USERS)
        if "email" in updates and any(
            u.get("email") == updates["email"] and u.get("id") != user_id for u in users
        ):
            raise EmailAlreadyRegisteredError()
        for i, u in enumerate(users):
            if u.get("id") == user_id:
                user = User.model_validate({**u, **updates})
                users[i] = user.model_dump(mode="json")
                await store.write(USERS, users)
                return user
    return None


# ---------- FastAPI dependencies ----------
async def get_session(
    x_user_id: Optional[str] = Header(default=None),
    store: CollectionStore = Depends(get_store),
) -> Session:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    user = await get_user(store, x_user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Unknown user")
    return Session(user=user)


async def require_admin(session: Session = Depends(get_session)) -> Session:
    if not session.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return session
