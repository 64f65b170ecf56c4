from fastapi import APIRouter, Depends, HTTPException

from ..auth import Session, get_session, login, signup, update_profile
from ..crud import get_college
from ..db import CollectionStore, get_store
from ..exceptions import EmailAlreadyRegisteredError
from ..schemas import LoginIn, MyEvent, ProfileStats, ProfileUpdate, SignupIn, User
from ..stats import get_profile_stats, get_student_events

router = APIRouter()


@router.post("/auth/signup", response_model=User, status_code=201)
async def api_signup(payload: SignupIn, store: CollectionStore = Depends(get_store)):
    if await get_college(store, payload.college_id) is None:
        raise HTTPException(status_code=422, detail="Unknown college")
    try:
        return await signup(store, payload.model_dump())
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/auth/login", response_model=User)
async def api_login(payload: LoginIn, store: CollectionStore = Depends(get_store)):
    user = await login(store, str(payload.email))
    if user is None:
        raise HTTPException(status_code=401, detail="No account with this email")
    return user


@router.get("/users/me", response_model=User)
async def api_me(session: Session = Depends(get_session)):
    return session.user


@router.patch("/users/me", response_model=User)
async def api_update_me(
    payload: ProfileUpdate,
    session: Session = Depends(get_session),
    store: CollectionStore = Depends(get_store),
):
    try:
        user = await update_profile(store, session.user.id, payload.model_dump(exclude_unset=True, exclude_none=True))
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/users/me/stats", response_model=ProfileStats)
async def api_my_stats(session: Session = Depends(get_session), store: CollectionStore = Depends(get_store)):
    return await get_profile_stats(store, session.user.id)


@router.get("/users/me/events", response_model=list[MyEvent])
async def api_my_events(session: Session = Depends(get_session), store: CollectionStore = Depends(get_store)):
    return await get_student_events(store, session.user.id, session.user.college_id)
