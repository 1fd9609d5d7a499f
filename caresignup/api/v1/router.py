# caresignup/api/v1/router.py
from fastapi import APIRouter
from caresignup.api.v1 import events, signups, users

api_router = APIRouter()

api_router.include_router(events.router,  prefix="/events",  tags=["events"])
api_router.include_router(signups.router, prefix="/signups", tags=["signups"])
api_router.include_router(users.router,   prefix="/users",   tags=["users"])
