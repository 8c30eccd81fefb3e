from __future__ import annotations

from fastapi import APIRouter

from coursemart.api.v1 import auth, cart, courses, files, lookups, users

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(lookups.router)
api_router.include_router(courses.router)
api_router.include_router(cart.router)
api_router.include_router(files.router)
