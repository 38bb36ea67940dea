"""
Router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from memberauth.api.endpoints import admin, auth, pages

api_router = APIRouter()

# Landing + members area
api_router.include_router(pages.router)

# Signup, login, logout
api_router.include_router(auth.router)

# Admin panel, promote / demote
api_router.include_router(admin.router)
