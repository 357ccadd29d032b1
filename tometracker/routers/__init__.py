"""
API Routers Package

This package contains FastAPI routers that handle API endpoints.

Router Structure:
- auth.py: /api/v1/auth/* endpoints (register, login, refresh, logout)
- loans.py: /api/v1/users/* endpoints (borrow, return, loan history)
- books.py: /api/v1/books/* endpoints (availability per library)
- admin.py: /api/v1/admin/* endpoints (books, libraries, roles)

Each router is imported and registered in main.py.
"""

from tometracker.routers.admin import router as admin_router
from tometracker.routers.auth import router as auth_router
from tometracker.routers.books import router as books_router
from tometracker.routers.loans import router as loans_router

__all__ = [
    "admin_router",
    "auth_router",
    "books_router",
    "loans_router",
]
