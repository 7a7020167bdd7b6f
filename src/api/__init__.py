"""
API module for FastAPI routes.

Each route module defines a FastAPI APIRouter that is mounted on the
application in api.app.create_app().
"""

from api.routes import analysis, auth, health, products, tutorials, users

__all__ = ["analysis", "auth", "health", "products", "tutorials", "users"]
