"""
Route modules for the API.

Each module exports a FastAPI APIRouter with endpoints
for a specific domain/feature.
"""

from api.routes import health
from api.routes import auth
from api.routes import analysis
from api.routes import products
from api.routes import tutorials
from api.routes import users

__all__ = ["health", "auth", "analysis", "products", "tutorials", "users"]
