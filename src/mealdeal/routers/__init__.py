"""API routers for the MealDeal application."""

from mealdeal.routers.admin import router as admin_router
from mealdeal.routers.chains import router as chains_router
from mealdeal.routers.dishes import ingredients_router
from mealdeal.routers.dishes import router as dishes_router

__all__ = [
    "admin_router",
    "chains_router",
    "dishes_router",
    "ingredients_router",
]
