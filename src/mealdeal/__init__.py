"""MealDeal: dish pricing and savings over regional supermarket offers."""

__version__ = "0.1.0"
