from .fallback import Result, Strategy, first_success

__all__ = ["Result", "Strategy", "first_success"]
