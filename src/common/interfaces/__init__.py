from .query_target import QueryTarget

__all__ = ["QueryTarget"]
