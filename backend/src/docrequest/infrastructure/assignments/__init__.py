from .sql_assignments import SqlReviewAssignments

__all__ = ["SqlReviewAssignments"]
