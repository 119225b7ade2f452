from .sql_records import SqlRecordAccess

__all__ = ["SqlRecordAccess"]
