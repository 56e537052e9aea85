"""ORM models for mindflow_db."""

from mindflow_db.models.base import Base
from mindflow_db.models.enums import RecordStatus
from mindflow_db.models.record import FlowRecord

__all__ = ["Base", "RecordStatus", "FlowRecord"]
