"""mindflow_db — PostgreSQL persistence layer for resumable flow instances.

This package provides the ORM model, async engine factory, and repository
for creating, updating, and querying flow records.  It is consumed by the
flow service in ``mindflow.service`` and, through it, by the FastAPI server.
"""

from mindflow_db.models.record import FlowRecord
from mindflow_db.models.enums import RecordStatus
from mindflow_db.engine import get_engine, get_session_factory
from mindflow_db.repository import FlowRepository

__all__ = [
    "FlowRecord",
    "RecordStatus",
    "get_engine",
    "get_session_factory",
    "FlowRepository",
]
