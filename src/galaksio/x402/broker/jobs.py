"""
Job records derived from broker responses, and the store they are handed to
"""

import time
import uuid
from typing import Any, Optional, Protocol

from pydantic import BaseModel, Field

from galaksio.x402.broker.types import BrokerJobStatus, JobKind

DEFAULT_LIST_LIMIT = 100


class JobRecord(BaseModel):
    """Normalized job record"""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    kind: JobKind
    broker_job_id: str
    status: str
    tx_id: Optional[str] = None
    url: Optional[str] = None
    provider: Optional[str] = None
    size: Optional[int] = None
    stdout: Optional[str] = None
    stderr: Optional[str] = None
    exit_code: Optional[int] = None
    execution_time_ms: Optional[int] = None
    raw_result: Optional[dict[str, Any]] = None
    raw_status: Optional[dict[str, Any]] = None
    created_at: float = Field(default_factory=time.time)
    updated_at: float = Field(default_factory=time.time)

    @classmethod
    def from_broker_response(cls, kind: JobKind, body: dict[str, Any]) -> "JobRecord":
        """Build a record from a successful /run, /store or /cache response body"""
        result = body.get("result") or {}
        fields: dict[str, Any] = {}

        if kind == "run":
            fields = {
                "stdout": result.get("stdout") or result.get("output") or None,
                "stderr": result.get("stderr") or None,
                "exit_code": result.get("exitCode"),
                "execution_time_ms": result.get("executionTime"),
            }
        elif kind == "store":
            fields = {
                "tx_id": result.get("cid"),
                "url": result.get("url"),
                "provider": result.get("provider"),
                "size": result.get("size"),
            }
        elif kind == "cache":
            fields = {
                "url": result.get("endpoint"),
                "provider": result.get("provider"),
            }

        return cls(
            kind=kind,
            broker_job_id=body["jobId"],
            status=body["status"],
            raw_result=body,
            **fields,
        )


def apply_status_update(record: JobRecord, status: BrokerJobStatus) -> JobRecord:
    """
    Merge a broker job-status body into *record*, returning the updated copy.

    Broker results may be nested up to two levels (``result.result.result``);
    compute fields are read from the innermost one, storage fields from the
    outer one.
    """
    update: dict[str, Any] = {
        "status": status.status,
        "provider": status.provider,
        "raw_status": status.model_dump(by_alias=True),
        "updated_at": time.time(),
    }

    result = status.result
    if result:
        inner = result.get("result")
        if isinstance(inner, dict):
            actual = inner.get("result") if isinstance(inner.get("result"), dict) else inner
        else:
            actual = result

        if actual.get("output"):
            update["stdout"] = actual["output"]
        elif actual.get("stdout"):
            update["stdout"] = actual["stdout"]

        if actual.get("stderr"):
            update["stderr"] = actual["stderr"]

        if actual.get("exitCode") is not None:
            update["exit_code"] = actual["exitCode"]
        elif actual.get("success") is not None:
            update["exit_code"] = 0 if actual["success"] else 1
        elif actual.get("status") == "succeeded":
            update["exit_code"] = 0

        if actual.get("executionTime") is not None:
            update["execution_time_ms"] = actual["executionTime"]
        elif actual.get("execution_time") is not None:
            # seconds
            update["execution_time_ms"] = round(actual["execution_time"] * 1000)

        if result.get("cid"):
            update["tx_id"] = result["cid"]
        if result.get("url"):
            update["url"] = result["url"]
        if result.get("size") is not None:
            update["size"] = result["size"]

    return record.model_copy(update=update)


class JobStore(Protocol):
    """Persistence collaborator for job records"""

    async def save(self, record: JobRecord) -> JobRecord: ...

    async def list(self, kind: JobKind | None = None, limit: int = DEFAULT_LIST_LIMIT) -> list[JobRecord]: ...

    async def get(self, broker_job_id: str) -> JobRecord | None: ...


class InMemoryJobStore:
    """Process-local JobStore"""

    def __init__(self) -> None:
        self._records: dict[str, JobRecord] = {}

    async def save(self, record: JobRecord) -> JobRecord:
        self._records[record.broker_job_id] = record
        return record

    async def list(self, kind: JobKind | None = None, limit: int = DEFAULT_LIST_LIMIT) -> list[JobRecord]:
        records = [r for r in self._records.values() if kind is None or r.kind == kind]
        records.sort(key=lambda r: r.created_at, reverse=True)
        return records[:limit]

    async def get(self, broker_job_id: str) -> JobRecord | None:
        return self._records.get(broker_job_id)
