"""
Broker API request and response models

Only the fields the dashboard is allowed to show or store are modelled;
anything else the broker returns is kept but ignored.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

JobKind = Literal["run", "store", "cache"]

JobStatus = Literal["queued", "awaiting_payment", "running", "completed", "failed"]


class RunRequest(BaseModel):
    """Compute job request (POST /run)"""

    code: str
    language: str
    gpu_type: Optional[str] = None
    gpu_count: Optional[int] = None
    timeout: Optional[int] = None
    on_demand: Optional[bool] = None


class StoreOptions(BaseModel):
    permanent: Optional[bool] = None
    ttl: Optional[int] = None
    provider: Optional[str] = None


class StoreRequest(BaseModel):
    """Storage job request (POST /store); ``data`` is base64"""

    data: str
    filename: str
    options: Optional[StoreOptions] = None


class CacheRequest(BaseModel):
    """Cache job request (POST /cache)"""

    data: str
    ttl: Optional[int] = None
    content_type: str = Field("text/plain", alias="contentType")

    class Config:
        populate_by_name = True


class RunResult(BaseModel):
    stdout: Optional[str] = None
    stderr: Optional[str] = None
    exit_code: Optional[int] = Field(None, alias="exitCode")
    execution_time: Optional[int] = Field(None, alias="executionTime")
    output: Optional[str] = None

    class Config:
        populate_by_name = True
        extra = "allow"


class StoreResult(BaseModel):
    cid: Optional[str] = None
    url: Optional[str] = None
    provider: Optional[str] = None
    size: Optional[int] = None

    class Config:
        extra = "allow"


class CacheResult(BaseModel):
    cache_id: Optional[str] = Field(None, alias="cacheId")
    endpoint: Optional[str] = None
    region: Optional[str] = None
    provider: Optional[str] = None

    class Config:
        populate_by_name = True
        extra = "allow"


class BrokerRunResponse(BaseModel):
    """Compute job response"""

    job_id: str = Field(alias="jobId")
    status: str
    result: RunResult = Field(default_factory=RunResult)

    class Config:
        populate_by_name = True


class BrokerStoreResponse(BaseModel):
    """Storage job response"""

    job_id: str = Field(alias="jobId")
    status: str
    result: StoreResult = Field(default_factory=StoreResult)

    class Config:
        populate_by_name = True


class BrokerCacheResponse(BaseModel):
    """Cache job response"""

    job_id: str = Field(alias="jobId")
    status: str
    result: CacheResult = Field(default_factory=CacheResult)

    class Config:
        populate_by_name = True


class BrokerJobStatus(BaseModel):
    """Job status body, as fetched by the server-side refresh route only"""

    id: str
    status: str
    provider: Optional[str] = None
    result: Optional[dict[str, Any]] = None
    quote: Optional[dict[str, Any]] = None
    requester: Optional[str] = None
    created_at: Optional[str] = Field(None, alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")

    class Config:
        populate_by_name = True
