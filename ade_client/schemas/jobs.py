from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ade_client.schemas.parse import ParseResult


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED}


class ParseJob(BaseModel):
    model_config = ConfigDict(extra="allow")

    job_id: str
    status: JobStatus
    progress: float | None = None
    received_at: int | str | None = None
    failure_reason: str | None = None
    output_url: str | None = None
    data: ParseResult | None = None


class ParseJobList(BaseModel):
    model_config = ConfigDict(extra="allow")

    jobs: list[ParseJob] = Field(default_factory=list)
    has_more: bool = False
