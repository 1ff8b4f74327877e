"""Scheduled job results."""
from __future__ import annotations

from pydantic import BaseModel, Field


class JobError(BaseModel):
    record_id: str
    error: str


class JobResult(BaseModel):
    success: bool = True
    processed: int = 0
    skipped: int = 0
    errors: list[JobError] = Field(default_factory=list)

    def add_error(self, record_id: object, exc: Exception) -> None:
        self.errors.append(JobError(record_id=str(record_id), error=str(exc)))

    def to_response(self) -> dict[str, object]:
        body: dict[str, object] = {"success": self.success, "processed": self.processed}
        if self.errors:
            body["errors"] = [e.model_dump() for e in self.errors]
        return body
