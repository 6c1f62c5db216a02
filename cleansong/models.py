"""
Remote job models

Key Models:
- JobStatus: status reported by the conversion service
- UploadTarget: one-time form upload issued at job creation
- Job: read-only snapshot of a remote job (the relay never mutates it)
- PollState: local states of the submit/poll workflow
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

EXPORT_OPERATION = "export/url"

# Remote end states that mean the job will never produce an export
FAILURE_STATUSES = frozenset({"failed", "error", "canceled", "cancelled", "deleted", "expired"})


class JobStatus(enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def parse(cls, value: Any) -> "JobStatus":
        # FreeConvert also reports "created", "waiting" etc. while a job runs
        raw = (str(value or "")).strip().lower()
        if raw in FAILURE_STATUSES:
            return cls.FAILED
        for status in cls:
            if status.value == raw:
                return status
        return cls.PROCESSING

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class PollState(enum.Enum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in (PollState.COMPLETED, PollState.FAILED, PollState.TIMED_OUT)


@dataclass
class UploadTarget:
    url: str
    # Insertion order is the order the server listed the fields in
    parameters: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_job_document(cls, doc: Dict[str, Any]) -> Optional["UploadTarget"]:
        tasks = doc.get("tasks") if isinstance(doc, dict) else None
        if not isinstance(tasks, dict):
            return None
        import_task = tasks.get("import")
        if not isinstance(import_task, dict):
            return None
        form = (import_task.get("result") or {}).get("form")
        if not isinstance(form, dict):
            return None
        url = form.get("url")
        parameters = form.get("parameters")
        if not url or not isinstance(parameters, dict):
            return None
        return cls(url=url, parameters=dict(parameters))


@dataclass
class Job:
    id: str
    status: JobStatus
    raw_status: str = ""
    upload_target: Optional[UploadTarget] = None
    result_url: Optional[str] = None
    document: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Job":
        """Build a snapshot from a FreeConvert job JSON document"""
        doc = doc if isinstance(doc, dict) else {}
        raw_status = str(doc.get("status") or "")
        status = JobStatus.parse(raw_status)
        return cls(
            id=str(doc.get("id") or ""),
            status=status,
            raw_status=raw_status,
            upload_target=UploadTarget.from_job_document(doc),
            result_url=export_url(doc) if status is JobStatus.COMPLETED else None,
            document=doc,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "raw_status": self.raw_status,
            "result_url": self.result_url,
        }


def export_url(doc: Dict[str, Any]) -> Optional[str]:
    """URL of the first file produced by the job's export task, if any"""
    tasks = doc.get("tasks")
    if isinstance(tasks, dict):
        tasks = list(tasks.values())
    if not isinstance(tasks, list):
        return None
    for task in tasks:
        if not isinstance(task, dict) or task.get("operation") != EXPORT_OPERATION:
            continue
        files = (task.get("result") or {}).get("files") or []
        if files and isinstance(files[0], dict) and files[0].get("url"):
            return files[0]["url"]
    return None
