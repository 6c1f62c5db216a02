"""FreeConvert compression workflow.

Drives one remote job from creation to downloaded result:
create job -> upload payload to the issued form -> poll until terminal -> fetch export.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

import requests

from cleansong.errors import (
    CompressionFailedError,
    ConfigurationError,
    DownloadError,
    JobCreationError,
    NoExportUrlError,
    PollTimeoutError,
    TransportError,
    UploadError,
)
from cleansong.models import EXPORT_OPERATION, Job, JobStatus, PollState, UploadTarget

logger = logging.getLogger(__name__)


# Observed remote status -> next local state. Budget exhaustion is applied on top.
POLL_TRANSITIONS: Dict[PollState, Dict[JobStatus, PollState]] = {
    PollState.SUBMITTED: {
        JobStatus.PENDING: PollState.POLLING,
        JobStatus.PROCESSING: PollState.POLLING,
        JobStatus.COMPLETED: PollState.COMPLETED,
        JobStatus.FAILED: PollState.FAILED,
    },
    PollState.POLLING: {
        JobStatus.PENDING: PollState.POLLING,
        JobStatus.PROCESSING: PollState.POLLING,
        JobStatus.COMPLETED: PollState.COMPLETED,
        JobStatus.FAILED: PollState.FAILED,
    },
}


def next_poll_state(state: PollState, observed: JobStatus, attempts: int, max_polls: int) -> PollState:
    if state.is_terminal:
        return state
    nxt = POLL_TRANSITIONS[state][observed]
    if nxt is PollState.POLLING and attempts >= max_polls:
        return PollState.TIMED_OUT
    return nxt


@dataclass
class FreeConvertSettings:
    api_key: str
    base_url: str = "https://api.freeconvert.com/v1"
    poll_interval: float = 3
    max_polls: int = 30
    target_percentage: int = 40
    output_format: str = "mp3"
    timeout: float = 60

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "FreeConvertSettings":
        return cls(
            api_key=(cfg.get("FREECONVERT_API_KEY") or "").strip(),
            base_url=(cfg.get("FREECONVERT_BASE_URL") or cls.base_url).rstrip("/"),
            poll_interval=float(cfg.get("FREECONVERT_POLL_INTERVAL", cls.poll_interval)),
            max_polls=int(cfg.get("FREECONVERT_MAX_POLLS", cls.max_polls)),
            target_percentage=int(cfg.get("FREECONVERT_TARGET_PERCENTAGE", cls.target_percentage)),
            output_format=cfg.get("FREECONVERT_OUTPUT_FORMAT") or cls.output_format,
            timeout=float(cfg.get("FREECONVERT_TIMEOUT", cls.timeout)),
        )

    @property
    def ready(self) -> bool:
        return bool(self.api_key)


class FreeConvertCompressor:
    """One instance per request; holds no state between compress() calls."""

    def __init__(
        self,
        settings: FreeConvertSettings,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings
        self.session = session or requests.Session()
        self._sleep = sleep

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {self.settings.api_key}",
        }

    def job_descriptor(self, input_format: str) -> Dict[str, Any]:
        return {
            "tasks": {
                "import": {"operation": "import/upload"},
                "compress": {
                    "operation": "compress",
                    "input": "import",
                    "input_format": input_format,
                    "output_format": self.settings.output_format,
                    "options": {
                        "compression_method": "percentage",
                        "target_size_percentage": self.settings.target_percentage,
                    },
                },
                "export-url": {
                    "operation": EXPORT_OPERATION,
                    "input": ["compress"],
                },
            }
        }

    def compress(self, payload: bytes, input_format: str) -> bytes:
        if not self.settings.ready:
            raise ConfigurationError("Missing FREECONVERT_API_KEY")

        job = self.create_job(input_format)
        self.upload(job.upload_target, payload, input_format)
        export_url = self.wait_for_export(job.id)
        return self.download(export_url)

    def create_job(self, input_format: str) -> Job:
        url = f"{self.settings.base_url}/process/jobs"
        try:
            r = self.session.post(
                url,
                json=self.job_descriptor(input_format),
                headers=self._headers(),
                timeout=self.settings.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"Could not reach FreeConvert: {e}") from e

        try:
            doc = r.json()
        except ValueError:
            raise JobCreationError("Failed to create FreeConvert job", details=r.text)

        job = Job.from_document(doc)
        if job.upload_target is None or not job.id:
            logger.warning("FreeConvert job creation returned no upload form (HTTP %s)", r.status_code)
            raise JobCreationError("Failed to create FreeConvert job", details=doc)
        logger.info("Created FreeConvert job %s (input %s)", job.id, input_format)
        return job

    def upload(self, target: UploadTarget, payload: bytes, input_format: str) -> None:
        # Server-issued fields go first, untouched and in order; the file part last
        fields = list(target.parameters.items())
        files = {"file": (f"audio.{input_format}", payload)}
        try:
            r = self.session.post(target.url, data=fields, files=files, timeout=self.settings.timeout)
        except requests.RequestException as e:
            raise TransportError(f"Upload to FreeConvert failed: {e}") from e
        if not r.ok:
            logger.warning("FreeConvert upload rejected with HTTP %s", r.status_code)
            raise UploadError("Failed to upload file to FreeConvert", details=r.text)
        logger.info("Uploaded %d bytes to FreeConvert", len(payload))

    def get_job(self, job_id: str) -> Job:
        url = f"{self.settings.base_url}/process/jobs/{job_id}"
        try:
            r = self.session.get(url, headers=self._headers(), timeout=self.settings.timeout)
        except requests.RequestException as e:
            raise TransportError(f"Polling FreeConvert failed: {e}") from e
        if not r.ok:
            raise TransportError(f"Polling FreeConvert returned HTTP {r.status_code}", details=r.text)
        try:
            doc = r.json()
        except ValueError:
            raise TransportError("FreeConvert returned a non-JSON job status", details=r.text)
        return Job.from_document(doc)

    def wait_for_export(self, job_id: str) -> str:
        """Poll until the job is terminal and return the export file URL."""
        state = PollState.SUBMITTED
        attempts = 0
        job: Optional[Job] = None

        while not state.is_terminal:
            self._sleep(self.settings.poll_interval)
            attempts += 1
            job = self.get_job(job_id)
            logger.info("FreeConvert job %s poll %d/%d: %s", job_id, attempts, self.settings.max_polls, job.raw_status or "?")
            state = next_poll_state(state, job.status, attempts, self.settings.max_polls)

        if state is PollState.FAILED:
            logger.warning("FreeConvert job %s failed", job_id)
            raise CompressionFailedError("Compression failed", details=job.document)
        if state is PollState.TIMED_OUT:
            waited = attempts * self.settings.poll_interval
            raise PollTimeoutError(
                f"FreeConvert job {job_id} did not finish after {attempts} polls (~{waited:g}s)",
                details=job.to_dict(),
            )
        if not job.result_url:
            raise NoExportUrlError("No export URL found", details=job.document)
        return job.result_url

    def download(self, url: str) -> bytes:
        try:
            r = self.session.get(url, timeout=self.settings.timeout)
        except requests.RequestException as e:
            raise DownloadError(f"Downloading compressed file failed: {e}") from e
        if not r.ok:
            raise DownloadError(f"Downloading compressed file returned HTTP {r.status_code}", details=r.text)
        logger.info("Downloaded %d bytes of compressed audio", len(r.content))
        return r.content
