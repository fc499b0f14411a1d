"""
HTTP client for the job API.
"""

import logging
import mimetypes
import os
from pathlib import Path
from typing import List, Optional

import httpx

from ..execution.paths import archive_entry_name
from ..jobs.models import ConversionJob, JobStatus
from .errors import ClientError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:8085"


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    try:
        message = response.json().get("message") or response.reason_phrase
    except ValueError:
        message = response.text or response.reason_phrase
    raise ClientError(message, status_code=response.status_code)


class JobClient:
    """
    Thin wrapper around the /api/jobs endpoints.

    Accepts an existing httpx.Client (or compatible, e.g. FastAPI's
    TestClient) so it can run against an in-process app.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        http: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self._owns_http = http is None

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "JobClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise ClientError(f"Request to {url} failed: {e}") from e
        _raise_for_status(response)
        return response

    def list_jobs(self) -> List[ConversionJob]:
        response = self._request("GET", "/api/jobs")
        return [ConversionJob.model_validate(item) for item in response.json()]

    def get_job(self, job_id: int) -> ConversionJob:
        response = self._request("GET", f"/api/jobs/{job_id}")
        return ConversionJob.model_validate(response.json())

    def upload(self, path: Path) -> ConversionJob:
        """Upload one file and return the created (PENDING) job."""
        path = Path(path)
        mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        with open(path, "rb") as fh:
            response = self._request(
                "POST", "/api/jobs", files={"file": (path.name, fh, mime_type)}
            )
        job = ConversionJob.model_validate(response.json())
        logger.info(f"Uploaded {path.name} as job {job.id}")
        return job

    def delete_job(self, job_id: int) -> None:
        self._request("DELETE", f"/api/jobs/{job_id}")

    def delete_all(self) -> None:
        self._request("DELETE", "/api/jobs")

    def _download(self, url: str, destination: Path) -> Path:
        """
        Stream url into destination.

        The body goes to a ".part" file next to destination, renamed into
        place only once complete. A failed download leaves no file behind.
        """
        destination = Path(destination)
        partial = destination.with_name(destination.name + ".part")
        written = 0
        try:
            with self._http.stream("GET", url) as response:
                if not response.is_success:
                    response.read()
                    _raise_for_status(response)
                with open(partial, "wb") as out:
                    for chunk in response.iter_bytes():
                        out.write(chunk)
                        written += len(chunk)
        except httpx.HTTPError as e:
            partial.unlink(missing_ok=True)
            raise ClientError(f"Download of {url} failed: {e}") from e
        except BaseException:
            partial.unlink(missing_ok=True)
            raise

        os.replace(partial, destination)
        logger.info(f"Saved {url} to {destination} ({written} bytes)")
        return destination

    def download_all(self, destination: Path) -> Path:
        """
        Save the ZIP of all completed conversions to destination.

        Raises:
            ClientError: If there is nothing to download
        """
        return self._download("/api/jobs/download-all", destination)

    def download_job(self, job_id: int, destination: Path) -> Path:
        """
        Save one job's converted MP4.

        A directory destination receives the file as "<original stem>.mp4",
        the same name it has inside the download-all archive.

        Raises:
            ClientError: If the job does not exist or is not completed
        """
        job = self.get_job(job_id)
        if job.status != JobStatus.COMPLETED or not job.output_url:
            raise ClientError(f"Job {job_id} has no converted file (status: {job.status.value})")

        destination = Path(destination)
        if destination.is_dir():
            destination = destination / archive_entry_name(job.original_name)
        return self._download(job.output_url, destination)
