"""
Conversion job endpoints.

POST   /api/jobs               upload one file, create a job, start converting
GET    /api/jobs               all jobs, newest first
GET    /api/jobs/download-all  ZIP of every completed job's output
GET    /api/jobs/{id}          one job
DELETE /api/jobs/{id}          delete one job (204 even if unknown)
DELETE /api/jobs               delete all jobs

Conversion runs in the background. Clients poll GET /api/jobs to follow
progress; there is no push channel.
"""

import logging
from typing import List

from fastapi import APIRouter, HTTPException, Request, Response
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from ..jobs.models import ConversionJob, JobCreate, JobStatus
from ..services.archive import ARCHIVE_FILENAME, completed_entries, iter_zip
from ..services.uploads import UploadTooLargeError, save_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["jobs"])


@router.get("", response_model=List[ConversionJob])
def list_jobs(request: Request):
    """
    List all jobs, newest first.

    Polled every few seconds by clients while any job is active,
    so this stays a single store query.
    """
    return request.app.state.job_store.list()


def _accept_upload(state, upload: UploadFile) -> ConversionJob:
    """Store the upload, create its job and start converting. Runs off the event loop."""
    settings = state.settings

    try:
        stored = save_upload(
            upload.file,
            upload.filename,
            upload_dir=settings.upload_dir,
            max_bytes=settings.max_upload_bytes,
        )
    except UploadTooLargeError as e:
        logger.warning(f"Rejected upload {upload.filename!r}: {e}")
        raise HTTPException(status_code=413, detail="File too large")
    except Exception as e:
        logger.exception(f"Upload error for {upload.filename!r}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    try:
        job = state.job_store.create(JobCreate(
            original_name=upload.filename,
            mime_type=upload.content_type,
            size=stored.size,
        ))
    except Exception as e:
        logger.exception(f"Failed to create job for {upload.filename!r}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    logger.info(f"Created job {job.id} for {job.original_name!r}")

    # Not awaited: the client gets its 201 immediately
    state.worker.submit(job.id, stored.path)

    return job


@router.post("", response_model=ConversionJob, status_code=201)
async def create_job(request: Request):
    """
    Accept one uploaded video and queue it for conversion.

    The response is sent as soon as the job is stored (status PENDING);
    conversion continues on a background thread.

    The multipart body is read directly: an empty file input or a plain
    text "file" field arrives as a string, and counts as no file.

    Raises:
        400: No file in the multipart body
        413: File larger than the configured limit
        500: Upload could not be stored
    """
    form = await request.form()
    try:
        upload = form.get("file")
        if not isinstance(upload, UploadFile) or not upload.filename:
            raise HTTPException(status_code=400, detail="No file uploaded")
        return await run_in_threadpool(_accept_upload, request.app.state, upload)
    finally:
        await form.close()


@router.delete("", status_code=204)
def delete_all_jobs(request: Request):
    """Delete every job record. Uploaded and converted files stay on disk."""
    request.app.state.job_store.delete_all()
    logger.info("Deleted all jobs")
    return Response(status_code=204)


@router.get("/download-all")
def download_all(request: Request):
    """
    Stream a ZIP of all completed conversions.

    Entries are named after each job's original file with a .mp4
    extension, in the same order as the job list.

    Raises:
        400: No completed jobs
        500: Archive could not be prepared
    """
    store = request.app.state.job_store
    output_dir = request.app.state.settings.output_dir

    try:
        jobs = store.list()
        completed = [
            job for job in jobs
            if job.status == JobStatus.COMPLETED and job.output_url
        ]
        if not completed:
            raise HTTPException(status_code=400, detail="No completed jobs to download")
        entries = completed_entries(completed, output_dir)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Zip download error: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate zip file")

    logger.info(f"Streaming archive with {len(entries)} file(s)")

    return StreamingResponse(
        iter_zip(entries),
        media_type="application/zip",
        headers={"Content-Disposition": f"attachment; filename={ARCHIVE_FILENAME}"},
    )


@router.get("/{job_id}", response_model=ConversionJob)
def get_job(job_id: int, request: Request):
    """
    Retrieve a single job.

    Raises:
        404: If the job does not exist
    """
    job = request.app.state.job_store.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@router.delete("/{job_id}", status_code=204)
def delete_job(job_id: str, request: Request):
    """
    Delete a job record.

    Deleting an unknown or non-numeric id still succeeds. An in-flight
    conversion for the job is not stopped; its later writes are ignored
    by the store.
    """
    try:
        job_id = int(job_id)
    except ValueError:
        logger.info(f"Ignoring delete for non-numeric job id {job_id!r}")
        return Response(status_code=204)

    request.app.state.job_store.delete(job_id)
    logger.info(f"Deleted job {job_id}")
    return Response(status_code=204)
