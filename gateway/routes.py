# ============================================================================
# GATEWAY ROUTES
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Gateway - FastAPI routes for Spark submissions
# PURPOSE: HTTP endpoints for submit, status, log, list, delete, kill, upload
# CREATED: 14 OCT 2026
# ============================================================================
"""
Gateway Routes

FastAPI router mounted under {url_prefix}/v1 (default /sparkapi/v1):

    POST   /submissions                 submit with server-generated id
    POST   /submissions/{id}            submit with caller id (?overwrite=)
    GET    /submissions/{id}/status     state, message, Spark UI link
    GET    /submissions/{id}/log        raw driver/executor log stream
    DELETE /submissions/{id}            delete submission
    POST   /submissions/{id}/kill       stop pods, keep submission
    GET    /submissions                 list (?limit=, default 100)
    POST   /s3/upload?name=             store an application file
    GET    /health                      authenticated liveness

Every route requires HTTP Basic auth when a user is configured.
Errors are rendered as {"message": ...} by the handlers in main.py.
"""

import logging
import tempfile
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, StreamingResponse

from __version__ import __version__
from core.contracts import SubmissionState
from core.errors import GatewayError
from core.logging import log_context
from core.models import SubmissionRequest
from gateway.auth import require_user
from gateway.models import (
    DeleteSubmissionResponse,
    HealthResponse,
    KillSubmissionResponse,
    ListSubmissionsResponse,
    SubmissionResponse,
    SubmissionStatusResponse,
    SubmissionSummary,
    UploadFileResponse,
)
from infrastructure.kubernetes import PodLogStream
from infrastructure.storage import ArtifactUploader
from services.submission_service import SubmissionService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Submissions"], dependencies=[Depends(require_user)])

# Upload bodies above this size spill from memory to a temp file
UPLOAD_SPOOL_BYTES = 16 * 1024 * 1024

_TRUE_VALUES = {"1", "t", "true"}
_FALSE_VALUES = {"0", "f", "false"}


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================

_submission_service: Optional[SubmissionService] = None
_uploader: Optional[ArtifactUploader] = None


def set_gateway_services(
    submission_service: SubmissionService,
    uploader: Optional[ArtifactUploader] = None,
):
    """Set service instances for dependency injection."""
    global _submission_service, _uploader
    _submission_service = submission_service
    _uploader = uploader


def get_submission_service() -> SubmissionService:
    if _submission_service is None:
        raise HTTPException(500, "Submission service not initialized")
    return _submission_service


def get_uploader() -> ArtifactUploader:
    if _uploader is None:
        raise HTTPException(500, "Object storage is not configured")
    return _uploader


# ============================================================================
# HELPERS
# ============================================================================

def parse_bool_param(name: str, value: Optional[str], default: bool = False) -> bool:
    """Parse a true/false query value; empty means default."""
    if value is None or value == "":
        return default
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=f"Invalid query parameter value for {name}: {value}. It should be true or false.",
    )


def parse_int_param(name: str, value: Optional[str], default: int) -> int:
    """Parse an integer query value; empty means default."""
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid query parameter value for {name}: {value}. It should be a number.",
        )


def api_root_from_path(path: str, trailing_segments: int) -> str:
    """
    Strip the route-specific tail from a request path.

    "/sparkapi/v1/submissions/app-1/status" with 3 trailing segments
    gives "/sparkapi/v1".

    Raises:
        ValueError: path has too few segments
    """
    parts = path.rstrip("/").split("/")
    if len(parts) <= trailing_segments:
        raise ValueError(f"invalid url path (too short): {path}")
    return "/".join(parts[:-trailing_segments])


def _http_error(e: GatewayError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)


# ============================================================================
# SUBMIT
# ============================================================================

async def _submit(
    service: SubmissionService,
    submission_id: str,
    body: SubmissionRequest,
    overwrite: bool,
    api_root: str,
) -> SubmissionResponse:
    try:
        created = await service.reconcile(
            submission_id, body, overwrite=overwrite, api_root=api_root
        )
    except GatewayError as e:
        logger.warning(f"Submission {submission_id} failed: {e.message}")
        raise _http_error(e)
    return SubmissionResponse(submissionId=created)


@router.post(
    "/submissions",
    response_model=SubmissionResponse,
    summary="Submit a Spark application",
    description="""
    Create a SparkApplication. The id is generated by the gateway unless the
    body carries submissionId; an existing id is only replaced when the body
    also sets overwrite=true.
    """,
)
async def post_submission(body: SubmissionRequest, request: Request) -> SubmissionResponse:
    service = get_submission_service()
    submission_id = body.submission_id or service.new_submission_id()
    api_root = api_root_from_path(request.url.path, 1)
    return await _submit(service, submission_id, body, bool(body.overwrite), api_root)


@router.post(
    "/submissions/{submission_id}",
    response_model=SubmissionResponse,
    summary="Submit a Spark application with a caller-chosen id",
)
async def post_submission_with_id(
    submission_id: str,
    body: SubmissionRequest,
    request: Request,
    overwrite: Optional[str] = Query(default=None, description="true to replace an existing submission"),
) -> SubmissionResponse:
    service = get_submission_service()
    overwrite_flag = parse_bool_param("overwrite", overwrite)
    api_root = api_root_from_path(request.url.path, 2)
    return await _submit(service, submission_id, body, overwrite_flag, api_root)


# ============================================================================
# STATUS / LIST
# ============================================================================

@router.get(
    "/submissions/{submission_id}/status",
    response_model=SubmissionStatusResponse,
    response_model_exclude_none=True,
    summary="Get submission status",
)
async def get_submission_status(submission_id: str, request: Request) -> SubmissionStatusResponse:
    service = get_submission_service()
    try:
        submission = await service.get_submission(submission_id)
    except GatewayError as e:
        raise _http_error(e)

    response = SubmissionStatusResponse(
        submissionId=submission_id,
        state=submission.state_name,
        applicationMessage=submission.error_message,
        recentAppId=submission.spark_application_id,
    )

    if submission.state == SubmissionState.RUNNING:
        try:
            api_root = api_root_from_path(request.url.path, 3)
        except ValueError as e:
            logger.warning(f"Got invalid status endpoint url {request.url}: {e}")
        else:
            ui_url = request.url.replace(path=f"{api_root}/sparkui/{submission_id}")
            response.sparkUI = str(ui_url)

    return response


@router.get(
    "/submissions",
    response_model=ListSubmissionsResponse,
    response_model_exclude_none=True,
    summary="List submissions",
)
async def list_submissions(
    limit: Optional[str] = Query(default=None, description="Max items (default 100)"),
) -> ListSubmissionsResponse:
    service = get_submission_service()
    max_items = parse_int_param("limit", limit, service.naming.list_limit)
    if max_items < 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid query parameter value for limit: {limit}. It should not be negative.",
        )
    try:
        submissions = await service.list_submissions(max_items)
    except GatewayError as e:
        raise _http_error(e)

    return ListSubmissionsResponse(
        items=[
            SubmissionSummary(
                submissionId=s.submission_id,
                applicationName=s.application_name,
                state=s.state_name,
                recentAppId=s.spark_application_id or "",
            )
            for s in submissions
        ]
    )


# ============================================================================
# LOG
# ============================================================================

async def _log_chunks(submission_id: str, log_stream: PodLogStream) -> AsyncIterator[bytes]:
    """Log bytes with a header line; upstream closed however the stream ends."""
    pod_name = log_stream.pod_name
    try:
        yield f"Getting log for {pod_name}\n".encode()
        async for chunk in log_stream.iter_chunks():
            yield chunk
    except Exception as e:
        logger.warning(f"Log stream for {submission_id} pod {pod_name} broke: {e}")
        yield f"\nFailed to get log for {pod_name}: {e}".encode()
    finally:
        log_stream.close()
        logger.info(f"Finished sending log for Spark application {submission_id}, pod: {pod_name}")


@router.get(
    "/submissions/{submission_id}/log",
    summary="Stream driver or executor log",
    description="""
    Raw log bytes of the driver pod, or of executor N with ?executor=N.
    With ?follow=true the stream stays open until the pod exits or the
    client disconnects. Failures to locate the log return 200 with a
    message body.
    """,
)
async def get_submission_log(
    submission_id: str,
    follow: Optional[str] = Query(default=None),
    executor: Optional[str] = Query(default=None),
):
    service = get_submission_service()
    follow_flag = parse_bool_param("follow", follow)
    executor_id = parse_int_param("executor", executor, -1)

    with log_context(submission_id=submission_id, operation="log"):
        try:
            log_stream = await service.open_log(submission_id, executor_id, follow_flag)
        except GatewayError as e:
            logger.info(f"Log unavailable for {submission_id}: {e.message}")
            return JSONResponse(status_code=status.HTTP_200_OK, content={"message": e.message})

    return StreamingResponse(
        _log_chunks(submission_id, log_stream),
        media_type="text/plain; charset=utf-8",
    )


# ============================================================================
# DELETE / KILL
# ============================================================================

@router.delete(
    "/submissions/{submission_id}",
    response_model=DeleteSubmissionResponse,
    summary="Delete a submission",
)
async def delete_submission(submission_id: str) -> DeleteSubmissionResponse:
    service = get_submission_service()
    try:
        await service.delete_submission(submission_id)
    except GatewayError as e:
        raise _http_error(e)
    return DeleteSubmissionResponse(submissionId=submission_id, message="Application deleted")


@router.post(
    "/submissions/{submission_id}/kill",
    response_model=KillSubmissionResponse,
    summary="Kill a running submission",
    description="Deletes the driver, executor pods and UI service; keeps the submission.",
)
async def kill_submission(submission_id: str) -> KillSubmissionResponse:
    service = get_submission_service()
    try:
        await service.kill_submission(submission_id)
    except GatewayError as e:
        raise _http_error(e)
    return KillSubmissionResponse(submissionId=submission_id, message="Application killed")


# ============================================================================
# UPLOAD
# ============================================================================

@router.post(
    "/s3/upload",
    response_model=UploadFileResponse,
    summary="Upload an application file",
    description="Stores the raw request body and returns a URL usable as mainApplicationFile.",
)
async def upload_file(
    request: Request,
    name: Optional[str] = Query(default=None, description="File name"),
) -> UploadFileResponse:
    if not name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing query string parameter: name",
        )
    uploader = get_uploader()

    with tempfile.SpooledTemporaryFile(max_size=UPLOAD_SPOOL_BYTES) as spool:
        length = 0
        async for chunk in request.stream():
            spool.write(chunk)
            length += len(chunk)
        spool.seek(0)

        try:
            url = await run_in_threadpool(uploader.upload, name, spool, length)
        except GatewayError as e:
            raise _http_error(e)

    logger.info(f"Uploaded {name} ({length} bytes) to {url}")
    return UploadFileResponse(url=url)


# ============================================================================
# HEALTH
# ============================================================================

@router.get("/health", response_model=HealthResponse, summary="Health check")
async def api_health() -> HealthResponse:
    return HealthResponse(status="healthy", service="spark-gateway", version=__version__)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "router",
    "set_gateway_services",
    "parse_bool_param",
    "parse_int_param",
    "api_root_from_path",
]
