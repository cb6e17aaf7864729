# ============================================================================
# GATEWAY HTTP CLIENT
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: CLI - Sync HTTP client for the submission API
# PURPOSE: Submit, observe, delete and kill Spark applications over HTTP
# CREATED: 15 OCT 2026
# ============================================================================
"""
Gateway HTTP Client

Sync httpx client used by sparkcli. server_url is the API root, e.g.
https://host/sparkapi/v1. Every request carries HTTP Basic credentials
when a user is set.

Any non-200 response, transport failure or unparsable body raises
GatewayClientError; methods returning JSON also return the raw body text
so commands can print or save it verbatim.
"""

import json
import logging
import os
from typing import Any, BinaryIO, Dict, Optional, Tuple

import httpx

from core.config import ClientDefaults
from core.retry import RetryTimeoutError, retry_until

logger = logging.getLogger(__name__)

LOG_CHUNK_BYTES = 4096


class GatewayClientError(Exception):
    """Request to the gateway failed."""


def bad_status_error(url: str, response: httpx.Response) -> GatewayClientError:
    try:
        body = response.text
    except Exception as e:
        body = str(e)
    status = f"{response.status_code} {response.reason_phrase}".strip()
    return GatewayClientError(
        f"got bad response status {status} from {url}, response body: {body}"
    )


class GatewayClient:
    """
    Sync HTTP client for the submission API.

    Usage:
        with GatewayClient("https://gw/sparkapi/v1", "alice", "secret") as client:
            submission_id = client.submit_application(request)
            _, status = client.get_application_status(submission_id)
    """

    def __init__(
        self,
        server_url: str,
        user: str = "",
        password: str = "",
        insecure: bool = False,
        defaults: Optional[ClientDefaults] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Args:
            server_url: API root url
            user: Basic auth user; empty sends no credentials
            password: Basic auth password
            insecure: Skip TLS certificate verification
            defaults: Timeouts and retry windows
            transport: Custom httpx transport
        """
        self.server_url = server_url.rstrip("/")
        self.user = user
        self.defaults = defaults or ClientDefaults()
        if insecure:
            logger.info("Skip SSL certificate verification")
        self._http = httpx.Client(
            auth=(user, password) if user else None,
            verify=not insecure,
            timeout=httpx.Timeout(self.defaults.request_timeout_seconds),
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "GatewayClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    # REQUEST PLUMBING
    # ------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self.server_url}{path}"

    def _send(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        **kwargs,
    ) -> Tuple[str, httpx.Response]:
        url = self._url(path)
        try:
            response = self._http.request(method, url, params=params, **kwargs)
        except httpx.HTTPError as e:
            raise GatewayClientError(f"failed to {method.lower()} {url}: {e}")
        if response.status_code != httpx.codes.OK:
            raise bad_status_error(url, response)
        return url, response

    @staticmethod
    def _parse(url: str, response: httpx.Response) -> Tuple[str, Dict[str, Any]]:
        text = response.text
        try:
            body = json.loads(text)
        except ValueError as e:
            raise GatewayClientError(
                f"failed to parse response from {url}: {e}, response: {text}"
            )
        if not isinstance(body, dict):
            raise GatewayClientError(f"unexpected response from {url}: {text}")
        return text, body

    def _request_json(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        **kwargs,
    ) -> Tuple[str, Dict[str, Any]]:
        url, response = self._send(method, path, params=params, **kwargs)
        return self._parse(url, response)

    # ------------------------------------------------------------------
    # UPLOAD
    # ------------------------------------------------------------------

    def upload_file(self, file_path: str) -> str:
        """
        POST a local file to /s3/upload.

        Returns:
            Storage URL usable as mainApplicationFile
        """
        file_name = os.path.basename(file_path)
        try:
            size = os.path.getsize(file_path)
            f: BinaryIO = open(file_path, "rb")
        except OSError as e:
            raise GatewayClientError(f"cannot open file {file_path}: {e}")

        logger.info(f"Sending file {file_path} to {self._url('/s3/upload')}")
        with f:
            text, body = self._request_json(
                "POST",
                "/s3/upload",
                params={"name": file_name},
                content=f,
                headers={
                    "Content-Type": "application/octet-stream",
                    "Content-Length": str(size),
                },
            )
        url = body.get("url")
        if not url:
            raise GatewayClientError(f"failed to upload file, response: {text}")
        return url

    # ------------------------------------------------------------------
    # SUBMIT
    # ------------------------------------------------------------------

    def _submit(self, path: str, request: Dict[str, Any], params=None) -> str:
        text, body = self._request_json("POST", path, params=params, json=request)
        submission_id = body.get("submissionId")
        if not submission_id:
            raise GatewayClientError(f"failed to submit application, response: {text}")
        return submission_id

    def submit_application(self, request: Dict[str, Any]) -> str:
        """POST /submissions; the gateway picks the id."""
        return self._submit("/submissions", request)

    def submit_application_with_id(
        self,
        request: Dict[str, Any],
        submission_id: str,
        overwrite: bool = False,
    ) -> str:
        """POST /submissions/{id}[?overwrite=true]"""
        params = {"overwrite": "true"} if overwrite else None
        return self._submit(f"/submissions/{submission_id}", request, params=params)

    # ------------------------------------------------------------------
    # STATUS / LIST
    # ------------------------------------------------------------------

    def get_application_status(self, submission_id: str) -> Tuple[str, Dict[str, Any]]:
        """
        GET /submissions/{id}/status, retrying transport errors and
        non-200 responses for ClientDefaults.status_retry_seconds.
        """
        path = f"/submissions/{submission_id}/status"
        holder: Dict[str, Any] = {}

        def attempt() -> bool:
            try:
                holder["result"] = self._send("GET", path)
            except GatewayClientError as e:
                holder["error"] = e
                logger.warning(f"Failed to get {self._url(path)}: {e}")
                return False
            holder.pop("error", None)
            return True

        try:
            retry_until(
                attempt,
                self.defaults.status_retry_seconds,
                self.defaults.status_retry_interval_seconds,
            )
        except RetryTimeoutError:
            raise holder.get("error") or GatewayClientError(
                f"failed to get status from {self._url(path)}"
            )

        url, response = holder["result"]
        text, body = self._parse(url, response)
        if not body.get("submissionId"):
            raise GatewayClientError(f"failed to get application status, response: {text}")
        return text, body

    def list_submissions(self, limit: int = 0) -> Tuple[str, Dict[str, Any]]:
        """GET /submissions[?limit=N]"""
        params = {"limit": str(limit)} if limit > 0 else None
        return self._request_json("GET", "/submissions", params=params)

    # ------------------------------------------------------------------
    # DELETE / KILL
    # ------------------------------------------------------------------

    def delete_application(self, submission_id: str) -> Tuple[str, Dict[str, Any]]:
        """DELETE /submissions/{id}"""
        return self._request_json("DELETE", f"/submissions/{submission_id}")

    def kill_application(self, submission_id: str) -> Tuple[str, Dict[str, Any]]:
        """POST /submissions/{id}/kill"""
        return self._request_json("POST", f"/submissions/{submission_id}/kill")

    # ------------------------------------------------------------------
    # LOG
    # ------------------------------------------------------------------

    def write_application_log(
        self,
        submission_id: str,
        writer: BinaryIO,
        executor: int = -1,
        follow: bool = False,
    ) -> int:
        """
        Stream GET /submissions/{id}/log into writer.

        Returns:
            Bytes written
        """
        url = self._url(f"/submissions/{submission_id}/log")
        params: Dict[str, str] = {}
        if executor != -1:
            params["executor"] = str(executor)
        if follow:
            params["follow"] = "true"

        stream_kwargs = {}
        if follow:
            # no read deadline while following
            stream_kwargs["timeout"] = httpx.Timeout(self.defaults.request_timeout_seconds, read=None)
        written = 0
        try:
            with self._http.stream("GET", url, params=params or None, **stream_kwargs) as response:
                if response.status_code != httpx.codes.OK:
                    response.read()
                    raise bad_status_error(url, response)
                for chunk in response.iter_bytes(LOG_CHUNK_BYTES):
                    writer.write(chunk)
                    writer.flush()
                    written += len(chunk)
        except httpx.HTTPError as e:
            raise GatewayClientError(f"failed to get log from {url}: {e}")
        return written


__all__ = [
    "GatewayClient",
    "GatewayClientError",
    "bad_status_error",
]
