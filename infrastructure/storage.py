# ============================================================================
# BLOB STORAGE INFRASTRUCTURE
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Infrastructure - Azure Blob Storage uploads
# PURPOSE: Store application files uploaded through the gateway
# CREATED: 14 OCT 2026
# ============================================================================
"""
Blob Storage Infrastructure

BlobRepository streams uploaded application files (jars, Python files,
archives) into Azure Blob Storage. ArtifactUploader builds the object key
and returns a wasbs:// URL that Spark can read directly.

Uses DefaultAzureCredential for authentication (works with Managed Identity)
unless a connection string is configured.
Container clients are cached with thread-safe double-checked locking
because uploads run in the threadpool.
"""

import logging
import os
import threading
import time
import uuid
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional

from azure.core.exceptions import AzureError
from azure.storage.blob import BlobServiceClient, ContentSettings

from core.errors import StorageUploadError

logger = logging.getLogger(__name__)


def _account_from_connection_string(connection_string: Optional[str]) -> str:
    """AccountName=... field of an Azure Storage connection string."""
    for part in (connection_string or "").split(";"):
        key, _, value = part.partition("=")
        if key.strip().lower() == "accountname":
            return value.strip()
    return ""


# ============================================================================
# BLOB REPOSITORY
# ============================================================================

class BlobRepository:
    """
    Azure Blob Storage repository for one storage account.

    Usage:
        repo = BlobRepository(account_name="sparkartifacts")
        repo.upload_stream("uploads", "root/ab/<uuid>/job.py", stream)
    """

    def __init__(
        self,
        account_name: str,
        connection_string: Optional[str] = None,
    ):
        if not account_name and not connection_string:
            raise ValueError("BlobRepository requires an account_name or connection_string")

        self.account_name = account_name or _account_from_connection_string(connection_string)
        self._connection_string = connection_string

        self._container_clients: Dict[str, Any] = {}
        self._container_clients_lock = threading.Lock()

        self._blob_service = None
        self._credential = None

        logger.info(f"BlobRepository initialized for account: {self.account_name}")

    # ========================================================================
    # AZURE CLIENT INITIALIZATION
    # ========================================================================

    def _get_credential(self):
        """Get Azure credential (lazy initialization)."""
        if self._credential is None:
            client_id = os.environ.get("AZURE_CLIENT_ID")
            if client_id:
                from azure.identity import ManagedIdentityCredential
                self._credential = ManagedIdentityCredential(client_id=client_id)
                logger.debug("ManagedIdentityCredential initialized with client_id")
            else:
                from azure.identity import DefaultAzureCredential
                self._credential = DefaultAzureCredential()
                logger.debug("DefaultAzureCredential initialized")
        return self._credential

    def _get_blob_service(self) -> BlobServiceClient:
        """Get BlobServiceClient (lazy initialization)."""
        if self._blob_service is None:
            if self._connection_string:
                self._blob_service = BlobServiceClient.from_connection_string(
                    self._connection_string
                )
            else:
                account_url = f"https://{self.account_name}.blob.core.windows.net"
                self._blob_service = BlobServiceClient(
                    account_url=account_url,
                    credential=self._get_credential(),
                )
            logger.debug(f"BlobServiceClient initialized for {self.account_name}")
        return self._blob_service

    def _get_container_client(self, container: str):
        """
        Get or create cached container client.

        Thread-safe with double-checked locking pattern.
        """
        if container in self._container_clients:
            return self._container_clients[container]

        with self._container_clients_lock:
            if container in self._container_clients:
                return self._container_clients[container]

            container_client = self._get_blob_service().get_container_client(container)
            self._container_clients[container] = container_client
            logger.debug(f"Created container client for: {container}")
            return container_client

    # ========================================================================
    # UPLOAD
    # ========================================================================

    def upload_stream(
        self,
        container: str,
        blob_path: str,
        stream: BinaryIO,
        length: Optional[int] = None,
        content_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Upload a byte stream to a blob without buffering it all in memory.

        Args:
            container: Destination container name
            blob_path: Destination blob path within container
            stream: Readable binary stream
            length: Byte length if known
            content_type: Optional content type (detected from extension if not set)

        Returns:
            Dict with operation results

        Raises:
            StorageUploadError: upload failed
        """
        if content_type is None:
            content_type = self._detect_content_type(blob_path)

        logger.info(f"Uploading to blob storage, container: {container}, path: {blob_path}")
        start_time = time.time()

        try:
            blob_client = self._get_container_client(container).get_blob_client(blob_path)
            result = blob_client.upload_blob(
                stream,
                overwrite=True,
                length=length,
                content_settings=ContentSettings(content_type=content_type),
                max_concurrency=4,
            )
        except AzureError as e:
            logger.error(f"Upload to {container}/{blob_path} failed: {e}")
            raise StorageUploadError(
                f"Failed to upload to blob storage, container: {container}, "
                f"path: {blob_path}, error: {e}"
            ) from e

        duration = time.time() - start_time
        logger.info(f"Uploaded {container}/{blob_path} in {duration:.1f}s")

        return {
            "container": container,
            "blob_path": blob_path,
            "etag": result.get("etag") if result else None,
            "content_type": content_type,
            "duration_seconds": round(duration, 2),
        }

    def blob_url(self, container: str, blob_path: str) -> str:
        """Hadoop-style URL Spark uses to read the blob."""
        return f"wasbs://{container}@{self.account_name}.blob.core.windows.net/{blob_path}"

    def _detect_content_type(self, path: str) -> str:
        """Auto-detect content type from file extension."""
        ext = Path(path).suffix.lower()
        content_types = {
            ".jar": "application/java-archive",
            ".py": "text/x-python",
            ".zip": "application/zip",
            ".egg": "application/zip",
            ".whl": "application/zip",
            ".json": "application/json",
            ".yaml": "application/yaml",
            ".yml": "application/yaml",
            ".txt": "text/plain",
            ".r": "text/plain",
        }
        return content_types.get(ext, "application/octet-stream")


# ============================================================================
# ARTIFACT UPLOADER
# ============================================================================

def artifact_key(root: str, name: str) -> str:
    """
    Object key for an uploaded file.

    Layout: {root}/{first char}{last char}/{uuid4}/{name}. The two-char
    prefix spreads keys across the namespace.
    """
    name_hash = f"{name[:1]}{name[-1:]}"
    return f"{root}/{name_hash}/{uuid.uuid4()}/{name}"


class ArtifactUploader:
    """Upload application files under a fixed container and root."""

    def __init__(self, repository: BlobRepository, container: str, root: str):
        self.repository = repository
        self.container = container
        self.root = root.strip("/")

    def upload(self, name: str, stream: BinaryIO, length: Optional[int] = None) -> str:
        """
        Upload stream as name and return its URL.

        Raises:
            StorageUploadError: upload failed
        """
        key = artifact_key(self.root, name)
        self.repository.upload_stream(self.container, key, stream, length=length)
        return self.repository.blob_url(self.container, key)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "BlobRepository",
    "ArtifactUploader",
    "artifact_key",
]
