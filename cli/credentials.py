# ============================================================================
# CLI CREDENTIAL STORE
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: CLI - Cached server credentials
# PURPOSE: Persist gateway url/user/password across sparkcli invocations
# CREATED: 15 OCT 2026
# ============================================================================
"""
CLI Credential Store

YAML file (default ~/.sparkcli/config) in a kubeconfig-like shape:

    apiVersion: v1
    kind: SparkClientConfig
    clusters:
      - name: https://gw/sparkapi/v1
        cluster: {server: https://gw/sparkapi/v1}
    contexts:
      - name: https://gw/sparkapi/v1
        context: {cluster: https://gw/sparkapi/v1, user: alice}
    current-context: https://gw/sparkapi/v1
    users:
      - name: alice
        user: {password: secret}

Reads and writes hold the file lock from cli.filelock.
"""

import logging
import os
from dataclasses import dataclass
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from cli.filelock import locked_file

logger = logging.getLogger(__name__)

CONFIG_API_VERSION = "v1"
CONFIG_KIND = "SparkClientConfig"
DEFAULT_CONFIG_DIR = ".sparkcli"
DEFAULT_CONFIG_FILE = "config"


class CredentialError(Exception):
    """Credential lookup or persistence failed."""


# ============================================================================
# FILE MODEL
# ============================================================================

class ClusterDetail(BaseModel):
    server: str = ""


class ClusterEntry(BaseModel):
    name: str = ""
    cluster: ClusterDetail = Field(default_factory=ClusterDetail)


class ContextDetail(BaseModel):
    cluster: str = ""
    user: str = ""


class ContextEntry(BaseModel):
    name: str = ""
    context: ContextDetail = Field(default_factory=ContextDetail)


class UserDetail(BaseModel):
    password: str = ""


class UserEntry(BaseModel):
    name: str = ""
    user: UserDetail = Field(default_factory=UserDetail)


@dataclass(frozen=True)
class ServerCredential:
    server: str
    user: str
    password: str


class CredentialStore(BaseModel):
    """Cluster / context / user triples plus the current context."""

    model_config = {"populate_by_name": True}

    api_version: str = Field(default=CONFIG_API_VERSION, alias="apiVersion")
    kind: str = CONFIG_KIND
    clusters: List[ClusterEntry] = Field(default_factory=list)
    contexts: List[ContextEntry] = Field(default_factory=list)
    current_context: str = Field(default="", alias="current-context")
    users: List[UserEntry] = Field(default_factory=list)

    # ------------------------------------------------------------------
    # LOOKUP
    # ------------------------------------------------------------------

    def _find_context(self, name: str) -> Optional[ContextEntry]:
        return next((c for c in self.contexts if c.name == name), None)

    def _find_cluster(self, name: str) -> Optional[ClusterEntry]:
        return next((c for c in self.clusters if c.name == name), None)

    def _find_user(self, name: str) -> Optional[UserEntry]:
        return next((u for u in self.users if u.name == name), None)

    def _credential_for_context(self, context_name: str) -> ServerCredential:
        context = self._find_context(context_name)
        if context is None:
            raise CredentialError(
                f"cannot get current credential due to details not found for context {context_name}"
            )
        cluster = self._find_cluster(context.context.cluster)
        if cluster is None:
            raise CredentialError(
                f"cannot get current credential due to details not found for cluster "
                f"{context.context.cluster}"
            )
        user = self._find_user(context.context.user)
        if user is None:
            raise CredentialError(
                f"cannot get current credential due to details not found for user "
                f"{context.context.user}"
            )
        return ServerCredential(
            server=cluster.cluster.server,
            user=user.name,
            password=user.user.password,
        )

    def get_current_credential(self) -> ServerCredential:
        """
        Credential of the current context.

        Raises:
            CredentialError: current context unset or dangling
        """
        if not self.current_context:
            raise CredentialError("cannot get current credential due to current context not set")
        return self._credential_for_context(self.current_context)

    def get_credential_by_server(self, server: str) -> ServerCredential:
        """
        Credential for a server url; the current context wins when it matches.

        Raises:
            CredentialError: no context points at the server
        """
        candidates = [self.current_context] + [c.name for c in self.contexts]
        for context_name in candidates:
            context = self._find_context(context_name)
            if context is None:
                continue
            cluster = self._find_cluster(context.context.cluster)
            if cluster is not None and cluster.cluster.server == server:
                return self._credential_for_context(context_name)
        raise CredentialError(f"cannot get credential for server {server}")

    # ------------------------------------------------------------------
    # MUTATION
    # ------------------------------------------------------------------

    def update_current_user_password(self, server: str, user: str, password: str) -> None:
        """Upsert cluster, context and user for server and make it current."""
        cluster = self._find_cluster(server)
        if cluster is None:
            self.clusters.append(ClusterEntry(name=server, cluster=ClusterDetail(server=server)))
        else:
            cluster.cluster.server = server

        context = self._find_context(server)
        if context is None:
            self.contexts.append(
                ContextEntry(name=server, context=ContextDetail(cluster=server, user=user))
            )
        else:
            context.context.cluster = server
            context.context.user = user

        user_entry = self._find_user(user)
        if user_entry is None:
            self.users.append(UserEntry(name=user, user=UserDetail(password=password)))
        else:
            user_entry.user.password = password

        self.current_context = server

    # ------------------------------------------------------------------
    # PERSISTENCE
    # ------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, text: str) -> "CredentialStore":
        """
        Raises:
            CredentialError: text is not YAML or not shaped like a credential file
        """
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise CredentialError(f"invalid yaml: {e}")
        if not isinstance(data, dict):
            raise CredentialError("credential file is not a mapping")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise CredentialError(f"unexpected credential file content: {e}")

    def to_yaml(self) -> str:
        return yaml.safe_dump(
            self.model_dump(by_alias=True),
            default_flow_style=False,
            sort_keys=False,
        )

    @classmethod
    def _read(cls, path: str) -> "CredentialStore":
        """Parse path, or an empty store when it does not exist. Caller holds the lock."""
        if not os.path.exists(path):
            return cls()
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
        try:
            return cls.from_yaml(text)
        except CredentialError as e:
            raise CredentialError(f"failed to parse credential file {path}: {e}")

    def _write(self, path: str) -> None:
        """Write path with mode 0600. Caller holds the lock."""
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(self.to_yaml())
        logger.debug(f"Saved credential to {path}")

    @staticmethod
    def _ensure_directory(path: str) -> None:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, mode=0o700, exist_ok=True)

    @classmethod
    def load_if_exists(cls, path: str, lock_wait_millis: int = 10_000) -> "CredentialStore":
        """Load path, or an empty store when it does not exist."""
        if not os.path.exists(path):
            return cls()
        with locked_file(path, lock_wait_millis):
            return cls._read(path)

    def save_to_file(self, path: str, lock_wait_millis: int = 10_000) -> None:
        """Write the store to path (mode 0600), creating the directory."""
        self._ensure_directory(path)
        with locked_file(path, lock_wait_millis):
            self._write(path)

    @classmethod
    def update_file(
        cls,
        path: str,
        server: str,
        user: str,
        password: str,
        lock_wait_millis: int = 10_000,
    ) -> "CredentialStore":
        """
        Upsert server/user/password into path and make it current.

        Read, update and write all happen under one lock so concurrent
        sparkcli runs never drop each other's entries.

        Returns:
            The store as written

        Raises:
            CredentialError: existing file cannot be parsed
            FileLockError: lock not acquired
        """
        cls._ensure_directory(path)
        with locked_file(path, lock_wait_millis):
            store = cls._read(path)
            store.update_current_user_password(server, user, password)
            store._write(path)
        return store


def default_config_path() -> str:
    """~/.sparkcli/config"""
    return os.path.join(os.path.expanduser("~"), DEFAULT_CONFIG_DIR, DEFAULT_CONFIG_FILE)


__all__ = [
    "CredentialError",
    "CredentialStore",
    "ServerCredential",
    "default_config_path",
]
