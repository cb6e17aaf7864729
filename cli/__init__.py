# ============================================================================
# SPARKCLI PACKAGE
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: CLI - Package exports
# PURPOSE: Command line client for the submission gateway
# CREATED: 15 OCT 2026
# ============================================================================
"""
sparkcli - command line client for the Spark Submission Gateway.

Entry point: cli.main:main (installed as the sparkcli console script).
"""

from cli.client import GatewayClient, GatewayClientError
from cli.credentials import CredentialError, CredentialStore, ServerCredential
from cli.filelock import FileLockError, lock_file, unlock_file, wait_lock_file

__all__ = [
    "GatewayClient",
    "GatewayClientError",
    "CredentialError",
    "CredentialStore",
    "ServerCredential",
    "FileLockError",
    "lock_file",
    "unlock_file",
    "wait_lock_file",
]
