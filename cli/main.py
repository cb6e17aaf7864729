#!/usr/bin/env python3
# ============================================================================
# SPARKCLI ENTRY POINT
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: CLI - sparkcli command line
# PURPOSE: Submit and manage Spark applications through the gateway
# CREATED: 15 OCT 2026
# ============================================================================
"""
sparkcli - command line client for the Spark Submission Gateway.

Usage:
    # Submit and wait for completion (credential cached in ~/.sparkcli/config)
    sparkcli --url https://gw/sparkapi/v1 -u alice -p secret \\
        submit --class org.example.Main app.jar arg1 arg2

    # Reuse the cached credential
    sparkcli status app-1b2c
    sparkcli log app-1b2c --executor 1 --follow
    sparkcli list --limit 20 --state RUNNING
    sparkcli kill app-1b2c
    sparkcli delete app-1b2c

    # Upload a file or a zipped directory
    sparkcli upload ./deps/

Exit code 0 on success, 1 on any failure.
"""

import argparse
import json
import logging
import os
import sys
import tempfile
import time
import zipfile
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional
from urllib.parse import urlparse

from core.config import ClientDefaults
from core.contracts import is_terminal_state
from core.logging import configure_logging
from core.models import DriverSpec, ExecutorSpec, SubmissionRequest
from cli.client import GatewayClient, GatewayClientError
from cli.credentials import CredentialError, CredentialStore, default_config_path
from cli.filelock import FileLockError

logger = logging.getLogger("sparkcli")

WAIT_APP_COMPLETION_CONF = "spark.kubernetes.submission.waitAppCompletion"


class CliError(Exception):
    """Reported to stderr; sparkcli exits 1."""


@dataclass
class CliOptions:
    """Global options shared by every subcommand."""

    url: str = ""
    insecure: bool = False
    user: str = ""
    password: str = ""
    ignore_credential_cache: bool = False
    config_path: str = ""

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "CliOptions":
        return cls(
            url=args.url or "",
            insecure=args.insecure,
            user=args.user or "",
            password=args.password or "",
            ignore_credential_cache=args.ignore_credential_cache,
            config_path=args.config or default_config_path(),
        )


# ============================================================================
# HELPERS
# ============================================================================

def check_local_file(file: str) -> Optional[str]:
    """Local path for a file:// or scheme-less reference, else None."""
    parsed = urlparse(file)
    if parsed.scheme.lower() == "file":
        return parsed.path
    if parsed.scheme == "":
        return file
    return None


def parse_spark_conf(entries: List[str]) -> Dict[str, str]:
    """k=v entries; an entry without '=' maps to an empty value."""
    conf: Dict[str, str] = {}
    for entry in entries or []:
        key, sep, value = entry.partition("=")
        conf[key] = value if sep else ""
    return conf


def wait_app_completion(spark_conf: Dict[str, str]) -> bool:
    return spark_conf.get(WAIT_APP_COMPLETION_CONF, "").lower() != "false"


def write_output_file(path: str, content: str) -> None:
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
    except OSError as e:
        raise CliError(f"Failed to write output file {path}: {e}")


def zip_directory(source_dir: str, target_dir: str) -> str:
    """
    Zip the contents of source_dir into target_dir/<dirname>.zip.

    Entry names are relative to source_dir.

    Returns:
        Path of the zip file
    """
    source_dir = os.path.abspath(source_dir)
    name = os.path.basename(source_dir.rstrip(os.sep)) or "archive"
    zip_path = os.path.join(target_dir, f"{name}.zip")
    with zipfile.ZipFile(zip_path, "w", zipfile.ZIP_DEFLATED) as zf:
        for root, _dirs, files in os.walk(source_dir):
            for file_name in sorted(files):
                full_path = os.path.join(root, file_name)
                zf.write(full_path, os.path.relpath(full_path, source_dir))
    return zip_path


def resolve_credentials(options: CliOptions, defaults: ClientDefaults) -> CliOptions:
    """
    Fill url/user/password from the credential store.

    url + user + password given: saved and made current.
    nothing given: current context is used.
    url given, user or password missing: looked up by server.

    Raises:
        CliError: no url after resolution, or the store is unusable
    """
    if not options.ignore_credential_cache:
        path = options.config_path
        wait = defaults.credential_lock_wait_millis
        if options.url and options.user and options.password:
            try:
                store = CredentialStore.update_file(
                    path, options.url, options.user, options.password, wait
                )
            except (CredentialError, FileLockError, OSError) as e:
                raise CliError(f"Failed to save credential to file {path}: {e}")
        else:
            try:
                store = CredentialStore.load_if_exists(path, wait)
            except (CredentialError, FileLockError, OSError) as e:
                raise CliError(f"Failed to load config from file {path}: {e}")

        if not (options.url or options.user or options.password):
            try:
                credential = store.get_current_credential()
            except CredentialError as e:
                raise CliError(f"Failed to get current credential: {e}")
            options = replace(
                options,
                url=credential.server,
                user=credential.user,
                password=credential.password,
            )
            logger.info(
                f"No server information found in the command arguments, use credential "
                f"from current context, server: {options.url}, user: {options.user}"
            )
        elif options.url and not (options.user and options.password):
            try:
                credential = store.get_credential_by_server(options.url)
            except CredentialError as e:
                raise CliError(f"Failed to get credential for server {options.url}: {e}")
            options = replace(
                options,
                user=options.user or credential.user,
                password=options.password or credential.password,
            )
            logger.info(
                f"Server {options.url} provided in the command arguments, "
                f"use local config for user: {options.user}"
            )

    if not options.url:
        raise CliError(
            "Please provide server information using --url argument, "
            "e.g. --url http://server:port/sparkapi/v1"
        )
    return options


# ============================================================================
# COMMANDS
# ============================================================================

def build_submission_request(args: argparse.Namespace, application_file: str) -> Dict:
    spark_conf = parse_spark_conf(args.conf)
    request = SubmissionRequest(
        applicationName=args.application_name or None,
        desiredState=args.desired_state or None,
        image=args.image or None,
        sparkVersion=args.spark_version or None,
        type=args.type or None,
        mainClass=args.main_class or None,
        mainApplicationFile=application_file,
        arguments=list(args.application_args) or None,
        driver=DriverSpec(cores=args.driver_cores, memory=args.driver_memory),
        executor=ExecutorSpec(
            instances=args.num_executors,
            cores=args.executor_cores,
            memory=args.executor_memory,
        ),
        sparkConf=spark_conf,
        failureRetries=args.failure_retries,
    )
    return request.model_dump(by_alias=True, exclude_none=True)


def wait_for_completion(
    client: GatewayClient,
    submission_id: str,
    max_wait_seconds: float,
    poll_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict:
    """
    Poll status until a terminal state or the deadline.

    Raises:
        CliError: deadline passed or status unavailable
    """
    deadline = time.monotonic() + max_wait_seconds
    while time.monotonic() < deadline:
        try:
            text, status = client.get_application_status(submission_id)
        except GatewayClientError as e:
            raise CliError(f"Failed to get status for application {submission_id}: {e}")
        state = status.get("state", "")
        if is_terminal_state(state):
            logger.info(f"Application {submission_id} finished: {text}")
            return status
        logger.info(f"Waiting until application {submission_id} finished (current state: {state})")
        sleep(poll_seconds)
    raise CliError(f"Application {submission_id} not finished")


def cmd_submit(options: CliOptions, args: argparse.Namespace, client: GatewayClient) -> None:
    defaults = client.defaults
    if args.overwrite and not args.id:
        raise CliError("Cannot overwrite Spark application without --id argument")

    application_file = args.application_file
    local_file = check_local_file(application_file)
    if local_file:
        logger.info(f"Uploading local application file {local_file}")
        try:
            application_file = client.upload_file(local_file)
        except GatewayClientError as e:
            raise CliError(f"Failed to upload application file {local_file}: {e}")
        logger.info(f"Uploaded file to {application_file}")

    request = build_submission_request(args, application_file)

    try:
        if args.id:
            submission_id = client.submit_application_with_id(request, args.id, args.overwrite)
        else:
            submission_id = client.submit_application(request)
    except GatewayClientError as e:
        if args.id:
            raise CliError(f"Failed to submit application with id {args.id}: {e}")
        raise CliError(f"Failed to submit application: {e}")

    logger.info(f"Submitted application, submission id: {submission_id}")
    if args.output:
        write_output_file(args.output, json.dumps({"submissionId": submission_id}))

    if wait_app_completion(request.get("sparkConf", {})):
        max_wait = args.max_wait_seconds
        if max_wait is None:
            max_wait = defaults.max_wait_seconds
        wait_for_completion(client, submission_id, max_wait, defaults.status_poll_seconds)

    logger.info(
        f"You could check application log by running: "
        f"sparkcli --insecure --url {options.url} log {submission_id}"
    )


def cmd_status(options: CliOptions, args: argparse.Namespace, client: GatewayClient) -> None:
    try:
        text, _ = client.get_application_status(args.submission_id)
    except GatewayClientError as e:
        raise CliError(f"Failed to get application status: {e}")
    if args.output:
        write_output_file(args.output, text)
    print(text)


def cmd_delete(options: CliOptions, args: argparse.Namespace, client: GatewayClient) -> None:
    try:
        text, _ = client.delete_application(args.submission_id)
    except GatewayClientError as e:
        raise CliError(f"Failed to delete application: {e}")
    if args.output:
        write_output_file(args.output, text)
    logger.info(f"Response: {text}")


def cmd_kill(options: CliOptions, args: argparse.Namespace, client: GatewayClient) -> None:
    try:
        text, _ = client.kill_application(args.submission_id)
    except GatewayClientError as e:
        raise CliError(f"Failed to kill application: {e}")
    logger.info(f"Response: {text}")


def cmd_list(options: CliOptions, args: argparse.Namespace, client: GatewayClient) -> None:
    try:
        text, body = client.list_submissions(args.limit)
    except GatewayClientError as e:
        raise CliError(f"Failed to get application submissions: {e}")
    if args.state:
        items = [
            item for item in body.get("items", [])
            if str(item.get("state", "")).lower() == args.state.lower()
        ]
        text = json.dumps({"items": items})
    if args.output:
        write_output_file(args.output, text)
    print(text)


def cmd_log(options: CliOptions, args: argparse.Namespace, client: GatewayClient) -> None:
    try:
        client.write_application_log(
            args.submission_id,
            sys.stdout.buffer,
            executor=args.executor,
            follow=args.follow,
        )
    except GatewayClientError as e:
        raise CliError(f"Failed to get log: {e}")


def cmd_upload(options: CliOptions, args: argparse.Namespace, client: GatewayClient) -> None:
    path = args.file
    with tempfile.TemporaryDirectory(prefix="sparkcli-") as tmp_dir:
        if os.path.isdir(path):
            path = zip_directory(path, tmp_dir)
            logger.info(f"Zipped directory {args.file} to {path}")
        try:
            url = client.upload_file(path)
        except GatewayClientError as e:
            raise CliError(f"Failed to upload file {args.file}: {e}")
    if args.output:
        write_output_file(args.output, json.dumps({"url": url}))
    print(url)


# ============================================================================
# PARSER
# ============================================================================

def _add_output(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-o", "--output", default="", help="file to write output information")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sparkcli",
        description="Submit and manage Spark applications through the gateway",
    )
    parser.add_argument("-l", "--url", default="", help="gateway API root, e.g. http://server:port/sparkapi/v1")
    parser.add_argument("-k", "--insecure", action="store_true", help="skip TLS certificate verification")
    parser.add_argument("-u", "--user", default="", help="user name")
    parser.add_argument("-p", "--password", default="", help="password")
    parser.add_argument(
        "--ignore-credential-cache",
        action="store_true",
        help="neither read nor write the local credential file",
    )
    parser.add_argument("--config", default="", help=argparse.SUPPRESS)
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    sub = parser.add_subparsers(dest="command", metavar="<command>")
    sub.required = True

    submit = sub.add_parser("submit", help="submit a Spark application")
    submit.add_argument("application_file", help="application file (local path or URL)")
    submit.add_argument("application_args", nargs=argparse.REMAINDER, help="application arguments")
    submit.add_argument("--id", default="", help="submission id; generated by the gateway when empty")
    submit.add_argument("--overwrite", action="store_true", help="replace an existing submission with --id")
    submit.add_argument("--application-name", default="")
    submit.add_argument("--desired-state", default="")
    submit.add_argument("--max-wait-seconds", type=int, default=None,
                        help="max seconds to wait for completion (default 86400)")
    submit.add_argument("--class", dest="main_class", default="", help="main class")
    submit.add_argument("--image", default="")
    submit.add_argument("--spark-version", default="")
    submit.add_argument("--type", default="", help="Java, Scala, Python or R")
    submit.add_argument("--conf", action="append", default=[], help="Spark conf key=value (repeatable)")
    submit.add_argument("--driver-cores", type=int, default=1)
    submit.add_argument("--driver-memory", default="1g")
    submit.add_argument("--num-executors", type=int, default=1)
    submit.add_argument("--executor-cores", type=int, default=1)
    submit.add_argument("--executor-memory", default="1g")
    submit.add_argument("--failure-retries", type=int, default=0)
    _add_output(submit)
    submit.set_defaults(handler=cmd_submit)

    status = sub.add_parser("status", help="get application status")
    status.add_argument("submission_id")
    _add_output(status)
    status.set_defaults(handler=cmd_status)

    delete = sub.add_parser("delete", help="delete an application")
    delete.add_argument("submission_id")
    _add_output(delete)
    delete.set_defaults(handler=cmd_delete)

    kill = sub.add_parser("kill", help="kill an application, keeping its submission")
    kill.add_argument("submission_id")
    kill.set_defaults(handler=cmd_kill)

    list_cmd = sub.add_parser("list", help="list application submissions")
    list_cmd.add_argument("--limit", type=int, default=0, help="max number of items returned by the server")
    list_cmd.add_argument("--state", default="", help="only show submissions in this state")
    _add_output(list_cmd)
    list_cmd.set_defaults(handler=cmd_list)

    log = sub.add_parser("log", help="print driver or executor log")
    log.add_argument("submission_id")
    log.add_argument("-e", "--executor", type=int, default=-1, help="executor id (default: driver)")
    log.add_argument("-f", "--follow", action="store_true", help="stream the log")
    log.set_defaults(handler=cmd_log)

    upload = sub.add_parser("upload", help="upload a file or directory (zipped)")
    upload.add_argument("file")
    _add_output(upload)
    upload.set_defaults(handler=cmd_upload)

    return parser


# ============================================================================
# MAIN
# ============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        level="DEBUG" if args.verbose else "INFO",
        json_output=False,
        stream=sys.stderr,
    )
    defaults = ClientDefaults.from_env()

    try:
        options = resolve_credentials(CliOptions.from_args(args), defaults)
        with GatewayClient(
            options.url,
            options.user,
            options.password,
            insecure=options.insecure,
            defaults=defaults,
        ) as client:
            args.handler(options, args, client)
    except CliError as e:
        print(str(e), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
