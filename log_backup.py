#!/usr/bin/env python3
"""
Log backup to S3.

Selects log files whose filename-embedded date is older than a retention
period, uploads them to an S3 bucket under an optionally date-partitioned
prefix and, when asked to, removes the local copies afterwards.
"""
from __future__ import annotations

import argparse
import configparser
import glob
import logging
import os
import re
import signal
import socket
import sys
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple
from urllib.parse import quote


__version__ = "0.1.0"

DEFAULT_LOCK_FILE = "/var/run/backup-log-to-s3.lock"
DEFAULT_STORAGE_CLASS = "STANDARD_IA"
CONFIG_SECTION = "log_backup"
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
NOISY_LOGGERS = ("boto", "boto3", "botocore", "urllib3", "s3transfer")

PERIOD_EXAMPLES = (
    "\n\nExamples:\n"
    '  "1 day"     - Files older than 1 day\n'
    '  "7 days"    - Files older than 7 days\n'
    '  "1 month"   - Files older than 1 month\n'
    '  "2 months"  - Files older than 2 months\n'
    '  "1 year"    - Files older than 1 year'
)

PATTERN_EXAMPLES = (
    "\n\nExamples:\n"
    "  *YYYYMMDD.log.gz           - Matches app20241215.log.gz\n"
    "  YYYY-MM-DD.gz              - Matches 2024-12-15.gz\n"
    "  YYYY_MM_DD.gz              - Matches 2024_12_15.gz\n"
    "  /var/log/app*YYYYMMDD.gz   - Matches /var/log/app20241215.gz\n"
    "  nginx-YYYY-MM-DD.log.gz    - Matches nginx-2024-12-15.log.gz\n"
    "  system_YYYY_MM_DD.log.gz   - Matches system_2024_12_15.log.gz"
)


class LogBackupError(Exception):
    """Base class for errors raised by the log backup tool."""


class ConfigError(LogBackupError):
    """Raised when required configuration is missing or invalid."""


class LockError(LogBackupError):
    """Raised when the lock file is held by another instance."""


class DateExtractionError(LogBackupError):
    """Raised when a filename carries no recognizable or valid date."""


class UploadError(LogBackupError):
    pass


class DeleteError(LogBackupError):
    pass


class AggregateError(LogBackupError):
    """Raised at the end of a run in which one or more files failed."""

    def __init__(self, error_count: int) -> None:
        super().__init__(f"backup completed with {error_count} errors")
        self.error_count = error_count


@dataclass(frozen=True)
class TransportOptions:
    profile: Optional[str] = None
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    verify_ssl: bool = True
    ca_bundle: Optional[str] = None
    read_timeout: int = 0  # seconds, 0 keeps the botocore default
    connect_timeout: int = 0


@dataclass(frozen=True)
class RunConfig:
    pattern: str
    period: str
    bucket: str
    prefix: str
    storage_class: str = DEFAULT_STORAGE_CLASS
    delete_after_upload: bool = False
    dry_run: bool = False
    lock_path: str = DEFAULT_LOCK_FILE
    transport: TransportOptions = field(default_factory=TransportOptions)


@dataclass(frozen=True)
class TargetFile:
    path: Path
    file_date: date


@dataclass
class RunStats:
    total: int = 0
    uploaded: int = 0
    deleted: int = 0
    skipped: int = 0
    errors: int = 0

    def summary(self) -> str:
        return (
            f"total={self.total} uploaded={self.uploaded} deleted={self.deleted} "
            f"skipped={self.skipped} errors={self.errors}"
        )


@dataclass(frozen=True)
class DateShape:
    """One spelling of a date embedded in a filename."""

    token: str
    regex: "re.Pattern[str]"
    date_format: str


# Priority order: the first shape that matches a filename wins.
DATE_SHAPES: Tuple[DateShape, ...] = (
    DateShape(
        "YYYYMMDD",
        re.compile(r"(?P<year>\d{4})(?P<month>\d{2})(?P<day>\d{2})"),
        "%Y%m%d",
    ),
    DateShape(
        "YYYY-MM-DD",
        re.compile(r"(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"),
        "%Y-%m-%d",
    ),
    DateShape(
        "YYYY/MM/DD",
        re.compile(r"(?P<year>\d{4})/(?P<month>\d{2})/(?P<day>\d{2})"),
        "%Y/%m/%d",
    ),
    DateShape(
        "YYYY_MM_DD",
        re.compile(r"(?P<year>\d{4})_(?P<month>\d{2})_(?P<day>\d{2})"),
        "%Y_%m_%d",
    ),
)

PREFIX_TOKENS = ("YYYY", "MM", "DD")

PERIOD_UNITS: Dict[str, timedelta] = {
    "day": timedelta(days=1),
    "days": timedelta(days=1),
    "month": timedelta(days=30),
    "months": timedelta(days=30),
    "year": timedelta(days=365),
    "years": timedelta(days=365),
}


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Upload log files matching a dated glob pattern to S3. Only files "
            "whose filename date is older than the given period are processed. "
            "Local files are kept unless --delete is given."
        ),
        epilog=(
            "examples:\n"
            '  %(prog)s --bucket my-logs --prefix logs "1 day" "*YYYYMMDD.log.gz"\n'
            '  %(prog)s --bucket my-logs --prefix logs/YYYY/MM "1 month" "nginx-YYYY-MM-DD.log.gz"\n'
            '  %(prog)s --bucket my-logs --prefix logs --dry-run "7 days" "/var/log/app*YYYYMMDD.gz"\n'
            "\n"
            "Prefix tokens YYYY, MM and DD are replaced with the date found in each filename."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "period",
        nargs="?",
        help='Retention period, e.g. "1 day", "7 days", "1 month", "1 year".',
    )
    parser.add_argument(
        "pattern",
        nargs="?",
        help="File pattern with a YYYYMMDD, YYYY-MM-DD, YYYY/MM/DD or YYYY_MM_DD date token.",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help=f"Path to an INI config file with a [{CONFIG_SECTION}] section.",
    )
    parser.add_argument("--bucket", help="S3 bucket name (required).")
    parser.add_argument(
        "--prefix",
        help="S3 key prefix; may contain YYYY, MM and DD tokens (required).",
    )
    parser.add_argument(
        "--region",
        help="AWS region (falls back to AWS_DEFAULT_REGION or the shared config).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Append log output to this file instead of stdout.",
    )
    parser.add_argument(
        "--lock",
        help=f"Lock file path; an empty value disables locking (default: {DEFAULT_LOCK_FILE}).",
    )
    parser.add_argument(
        "--storage-class",
        help=f"S3 storage class (default: {DEFAULT_STORAGE_CLASS}).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Show planned actions without uploading or deleting files.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log at DEBUG level and mirror the output file to stdout.",
    )
    parser.add_argument(
        "--delete",
        action="store_true",
        default=None,
        help="Delete local files after a successful upload.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="Logging verbosity (default: INFO).",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    transport = parser.add_argument_group("AWS CLI compatible options")
    transport.add_argument(
        "--profile",
        help="Use a specific profile from your credential file.",
    )
    transport.add_argument(
        "--endpoint-url",
        help="Override the default S3 endpoint URL (uses path-style addressing).",
    )
    transport.add_argument(
        "--no-verify-ssl",
        action="store_true",
        default=None,
        help="Do not verify SSL certificates.",
    )
    transport.add_argument(
        "--ca-bundle",
        help="CA certificate bundle to use when verifying SSL certificates.",
    )
    transport.add_argument(
        "--cli-read-timeout",
        type=int,
        help="Maximum socket read time in seconds (0 keeps the default).",
    )
    transport.add_argument(
        "--cli-connect-timeout",
        type=int,
        help="Maximum socket connect time in seconds (0 keeps the default).",
    )
    return parser.parse_args(argv)


def read_config_file(config_path: Path) -> Dict[str, str]:
    parser = configparser.ConfigParser()
    read_files = parser.read(config_path)
    if not read_files:
        raise ConfigError(f"Config file {config_path} could not be read.")
    if CONFIG_SECTION not in parser:
        raise ConfigError(
            f"Config file {config_path} is missing the [{CONFIG_SECTION}] section."
        )
    return {k: v for k, v in parser[CONFIG_SECTION].items()}


def parse_bool(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ConfigError(f"Invalid boolean value: {value}")


def parse_int(value: str, name: str) -> int:
    try:
        return int(value)
    except ValueError as error:
        raise ConfigError(f"{name} must be an integer.") from error


def _pick(cli_value: Optional[str], file_cfg: Dict[str, str], key: str) -> Optional[str]:
    if cli_value is not None:
        return cli_value
    return file_cfg.get(key)


def _pick_bool(cli_value: Optional[bool], file_cfg: Dict[str, str], key: str) -> bool:
    if cli_value is not None:
        return cli_value
    if key in file_cfg:
        return parse_bool(file_cfg[key])
    return False


def _pick_int(cli_value: Optional[int], file_cfg: Dict[str, str], key: str) -> int:
    if cli_value is not None:
        value = cli_value
    elif key in file_cfg:
        value = parse_int(file_cfg[key], key)
    else:
        value = 0
    if value < 0:
        raise ConfigError(f"{key} must not be negative.")
    return value


def merge_config(
    args: argparse.Namespace, file_config: Optional[Dict[str, str]]
) -> RunConfig:
    file_cfg = file_config or {}

    period = _pick(args.period, file_cfg, "period")
    pattern = _pick(args.pattern, file_cfg, "pattern")
    bucket = _pick(args.bucket, file_cfg, "bucket")
    prefix = _pick(args.prefix, file_cfg, "prefix")

    errors: List[str] = []
    if not period or not pattern:
        errors.append("Both period and glob pattern are required.")
    if not bucket:
        errors.append("S3 bucket name is required (use --bucket).")
    if not prefix:
        errors.append("S3 prefix is required (use --prefix).")
    if errors:
        raise ConfigError("\n".join(errors))

    calculate_cutoff_time(datetime.now(), parse_period(period))
    if not has_date_token(pattern):
        raise ConfigError(
            "Invalid glob pattern. Must contain 'YYYYMMDD', 'YYYY-MM-DD', "
            "'YYYY/MM/DD', or 'YYYY_MM_DD'" + PATTERN_EXAMPLES
        )

    lock_path = _pick(args.lock, file_cfg, "lock")
    storage_class = _pick(args.storage_class, file_cfg, "storage_class")

    transport = TransportOptions(
        profile=_pick(args.profile, file_cfg, "profile"),
        region=_pick(args.region, file_cfg, "region"),
        endpoint_url=_pick(args.endpoint_url, file_cfg, "endpoint_url"),
        verify_ssl=not _pick_bool(args.no_verify_ssl, file_cfg, "no_verify_ssl"),
        ca_bundle=_pick(args.ca_bundle, file_cfg, "ca_bundle"),
        read_timeout=_pick_int(args.cli_read_timeout, file_cfg, "cli_read_timeout"),
        connect_timeout=_pick_int(
            args.cli_connect_timeout, file_cfg, "cli_connect_timeout"
        ),
    )

    return RunConfig(
        pattern=pattern,
        period=period,
        bucket=bucket,
        prefix=prefix,
        storage_class=storage_class or DEFAULT_STORAGE_CLASS,
        delete_after_upload=_pick_bool(args.delete, file_cfg, "delete"),
        dry_run=_pick_bool(args.dry_run, file_cfg, "dry_run"),
        lock_path=DEFAULT_LOCK_FILE if lock_path is None else lock_path,
        transport=transport,
    )


def parse_period(period: str) -> timedelta:
    """Parse a period such as "7 days" or "1 Month".

    Months count as 30 days and years as 365 days.
    """
    parts = period.split()
    if len(parts) != 2:
        raise ConfigError(
            "Invalid period format. Expected format: '1 day', '7 days', "
            "'1 month', etc." + PERIOD_EXAMPLES
        )

    value, unit = parts[0], parts[1].lower()
    try:
        amount = int(value)
    except ValueError as error:
        raise ConfigError(f"Invalid numeric value: {value}" + PERIOD_EXAMPLES) from error

    if unit not in PERIOD_UNITS:
        raise ConfigError(
            f"Unsupported time unit: {unit}. Supported units: day/days, "
            "month/months, year/years" + PERIOD_EXAMPLES
        )
    try:
        return amount * PERIOD_UNITS[unit]
    except OverflowError as error:
        raise ConfigError(f"Period is out of range: {period}" + PERIOD_EXAMPLES) from error


def calculate_cutoff_time(now: datetime, duration: timedelta) -> datetime:
    """Return the start of the day after ``now - duration``.

    Files dated strictly before the returned instant are backup candidates,
    so "1 day" selects everything up to and including yesterday.
    """
    try:
        shifted = now - duration
        next_day = shifted.date() + timedelta(days=1)
    except OverflowError as error:
        raise ConfigError(
            f"Period of {duration.days} days reaches outside the supported date range"
            + PERIOD_EXAMPLES
        ) from error
    return datetime.combine(next_day, time.min, tzinfo=shifted.tzinfo)


def extract_date_from_filename(filename: str) -> date:
    for shape in DATE_SHAPES:
        match = shape.regex.search(filename)
        if match is None:
            continue
        try:
            return date(int(match["year"]), int(match["month"]), int(match["day"]))
        except ValueError as error:
            raise DateExtractionError(
                f"Failed to parse date {match.group(0)} in {filename}: {error}"
            ) from error
    raise DateExtractionError(f"No date pattern found in filename: {filename}")


def has_date_token(pattern: str) -> bool:
    return any(shape.token in pattern for shape in DATE_SHAPES)


def convert_glob_pattern(pattern: str) -> str:
    # Longest tokens first so a shorter spelling never eats part of a longer one.
    for shape in sorted(DATE_SHAPES, key=lambda item: len(item.token), reverse=True):
        pattern = pattern.replace(shape.token, "*")
    return pattern


def prefix_has_date_tokens(prefix: str) -> bool:
    return any(token in prefix for token in PREFIX_TOKENS)


def resolve_prefix(prefix: str, file_date: date) -> str:
    return (
        prefix.replace("YYYY", f"{file_date.year:04d}")
        .replace("MM", f"{file_date.month:02d}")
        .replace("DD", f"{file_date.day:02d}")
    )


def object_key_for(prefix: str, filename: str) -> str:
    """Build the S3 key for a file, resolving date tokens in the prefix."""
    if prefix_has_date_tokens(prefix):
        prefix = resolve_prefix(prefix, extract_date_from_filename(filename))
    return f"{prefix}/{filename}"


def find_target_files(
    pattern: str, cutoff: datetime, stats: RunStats
) -> List[TargetFile]:
    search_pattern = convert_glob_pattern(pattern)
    logging.info("Searching for files matching pattern: %s", pattern)
    logging.info("Cutoff time: %s", cutoff.strftime("%Y-%m-%d %H:%M:%S"))
    logging.debug("Converted search pattern: %s", search_pattern)

    # Wildcards skip dotfiles unless include_hidden is passed (3.11+).
    glob_options = {"include_hidden": True} if sys.version_info >= (3, 11) else {}

    targets: List[TargetFile] = []
    for match in sorted(glob.glob(search_pattern, **glob_options)):
        candidate = Path(match)
        if not candidate.is_file():
            continue

        try:
            file_date = extract_date_from_filename(candidate.name)
        except DateExtractionError as error:
            logging.info("Could not extract date from filename: %s (%s)", candidate, error)
            stats.skipped += 1
            continue

        day_start = datetime.combine(file_date, time.min, tzinfo=cutoff.tzinfo)
        if day_start < cutoff:
            logging.info("Target file found: %s (date: %s)", candidate, file_date.isoformat())
            targets.append(TargetFile(path=candidate, file_date=file_date))
        else:
            logging.info(
                "File skipped (too recent): %s (date: %s)", candidate, file_date.isoformat()
            )
            stats.skipped += 1

    return targets


class LockGuard:
    """Exclusive lock file holding the PID of the running instance.

    An empty path disables locking. Use as a context manager so the file is
    removed on every exit path.
    """

    def __init__(self, path: Optional[str]) -> None:
        self.path = Path(path) if path else None
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> None:
        if self.path is None:
            return

        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError as error:
            raise LockError(
                f"another instance is already running (lock file exists: {self.path})"
            ) from error
        except OSError as error:
            raise LockError(f"failed to create lock file {self.path}: {error}") from error

        try:
            with os.fdopen(fd, "w") as handle:
                handle.write(f"{os.getpid()}\n")
        except OSError as error:
            self.path.unlink(missing_ok=True)
            raise LockError(f"failed to write to lock file {self.path}: {error}") from error

        self._held = True
        logging.debug("Acquired lock %s", self.path)

    def release(self) -> None:
        if not self._held or self.path is None:
            return
        self._held = False
        try:
            self.path.unlink(missing_ok=True)
        except OSError as error:
            logging.warning("Failed to remove lock file %s: %s", self.path, error)
            return
        logging.debug("Released lock %s", self.path)

    def __enter__(self) -> "LockGuard":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, traceback) -> None:
        self.release()


def _quiet_external_loggers() -> None:
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def create_s3_client(transport: TransportOptions):
    try:
        import boto3
        from botocore.config import Config as BotoConfig
        from botocore.exceptions import BotoCoreError
    except ModuleNotFoundError as exc:
        raise ConfigError(
            "boto3 is required for S3 operations. Install with `pip install boto3`."
        ) from exc
    _quiet_external_loggers()

    session_kwargs = {}
    if transport.profile:
        session_kwargs["profile_name"] = transport.profile
    if transport.region:
        session_kwargs["region_name"] = transport.region
    try:
        session = boto3.Session(**session_kwargs)
    except BotoCoreError as error:
        raise ConfigError(f"failed to load AWS config: {error}") from error

    if not session.region_name:
        raise ConfigError(
            "AWS region is not set. Please specify --region or set the "
            "AWS_DEFAULT_REGION environment variable."
        )

    client_kwargs = {}
    config_kwargs = {}
    if transport.endpoint_url:
        client_kwargs["endpoint_url"] = transport.endpoint_url
        config_kwargs["s3"] = {"addressing_style": "path"}
    if transport.read_timeout:
        config_kwargs["read_timeout"] = transport.read_timeout
    if transport.connect_timeout:
        config_kwargs["connect_timeout"] = transport.connect_timeout
    if config_kwargs:
        client_kwargs["config"] = BotoConfig(**config_kwargs)
    if not transport.verify_ssl:
        client_kwargs["verify"] = False
    elif transport.ca_bundle:
        client_kwargs["verify"] = transport.ca_bundle

    return session.client("s3", **client_kwargs)


def check_bucket_access(client, bucket: str) -> None:
    from botocore.exceptions import BotoCoreError, ClientError

    try:
        client.head_bucket(Bucket=bucket)
    except (BotoCoreError, ClientError) as error:
        raise ConfigError(f"cannot access S3 bucket {bucket}: {error}") from error
    logging.info("AWS S3 client initialized successfully")


class S3Uploader:
    """Uploads single files to one bucket with backup metadata attached."""

    def __init__(
        self,
        client,
        *,
        bucket: str,
        storage_class: str = DEFAULT_STORAGE_CLASS,
        hostname: Optional[str] = None,
    ) -> None:
        self.client = client
        self.bucket = bucket
        self.storage_class = storage_class
        self.hostname = hostname or socket.gethostname()

    def metadata_for(self, path: Path) -> Dict[str, str]:
        return {
            "source-host": self.hostname,
            "backup-date": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "original-path": quote(str(path), safe="/"),
        }

    def upload(self, path: Path, key: str) -> None:
        from boto3.exceptions import S3UploadFailedError
        from botocore.exceptions import BotoCoreError, ClientError

        extra_args = {
            "StorageClass": self.storage_class,
            "Metadata": self.metadata_for(path),
        }
        try:
            self.client.upload_file(str(path), self.bucket, key, ExtraArgs=extra_args)
        except (BotoCoreError, ClientError, S3UploadFailedError, OSError) as error:
            raise UploadError(f"failed to upload {path} to S3: {error}") from error


def delete_local_file(path: Path) -> None:
    path.unlink()


class BackupPipeline:
    """Uploads, then optionally deletes, each selected file in order.

    A failure on one file is counted and logged; the remaining files are
    still processed. ``run`` raises AggregateError at the end if anything
    failed.
    """

    def __init__(
        self,
        config: RunConfig,
        uploader: Optional[S3Uploader],
        *,
        stats: Optional[RunStats] = None,
        remove_file: Callable[[Path], None] = delete_local_file,
    ) -> None:
        if uploader is None and not config.dry_run:
            raise ConfigError("An uploader is required unless running in dry-run mode.")
        self.config = config
        self.uploader = uploader
        self.stats = stats if stats is not None else RunStats()
        self.remove_file = remove_file

    def run(self, files: List[TargetFile]) -> RunStats:
        self.stats.total = len(files)
        for target in files:
            self.process(target)
        if self.stats.errors:
            raise AggregateError(self.stats.errors)
        return self.stats

    def process(self, target: TargetFile) -> None:
        path = target.path
        if not path.exists():
            logging.info("File not found (may have been processed): %s", path)
            self.stats.skipped += 1
            return

        try:
            key = object_key_for(self.config.prefix, path.name)
            self._upload(path, key)
        except (DateExtractionError, UploadError) as error:
            logging.error("Upload failed: %s (%s)", path, error)
            self.stats.errors += 1
            return
        self.stats.uploaded += 1

        if not self.config.delete_after_upload:
            return

        try:
            self._delete(path)
        except DeleteError as error:
            logging.error("Delete failed: %s (%s)", path, error)
            self.stats.errors += 1
            return
        self.stats.deleted += 1

    def _upload(self, path: Path, key: str) -> None:
        bucket = self.config.bucket
        logging.info("Uploading: %s -> s3://%s/%s", path, bucket, key)

        if self.config.dry_run:
            logging.info("DRY RUN: Would upload %s to s3://%s/%s", path, bucket, key)
            return

        self.uploader.upload(path, key)
        logging.info("Upload successful: s3://%s/%s", bucket, key)

    def _delete(self, path: Path) -> None:
        if self.config.dry_run:
            logging.info("DRY RUN: Would delete %s", path)
            return

        try:
            self.remove_file(path)
        except OSError as error:
            raise DeleteError(f"failed to delete local file {path}: {error}") from error
        logging.info("Local file deleted: %s", path)


def log_summary(pattern: str, cutoff: datetime, stats: RunStats) -> None:
    logging.info("=== Backup Summary ===")
    logging.info("Glob pattern: %s", pattern)
    logging.info("Cutoff time: %s", cutoff.strftime("%Y-%m-%d %H:%M:%S"))
    logging.info("Total files: %d", stats.total)
    logging.info("Uploaded: %d", stats.uploaded)
    logging.info("Deleted: %d", stats.deleted)
    logging.info("Skipped: %d", stats.skipped)
    logging.info("Errors: %d", stats.errors)
    logging.info("Summary: %s", stats.summary())


def run_backup(
    config: RunConfig,
    *,
    now: Optional[datetime] = None,
    uploader: Optional[S3Uploader] = None,
) -> RunStats:
    cutoff = calculate_cutoff_time(now or datetime.now(), parse_period(config.period))

    logging.info("=== Log backup process started ===")
    logging.info("Glob pattern: %s", config.pattern)

    with LockGuard(config.lock_path):
        if uploader is None and not config.dry_run:
            client = create_s3_client(config.transport)
            check_bucket_access(client, config.bucket)
            uploader = S3Uploader(
                client, bucket=config.bucket, storage_class=config.storage_class
            )

        stats = RunStats()
        files = find_target_files(config.pattern, cutoff, stats)
        if not files:
            logging.info(
                "No files found for pattern '%s' before %s",
                config.pattern,
                cutoff.strftime("%Y-%m-%d"),
            )
            log_summary(config.pattern, cutoff, stats)
            logging.info("=== Log backup process completed ===")
            return stats

        logging.info("Found %d files to backup", len(files))
        pipeline = BackupPipeline(config, uploader, stats=stats)
        try:
            pipeline.run(files)
        except AggregateError as error:
            log_summary(config.pattern, cutoff, stats)
            logging.error("Backup completed with %d errors", error.error_count)
            raise

        log_summary(config.pattern, cutoff, stats)
        logging.info("=== Log backup process completed successfully ===")
        return stats


def configure_logging(
    log_level: str, *, output: Optional[Path] = None, verbose: bool = False
) -> None:
    level = logging.DEBUG if verbose else getattr(logging, log_level.upper(), None)
    if level is None:
        raise ValueError(f"Invalid log level: {log_level}")

    handlers: List[logging.Handler] = []
    if output is not None:
        handlers.append(logging.FileHandler(output, mode="a"))
        if verbose:
            handlers.append(logging.StreamHandler(sys.stdout))
    else:
        handlers.append(logging.StreamHandler(sys.stdout))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    _quiet_external_loggers()


def _exit_on_signal(signum, frame) -> None:
    logging.warning("Received signal %d, shutting down", signum)
    raise SystemExit(1)


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    try:
        configure_logging(args.log_level, output=args.output, verbose=args.verbose)
    except ValueError as error:
        logging.error("%s", error)
        return 1
    except OSError as error:
        logging.error("failed to open log file: %s", error)
        return 1

    previous_handler = signal.signal(signal.SIGTERM, _exit_on_signal)
    try:
        file_config: Optional[Dict[str, str]] = None
        if args.config:
            file_config = read_config_file(args.config)
        config = merge_config(args, file_config)
        run_backup(config)
    except LogBackupError as error:
        logging.error("%s", error)
        print(f"Error: {error}", file=sys.stderr)
        return 1
    finally:
        signal.signal(signal.SIGTERM, previous_handler)
    return 0


if __name__ == "__main__":
    sys.exit(main())
