"""Diagnostics: structured logging, faulthandler, crash dumps, Sentry.

Layers:
1. Structured JSON logging with RotatingFileHandler
2. faulthandler: C-level crash tracebacks (numpy segfaults, SIGABRT)
3. sys.excepthook: unhandled Python exceptions → JSON crash dumps
4. Consent-gated Sentry error reporting
"""

import datetime
import faulthandler
import json
import logging
import logging.handlers
import os
import sys
import traceback
from pathlib import Path

import sentry_sdk

from _version import __version__
from security import strip_pii

logger = logging.getLogger(__name__)

APP_DIR = "~/.pixelsort"

LOG_FILE = "pixelsort.log"
FAULT_FILE = "pixelsort_fault.log"

MAX_CRASH_REPORTS = 5
MAX_LOG_AGE_DAYS = 7


def _app_path(*parts: str) -> str:
    return os.path.join(os.path.expanduser(APP_DIR), *parts)


def _validate_log_dir(env_dir: str) -> str:
    """Validate PIXELSORT_LOG_DIR is under ~/.pixelsort. Returns safe path."""
    default = _app_path("logs")
    if env_dir:
        resolved = os.path.realpath(env_dir)
        allowed = os.path.realpath(os.path.expanduser(APP_DIR))
        if not resolved.startswith(allowed + os.sep) and resolved != allowed:
            logger.warning("PIXELSORT_LOG_DIR outside allowed prefix, using default")
            return default
        return resolved
    return default


class JSONFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.datetime.fromtimestamp(
                record.created, tz=datetime.timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(log_entry)


def _cleanup_old_logs(log_dir: str):
    """Delete log files older than MAX_LOG_AGE_DAYS."""
    cutoff = datetime.datetime.now() - datetime.timedelta(days=MAX_LOG_AGE_DAYS)
    try:
        for f in Path(log_dir).glob(f"{LOG_FILE}*"):
            if f.stat().st_mtime < cutoff.timestamp():
                f.unlink(missing_ok=True)
    except OSError as e:
        logger.debug("Log cleanup skipped: %s", e)


def _cleanup_old_crash_reports(crash_dir: str):
    """Keep only the newest MAX_CRASH_REPORTS crash files."""
    try:
        crash_files = sorted(
            Path(crash_dir).glob("crash_*.json"),
            key=lambda f: f.stat().st_mtime,
            reverse=True,
        )
        for old_file in crash_files[MAX_CRASH_REPORTS:]:
            old_file.unlink(missing_ok=True)
    except OSError as e:
        logger.debug("Crash report cleanup skipped: %s", e)


def setup_structured_logging(log_dir: str | None = None) -> str:
    """Attach a rotating JSON log handler to the root logger (once per file).

    Args:
        log_dir: Override log directory (validated against ~/.pixelsort prefix).

    Returns:
        The directory logs are written to.
    """
    resolved_dir = _validate_log_dir(log_dir or os.environ.get("PIXELSORT_LOG_DIR", ""))
    os.makedirs(resolved_dir, mode=0o700, exist_ok=True)

    log_path = os.path.join(resolved_dir, LOG_FILE)
    log_level = os.environ.get("PIXELSORT_LOG_LEVEL", "INFO").upper()

    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level, logging.INFO))
    for existing in root.handlers:
        if (
            isinstance(existing, logging.handlers.RotatingFileHandler)
            and existing.baseFilename == os.path.abspath(log_path)
        ):
            return resolved_dir

    handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=10_000_000,
        backupCount=7,
    )
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)

    _cleanup_old_logs(resolved_dir)
    return resolved_dir


def setup_faulthandler(log_dir: str):
    """Enable faulthandler on its own file.

    RotatingFileHandler would invalidate the descriptor on rotation, so the
    fault log is never shared with the main log.
    """
    fault_path = os.path.join(log_dir, FAULT_FILE)
    try:
        fault_file = open(fault_path, "a", buffering=1)  # noqa: SIM115
        os.chmod(fault_path, 0o600)
        faulthandler.enable(file=fault_file, all_threads=True)
    except OSError as e:
        print(f"WARNING: Could not enable faulthandler: {e}", file=sys.stderr)


def _write_crash_dump(crash_dir: str, exc_type, exc_value, exc_tb) -> str:
    os.makedirs(crash_dir, mode=0o700, exist_ok=True)
    timestamp = datetime.datetime.now(tz=datetime.timezone.utc).strftime(
        "%Y%m%dT%H%M%S%fZ"
    )
    crash_path = os.path.join(crash_dir, f"crash_{timestamp}.json")

    crash_data = {
        "timestamp": timestamp,
        "version": __version__,
        "exception_type": exc_type.__name__ if exc_type else "Unknown",
        "exception_message": str(exc_value),
        "traceback": traceback.format_exception(exc_type, exc_value, exc_tb),
        "python_version": sys.version,
        "platform": sys.platform,
    }
    crash_data = strip_pii({"extra": crash_data}, {}).get("extra", crash_data)

    old_umask = os.umask(0o077)
    try:
        with open(crash_path, "w") as f:
            json.dump(crash_data, f, indent=2)
    finally:
        os.umask(old_umask)

    _cleanup_old_crash_reports(crash_dir)
    return crash_path


def setup_excepthook(crash_dir: str | None = None):
    """Install sys.excepthook that writes PII-stripped crash dumps."""
    crash_dir = crash_dir or _app_path("crash_reports")

    def _crash_excepthook(exc_type, exc_value, exc_tb):
        try:
            _write_crash_dump(crash_dir, exc_type, exc_value, exc_tb)
        except Exception as e:  # noqa: BLE001
            # Never let the crash handler mask the original exception
            print(f"WARNING: crash dump failed: {e}", file=sys.stderr)
        sys.__excepthook__(exc_type, exc_value, exc_tb)

    sys.excepthook = _crash_excepthook


def init_sentry() -> bool:
    """Initialize Sentry if the user opted in. Returns True when a DSN is active."""
    consent_path = _app_path("telemetry_consent")
    dsn = ""
    if os.path.exists(consent_path) and Path(consent_path).read_text().strip() == "yes":
        dsn = os.environ.get("SENTRY_DSN", "")

    sentry_sdk.init(
        dsn=dsn,
        release=f"pixelsort@{__version__}",
        environment=os.environ.get("SENTRY_ENV", "development"),
        traces_sample_rate=0.1,
        before_send=strip_pii,
        max_breadcrumbs=50,
    )
    return bool(dsn)


def init_diagnostics():
    """Initialize all diagnostic layers. Call once from the embedding application."""
    log_dir = setup_structured_logging()
    setup_faulthandler(log_dir)
    setup_excepthook()
    telemetry = init_sentry()
    logger.info(
        "Diagnostics initialized: logging=%s, faulthandler=enabled, sentry=%s",
        log_dir,
        "enabled" if telemetry else "disabled",
    )
