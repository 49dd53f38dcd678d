import logging
import os
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from app.core.config import settings


# ── column widths ─────────────────────────────────────────────────────────────
_W_SERIAL  = 6
_W_DATE    = 12
_W_TIME    = 10
_W_LEVEL   = 8
_W_UID     = 8
_W_EMAIL   = 28
_W_MODULE  = 28
_W_EVENT   = 48
_SEP       = " | "

_TOTAL_WIDTH = (
    _W_SERIAL + _W_DATE + _W_TIME + _W_LEVEL
    + _W_UID + _W_EMAIL + _W_MODULE + _W_EVENT
    + len(_SEP) * 7
)


class StructuredFileHandler(logging.FileHandler):
    """File handler writing one aligned row per record.

    Column layout:
        Serial | Date | Time | Level | User ID | User Email | Module.function | Event

    ``user_id`` / ``user_email`` come from ``extra={...}`` on the logging call
    and show as "-" when absent.
    """

    def __init__(self, log_file_path: str):
        super().__init__(log_file_path, mode="a", encoding="utf-8")
        self.log_counter = self._next_serial_number()
        self._ensure_header_exists()

    def _next_serial_number(self) -> int:
        if not os.path.exists(self.baseFilename) or os.path.getsize(self.baseFilename) == 0:
            return 1
        try:
            with open(self.baseFilename, "r", encoding="utf-8") as f:
                for line in reversed(f.readlines()):
                    first = line.split(_SEP)[0].strip()
                    if first.isdigit():
                        return int(first) + 1
        except OSError:
            pass
        return 1

    def _ensure_header_exists(self):
        if os.path.exists(self.baseFilename) and os.path.getsize(self.baseFilename) > 0:
            return
        header = (
            f"{'#':<{_W_SERIAL}}"
            f"{_SEP}{'Date':<{_W_DATE}}"
            f"{_SEP}{'Time':<{_W_TIME}}"
            f"{_SEP}{'Level':<{_W_LEVEL}}"
            f"{_SEP}{'User ID':<{_W_UID}}"
            f"{_SEP}{'User Email':<{_W_EMAIL}}"
            f"{_SEP}{'Module/Function':<{_W_MODULE}}"
            f"{_SEP}{'Event':<{_W_EVENT}}"
        )
        with open(self.baseFilename, "w", encoding="utf-8") as f:
            f.write("=" * _TOTAL_WIDTH + "\n")
            f.write(f"{'COACHING PORTAL | OPERATION LOG':^{_TOTAL_WIDTH}}\n")
            f.write("=" * _TOTAL_WIDTH + "\n")
            f.write(header + "\n")
            f.write("-" * _TOTAL_WIDTH + "\n")

    def emit(self, record: logging.LogRecord):
        try:
            dt = datetime.fromtimestamp(record.created)
            module_func = f"{record.module}.{record.funcName}"

            uid = str(getattr(record, "user_id", "-") or "-")
            email = str(getattr(record, "user_email", "-") or "-")

            message = record.getMessage()
            preview = message if len(message) <= _W_EVENT else message[:_W_EVENT - 3] + "..."

            line = (
                f"{self.log_counter:<{_W_SERIAL}}"
                f"{_SEP}{dt.strftime('%Y-%m-%d'):<{_W_DATE}}"
                f"{_SEP}{dt.strftime('%H:%M:%S'):<{_W_TIME}}"
                f"{_SEP}{record.levelname:<{_W_LEVEL}}"
                f"{_SEP}{uid:<{_W_UID}}"
                f"{_SEP}{email:<{_W_EMAIL}}"
                f"{_SEP}{module_func:<{_W_MODULE}}"
                f"{_SEP}{preview:<{_W_EVENT}}"
            )

            indent = " " * (_W_SERIAL + len(_SEP))
            with open(self.baseFilename, "a", encoding="utf-8") as f:
                f.write(line + "\n")

                if record.levelno >= logging.WARNING:
                    if len(message) > _W_EVENT:
                        f.write(f"{indent}Details: {message}\n")
                    if record.exc_info:
                        tb = "".join(traceback.format_exception(*record.exc_info))
                        f.write(f"{indent}Exception: {tb}\n")

                if record.levelno >= logging.ERROR:
                    f.write("-" * _TOTAL_WIDTH + "\n")

            self.log_counter += 1
        except Exception:
            self.handleError(record)


# ── setup ─────────────────────────────────────────────────────────────────────

def setup_file_logging(log_level: Optional[int] = None, log_file: Optional[str] = None) -> logging.Logger:
    """Configure structured file + console logging.

    The file handler records WARNING and above; the console follows
    *log_level* (``settings.LOG_LEVEL`` when not given).
    """
    if log_level is None:
        log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    log_file_path = Path(log_file or settings.LOG_FILE)
    log_file_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = StructuredFileHandler(str(log_file_path))
    file_handler.setLevel(logging.WARNING)
    file_handler.setFormatter(logging.Formatter("%(message)s"))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    )

    logging.basicConfig(level=log_level, handlers=[file_handler, console_handler], force=True)

    logger = logging.getLogger(__name__)
    logger.warning(
        "Coaching Portal SESSION STARTED at %s",
        datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC"),
    )
    return logger


# ── helpers for callers ───────────────────────────────────────────────────────

def log_otp_event(
    event: str,
    email: str,
    remaining: Optional[int] = None,
    user_id: Optional[int] = None,
):
    """Log an OTP lifecycle event against the requesting email.

    Failures (mismatch, expiry, exhausted attempts) go to the file at
    WARNING level; issue and successful verification stay at INFO.
    """
    _log = logging.getLogger("otp")
    extra = {"user_id": user_id or "-", "user_email": email or "-"}

    if event in ("generated", "verified"):
        _log.info("OTP %s for %s", event, email, extra=extra)
    elif remaining is not None:
        _log.warning("OTP %s for %s (%s attempt(s) left)", event, email, remaining, extra=extra)
    else:
        _log.warning("OTP %s for %s", event, email, extra=extra)


def log_assignment_operation(
    operation: str,
    target: str,
    succeeded: int = 0,
    skipped: int = 0,
    failed: int = 0,
    user_id: Optional[int] = None,
    user_email: Optional[str] = None,
):
    """Log an assignment run (task to users, leads to a coach) with its outcome counts.

    Runs with failures are written at WARNING so they land in the log file.
    """
    _log = logging.getLogger("assignments")
    extra = {"user_id": user_id or "-", "user_email": user_email or "-"}

    if failed:
        _log.warning(
            "%s %s: %s ok, %s skipped, %s failed",
            operation, target, succeeded, skipped, failed,
            extra=extra,
        )
    else:
        _log.info(
            "%s %s: %s ok, %s skipped",
            operation, target, succeeded, skipped,
            extra=extra,
        )
