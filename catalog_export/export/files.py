"""
Export artifact naming and durable file writes.

File set of one run (shared timestamp token YYYY-MM-DD-HH-MM-SS, UTC):

    products-export-2024-05-01-02-00-00.csv
    products-export-2024-05-01-02-00-00.csv.meta.json
    products-export-2024-05-01-02-00-00.xml
    products-export-2024-05-01-02-00-00.xml.meta.json

A CSV and an XML from the same run differ only by extension.

Sidecar naming changed: each data file now has its own sidecar, named by
appending .meta.json to the full data file name. Older runs wrote a single
products-export-<token>.meta.json per run, shared by both formats. Tools that
look for the old name must switch to <datafile>.meta.json. The old name is
still read (as a fallback for record counts) and cleaned by retention, but
never written.
"""

import json
import os
import re
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from catalog_export.export.errors import InvalidTimestampTokenError
from catalog_export.export.models import ExportFormat, ensure_utc

EXPORT_PREFIX = "products-export-"
SIDECAR_SUFFIX = ".meta.json"
REMOTE_PREFIX = "exports/"

TOKEN_FORMAT = "%Y-%m-%d-%H-%M-%S"
TOKEN_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}-\d{2}-\d{2}-\d{2}$")

# Legacy date-only names (products-export-YYYY-MM-DD.csv) are still listed and cleaned
EXPORT_FILE_PATTERN = re.compile(
    r"^products-export-(?P<date>\d{4}-\d{2}-\d{2})(?:-(?P<time>\d{2}-\d{2}-\d{2}))?"
    r"\.(?P<ext>(?:csv|xml)(?:\.meta\.json)?|meta\.json)$"
)


def make_timestamp_token(moment: datetime) -> str:
    """Shared timestamp token for all files of one run."""
    return ensure_utc(moment).strftime(TOKEN_FORMAT)


def validate_timestamp_token(token: str) -> str:
    if not isinstance(token, str) or not TOKEN_PATTERN.match(token):
        raise InvalidTimestampTokenError(
            f"Invalid shared timestamp {token!r}: expected YYYY-MM-DD-HH-MM-SS"
        )
    try:
        datetime.strptime(token, TOKEN_FORMAT)
    except ValueError as e:
        raise InvalidTimestampTokenError(f"Invalid shared timestamp {token!r}: {str(e)}") from e
    return token


def export_filename(token: str, fmt: ExportFormat) -> str:
    return f"{EXPORT_PREFIX}{token}.{fmt.extension}"


def sidecar_filename(data_filename: str) -> str:
    """
    products-export-<token>.csv -> products-export-<token>.csv.meta.json

    One sidecar per data file. Replaces the shared per-run
    products-export-<token>.meta.json, see legacy_sidecar_filename.
    """
    return f"{data_filename}{SIDECAR_SUFFIX}"


def legacy_sidecar_filename(data_filename: str) -> str:
    """products-export-<token>.csv -> products-export-<token>.meta.json (read-only fallback)"""
    return re.sub(r"\.(csv|xml)$", SIDECAR_SUFFIX, data_filename)


def remote_key(filename: str) -> str:
    return f"{REMOTE_PREFIX}{filename}"


def parse_export_filename(filename: str) -> Optional[Dict[str, str]]:
    """
    Split an export artifact name into its parts.

    Returns:
        {"date", "timestamp", "kind"} where kind is csv, xml or meta,
        or None if the name is not an export artifact
    """
    match = EXPORT_FILE_PATTERN.match(filename)
    if not match:
        return None
    date = match.group("date")
    time = match.group("time")
    ext = match.group("ext")
    return {
        "date": date,
        "timestamp": f"{date}-{time}" if time else date,
        "kind": "meta" if ext.endswith("meta.json") else ext,
    }


def atomic_write_bytes(path: Union[str, Path], data: bytes) -> Path:
    """
    Write `data` to `path` so readers see either the old or the new content.

    The bytes go to a temp file in the same directory, are flushed and
    fsynced, then renamed over the target.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, target)
    except BaseException:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise

    return target


def write_json(path: Union[str, Path], payload: Dict[str, Any]) -> Path:
    body = json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")
    return atomic_write_bytes(path, body)


def read_json(path: Union[str, Path]) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
