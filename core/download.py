# =============================================================================
# core/download.py  -  Shaping the data-download payload
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   The VRM data-download endpoint answers with a base64 blob whatever the
#   requested format.  This module turns that blob into something a caller
#   can use:
#
#     format=csv, decode=True   → parse_csv_download()
#                                 {format, datatype, timeRange,
#                                  records: [...], summary: {...}}
#
#     anything else             → wrap_download()
#                                 {format, datatype, timeRange,
#                                  content: <base64>, encoding: "base64",
#                                  filename}
#
#   If CSV parsing fails for any reason, shape_download() falls back to the
#   wrapped shape and a note.  It never raises.
#
# NUMBER COERCION:
#   A cell becomes an int or float whenever it parses as a finite number,
#   even things like "0123" (→ 123).  Everything else stays trimmed text.
# =============================================================================

import base64
import binascii
import math

from core.models import iso_from_epoch_ms


FILE_EXTENSIONS = {"csv": "csv", "excelxml": "xml", "xls": "xls", "xlsx": "xlsx"}


class CSVParseError(ValueError):
    """The downloaded payload could not be read as CSV."""


def time_range(start: int | None, end: int | None) -> dict:
    """Echo the requested bounds, with ISO renderings for those given."""
    out = {"start": start, "end": end}
    if start is not None:
        out["startIso"] = iso_from_epoch_ms(start)
    if end is not None:
        out["endIso"] = iso_from_epoch_ms(end)
    return out


def download_filename(site_id: int, datatype: str, fmt: str,
                      start: int | None = None, end: int | None = None) -> str:
    name = f"vrm-installation-{site_id}-{datatype}"
    if start is not None and end is not None:
        name = f"{name}-{start}-{end}"
    return f"{name}.{FILE_EXTENSIONS.get(fmt, fmt)}"


def extract_content(payload) -> str | None:
    """Find the base64 text in a download response payload."""
    if isinstance(payload, str):
        return payload
    if isinstance(payload, dict):
        for key in ("data", "content"):
            if isinstance(payload.get(key), str):
                return payload[key]
    return None


def coerce_value(raw: str):
    """Trim a CSV cell and turn it into a number when it reads as one."""
    value = raw.strip()
    if not value or "_" in value:
        return value
    try:
        return int(value)
    except ValueError:
        pass
    try:
        number = float(value)
    except ValueError:
        return value
    return number if math.isfinite(number) else value


def decode_base64_text(content: str) -> str:
    """Decode base64 text, ignoring line breaks, into UTF-8 (BOM dropped)."""
    try:
        raw = base64.b64decode("".join(content.split()), validate=True)
        return raw.decode("utf-8-sig")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise CSVParseError(f"payload is not base64-encoded UTF-8 text ({exc})") from exc


def parse_csv_text(text: str) -> tuple[list[dict], list[str]]:
    """Split CSV text into records keyed by the header row.

    Blank lines are dropped.  Cells are paired with headers by position:
    missing trailing cells become None, surplus cells are ignored.

    Returns:
        (records, columns)
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        raise CSVParseError("CSV content is empty")

    columns = [name.strip() for name in lines[0].split(",")]
    if not any(columns):
        raise CSVParseError("CSV header row is empty")

    records = []
    for line in lines[1:]:
        cells = line.split(",")
        records.append({
            column: coerce_value(cells[i]) if i < len(cells) else None
            for i, column in enumerate(columns)
        })
    return records, columns


def parse_csv_download(content: str, datatype: str,
                       start: int | None, end: int | None) -> dict:
    """Decode and parse a base64 CSV download.

    Raises:
        CSVParseError: On bad base64, bad UTF-8 or an empty CSV.
    """
    records, columns = parse_csv_text(decode_base64_text(content))
    return {
        "format": "csv",
        "datatype": datatype,
        "timeRange": time_range(start, end),
        "records": records,
        "summary": {"totalRecords": len(records), "columns": columns},
    }


def wrap_download(payload, site_id: int, datatype: str, fmt: str,
                  start: int | None, end: int | None) -> dict:
    """Wrap the undecoded download as base64 content plus a filename."""
    content = extract_content(payload)
    return {
        "format": fmt,
        "datatype": datatype,
        "timeRange": time_range(start, end),
        "content": payload if content is None else content,
        "encoding": "base64",
        "filename": download_filename(site_id, datatype, fmt, start, end),
    }


def shape_download(payload, site_id: int, datatype: str, fmt: str, decode: bool,
                   start: int | None = None, end: int | None = None) -> tuple[dict, str | None]:
    """Turn a successful download payload into (data, note).

    CSV with decode=True is parsed; on failure, and for every other case,
    the payload is wrapped unparsed.  ``note`` is None only for the plain
    wrap of a non-CSV or decode=False request.
    """
    if fmt != "csv" or not decode:
        return wrap_download(payload, site_id, datatype, fmt, start, end), None

    content = extract_content(payload)
    try:
        if content is None:
            raise CSVParseError("response did not contain base64 content")
        parsed = parse_csv_download(content, datatype, start, end)
    except CSVParseError as exc:
        wrapped = wrap_download(payload, site_id, datatype, fmt, start, end)
        return wrapped, f"CSV parsing failed: {exc}. Returning raw base64 content."

    return parsed, f"CSV parsed: {parsed['summary']['totalRecords']} records"
