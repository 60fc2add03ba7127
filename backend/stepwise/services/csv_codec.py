"""CSV import/export of checklist steps.

The dialect is small: comma separated, double quotes around a
field make commas, quotes (doubled) and line breaks literal, and unquoted
fields are trimmed. Header names are matched case-insensitively and only
``title`` is required.
"""

from __future__ import annotations

import csv
import io
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from stepwise.models.enums import STEP_STATUS_VALUES, StepStatus
from stepwise.models.types import as_utc
from stepwise.schemas.step import StepCreate


CSV_HEADERS: list[str] = [
    "title",
    "description",
    "durationMinutes",
    "startDatetime",
    "endDatetime",
    "status",
    "comments",
    "orderIndex",
]

CSV_MIME_TYPES: frozenset[str] = frozenset(
    {"text/csv", "text/plain", "application/csv", "application/vnd.ms-excel"}
)

_EXPORT_TITLE_MAX = 50
_DIGITS_RE = re.compile(r"[0-9]+")
_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9]")


class CsvRowError(ValueError):
    """A single data row could not be turned into a step."""


class CsvDocumentError(ValueError):
    """The document as a whole is unusable."""


@dataclass(frozen=True)
class CsvParseResult:
    success: bool
    steps: list[StepCreate] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CsvRecord:
    line: int
    values: list[str]


# =============================================================================
# Tokenizing
# =============================================================================


def split_records(content: str) -> list[CsvRecord]:
    """Split a document into records of field values.

    ``line`` is the 1-based physical line each record starts on. Records made
    only of whitespace are dropped.
    """
    records: list[CsvRecord] = []
    values: list[str] = []
    buf: list[str] = []
    field_quoted = False
    in_quotes = False
    has_content = False
    line = start_line = 1
    i = 0
    length = len(content)

    def finish_field() -> None:
        nonlocal buf, field_quoted
        value = "".join(buf)
        values.append(value if field_quoted else value.strip())
        buf = []
        field_quoted = False

    def finish_record() -> None:
        nonlocal values, has_content
        finish_field()
        if has_content:
            records.append(CsvRecord(line=start_line, values=values))
        values = []
        has_content = False

    while i < length:
        char = content[i]

        if in_quotes:
            if char == '"':
                if i + 1 < length and content[i + 1] == '"':
                    buf.append('"')
                    i += 2
                    continue
                in_quotes = False
            else:
                if char == "\n":
                    line += 1
                buf.append(char)
            i += 1
            continue

        if char == '"':
            has_content = True
            in_quotes = True
            if not "".join(buf).strip():
                # Opening quote: whitespace before it is not part of the value.
                buf = []
                field_quoted = True
        elif char == ",":
            has_content = True
            finish_field()
        elif char == "\n" or (char == "\r" and i + 1 < length and content[i + 1] == "\n"):
            finish_record()
            if char == "\r":
                i += 1
            line += 1
            start_line = line
        elif field_quoted:
            # Text after a closing quote; whitespace is padding.
            if not char.isspace():
                has_content = True
                buf.append(char)
        else:
            if not char.isspace():
                has_content = True
            buf.append(char)
        i += 1

    if buf or values or has_content:
        finish_record()

    return records


# =============================================================================
# Parsing
# =============================================================================


def _parse_non_negative_int(name: str, raw: str) -> int:
    text = raw.strip()
    if not _DIGITS_RE.fullmatch(text):
        raise CsvRowError(f"Invalid {name}: {raw}")
    return int(text)


def _parse_instant(name: str, raw: str) -> datetime:
    try:
        value = datetime.fromisoformat(raw.strip())
    except ValueError:
        raise CsvRowError(f"Invalid {name}: {raw}") from None
    return as_utc(value)


def _parse_status(raw: str) -> StepStatus:
    normalized = raw.strip().lower()
    if normalized not in STEP_STATUS_VALUES:
        raise CsvRowError(f"Invalid status: {raw}. Valid values: {', '.join(STEP_STATUS_VALUES)}")
    return StepStatus(normalized)


def _read_header(record: CsvRecord) -> dict[str, int]:
    header_index = {value.strip().lower(): position for position, value in enumerate(record.values)}
    if "title" not in header_index:
        raise CsvDocumentError("CSV must include a 'title' column")
    return header_index


def parse_row(values: list[str], header_index: dict[str, int]) -> StepCreate:
    def get(name: str) -> str | None:
        position = header_index.get(name.lower())
        if position is None or position >= len(values):
            return None
        return values[position]

    title = get("title")
    if not title or not title.strip():
        raise CsvRowError("Title is required")

    data: dict[str, Any] = {"title": title.strip()}

    description = get("description")
    if description:
        data["description"] = description

    duration = get("durationMinutes")
    if duration:
        data["duration_minutes"] = _parse_non_negative_int("durationMinutes", duration)

    start = get("startDatetime")
    if start:
        data["start_datetime"] = _parse_instant("startDatetime", start)

    end = get("endDatetime")
    if end:
        data["end_datetime"] = _parse_instant("endDatetime", end)

    status = get("status")
    if status:
        data["status"] = _parse_status(status)

    comments = get("comments")
    if comments:
        data["comments"] = comments

    order_index = get("orderIndex")
    if order_index:
        data["order_index"] = _parse_non_negative_int("orderIndex", order_index)

    # Only supplied keys are passed, so model_fields_set mirrors the columns.
    try:
        return StepCreate(**data)
    except ValidationError as exc:
        first = exc.errors()[0]
        field_name = ".".join(str(part) for part in first["loc"]) or "row"
        raise CsvRowError(f"Invalid {field_name}: {first['msg']}") from None


def parse_csv(content: str) -> CsvParseResult:
    """Parse a CSV document into step definitions.

    Row level problems are collected as ``"Row {line}: {message}"`` and the
    row is skipped; document level problems end parsing straight away. The
    result is successful only when there are steps and no errors at all.

    ``line`` is the physical line the record starts on, counting blank lines
    and line breaks inside quoted fields. It is what a text editor shows, not
    the position among non-empty rows, so a file with blank lines in between
    reports higher numbers than a row counter would.
    """
    records = split_records(content)
    if not records:
        return CsvParseResult(success=False, errors=["CSV file is empty"])

    try:
        header_index = _read_header(records[0])
    except CsvDocumentError as exc:
        return CsvParseResult(success=False, errors=[str(exc)])

    steps: list[StepCreate] = []
    errors: list[str] = []
    for record in records[1:]:
        try:
            steps.append(parse_row(record.values, header_index))
        except CsvRowError as exc:
            errors.append(f"Row {record.line}: {exc}")

    if not steps and not errors:
        errors.append("No valid steps found in CSV")

    return CsvParseResult(success=not errors and bool(steps), steps=steps, errors=errors)


# =============================================================================
# Serializing
# =============================================================================


def format_instant(value: datetime | None) -> str:
    if value is None:
        return ""
    return as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def serialize_steps(steps: Iterable[Any]) -> str:
    """Render steps, in the order given, as a CSV document with the full header.

    Rows are separated by ``\\n`` and the document has no trailing newline.
    """
    stream = io.StringIO()
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    writer.writerows(
        [
            step.title,
            step.description or "",
            int(step.duration_minutes),
            format_instant(step.start_datetime),
            format_instant(step.end_datetime),
            StepStatus(step.status).value,
            step.comments or "",
            int(step.order_index),
        ]
        for step in steps
    )
    return stream.getvalue().removesuffix("\n")


# =============================================================================
# Files
# =============================================================================


def validate_csv_upload(
    filename: str | None,
    content_type: str | None,
    *,
    allowed_mime: Iterable[str] = CSV_MIME_TYPES,
) -> None:
    if not (filename or "").lower().endswith(".csv"):
        raise CsvDocumentError("File must have a .csv extension")
    # Parameters such as "; charset=utf-8" do not change the media type.
    media_type = (content_type or "").split(";")[0].strip().lower()
    # Browsers report CSV under several types, or none at all.
    if media_type and media_type not in {item.lower() for item in allowed_mime}:
        raise CsvDocumentError(f"Invalid file type: {media_type}. Expected CSV file.")


def export_filename(title: str) -> str:
    safe_title = _UNSAFE_FILENAME_RE.sub("_", title)[:_EXPORT_TITLE_MAX]
    return f"{safe_title}_steps.csv"
