"""HTTP handlers for importing, listing and exporting the voter roll."""

from __future__ import annotations

import csv
import email.parser
import email.policy
import io
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any

from pemira.dpt.models import ImportRow, ListFilter, VoterWithStatusDTO
from pemira.dpt.service import DptService
from pemira.web import (
    Request,
    Response,
    bad_request,
    internal_server_error,
    json_response,
    unprocessable_entity,
)

_log = logging.getLogger(__name__)

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_DEFAULT_LIMIT = 50

_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_WORDS = frozenset({"0", "f", "F", "FALSE", "false", "False"})

REQUIRED_COLUMNS = ("nim", "name", "faculty", "study_program", "cohort_year")

EXPORT_HEADER = (
    "nim",
    "name",
    "faculty",
    "study_program",
    "cohort_year",
    "email",
    "has_voted",
    "last_vote_channel",
    "last_vote_at",
    "last_tps_id",
    "is_eligible",
)


class CsvImportError(Exception):
    """An import file that cannot be accepted."""

    def __init__(self, message: str, status: HTTPStatus = HTTPStatus.BAD_REQUEST) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


@dataclass
class _CsvDownload:
    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""


def _parse_int(text: str) -> int | None:
    if not _INT_RE.fullmatch(text):
        return None
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


def _parse_bool(text: str) -> bool | None:
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    return None


def _int_default(text: str, default: int) -> int:
    value = _parse_int(text) if text else None
    if value is None or value <= 0:
        return default
    return value


def _read_records(text: str) -> list[list[str]]:
    reader = csv.reader(io.StringIO(text, newline=""), strict=True, skipinitialspace=True)
    records: list[list[str]] = []
    expected: int | None = None
    try:
        for record in reader:
            if not record:
                continue
            record = [value.lstrip() for value in record]
            if expected is None:
                expected = len(record)
            elif len(record) != expected:
                raise CsvImportError("CSV tidak valid.")
            records.append(record)
    except csv.Error as exc:
        if not records:
            raise CsvImportError("Gagal membaca header CSV.") from exc
        raise CsvImportError("CSV tidak valid.") from exc
    return records


def parse_import_csv(text: str) -> list[ImportRow]:
    """Parse an import file into rows, raising CsvImportError when it is unusable."""
    records = _read_records(text)
    if not records:
        raise CsvImportError("Gagal membaca header CSV.")

    header, *body = records
    columns = {name: index for index, name in enumerate(header)}
    for name in REQUIRED_COLUMNS:
        if name not in columns:
            raise CsvImportError(
                f"Kolom '{name}' wajib ada di CSV.", HTTPStatus.UNPROCESSABLE_ENTITY
            )

    rows: list[ImportRow] = []
    for record in body:
        cohort_year = _parse_int(record[columns["cohort_year"]])
        if cohort_year is None:
            raise CsvImportError("cohort_year harus angka.", HTTPStatus.UNPROCESSABLE_ENTITY)

        def optional(name: str) -> str:
            index = columns.get(name)
            return record[index] if index is not None and index < len(record) else ""

        rows.append(
            ImportRow(
                nim=record[columns["nim"]],
                name=record[columns["name"]],
                faculty_name=record[columns["faculty"]],
                study_program=record[columns["study_program"]],
                cohort_year=cohort_year,
                email=optional("email"),
                phone=optional("phone"),
            )
        )

    if not rows:
        raise CsvImportError("CSV tidak berisi data.", HTTPStatus.UNPROCESSABLE_ENTITY)
    return rows


def _format_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def format_export_record(voter: VoterWithStatusDTO) -> list[str]:
    """Return the export columns of one voter, in EXPORT_HEADER order."""
    status = voter.status
    return [
        voter.nim,
        voter.name,
        voter.faculty_name,
        voter.study_program_name,
        str(voter.cohort_year),
        voter.email,
        "true" if status.has_voted else "false",
        status.last_vote_channel or "",
        _format_time(status.last_vote_at) if status.last_vote_at is not None else "",
        str(status.last_tps_id) if status.last_tps_id is not None else "",
        "true" if status.is_eligible else "false",
    ]


def _csv_field(value: str) -> str:
    if value == "":
        return value
    needs_quotes = (
        value == r"\."
        or any(ch in value for ch in ',"\r\n')
        or value[0].isspace()
    )
    if not needs_quotes:
        return value
    return '"' + value.replace('"', '""') + '"'


def _csv_line(values: Any) -> str:
    return ",".join(_csv_field(v) for v in values) + "\n"


def _header(request: Request, name: str) -> str:
    headers = getattr(request, "headers", None) or {}
    wanted = name.lower()
    return next((str(v) for k, v in headers.items() if str(k).lower() == wanted), "")


def _uploaded_file(request: Request) -> bytes:
    """Return the content of the multipart field named ``file``."""
    content_type = _header(request, "Content-Type")
    if not content_type.lower().startswith("multipart/form-data"):
        raise CsvImportError("Gagal membaca form upload.")
    body = request.body
    if isinstance(body, str):
        body = body.encode("utf-8")
    raw = b"Content-Type: " + content_type.encode("latin-1") + b"\r\n\r\n" + (body or b"")
    message = email.parser.BytesParser(policy=email.policy.HTTP).parsebytes(raw)
    if not message.is_multipart():
        raise CsvImportError("Gagal membaca form upload.")
    for part in message.get_payload():
        name = part.get_param("name", header="content-disposition")
        if name == "file" and part.get_filename() is not None:
            return part.get_payload(decode=True) or b""
    raise CsvImportError("Field file wajib diisi.")


def _election_id(request: Request) -> int | None:
    value = _parse_int(request.path_param("electionID"))
    if value is None or value <= 0:
        return None
    return value


def _list_filter(request: Request) -> ListFilter:
    q = request.query_param
    flt = ListFilter(faculty=q("faculty"), study_program=q("study_program"), search=q("search"))
    if q("cohort_year"):
        flt.cohort_year = _parse_int(q("cohort_year"))
    if q("has_voted"):
        flt.has_voted = _parse_bool(q("has_voted"))
    if q("eligible"):
        flt.eligible = _parse_bool(q("eligible"))
    return flt


def _invalid_id() -> Response:
    return bad_request("VALIDATION_ERROR", "electionID tidak valid.")


class DptHandler:
    """Administrator endpoints for the voter roll of an election."""

    def __init__(self, svc: DptService) -> None:
        self._svc = svc

    def import_voters(self, request: Request) -> Response:
        """POST /admin/elections/{electionID}/voters/import"""
        election_id = _election_id(request)
        if election_id is None:
            return _invalid_id()

        try:
            content = _uploaded_file(request)
            rows = parse_import_csv(content.decode("utf-8", errors="replace"))
        except CsvImportError as exc:
            if exc.status == HTTPStatus.UNPROCESSABLE_ENTITY:
                return unprocessable_entity("VALIDATION_ERROR", exc.message)
            return bad_request("VALIDATION_ERROR", exc.message)

        try:
            result = self._svc.import_rows(election_id, rows)
        except Exception:
            _log.exception("voter import failed")
            return internal_server_error("INTERNAL_ERROR", "Gagal mengimpor DPT.")
        return json_response(HTTPStatus.OK, result.to_dict())

    def list(self, request: Request) -> Response:
        """GET /admin/elections/{electionID}/voters"""
        election_id = _election_id(request)
        if election_id is None:
            return _invalid_id()

        flt = _list_filter(request)
        page = _int_default(request.query_param("page"), 1)
        limit = _int_default(request.query_param("limit"), _DEFAULT_LIMIT)

        try:
            items, pagination = self._svc.list(election_id, flt, page, limit)
        except Exception:
            _log.exception("voter list failed")
            return internal_server_error("INTERNAL_ERROR", "Gagal mengambil daftar pemilih.")
        return json_response(
            HTTPStatus.OK,
            {"items": [item.to_dict() for item in items], "pagination": pagination.to_dict()},
        )

    def export(self, request: Request) -> Response | _CsvDownload:
        """GET /admin/elections/{electionID}/voters/export as a CSV download."""
        election_id = _election_id(request)
        if election_id is None:
            return _invalid_id()

        flt = _list_filter(request)
        headers = {
            "Content-Type": "text/csv",
            "Content-Disposition": f'attachment; filename="dpt_election_{election_id}.csv"',
        }
        out = io.StringIO()
        out.write(_csv_line(EXPORT_HEADER))
        try:
            for voter in self._svc.export(election_id, flt):
                out.write(_csv_line(format_export_record(voter)))
        except Exception:
            # The header is already sent; the download simply ends early.
            _log.exception("voter export stopped early")
        return _CsvDownload(status=int(HTTPStatus.OK), headers=headers, body=out.getvalue())