"""HTTP handlers for the voter and admin election endpoints."""

from __future__ import annotations

import json
import logging
import re
from http import HTTPStatus
from typing import Any, Callable

from pemira.ctxkeys import ContextKey, get_user_id
from pemira.election.models import (
    AdminElectionCreateRequest,
    AdminElectionListFilter,
    AdminElectionUpdateRequest,
    ElectionNotFoundError,
    ElectionStatus,
)
from pemira.election.service import (
    AdminElectionService,
    ElectionAlreadyOpenError,
    ElectionNotInOpenStateError,
    ElectionService,
    InvalidStatusChangeError,
    VoterMappingMissingError,
)
from pemira.web import (
    Request,
    Response,
    bad_request,
    forbidden,
    internal_server_error,
    json_response,
    not_found,
    unauthorized,
    unprocessable_entity,
)

_log = logging.getLogger(__name__)

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_ADMIN_DEFAULT_LIMIT = 20


def _parse_int64(text: str) -> int | None:
    if not _INT_RE.fullmatch(text):
        return None
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


def _election_id(request: Request) -> int | None:
    value = _parse_int64(request.path_param("electionID"))
    if value is None or value <= 0:
        return None
    return value


def _int_default(text: str, default: int) -> int:
    value = _parse_int64(text) if text else None
    if value is None or value <= 0:
        return default
    return value


def _json_body(request: Request) -> Any:
    data = json.loads(request.body)
    return {} if data is None else data


def _status_filter(raw: str) -> ElectionStatus | str:
    try:
        return ElectionStatus(raw)
    except ValueError:
        # Unknown statuses are passed through and simply match nothing.
        return raw


def _invalid_id() -> Response:
    return bad_request("VALIDATION_ERROR", "electionID tidak valid.")


def _election_not_found() -> Response:
    return not_found("ELECTION_NOT_FOUND", "Pemilu tidak ditemukan.")


class ElectionHandler:
    """Voter-facing election endpoints."""

    def __init__(self, svc: ElectionService) -> None:
        self._svc = svc

    def routes(self) -> dict[tuple[str, str], Callable[[Request], Response]]:
        return {
            ("GET", "/elections/current"): self.get_current,
            ("GET", "/elections/{electionID}/me/status"): self.get_me_status,
        }

    def get_current(self, request: Request) -> Response:
        """GET /elections/current"""
        try:
            dto = self._svc.get_current_election()
        except ElectionNotFoundError:
            return not_found("ELECTION_NOT_FOUND", "Tidak ada pemilu yang sedang berlangsung.")
        except Exception:
            _log.exception("get_current failed")
            return internal_server_error("INTERNAL_ERROR", "Terjadi kesalahan pada sistem.")
        return json_response(HTTPStatus.OK, dto)

    def get_me_status(self, request: Request) -> Response:
        """GET /elections/{electionID}/me/status"""
        election_id = _election_id(request)
        if election_id is None:
            return _invalid_id()

        if get_user_id(request.context) is None:
            return unauthorized("UNAUTHORIZED", "Token tidak valid.")
        raw_voter = request.context.get(ContextKey.VOTER_ID)
        voter_id = raw_voter if isinstance(raw_voter, int) and not isinstance(raw_voter, bool) else None

        try:
            dto = self._svc.get_me_status(voter_id, election_id)
        except VoterMappingMissingError:
            return forbidden(
                "VOTER_MAPPING_MISSING", "Akun ini belum terhubung dengan data pemilih."
            )
        except ElectionNotFoundError:
            return _election_not_found()
        except Exception:
            _log.exception("get_me_status failed")
            return internal_server_error("INTERNAL_ERROR", "Terjadi kesalahan pada sistem.")
        return json_response(HTTPStatus.OK, dto)


class AdminElectionHandler:
    """Administrator election endpoints."""

    def __init__(self, svc: AdminElectionService) -> None:
        self._svc = svc

    def list(self, request: Request) -> Response:
        """GET /admin/elections"""
        flt = AdminElectionListFilter(search=request.query_param("search"))
        year = _parse_int64(request.query_param("year"))
        if year is not None:
            flt.year = year
        status = request.query_param("status")
        if status:
            flt.status = _status_filter(status)  # type: ignore[assignment]

        page = _int_default(request.query_param("page"), 1)
        limit = _int_default(request.query_param("limit"), _ADMIN_DEFAULT_LIMIT)

        try:
            items, pagination = self._svc.list(flt, page, limit)
        except Exception:
            _log.exception("admin election list failed")
            return internal_server_error("INTERNAL_ERROR", "Gagal mengambil daftar pemilu.")
        return json_response(HTTPStatus.OK, {"items": items, "pagination": pagination})

    def create(self, request: Request) -> Response:
        """POST /admin/elections"""
        try:
            req = AdminElectionCreateRequest.from_dict(_json_body(request))
        except ValueError:
            return bad_request("VALIDATION_ERROR", "Body tidak valid.")

        if req.year <= 0 or req.name == "" or req.slug == "":
            return unprocessable_entity("VALIDATION_ERROR", "year, name, dan slug wajib diisi.")

        try:
            dto = self._svc.create(req)
        except Exception:
            _log.exception("admin election create failed")
            return internal_server_error("INTERNAL_ERROR", "Gagal membuat pemilu.")
        return json_response(HTTPStatus.CREATED, dto)

    def get(self, request: Request) -> Response:
        """GET /admin/elections/{electionID}"""
        election_id = _election_id(request)
        if election_id is None:
            return _invalid_id()
        try:
            dto = self._svc.get(election_id)
        except ElectionNotFoundError:
            return _election_not_found()
        except Exception:
            _log.exception("admin election get failed")
            return internal_server_error("INTERNAL_ERROR", "Gagal mengambil detail pemilu.")
        return json_response(HTTPStatus.OK, dto)

    def update(self, request: Request) -> Response:
        """PUT /admin/elections/{electionID}"""
        election_id = _election_id(request)
        if election_id is None:
            return _invalid_id()
        try:
            req = AdminElectionUpdateRequest.from_dict(_json_body(request))
        except ValueError:
            return bad_request("VALIDATION_ERROR", "Body tidak valid.")
        try:
            dto = self._svc.update(election_id, req)
        except ElectionNotFoundError:
            return _election_not_found()
        except Exception:
            _log.exception("admin election update failed")
            return internal_server_error("INTERNAL_ERROR", "Gagal mengubah pemilu.")
        return json_response(HTTPStatus.OK, dto)

    def open_voting(self, request: Request) -> Response:
        """POST /admin/elections/{electionID}/open-voting"""
        election_id = _election_id(request)
        if election_id is None:
            return _invalid_id()
        try:
            dto = self._svc.open_voting(election_id)
        except ElectionNotFoundError:
            return _election_not_found()
        except ElectionAlreadyOpenError:
            return bad_request(
                "ELECTION_ALREADY_OPEN", "Pemilu sudah dalam status voting terbuka."
            )
        except InvalidStatusChangeError:
            return bad_request(
                "INVALID_STATUS_CHANGE", "Status pemilu tidak dapat dibuka untuk voting."
            )
        except Exception:
            _log.exception("open voting failed")
            return internal_server_error("INTERNAL_ERROR", "Gagal membuka voting.")
        return json_response(HTTPStatus.OK, dto)

    def close_voting(self, request: Request) -> Response:
        """POST /admin/elections/{electionID}/close-voting"""
        election_id = _election_id(request)
        if election_id is None:
            return _invalid_id()
        try:
            dto = self._svc.close_voting(election_id)
        except ElectionNotFoundError:
            return _election_not_found()
        except ElectionNotInOpenStateError:
            return bad_request("ELECTION_NOT_OPEN", "Pemilu tidak dalam status voting terbuka.")
        except Exception:
            _log.exception("close voting failed")
            return internal_server_error("INTERNAL_ERROR", "Gagal menutup voting.")
        return json_response(HTTPStatus.OK, dto)