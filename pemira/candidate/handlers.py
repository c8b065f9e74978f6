"""HTTP handlers for the public and admin candidate endpoints."""

from __future__ import annotations

import json
import logging
import re
from http import HTTPStatus
from typing import Any

from pemira.candidate.models import CandidateNotFoundError
from pemira.candidate.service import (
    AdminCreateCandidateRequest,
    AdminUpdateCandidateRequest,
    CandidateNotPublishedError,
    CandidateNumberTakenError,
    CandidateService,
    CandidateStatusInvalidError,
)
from pemira.election.models import ElectionNotFoundError
from pemira.web import (
    Request,
    Response,
    bad_request,
    conflict,
    internal_server_error,
    json_response,
    not_found,
    success,
    unprocessable_entity,
)

_log = logging.getLogger(__name__)

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_PUBLIC_DEFAULT_LIMIT = 10
_ADMIN_DEFAULT_LIMIT = 20


class _BadParam(Exception):
    """Raised internally when a path or query parameter is unusable."""

    def __init__(self, response: Response) -> None:
        super().__init__(response.status)
        self.response = response


def _parse_int64(text: str) -> int | None:
    if not _INT_RE.fullmatch(text):
        return None
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


def _positive_path_id(request: Request, name: str) -> int:
    value = _parse_int64(request.path_param(name))
    if value is None or value <= 0:
        raise _BadParam(bad_request("INVALID_REQUEST", f"{name} tidak valid."))
    return value


def _election_id_query(request: Request) -> int:
    raw = request.query_param("election_id")
    if raw == "":
        raise _BadParam(bad_request("INVALID_REQUEST", "election_id wajib diisi."))
    value = _parse_int64(raw)
    if value is None or value <= 0:
        raise _BadParam(bad_request("INVALID_REQUEST", "election_id tidak valid."))
    return value


def _json_body(request: Request) -> Any:
    try:
        data = json.loads(request.body)
    except ValueError as exc:
        raise _BadParam(bad_request("INVALID_REQUEST", "Body tidak valid.")) from exc
    return {} if data is None else data


def parse_int_query(request: Request, key: str, default: int) -> int:
    """Return a positive integer query value, or ``default`` when absent or unusable."""
    raw = request.query_param(key)
    if raw == "":
        return default
    value = _parse_int64(raw)
    if value is None or value <= 0:
        return default
    return value


class CandidateHandler:
    """Student-facing candidate endpoints."""

    def __init__(self, svc: CandidateService) -> None:
        self._svc = svc

    def list_public(self, request: Request) -> Response:
        """GET /elections/{electionID}/candidates"""
        try:
            election_id = _positive_path_id(request, "electionID")
        except _BadParam as bad:
            return bad.response

        search = request.query_param("search")
        page = parse_int_query(request, "page", 1)
        limit = parse_int_query(request, "limit", _PUBLIC_DEFAULT_LIMIT)

        try:
            items, pagination = self._svc.list_public_candidates(election_id, search, page, limit)
        except Exception as exc:
            return self._handle_error(exc)
        return success(HTTPStatus.OK, {"items": items, "pagination": pagination})

    def detail_public(self, request: Request) -> Response:
        """GET /elections/{electionID}/candidates/{candidateID}"""
        try:
            election_id = _positive_path_id(request, "electionID")
            candidate_id = _positive_path_id(request, "candidateID")
        except _BadParam as bad:
            return bad.response

        try:
            dto = self._svc.get_public_candidate_detail(election_id, candidate_id)
        except Exception as exc:
            return self._handle_error(exc)
        return success(HTTPStatus.OK, dto)

    @staticmethod
    def _handle_error(exc: Exception) -> Response:
        # An unpublished candidate looks the same as a missing one to students.
        if isinstance(exc, (CandidateNotFoundError, CandidateNotPublishedError)):
            return not_found("NOT_FOUND", "Kandidat tidak ditemukan untuk pemilu ini.")
        _log.error("internal error in candidate handler: %s", exc, exc_info=exc)
        return internal_server_error("INTERNAL_ERROR", "Terjadi kesalahan pada sistem.")


class AdminCandidateHandler:
    """Administrator candidate endpoints."""

    def __init__(self, svc: CandidateService) -> None:
        self._svc = svc

    def list(self, request: Request) -> Response:
        """GET /admin/elections/{electionID}/candidates"""
        try:
            election_id = _positive_path_id(request, "electionID")
        except _BadParam as bad:
            return bad.response

        search = request.query_param("search")
        status = request.query_param("status") or None
        page = parse_int_query(request, "page", 1)
        limit = parse_int_query(request, "limit", _ADMIN_DEFAULT_LIMIT)

        try:
            items, pagination = self._svc.admin_list_candidates(
                election_id, search, status, page, limit
            )
        except Exception as exc:
            return self._handle_error(exc)
        return json_response(HTTPStatus.OK, {"items": items, "pagination": pagination})

    def create(self, request: Request) -> Response:
        """POST /admin/elections/{electionID}/candidates"""
        try:
            election_id = _positive_path_id(request, "electionID")
            body = _json_body(request)
            req = AdminCreateCandidateRequest.from_dict(body)
        except _BadParam as bad:
            return bad.response
        except ValueError:
            return bad_request("INVALID_REQUEST", "Body tidak valid.")

        if req.number <= 0 or req.name == "":
            return unprocessable_entity("VALIDATION_ERROR", "number dan name wajib diisi.")

        try:
            dto = self._svc.admin_create_candidate(election_id, req)
        except Exception as exc:
            return self._handle_error(exc)
        return json_response(HTTPStatus.CREATED, dto)

    def _ids(self, request: Request) -> tuple[int, int]:
        candidate_id = _positive_path_id(request, "candidateID")
        election_id = _election_id_query(request)
        return election_id, candidate_id

    def detail(self, request: Request) -> Response:
        """GET /admin/candidates/{candidateID}?election_id=..."""
        try:
            election_id, candidate_id = self._ids(request)
        except _BadParam as bad:
            return bad.response
        try:
            dto = self._svc.admin_get_candidate(election_id, candidate_id)
        except Exception as exc:
            return self._handle_error(exc)
        return json_response(HTTPStatus.OK, dto)

    def update(self, request: Request) -> Response:
        """PUT /admin/candidates/{candidateID}?election_id=..."""
        try:
            election_id, candidate_id = self._ids(request)
            body = _json_body(request)
            req = AdminUpdateCandidateRequest.from_dict(body)
        except _BadParam as bad:
            return bad.response
        except ValueError:
            return bad_request("INVALID_REQUEST", "Body tidak valid.")

        try:
            dto = self._svc.admin_update_candidate(election_id, candidate_id, req)
        except Exception as exc:
            return self._handle_error(exc)
        return json_response(HTTPStatus.OK, dto)

    def delete(self, request: Request) -> Response:
        """DELETE /admin/candidates/{candidateID}?election_id=..."""
        try:
            election_id, candidate_id = self._ids(request)
        except _BadParam as bad:
            return bad.response
        try:
            self._svc.admin_delete_candidate(election_id, candidate_id)
        except Exception as exc:
            return self._handle_error(exc)
        return Response(status=int(HTTPStatus.NO_CONTENT))

    def publish(self, request: Request) -> Response:
        """POST /admin/candidates/{candidateID}/publish?election_id=..."""
        try:
            election_id, candidate_id = self._ids(request)
        except _BadParam as bad:
            return bad.response
        try:
            dto = self._svc.admin_publish_candidate(election_id, candidate_id)
        except Exception as exc:
            return self._handle_error(exc)
        return json_response(HTTPStatus.OK, dto)

    def unpublish(self, request: Request) -> Response:
        """POST /admin/candidates/{candidateID}/unpublish?election_id=..."""
        try:
            election_id, candidate_id = self._ids(request)
        except _BadParam as bad:
            return bad.response
        try:
            dto = self._svc.admin_unpublish_candidate(election_id, candidate_id)
        except Exception as exc:
            return self._handle_error(exc)
        return json_response(HTTPStatus.OK, dto)

    @staticmethod
    def _handle_error(exc: Exception) -> Response:
        if isinstance(exc, ElectionNotFoundError):
            return not_found("NOT_FOUND", "Pemilu tidak ditemukan.")
        if isinstance(exc, CandidateNotFoundError):
            return not_found("NOT_FOUND", "Kandidat tidak ditemukan.")
        if isinstance(exc, CandidateNumberTakenError):
            return conflict("CANDIDATE_NUMBER_TAKEN", "Nomor kandidat sudah digunakan di pemilu ini.")
        if isinstance(exc, CandidateStatusInvalidError):
            return bad_request("INVALID_REQUEST", "Perubahan status kandidat tidak diizinkan.")
        _log.error("INTERNAL_ERROR in candidate handler: %s", exc, exc_info=exc)
        return internal_server_error("INTERNAL_ERROR", "Terjadi kesalahan pada sistem.")