# pemira

Building blocks for the back end of a campus election: the rules for
candidates, elections and the voter roll (DPT), the request handlers that
expose them, and the live-count monitoring that admins watch while voting is
open.

The package has no runtime dependencies. Each service takes a repository
object that you implement against your own storage, so the business rules
can be used and tested without a database.

## What is inside

- `pemira.candidate.models` — `Candidate`, `CandidateStatus`, `MainProgram`,
  `Media`, `SocialLink`, `CandidateStats`, the `CandidateRepository` and
  `StatsProvider` protocols, and `AnalyticsStatsAdapter`, which presents an
  analytics repository as a stats provider.
- `pemira.candidate.service` — `CandidateService` for the public listing
  (approved candidates only) and the admin list, create, get, update,
  delete, publish and unpublish operations, with the request and response
  types `AdminCreateCandidateRequest`, `AdminUpdateCandidateRequest`,
  `CandidateListItemDTO` and `CandidateDetailDTO`.
- `pemira.candidate.handlers` — `CandidateHandler` and
  `AdminCandidateHandler`.
- `pemira.election.models` — `Election`, `ElectionStatus`, `AdminElectionDTO`,
  `MeStatusDTO`, `MeStatusRow` and the `ElectionRepository` and
  `AdminElectionRepository` protocols.
- `pemira.election.service` — `ElectionService` (the election currently open
  for voting, a voter's own status) and `AdminElectionService` (list, create,
  get, update, open and close voting). The admin service takes an optional
  `clock` used to stamp voting start and end times.
- `pemira.election.handlers` — `ElectionHandler` and `AdminElectionHandler`.
- `pemira.dpt` — the voter roll: `DptService` (`import_rows`, paged `list`,
  `export` as a generator), `build_where_clause` for the SQL filter fragment,
  `parse_import_csv` for uploaded CSV files, `format_export_record`, and
  `DptHandler`.
- `pemira.monitoring` — `MonitoringService` builds live-count snapshots and a
  dashboard summary from a `MonitoringRepository`; `MonitoringHandler`
  serves them.
- `pemira.web` — a small `Request` / `Response` pair and the JSON response
  helpers (`json_response`, `success`, `error`, `bad_request`,
  `unauthorized`, `forbidden`, `not_found`, `conflict`,
  `unprocessable_entity`, `internal_server_error`) that the handlers return.
- `pemira.middleware` — `RateLimiter` (a per-address token bucket), role
  checks (`require_role`, `require_admin`, `require_tps_operator`,
  `require_student`) and `request_logger`.
- `pemira.config` — `load` reads settings from an environment mapping and
  raises `ConfigError` when a required one is missing.
- `pemira.pagination`, `pemira.constants`, `pemira.ctxkeys`, `pemira.errors` —
  shared pieces used throughout.

## Using the services

```python
from pemira.candidate.service import AdminCreateCandidateRequest, CandidateService

service = CandidateService(repo=my_candidate_repo, stats=my_stats_provider)

created = service.admin_create_candidate(
    1,
    AdminCreateCandidateRequest.from_dict({"number": 1, "name": "Candidate One"}),
)
published = service.admin_publish_candidate(1, created.id)
```

Errors are raised as exceptions — for example `CandidateNumberTakenError`
when a number is already used in the election, or
`ElectionAlreadyOpenError` when voting is opened twice — and the handlers
turn them into the matching HTTP status and error body.

## Using the handlers

A handler method takes a `pemira.web.Request` and returns a
`pemira.web.Response`. Path parameters go in `path_params`, query values in
`query`, and per-request values such as the user id, role and voter id in
`context`, keyed by `pemira.ctxkeys.ContextKey`.

```python
from pemira.ctxkeys import ContextKey
from pemira.web import Request

request = Request(
    path_params={"electionID": "1"},
    context={ContextKey.USER_ID: 7, ContextKey.VOTER_ID: 42},
)
response = election_handler.get_me_status(request)
response.status, response.json()
```

`ElectionHandler.routes()` and `MonitoringHandler.routes()` list their
method, path pattern and handler so you can register them with the server
of your choice. `DptHandler.export` returns the whole CSV download — status,
`Content-Type` and `Content-Disposition` headers, and the CSV text.

## Configuration

```python
import os
from pemira.config import load

config = load(os.environ)
```

`DATABASE_URL` and `JWT_SECRET` are required; `APP_ENV`, `HTTP_PORT`,
`JWT_EXPIRATION`, `REDIS_URL`, `LOG_LEVEL` and `CORS_ALLOWED_ORIGINS` have
defaults.

## Pagination

Pages start at 1, a missing or non-positive limit falls back to the
endpoint's default, and the total page count is rounded up.

```python
from pemira.pagination import paginate

paginate(2, 10, 35).to_dict()
# {'page': 2, 'limit': 10, 'total_items': 35, 'total_pages': 4}
```

## What it does not do

- It has no storage. There are no repository implementations; you supply
  objects that follow the repository protocols.
- It has no HTTP server or router and no command to start one. Handlers are
  plain callables to be wired into a server you choose.
- It does not issue or verify tokens. The role checks and handlers read the
  user id, role and voter id from `Request.context`, which your own
  authentication layer must fill in.

## Tests

The test suite uses pytest and is installed with the `test` extra.