import os
import sys
import time
import threading

# Ensure backend/ is on sys.path so sibling imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException
from dotenv import load_dotenv

from normalizer import canonical_keys
from prereq_parser import (
    format_missing,
    is_prerequisite_satisfied,
    list_unmet_groups,
    parse_prerequisite,
)
from planner import (
    PlanEditError,
    add_course,
    add_semester,
    delete_semester,
    prerequisite_text,
    recompute_prereq_statuses,
    remove_course,
    rename_semester,
)
from unlocks import relationships_of
from data_loader import backfill_prerequisites, load_catalog
from validators import validate_new_course, validate_plan, validate_term

load_dotenv()

app = Flask(__name__)

API_VERSION = "1.0.0"

# ── Paths ─────────────────────────────────────────────────────────────────────
BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(BACKEND_DIR)
_DEFAULT_DATA_PATH = os.path.join(PROJECT_ROOT, "data")
_env_data_path = os.environ.get("DATA_PATH")
if not _env_data_path:
    DATA_PATH = _DEFAULT_DATA_PATH
elif not os.path.isabs(_env_data_path):
    DATA_PATH = os.path.join(PROJECT_ROOT, _env_data_path)
else:
    DATA_PATH = _env_data_path
_data_lock = threading.Lock()
_data_mtime = None


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, float(raw))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, int(raw))
    except (TypeError, ValueError):
        return default


_SLOW_REQUEST_LOG_MS = _env_float("SLOW_REQUEST_LOG_MS", 750.0, minimum=0.0)
_MAX_PLAN_SEMESTERS = _env_int("MAX_PLAN_SEMESTERS", 24, minimum=1)
_MAX_SEARCH_RESULTS = 200

_STATUS_BY_ERROR_CODE = {
    "INVALID_INPUT": 400,
    "SEMESTER_NOT_FOUND": 404,
    "DUPLICATE_COURSE": 409,
    "CREDIT_LIMIT_EXCEEDED": 409,
}


def _data_file_mtime(path: str):
    try:
        if os.path.isdir(path):
            mtimes = [
                os.path.getmtime(os.path.join(path, f))
                for f in os.listdir(path)
                if f.endswith(".csv")
            ]
            return max(mtimes) if mtimes else None
        return os.path.getmtime(path)
    except OSError:
        return None


# ── Startup catalog load ───────────────────────────────────────────────────────
try:
    _catalog = load_catalog(DATA_PATH)
    _data_mtime = _data_file_mtime(DATA_PATH)
    print(f"[OK] Loaded {len(_catalog)} catalog rows from {DATA_PATH}")
except FileNotFoundError:
    # If DATA_PATH env var is stale, fall back to the bundled catalog.
    if DATA_PATH != _DEFAULT_DATA_PATH and os.path.exists(_DEFAULT_DATA_PATH):
        print(
            f"[WARN] DATA_PATH not found ({DATA_PATH}); "
            f"falling back to default catalog ({_DEFAULT_DATA_PATH}).",
            file=sys.stderr,
        )
        DATA_PATH = _DEFAULT_DATA_PATH
        _catalog = load_catalog(DATA_PATH)
        _data_mtime = _data_file_mtime(DATA_PATH)
        print(f"[OK] Loaded {len(_catalog)} catalog rows from {DATA_PATH}")
    else:
        print(f"[FATAL] Catalog not found: {DATA_PATH}", file=sys.stderr)
        sys.exit(1)
except Exception as exc:
    print(f"[FATAL] Failed to load catalog: {exc}", file=sys.stderr)
    sys.exit(1)


def _reload_data_if_changed(force: bool = False) -> bool:
    """
    Hot-reload the catalog when DATA_PATH changes on disk.

    Returns True when a reload occurred, else False.
    """
    global _catalog, _data_mtime

    candidate_mtime = _data_file_mtime(DATA_PATH)
    if not force:
        if candidate_mtime is None:
            return False
        if _data_mtime is not None and candidate_mtime <= _data_mtime:
            return False

    with _data_lock:
        latest_mtime = _data_file_mtime(DATA_PATH)
        if not force:
            if latest_mtime is None:
                return False
            if _data_mtime is not None and latest_mtime <= _data_mtime:
                return False

        try:
            new_catalog = load_catalog(DATA_PATH)
        except Exception as exc:
            print(f"[WARN] Catalog reload failed; keeping previous catalog: {exc}", file=sys.stderr)
            return False

        _catalog = new_catalog
        _data_mtime = latest_mtime if latest_mtime is not None else candidate_mtime
        print(f"[OK] Reloaded {len(new_catalog)} catalog rows from {DATA_PATH}")
        return True


def _refresh_data_if_needed() -> None:
    try:
        _reload_data_if_changed()
    except Exception as exc:
        print(f"[WARN] Catalog reload check failed: {exc}", file=sys.stderr)


# -- Security headers ------------------------------------------------------
@app.before_request
def _start_request_timer():
    g._request_start_time = time.perf_counter()


@app.after_request
def _add_security_headers(response):
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "same-origin"

    started = getattr(g, "_request_start_time", None)
    if started is not None:
        duration_ms = (time.perf_counter() - started) * 1000.0
        if duration_ms >= _SLOW_REQUEST_LOG_MS:
            endpoint = request.endpoint or "unknown"
            print(
                f"[SLOW] {request.method} {request.path} "
                f"endpoint={endpoint} status={response.status_code} duration_ms={duration_ms:.1f}"
            )
    return response


# -- Error envelope ----------------------------------------------------------
def _error_response(error_code: str, message: str, status: int | None = None, **details):
    error = {"error_code": error_code, "message": message}
    error.update(details)
    status = status or _STATUS_BY_ERROR_CODE.get(error_code, 400)
    return jsonify({"mode": "error", "error": error}), status


def _plan_edit_error_response(exc: PlanEditError):
    return _error_response(exc.error_code, exc.message, **exc.details)


def _read_plan_body():
    """Returns (body, semesters, error_response)."""
    body = request.get_json(force=True, silent=True)
    if not isinstance(body, dict):
        return None, None, _error_response("INVALID_INPUT", "Request body must be a JSON object.")
    semesters = body.get("semesters", [])
    error_code, message = validate_plan(semesters, _MAX_PLAN_SEMESTERS)
    if error_code:
        return body, None, _error_response(error_code, message)
    return body, semesters, None


def _resolve_id(items: list[dict], raw_id: str):
    """URL segments are strings; plans may carry integer ids."""
    for item in items:
        if str(item.get("id")) == raw_id:
            return item.get("id")
    return raw_id


# -- Health endpoint --------------------------------------------------------
@app.route("/health", methods=["GET"])
def health_endpoint():
    return jsonify({
        "status": "ok",
        "version": API_VERSION,
        "catalog_courses": len(_catalog.catalog_codes),
    })


# ── 500 handler ────────────────────────────────────────────────────────────────
@app.errorhandler(Exception)
def handle_unexpected_error(e):
    if isinstance(e, HTTPException):
        return e
    print(f"[ERROR] Unhandled {type(e).__name__}: {e}", file=sys.stderr)
    return _error_response("SERVER_ERROR", "An unexpected server error occurred.", status=500)


# ── Routes ─────────────────────────────────────────────────────────────────────
def get_courses():
    _refresh_data_if_needed()
    query = request.args.get("q", "")
    try:
        limit = min(_MAX_SEARCH_RESULTS, max(1, int(request.args.get("limit", 50))))
    except (TypeError, ValueError):
        return _error_response("INVALID_INPUT", "limit must be an integer.")
    if query.strip():
        return jsonify({"courses": _catalog.search(query, limit)})
    return jsonify({"courses": _catalog.records()})


def recompute_endpoint():
    """Recompute unmet prerequisites for a plan snapshot; optionally backfill from the catalog."""
    body, semesters, error = _read_plan_body()
    if error:
        return error
    if body.get("backfill"):
        _refresh_data_if_needed()
        plan = backfill_prerequisites(semesters, _catalog)
    else:
        plan = recompute_prereq_statuses(semesters)
    return jsonify({"semesters": plan})


def relationships_endpoint():
    body, semesters, error = _read_plan_body()
    if error:
        return error
    related = relationships_of(semesters, body.get("focus_course_id"))
    return jsonify({
        "prerequisites": sorted(related["prerequisites"]),
        "postrequisites": sorted(related["postrequisites"]),
    })


def add_semester_endpoint():
    body, semesters, error = _read_plan_body()
    if error:
        return error
    semester_id = body.get("semester_id")
    if not isinstance(semester_id, str) or not semester_id.strip():
        return _error_response("INVALID_INPUT", "semester_id is required.")
    term, year = body.get("term"), body.get("year")
    if term is not None or year is not None:
        error_code, message = validate_term(term, year)
        if error_code:
            return _error_response(error_code, message)
    plan = add_semester(semesters, semester_id, term, year)
    return jsonify({"semesters": plan})


def rename_semester_endpoint(semester_id):
    body, semesters, error = _read_plan_body()
    if error:
        return error
    error_code, message = validate_term(body.get("term"), body.get("year"))
    if error_code:
        return _error_response(error_code, message)
    try:
        semester_id = _resolve_id(semesters, semester_id)
        plan = rename_semester(semesters, semester_id, body["term"], body["year"])
    except PlanEditError as exc:
        return _plan_edit_error_response(exc)
    return jsonify({"semesters": plan})


def delete_semester_endpoint(semester_id):
    _, semesters, error = _read_plan_body()
    if error:
        return error
    try:
        plan = delete_semester(semesters, _resolve_id(semesters, semester_id))
    except PlanEditError as exc:
        return _plan_edit_error_response(exc)
    return jsonify({"semesters": plan})


def add_course_endpoint(semester_id):
    body, semesters, error = _read_plan_body()
    if error:
        return error
    error_code, message = validate_new_course(body)
    if error_code:
        return _error_response(error_code, message)
    semester_id = _resolve_id(semesters, semester_id)
    try:
        plan, added = add_course(
            semesters,
            semester_id,
            body["name"].strip(),
            body["credits"],
            prerequisite=prerequisite_text(body.get("prerequisite")),
            course_id=body.get("course_id"),
            allow_overload=body.get("allow_overload", False),
        )
    except PlanEditError as exc:
        return _plan_edit_error_response(exc)

    unmet = added.get("unmetPrereqs") or []
    warning = f"Added course, missing prerequisites: {' AND '.join(unmet)}" if unmet else None
    return jsonify({"semesters": plan, "added_course": added, "warning": warning})


def remove_course_endpoint(semester_id, course_id):
    _, semesters, error = _read_plan_body()
    if error:
        return error
    semester_id = _resolve_id(semesters, semester_id)
    courses = [c for s in semesters if s.get("id") == semester_id for c in s.get("courses") or []]
    try:
        plan = remove_course(semesters, semester_id, _resolve_id(courses, course_id))
    except PlanEditError as exc:
        return _plan_edit_error_response(exc)
    return jsonify({"semesters": plan})


def check_prereqs_endpoint():
    """Evaluate one prerequisite formula against a list of taken course names."""
    body = request.get_json(force=True, silent=True)
    if not isinstance(body, dict):
        return _error_response("INVALID_INPUT", "Request body must be a JSON object.")
    taken_raw = body.get("taken", [])
    if not isinstance(taken_raw, list) or not all(isinstance(t, str) for t in taken_raw):
        return _error_response("INVALID_INPUT", "taken must be a list of course names.")

    formula = parse_prerequisite(body.get("prerequisite"))
    taken = canonical_keys(taken_raw)
    unmet = list_unmet_groups(formula, taken)
    return jsonify({
        "satisfied": is_prerequisite_satisfied(formula, taken),
        "unmet_groups": unmet,
        "missing": format_missing(unmet),
    })


# -- API routes ----------------------------------------------------------------
app.add_url_rule("/api/health", endpoint="api_health", view_func=health_endpoint, methods=["GET"])
app.add_url_rule("/api/courses", endpoint="api_courses", view_func=get_courses, methods=["GET"])
app.add_url_rule("/api/plan/recompute", endpoint="api_plan_recompute", view_func=recompute_endpoint, methods=["POST"])
app.add_url_rule("/api/plan/relationships", endpoint="api_plan_relationships", view_func=relationships_endpoint, methods=["POST"])
app.add_url_rule("/api/plan/semesters", endpoint="api_add_semester", view_func=add_semester_endpoint, methods=["POST"])
app.add_url_rule("/api/plan/semesters/<semester_id>", endpoint="api_rename_semester", view_func=rename_semester_endpoint, methods=["PATCH"])
app.add_url_rule("/api/plan/semesters/<semester_id>", endpoint="api_delete_semester", view_func=delete_semester_endpoint, methods=["DELETE"])
app.add_url_rule("/api/plan/semesters/<semester_id>/courses", endpoint="api_add_course", view_func=add_course_endpoint, methods=["POST"])
app.add_url_rule("/api/plan/semesters/<semester_id>/courses/<course_id>", endpoint="api_remove_course", view_func=remove_course_endpoint, methods=["DELETE"])
app.add_url_rule("/api/prereqs/check", endpoint="api_check_prereqs", view_func=check_prereqs_endpoint, methods=["POST"])


# -- API catch-all (404 for unknown /api/* routes) -------------------
@app.route("/api/<path:rest>", methods=["GET", "POST", "PUT", "DELETE", "PATCH"])
def api_catch_all(rest):
    return jsonify({"error": f"/api/{rest} not found"}), 404


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    debug = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(host="0.0.0.0", port=port, debug=debug)
