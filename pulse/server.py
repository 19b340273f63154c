"""
Residency Pulse — FastAPI routing layer

  POST   /api/submissions           ingest one pulse
  GET    /api/submissions           all pulses, oldest first
  DELETE /api/submissions           remove one pulse by id            (admin)
  GET    /api/submissions/export    CSV download                      (admin)
  GET    /api/submissions/summary   contributor table, heatmaps, trend (admin)
  POST   /api/triads/preview        live weights for the triad widget
  POST   /api/admin/login           shared-secret check for the admin view
  GET    /api/roster                names + triad labels for the form
  GET    /api/health

Store calls run on worker threads so a slow backend never holds the event loop.
"""
import asyncio
import logging

from fastapi import FastAPI, APIRouter, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from pulse import __version__
from pulse.auth import require_admin, check_admin_password
from pulse.config import ADMIN_PASSWORD, ROSTER, TRIADS, PORT, configure_logging
from pulse.errors import BackendIOError, MissingFieldError, ValidationError
from pulse.export import export_csv, export_filename
from pulse.ingest import ingest
from pulse.insights import summarize
from pulse.store import select_store
from pulse.triads import preview

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


async def _json_body(request: Request):
    try:
        return await request.json()
    except ValueError:
        return None


def _bad_request(message: str, **extra) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=400)


def _server_error(message: str, exc: Exception) -> JSONResponse:
    return JSONResponse({"error": message, "details": str(exc)}, status_code=500)


# ============================================================
# ROUTES
# ============================================================
@router.get("/health")
async def health(request: Request):
    return {"status": "ok", "product": "Residency Pulse", "version": __version__,
            "backend": request.app.state.store.describe()}


@router.get("/roster")
async def roster(request: Request):
    return {"names": request.app.state.roster,
            "triads": {k: {"field": t["field"], "title": t["title"], "labels": list(t["labels"]),
                           "display": list(t["display"])} for k, t in TRIADS.items()}}


@router.post("/triads/preview")
async def triad_preview(request: Request):
    body = await _json_body(request)
    if not isinstance(body, dict):
        return _bad_request("Invalid JSON body")
    triad = body.get("triad", "values")
    if triad not in TRIADS:
        return _bad_request(f"Unknown triad '{triad}'")
    try:
        return preview({"x": body.get("x"), "y": body.get("y")}, triad)
    except TypeError:
        return _bad_request("x and y must be numbers")


@router.post("/submissions")
async def create_submission(request: Request):
    body = await _json_body(request)
    if not isinstance(body, dict):
        return _bad_request("Invalid JSON body")
    try:
        result = await asyncio.to_thread(ingest, body, request.app.state.store, request.app.state.roster)
    except MissingFieldError as e:
        return _bad_request("Missing required fields", fields=e.fields)
    except ValidationError as e:
        return _bad_request(str(e), field=getattr(e, "field", None))
    except BackendIOError as e:
        logger.exception("Error saving submission")
        return _server_error("Failed to save submission", e)
    return JSONResponse(result, status_code=201)


@router.get("/submissions")
async def list_submissions(request: Request):
    try:
        return await asyncio.to_thread(request.app.state.store.list)
    except BackendIOError as e:
        logger.exception("Error reading submissions")
        return _server_error("Failed to read submissions", e)


@router.delete("/submissions")
async def delete_submission(request: Request, _admin: bool = Depends(require_admin)):
    submission_id = request.query_params.get("id")
    if not submission_id:
        body = await _json_body(request)
        if isinstance(body, dict) and body.get("id"):
            submission_id = str(body["id"])
    if not submission_id:
        return _bad_request("Missing submission id")
    try:
        deleted = await asyncio.to_thread(request.app.state.store.delete, submission_id)
    except BackendIOError as e:
        logger.exception("Error deleting submission %s", submission_id)
        return _server_error("Failed to delete submission", e)
    if deleted:
        logger.info("Deleted submission %s", submission_id)
    return {"message": "Submission deleted" if deleted else "No such submission",
            "id": submission_id, "deleted": deleted}


@router.get("/submissions/export")
async def export_submissions(request: Request, _admin: bool = Depends(require_admin)):
    try:
        records = await asyncio.to_thread(request.app.state.store.list)
    except BackendIOError as e:
        logger.exception("Error exporting submissions")
        return _server_error("Failed to read submissions", e)
    return Response(export_csv(records), media_type="text/csv; charset=utf-8",
                    headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'})


@router.get("/submissions/summary")
async def submissions_summary(request: Request, _admin: bool = Depends(require_admin)):
    try:
        records = await asyncio.to_thread(request.app.state.store.list)
    except BackendIOError as e:
        logger.exception("Error summarizing submissions")
        return _server_error("Failed to read submissions", e)
    return summarize(records)


@router.post("/admin/login")
async def admin_login(request: Request):
    body = await _json_body(request)
    password = body.get("password") if isinstance(body, dict) else None
    if not check_admin_password(password, request.app.state.admin_password):
        return JSONResponse({"error": "Invalid password"}, status_code=401)
    return {"success": True}


# ============================================================
# APP
# ============================================================
def create_app(store=None, admin_password=None, roster=None) -> FastAPI:
    """Build the app around one store instance, chosen once here."""
    app = FastAPI(title="Residency Pulse", version=__version__)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_credentials=True,
                       allow_methods=["*"], allow_headers=["*"])
    app.state.store = store if store is not None else select_store()
    app.state.admin_password = ADMIN_PASSWORD if admin_password is None else admin_password
    app.state.roster = list(ROSTER if roster is None else roster)
    app.include_router(router)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    configure_logging()
    logger.info("Starting Residency Pulse v%s on port %d (backend: %s)",
                __version__, PORT, app.state.store.describe())
    uvicorn.run(app, host="0.0.0.0", port=PORT)
