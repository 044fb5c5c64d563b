import io

from flask import Blueprint, abort, current_app, flash, redirect, render_template, request, send_file, url_for

from app.chapterdesk.crud import backend_message
from app.chapterdesk.errors import ApiError, Unauthorized
from app.chapterdesk.modules.reports.service import REPORTS, download_report, parse_range
from app.chapterdesk.rbac import require_role
from app.chapterdesk.resource import gateway

bp = Blueprint("reports", __name__)


@bp.get("")
@require_role("admin")
def index():
    return render_template("reports/index.html", reports=REPORTS.values())


@bp.get("/<key>.xlsx")
@require_role("admin")
def download(key: str):
    report = REPORTS.get(key)
    if report is None:
        abort(404)
    params, error = parse_range(request.args.get("fromDate"), request.args.get("toDate"))
    if error:
        flash(error, "danger")
        return redirect(url_for("reports.index"))
    try:
        content, content_type = download_report(gateway(), report, params)
    except Unauthorized:
        raise
    except ApiError as e:
        current_app.logger.warning("Report %s download failed: %s", key, e.message)
        flash(backend_message(e, f"Failed to download {report.title.lower()}. Please try again."), "danger")
        return redirect(url_for("reports.index"))
    current_app.logger.info("report.download key=%s params=%s", key, params)
    return send_file(io.BytesIO(content), mimetype=content_type, as_attachment=True, download_name=report.filename)
