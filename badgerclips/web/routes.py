"""Web API routes for BadgerClips."""

import json
import logging
import queue
import threading
import uuid
from pathlib import Path

from flask import (
    Blueprint,
    Response,
    current_app,
    jsonify,
    request,
    send_file,
)
from werkzeug.utils import secure_filename

from badgerclips import ffutil
from badgerclips.engine import split
from badgerclips.manifest import ErrorPolicy, parse_length
from badgerclips.models import SplitRequest

logger = logging.getLogger(__name__)

bp = Blueprint("web", __name__)

# In-memory job store: job_id -> job dict
_jobs: dict[str, dict] = {}


def _job_or_404(job_id: str):
    job = _jobs.get(job_id)
    if job is None:
        return None, (jsonify({"error": "Job not found"}), 404)
    return job, None


@bp.route("/api/upload", methods=["POST"])
def upload():
    if "file" not in request.files:
        return jsonify({"error": "No file provided"}), 400

    f = request.files["file"]
    if not f.filename:
        return jsonify({"error": "Empty filename"}), 400

    job_id = uuid.uuid4().hex[:12]
    job_dir = Path(current_app.config["WORK_DIR"]) / job_id
    job_dir.mkdir(parents=True, exist_ok=True)

    # Keep the upload's stem so clip names match the CLI's naming.
    original = Path(secure_filename(f.filename))
    input_path = job_dir / f"{original.stem or 'input'}{original.suffix or '.mp4'}"
    f.save(input_path)

    _jobs[job_id] = {
        "dir": job_dir,
        "input_path": input_path,
        "filename": f.filename,
        "status": "uploaded",
    }

    return jsonify({"job_id": job_id, "filename": f.filename})


@bp.route("/api/jobs/<job_id>/split", methods=["POST"])
def start_split(job_id: str):
    job, error = _job_or_404(job_id)
    if error:
        return error

    if job["status"] not in ("uploaded", "done", "error"):
        return jsonify({"error": f"Job is already {job['status']}"}), 409

    config = request.get_json(silent=True) or {}
    try:
        length = parse_length(config.get("length"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    try:
        ffutil.check_ffmpeg()
    except ffutil.FFmpegNotFoundError as e:
        return jsonify({"error": str(e)}), 503

    split_request = SplitRequest(
        input=job["input_path"],
        output_dir=job["dir"] / "clips",
        length=length,
        reencode=bool(config.get("reencode", False)),
    )

    progress_queue: queue.Queue = queue.Queue()
    job["progress_queue"] = progress_queue
    job["status"] = "splitting"
    job["error"] = None
    job["result"] = None

    def run():
        try:
            def on_progress(stage: str, frac: float):
                progress_queue.put({"stage": stage, "progress": round(frac, 3)})

            result = split(split_request, policy=ErrorPolicy.strict(), on_progress=on_progress)
            job["result"] = {
                "duration": result.duration,
                "clips": [
                    {
                        "name": c.output_path.name,
                        "start": c.boundary.start,
                        "end": c.boundary.end,
                    }
                    for c in result.clips
                ],
            }
            if result.fatal:
                job["status"] = "error"
                job["error"] = result.fatal.message
            else:
                job["status"] = "done"
        except Exception as e:
            logger.exception("Split job %s failed", job_id)
            job["status"] = "error"
            job["error"] = str(e)
        finally:
            progress_queue.put(None)  # sentinel

    threading.Thread(target=run, daemon=True).start()
    return jsonify({"status": "started"})


@bp.route("/api/jobs/<job_id>/progress")
def progress_stream(job_id: str):
    job, error = _job_or_404(job_id)
    if error:
        return error

    q = job.get("progress_queue")
    if q is None:
        return jsonify({"error": "No split in progress"}), 409

    def generate():
        while True:
            try:
                msg = q.get(timeout=120)
            except queue.Empty:
                yield "data: {\"error\": \"timeout\"}\n\n"
                break
            if msg is None:
                if job["status"] == "error":
                    data = json.dumps({"error": job["error"]})
                else:
                    data = json.dumps({
                        "stage": "complete",
                        "progress": 1.0,
                        "result": job.get("result"),
                    })
                yield f"data: {data}\n\n"
                break
            yield f"data: {json.dumps(msg)}\n\n"

    return Response(generate(), mimetype="text/event-stream")


@bp.route("/api/jobs/<job_id>/clips/<name>")
def download_clip(job_id: str, name: str):
    job, error = _job_or_404(job_id)
    if error:
        return error

    if job["status"] != "done":
        return jsonify({"error": "Job not complete"}), 409

    names = {c["name"] for c in job["result"]["clips"]}
    if name not in names:
        return jsonify({"error": "Clip not found"}), 404

    return send_file(job["dir"] / "clips" / name, as_attachment=True)


@bp.route("/api/jobs/<job_id>/status")
def job_status(job_id: str):
    job, error = _job_or_404(job_id)
    if error:
        return error

    resp = {"status": job["status"], "filename": job.get("filename")}
    if job["status"] == "done":
        resp["result"] = job.get("result")
    if job["status"] == "error":
        resp["error"] = job.get("error")
    return jsonify(resp)
