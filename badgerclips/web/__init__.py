"""Flask application factory for the BadgerClips web API."""

import os
import tempfile
from pathlib import Path

from flask import Flask, jsonify

DEFAULT_MAX_UPLOAD_MB = 2048


def create_app(work_dir: Path | None = None, max_upload_mb: int | None = None) -> Flask:
    """Build the app; uploads and their clips live under ``WORK_DIR/<job_id>``.

    The upload limit comes from *max_upload_mb*, then ``BADGERCLIPS_MAX_UPLOAD_MB``.
    """
    if max_upload_mb is None:
        max_upload_mb = int(os.getenv("BADGERCLIPS_MAX_UPLOAD_MB", DEFAULT_MAX_UPLOAD_MB))

    app = Flask(__name__)
    app.config["WORK_DIR"] = work_dir or Path(tempfile.mkdtemp(prefix="badgerclips_"))
    app.config["MAX_CONTENT_LENGTH"] = max_upload_mb * 1024 * 1024

    from badgerclips.web.routes import bp
    app.register_blueprint(bp)

    @app.errorhandler(413)
    def video_too_large(error):
        return jsonify({"error": f"Video exceeds the {max_upload_mb} MB upload limit"}), 413

    return app
