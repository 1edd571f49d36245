"""Unit tests for the BadgerClips web API."""

import io
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from badgerclips.engine import SplitResult
from badgerclips.models import ClipBoundary, ClipResult, Issue, Severity
from badgerclips.web import create_app
from badgerclips.web import routes


@pytest.fixture
def app(tmp_path):
    app = create_app(work_dir=tmp_path)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def _upload(client, filename="match.mp4", content=b"fake video data"):
    return client.post(
        "/api/upload",
        data={"file": (io.BytesIO(content), filename)},
        content_type="multipart/form-data",
    )


def _fake_split(request, policy=None, on_progress=None, on_clip=None):
    result = SplitResult(request=request, duration=90.0, estimated_clips=2)
    request.output_dir.mkdir(parents=True, exist_ok=True)
    for i, (start, end) in enumerate([(0.0, 60.0), (60.0, 90.0)], 1):
        path = request.output_dir / f"{request.input.stem}_{start:.2f}_{end:.2f}.mp4"
        path.write_bytes(b"clip")
        result.clips.append(ClipResult(ClipBoundary(start, end, i), path))
        if on_progress:
            on_progress(f"Processing clip {i} of 2", (i - 1) / 2)
    return result


def _run_split(client, job_id, body=None):
    """Start a split and drain the progress stream until it completes."""
    resp = client.post(f"/api/jobs/{job_id}/split", json=body or {"length": 60})
    assert resp.status_code == 200
    events = client.get(f"/api/jobs/{job_id}/progress").get_data(as_text=True)
    return [json.loads(line[len("data: "):]) for line in events.splitlines() if line]


class TestCreateApp:
    def test_default_upload_limit(self, tmp_path, monkeypatch):
        monkeypatch.delenv("BADGERCLIPS_MAX_UPLOAD_MB", raising=False)
        app = create_app(work_dir=tmp_path)
        assert app.config["MAX_CONTENT_LENGTH"] == 2048 * 1024 * 1024
        assert app.config["WORK_DIR"] == tmp_path

    def test_upload_limit_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("BADGERCLIPS_MAX_UPLOAD_MB", "16")
        app = create_app(work_dir=tmp_path)
        assert app.config["MAX_CONTENT_LENGTH"] == 16 * 1024 * 1024

    def test_oversized_upload_rejected(self, tmp_path):
        app = create_app(work_dir=tmp_path, max_upload_mb=1)
        resp = _upload(app.test_client(), content=b"x" * (2 * 1024 * 1024))
        assert resp.status_code == 413
        assert "1 MB" in resp.get_json()["error"]


class TestUpload:
    def test_upload_success(self, client):
        resp = _upload(client)
        assert resp.status_code == 200
        data = resp.get_json()
        assert "job_id" in data
        assert data["filename"] == "match.mp4"

    def test_upload_no_file(self, client):
        resp = client.post("/api/upload")
        assert resp.status_code == 400

    def test_upload_keeps_stem(self, client, tmp_path):
        resp = _upload(client, content=b"CONTENT")
        job_id = resp.get_json()["job_id"]
        input_file = tmp_path / job_id / "match.mp4"
        assert input_file.read_bytes() == b"CONTENT"

    def test_upload_sanitizes_name(self, client, tmp_path):
        resp = _upload(client, filename="../../evil.mp4")
        job_id = resp.get_json()["job_id"]
        assert (tmp_path / job_id / "evil.mp4").exists()


@patch("badgerclips.web.routes.ffutil.check_ffmpeg")
class TestSplit:
    def test_unknown_job(self, mock_check, client):
        resp = client.post("/api/jobs/nonexistent/split", json={"length": 60})
        assert resp.status_code == 404

    def test_invalid_length(self, mock_check, client):
        job_id = _upload(client).get_json()["job_id"]
        resp = client.post(f"/api/jobs/{job_id}/split", json={"length": 0})
        assert resp.status_code == 400
        assert "positive integer" in resp.get_json()["error"]

    def test_missing_ffmpeg(self, mock_check, client):
        from badgerclips.ffutil import FFmpegNotFoundError
        mock_check.side_effect = FFmpegNotFoundError("ffmpeg not found on PATH")
        job_id = _upload(client).get_json()["job_id"]
        resp = client.post(f"/api/jobs/{job_id}/split", json={"length": 60})
        assert resp.status_code == 503

    @patch("badgerclips.web.routes.split", side_effect=_fake_split)
    def test_split_completes(self, mock_split, mock_check, client):
        job_id = _upload(client).get_json()["job_id"]

        events = _run_split(client, job_id, {"length": 60, "reencode": True})

        assert events[0] == {"stage": "Processing clip 1 of 2", "progress": 0.0}
        final = events[-1]
        assert final["stage"] == "complete"
        assert [c["name"] for c in final["result"]["clips"]] == [
            "match_0.00_60.00.mp4",
            "match_60.00_90.00.mp4",
        ]
        request = mock_split.call_args[0][0]
        assert request.length == 60
        assert request.reencode is True

        status = client.get(f"/api/jobs/{job_id}/status").get_json()
        assert status["status"] == "done"

        resp = client.get(f"/api/jobs/{job_id}/clips/match_60.00_90.00.mp4")
        assert resp.status_code == 200
        assert resp.data == b"clip"
        resp.close()

    @patch("badgerclips.web.routes.split")
    def test_already_splitting(self, mock_split, mock_check, client):
        job_id = _upload(client).get_json()["job_id"]
        routes._jobs[job_id]["status"] = "splitting"

        resp = client.post(f"/api/jobs/{job_id}/split", json={"length": 60})

        assert resp.status_code == 409
        assert "already splitting" in resp.get_json()["error"]
        mock_split.assert_not_called()

    @patch("badgerclips.web.routes.split", side_effect=_fake_split)
    def test_split_again_after_done(self, mock_split, mock_check, client):
        job_id = _upload(client).get_json()["job_id"]
        _run_split(client, job_id, {"length": 60})
        assert routes._jobs[job_id]["status"] == "done"

        events = _run_split(client, job_id, {"length": 30})

        assert events[-1]["stage"] == "complete"
        assert mock_split.call_count == 2
        assert mock_split.call_args[0][0].length == 30

    @patch("badgerclips.web.routes.split")
    def test_split_fatal(self, mock_split, mock_check, client):
        def failing(request, policy=None, on_progress=None, on_clip=None):
            result = SplitResult(request=request)
            result.issues.append(Issue("probe", Severity.FATAL, "Zero streams found in file"))
            return result

        mock_split.side_effect = failing
        job_id = _upload(client).get_json()["job_id"]

        events = _run_split(client, job_id)

        assert events[-1] == {"error": "Zero streams found in file"}
        status = client.get(f"/api/jobs/{job_id}/status").get_json()
        assert status["status"] == "error"


class TestProgress:
    def test_no_split_started(self, client):
        job_id = _upload(client).get_json()["job_id"]
        resp = client.get(f"/api/jobs/{job_id}/progress")
        assert resp.status_code == 409


class TestStatus:
    def test_status_after_upload(self, client):
        job_id = _upload(client).get_json()["job_id"]
        resp = client.get(f"/api/jobs/{job_id}/status")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "uploaded"

    def test_status_unknown_job(self, client):
        resp = client.get("/api/jobs/nonexistent/status")
        assert resp.status_code == 404


class TestDownload:
    def test_download_not_complete(self, client):
        job_id = _upload(client).get_json()["job_id"]
        resp = client.get(f"/api/jobs/{job_id}/clips/match_0.00_60.00.mp4")
        assert resp.status_code == 409

    def test_download_unknown_job(self, client):
        resp = client.get("/api/jobs/nonexistent/clips/a.mp4")
        assert resp.status_code == 404

    def test_download_unknown_clip(self, client, tmp_path):
        job_id = _upload(client).get_json()["job_id"]
        routes._jobs[job_id]["status"] = "done"
        routes._jobs[job_id]["result"] = {"duration": 0.0, "clips": []}
        resp = client.get(f"/api/jobs/{job_id}/clips/other.mp4")
        assert resp.status_code == 404
