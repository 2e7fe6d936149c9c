"""Tests for the Flask front end, with subprocesses scripted."""

import io

import pytest

from vibbon.runner import ProcessResult
from vibbon.web import create_app


def _form(template="reuni_391", source="upload", title="my clip",
          filename="clip.mp4", mime="video/mp4", size=5000):
    return {
        "source": source,
        "template": template,
        "title": title,
        "video": (io.BytesIO(b"\0" * size), filename, mime),
    }


@pytest.fixture
def client_for(app_config):
    def _make(runner):
        app = create_app(app_config, runner=runner)
        app.config["TESTING"] = True
        return app.test_client()
    return _make


class TestHome:
    def test_lists_templates(self, client_for, make_runner):
        resp = client_for(make_runner()).get("/")
        assert resp.status_code == 200
        body = resp.get_data(as_text=True)
        assert 'value="reuni_391"' in body
        assert "Reuni SMA 3 Jakarta" in body

    def test_warns_when_binaries_missing(self, client_for, make_runner):
        body = client_for(make_runner()).get("/").get_data(as_text=True)
        assert "ffmpeg not found" in body
        assert "ffprobe not found" in body


class TestProcessUpload:
    def test_success_page(self, client_for, make_runner, app_config):
        runner = make_runner(ProcessResult(0, stdout="12.0"))
        resp = client_for(runner).post("/", data=_form(), content_type="multipart/form-data")
        assert resp.status_code == 200
        body = resp.get_data(as_text=True)
        assert 'src="/outputs/my-clip.mp4"' in body
        assert "filter_complex_script" in body
        assert (app_config.output_dir / "my-clip.mp4").exists()
        assert list(app_config.upload_dir.iterdir()) == []

    def test_recording_upload(self, client_for, make_runner, app_config):
        runner = make_runner(ProcessResult(0), ProcessResult(0, stdout="8.0"))
        form = _form(source="record", filename="recording.webm", mime="video/webm")
        resp = client_for(runner).post("/", data=form, content_type="multipart/form-data")
        assert resp.status_code == 200
        assert runner.tools() == ["ffmpeg", "ffprobe", "ffmpeg"]

    def test_missing_template_is_400(self, client_for, make_runner):
        resp = client_for(make_runner()).post(
            "/", data=_form(template=""), content_type="multipart/form-data",
        )
        assert resp.status_code == 400

    def test_unknown_template_is_400(self, client_for, make_runner, app_config):
        resp = client_for(make_runner()).post(
            "/", data=_form(template="nope"), content_type="multipart/form-data",
        )
        assert resp.status_code == 400
        assert "Unknown template" in resp.get_data(as_text=True)
        assert list(app_config.upload_dir.iterdir()) == []

    def test_error_message_is_escaped(self, client_for, make_runner):
        resp = client_for(make_runner()).post(
            "/", data=_form(template="<script>alert(1)</script>"),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400
        body = resp.get_data(as_text=True)
        assert "<script>" not in body
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in body

    def test_unknown_source_is_escaped(self, client_for, make_runner):
        resp = client_for(make_runner()).post(
            "/", data=_form(source="<b>x</b>"), content_type="multipart/form-data",
        )
        assert resp.status_code == 400
        assert "<b>" not in resp.get_data(as_text=True)

    def test_title_shown_as_typed(self, client_for, make_runner, app_config):
        runner = make_runner(ProcessResult(0, stdout="12.0"))
        resp = client_for(runner).post(
            "/", data=_form(title="Reuni 3/91 <b>"), content_type="multipart/form-data",
        )
        assert resp.status_code == 200
        body = resp.get_data(as_text=True)
        assert "Result: Reuni 3/91 &lt;b&gt;" in body
        assert (app_config.output_dir / "Reuni-3-91--b-.mp4").exists()

    def test_missing_video_is_400(self, client_for, make_runner):
        form = _form()
        del form["video"]
        resp = client_for(make_runner()).post("/", data=form, content_type="multipart/form-data")
        assert resp.status_code == 400

    def test_wrong_container_is_400(self, client_for, make_runner, app_config):
        runner = make_runner()
        resp = client_for(runner).post(
            "/", data=_form(filename="clip.mov", mime="video/quicktime"),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400
        assert runner.calls == []
        assert list(app_config.upload_dir.iterdir()) == []

    def test_tiny_upload_is_400(self, client_for, make_runner):
        resp = client_for(make_runner()).post(
            "/", data=_form(size=10), content_type="multipart/form-data",
        )
        assert resp.status_code == 400

    def test_probe_failure_shows_command(self, client_for, make_runner):
        runner = make_runner(ProcessResult(1, stderr="moov atom not found"))
        resp = client_for(runner).post("/", data=_form(), content_type="multipart/form-data")
        assert resp.status_code == 500
        body = resp.get_data(as_text=True)
        assert "moov atom not found" in body
        assert "format=duration" in body

    def test_encoder_failure_shows_graph(self, client_for, make_runner):
        runner = make_runner(
            ProcessResult(0, stdout="12.0"),
            ProcessResult(1, stderr="Error <initializing> filter"),
        )
        resp = client_for(runner).post("/", data=_form(), content_type="multipart/form-data")
        assert resp.status_code == 500
        body = resp.get_data(as_text=True)
        assert "filter graph" in body
        assert "[base][ov1]overlay=" in body
        # stderr is escaped, not injected
        assert "Error &lt;initializing&gt; filter" in body


class TestStaticFiles:
    def test_serves_outputs(self, client_for, make_runner, app_config):
        (app_config.output_dir / "done.mp4").write_bytes(b"\0" * 10)
        resp = client_for(make_runner()).get("/outputs/done.mp4")
        assert resp.status_code == 200
        assert resp.data == b"\0" * 10

    def test_serves_template_images(self, client_for, make_runner, app_config):
        (app_config.template_dir / "2d.png").write_bytes(b"png")
        resp = client_for(make_runner()).get("/templates/2d.png")
        assert resp.status_code == 200

    def test_missing_output_is_404(self, client_for, make_runner):
        assert client_for(make_runner()).get("/outputs/nope.mp4").status_code == 404
