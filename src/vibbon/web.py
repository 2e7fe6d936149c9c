"""Flask front end for uploading or recording a clip and composing it.

Routes:
  GET  /                    form (source, video, template, title)
  POST /                    run the pipeline on the submitted video
  GET  /outputs/<name>      rendered videos
  GET  /templates/<name>    overlay images
"""

import logging
from pathlib import Path

from flask import Flask, render_template_string, request, send_from_directory
from werkzeug.utils import secure_filename

from .common import random_name, remove_quietly
from .config import AppConfig, ensure_dirs
from .errors import ProcessFailure, ResourceFailure, ValidationFailure
from .normalize import GENERIC_MIME
from .pipeline import ComposeRequest, run_request
from .report import ComposeFailure
from .runner import ProcessRunner

logger = logging.getLogger(__name__)

_STYLE = """
body{font-family:system-ui,-apple-system,Segoe UI,Roboto,Arial;color:#222;padding:24px;max-width:900px;margin:auto}
.card{border:1px solid #ddd;border-radius:12px;padding:18px;margin:12px 0;background:#fff}
label{display:block;margin:10px 0 6px;font-weight:600}
input[type=file],select,input[type=text]{padding:10px;border:1px solid #ccc;border-radius:8px;width:100%}
button,a.btn{display:inline-block;padding:12px 18px;border:0;border-radius:10px;background:#111;color:#fff;font-weight:700;cursor:pointer;text-decoration:none}
video{width:360px;max-height:640px;border-radius:12px;border:1px solid #ddd;background:#000}
.hint{color:#666;font-size:.9em}
.mono{font-family:ui-monospace,Menlo,Consolas,monospace;font-size:.9em;background:#f8f8f8;border-radius:8px;padding:10px;white-space:pre-wrap}
"""

HOME_PAGE = """<!doctype html>
<html><head><meta charset="utf-8"><title>Video Twibbon</title>
<meta name="viewport" content="width=device-width,initial-scale=1">
<style>{{ style }}</style></head><body>
<h1>Video Twibbon Generator</h1>
{% if warning %}<p style="color:#b00">{{ warning }}</p>{% endif %}
<p class="hint">Upload a video or record one with your camera. Max {{ max_duration|int }} seconds.</p>
<form id="form" class="card" method="post" enctype="multipart/form-data" action="/">
  <label><input type="radio" name="source" value="upload" checked> Upload</label>
  <label><input type="radio" name="source" value="record"> Record from camera</label>
  <div id="upload-pane">
    <label>Video (MP4)</label>
    <input type="file" name="video" accept="video/mp4,video/webm,video/*">
  </div>
  <div id="record-pane" hidden>
    <video id="cam" autoplay muted playsinline></video>
    <div>
      <button type="button" id="btnRec">Record</button>
      <button type="button" id="btnStop" disabled>Stop</button>
      <span id="timer" class="hint">00:00</span>
    </div>
  </div>
  <label>Template</label>
  <select name="template" required>
  {% for t in templates %}<option value="{{ t.key }}">{{ t.title }} ({{ t.key }})</option>{% endfor %}
  </select>
  <label>Output title (optional)</label>
  <input type="text" name="title" placeholder="e.g. video-twibbon">
  <button type="submit" style="margin-top:12px">Generate</button>
</form>
<script>
const LIMIT = {{ max_duration|int }};
const form = document.getElementById("form");
const panes = {upload: document.getElementById("upload-pane"), record: document.getElementById("record-pane")};
let recorder = null, chunks = [], recorded = null, tick = null;
form.querySelectorAll("input[name=source]").forEach(r => r.addEventListener("change", async () => {
  panes.upload.hidden = r.value !== "upload" || !r.checked;
  panes.record.hidden = r.value !== "record" || !r.checked;
  if (r.value === "record" && r.checked && !recorder) {
    const stream = await navigator.mediaDevices.getUserMedia({video: true, audio: true});
    document.getElementById("cam").srcObject = stream;
    recorder = new MediaRecorder(stream);
    recorder.ondataavailable = e => chunks.push(e.data);
    recorder.onstop = () => { recorded = new Blob(chunks, {type: recorder.mimeType}); clearInterval(tick); };
  }
}));
document.getElementById("btnRec").onclick = () => {
  chunks = []; recorder.start(); const t0 = Date.now();
  document.getElementById("btnStop").disabled = false;
  tick = setInterval(() => {
    const s = Math.floor((Date.now() - t0) / 1000);
    document.getElementById("timer").textContent = "00:" + String(s).padStart(2, "0");
    if (s >= LIMIT) recorder.stop();
  }, 250);
};
document.getElementById("btnStop").onclick = () => recorder.stop();
form.addEventListener("submit", e => {
  if (form.source.value !== "record" || !recorded) return;
  e.preventDefault();
  const data = new FormData(form);
  const ext = recorded.type.includes("mp4") ? "mp4" : "webm";
  data.set("video", recorded, "recording." + ext);
  fetch("/", {method: "POST", body: data}).then(r => r.text()).then(html => {
    document.open(); document.write(html); document.close();
  });
});
</script>
</body></html>"""

RESULT_PAGE = """<!doctype html>
<html><head><meta charset="utf-8"><title>Result: {{ title }}</title>
<meta name="viewport" content="width=device-width,initial-scale=1">
<style>{{ style }}</style></head><body>
<h1>Video created</h1>
<div class="card">
  <video controls src="{{ url }}"></video>
  <div><a class="btn" href="{{ url }}" download>Download video</a> <a class="btn" href="/">Make another</a></div>
  <p class="mono">{{ command }}</p>
</div>
</body></html>"""

FAILURE_PAGE = """<h3>Video generation failed</h3>
<pre>{{ command }}</pre>
<pre>--- filter graph ---
{{ graph }}</pre>
<pre>{{ stderr }}</pre>"""

MESSAGE_PAGE = """<p>{{ message }}</p>"""


def _message(text: str, status: int):
    return render_template_string(MESSAGE_PAGE, message=text), status


def _binary_warning(config: AppConfig) -> str | None:
    missing = config.binaries.missing()
    if not missing:
        return None
    return " ".join(
        f"{name} not found. Ubuntu: `sudo apt install ffmpeg`." for name in missing
    )


def create_app(config: AppConfig, runner=None) -> Flask:
    """Build the Flask app around an already-constructed config.

    Args:
        config: Application configuration.
        runner: Process runner. Defaults to a ProcessRunner bounded by
            config.max_concurrent_encodes and config.process_timeout.
    """
    ensure_dirs(config)
    runner = runner or ProcessRunner(
        max_concurrent=config.max_concurrent_encodes,
        timeout=config.process_timeout,
    )
    app = Flask(__name__)

    @app.get("/")
    def home():
        return render_template_string(
            HOME_PAGE,
            style=_STYLE,
            warning=_binary_warning(config),
            templates=config.registry.list_all(),
            max_duration=config.output.max_duration,
        )

    @app.post("/")
    def process_upload():
        template_key = request.form.get("template", "").strip()
        if not template_key:
            return _message("Template is required", 400)

        upload = request.files.get("video")
        if upload is None or not upload.filename:
            return _message("Video upload failed", 400)

        filename = secure_filename(upload.filename) or f"upload-{random_name()}.bin"
        raw_path = Path(config.upload_dir) / random_name("raw_")
        try:
            upload.save(raw_path)
        except OSError:
            remove_quietly(raw_path)
            logger.exception("Could not save upload")
            return _message("Internal error", 500)

        compose_request = ComposeRequest(
            source_kind=request.form.get("source", "upload"),
            template_key=template_key,
            title=request.form.get("title", ""),
            input_path=raw_path,
            input_extension=Path(filename).suffix.lstrip(".").lower(),
            input_mime=upload.mimetype or GENERIC_MIME,
        )

        try:
            outcome = run_request(compose_request, config, runner)
        except ValidationFailure as e:
            return _message(str(e), 400)
        except ProcessFailure as e:
            return render_template_string(
                FAILURE_PAGE, command=e.command, graph=e.graph, stderr=e.stderr,
            ), 500
        except ResourceFailure:
            logger.exception("Filesystem error while composing")
            return _message("Internal error", 500)

        if isinstance(outcome, ComposeFailure):
            return render_template_string(
                FAILURE_PAGE,
                command=outcome.command, graph=outcome.graph, stderr=outcome.stderr,
            ), 500

        return render_template_string(
            RESULT_PAGE,
            style=_STYLE,
            title=outcome.title,
            url=f"/{outcome.output_relative_path}",
            command=outcome.command,
        )

    @app.get("/outputs/<path:name>")
    def outputs(name):
        return send_from_directory(Path(config.output_dir).resolve(), name)

    @app.get("/templates/<path:name>")
    def template_images(name):
        return send_from_directory(Path(config.template_dir).resolve(), name)

    return app
