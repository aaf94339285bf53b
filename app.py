from flask import Flask, request, jsonify, send_file
from analyzer import analyze, simplify, AnalysisResult, InvalidInputError
from llm import AIConfig, AIAnalysis, AIServiceError, simplify_legal_text, ai_status, estimate_cost
from samples import SAMPLE_DOCUMENTS, get_sample
import exporters
import io, os, uuid, logging

VERSION = "1.0"

app = Flask(__name__)
app.secret_key = os.environ.get("SECRET_KEY", "legal-simplifier-dev-key")
app.config["MAX_CONTENT_LENGTH"] = int(os.environ.get("MAX_UPLOAD_MB", "10")) * 1024 * 1024

# ── In-memory result cache (export downloads only) ──────────────────────────
_cache: dict = {}
_MAX_CACHE = 50

def _cache_put(result: AnalysisResult, insight: AIAnalysis) -> str:
    key = str(uuid.uuid4())
    if len(_cache) >= _MAX_CACHE:
        del _cache[next(iter(_cache))]
    _cache[key] = {"result": result.to_dict(), "insight": insight.to_dict()}
    return key

def _cache_get(key: str):
    entry = _cache.get(key)
    if not entry:
        return None, None
    return AnalysisResult.from_dict(entry["result"]), AIAnalysis.from_dict(entry["insight"])

# ── File type helpers ────────────────────────────────────────────────────────
ALLOWED_TEXT = {".txt"}
ALLOWED_PDF  = {".pdf"}
ALL_ALLOWED  = ALLOWED_TEXT | ALLOWED_PDF


class UploadError(ValueError):
    """Raised when an uploaded file cannot be turned into text."""


def _ext(fn: str) -> str:
    return os.path.splitext(fn.lower())[1]

# ── Text extractors ──────────────────────────────────────────────────────────

def _from_txt(raw: bytes) -> str:
    return raw.decode("utf-8", errors="ignore")

def _from_pdf(raw: bytes) -> str:
    from PyPDF2 import PdfReader
    from PyPDF2.errors import PdfReadError
    try:
        reader = PdfReader(io.BytesIO(raw))
        pages = [p.extract_text() or "" for p in reader.pages]
    except PdfReadError as e:
        app.logger.warning("PDF extraction failed: %s", e)
        raise UploadError(f"Failed to extract text from PDF: {e}") from e
    # One blank line between pages.
    return "\n\n".join(" ".join(p.split()) for p in pages).strip()

def _extract_text(filename: str, raw: bytes) -> str:
    ext = _ext(filename)
    if ext in ALLOWED_TEXT: return _from_txt(raw)
    if ext in ALLOWED_PDF:  return _from_pdf(raw)
    raise UploadError(f"Unsupported file type: {ext}")


def _flag(value, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).lower() not in ("false", "0", "off", "no")


def _text_setting(settings: dict, name: str):
    value = settings.get(name)
    return value if isinstance(value, str) else None


def _request_ai_config(settings: dict) -> AIConfig:
    """Environment config with any per-request provider settings on top.
    Non-string values are ignored."""
    return AIConfig.from_env().configure(
        provider=(_text_setting(settings, "provider") or "").lower() or None,
        api_key=_text_setting(settings, "api_key"),
        model=_text_setting(settings, "model"),
    )


# ── REST API ─────────────────────────────────────────────────────────────────

@app.route("/api/health", methods=["GET"])
def api_health():
    return jsonify({"status": "ok", "version": VERSION, "ai": ai_status()})


@app.route("/api/ai/status", methods=["GET"])
def api_ai_status():
    return jsonify(ai_status())


@app.route("/api/sample", methods=["GET"])
def api_sample():
    index = request.args.get("index", type=int)
    if index is not None and not 0 <= index < len(SAMPLE_DOCUMENTS):
        return jsonify({"error": f"No sample with index {index}."}), 404
    return jsonify(get_sample(index))


@app.route("/api/simplify", methods=["POST"])
def api_simplify():
    body = request.get_json(silent=True)
    text = str(body.get("text") or "").strip() if isinstance(body, dict) else ""
    if not text:
        return jsonify({"error": "JSON body must contain a 'text' field."}), 400
    return jsonify({"simplified": simplify(text)})


@app.route("/api/analyze", methods=["POST"])
def api_analyze():
    """
    Simplify a legal document and return structured JSON.

    Accepts:
      • application/json    → { "text": "...", "use_ai": true, "provider": "openai",
                                "api_key": "...", "model": "...", "fallback": true }
      • multipart/form-data → file field (.txt / .pdf) or text field
      • anything else       → raw request body as text
    """
    text, settings = "", {}
    ct = request.content_type or ""

    if "application/json" in ct:
        settings = request.get_json(silent=True)
        if not isinstance(settings, dict):
            return jsonify({"error": "JSON body must be an object with a 'text' field."}), 400
        text = str(settings.get("text") or "").strip()
    elif "multipart/form-data" in ct or "application/x-www-form-urlencoded" in ct:
        settings = request.form.to_dict()
        upload = request.files.get("file")
        if upload and upload.filename:
            ext = _ext(upload.filename)
            if ext not in ALL_ALLOWED:
                return jsonify({"error": f"Unsupported file type: {ext}"}), 415
            try:
                text = _extract_text(upload.filename, upload.read()).strip()
            except UploadError as e:
                return jsonify({"error": str(e)}), 400
        else:
            text = settings.get("text", "").strip()
    else:
        text = request.get_data(as_text=True).strip()

    try:
        result = analyze(text)
    except InvalidInputError:
        return jsonify({"error": "No text provided."}), 400

    config = _request_ai_config(settings)
    use_ai = _flag(settings.get("use_ai")) and config.is_enabled()
    insight = AIAnalysis()
    response_data = result.to_dict()
    response_data["mode"] = "basic"

    if use_ai:
        try:
            insight = simplify_legal_text(text, config)
            response_data["mode"] = "ai"
            response_data["ai_insight"] = insight.to_dict()
            response_data["ai_cost"] = estimate_cost(text, config)
        except AIServiceError as e:
            if not _flag(settings.get("fallback")):
                return jsonify({"error": f"AI Error: {e}"}), 502
            app.logger.warning("AI processing failed, falling back to basic: %s", e)
            response_data["ai_insight"] = {"enhanced": False, "error": str(e)}

    response_data["key"] = _cache_put(result, insight)
    return jsonify(response_data), 200


# ── Export routes ────────────────────────────────────────────────────────────

EXPORTS = {
    "pdf":  (exporters.export_pdf,  "application/pdf", "legal_simplification_report.pdf"),
    "word": (exporters.export_word,
             "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
             "legal_simplification_report.docx"),
    "csv":  (exporters.export_csv,  "text/csv", "legal_simplification.csv"),
}


@app.route("/export/<fmt>")
def export(fmt: str):
    if fmt not in EXPORTS:
        return jsonify({"error": f"Unknown export format: {fmt}"}), 404
    result, insight = _cache_get(request.args.get("key", ""))
    if not result:
        return jsonify({"error": "No analysis found — please analyze a document first."}), 404
    gen, mimetype, filename = EXPORTS[fmt]
    return send_file(io.BytesIO(gen(result, insight)),
        mimetype=mimetype, as_attachment=True, download_name=filename)


if __name__ == "__main__":
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper(),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app.run(debug=True, port=5050)
