import io
import json

import requests

from conftest import FakeResponse, gemini_reply, openai_reply
from samples import SAMPLE_DOCUMENTS


NON_COMPETE = "The Employee shall not compete for twelve (12) months."

AI_REPLY = {
    "simplified": "The employee cannot compete for a year.",
    "keyPoints": ["No competing for 12 months"],
    "riskLevel": "Medium",
    "riskReason": "Limits future work.",
}


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    body = r.get_json()
    assert body["status"] == "ok"
    assert body["ai"]["enabled"] is False


def test_ai_status_reflects_env(client, monkeypatch):
    monkeypatch.setenv("AI_PROVIDER", "gemini")
    monkeypatch.setenv("AI_API_KEY", "g-test")
    body = client.get("/api/ai/status").get_json()
    assert body["enabled"] is True
    assert body["provider"] == "gemini"


def test_sample_by_index(client):
    r = client.get("/api/sample?index=1")
    assert r.get_json() == SAMPLE_DOCUMENTS[1]
    assert client.get("/api/sample").get_json() in SAMPLE_DOCUMENTS
    assert client.get("/api/sample?index=9").status_code == 404


def test_simplify_endpoint(client):
    r = client.post("/api/simplify", json={"text": NON_COMPETE})
    assert r.get_json() == {"simplified": "The Employee must not compete for twelve (12) months."}
    assert client.post("/api/simplify", json={}).status_code == 400


def test_analyze_json_basic_mode(client):
    r = client.post("/api/analyze", json={"text": NON_COMPETE})
    assert r.status_code == 200
    body = r.get_json()
    assert body["mode"] == "basic"
    assert body["original_text"] == NON_COMPETE
    assert body["risk"]["level"] == "Low"
    assert body["key_points"][0]["category"] == "obligation"
    assert "ai_insight" not in body
    assert body["key"]


def test_analyze_rejects_blank_text(client):
    r = client.post("/api/analyze", json={"text": "   "})
    assert r.status_code == 400
    assert r.get_json()["error"] == "No text provided."


def test_analyze_raw_body(client):
    r = client.post("/api/analyze", data=NON_COMPETE, content_type="text/plain")
    assert r.status_code == 200
    assert r.get_json()["simplified_text"].startswith("The Employee must not")


def test_analyze_txt_upload(client):
    data = {"file": (io.BytesIO(NON_COMPETE.encode("utf-8")), "clause.txt")}
    r = client.post("/api/analyze", data=data, content_type="multipart/form-data")
    assert r.status_code == 200
    assert r.get_json()["original_text"] == NON_COMPETE


def test_analyze_rejects_unsupported_upload(client):
    data = {"file": (io.BytesIO(b"data"), "clause.docx")}
    r = client.post("/api/analyze", data=data, content_type="multipart/form-data")
    assert r.status_code == 415


def _pdf_bytes(text=None):
    from reportlab.pdfgen import canvas

    buf = io.BytesIO()
    c = canvas.Canvas(buf)
    if text:
        c.drawString(72, 720, text)
    c.showPage()
    c.save()
    return buf.getvalue()


def test_analyze_pdf_upload(client):
    data = {"file": (io.BytesIO(_pdf_bytes("The Tenant shall pay rent within 5 days.")), "lease.pdf")}
    r = client.post("/api/analyze", data=data, content_type="multipart/form-data")
    assert r.status_code == 200
    body = r.get_json()
    assert "must pay rent" in body["simplified_text"]
    assert body["key_points"][0]["category"] == "obligation"


def test_analyze_pdf_without_text(client):
    data = {"file": (io.BytesIO(_pdf_bytes()), "blank.pdf")}
    r = client.post("/api/analyze", data=data, content_type="multipart/form-data")
    assert r.status_code == 400
    assert r.get_json()["error"] == "No text provided."


def test_analyze_with_ai(client, fake_post):
    fake_post.response = openai_reply(json.dumps(AI_REPLY))
    r = client.post("/api/analyze", json={"text": NON_COMPETE, "provider": "openai", "api_key": "sk-test"})
    body = r.get_json()
    assert r.status_code == 200
    assert body["mode"] == "ai"
    assert body["ai_insight"]["enhanced"] is True
    assert body["ai_insight"]["simplified"] == AI_REPLY["simplified"]
    assert body["ai_cost"]["model"] == "GPT-3.5-turbo"
    assert body["risk"]["level"] == "Low"


def test_ai_ignores_non_string_settings(client, fake_post):
    fake_post.response = gemini_reply(json.dumps(AI_REPLY))
    r = client.post("/api/analyze", json={"text": NON_COMPETE, "provider": "gemini",
                                          "api_key": "g-test", "model": ["x"]})
    assert r.status_code == 200
    assert r.get_json()["mode"] == "ai"
    assert "/models/gemini-pro:" in fake_post.calls[0]["url"]


def test_ai_disabled_per_request(client, fake_post):
    r = client.post("/api/analyze", json={"text": NON_COMPETE, "provider": "openai",
                                          "api_key": "sk-test", "use_ai": False})
    assert r.get_json()["mode"] == "basic"
    assert fake_post.calls == []


def test_ai_failure_falls_back_to_basic(client, fake_post):
    fake_post.response = FakeResponse(429, {"error": {"message": "Rate limit reached"}})
    r = client.post("/api/analyze", json={"text": NON_COMPETE, "provider": "openai", "api_key": "sk-test"})
    body = r.get_json()
    assert r.status_code == 200
    assert body["mode"] == "basic"
    assert body["ai_insight"] == {"enhanced": False, "error": "Rate limit reached"}
    assert body["risk"]["score"] == 1


def test_ai_failure_without_fallback(client, fake_post):
    fake_post.error = requests.exceptions.ConnectionError("unreachable")
    r = client.post("/api/analyze", json={"text": NON_COMPETE, "provider": "openai",
                                          "api_key": "sk-test", "fallback": False})
    assert r.status_code == 502
    assert r.get_json()["error"].startswith("AI Error: OpenAI request failed")


def _analyze_key(client):
    return client.post("/api/analyze", json={"text": SAMPLE_DOCUMENTS[1]["text"]}).get_json()["key"]


def test_export_csv(client):
    r = client.get(f"/export/csv?key={_analyze_key(client)}")
    assert r.status_code == 200
    assert r.mimetype == "text/csv"
    text = r.data.decode("utf-8-sig")
    assert "KEY POINTS" in text
    assert "binding obligations | monetary commitments" in text


def test_export_pdf_and_word(client):
    key = _analyze_key(client)
    assert client.get(f"/export/pdf?key={key}").data.startswith(b"%PDF")
    assert client.get(f"/export/word?key={key}").data.startswith(b"PK")


def test_export_unknown_key_or_format(client):
    assert client.get("/export/csv?key=missing").status_code == 404
    assert client.get(f"/export/xls?key={_analyze_key(client)}").status_code == 404
