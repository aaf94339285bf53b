import pytest

import llm


AI_ENV_VARS = (
    "AI_PROVIDER", "AI_API_KEY", "AI_MODEL", "AI_TIMEOUT",
    "AI_DETAILED_ANALYSIS", "AI_EXTRACT_DEFINITIONS",
)


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


@pytest.fixture(autouse=True)
def basic_mode_env(monkeypatch):
    for name in AI_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_post(monkeypatch):
    """Replace requests.post in llm; set `.response` or `.error` before calling."""

    class Recorder:
        response = FakeResponse(200, {})
        error = None
        calls = []

        def __call__(self, url, json, headers, timeout):
            self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
            if self.error is not None:
                raise self.error
            return self.response

    recorder = Recorder()
    recorder.calls = []
    monkeypatch.setattr(llm.requests, "post", recorder)
    return recorder


@pytest.fixture
def client():
    from app import app

    app.config["TESTING"] = True
    return app.test_client()


def openai_reply(content):
    return FakeResponse(200, {"choices": [{"message": {"content": content}}]})


def gemini_reply(content):
    return FakeResponse(200, {"candidates": [{"content": {"parts": [{"text": content}]}}]})
