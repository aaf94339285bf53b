"""
llm.py — optional AI provider integration (OpenAI / Google Gemini).

Builds the simplification prompt, calls the provider's REST API and parses
the reply into an AIAnalysis. Unlike the rule-based analyzer this path can
fail: every failure is raised as AIServiceError so the caller can decide
whether to fall back to the basic analysis.
"""

import json
import math
import os
import re
import logging
from dataclasses import dataclass, field, replace
from typing import Optional

import requests

logger = logging.getLogger(__name__)

# ── Config (overridable via environment variables) ────────────────────────────
OPENAI_BASE_URL  = os.environ.get("OPENAI_BASE_URL", "https://api.openai.com/v1")
GEMINI_BASE_URL  = os.environ.get("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta")
GEMINI_DEFAULT_MODEL = "gemini-pro"

DEFAULT_MODEL   = "gpt-3.5-turbo"
DEFAULT_TIMEOUT = 60     # seconds
PROVIDERS = ("none", "openai", "gemini")

TEMPERATURE = 0.3        # Low temp = more consistent / factual
DETAILED_MAX_TOKENS = 2000
BRIEF_MAX_TOKENS    = 1000


class AIServiceError(RuntimeError):
    """Raised when the AI provider is unconfigured, unreachable or returns an error."""


def _env_flag(name: str, default: str = "true") -> bool:
    return os.environ.get(name, default).lower() != "false"


@dataclass(frozen=True)
class AIConfig:
    provider:            str = "none"            # "none" | "openai" | "gemini"
    api_key:             Optional[str] = None
    model:               str = DEFAULT_MODEL
    detailed_analysis:   bool = True
    extract_definitions: bool = True
    timeout:             int = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls) -> "AIConfig":
        return cls(
            provider=os.environ.get("AI_PROVIDER", "none").lower(),
            api_key=os.environ.get("AI_API_KEY") or None,
            model=os.environ.get("AI_MODEL", DEFAULT_MODEL),
            detailed_analysis=_env_flag("AI_DETAILED_ANALYSIS"),
            extract_definitions=_env_flag("AI_EXTRACT_DEFINITIONS"),
            timeout=int(os.environ.get("AI_TIMEOUT", str(DEFAULT_TIMEOUT))),
        )

    def configure(self, **overrides) -> "AIConfig":
        """Return a copy with the non-empty overrides applied."""
        overrides = {k: v for k, v in overrides.items() if v is not None and v != ""}
        return replace(self, **overrides)

    def is_enabled(self) -> bool:
        return self.provider != "none" and bool(self.api_key)

    @property
    def max_tokens(self) -> int:
        return DETAILED_MAX_TOKENS if self.detailed_analysis else BRIEF_MAX_TOKENS


# ─────────────────────────────────────────────────────────────────────────────
# Data classes
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class AIAnalysis:
    """Structured reply from the AI provider."""
    simplified:   str = ""
    key_points:   list = field(default_factory=list)
    risk_level:   str = "Unknown"
    risk_reason:  str = "AI assessment"
    definitions:  list = field(default_factory=list)
    obligations:  list = field(default_factory=list)
    parties:      list = field(default_factory=list)
    timelines:    list = field(default_factory=list)
    model_used:   str = ""
    enhanced:     bool = False      # False = unavailable / not attempted

    @classmethod
    def from_reply(cls, data: dict, model_used: str = "") -> "AIAnalysis":
        return cls(
            simplified=str(data.get("simplified", "")),
            key_points=_as_list(data.get("keyPoints")),
            risk_level=data.get("riskLevel") or "Unknown",
            risk_reason=data.get("riskReason") or "AI assessment",
            definitions=_as_list(data.get("definitions")),
            obligations=_as_list(data.get("obligations")),
            parties=_as_list(data.get("parties")),
            timelines=_as_list(data.get("timelines")),
            model_used=model_used,
            enhanced=True,
        )

    def to_dict(self) -> dict:
        return {
            "simplified":  self.simplified,
            "key_points":  self.key_points,
            "risk_level":  self.risk_level,
            "risk_reason": self.risk_reason,
            "definitions": self.definitions,
            "obligations": self.obligations,
            "parties":     self.parties,
            "timelines":   self.timelines,
            "model_used":  self.model_used,
            "enhanced":    self.enhanced,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "AIAnalysis":
        return cls(**d)


def _as_list(value) -> list:
    if not value:
        return []
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)]


# ─────────────────────────────────────────────────────────────────────────────
# Prompt
# ─────────────────────────────────────────────────────────────────────────────

SYSTEM_PROMPT = "You are a legal document simplification assistant. Provide responses in JSON format only."


def create_simplification_prompt(text: str, extract_definitions: bool = True) -> str:
    definitions_line = (
        '    "definitions": ["term1: definition", "term2: definition"],\n'
        if extract_definitions else ""
    )
    return f"""You are a legal document simplifier. Your task is to convert complex legal text into plain English for educational purposes.

STRICT RULES:
1. Do NOT provide legal advice or recommendations
2. Do NOT change the meaning or obligations in the original text
3. Preserve factual accuracy
4. Maintain neutrality

Input Legal Text:
{text}

Please provide your response in the following JSON format:
{{
    "simplified": "Plain English explanation of the text",
    "keyPoints": [
        "Key point 1",
        "Key point 2",
        "Key point 3"
    ],
    "riskLevel": "Low|Medium|High",
    "riskReason": "Brief explanation of the risk level",
{definitions_line}    "obligations": ["obligation 1", "obligation 2"],
    "parties": ["party 1", "party 2"],
    "timelines": ["timeline 1", "timeline 2"]
}}

Respond with ONLY the JSON object, no additional text."""


# ─────────────────────────────────────────────────────────────────────────────
# Response parsing
# ─────────────────────────────────────────────────────────────────────────────

def _parse_json_response(text: str) -> Optional[dict]:
    """Extract JSON from model output — handles markdown fences and stray text."""
    if not text:
        return None
    text = re.sub(r"```(?:json)?", "", text).strip()
    match = re.search(r"\{.*\}", text, re.DOTALL)
    if not match:
        return None
    try:
        data = json.loads(match.group())
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def fallback_parse(content: str, model_used: str = "") -> AIAnalysis:
    """Wrap a reply that is not JSON so the caller still gets a full record."""
    return AIAnalysis(
        simplified=content,
        key_points=["AI response received - see simplified explanation"],
        risk_level="Medium",
        risk_reason="Unable to automatically assess - please review carefully",
        model_used=model_used,
        enhanced=True,
    )


def parse_reply(content: str, model_used: str = "") -> AIAnalysis:
    data = _parse_json_response(content)
    if data is None:
        logger.info("AI reply was not JSON, using fallback parse")
        return fallback_parse(content, model_used)
    return AIAnalysis.from_reply(data, model_used)


# ─────────────────────────────────────────────────────────────────────────────
# Provider clients
# ─────────────────────────────────────────────────────────────────────────────

def _error_message(resp: requests.Response, default: str) -> str:
    try:
        return resp.json().get("error", {}).get("message") or default
    except (ValueError, AttributeError):
        return default


def _post(url: str, payload: dict, headers: dict, timeout: int, label: str) -> dict:
    try:
        resp = requests.post(url, json=payload, headers=headers, timeout=timeout)
    except requests.exceptions.Timeout:
        logger.warning("%s timed out after %ds", label, timeout)
        raise AIServiceError(f"{label} request timed out after {timeout}s")
    except requests.exceptions.RequestException as e:
        logger.warning("%s request failed: %s", label, e)
        raise AIServiceError(f"{label} request failed: {e}") from e

    if not resp.ok:
        message = _error_message(resp, f"{label} API error")
        logger.warning("%s returned HTTP %s: %s", label, resp.status_code, message)
        raise AIServiceError(message)
    try:
        return resp.json()
    except ValueError as e:
        raise AIServiceError(f"{label} returned invalid JSON") from e


def call_openai(prompt: str, config: AIConfig) -> AIAnalysis:
    payload = {
        "model": config.model,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user",   "content": prompt},
        ],
        "temperature": TEMPERATURE,
        "max_tokens":  config.max_tokens,
    }
    headers = {
        "Content-Type":  "application/json",
        "Authorization": f"Bearer {config.api_key}",
    }
    data = _post(f"{OPENAI_BASE_URL}/chat/completions", payload, headers, config.timeout, "OpenAI")
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise AIServiceError("OpenAI returned an unexpected response shape") from e
    return parse_reply(content, config.model)


def _gemini_model(config: AIConfig) -> str:
    return config.model if config.model.startswith("gemini") else GEMINI_DEFAULT_MODEL


def call_gemini(prompt: str, config: AIConfig) -> AIAnalysis:
    model = _gemini_model(config)
    payload = {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature":     TEMPERATURE,
            "maxOutputTokens": config.max_tokens,
        },
    }
    url = f"{GEMINI_BASE_URL}/models/{model}:generateContent?key={config.api_key}"
    data = _post(url, payload, {"Content-Type": "application/json"}, config.timeout, "Gemini")
    try:
        content = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise AIServiceError("Gemini returned an unexpected response shape") from e
    return parse_reply(content, model)


# ─────────────────────────────────────────────────────────────────────────────
# Main public function
# ─────────────────────────────────────────────────────────────────────────────

def simplify_legal_text(text: str, config: Optional[AIConfig] = None) -> AIAnalysis:
    """
    Send the document to the configured provider and return its analysis.

    Raises AIServiceError if the service is not configured or the call fails.
    """
    config = config or AIConfig.from_env()
    if not config.is_enabled():
        raise AIServiceError("AI service not configured")

    prompt = create_simplification_prompt(text, config.extract_definitions)
    logger.info("Sending %d chars to %s (%s)", len(text), config.provider, config.model)

    if config.provider == "openai":
        return call_openai(prompt, config)
    if config.provider == "gemini":
        return call_gemini(prompt, config)
    raise AIServiceError("Unknown AI provider")


# ─────────────────────────────────────────────────────────────────────────────
# Estimates & status  (used by the API health endpoint)
# ─────────────────────────────────────────────────────────────────────────────

def estimate_tokens(text: str) -> int:
    """Rough estimate: 1 token ≈ 4 characters."""
    return math.ceil(len(text) / 4)


def estimate_cost(text: str, config: Optional[AIConfig] = None) -> dict:
    config = config or AIConfig.from_env()
    tokens = estimate_tokens(text)

    if config.provider == "openai":
        if config.model == "gpt-4":
            return {"tokens": tokens, "cost": tokens / 1000 * 0.03, "model": "GPT-4"}
        return {"tokens": tokens, "cost": tokens / 1000 * 0.002, "model": "GPT-3.5-turbo"}
    if config.provider == "gemini":
        return {"tokens": tokens, "cost": 0, "model": "Gemini Pro"}   # free tier
    return {"tokens": 0, "cost": 0, "model": "None"}


def ai_status(config: Optional[AIConfig] = None) -> dict:
    """Return AI configuration info for the UI. Never includes the key."""
    config = config or AIConfig.from_env()
    if config.provider not in PROVIDERS:
        return {"enabled": False, "provider": config.provider, "reason": "Unknown AI provider"}
    if not config.is_enabled():
        reason = "Basic mode" if config.provider == "none" else "Missing API key"
        return {"enabled": False, "provider": config.provider, "reason": reason}
    return {
        "enabled":  True,
        "provider": config.provider,
        "model":    _gemini_model(config) if config.provider == "gemini" else config.model,
        "detailed_analysis":   config.detailed_analysis,
        "extract_definitions": config.extract_definitions,
    }
