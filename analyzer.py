"""
Rule-based Legal Document Simplifier
No AI / ML — pure Python: regex, keyword matching, heuristics.
Rewrites legal jargon in plain English, pulls out key points and rates risk.
Output is deterministic: the same text always yields the same result.
"""

import re
import logging
from dataclasses import dataclass, field
from typing import List, Tuple

logger = logging.getLogger(__name__)


class InvalidInputError(ValueError):
    """Raised when the text handed to analyze() is empty or whitespace-only."""


# ─────────────────────────────────────────────────────────────────────────────
# Data classes
# ─────────────────────────────────────────────────────────────────────────────

CATEGORIES = ("obligation", "restriction", "right", "penalty", "timeline", "general")


@dataclass
class KeyPoint:
    category:  str    # one of CATEGORIES
    text:      str    # simplified sentence


@dataclass
class RiskAssessment:
    level:       str                                     # "Low" | "Medium" | "High"
    score:       int                                     # may be negative
    reasons:     List[str] = field(default_factory=list)  # distinct, first-triggered order
    explanation: str = ""


@dataclass
class AnalysisResult:
    original_text:   str
    simplified_text: str
    risk:            RiskAssessment
    key_points:      List[KeyPoint] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Serialize to a plain dict (for JSON / session storage)."""
        return {
            "original_text":   self.original_text,
            "simplified_text": self.simplified_text,
            "key_points": [
                {"category": kp.category, "text": kp.text}
                for kp in self.key_points
            ],
            "risk": {
                "level":       self.risk.level,
                "score":       self.risk.score,
                "reasons":     list(self.risk.reasons),
                "explanation": self.risk.explanation,
            },
        }

    @classmethod
    def from_dict(cls, d: dict) -> "AnalysisResult":
        return cls(
            original_text=d["original_text"],
            simplified_text=d["simplified_text"],
            key_points=[KeyPoint(**kp) for kp in d["key_points"]],
            risk=RiskAssessment(**d["risk"]),
        )


# ─────────────────────────────────────────────────────────────────────────────
# Jargon substitution
# ─────────────────────────────────────────────────────────────────────────────

# Order matters: entries are applied top to bottom on the running string,
# so "shall" is rewritten before "shall not" ever gets a chance to match.
JARGON_TABLE: Tuple[Tuple[str, str], ...] = (
    ("hereinafter",              "from now on"),
    ("herein",                   "in this document"),
    ("hereby",                   "by this"),
    ("hereunder",                "under this"),
    ("thereof",                  "of it"),
    ("therein",                  "in it"),
    ("thereto",                  "to it"),
    ("whereas",                  "given that"),
    ("aforementioned",           "mentioned earlier"),
    ("aforesaid",                "said before"),
    ("forthwith",                "immediately"),
    ("notwithstanding",          "despite"),
    ("pursuant to",              "according to"),
    ("in accordance with",       "following"),
    ("shall",                    "must"),
    ("shall not",                "must not"),
    ("may",                      "can"),
    ("heretofore",               "until now"),
    ("indemnify",                "protect from loss"),
    ("liable",                   "legally responsible"),
    ("void",                     "invalid"),
    ("null and void",            "completely invalid"),
    ("terminate",                "end"),
    ("termination",              "ending"),
    ("party of the first part",  "first party"),
    ("party of the second part", "second party"),
    ("in lieu of",               "instead of"),
    ("provided that",            "if"),
    ("subject to",               "depending on"),
    ("force majeure",            "unforeseeable circumstances"),
    ("ab initio",                "from the beginning"),
    ("ad hoc",                   "for this specific purpose"),
    ("bona fide",                "genuine"),
    ("de facto",                 "in reality"),
    ("ipso facto",               "by the fact itself"),
    ("per se",                   "by itself"),
    ("prima facie",              "at first glance"),
    ("pro rata",                 "proportionally"),
    ("quid pro quo",             "something for something"),
    ("vis-à-vis",                "in relation to"),
)


def _caseless(phrase: str) -> str:
    """
    Case-insensitive pattern text that never folds between ASCII and non-ASCII
    letters, so "ſhall" is not read as "shall" while "VIS-À-VIS" still matches.
    """
    parts = []
    for ch in phrase:
        variants = sorted({v for v in (ch, ch.lower(), ch.upper())
                           if len(v) == 1 and (ord(v) < 128) == (ord(ch) < 128)})
        parts.append("[" + "".join(variants) + "]" if len(variants) > 1 else re.escape(ch))
    return "".join(parts)


# Word boundaries are ASCII-only, so "é" next to a term does not block a match.
_JARGON_PATTERNS = tuple(
    (re.compile(r"(?<![A-Za-z0-9_])" + _caseless(phrase) + r"(?![A-Za-z0-9_])"), replacement)
    for phrase, replacement in JARGON_TABLE
)

_PHRASE_REWRITES = (
    (re.compile(r";\s*"),                                      ". "),
    (re.compile(_caseless("including but not limited to")),    "including"),
    (re.compile(_caseless("for the avoidance of doubt")),      "to be clear"),
)


def cleanup(text: str) -> str:
    """Collapse whitespace and tighten spacing around brackets and punctuation."""
    text = re.sub(r"\s+", " ", text)
    text = re.sub(r"\(\s+", "(", text)
    text = re.sub(r"\s+\)", ")", text)
    text = re.sub(r"\s+,", ",", text)
    text = re.sub(r"\s+\.", ".", text)
    return text.strip()


def simplify(text: str) -> str:
    """
    Replace legal jargon with plain English.

    Substitution is sequential, not single-pass: each table entry runs over
    the output of the previous one. Running simplify() twice can therefore
    differ from running it once (cleanup may join words into a phrase that
    only matches on the second pass).
    """
    simplified = text
    for pattern, replacement in _JARGON_PATTERNS:
        simplified = pattern.sub(replacement, simplified)
    for pattern, replacement in _PHRASE_REWRITES:
        simplified = pattern.sub(replacement, simplified)
    return cleanup(simplified)


# ─────────────────────────────────────────────────────────────────────────────
# Sentence segmentation
# ─────────────────────────────────────────────────────────────────────────────

_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+")


def segment(text: str) -> List[str]:
    """
    Split text into sentences, each keeping its terminator(s).

    Text with no terminator at all comes back as a single unit. A trailing
    fragment without a terminator is dropped once any full sentence exists.
    """
    sentences = [s.strip() for s in _SENTENCE_RE.findall(text)]
    return sentences or [text]


# ─────────────────────────────────────────────────────────────────────────────
# Key point extraction
# ─────────────────────────────────────────────────────────────────────────────

MAX_KEY_POINTS = 5
FALLBACK_SENTENCES = 3

_TIMELINE_RE = re.compile(r"[0-9]+\s*(days?|months?|years?|hours?)")


def _contains_any(*terms: str):
    return lambda s: any(t in s for t in terms)


def _is_right(s: str) -> bool:
    # Reproduced as-is: "may" only counts when "may not" is absent anywhere
    # in the sentence, even if another bare "may" is present.
    return "entitled to" in s or "right to" in s or ("may" in s and "may not" not in s)


# First matching rule wins; predicates see the lower-cased sentence.
KEY_POINT_RULES = (
    ("obligation",  _contains_any("shall", "must", "required to", "agrees to", "obligated")),
    ("restriction", _contains_any("shall not", "may not", "prohibited", "restricted")),
    ("right",       _is_right),
    ("penalty",     _contains_any("liable", "penalty", "damages", "indemnify")),
    ("timeline",    lambda s: _TIMELINE_RE.search(s) is not None),
)


def classify_sentence(sentence: str):
    """Return the category of the first rule the sentence satisfies, or None."""
    lower = sentence.lower()
    for category, matches in KEY_POINT_RULES:
        if matches(lower):
            return category
    return None


def extract_key_points(text: str) -> List[KeyPoint]:
    sentences = segment(text)
    points = []
    for sentence in sentences:
        category = classify_sentence(sentence)
        if category:
            points.append(KeyPoint(category, simplify(sentence.strip())))

    if not points:
        points = [KeyPoint("general", simplify(s.strip()))
                  for s in sentences[:FALLBACK_SENTENCES]]

    return points[:MAX_KEY_POINTS]


# ─────────────────────────────────────────────────────────────────────────────
# Risk scoring
# ─────────────────────────────────────────────────────────────────────────────

HIGH_RISK_TERMS = (
    "liable", "liability", "indemnify", "indemnification", "damages", "penalty",
    "terminate", "termination", "breach", "default", "forfeiture", "waive", "waiver",
)
MEDIUM_RISK_TERMS = (
    "shall", "must", "required", "obligated", "binding", "non-compete",
    "confidential", "exclusive", "irrevocable",
)
LOW_RISK_TERMS = ("may", "optional", "discretionary", "suggested")

REASON_LIABILITY = "financial or legal liability"
REASON_OBLIGATIONS = "binding obligations"
REASON_MONETARY = "monetary commitments"
REASON_TIMEBOUND = "time-bound requirements"

_CURRENCY_RE = re.compile(r"\$[0-9,]+|[0-9]+\s*dollars?")
_DURATION_RE = re.compile(r"[0-9]+\s*(days?|months?|years?)")

HIGH_THRESHOLD = 6
MEDIUM_THRESHOLD = 3

RISK_TEMPLATES = {
    "High":   "This text contains significant {reasons}. It imposes serious obligations or potential consequences that could have major financial or legal impact.",
    "Medium": "This text includes {reasons}. It contains obligations or restrictions that require attention and compliance.",
    "Low":    "This text has minimal {reasons}. The obligations or restrictions appear to be limited in scope or severity.",
}
LOW_RISK_INFORMATIONAL = (
    "This text appears to be informational or contains minimal binding obligations. "
    "The requirements are straightforward with limited consequences."
)


def risk_level_for(score: int) -> str:
    if score >= HIGH_THRESHOLD:
        return "High"
    if score >= MEDIUM_THRESHOLD:
        return "Medium"
    return "Low"


def _explain(level: str, reasons: List[str]) -> str:
    if level == "Low" and not reasons:
        return LOW_RISK_INFORMATIONAL
    return RISK_TEMPLATES[level].format(reasons=", ".join(reasons))


def assess_risk(text: str) -> RiskAssessment:
    t = text.lower()
    score = 0
    reasons: List[str] = []

    def flag(reason: str):
        if reason not in reasons:
            reasons.append(reason)

    for term in HIGH_RISK_TERMS:
        if term in t:
            score += 3
            flag(REASON_LIABILITY)
    for term in MEDIUM_RISK_TERMS:
        if term in t:
            score += 1
            flag(REASON_OBLIGATIONS)
    if _CURRENCY_RE.search(t):
        score += 2
        flag(REASON_MONETARY)
    if _DURATION_RE.search(t):
        score += 1
        flag(REASON_TIMEBOUND)
    # No floor: a permissive text can score below zero.
    score -= sum(1 for term in LOW_RISK_TERMS if term in t)

    level = risk_level_for(score)
    return RiskAssessment(level=level, score=score, reasons=reasons,
                          explanation=_explain(level, reasons))


# ─────────────────────────────────────────────────────────────────────────────
# Main entry point
# ─────────────────────────────────────────────────────────────────────────────

def analyze(text: str) -> AnalysisResult:
    if not text or not text.strip():
        raise InvalidInputError("Empty document.")

    result = AnalysisResult(
        original_text=text,
        simplified_text=simplify(text),
        key_points=extract_key_points(text),
        risk=assess_risk(text),
    )
    logger.debug("Analyzed %d chars: %d key points, risk %s (%d)",
                 len(text), len(result.key_points), result.risk.level, result.risk.score)
    return result
