import csv
import io

from analyzer import analyze
from exporters import export_csv, export_pdf, export_word
from llm import AIAnalysis
from samples import SAMPLE_DOCUMENTS


INSIGHT = AIAnalysis(
    simplified="The company is not responsible for indirect losses.",
    key_points=["No liability for indirect damages"],
    risk_level="High",
    risk_reason="Broad liability exclusion.",
    definitions=["consequential damages: losses that follow indirectly"],
    model_used="gpt-4",
    enhanced=True,
)


def _result():
    return analyze(SAMPLE_DOCUMENTS[2]["text"])


def test_csv_rows():
    rows = list(csv.reader(io.StringIO(export_csv(_result()).decode("utf-8-sig"))))
    assert rows[0] == ["SECTION", "FIELD", "VALUE"]
    assert ["Risk", "Level", "High"] in rows
    header = rows.index(["#", "Category", "Text"])
    assert rows[header + 1][1] == "obligation"
    assert ["AI ANALYSIS"] not in rows


def test_csv_includes_ai_analysis():
    rows = list(csv.reader(io.StringIO(export_csv(_result(), INSIGHT).decode("utf-8-sig"))))
    assert ["AI", "Model", "gpt-4"] in rows
    assert ["AI", "Definition", INSIGHT.definitions[0]] in rows


def test_csv_skips_unenhanced_insight():
    rows = list(csv.reader(io.StringIO(export_csv(_result(), AIAnalysis()).decode("utf-8-sig"))))
    assert ["AI ANALYSIS"] not in rows


def test_pdf_is_generated():
    assert export_pdf(_result(), INSIGHT).startswith(b"%PDF")


def test_word_is_generated():
    data = export_word(_result(), INSIGHT)
    assert data.startswith(b"PK")

    from docx import Document
    text = "\n".join(p.text for p in Document(io.BytesIO(data)).paragraphs)
    assert "Risk Assessment" in text
    assert "AI Analysis (gpt-4)" in text
