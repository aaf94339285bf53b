"""
Export module — generates PDF, Word (.docx), and CSV reports
from an AnalysisResult, optionally with the AI provider's analysis.
"""

import io
import csv
from datetime import datetime
from typing import Optional
from xml.sax.saxutils import escape

from analyzer import AnalysisResult
from llm import AIAnalysis


# ─────────────────────────────────────────────────────────────────────────────
# Shared helpers
# ─────────────────────────────────────────────────────────────────────────────

RISK_COLOR = {
    "Low":    (76,  175, 132),   # green
    "Medium": (244, 200,  66),   # yellow
    "High":   (255, 107, 122),   # red
}

CATEGORY_LABEL = {
    "obligation":  "Obligation",
    "restriction": "Restriction",
    "right":       "Right",
    "penalty":     "Penalty",
    "timeline":    "Timeline",
    "general":     "General",
}

GOLD    = (212, 175,  55)
DARK    = ( 13,  13,  13)
GREY    = (100, 100, 100)
LGREY   = (220, 220, 220)

DISCLAIMER = ("This report simplifies legal language for educational purposes only and does not "
              "constitute legal advice. For important agreements, consult a qualified legal professional.")


def _now() -> str:
    return datetime.now().strftime("%B %d, %Y at %H:%M")

def _risk_icon(level: str) -> str:
    return {"Low": "✓", "Medium": "!", "High": "✕"}.get(level, "?")

def _label(category: str) -> str:
    return CATEGORY_LABEL.get(category, category.title())

def _has_ai(insight: Optional[AIAnalysis]) -> bool:
    return insight is not None and insight.enhanced


# ─────────────────────────────────────────────────────────────────────────────
# PDF report  (ReportLab)
# ─────────────────────────────────────────────────────────────────────────────

def export_pdf(result: AnalysisResult, insight: Optional[AIAnalysis] = None) -> bytes:
    from reportlab.lib.pagesizes import A4
    from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
    from reportlab.lib.units import mm
    from reportlab.lib import colors
    from reportlab.platypus import (
        SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle,
        HRFlowable, KeepTogether
    )

    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf, pagesize=A4,
        leftMargin=20*mm, rightMargin=20*mm,
        topMargin=18*mm, bottomMargin=18*mm,
        title="Legal Document Simplification Report"
    )

    W, H = A4
    cw = W - 40*mm  # content width

    def rgb(t):  return colors.Color(*[v/255 for v in t])

    risk = result.risk
    rc      = rgb(RISK_COLOR.get(risk.level, GREY))
    gold_c  = rgb(GOLD)
    dark_c  = rgb(DARK)
    grey_c  = rgb(GREY)
    lgrey_c = rgb(LGREY)

    base = getSampleStyleSheet()

    def sty(name, parent="Normal", **kw):
        return ParagraphStyle(name, parent=base[parent], **kw)

    s_title = sty("title", fontSize=20, leading=26, textColor=dark_c, spaceAfter=4, fontName="Helvetica-Bold")
    s_h2    = sty("h2",    fontSize=13, leading=18, textColor=dark_c, spaceBefore=14, spaceAfter=6, fontName="Helvetica-Bold")
    s_body  = sty("body",  fontSize=9,  leading=14, textColor=dark_c, spaceAfter=4)
    s_small = sty("small", fontSize=8,  leading=12, textColor=grey_c, spaceAfter=2)
    s_quote = sty("quote", fontSize=8,  leading=12, textColor=grey_c, leftIndent=12, spaceAfter=3)

    story = []

    # ── Header ──────────────────────────────────────────────────────────────
    header_tbl = Table([[
        Paragraph("⚖ Legal Document Simplification", s_title),
        Paragraph(f"Generated {_now()}", s_small),
    ]], colWidths=[cw*0.75, cw*0.25])
    header_tbl.setStyle(TableStyle([
        ("VALIGN",        (0,0), (-1,-1), "BOTTOM"),
        ("ALIGN",         (1,0), (1,0),   "RIGHT"),
        ("BOTTOMPADDING", (0,0), (-1,-1), 8),
    ]))
    story.append(header_tbl)
    story.append(HRFlowable(width="100%", thickness=2, color=gold_c, spaceAfter=12))

    # ── Risk banner ─────────────────────────────────────────────────────────
    risk_tbl = Table([[
        Paragraph(f"<b>{_risk_icon(risk.level)}  {risk.level} Risk</b>",
                  sty("rk", fontSize=14, textColor=rc, fontName="Helvetica-Bold")),
        Paragraph(escape(risk.explanation), sty("rr", fontSize=9, leading=13, textColor=dark_c)),
        Paragraph(f"<b>Score {risk.score}</b>",
                  sty("rs", fontSize=12, textColor=rc, fontName="Helvetica-Bold", alignment=2)),
    ]], colWidths=[cw*0.2, cw*0.6, cw*0.2])
    risk_tbl.setStyle(TableStyle([
        ("BOX",           (0,0), (-1,-1), 1.5, rc),
        ("VALIGN",        (0,0), (-1,-1), "MIDDLE"),
        ("LEFTPADDING",   (0,0), (-1,-1), 10),
        ("RIGHTPADDING",  (0,0), (-1,-1), 10),
        ("TOPPADDING",    (0,0), (-1,-1), 10),
        ("BOTTOMPADDING", (0,0), (-1,-1), 10),
    ]))
    story.append(KeepTogether([risk_tbl]))

    # ── Simplified text ─────────────────────────────────────────────────────
    story.append(Paragraph("In Plain English", s_h2))
    story.append(HRFlowable(width="100%", thickness=0.5, color=lgrey_c, spaceAfter=8))
    story.append(Paragraph(escape(result.simplified_text), s_body))

    # ── Key Points ──────────────────────────────────────────────────────────
    story.append(Paragraph("Key Points", s_h2))
    story.append(HRFlowable(width="100%", thickness=0.5, color=lgrey_c, spaceAfter=8))
    for kp in result.key_points:
        tbl = Table([[
            Paragraph(f"<font color='#888' size='7'>{_label(kp.category).upper()}</font>", s_small),
            Paragraph(escape(kp.text), s_body),
        ]], colWidths=[28*mm, cw - 28*mm])
        tbl.setStyle(TableStyle([
            ("VALIGN",        (0,0), (-1,-1), "TOP"),
            ("BOX",           (0,0), (-1,-1), 0.75, lgrey_c),
            ("LEFTPADDING",   (0,0), (-1,-1), 8),
            ("TOPPADDING",    (0,0), (-1,-1), 6),
            ("BOTTOMPADDING", (0,0), (-1,-1), 6),
        ]))
        story.append(KeepTogether([tbl, Spacer(1, 5)]))

    # ── AI analysis ─────────────────────────────────────────────────────────
    if _has_ai(insight):
        story.append(Paragraph(f"AI Analysis ({escape(insight.model_used)})", s_h2))
        story.append(HRFlowable(width="100%", thickness=0.5, color=lgrey_c, spaceAfter=8))
        story.append(Paragraph(escape(insight.simplified), s_body))
        story.append(Paragraph(f"<b>AI risk: {escape(insight.risk_level)}</b> — {escape(insight.risk_reason)}", s_body))
        for title, items in (("Key points", insight.key_points), ("Definitions", insight.definitions),
                             ("Obligations", insight.obligations), ("Parties", insight.parties),
                             ("Timelines", insight.timelines)):
            if items:
                story.append(Paragraph(f"<b>{title}</b>", s_small))
                for item in items:
                    story.append(Paragraph(f"• {escape(item)}", s_quote))

    # ── Original text ───────────────────────────────────────────────────────
    story.append(Paragraph("Original Text", s_h2))
    story.append(HRFlowable(width="100%", thickness=0.5, color=lgrey_c, spaceAfter=8))
    story.append(Paragraph(f"<i>{escape(result.original_text)}</i>", s_quote))

    # ── Footer ──────────────────────────────────────────────────────────────
    story.append(Spacer(1, 16))
    story.append(HRFlowable(width="100%", thickness=0.5, color=lgrey_c))
    story.append(Paragraph(f"⚠ {DISCLAIMER}", sty("foot", fontSize=7, leading=10, textColor=grey_c)))

    doc.build(story)
    return buf.getvalue()


# ─────────────────────────────────────────────────────────────────────────────
# Word report  (python-docx)
# ─────────────────────────────────────────────────────────────────────────────

def export_word(result: AnalysisResult, insight: Optional[AIAnalysis] = None) -> bytes:
    from docx import Document
    from docx.shared import Pt, RGBColor, Inches, Cm

    doc = Document()

    for section in doc.sections:
        section.top_margin    = Cm(2)
        section.bottom_margin = Cm(2)
        section.left_margin   = Cm(2.5)
        section.right_margin  = Cm(2.5)

    def add_para(text="", bold=False, italic=False, color=None, size=10, indent=0):
        p = doc.add_paragraph()
        if indent:
            p.paragraph_format.left_indent = Inches(indent)
        run = p.add_run(text)
        run.bold, run.italic = bold, italic
        run.font.size = Pt(size)
        if color: run.font.color.rgb = RGBColor(*color)
        return p

    title = doc.add_heading("Legal Document Simplification Report", 0)
    title.runs[0].font.color.rgb = RGBColor(*DARK)
    add_para(f"Generated: {_now()}", color=GREY, size=9)

    # ── Risk ─────────────────────────────────────────────────────────────────
    risk = result.risk
    doc.add_heading("Risk Assessment", 1)
    p = doc.add_paragraph()
    run = p.add_run(f"{risk.level} Risk  (score {risk.score})")
    run.bold = True; run.font.size = Pt(14)
    run.font.color.rgb = RGBColor(*RISK_COLOR.get(risk.level, GREY))
    add_para(risk.explanation, size=9)

    # ── Simplified ───────────────────────────────────────────────────────────
    doc.add_heading("In Plain English", 1)
    add_para(result.simplified_text)

    # ── Key Points ───────────────────────────────────────────────────────────
    doc.add_heading("Key Points", 1)
    for kp in result.key_points:
        p = doc.add_paragraph(style="List Bullet")
        label = p.add_run(f"{_label(kp.category)}: ")
        label.bold = True; label.font.size = Pt(10)
        p.add_run(kp.text).font.size = Pt(10)

    # ── AI analysis ──────────────────────────────────────────────────────────
    if _has_ai(insight):
        doc.add_heading(f"AI Analysis ({insight.model_used})", 1)
        add_para(insight.simplified)
        add_para(f"AI risk: {insight.risk_level} — {insight.risk_reason}", bold=True, size=9)
        for heading, items in (("Key points", insight.key_points), ("Definitions", insight.definitions),
                               ("Obligations", insight.obligations), ("Parties", insight.parties),
                               ("Timelines", insight.timelines)):
            if items:
                add_para(heading, bold=True, size=9)
                for item in items:
                    doc.add_paragraph(style="List Bullet").add_run(item).font.size = Pt(9)

    # ── Original ─────────────────────────────────────────────────────────────
    doc.add_heading("Original Text", 1)
    add_para(result.original_text, italic=True, color=GREY, size=9, indent=0.25)

    add_para(f"⚠ {DISCLAIMER}", italic=True, color=GREY, size=8)

    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


# ─────────────────────────────────────────────────────────────────────────────
# CSV export
# ─────────────────────────────────────────────────────────────────────────────

def export_csv(result: AnalysisResult, insight: Optional[AIAnalysis] = None) -> bytes:
    buf = io.StringIO()
    w = csv.writer(buf)

    # ── Summary ──────────────────────────────────────────────────────────────
    w.writerow(["SECTION", "FIELD", "VALUE"])
    w.writerow(["Risk", "Level",       result.risk.level])
    w.writerow(["Risk", "Score",       result.risk.score])
    w.writerow(["Risk", "Reasons",     " | ".join(result.risk.reasons)])
    w.writerow(["Risk", "Explanation", result.risk.explanation])
    w.writerow(["Text", "Simplified",  result.simplified_text])
    w.writerow(["Text", "Original",    result.original_text])
    w.writerow([])

    # ── Key Points ───────────────────────────────────────────────────────────
    w.writerow(["KEY POINTS"])
    w.writerow(["#", "Category", "Text"])
    for i, kp in enumerate(result.key_points, 1):
        w.writerow([i, kp.category, kp.text])

    # ── AI analysis ──────────────────────────────────────────────────────────
    if _has_ai(insight):
        w.writerow([])
        w.writerow(["AI ANALYSIS"])
        w.writerow(["AI", "Model",       insight.model_used])
        w.writerow(["AI", "Risk Level",  insight.risk_level])
        w.writerow(["AI", "Risk Reason", insight.risk_reason])
        w.writerow(["AI", "Simplified",  insight.simplified])
        for name, items in (("Key Point", insight.key_points), ("Definition", insight.definitions),
                            ("Obligation", insight.obligations), ("Party", insight.parties),
                            ("Timeline", insight.timelines)):
            for item in items:
                w.writerow(["AI", name, item])

    return buf.getvalue().encode("utf-8-sig")  # BOM for Excel compatibility
