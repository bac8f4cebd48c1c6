"""
pdf_report.py
Builds a formatted PDF report using ReportLab and embeds charts.

Sections:
- Cover page
- Table of Contents
- One package table per package manager
- CVE matches
- Charts page

All content is grayscale-friendly.
"""

from typing import Dict, Any, List, Tuple
from xml.sax.saxutils import escape

from reportlab.lib import enums
from reportlab.lib.colors import black
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.platypus import (
    SimpleDocTemplate, Paragraph, Spacer, PageBreak, Preformatted, Table, TableStyle, Image,
)
from reportlab.platypus.tableofcontents import TableOfContents

TABLE_STYLE = TableStyle([
    ('LINEBELOW', (0, 0), (-1, -1), 0.25, black),
    ('FONT', (0, 0), (-1, -1), 'Helvetica', 8),
    ('FONT', (0, 0), (-1, 0), 'Helvetica-Bold', 8),
    ('VALIGN', (0, 0), (-1, -1), 'TOP'),
    ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
])


def generate_pdf(scan: Dict[str, Any], charts: Dict[str, Any], pdf_path: str) -> Tuple[bool, str]:
    doc = SimpleDocTemplate(pdf_path, pagesize=A4,
                            rightMargin=42, leftMargin=42, topMargin=54, bottomMargin=54)
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(name="Mono", fontName="Courier", fontSize=8, leading=10))
    styles.add(ParagraphStyle(name="Cell", fontName="Helvetica", fontSize=7, leading=9))
    styles.add(ParagraphStyle(name="Heading1Center", parent=styles["Heading1"], alignment=enums.TA_CENTER))
    toc = TableOfContents()
    toc.levelStyles = [
        ParagraphStyle(fontSize=14, name='TOCHeading1', leftIndent=20, firstLineIndent=-10),
        ParagraphStyle(fontSize=12, name='TOCHeading2', leftIndent=40, firstLineIndent=-10),
    ]

    story: List[Any] = []

    def add_heading(text, level=1):
        style = styles["Heading1"] if level == 1 else styles["Heading2"]
        story.append(Paragraph(text, style))
        story.append(Spacer(1, 8))

    # Cover Page
    analyses = scan["analyses"]
    story.append(Spacer(1, 120))
    story.append(Paragraph("layerscan", styles["Heading1Center"]))
    story.append(Spacer(1, 24))
    story.append(Paragraph("Container Image Package Inventory", styles["Heading2"]))
    story.append(Spacer(1, 36))
    meta_table_data = [["Image", scan["image"]], ["Timestamp", scan["timestamp"]]]
    for result in analyses:
        meta_table_data.append([f"{result.kind} packages", str(len(result.packages))])
    meta_table_data.append(["CVE matches", str(scan["cve"]["count"])])
    meta_tbl = Table(meta_table_data, hAlign='LEFT', colWidths=[100, 350])
    meta_tbl.setStyle(TableStyle([
        ('LINEBELOW', (0, 0), (-1, -1), 0.25, black),
        ('FONT', (0, 0), (-1, -1), 'Helvetica', 10),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    story.append(meta_tbl)
    story.append(Spacer(1, 12))
    story.append(Paragraph("The image was read from its saved layers; it was never run.", styles["BodyText"]))
    story.append(PageBreak())

    # TOC
    story.append(Paragraph("Table of Contents", styles["Heading1"]))
    story.append(toc)
    story.append(PageBreak())

    # Packages
    for result in analyses:
        add_heading(f"{result.kind} Packages", 1)
        if not result.packages:
            story.append(Paragraph("No packages found.", styles["BodyText"]))
            story.append(PageBreak())
            continue
        rows = [["Name", "Version", "Source", "Depends", "Auto"]]
        for pkg in result.packages:
            rows.append([
                Paragraph(escape(pkg.name), styles["Cell"]),
                Paragraph(escape(pkg.version or ""), styles["Cell"]),
                Paragraph(escape(pkg.source or ""), styles["Cell"]),
                Paragraph(escape(", ".join(sorted(pkg.deps))), styles["Cell"]),
                "yes" if pkg.auto_installed else "",
            ])
        tbl = Table(rows, hAlign='LEFT', colWidths=[110, 90, 70, 200, 35], repeatRows=1)
        tbl.setStyle(TABLE_STYLE)
        story.append(tbl)
        story.append(PageBreak())

    # CVE
    cve = scan["cve"]
    add_heading("CVE Matches", 1)
    if cve.get("matches"):
        cve_lines = [
            f"{m['product']} {m['version']} -> {m['cve']} (CVSS {m['cvss']}) {m['summary']}"
            for m in cve["matches"]
        ]
    else:
        cve_lines = ["No local CVE matches found."]
    story.append(Preformatted("\n".join(cve_lines), styles["Mono"]))
    story.append(PageBreak())

    # Charts
    add_heading("Charts", 1)
    for title, bio in charts.items():
        story.append(Paragraph(title, styles["Heading2"]))
        story.append(Image(bio, width=480, height=240))
        story.append(Spacer(1, 12))

    # TOC handler
    def after_flowable(flowable):
        if isinstance(flowable, Paragraph):
            txt = flowable.getPlainText()
            style_name = flowable.style.name
            if style_name == "Heading1" and txt != "Table of Contents":
                toc.addEntry(0, txt, doc.canv.getPageNumber())
            elif style_name == "Heading2":
                toc.addEntry(1, txt, doc.canv.getPageNumber())

    doc.afterFlowable = after_flowable

    try:
        doc.multiBuild(story)
        return True, "PDF generated"
    except Exception as e:
        return False, f"PDF generation failed: {e}"
