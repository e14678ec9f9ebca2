"""Export adapter: one row sequence, one column schema, five file formats.

Every format writes the same header order and the same row-to-cell mapping
(`EXPORT_COLUMNS`). Encoding itself is delegated to pandas/openpyxl,
reportlab and python-docx.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple
from xml.sax.saxutils import escape as xml_escape

import pandas as pd
import requests
from docx import Document
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import Paragraph, SimpleDocTemplate, Table, TableStyle

from cascade.config import Settings, get_settings
from cascade.errors import ExportError
from cascade.rows import GoalRow
from cascade.schema import EXPORT_HEADERS, EXPORT_KEYS

logger = logging.getLogger(__name__)

FORMATS = ("csv", "xlsx", "pdf", "docx", "html")
MIME_TYPES = {
    "csv": "text/csv;charset=utf-8",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "pdf": "application/pdf",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "html": "text/html;charset=utf-8",
}

CRLF = "\r\n"
EMPTY_CELL_DOCX = "—"
PDF_FONT_NAME = "CascadeUnicode"
PDF_BOLD_FONT_NAME = "CascadeUnicode-Bold"
PDF_FONT_SIZE = 8
# Relative column widths for the landscape PDF table.
PDF_COLUMN_WEIGHTS = (1.4, 2.2, 2.6, 0.8, 0.8, 1.0, 1.0, 1.0, 1.0, 1.0)

HEADER_FILL = "1E3A8A"
HEADER_FONT_COLOR = "FFFFFF"

_INVALID_SHEET_CHARS = set('[]:*?/\\')


@dataclass(frozen=True)
class ExportFile:
    filename: str
    mime: str
    data: bytes


def row_cells(row: GoalRow) -> List[str]:
    return [row.get(k) or "" for k in EXPORT_KEYS]


def rows_to_cells(rows: Sequence[GoalRow]) -> List[List[str]]:
    return [row_cells(r) for r in rows]


def export_frame(rows: Sequence[GoalRow]) -> pd.DataFrame:
    return pd.DataFrame(rows_to_cells(rows), columns=list(EXPORT_HEADERS), dtype=object)


# ---------- CSV ----------

def to_csv_text(rows: Sequence[GoalRow]) -> str:
    text = export_frame(rows).to_csv(index=False, lineterminator=CRLF)
    if text.endswith(CRLF):
        text = text[: -len(CRLF)]
    return "\ufeff" + text


def to_csv(rows: Sequence[GoalRow], filename_prefix: str) -> bytes:
    return to_csv_text(rows).encode("utf-8")


# ---------- XLSX ----------

def sheet_title(prefix: str) -> str:
    title = "".join(ch for ch in prefix if ch not in _INVALID_SHEET_CHARS).strip("'")[:31]
    return title or "Sheet1"


def to_xlsx(rows: Sequence[GoalRow], filename_prefix: str) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title(filename_prefix)

    header_fill = PatternFill(start_color=HEADER_FILL, end_color=HEADER_FILL, fill_type="solid")
    header_font = Font(bold=True, color=HEADER_FONT_COLOR, size=11)
    thin = Side(style="thin", color="CBD5E1")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)

    for col_idx, label in enumerate(EXPORT_HEADERS, 1):
        cell = ws.cell(row=1, column=col_idx, value=label)
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
        cell.border = border
        ws.column_dimensions[get_column_letter(col_idx)].width = max(len(label) + 4, 12)

    for row_idx, cells in enumerate(rows_to_cells(rows), 2):
        for col_idx, value in enumerate(cells, 1):
            cell = ws.cell(row=row_idx, column=col_idx, value=value)
            # Keep free text such as "=А1" or "20%" literal.
            cell.data_type = "s"
            cell.border = border
            cell.alignment = Alignment(vertical="top", wrap_text=True)

    ws.freeze_panes = "A2"
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


# ---------- PDF ----------

def _register_font(name: str, source) -> str:
    pdfmetrics.registerFont(TTFont(name, source))
    return name


def _load_font(name: str, paths: Sequence[str], urls: Sequence[str], timeout: float) -> Optional[str]:
    """Register `name` from the first local path or URL that yields a usable TTF."""
    if name in pdfmetrics.getRegisteredFontNames():
        return name

    for path in paths:
        if not Path(path).is_file():
            continue
        try:
            return _register_font(name, path)
        except Exception:
            logger.warning("Font file %s could not be loaded", path, exc_info=True)

    for url in urls:
        try:
            resp = requests.get(url, timeout=timeout)
            resp.raise_for_status()
            return _register_font(name, BytesIO(resp.content))
        except Exception:
            logger.warning("Font %s could not be fetched", url, exc_info=True)
    return None


def load_unicode_font(settings: Optional[Settings] = None) -> Optional[str]:
    """Register a Cyrillic-capable TTF font; None when every source fails."""
    settings = settings or get_settings()
    font = _load_font(PDF_FONT_NAME, settings.pdf_font_paths, settings.pdf_font_urls, settings.font_timeout)
    if font is None:
        logger.warning("No Unicode font available; PDF falls back to Helvetica")
    return font


def load_unicode_bold_font(settings: Optional[Settings] = None) -> Optional[str]:
    settings = settings or get_settings()
    font = _load_font(
        PDF_BOLD_FONT_NAME, settings.pdf_bold_font_paths, settings.pdf_bold_font_urls, settings.font_timeout
    )
    if font is None:
        logger.warning("No bold Unicode font available; PDF header uses the regular face")
    return font


def pdf_fonts(settings: Optional[Settings] = None) -> Tuple[str, str]:
    """(body, header) font names: Unicode TTFs when available, Helvetica otherwise."""
    font = load_unicode_font(settings)
    if font is None:
        return "Helvetica", "Helvetica-Bold"
    bold = load_unicode_bold_font(settings)
    if bold is None:
        return font, font
    pdfmetrics.registerFontFamily(font, normal=font, bold=bold, italic=font, boldItalic=bold)
    return font, bold


def to_pdf(rows: Sequence[GoalRow], filename_prefix: str, *, settings: Optional[Settings] = None) -> bytes:
    body_font, header_font = pdf_fonts(settings)

    body_style = ParagraphStyle("cell", fontName=body_font, fontSize=PDF_FONT_SIZE, leading=PDF_FONT_SIZE + 2)
    header_style = ParagraphStyle(
        "header", parent=body_style, fontName=header_font, textColor=colors.white
    )

    def para(text: str, style: ParagraphStyle) -> Paragraph:
        return Paragraph(xml_escape(text).replace("\n", "<br/>"), style)

    header = [para(h, header_style) for h in EXPORT_HEADERS]
    data = [header] + [[para(c, body_style) for c in cells] for cells in rows_to_cells(rows)]

    page_size = landscape(A4)
    margin = 10 * mm
    usable = page_size[0] - 2 * margin
    total = sum(PDF_COLUMN_WEIGHTS)
    col_widths = [usable * w / total for w in PDF_COLUMN_WEIGHTS]

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=page_size,
        leftMargin=margin,
        rightMargin=margin,
        topMargin=margin,
        bottomMargin=margin,
        title=filename_prefix,
    )
    table = Table(data, colWidths=col_widths, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1e3a8a")),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#cbd5e1")),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f8fafc")]),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
            ]
        )
    )
    doc.build([table])
    return buffer.getvalue()


# ---------- DOCX ----------

def _mark_header_row(row) -> None:
    tr_pr = row._tr.get_or_add_trPr()
    flag = OxmlElement("w:tblHeader")
    flag.set(qn("w:val"), "true")
    tr_pr.append(flag)


def to_docx(rows: Sequence[GoalRow], filename_prefix: str) -> bytes:
    document = Document()
    table = document.add_table(rows=1, cols=len(EXPORT_HEADERS))
    table.style = "Table Grid"

    header = table.rows[0]
    for cell, label in zip(header.cells, EXPORT_HEADERS):
        cell.paragraphs[0].add_run(label).bold = True
    _mark_header_row(header)

    for cells in rows_to_cells(rows):
        out = table.add_row().cells
        for cell, value in zip(out, cells):
            cell.text = value or EMPTY_CELL_DOCX

    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


# ---------- HTML ----------

HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="ru">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
  <style>
    table {{ border-collapse: collapse; width: 100%; font-size: 14px; }}
    th, td {{ border: 1px solid #cbd5e1; padding: 0.5rem 0.75rem; text-align: left; }}
    th {{ background: #1e3a8a; color: #fff; font-weight: 600; }}
    tr:nth-child(even) {{ background: #f8fafc; }}
  </style>
</head>
<body>
  <table>
    <thead><tr>{headers}</tr></thead>
    <tbody>{body}</tbody>
  </table>
</body>
</html>"""


def to_html_text(rows: Sequence[GoalRow], filename_prefix: str) -> str:
    headers = "".join(f"<th>{html.escape(h)}</th>" for h in EXPORT_HEADERS)
    body = "".join(
        "<tr>" + "".join(f"<td>{html.escape(c)}</td>" for c in cells) + "</tr>"
        for cells in rows_to_cells(rows)
    )
    return HTML_TEMPLATE.format(title=html.escape(filename_prefix), headers=headers, body=body)


def to_html(rows: Sequence[GoalRow], filename_prefix: str) -> bytes:
    return to_html_text(rows, filename_prefix).encode("utf-8")


ENCODERS: Dict[str, Callable[[Sequence[GoalRow], str], bytes]] = {
    "csv": to_csv,
    "xlsx": to_xlsx,
    "pdf": to_pdf,
    "docx": to_docx,
    "html": to_html,
}


def export_filename(filename_prefix: str, fmt: str) -> str:
    return f"{filename_prefix}.{fmt}"


def export_rows(rows: Sequence[GoalRow], fmt: str, filename_prefix: str = "ппр") -> ExportFile:
    fmt = (fmt or "").lower()
    encoder = ENCODERS.get(fmt)
    if encoder is None:
        raise ValueError(f"Unsupported export format: {fmt!r}")
    try:
        data = encoder(list(rows), filename_prefix)
    except Exception as exc:
        logger.exception("Export to %s failed", fmt)
        raise ExportError(fmt) from exc
    logger.info("Exported %d rows to %s", len(rows), export_filename(filename_prefix, fmt))
    return ExportFile(filename=export_filename(filename_prefix, fmt), mime=MIME_TYPES[fmt], data=data)
