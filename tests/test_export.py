import csv
import io
import re
from pathlib import Path

import pytest
import reportlab
import requests
from docx import Document
from openpyxl import load_workbook

from cascade.config import Settings
from cascade.errors import ExportError
from cascade.export import (
    EMPTY_CELL_DOCX,
    ENCODERS,
    MIME_TYPES,
    PDF_FONT_NAME,
    export_rows,
    load_unicode_font,
    pdf_fonts,
    sheet_title,
    to_csv_text,
    to_html_text,
)
from cascade.rows import GoalRow
from cascade.schema import EXPORT_HEADERS

ROWS = [
    GoalRow(id="1", last_name="Иванов, И.И.", goal='Рост "прибыли"', weight_year="20%", q1="24,1"),
    GoalRow(id="2", last_name="Петров", metric_goals="<b>CIR</b> & co", year="2026"),
]

VERA = str(Path(reportlab.__file__).parent / "fonts" / "Vera.ttf")
VERA_BOLD = str(Path(reportlab.__file__).parent / "fonts" / "VeraBd.ttf")


class FontResponse:
    def __init__(self, content):
        self.content = content

    def raise_for_status(self):
        return None


def font_settings(paths=(), urls=(), bold_paths=(), bold_urls=()):
    return Settings(
        pdf_font_paths=paths,
        pdf_font_urls=urls,
        pdf_bold_font_paths=bold_paths,
        pdf_bold_font_urls=bold_urls,
    )


def base_fonts(pdf: bytes):
    return re.findall(rb"/BaseFont\s*/([^\s/>]+)", pdf)


def test_csv_has_bom_headers_and_crlf():
    text = to_csv_text(ROWS)
    assert text.startswith("\ufeff")
    assert not text.endswith("\r\n")
    lines = text[1:].split("\r\n")
    assert len(lines) == 3
    records = list(csv.reader(io.StringIO(text[1:], newline="")))
    assert records[0] == list(EXPORT_HEADERS)
    assert records[1][0] == "Иванов, И.И."
    assert records[1][1] == 'Рост "прибыли"'
    assert records[2][2] == "<b>CIR</b> & co"


def test_csv_quotes_cells_with_commas():
    assert '"Иванов, И.И."' in to_csv_text(ROWS)


def test_csv_of_no_rows_is_header_only():
    assert to_csv_text([]) == "\ufeff" + ",".join(EXPORT_HEADERS)


def test_xlsx_keeps_text_cells():
    exported = export_rows(ROWS, "xlsx", "кпэ")
    assert exported.filename == "кпэ.xlsx"
    assert exported.mime == MIME_TYPES["xlsx"]
    ws = load_workbook(io.BytesIO(exported.data)).active
    assert ws.title == "кпэ"
    assert [c.value for c in ws[1]] == list(EXPORT_HEADERS)
    assert ws["A2"].value == "Иванов, И.И."
    assert ws["E2"].value == "20%"
    assert ws["F2"].value == "24,1"
    assert ws.freeze_panes == "A2"


def test_sheet_title_strips_invalid_characters():
    assert sheet_title("a/b:c") == "abc"
    assert sheet_title("[]") == "Sheet1"
    assert len(sheet_title("x" * 40)) == 31


def test_docx_marks_header_and_fills_empty_cells():
    exported = export_rows(ROWS, "docx", "ппр")
    table = Document(io.BytesIO(exported.data)).tables[0]
    assert [c.text for c in table.rows[0].cells] == list(EXPORT_HEADERS)
    assert table.rows[1].cells[0].text == "Иванов, И.И."
    assert table.rows[1].cells[2].text == EMPTY_CELL_DOCX
    assert "tblHeader" in table.rows[0]._tr.xml


def test_html_escapes_cells():
    text = to_html_text(ROWS, "ппр")
    assert "&lt;b&gt;CIR&lt;/b&gt; &amp; co" in text
    assert "<b>CIR</b>" not in text
    assert text.count("<tr>") == 3
    assert '<meta charset="UTF-8">' in text


def test_pdf_without_unicode_font_still_renders(offline_settings):
    assert load_unicode_font(offline_settings) is None
    exported = export_rows(ROWS, "pdf", "ппр")
    assert exported.data.startswith(b"%PDF")
    assert exported.mime == "application/pdf"
    assert b"Helvetica-Bold" in base_fonts(exported.data)


def test_pdf_header_uses_bold_unicode_face(monkeypatch, fresh_pdf_fonts):
    settings = font_settings(paths=(VERA,), bold_paths=(VERA_BOLD,))
    monkeypatch.setattr("cascade.export.get_settings", lambda: settings)
    fonts = base_fonts(export_rows(ROWS, "pdf", "ппр").data)
    assert any(f.endswith(b"Bold") and b"Helvetica" not in f for f in fonts)
    assert any(b"Vera" in f and not f.endswith(b"Bold") for f in fonts)
    assert b"Helvetica-Bold" not in fonts


def test_pdf_header_falls_back_to_regular_face(fresh_pdf_fonts):
    settings = font_settings(paths=(VERA,))
    assert pdf_fonts(settings) == (PDF_FONT_NAME, PDF_FONT_NAME)


def test_font_chain_skips_unreadable_file(monkeypatch, tmp_path, fresh_pdf_fonts):
    broken = tmp_path / "broken.ttf"
    broken.write_bytes(b"not a font")
    calls = []

    def fail(url, timeout):
        calls.append(url)
        raise requests.ConnectionError(url)

    monkeypatch.setattr("cascade.export.requests.get", fail)
    settings = font_settings(paths=(str(broken), VERA), urls=("https://fonts.example/a.ttf",))
    assert load_unicode_font(settings) == PDF_FONT_NAME
    assert calls == []


def test_font_chain_falls_through_to_next_url(monkeypatch, tmp_path, fresh_pdf_fonts):
    broken = tmp_path / "broken.ttf"
    broken.write_bytes(b"not a font")
    calls = []

    def fetch(url, timeout):
        calls.append(url)
        if url.endswith("a.ttf"):
            raise requests.ConnectionError(url)
        return FontResponse(Path(VERA).read_bytes())

    monkeypatch.setattr("cascade.export.requests.get", fetch)
    settings = font_settings(
        paths=(str(broken), str(tmp_path / "missing.ttf")),
        urls=("https://fonts.example/a.ttf", "https://fonts.example/b.ttf"),
    )
    assert load_unicode_font(settings) == PDF_FONT_NAME
    assert calls == ["https://fonts.example/a.ttf", "https://fonts.example/b.ttf"]


def test_font_chain_all_sources_fail(monkeypatch, tmp_path, fresh_pdf_fonts):
    def fail(url, timeout):
        raise requests.Timeout(url)

    monkeypatch.setattr("cascade.export.requests.get", fail)
    settings = font_settings(paths=(str(tmp_path / "missing.ttf"),), urls=("https://fonts.example/a.ttf",))
    assert load_unicode_font(settings) is None


def test_unknown_format_rejected():
    with pytest.raises(ValueError):
        export_rows(ROWS, "odt")


def test_encoder_failure_becomes_export_error(monkeypatch):
    def boom(rows, prefix):
        raise RuntimeError("disk full")

    monkeypatch.setitem(ENCODERS, "csv", boom)
    with pytest.raises(ExportError) as info:
        export_rows(ROWS, "csv")
    assert info.value.fmt == "csv"
    assert str(info.value) == "Export to CSV failed"
