import pytest
from reportlab.pdfbase import pdfmetrics

from cascade.config import Settings
from cascade.export import PDF_BOLD_FONT_NAME, PDF_FONT_NAME
from cascade.schema import GOALS_TABLE, KPI_TABLE
from cascade.storage import MemoryBackend
from cascade.store import RowStore
from cascade.table import GoalsTable


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def kpi_store(backend):
    return RowStore.open(KPI_TABLE, backend)


@pytest.fixture
def goals_table(backend):
    return GoalsTable.open(GOALS_TABLE, backend)


@pytest.fixture
def empty_goals_table(backend):
    return GoalsTable(RowStore.open(GOALS_TABLE, backend, seed=False))


@pytest.fixture
def fresh_pdf_fonts(monkeypatch):
    """Forget fonts registered by earlier tests; restored afterwards."""
    for name in (PDF_FONT_NAME, PDF_BOLD_FONT_NAME):
        monkeypatch.delitem(pdfmetrics._fonts, name, raising=False)


@pytest.fixture
def offline_settings(monkeypatch, tmp_path, fresh_pdf_fonts):
    """No local fonts and no font URLs: PDF export must fall back to Helvetica."""
    settings = Settings(
        data_dir=tmp_path,
        pdf_font_paths=(),
        pdf_font_urls=(),
        pdf_bold_font_paths=(),
        pdf_bold_font_urls=(),
    )
    monkeypatch.setattr("cascade.export.get_settings", lambda: settings)
    return settings
