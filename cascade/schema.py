"""Static column schema shared by the table views, the UI and the exporters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from cascade.demo import GOALS_DEMO_ROWS, KPI_DEMO_ROWS
from cascade.errors import UnknownTableError


@dataclass(frozen=True)
class ColumnSpec:
    key: str
    label: str
    placeholder: str = ""
    multiline: bool = False
    filterable: bool = False


GOALS_COLUMNS: Tuple[ColumnSpec, ...] = (
    ColumnSpec("lastName", "ФИО", "Иванов Иван Иванович", filterable=True),
    ColumnSpec("goal", "Цель", "Например: рост эффективности операционных затрат", multiline=True, filterable=True),
    ColumnSpec("q1", "Квартал 1", "KPI"),
    ColumnSpec("q2", "Квартал 2", "KPI"),
    ColumnSpec("q3", "Квартал 3", "KPI"),
    ColumnSpec("q4", "Квартал 4", "KPI"),
    ColumnSpec("year", "Год", "2026"),
)

KPI_COLUMNS: Tuple[ColumnSpec, ...] = (
    ColumnSpec("lastName", "ФИО", "Иванов Иван Иванович", filterable=True),
    ColumnSpec("goal", "SCAI Цель", "Например: рост эффективности операционных затрат", multiline=True, filterable=True),
    ColumnSpec("metricGoals", "Метрические цели", "Например: снижение CIR на 2 п.п.", multiline=True),
    ColumnSpec("weightQ", "вес квартал"),
    ColumnSpec("weightYear", "вес год"),
    ColumnSpec("q1", "1 квартал", "KPI"),
    ColumnSpec("q2", "2 квартал", "KPI"),
    ColumnSpec("q3", "3 квартал", "KPI"),
    ColumnSpec("q4", "4 квартал", "KPI"),
    ColumnSpec("year", "Год", "2026"),
)

# Every export format uses this header order regardless of the source table.
EXPORT_COLUMNS: Tuple[ColumnSpec, ...] = KPI_COLUMNS
EXPORT_KEYS: Tuple[str, ...] = tuple(c.key for c in EXPORT_COLUMNS)
EXPORT_HEADERS: Tuple[str, ...] = tuple(c.label for c in EXPORT_COLUMNS)


@dataclass(frozen=True)
class TableConfig:
    name: str
    title: str
    storage_key: str
    page_size: int
    columns: Tuple[ColumnSpec, ...]
    export_prefix: str
    empty_cell: str = ""
    demo_rows: Tuple[Dict[str, str], ...] = field(default_factory=tuple, repr=False)
    empty_message: str = "Пока нет записей. Добавьте первую строку."

    @property
    def keys(self) -> List[str]:
        return [c.key for c in self.columns]

    @property
    def filter_keys(self) -> List[str]:
        return [c.key for c in self.columns if c.filterable]

    def column(self, key: str) -> ColumnSpec:
        for col in self.columns:
            if col.key == key:
                return col
        raise KeyError(key)


GOALS_TABLE = TableConfig(
    name="goals",
    title="Цели",
    storage_key="kpi-cascading-goals",
    page_size=20,
    columns=GOALS_COLUMNS,
    export_prefix="ппр",
    empty_cell="—",
    demo_rows=GOALS_DEMO_ROWS,
    empty_message="Пока нет целей. Добавьте первую строку.",
)

KPI_TABLE = TableConfig(
    name="kpi",
    title="КПЭ",
    storage_key="kpi-cascading-kpi",
    page_size=15,
    columns=KPI_COLUMNS,
    export_prefix="кпэ",
    demo_rows=KPI_DEMO_ROWS,
    empty_message="Пока нет показателей. Добавьте первую строку.",
)

TABLES: Dict[str, TableConfig] = {t.name: t for t in (GOALS_TABLE, KPI_TABLE)}

NO_MATCHES_MESSAGE = "Нет совпадений по фильтрам."


def get_table(name: str) -> TableConfig:
    try:
        return TABLES[name]
    except KeyError:
        raise UnknownTableError(name) from None
