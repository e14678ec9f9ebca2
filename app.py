import logging
from contextlib import contextmanager
from typing import Optional

import pandas as pd
import streamlit as st

from cascade.config import configure_logging, get_settings
from cascade.dashboard import compute_dashboard
from cascade.errors import CascadeError, ExportError
from cascade.export import FORMATS
from cascade.schema import GOALS_TABLE, KPI_TABLE, NO_MATCHES_MESSAGE, TableConfig
from cascade.storage import JsonDirBackend
from cascade.table import GoalsTable
from cascade.view import page_window

configure_logging()
logger = logging.getLogger(__name__)

FORMAT_LABELS = {"pdf": "PDF", "xlsx": "EXCEL", "docx": "DOCX", "csv": "CSV", "html": "HTML"}
SORT_ARROWS = {"asc": "▲", "desc": "▼"}
PAGE_BUTTONS = 12


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .cell-muted {color: #9ca3af;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def render_page_header(title: str, breadcrumb: str, chips: Optional[list] = None):
    inject_base_styles()
    st.markdown(
        f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
        unsafe_allow_html=True,
    )
    if chips:
        html = "".join(f"<span class='chip'>{c}</span>" for c in chips)
        st.markdown(f"<div class='chip-row'>{html}</div>", unsafe_allow_html=True)


def get_table(config: TableConfig) -> GoalsTable:
    key = f"table_{config.name}"
    if key not in st.session_state:
        backend = JsonDirBackend(get_settings().data_dir)
        st.session_state[key] = GoalsTable.open(config, backend)
    return st.session_state[key]


def run_action(action, *args):
    """Widget callback wrapper: view/edit rule violations become a warning."""
    try:
        action(*args)
    except CascadeError as exc:
        st.session_state["_flash_warning"] = str(exc)


def show_flash():
    msg = st.session_state.pop("_flash_warning", None)
    if msg:
        st.warning(msg)


# ---------- Table page ----------
def _on_filter_change(table: GoalsTable, key: str, widget_key: str):
    run_action(table.set_filter, key, st.session_state.get(widget_key, ""))


def _on_draft_change(table: GoalsTable, key: str, widget_key: str):
    run_action(table.update_field, key, st.session_state.get(widget_key, ""))


def render_filters(table: GoalsTable):
    editing = table.session.is_editing
    cols = st.columns(len(table.config.filter_keys))
    for col, key in zip(cols, table.config.filter_keys):
        column = table.config.column(key)
        widget_key = f"{table.config.name}_filter_{key}"
        col.text_input(
            f"Поиск: {column.label}",
            value=table.view.text.get(key, ""),
            key=widget_key,
            placeholder="Поиск",
            disabled=editing,
            on_change=_on_filter_change,
            args=(table, key, widget_key),
        )


def render_sort_header(table: GoalsTable, widths: list):
    editing = table.session.is_editing
    cols = st.columns(widths)
    for col, column in zip(cols, table.config.columns):
        arrow = SORT_ARROWS[table.view.sort_direction] if table.view.sort_key == column.key else "↕"
        col.button(
            f"{column.label} {arrow}",
            key=f"{table.config.name}_sort_{column.key}",
            disabled=editing,
            on_click=run_action,
            args=(table.toggle_sort, column.key),
            help=f"Сортировать по: {column.label}",
        )
    cols[-1].markdown("**Действия**")


def render_row(table: GoalsTable, row, widths: list, row_number: int):
    config = table.config
    session = table.session
    is_editing = session.is_editing_row(row.id)
    active = session.draft if is_editing and session.draft is not None else row
    cols = st.columns(widths)
    for col, column in zip(cols, config.columns):
        value = active.get(column.key)
        if is_editing:
            widget_key = f"{config.name}_edit_{row.id}_{column.key}"
            widget = col.text_area if column.multiline else col.text_input
            widget(
                f"{column.label}, строка {row_number}",
                value=value,
                key=widget_key,
                placeholder=column.placeholder,
                label_visibility="collapsed",
                on_change=_on_draft_change,
                args=(table, column.key, widget_key),
            )
        elif value.strip():
            col.write(value)
        else:
            col.markdown(f"<span class='cell-muted'>{config.empty_cell}</span>", unsafe_allow_html=True)

    actions = cols[-1].columns(2)
    if is_editing:
        actions[0].button("Сохранить", key=f"{config.name}_save_{row.id}", on_click=run_action, args=(table.commit,))
        actions[1].button("Отмена", key=f"{config.name}_cancel_{row.id}", on_click=run_action, args=(table.cancel,))
    else:
        actions[0].button(
            "✎",
            key=f"{config.name}_edit_btn_{row.id}",
            help="Редактировать",
            disabled=session.is_editing,
            on_click=run_action,
            args=(table.start_edit, row.id),
        )
        actions[1].button(
            "🗑",
            key=f"{config.name}_delete_{row.id}",
            help="Удалить строку",
            on_click=table.request_delete,
            args=(row.id,),
        )


def render_delete_confirmation(table: GoalsTable):
    if table.pending_delete_id is None:
        return
    st.warning("Удаление записи: действительно удалить эту запись?")
    c1, c2, _ = st.columns([1, 1, 6])
    c1.button("Удалить", key=f"{table.config.name}_confirm_delete", type="primary", on_click=table.confirm_delete)
    c2.button("Отмена", key=f"{table.config.name}_cancel_delete", on_click=table.cancel_delete)


def render_pagination(table: GoalsTable, page: int, pages: int):
    if pages <= 1:
        return
    editing = table.session.is_editing
    name = table.config.name
    numbers = page_window(page, pages, PAGE_BUTTONS)
    cols = st.columns(len(numbers) + 2)
    cols[0].button("‹", key=f"{name}_prev", disabled=page == 1 or editing, on_click=run_action, args=(table.set_page, page - 1))
    for i, number in enumerate(numbers, start=1):
        cols[i].button(
            f"[{number}]" if number == page else str(number),
            key=f"{name}_page_{number}",
            disabled=editing,
            on_click=run_action,
            args=(table.set_page, number),
        )
    cols[-1].button("›", key=f"{name}_next", disabled=page == pages or editing, on_click=run_action, args=(table.set_page, page + 1))


def render_export(table: GoalsTable):
    name = table.config.name
    editing = table.session.is_editing
    c1, c2, c3 = st.columns([2, 2, 4])
    fmt = c1.selectbox(
        "Экспорт",
        options=list(FORMATS),
        format_func=lambda f: FORMAT_LABELS.get(f, f.upper()),
        key=f"{name}_export_fmt",
        disabled=editing,
    )
    if c2.button("Подготовить файл", key=f"{name}_export_build", disabled=editing):
        try:
            st.session_state[f"{name}_export_file"] = (table.view_token(), table.export(fmt))
        except ExportError as exc:
            logger.exception("Export failed for %s", name)
            st.error(f"Не удалось создать {FORMAT_LABELS.get(exc.fmt, exc.fmt.upper())}. Подробности в журнале приложения.")
        except CascadeError as exc:
            st.warning(str(exc))
    cached = st.session_state.get(f"{name}_export_file")
    if cached is not None and cached[0] != table.view_token():
        # Rows or filters changed since the file was built.
        del st.session_state[f"{name}_export_file"]
        cached = None
    if cached is not None and not editing:
        exported = cached[1]
        c3.download_button(
            f"Скачать {exported.filename}",
            data=exported.data,
            file_name=exported.filename,
            mime=exported.mime,
            key=f"{name}_export_download",
        )


def render_table_page(config: TableConfig):
    table = get_table(config)
    result = table.derive()
    chips = [f"Строк: {result.total_count}", f"Найдено: {result.filtered_count}"]
    if table.view.sort_key:
        chips.append(f"Сортировка: {config.column(table.view.sort_key).label} {SORT_ARROWS[table.view.sort_direction]}")
    render_page_header(config.title, f"Главная / {config.title}", chips)
    show_flash()

    top = st.columns([8, 1, 1])
    top[1].button("＋", key=f"{config.name}_add", help="Добавить строку", disabled=table.session.is_editing, on_click=run_action, args=(table.create_row,))
    top[2].button(
        "Сбросить сортировку",
        key=f"{config.name}_clear_sort",
        disabled=table.session.is_editing or table.view.sort_key is None,
        on_click=run_action,
        args=(table.clear_sort,),
    )

    render_filters(table)
    render_delete_confirmation(table)

    widths = [3 if c.multiline else 2 for c in config.columns] + [2]
    with card(config.title):
        render_sort_header(table, widths)
        if result.empty_state == "empty":
            st.info(config.empty_message)
        elif result.empty_state == "no_matches":
            st.info(NO_MATCHES_MESSAGE)
        else:
            for index, row in enumerate(result.page_rows):
                render_row(table, row, widths, result.page_start + index + 1)

    render_pagination(table, result.page, result.total_pages)
    render_export(table)


# ---------- Dashboards ----------
def render_dashboard_page():
    render_page_header("Дашборды и графики", "Главная / Дашборды")
    choice = st.radio("Таблица", [KPI_TABLE.title, GOALS_TABLE.title], horizontal=True)
    config = KPI_TABLE if choice == KPI_TABLE.title else GOALS_TABLE
    table = get_table(config)
    payload = compute_dashboard(table.store.rows, config)

    if payload["empty"]:
        st.info(payload["empty_message"])
        return

    summary = payload["summary"]
    cols = st.columns(4)
    cols[0].metric("Всего строк", summary["total_rows"])
    cols[1].metric("Сотрудников", summary["owners"])
    cols[2].metric("С годовым значением", summary["with_year"])
    cols[3].metric("С весом, %", summary["with_weight"])

    weights = payload["weights"]
    left, right = st.columns(2)
    with left:
        with card("Распределение весов"):
            if not weights["entries"]:
                st.info("Нет строк с числовым весом.")
            else:
                st.vega_lite_chart(weights["charts"]["weights_bar"], use_container_width=True)
    with right:
        with card("Доли весов"):
            if not weights["segments"]:
                st.info("Нет строк с числовым весом.")
            else:
                st.vega_lite_chart(weights["charts"]["weights_donut"], use_container_width=True)
                st.caption(f"Сумма весов: {weights['total']:.0f}%")

    groups = payload["groups"]
    left, right = st.columns(2)
    with left:
        with card("Топ сотрудников"):
            if groups["top_owners"]:
                st.vega_lite_chart(groups["charts"]["top_owners"], use_container_width=True)
            else:
                st.info("Нет заполненных ФИО.")
    with right:
        with card("Топ целей"):
            if groups["top_goals"]:
                st.dataframe(pd.DataFrame(groups["top_goals"]), hide_index=True, use_container_width=True)
            else:
                st.info("Нет заполненных целей.")

    with card("Заполненность полей"):
        st.vega_lite_chart(payload["charts"]["completeness"], use_container_width=True)

    quarters = payload["quarters"]
    left, right = st.columns(2)
    with left:
        with card("Значения по кварталам"):
            if quarters["series"] is None:
                st.info("Нет числовых квартальных значений.")
            else:
                st.caption(quarters["series"]["label"])
                st.vega_lite_chart(quarters["charts"]["quarter_series"], use_container_width=True)
    with right:
        with card("Заполненность кварталов"):
            st.vega_lite_chart(quarters["charts"]["quarter_heatmap"], use_container_width=True)


# ---------- UI setup ----------
st.set_page_config(page_title="Каскадирование КПЭ", layout="wide")
inject_base_styles()

with st.sidebar:
    st.markdown("### Навигация")
    nav_choice = st.radio("Навигация", ["Цели", "КПЭ", "Дашборды"], index=0, label_visibility="collapsed")

if nav_choice == "Цели":
    render_table_page(GOALS_TABLE)
elif nav_choice == "КПЭ":
    render_table_page(KPI_TABLE)
else:
    render_dashboard_page()
