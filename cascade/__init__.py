"""Core (UI-agnostic) KPI cascade workspace logic.

This package contains:
- the goal/KPI row model and its persisted store
- the view engine (filter -> sort -> paginate) and the editing session
- dashboard compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
- the export adapter (CSV/XLSX/PDF/DOCX/HTML)
"""
