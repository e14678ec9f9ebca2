from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv


BASE_DIR = Path(__file__).resolve().parents[1]
DEFAULT_DATA_DIR = BASE_DIR / ".cascade_data"

DEFAULT_FONT_PATHS: Tuple[str, ...] = (
    str(BASE_DIR / "fonts" / "Roboto-Regular.ttf"),
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
)
DEFAULT_FONT_URLS: Tuple[str, ...] = (
    "https://cdn.jsdelivr.net/gh/google/fonts@main/apache/roboto/Static/Roboto-Regular.ttf",
)
DEFAULT_BOLD_FONT_PATHS: Tuple[str, ...] = (
    str(BASE_DIR / "fonts" / "Roboto-Bold.ttf"),
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
)
DEFAULT_BOLD_FONT_URLS: Tuple[str, ...] = (
    "https://cdn.jsdelivr.net/gh/google/fonts@main/apache/roboto/Static/Roboto-Bold.ttf",
)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    data_dir: Path = DEFAULT_DATA_DIR
    log_level: str = "INFO"
    pdf_font_paths: Tuple[str, ...] = field(default=DEFAULT_FONT_PATHS)
    pdf_font_urls: Tuple[str, ...] = field(default=DEFAULT_FONT_URLS)
    pdf_bold_font_paths: Tuple[str, ...] = field(default=DEFAULT_BOLD_FONT_PATHS)
    pdf_bold_font_urls: Tuple[str, ...] = field(default=DEFAULT_BOLD_FONT_URLS)
    font_timeout: float = 10.0


def _split(raw: Optional[str], sep: str) -> Optional[Tuple[str, ...]]:
    if raw is None:
        return None
    return tuple(part.strip() for part in raw.split(sep) if part.strip())


def _as_float(raw: Optional[str], default: float) -> float:
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid numeric setting %r", raw)
        return default
    return value if value > 0 else default


def load_settings(env: Optional[dict] = None) -> Settings:
    """Build settings from the environment (and a local `.env` when present)."""
    if env is None:
        load_dotenv()
        env = dict(os.environ)

    font_paths = _split(env.get("CASCADE_PDF_FONT_PATHS"), os.pathsep)
    font_urls = _split(env.get("CASCADE_PDF_FONT_URLS"), ",")
    bold_paths = _split(env.get("CASCADE_PDF_BOLD_FONT_PATHS"), os.pathsep)
    bold_urls = _split(env.get("CASCADE_PDF_BOLD_FONT_URLS"), ",")
    data_dir = env.get("CASCADE_DATA_DIR")
    return Settings(
        data_dir=Path(data_dir).expanduser() if data_dir else DEFAULT_DATA_DIR,
        log_level=(env.get("CASCADE_LOG_LEVEL") or "INFO").upper(),
        pdf_font_paths=DEFAULT_FONT_PATHS if font_paths is None else font_paths,
        pdf_font_urls=DEFAULT_FONT_URLS if font_urls is None else font_urls,
        pdf_bold_font_paths=DEFAULT_BOLD_FONT_PATHS if bold_paths is None else bold_paths,
        pdf_bold_font_urls=DEFAULT_BOLD_FONT_URLS if bold_urls is None else bold_urls,
        font_timeout=_as_float(env.get("CASCADE_FONT_TIMEOUT"), 10.0),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def configure_logging(level: Optional[str] = None) -> None:
    level_name = (level or get_settings().log_level).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
