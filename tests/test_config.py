import os
from pathlib import Path

from cascade.config import DEFAULT_DATA_DIR, DEFAULT_FONT_URLS, load_settings


def test_defaults_from_empty_env():
    settings = load_settings({})
    assert settings.data_dir == DEFAULT_DATA_DIR
    assert settings.log_level == "INFO"
    assert settings.pdf_font_urls == DEFAULT_FONT_URLS
    assert settings.font_timeout == 10.0


def test_env_overrides(tmp_path):
    settings = load_settings(
        {
            "CASCADE_DATA_DIR": str(tmp_path),
            "CASCADE_LOG_LEVEL": "debug",
            "CASCADE_PDF_FONT_PATHS": os.pathsep.join(["/a.ttf", "", "/b.ttf"]),
            "CASCADE_PDF_FONT_URLS": "",
            "CASCADE_FONT_TIMEOUT": "2.5",
        }
    )
    assert settings.data_dir == Path(tmp_path)
    assert settings.log_level == "DEBUG"
    assert settings.pdf_font_paths == ("/a.ttf", "/b.ttf")
    assert settings.pdf_font_urls == ()
    assert settings.font_timeout == 2.5


def test_invalid_timeout_falls_back():
    assert load_settings({"CASCADE_FONT_TIMEOUT": "soon"}).font_timeout == 10.0
    assert load_settings({"CASCADE_FONT_TIMEOUT": "-1"}).font_timeout == 10.0


def test_bold_font_sources_from_env():
    settings = load_settings({"CASCADE_PDF_BOLD_FONT_PATHS": "/fonts/bold.ttf", "CASCADE_PDF_BOLD_FONT_URLS": "https://a, https://b"})
    assert settings.pdf_bold_font_paths == ("/fonts/bold.ttf",)
    assert settings.pdf_bold_font_urls == ("https://a", "https://b")
    assert load_settings({}).pdf_bold_font_paths[-1].endswith("DejaVuSans-Bold.ttf")
