from __future__ import annotations
from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from invoicing.rendering.document import Document

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
STYLESHEET = TEMPLATES_DIR / "stylesheet.css"


@lru_cache(maxsize=1)
def _env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
    )


def _css() -> str:
    return STYLESHEET.read_text(encoding="utf-8") if STYLESHEET.exists() else ""


def render_preview_html(doc: Document) -> str:
    """Fragment HTML autonome (styles inclus) pour l'aperçu à l'écran."""
    return _env().get_template("preview.html").render(doc=doc, inline_css=_css())


def render_print_html(doc: Document) -> str:
    """
    Page HTML complète destinée au moteur PDF.
    La feuille de style est passée à part (pdfkit css= / WeasyPrint stylesheets=).
    """
    return _env().get_template("invoice.html").render(doc=doc)
