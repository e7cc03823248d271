from __future__ import annotations
import logging
import os
from pathlib import Path
from shutil import which
from typing import Optional

import pdfkit  # utilisé si wkhtmltopdf dispo

from invoicing.config import PdfSettings
from invoicing.errors import DependencyError
from invoicing.rendering.document import Document
from invoicing.rendering.html import STYLESHEET, TEMPLATES_DIR, render_print_html

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"


def pdf_filename(reference: str) -> str:
    return f"invoice-{reference}.pdf"


def _clean_path(p: str) -> str:
    """Corrige 'C\\:\\Program Files\\...' -> 'C:\\Program Files\\...' et normalise."""
    if not p:
        return ""
    p = p.strip().strip('"').strip("'")
    p = p.replace("\\:", ":")
    return os.path.normpath(p)


def find_wkhtmltopdf(configured: Optional[str] = None) -> Optional[str]:
    """
    Localise wkhtmltopdf :
    - chemin configuré (settings.json pdf.wkhtmltopdf_path ou variable WKHTMLTOPDF)
    - chemins Windows connus
    - PATH
    """
    if configured:
        path = _clean_path(configured)
        if Path(path).is_file():
            return path

    for c in (
        r"C:\Program Files\wkhtmltopdf\bin\wkhtmltopdf.exe",
        r"C:\Program Files (x86)\wkhtmltopdf\bin\wkhtmltopdf.exe",
    ):
        if Path(c).is_file():
            return c

    found = which("wkhtmltopdf")
    return _clean_path(found) if found else None


def _render_with_wkhtmltopdf(html: str, wkhtml: str) -> bytes:
    config = pdfkit.configuration(wkhtmltopdf=wkhtml)
    options = {
        "enable-local-file-access": None,
        "quiet": "",
        "encoding": "UTF-8",
        "page-size": "A4",
    }
    # output_path=False -> pdfkit renvoie les octets
    return pdfkit.from_string(html, False, options=options, configuration=config, css=str(STYLESHEET))


def _render_with_weasyprint(html: str) -> bytes:
    try:
        from weasyprint import HTML, CSS
    except (ImportError, OSError) as e:
        raise DependencyError(
            "Aucun wkhtmltopdf trouvé et WeasyPrint n'est pas utilisable", e
        ) from e

    styles = [CSS(filename=str(STYLESHEET))] if STYLESHEET.exists() else None
    return HTML(string=html, base_url=str(TEMPLATES_DIR)).write_pdf(stylesheets=styles)


def export_pdf(doc: Document, settings: Optional[PdfSettings] = None) -> bytes:
    """
    Sérialise l'arbre en PDF.
    Essaie wkhtmltopdf (pdfkit) en priorité, sinon fallback WeasyPrint.
    """
    settings = settings or PdfSettings()
    html = render_print_html(doc)

    if settings.backend in ("auto", "wkhtmltopdf"):
        wkhtml = find_wkhtmltopdf(settings.wkhtmltopdf_path)
        if wkhtml:
            try:
                return _render_with_wkhtmltopdf(html, wkhtml)
            except (IOError, OSError) as e:
                if settings.backend == "wkhtmltopdf":
                    raise DependencyError("Échec wkhtmltopdf", e) from e
                logger.warning("Échec wkhtmltopdf (%s). Fallback WeasyPrint...", e)
        elif settings.backend == "wkhtmltopdf":
            raise DependencyError("wkhtmltopdf introuvable")

    try:
        return _render_with_weasyprint(html)
    except DependencyError:
        raise
    except Exception as e:
        raise DependencyError("Échec de la génération PDF", e) from e


def write_pdf(doc: Document, out_dir: os.PathLike | str, settings: Optional[PdfSettings] = None) -> str:
    exports_dir = Path(out_dir)
    exports_dir.mkdir(parents=True, exist_ok=True)
    out_path = exports_dir / pdf_filename(doc.reference)
    out_path.write_bytes(export_pdf(doc, settings))
    return str(out_path)
