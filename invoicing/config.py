from __future__ import annotations
import json
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parents[1]
DEFAULT_DATA_DIR = ROOT_DIR / "data"


class NumberingSettings(BaseModel):
    invoice_prefix: str = "F"
    client_prefix: str = "C"


class InvoicingDefaults(BaseModel):
    payment_terms_days: int = 30
    default_payment_method: str = "Virement"
    payment_methods: list[str] = Field(default_factory=lambda: ["Virement", "Chèque", "Espèces", "Carte"])


class PdfSettings(BaseModel):
    backend: Literal["auto", "wkhtmltopdf", "weasyprint"] = "auto"
    wkhtmltopdf_path: Optional[str] = None


class Settings(BaseModel):
    data_dir: Path = DEFAULT_DATA_DIR
    log_level: str = "INFO"
    numbering: NumberingSettings = Field(default_factory=NumberingSettings)
    invoicing: InvoicingDefaults = Field(default_factory=InvoicingDefaults)
    pdf: PdfSettings = Field(default_factory=PdfSettings)

    @property
    def settings_file(self) -> Path:
        return self.data_dir / "settings.json"


def _load_json(path: Path):
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        logger.warning("settings.json illisible (%s), valeurs par défaut utilisées", path)
        return None


def load_settings(data_dir: os.PathLike | str | None = None) -> Settings:
    """
    Charge les paramètres :
    - data/settings.json (sections numbering / invoicing / pdf)
    - puis variables d'env (INVOICING_DATA_DIR, WKHTMLTOPDF, WKHTMLTOPDF_CMD, INVOICING_LOG_LEVEL)
    """
    base = Path(data_dir or os.environ.get("INVOICING_DATA_DIR") or DEFAULT_DATA_DIR)
    raw = _load_json(base / "settings.json")
    payload = raw if isinstance(raw, dict) else {}
    payload["data_dir"] = base

    settings = Settings.model_validate(payload)

    for env_key in ("WKHTMLTOPDF", "WKHTMLTOPDF_CMD"):
        val = os.environ.get(env_key)
        if val:
            settings.pdf.wkhtmltopdf_path = val
            break
    level = os.environ.get("INVOICING_LOG_LEVEL")
    if level:
        settings.log_level = level.upper()
    return settings
