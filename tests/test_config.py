import json

from invoicing.config import load_settings


def test_defaults(tmp_path, monkeypatch):
    for key in ("WKHTMLTOPDF", "WKHTMLTOPDF_CMD", "INVOICING_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    settings = load_settings(tmp_path)
    assert settings.data_dir == tmp_path
    assert settings.invoicing.payment_terms_days == 30
    assert settings.invoicing.default_payment_method == "Virement"
    assert settings.numbering.invoice_prefix == "F"
    assert settings.pdf.backend == "auto"


def test_settings_file_and_env(tmp_path, monkeypatch):
    (tmp_path / "settings.json").write_text(json.dumps({
        "invoicing": {"payment_terms_days": 45},
        "pdf": {"backend": "weasyprint", "wkhtmltopdf_path": "/opt/wk"},
    }), encoding="utf-8")
    monkeypatch.setenv("WKHTMLTOPDF", "/usr/local/bin/wkhtmltopdf")
    monkeypatch.setenv("INVOICING_LOG_LEVEL", "debug")

    settings = load_settings(tmp_path)
    assert settings.invoicing.payment_terms_days == 45
    assert settings.pdf.backend == "weasyprint"
    assert settings.pdf.wkhtmltopdf_path == "/usr/local/bin/wkhtmltopdf"
    assert settings.log_level == "DEBUG"


def test_data_dir_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("INVOICING_DATA_DIR", str(tmp_path))
    assert load_settings().data_dir == tmp_path


def test_unreadable_settings_fall_back(tmp_path, caplog):
    (tmp_path / "settings.json").write_text("{oups", encoding="utf-8")
    settings = load_settings(tmp_path)
    assert settings.invoicing.payment_terms_days == 30
    assert "settings.json" in caplog.text
