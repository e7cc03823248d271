from __future__ import annotations
import argparse
import logging
import sys

from PySide6.QtWidgets import QApplication

from invoicing.config import load_settings
from invoicing.models.common import Account
from invoicing.services.invoice_service import InvoiceService
from invoicing.services.reconciliation import OverdueRefresher
from invoicing.storage.store import JsonStore
from invoicing.ui.preview_dialog import InvoicePreviewDialog


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Aperçu d'une facture")
    parser.add_argument("account_id")
    parser.add_argument("invoice_id")
    parser.add_argument("--data-dir", default=None)
    args = parser.parse_args(argv)

    settings = load_settings(args.data_dir)
    logging.basicConfig(level=settings.log_level)
    service = InvoiceService(JsonStore(settings.data_dir, settings.numbering, backup_enabled=True),
                             settings.invoicing, settings.pdf)
    refresher = OverdueRefresher(service.reconcile_overdue)

    app = QApplication(sys.argv[:1])
    dlg = InvoicePreviewDialog(service, Account(id=args.account_id), args.invoice_id, refresher)
    dlg.exec()
    refresher.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
