from __future__ import annotations
from typing import Optional

from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QTextBrowser,
    QFileDialog, QMessageBox
)

from invoicing.errors import InvoicingError
from invoicing.models.common import Account
from invoicing.rendering.html import render_preview_html
from invoicing.rendering.pdf import pdf_filename, write_pdf
from invoicing.services.invoice_service import InvoiceService
from invoicing.services.reconciliation import OverdueRefresher

STATUS_LABELS = {"draft": "Brouillon", "sent": "Envoyée", "paid": "Payée", "overdue": "En retard"}


class InvoicePreviewDialog(QDialog):
    """Aperçu à l'écran : même arbre de document que l'export PDF."""

    def __init__(self, service: InvoiceService, account: Account, invoice_id: str,
                 refresher: Optional[OverdueRefresher] = None, parent=None):
        super().__init__(parent)
        self.service = service
        self.account = account
        self.invoice_id = invoice_id
        self.refresher = refresher
        self.resize(900, 1000)
        self.setModal(True)

        self.lbl_status = QLabel()
        self.browser = QTextBrowser()

        btn_paid = QPushButton("Marquer payée")
        btn_unpaid = QPushButton("Marquer impayée")
        btn_sent = QPushButton("Marquer envoyée")
        btn_dup = QPushButton("Dupliquer")
        btn_pdf = QPushButton("Exporter PDF")
        btn_close = QPushButton("Fermer")

        bar = QHBoxLayout()
        bar.addWidget(self.lbl_status); bar.addStretch(1)
        for b in (btn_paid, btn_unpaid, btn_sent, btn_dup, btn_pdf, btn_close):
            bar.addWidget(b)

        lay = QVBoxLayout(self)
        lay.addLayout(bar)
        lay.addWidget(self.browser, 1)

        btn_paid.clicked.connect(lambda: self._set_status("paid"))
        btn_unpaid.clicked.connect(lambda: self._set_status("unpaid"))
        btn_sent.clicked.connect(lambda: self._set_status("sent"))
        btn_dup.clicked.connect(self._duplicate)
        btn_pdf.clicked.connect(self._export_pdf)
        btn_close.clicked.connect(self.accept)

        self._refresh()

    def _refresh(self):
        view = self.service.view(self.account, self.invoice_id)
        if view.needs_refresh and self.refresher:
            self.refresher.schedule(self.account, self.invoice_id)
        self.setWindowTitle(f"Facture {view.invoice.reference} - v{view.invoice.version}")
        self.lbl_status.setText(f"Statut : {STATUS_LABELS.get(view.display_status, view.display_status)}")
        self._document = view.document()
        self.browser.setHtml(render_preview_html(self._document))

    def _set_status(self, action: str):
        try:
            self.service.update_status(self.account, self.invoice_id, action)
        except InvoicingError as e:
            QMessageBox.warning(self, "Statut", str(e))
            return
        self._refresh()

    def _duplicate(self):
        try:
            inv = self.service.duplicate(self.account, self.invoice_id)
        except InvoicingError as e:
            QMessageBox.warning(self, "Duplication", str(e))
            return
        QMessageBox.information(self, "Duplication", f"Facture {inv.reference} créée.")

    def _export_pdf(self):
        out_dir = QFileDialog.getExistingDirectory(self, f"Exporter {pdf_filename(self._document.reference)}")
        if not out_dir:
            return
        try:
            path = write_pdf(self._document, out_dir, self.service.pdf_settings)
        except InvoicingError as e:
            QMessageBox.critical(self, "Export PDF", str(e))
            return
        QMessageBox.information(self, "Export PDF", f"PDF généré : {path}")
