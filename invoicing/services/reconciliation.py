from __future__ import annotations
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import date
from typing import Callable, Optional

from invoicing.errors import InvoicingError
from invoicing.models.common import Account

logger = logging.getLogger(__name__)

Reconcile = Callable[[Account, str, Optional[date]], bool]


class OverdueRefresher:
    """
    Rafraîchissement "fire-and-forget" du statut overdue stocké.
    Jamais bloquant, jamais réessayé ; les échecs sont seulement journalisés.
    """

    def __init__(self, reconcile: Reconcile, max_workers: int = 1):
        self._reconcile = reconcile
        self._executor: Optional[ThreadPoolExecutor] = None
        self._max_workers = max_workers
        self._lock = threading.Lock()

    def run(self, account: Account, invoice_id: str, today: Optional[date] = None) -> None:
        try:
            if self._reconcile(account, invoice_id, today):
                logger.info("Facture %s passée en overdue", invoice_id)
        except InvoicingError as e:
            logger.warning("Rafraîchissement overdue ignoré pour %s : %s", invoice_id, e)

    def schedule(self, account: Account, invoice_id: str, today: Optional[date] = None) -> Future:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self._max_workers,
                                                    thread_name_prefix="overdue-refresh")
            return self._executor.submit(self.run, account, invoice_id, today)

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)
