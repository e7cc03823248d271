"""
Cycle de vie d'une facture : draft -> sent -> paid.

"overdue" est un état d'affichage dérivé de l'échéance ; il n'est stocké que
par la réconciliation explicite (InvoiceService.reconcile_overdue).
"""
from __future__ import annotations
from datetime import date, datetime
from typing import Optional

from invoicing.errors import InvalidStatus, InvalidTransition
from invoicing.models.invoice import STATUS_ACTIONS


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def is_overdue(due_date: date | datetime, status: str, today: Optional[date] = None) -> bool:
    if status == "paid":
        return False
    return _as_date(due_date) < _as_date(today or date.today())


def display_status(due_date: date | datetime, status: str, today: Optional[date] = None) -> str:
    return "overdue" if is_overdue(due_date, status, today) else status


def needs_overdue_refresh(due_date: date | datetime, status: str, today: Optional[date] = None) -> bool:
    return status != "overdue" and is_overdue(due_date, status, today)


def mark_paid(current: str) -> str:
    return "paid"


def mark_unpaid(due_date: date | datetime, current: str, today: Optional[date] = None) -> str:
    # Simplification conservée : l'état antérieur n'est pas restauré,
    # tout ce qui n'était pas "draft" redevient "sent".
    if _as_date(due_date) < _as_date(today or date.today()):
        return "overdue"
    if current == "draft":
        return "draft"
    return "sent"


def mark_sent(current: str) -> str:
    # "overdue" stocké ne bloque pas le retour à "sent"
    if current not in ("draft", "overdue"):
        raise InvalidTransition(current, "sent")
    return "sent"


def mark_draft(current: str) -> str:
    return "draft"


def apply_status_action(action: object, due_date: date | datetime, current: str,
                        today: Optional[date] = None) -> str:
    """Nouveau statut stocké pour une action {draft, sent, paid, unpaid}."""
    if not isinstance(action, str) or action not in STATUS_ACTIONS:
        raise InvalidStatus(action)
    if action == "paid":
        return mark_paid(current)
    if action == "unpaid":
        return mark_unpaid(due_date, current, today)
    if action == "sent":
        return mark_sent(current)
    return mark_draft(current)
