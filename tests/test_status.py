from datetime import date, datetime

import pytest

from invoicing.errors import InvalidStatus, InvalidTransition, ValidationError
from invoicing.status import (
    apply_status_action, display_status, is_overdue, mark_unpaid, needs_overdue_refresh,
)

DUE = date(2024, 1, 1)
LATER = date(2024, 2, 1)


def test_paid_is_never_overdue():
    assert not is_overdue(DUE, "paid", LATER)


def test_due_today_is_not_overdue():
    assert not is_overdue(DUE, "sent", DUE)


def test_time_of_day_is_ignored():
    assert not is_overdue(datetime(2024, 1, 1, 23, 59), "sent", date(2024, 1, 1))


def test_scenario_sent_then_paid():
    assert display_status(DUE, "sent", LATER) == "overdue"
    new_status = apply_status_action("paid", DUE, "sent", LATER)
    assert new_status == "paid"
    assert display_status(DUE, new_status, LATER) == "paid"
    assert not is_overdue(DUE, new_status, LATER)


def test_unpaid_resolution():
    assert mark_unpaid(DUE, "paid", LATER) == "overdue"
    assert mark_unpaid(LATER, "draft", DUE) == "draft"
    assert mark_unpaid(LATER, "paid", DUE) == "sent"
    assert mark_unpaid(LATER, "overdue", DUE) == "sent"


def test_sent_only_from_draft():
    assert apply_status_action("sent", LATER, "draft", DUE) == "sent"
    assert apply_status_action("sent", DUE, "overdue", LATER) == "sent"
    with pytest.raises(InvalidTransition):
        apply_status_action("sent", LATER, "paid", DUE)


def test_draft_always_allowed():
    assert apply_status_action("draft", DUE, "paid", LATER) == "draft"


@pytest.mark.parametrize("value", ["overdue", "archived", "", None, 3])
def test_invalid_action(value):
    with pytest.raises(InvalidStatus) as exc:
        apply_status_action(value, DUE, "draft", LATER)
    assert isinstance(exc.value, ValidationError)


def test_needs_overdue_refresh():
    assert needs_overdue_refresh(DUE, "sent", LATER)
    assert needs_overdue_refresh(DUE, "draft", LATER)
    assert not needs_overdue_refresh(DUE, "overdue", LATER)
    assert not needs_overdue_refresh(DUE, "paid", LATER)
    assert not needs_overdue_refresh(LATER, "sent", DUE)
