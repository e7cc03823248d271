import pytest

from invoicing.references import (
    bump_version, generate_client_reference, generate_invoice_reference, generate_reference,
    next_reference, parse_client_reference, parse_invoice_reference, parse_reference,
)


def test_first_reference_is_one():
    assert generate_reference("F", 0) == "F-000001"
    assert generate_client_reference(0) == "C-000001"


def test_generate_pads_to_six_digits():
    assert generate_invoice_reference(66) == "F-000067"


def test_parse():
    assert parse_invoice_reference("F-000067") == 67
    assert parse_reference("garbage") == 0
    assert parse_reference(None) == 0
    assert parse_client_reference("F-000067") == 0


@pytest.mark.parametrize("n", [0, 1, 41, 999998])
def test_parse_inverts_generate(n):
    assert parse_reference(generate_reference("F", n), "F") == n + 1


def test_next_reference_uses_max_sequence():
    assert next_reference("F", ["F-000003", "F-000010", "F-000002", "manual"]) == "F-000011"
    assert next_reference("F", []) == "F-000001"


def test_bump_version():
    assert bump_version("1.0") == "1.1"
    assert bump_version("1.1") == "1.2"
    assert bump_version("1.9") == "2.0"
    assert bump_version(None) == "1.1"
