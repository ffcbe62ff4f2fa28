import re
from datetime import UTC, datetime

import pytest

from academy.domain.identifiers import (
    generate_certificate_no,
    generate_reference,
    generate_slug,
    to_base36,
)

NOW = datetime(2025, 1, 15, 10, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    "title,slug",
    [
        ("Price Action Basics", "price-action-basics"),
        ("  Options -- Greeks & Hedging!  ", "options-greeks-hedging"),
        ("Nifty 50: Weekly Setup", "nifty-50-weekly-setup"),
        ("", ""),
        (None, ""),
    ],
)
def test_generate_slug(title, slug):
    assert generate_slug(title) == slug


def test_to_base36():
    assert to_base36(0) == "0"
    assert to_base36(35) == "z"
    assert to_base36(36) == "10"
    with pytest.raises(ValueError):
        to_base36(-1)


def test_reference_embeds_timestamp():
    ref = generate_reference("ORD", NOW)
    millis = int(NOW.timestamp() * 1000)
    assert re.fullmatch(rf"ORD-{millis}-[A-Z0-9]{{9}}", ref)


def test_references_are_unique():
    assert generate_reference("ORD", NOW) != generate_reference("ORD", NOW)


def test_certificate_number_format():
    no = generate_certificate_no(NOW)
    assert re.fullmatch(r"CERT-[0-9A-Z]+-[0-9A-F]{8}", no)
    assert no.split("-")[1] == to_base36(int(NOW.timestamp() * 1000)).upper()
