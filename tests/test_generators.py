"""Tests for the generator registry, Faker generators and naturalDate."""

import datetime

import pytest

from rowseed import clear_generators, list_generators, register_generator
from rowseed.generators import FakerGenerator, GeneratorRegistry, parse_natural_date
from rowseed.generators.faker_generator import FAKER_METHODS, register_faker_generators
from rowseed.generators.registry import default_registry, get_generator

NOW = datetime.datetime(2024, 5, 10, 15, 30, tzinfo=datetime.timezone.utc)


@pytest.fixture
def restore_registry():
    """Put the default Faker generators back after a test clears them."""
    yield
    clear_generators()
    register_faker_generators(default_registry())


def test_register_and_list(restore_registry):
    register_generator("sku", lambda seed: f"SKU-{seed % 1000:03d}")

    assert "sku" in list_generators()
    assert get_generator("sku")(1234) == "SKU-234"


def test_clear_generators(restore_registry):
    clear_generators()

    assert list_generators() == []
    assert get_generator("firstName") is None


def test_register_rejects_non_callable():
    registry = GeneratorRegistry()

    with pytest.raises(ValueError, match="must be callable"):
        registry.register("bad", "not a function")


def test_lookup_ignores_case_of_first_letter():
    registry = GeneratorRegistry()
    registry.register("firstName", lambda seed: "Ada")

    assert registry.get("FirstName") is registry.get("firstName")
    assert registry.get("FIRSTNAME") is None
    assert registry.get("") is None


def test_default_registry_has_faker_catalog():
    names = list_generators()

    for name in ("firstName", "lastName", "email", "company", "streetName", "uRL"):
        assert name in names


def test_faker_methods_exist():
    """Every catalog entry names a real Faker method."""
    generator = FakerGenerator("name")
    for method in FAKER_METHODS.values():
        assert callable(getattr(generator.faker, method))


def test_faker_generator_seeded():
    generator = FakerGenerator("email")

    assert generator(42) == generator(42)
    assert "@" in generator(42)


# ============================================================================
# naturalDate
# ============================================================================


@pytest.mark.parametrize(
    "expression,expected",
    [
        ("now", NOW),
        ("today", datetime.datetime(2024, 5, 10, tzinfo=datetime.timezone.utc)),
        ("tomorrow", datetime.datetime(2024, 5, 11, tzinfo=datetime.timezone.utc)),
        ("yesterday", datetime.datetime(2024, 5, 9, tzinfo=datetime.timezone.utc)),
        ("3_days_ago", NOW - datetime.timedelta(days=3)),
        ("in_2_hours", NOW + datetime.timedelta(hours=2)),
        ("1-week-from-now", NOW + datetime.timedelta(weeks=1)),
        ("an_hour_ago", NOW - datetime.timedelta(hours=1)),
        ("next_month", datetime.datetime(2024, 6, 10, 15, 30, tzinfo=datetime.timezone.utc)),
        ("last_year", datetime.datetime(2023, 5, 10, 15, 30, tzinfo=datetime.timezone.utc)),
    ],
)
def test_relative_expressions(expression, expected):
    assert parse_natural_date(expression, NOW) == expected


def test_absolute_date_takes_reference_timezone():
    parsed = parse_natural_date("2020-02-29", NOW)

    assert parsed == datetime.datetime(2020, 2, 29, tzinfo=datetime.timezone.utc)


def test_unknown_unit():
    with pytest.raises(ValueError, match="unknown time unit"):
        parse_natural_date("3_fortnights_ago", NOW)


def test_default_now_is_aware():
    assert parse_natural_date("now").tzinfo is not None
