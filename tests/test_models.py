import pytest

from expense_ledger import validation
from expense_ledger.models import Expense


def make(**overrides):
    fields = dict(
        id=3,
        description="Groceries",
        amount=42.5,
        category="Food",
        date="2024-03-01",
        notes="weekly shop",
        is_recurring=True,
        payment_method="Card",
        location="Market St",
    )
    fields.update(overrides)
    return Expense.create(**fields)


def test_create_normalizes_text():
    exp = make(description="  Coffee ", category=" Food ", location="  ")
    assert exp.description == "Coffee"
    assert exp.category == "Food"
    assert exp.location == ""


def test_create_defaults():
    exp = Expense.create(id=1, description="Bus", amount=2, category="Transport")
    assert exp.date == validation.today()
    assert exp.payment_method == "Cash"
    assert exp.notes == ""
    assert exp.is_recurring is False


@pytest.mark.parametrize("overrides", [
    {"id": 0},
    {"description": "   "},
    {"category": ""},
    {"amount": 0},
    {"amount": -1},
    {"date": "2023-02-30"},
    {"notes": "a|b"},
])
def test_create_rejects_invalid(overrides):
    with pytest.raises(ValueError):
        make(**overrides)


def test_serialize_full_shape():
    assert make().serialize() == "3|Groceries|42.50|Food|2024-03-01|weekly shop|1|Card|Market St"


def test_round_trip():
    exp = make()
    assert Expense.deserialize(exp.serialize()) == exp


def test_round_trip_with_empty_optionals():
    exp = make(notes="", location="", is_recurring=False)
    assert Expense.deserialize(exp.serialize() + "\n") == exp


def test_deserialize_legacy_shape():
    exp = Expense.deserialize("7|Lunch|12.00|Food|2023-05-06")
    assert exp.id == 7
    assert exp.amount == 12.0
    assert exp.notes == ""
    assert exp.is_recurring is False
    assert exp.payment_method == "Cash"
    assert exp.location == ""


@pytest.mark.parametrize("line", [
    "",
    "1|Lunch|12.00|Food",
    "x|Lunch|12.00|Food|2023-05-06",
    "1|Lunch|twelve|Food|2023-05-06",
    "0|Lunch|12.00|Food|2023-05-06",
    "1|Lunch|-3|Food|2023-05-06",
    "1|Lunch|12.00|Food|2023-02-30",
    "1||12.00|Food|2023-05-06",
])
def test_deserialize_corrupt_lines(line):
    assert Expense.deserialize(line) is None


def test_amount_setter_rejects_non_positive():
    exp = make()
    assert exp.set_amount(0) is False
    assert exp.set_amount(-10) is False
    assert exp.amount == 42.5
    assert exp.set_amount(12.345678) is True
    assert exp.amount == 12.35


def test_date_setter_rejects_invalid():
    exp = make()
    assert exp.set_date("2023-02-30") is False
    assert exp.set_date("2023-13-01") is False
    assert exp.set_date("2024-03-05\n") is False
    assert exp.date == "2024-03-01"
    assert exp.set_date("2024-02-29") is True
    assert exp.date == "2024-02-29"


def test_text_setters():
    exp = make()
    assert exp.set_description("  ") is False
    assert exp.description == "Groceries"
    assert exp.set_category("x|y") is False
    assert exp.category == "Food"
    assert exp.set_notes("  ") is True
    assert exp.notes == ""
    assert exp.set_payment_method("") is True
    assert exp.payment_method == "Cash"


def test_copy():
    exp = make()
    dup = exp.copy(9)
    assert dup.id == 9
    assert dup.description == "Groceries (Copy)"
    assert dup.date == validation.today()
    assert (dup.amount, dup.category, dup.notes, dup.is_recurring, dup.payment_method, dup.location) == (
        exp.amount, exp.category, exp.notes, exp.is_recurring, exp.payment_method, exp.location)
    assert exp.description == "Groceries"


def test_to_dict_lists_every_field():
    exp = make()
    d = exp.to_dict()
    assert list(d) == ["id", "description", "amount", "category", "date",
                       "notes", "is_recurring", "payment_method", "location"]
    assert d["description"] == "Groceries"
