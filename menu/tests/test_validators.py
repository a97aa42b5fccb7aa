import pytest
from pydantic import ValidationError
from menu.utilities.validators import ImportRecord, MenuItemInput, MenuItemUpdate, describe_errors


def test_item_input_strips_and_defaults():
    item = MenuItemInput(name="  Fish Taco ", price=4.5, category=" Tacos ")
    assert (item.name, item.category, item.description) == ("Fish Taco", "Tacos", "")
    assert item.available is True
    assert item.ingredients == []


@pytest.mark.parametrize("data", [
    {"name": "", "price": 1, "category": "Tacos"},
    {"name": "Taco", "price": 0, "category": "Tacos"},
    {"name": "Taco", "price": 1, "category": "   "},
    {"name": "Taco", "price": 1, "category": "Tacos", "spice_level": 6},
    {"name": "Taco", "price": 1, "category": "Tacos", "ingredient_based": True},
    {"name": "Taco", "price": 1, "category": "Tacos", "ingredients": [{"ingredient_id": "cilantro", "quantity": 0}]},
])
def test_item_input_rejects(data):
    with pytest.raises(ValidationError):
        MenuItemInput(**data)


def test_update_rejects_unknown_fields_and_blank_name():
    with pytest.raises(ValidationError):
        MenuItemUpdate(colour="red")
    with pytest.raises(ValidationError):
        MenuItemUpdate(name="  ")
    assert MenuItemUpdate(price=2.0).model_dump(exclude_none=True) == {"price": 2.0}


def test_import_record_is_lenient_with_numbers():
    record = ImportRecord(name="Elote", category="Sides", price="abc", popularity="7.9", available="TRUE")
    assert (record.price, record.popularity, record.available) == (0.0, 7, True)
    assert record.has_required()
    assert not ImportRecord(name="Elote").has_required()
    assert not ImportRecord(name="   ", category="Sides").has_required()
    assert not ImportRecord(name="Elote", category="\t").has_required()
    assert ImportRecord(available="no").available is False


def test_import_record_negative_price():
    with pytest.raises(ValidationError):
        ImportRecord(name="Elote", category="Sides", price=-1)


def test_describe_errors_names_fields():
    with pytest.raises(ValidationError) as info:
        MenuItemInput(name="", price=-2, category="Tacos")
    message = describe_errors(info.value)
    assert "name" in message
    assert "price" in message
