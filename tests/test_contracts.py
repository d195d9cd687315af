"""
Tests for the field renderer dispatch (input contracts).
"""

import pytest
from dfe.backends.contracts import (
    CONTRACTS,
    FALLBACK_CONTRACT,
    ValueShape,
    contract_for,
    contract_for_type,
)
from dfe.model import STRUCTURAL_TYPES, FieldOption, FieldType, FieldValidation, FormField


def test_dispatch_is_total():
    assert set(CONTRACTS) == set(FieldType)


@pytest.mark.parametrize("field_type", sorted(STRUCTURAL_TYPES, key=lambda t: t.value))
def test_structural_types_take_no_value(field_type):
    contract = contract_for_type(field_type)
    assert contract.display_only
    assert contract.shape == ValueShape.NONE
    assert contract.coerce("anything") is None


class TestShapes:
    @pytest.mark.parametrize("field_type,shape", [
        (FieldType.SHORT_TEXT, ValueShape.TEXT),
        (FieldType.DATE, ValueShape.TEXT),
        (FieldType.TIME, ValueShape.TEXT),
        (FieldType.MULTIPLE_CHOICE, ValueShape.CHOICE),
        (FieldType.CHECKBOXES, ValueShape.CHOICE_MAP),
        (FieldType.NUMBER, ValueShape.NUMERIC_TEXT),
        (FieldType.CURRENCY, ValueShape.NUMERIC_TEXT),
        (FieldType.RATING, ValueShape.INTEGER),
        (FieldType.RANKING, ValueShape.ORDERED_LIST),
    ])
    def test_shape(self, field_type, shape):
        assert contract_for_type(field_type).shape == shape

    def test_rating_range(self):
        contract = contract_for_type(FieldType.RATING)
        assert (contract.min_value, contract.max_value) == (1, 5)

    def test_opinion_scale_range(self):
        contract = contract_for_type(FieldType.OPINION_SCALE)
        assert (contract.min_value, contract.max_value) == (0, 10)

    def test_empty_values(self):
        assert contract_for_type(FieldType.CHECKBOXES).empty_value == {}
        assert contract_for_type(FieldType.RANKING).empty_value == []
        assert contract_for_type(FieldType.EMAIL).empty_value == ""
        assert contract_for_type(FieldType.RATING).empty_value is None


class TestContractFor:
    def test_unknown_type_falls_back_to_short_text(self):
        contract = contract_for(FormField(id="f", type="hologram"))
        assert contract is FALLBACK_CONTRACT
        assert contract.widget == "text"

    def test_legacy_alias(self):
        assert contract_for(FormField(id="f", type="long_answer")).widget == "textarea"

    def test_slider_bounds_follow_validation(self):
        f = FormField(id="s", type=FieldType.SLIDER, validation=FieldValidation(min=10, max=20))
        contract = contract_for(f)
        assert (contract.min_value, contract.max_value) == (10, 20)
        assert contract_for_type(FieldType.SLIDER).max_value == 100


class TestCoerce:
    def test_numeric_text(self):
        contract = contract_for_type(FieldType.NUMBER)
        assert contract.coerce(12) == "12"
        assert contract.coerce(12.5) == "12.5"
        assert contract.coerce(" 7 ") == "7"

    def test_rating_to_integer(self):
        contract = contract_for_type(FieldType.RATING)
        assert contract.coerce("4") == 4
        assert contract.coerce("4.5") == "4.5"

    def test_checkbox_list_to_map(self):
        contract = contract_for_type(FieldType.CHECKBOXES)
        assert contract.coerce(["a", "b"]) == {"a": True, "b": True}

    def test_none_becomes_empty_value(self):
        assert contract_for_type(FieldType.CHECKBOXES).coerce(None) == {}

    def test_address_parts(self):
        contract = contract_for_type(FieldType.ADDRESS)
        assert contract.coerce({"city": "Leeds"}) == {
            "street": "", "city": "Leeds", "state": "", "postalCode": "", "country": "",
        }


class TestToggle:
    def test_toggle_returns_new_map(self):
        contract = contract_for_type(FieldType.CHECKBOXES)
        current = {"a": True}
        updated = contract.toggle(current, "b", True)
        assert updated == {"a": True, "b": True}
        assert current == {"a": True}
        assert contract.toggle(updated, "a", False) == {"a": False, "b": True}

    def test_toggle_rejects_other_shapes(self):
        with pytest.raises(TypeError):
            contract_for_type(FieldType.DROPDOWN).toggle("x", "y", True)


class TestDisplay:
    def test_option_labels(self):
        f = FormField(
            id="f",
            type=FieldType.CHECKBOXES,
            options=[FieldOption("1", "Forms", "forms"), FieldOption("2", "Charts", "charts")],
        )
        assert contract_for(f).display({"forms": True, "charts": True}, f) == "Forms, Charts"

    def test_rating(self):
        assert contract_for_type(FieldType.RATING).display(4) == "4/5"

    def test_password_masked(self):
        assert contract_for_type(FieldType.PASSWORD).display("secret") == "******"

    def test_empty(self):
        assert contract_for_type(FieldType.SHORT_TEXT).display("") == ""


def test_non_finite_numbers_are_not_coerced():
    contract = contract_for_type(FieldType.RATING)
    assert contract.coerce("nan") == "nan"
    assert contract.coerce("inf") == "inf"
