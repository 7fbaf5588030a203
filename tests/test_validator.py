from __future__ import annotations

import pytest

from qse_architect.errors import SchemaError
from qse_architect.gates.validator import get_parameter, get_welfare, validate_result


def test_valid_result_is_returned_unchanged(result):
    value = result()
    assert validate_result(value) is value


def test_total_welfare_is_optional(result):
    value = result()
    del value["totalWelfare"]
    assert validate_result(value) is value
    assert "totalWelfare" not in value


def test_missing_parameters_is_rejected(result):
    value = result()
    del value["parameters"]
    with pytest.raises(SchemaError):
        validate_result(value)


def test_parameters_must_be_a_mapping(result):
    with pytest.raises(SchemaError):
        validate_result(result(parameters=[0.3, 4.0]))


@pytest.mark.parametrize("value", [None, [], "locations", 3])
def test_top_level_must_be_an_object(value):
    with pytest.raises(SchemaError):
        validate_result(value)


def test_locations_must_be_a_list(result):
    with pytest.raises(SchemaError):
        validate_result(result(locations={"1": {}}))
    value = result()
    del value["locations"]
    with pytest.raises(SchemaError):
        validate_result(value)


@pytest.mark.parametrize(
    "field", ["id", "name", "population", "wages", "rents", "amenity", "productivity"]
)
def test_location_missing_field_is_rejected(result, location, field):
    record = location("1")
    del record[field]
    with pytest.raises(SchemaError) as info:
        validate_result(result([record]))
    assert "locations/0" in str(info.value)


def test_non_numeric_location_field_is_rejected(result, location):
    with pytest.raises(SchemaError):
        validate_result(result([location("1", wages="ten")]))
    with pytest.raises(SchemaError):
        validate_result(result([location("1", population=True)]))


def test_numeric_id_is_rejected(result, location):
    with pytest.raises(SchemaError):
        validate_result(result([location(1)]))


def test_schema_error_carries_step_and_user_message(result):
    value = result()
    del value["parameters"]
    with pytest.raises(SchemaError) as info:
        validate_result(value, step="generate_data")
    assert info.value.step == "generate_data"
    assert info.value.user_message().startswith("generate_data failed: could not parse result")


def test_parameter_access_tolerates_missing_keys(result):
    value = result(parameters={"alpha": 0.3, "label": "x"})
    assert get_parameter(value, "alpha") == 0.3
    assert get_parameter(value, "sigma") is None
    assert get_parameter(value, "label") is None


def test_welfare_access(result):
    assert get_welfare(result()) == 1000.0
    assert get_welfare(None) is None
    value = result()
    del value["totalWelfare"]
    assert get_welfare(value) is None
