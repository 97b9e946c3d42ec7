from __future__ import annotations

from orbit_sync.schemas.task_parameters import TaskParameters


def test_missing_keys_become_empty_strings() -> None:
    params = TaskParameters.from_variables({"workplace_slug": {"type": "String", "value": "acme"}})

    assert params.workplace_slug == "acme"
    assert params.direction == ""
    assert params.items == ""
    assert params.sort_string == ""
    assert params.source_token == ""
    assert params.base_id == ""
    assert params.table_name == ""
    assert params.dest_token == ""
    assert params.source_query == ""


def test_no_variables_at_all() -> None:
    assert TaskParameters.from_variables(None) == TaskParameters()
    assert TaskParameters.from_variables({}) == TaskParameters()


def test_accepts_unwrapped_values() -> None:
    params = TaskParameters.from_variables({"direction": "asc", "sort_string": "name"})

    assert params.direction == "asc"
    assert params.sort_string == "name"


def test_null_and_wrong_typed_values_fall_back_to_empty() -> None:
    params = TaskParameters.from_variables(
        {
            "direction": {"type": "Null", "value": None},
            "sort_string": {"type": "Boolean", "value": True},
            "base_id": {"type": "Json", "value": {"nested": 1}},
            "table_name": {"type": "Double", "value": 1.5},
        }
    )

    assert params.direction == ""
    assert params.sort_string == ""
    assert params.base_id == ""
    assert params.table_name == ""


def test_items_accepts_integer_variables() -> None:
    params = TaskParameters.from_variables({"items": {"type": "Integer", "value": 25}})
    assert params.items == "25"

    params = TaskParameters.from_variables({"items": {"type": "Boolean", "value": False}})
    assert params.items == ""


def test_strings_are_stripped() -> None:
    params = TaskParameters.from_variables({"table_name": {"value": "  Table 1 "}})
    assert params.table_name == "Table 1"


def test_legacy_variable_names_are_aliases() -> None:
    params = TaskParameters.from_variables(
        {
            "Orbit_token": {"value": "orbit-secret"},
            "airtable_token": {"value": "airtable-secret"},
            "Orbit_query": {"value": "q"},
        }
    )

    assert params.source_token == "orbit-secret"
    assert params.dest_token == "airtable-secret"
    assert params.source_query == "q"


def test_canonical_name_wins_over_legacy_alias() -> None:
    params = TaskParameters.from_variables(
        {"source_token": {"value": "new"}, "Orbit_token": {"value": "old"}}
    )
    assert params.source_token == "new"


def test_redacted_masks_tokens() -> None:
    params = TaskParameters(source_token="a", dest_token="", workplace_slug="acme")
    redacted = params.redacted()

    assert redacted["source_token"] == "***"
    assert redacted["dest_token"] == ""
    assert redacted["workplace_slug"] == "acme"
