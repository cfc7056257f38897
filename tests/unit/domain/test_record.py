from reportwriter.domain.record import (
    NestedValue,
    RawRow,
    Record,
    ScalarValue,
    Separator,
    decode_entry,
)


def test_decode_entry_tags_mappings_as_records() -> None:
    entry = decode_entry({"Alpha": "A1", "Echo": {"Foxtrot": "F1", "Hotel": 2}})

    assert isinstance(entry, Record)
    assert entry.get("Alpha") == ScalarValue("A1")
    assert entry.get("Echo") == NestedValue({"Foxtrot": "F1", "Hotel": 2})
    assert entry.bold is False
    assert list(entry.fields) == ["Alpha", "Echo"]


def test_bold_key_is_a_flag_not_a_field() -> None:
    entry = decode_entry({"Alpha": "A1", "_bold": True})

    assert entry.bold is True
    assert "_bold" not in entry
    assert len(entry) == 1


def test_separator_and_raw_rows() -> None:
    assert decode_entry("---") == Separator()
    assert decode_entry(["a", 1, None]) == RawRow(("a", 1, None))


def test_unusable_values_decode_to_none() -> None:
    assert decode_entry("hello") is None
    assert decode_entry(12) is None
    assert decode_entry(None) is None


def test_list_values_are_joined_and_deep_values_become_json() -> None:
    entry = decode_entry(
        {
            "Tags": ["x", "y", 3],
            "Meta": [{"k": 1}],
            "Echo": {"Foxtrot": {"deep": True}},
        }
    )

    assert entry.get("Tags") == ScalarValue("x, y, 3")
    assert entry.get("Meta") == ScalarValue('[{"k": 1}]')
    assert entry.get("Echo").values["Foxtrot"] == '{"deep": true}'
