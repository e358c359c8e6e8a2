import types

import pytest

from tag_overlay.errors import InvalidTagError
from tag_overlay.tag_model import EditorDraft, Tag, TransientTag, coerce_tags


def test_coerce_accepts_mappings_records_and_objects():
    tags = coerce_tags(
        [
            {"id": "alice", "x": 0.2, "y": 0.3},
            Tag("bob", 0.5, 0.5),
            types.SimpleNamespace(id="carol", x=1, y=0),
        ]
    )
    assert tags == (Tag("alice", 0.2, 0.3), Tag("bob", 0.5, 0.5), Tag("carol", 1.0, 0.0))
    assert isinstance(tags[2].x, float)


def test_coerce_none_is_empty():
    assert coerce_tags(None) == ()


def test_coerce_keeps_out_of_range_coordinates():
    assert coerce_tags([{"id": "edge", "x": 1.2, "y": -0.1}]) == (Tag("edge", 1.2, -0.1),)


@pytest.mark.parametrize(
    "record,message",
    [
        ({"x": 0.1, "y": 0.1}, "missing 'id'"),
        ({"id": "", "x": 0.1, "y": 0.1}, "non-empty string"),
        ({"id": 7, "x": 0.1, "y": 0.1}, "non-empty string"),
        ({"id": "a", "y": 0.1}, "missing 'x'"),
        ({"id": "a", "x": True, "y": 0.1}, "'x' must be a number"),
        ({"id": "a", "x": 0.1, "y": "0.2"}, "'y' must be a number"),
        ({"id": "a", "x": float("nan"), "y": 0.1}, "finite"),
    ],
)
def test_coerce_rejects_malformed_records(record, message):
    with pytest.raises(InvalidTagError) as excinfo:
        coerce_tags([{"id": "ok", "x": 0, "y": 0}, record])
    assert message in str(excinfo.value)
    assert excinfo.value.index == 1


def test_coerce_rejects_duplicate_ids():
    with pytest.raises(InvalidTagError, match="duplicate id 'alice'"):
        coerce_tags([{"id": "alice", "x": 0, "y": 0}, {"id": "alice", "x": 1, "y": 1}])


def test_coerce_rejects_a_single_mapping():
    with pytest.raises(InvalidTagError):
        coerce_tags({"id": "alice", "x": 0, "y": 0})


def test_transient_tag_shape():
    transient = TransientTag("alice", 0.2, 0.3, token="t1")
    assert transient.transient is True
    assert transient.to_record() == {"id": "alice", "x": 0.2, "y": 0.3}
    assert transient.as_tag() == Tag("alice", 0.2, 0.3)


def test_tag_matches_within_tolerance():
    assert Tag("a", 0.2, 0.3).matches(Tag("a", 0.2004, 0.2996), tolerance=1e-3)
    assert not Tag("a", 0.2, 0.3).matches(Tag("a", 0.25, 0.3), tolerance=1e-3)
    assert not Tag("a", 0.2, 0.3).matches(Tag("b", 0.2, 0.3), tolerance=1e-3)


def test_editor_draft_updates_are_copies():
    draft = EditorDraft(0.1, 0.2)
    typed = draft.with_value("al")
    moved = typed.moved_to(0.5, 0.6)
    assert draft.value == ""
    assert typed == EditorDraft(0.1, 0.2, "al")
    assert moved == EditorDraft(0.5, 0.6, "al")
