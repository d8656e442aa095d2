"""Tests for study_guide/utils/merge.py, the schema-driven merge combinator."""

from typing import List, Optional

from pydantic import BaseModel, Field

from study_guide.utils.merge import merge_with_default


class _Inner(BaseModel):
    label: str = "inner"
    count: int = 1


class _Item(BaseModel):
    id: str
    value: int = 0
    note: str = ""


class _Outer(BaseModel):
    name: str = "default"
    score: int = Field(default=50, ge=0, le=100)
    inner: _Inner = Field(default_factory=_Inner)
    tags: List[str] = Field(default_factory=list)
    items: List[_Item] = Field(default_factory=list)
    optional: Optional[str] = None


def _fallback():
    return _Outer(tags=["a", "b"], items=[_Item(id="x", value=1, note="keep")])


# ---------------------------------------------------------------------------
# Non-object candidates
# ---------------------------------------------------------------------------

class TestNonObjectCandidate:

    def test_none_returns_copy(self):
        fallback = _fallback()
        result = merge_with_default(None, fallback)
        assert result == fallback
        assert result is not fallback

    def test_list_returns_copy(self):
        assert merge_with_default([1, 2], _fallback()) == _fallback()


# ---------------------------------------------------------------------------
# Field-by-field merge
# ---------------------------------------------------------------------------

class TestFieldMerge:

    def test_valid_scalars_win(self):
        result = merge_with_default({"name": "model", "score": 90}, _fallback())
        assert result.name == "model"
        assert result.score == 90

    def test_invalid_scalars_fall_back(self):
        result = merge_with_default({"name": {"nested": True}, "score": 150}, _fallback())
        assert result.name == "default"
        assert result.score == 50

    def test_nested_model_merges_partially(self):
        result = merge_with_default({"inner": {"count": 7}}, _fallback())
        assert result.inner == _Inner(label="inner", count=7)

    def test_nested_non_dict_keeps_default(self):
        result = merge_with_default({"inner": "oops"}, _fallback())
        assert result.inner == _Inner()

    def test_non_list_keeps_default_list(self):
        result = merge_with_default({"tags": "a,b,c"}, _fallback())
        assert result.tags == ["a", "b"]

    def test_list_replaced_and_invalid_items_dropped(self):
        result = merge_with_default({"tags": ["z", 3, None]}, _fallback())
        assert result.tags == ["z"]

    def test_list_items_with_matching_id_merge_onto_default(self):
        result = merge_with_default({"items": [{"id": "x", "value": 5}, {"id": "y"}, {"value": 2}]}, _fallback())
        assert result.items == [_Item(id="x", value=5, note="keep"), _Item(id="y")]

    def test_missing_fields_come_from_fallback(self):
        result = merge_with_default({"optional": "set"}, _fallback())
        assert result.optional == "set"
        assert result.items == _fallback().items

    def test_fallback_is_not_mutated(self):
        fallback = _fallback()
        result = merge_with_default({"tags": ["new"]}, fallback)
        result.items[0].note = "changed"
        assert fallback.tags == ["a", "b"]
        assert fallback.items[0].note == "keep"
