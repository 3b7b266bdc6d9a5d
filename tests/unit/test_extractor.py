import pytest

from floorwatch.errors import ExtractionError
from floorwatch.ingest.extractor import extract


def test_extract_nested_path_applies_multiplier():
    assert extract({"a": {"b": 5}}, ["a", "b"], 2) == pytest.approx(10.0)

def test_first_numeric_leaf_wins_before_path_exhausted():
    assert extract({"a": 7}, ["a", "b"], 2) == pytest.approx(14.0)

def test_marketplace_shapes():
    opensea = {"stats": {"floor_price": 1.25, "num_owners": 5000}}
    magiceden = {"symbol": "degods", "floorPrice": 250_000_000_000, "listedCount": 40}
    assert extract(opensea, ["stats", "floor_price"], 1) == pytest.approx(1.25)
    assert extract(magiceden, ["floorPrice"], 1e-9) == pytest.approx(250.0)

def test_missing_key_raises_with_diagnostics():
    with pytest.raises(ExtractionError) as ei:
        extract({"a": {"c": 1}}, ["a", "b"], 1, url="https://api.test/x")
    err = ei.value
    assert err.key == "b"
    assert err.value is None
    assert "https://api.test/x" in str(err)

@pytest.mark.parametrize("leaf", ["1.5", None, [1, 2], True])
def test_non_numeric_non_object_leaf_raises(leaf):
    with pytest.raises(ExtractionError) as ei:
        extract({"stats": {"floor_price": leaf}}, ["stats", "floor_price"], 1)
    assert ei.value.value == leaf

def test_path_exhausted_on_object_is_not_found():
    with pytest.raises(ExtractionError, match="floor not found"):
        extract({"a": {"b": {"c": 1}}}, ["a", "b"], 1)

def test_non_object_document_fails_at_first_key():
    with pytest.raises(ExtractionError):
        extract([{"a": 1}], ["a"], 1)

def test_zero_is_a_valid_floor():
    assert extract({"floor": 0}, ["floor"], 3) == 0.0

def test_integer_too_large_for_float_raises():
    with pytest.raises(ExtractionError) as ei:
        extract({"floor": 10**400}, ["floor"], 1e-9)
    assert ei.value.key == "floor"
    assert ei.value.value == 10**400
