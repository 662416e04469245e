# tests/test_json_tools.py
import json

from comicgen.lib.json_tools import (
    extract_first_json,
    normalize_dashes,
    repair_trailing_commas,
    strip_code_fences,
    strip_reasoning,
)

def test_extract_first_json_returns_first_of_two_objects():
    text = 'Sure! {"a": 1, "b": {"c": 2}} and also {"d": 3}'
    assert extract_first_json(text) == '{"a": 1, "b": {"c": 2}}'

def test_extract_first_json_ignores_braces_inside_strings():
    text = 'x {"s": "a } b { \\" }", "n": {"x": 1}} y'
    span = extract_first_json(text)
    assert json.loads(span) == {"s": 'a } b { " }', "n": {"x": 1}}

def test_extract_first_json_truncated_is_not_found():
    assert extract_first_json('{"spreads": [{"rightPanels": [') is None
    assert extract_first_json('{"a": {"b": 1}') is None

def test_extract_first_json_without_object():
    assert extract_first_json("no json here") is None
    assert extract_first_json("") is None

def test_strip_reasoning_removes_think_blocks():
    assert strip_reasoning('<think>plan {x}</think>\n{"a": 1}') == '{"a": 1}'
    # opening tag already stripped by the provider
    assert strip_reasoning('plan first...</think> {"a": 1}') == '{"a": 1}'

def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

def test_repair_trailing_commas():
    assert json.loads(repair_trailing_commas('{"a": [1, 2, ], "b": 3, }')) == {"a": [1, 2], "b": 3}

def test_normalize_dashes():
    assert normalize_dashes("Night—time") == "Night - time"
    assert normalize_dashes("a–b", "-") == "a-b"
    assert normalize_dashes(None) is None
