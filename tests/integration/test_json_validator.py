import pytest

from core.json_validator import EventResponseValidator, JSONValidationError


def test_parses_clean_structured_output():
    raw = '{"relevant_events": [{"id": 0, "title": "Wine Walk", "reason": "public"}]}'
    items = EventResponseValidator.validate_and_parse(raw, "gatekeeper")
    assert items == [{"id": 0, "title": "Wine Walk", "reason": "public"}]


def test_extracts_json_from_code_fence_and_prose():
    raw = 'Here you go:\n```json\n{"events": [{"id": 1, "event_name": "Fair"}]}\n```\nThanks'
    items = EventResponseValidator.validate_and_parse(raw, "enrichment")
    assert items == [{"id": 1, "event_name": "Fair"}]


def test_accepts_bare_list():
    raw = '```json\n[{"id": 0}, {"id": 1}]\n```'
    assert EventResponseValidator.validate_and_parse(raw, "gatekeeper") == [{"id": 0}, {"id": 1}]


def test_repairs_trailing_commas_and_smart_quotes():
    raw = '{“events”: [{"id": 0, "event_name": "Fair",},]}'
    items = EventResponseValidator.validate_and_parse(raw, "enrichment")
    assert items == [{"id": 0, "event_name": "Fair"}]


def test_drops_non_object_entries():
    raw = '{"events": [{"id": 0}, "junk", 3]}'
    assert EventResponseValidator.validate_and_parse(raw, "enrichment") == [{"id": 0}]


@pytest.mark.parametrize("raw", [
    "",
    "   ",
    "the model refused",
    '{"something_else": []}',
    '{"relevant_events": "none"}',
])
def test_unusable_output_raises(raw):
    with pytest.raises(JSONValidationError):
        EventResponseValidator.validate_and_parse(raw, "gatekeeper")


def test_unknown_analysis_type():
    with pytest.raises(ValueError):
        EventResponseValidator.validate_and_parse("{}", "novelty")
