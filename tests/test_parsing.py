import pytest

from domain.errors import LLMParseError
from domain.schemas import CVEvaluationPayload, SummaryPayload
from infra.llm.parsing import ParseOk, SchemaError, extract_json, parse_llm_response


def test_plain_json():
    assert extract_json('{"a": 1}') == {"a": 1}


def test_fenced_json():
    assert extract_json('```json\n{"a": 1}\n```') == {"a": 1}
    assert extract_json('```\n{"a": 2}\n```') == {"a": 2}


def test_json_wrapped_in_prose():
    raw = 'Sure! Here is the result: {"overall_summary": "Looks {great}"} Hope it helps.'
    assert extract_json(raw) == {"overall_summary": "Looks {great}"}


def test_unparseable_text_raises():
    with pytest.raises(LLMParseError):
        extract_json("no json here")


def test_parse_ok_is_typed():
    result = parse_llm_response('{"overall_summary": "Fine."}', SummaryPayload)
    assert isinstance(result, ParseOk)
    assert result.unwrap().overall_summary == "Fine."


def test_schema_error_carries_details():
    result = parse_llm_response('{"technical_skills": 9, "feedback": "x"}', CVEvaluationPayload)
    assert isinstance(result, SchemaError)
    assert result.details
    with pytest.raises(LLMParseError) as exc_info:
        result.unwrap()
    assert exc_info.value.details == result.details


def test_non_object_json_is_a_schema_error():
    assert isinstance(parse_llm_response("[1, 2]", SummaryPayload), SchemaError)
