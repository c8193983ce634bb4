from __future__ import annotations

import json

import pytest

from conftest import FailingGenerator, make_reply
from ghostbuster.audit import (
    FALLBACK_SCORE,
    audit_job_post,
    build_prompt,
    parse_response,
    validate_request,
)
from ghostbuster.errors import LocalValidationError, ServiceError
from ghostbuster.generator import StaticGenerator
from ghostbuster.models import AuditRequest


# -------------------------
# REQUEST BUILDER
# -------------------------
@pytest.mark.parametrize("title,requirements", [
    ("", "Some duties"),
    ("Engineer", ""),
    ("   ", "Some duties"),
    ("Engineer", "\n\t "),
])
def test_missing_required_fields_never_call_service(title, requirements):
    gen = StaticGenerator(make_reply())
    with pytest.raises(LocalValidationError, match="mandatory"):
        audit_job_post(AuditRequest(title=title, requirements=requirements), gen)
    assert gen.prompts == []


def test_unknown_enum_values_rejected(job):
    job.industry = "Aerospace"
    with pytest.raises(LocalValidationError):
        validate_request(job)


def test_prompt_embeds_every_field(job):
    prompt = build_prompt(job)
    for value in (job.title, job.company, job.location, job.employment_type,
                  job.industry, job.requirements):
        assert value in prompt
    assert '"score"' in prompt and '"factors"' in prompt
    assert "Strictly return valid JSON" in prompt


def test_prompt_keeps_braces_in_user_text():
    req = AuditRequest(title="Dev {lead}", requirements="Use {{templates}}")
    prompt = build_prompt(req)
    assert "Dev {lead}" in prompt
    assert "Use {{templates}}" in prompt


# -------------------------
# RESPONSE VALIDATOR
# -------------------------
def test_parse_valid_reply():
    result = parse_response(make_reply(score=0.42))
    assert result.score == pytest.approx(0.42)
    assert result.fallback_applied is False
    assert [f.name for f in result.factors] == ["Stale Keywords", "No Salary"]


@pytest.mark.parametrize("score", [None, "high", "0.9", True, [0.9], {"v": 1}])
def test_non_numeric_score_falls_back(score):
    reply = json.loads(make_reply())
    if score is None:
        reply.pop("score")
    else:
        reply["score"] = score
    result = parse_response(json.dumps(reply))
    assert result.score == FALLBACK_SCORE == 0.5
    assert result.fallback_applied is True


def test_integer_score_is_numeric():
    result = parse_response(make_reply(score=1))
    assert result.score == 1.0
    assert result.fallback_applied is False


def test_out_of_range_score_is_clamped():
    assert parse_response(make_reply(score=1.7)).score == 1.0
    assert parse_response(make_reply(score=-0.2)).score == 0.0


@pytest.mark.parametrize("text", [None, "", "   \n"])
def test_empty_reply_is_service_error(text):
    with pytest.raises(ServiceError, match="No response"):
        parse_response(text)


@pytest.mark.parametrize("text", ["definitely not json", "{broken", "[1, 2, 3]", "42"])
def test_unparseable_reply_is_service_error(text):
    with pytest.raises(ServiceError):
        parse_response(text)


def test_code_fenced_reply_is_accepted():
    text = "Here you go:\n```json\n" + make_reply(score=0.15) + "\n```"
    assert parse_response(text).score == pytest.approx(0.15)


def test_malformed_factors_are_tolerated():
    reply = make_reply(factors=[{"name": "Vague"}, {"impact": "lots"}, "odd", {"impact": 3}])
    factors = parse_response(reply).factors
    assert len(factors) == 4
    assert factors[0].name == "Vague" and factors[0].impact == 0.0 and factors[0].reason == ""
    assert factors[1].name == "" and factors[1].impact == 0.0
    assert factors[2].name == "odd"
    assert factors[3].impact == 1.0


def test_factors_not_a_list_become_empty():
    assert parse_response(make_reply(factors={"name": "x"})).factors == []


# -------------------------
# END TO END
# -------------------------
def test_audit_sends_prompt_and_returns_result(job, generator):
    result = audit_job_post(job, generator)
    assert len(generator.prompts) == 1
    assert job.title in generator.prompts[0]
    assert result.score == pytest.approx(0.78)


def test_transport_failure_becomes_service_error(job):
    gen = FailingGenerator(ConnectionError("connection reset"))
    with pytest.raises(ServiceError, match="connection reset"):
        audit_job_post(job, gen)
    assert gen.calls == 1


def test_service_error_passes_through_unchanged(job):
    original = ServiceError("GEMINI_API_KEY is not set")
    with pytest.raises(ServiceError) as info:
        audit_job_post(job, FailingGenerator(original))
    assert info.value is original
