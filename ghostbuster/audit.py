"""Build the ghost-job audit prompt and normalize the service's reply."""
from __future__ import annotations

import json
from typing import Any

from ghostbuster.errors import LocalValidationError, ServiceError
from ghostbuster.generator import TextGenerator
from ghostbuster.log import get_logger
from ghostbuster.models import (
    EMPLOYMENT_TYPES,
    INDUSTRIES,
    AuditRequest,
    AuditResult,
    RiskFactor,
    as_number,
    clamp_unit,
)

log = get_logger(__name__)

FALLBACK_SCORE = 0.5
REQUIRED_FIELDS_MESSAGE = "Job Title and Requirements are mandatory."

_AUDIT_PROMPT = """You are an expert HR auditor and AI risk analyst. Analyze the following job posting to determine if it is a "Ghost Job" (a fake, stale, or compliance-only listing with no intent to hire).

JOB DETAILS:
Title: {title}
Company: {company}
Location: {location}
Type: {employment_type}
Industry: {industry}
Content: {requirements}

TASK:
Return a JSON object with the following structure:
{{
  "score": <number between 0.00 and 1.00, where 1.00 is extremely high risk of being a ghost job>,
  "analysis": "<short summary of why it received this score, max 2 sentences>",
  "factors": [
    {{
      "name": "<Name of risk factor, e.g., 'Vague Responsibilities', 'No Salary', 'Stale Keywords'>",
      "impact": <number 0.00-1.00 representing contribution to the score>,
      "reason": "<brief explanation>"
    }}
  ]
}}

List between 2 and 6 factors. Strictly return valid JSON."""


def validate_request(request: AuditRequest) -> None:
    if not (request.title or "").strip() or not (request.requirements or "").strip():
        raise LocalValidationError(REQUIRED_FIELDS_MESSAGE)
    if request.employment_type not in EMPLOYMENT_TYPES:
        raise LocalValidationError(f"Unknown employment type: {request.employment_type}")
    if request.industry not in INDUSTRIES:
        raise LocalValidationError(f"Unknown industry: {request.industry}")


def build_prompt(request: AuditRequest) -> str:
    return _AUDIT_PROMPT.format(
        title=request.title,
        company=request.company,
        location=request.location,
        employment_type=request.employment_type,
        industry=request.industry,
        requirements=request.requirements,
    )


def _load_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        # Model wrapped the object in a code fence or prose
        start = text.find("{")
        end = text.rfind("}") + 1
        if start == -1 or end <= start:
            raise ServiceError("AI did not return valid JSON") from None
        try:
            return json.loads(text[start:end])
        except json.JSONDecodeError as exc:
            raise ServiceError(f"AI did not return valid JSON: {exc}") from exc


def parse_response(text: str | None) -> AuditResult:
    if not text or not text.strip():
        raise ServiceError("No response from AI")

    data = _load_json(text.strip())
    if not isinstance(data, dict):
        raise ServiceError("AI response is not a JSON object")

    score = as_number(data.get("score"))
    fallback = score is None
    if fallback:
        log.warning("AI response score %r is not numeric — using %.1f",
                    data.get("score"), FALLBACK_SCORE)
        score = FALLBACK_SCORE

    raw_factors = data.get("factors")
    if not isinstance(raw_factors, list):
        raw_factors = []

    return AuditResult(
        score=clamp_unit(score),
        analysis=str(data.get("analysis") or ""),
        factors=[RiskFactor.from_raw(f) for f in raw_factors],
        fallback_applied=fallback,
    )


def audit_job_post(request: AuditRequest, generator: TextGenerator) -> AuditResult:
    """Validate, prompt, and normalize. Raises LocalValidationError or ServiceError."""
    validate_request(request)
    prompt = build_prompt(request)

    try:
        text = generator.generate(prompt)
    except ServiceError:
        raise
    except Exception as exc:
        log.error("Audit call failed for %r: %s", request.title, exc)
        raise ServiceError(f"Failed to audit job post: {exc}") from exc

    result = parse_response(text)
    log.info("Audited %r @ %r → score %.2f (%d factors)",
             request.title, request.company or "-", result.score, len(result.factors))
    return result
