from __future__ import annotations

import json
import os

os.environ.setdefault("GHOSTBUSTER_NO_FILE_LOG", "1")

import pytest

from ghostbuster.generator import StaticGenerator, TextGenerator
from ghostbuster.models import AuditRequest


class FailingGenerator(TextGenerator):
    def __init__(self, exc: Exception) -> None:
        self.exc = exc
        self.calls = 0

    def generate(self, prompt: str) -> str:
        self.calls += 1
        raise self.exc


def make_reply(score=0.78, analysis="Reposted for months with vague duties.", factors=None) -> str:
    body = {"analysis": analysis}
    if score is not None:
        body["score"] = score
    body["factors"] = factors if factors is not None else [
        {"name": "Stale Keywords", "impact": 0.6, "reason": "Generic buzzwords."},
        {"name": "No Salary", "impact": 0.3, "reason": "Compensation omitted."},
    ]
    return json.dumps(body)


@pytest.fixture
def job() -> AuditRequest:
    return AuditRequest(
        title="Senior Product Manager",
        requirements="Drive roadmap. 10+ years. Must know every tool.",
        company="Acme Corp",
        location="Remote",
        employment_type="Contract",
        industry="Finance",
    )


@pytest.fixture
def generator() -> StaticGenerator:
    return StaticGenerator(make_reply())
