#!/usr/bin/env python3
"""Audit a single job posting from the terminal.

    python run_audit.py --title "Data Engineer" --requirements-file jd.txt
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from ghostbuster.audit import audit_job_post
from ghostbuster.errors import LocalValidationError, ServiceError
from ghostbuster.generator import TextGenerator, get_generator
from ghostbuster.log import get_logger
from ghostbuster.models import EMPLOYMENT_TYPES, INDUSTRIES, AuditRequest
from ghostbuster.risk import format_percent, risk_tier

log = get_logger(__name__)


def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Score a job posting for ghost-job risk.")
    p.add_argument("--title", default="", help="Job title (required)")
    p.add_argument("--company", default="")
    p.add_argument("--location", default="")
    p.add_argument("--type", dest="employment_type", default=EMPLOYMENT_TYPES[0], choices=EMPLOYMENT_TYPES)
    p.add_argument("--industry", default=INDUSTRIES[0], choices=INDUSTRIES)
    src = p.add_mutually_exclusive_group()
    src.add_argument("--requirements", default="", help="Job description text")
    src.add_argument("--requirements-file", type=Path, help="Read the job description from a file")
    p.add_argument("--json", action="store_true", help="Print the result as JSON")
    return p


def main(argv: list[str] | None = None, generator: TextGenerator | None = None) -> int:
    args = _parser().parse_args(argv)

    requirements = args.requirements
    if args.requirements_file:
        requirements = args.requirements_file.read_text(encoding="utf-8")

    request = AuditRequest(
        title=args.title,
        requirements=requirements,
        company=args.company,
        location=args.location,
        employment_type=args.employment_type,
        industry=args.industry,
    )

    try:
        result = audit_job_post(request, generator or get_generator())
    except LocalValidationError as exc:
        log.error("%s", exc)
        return 2
    except ServiceError as exc:
        log.error("Audit failed: %s", exc)
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return 0

    tier = risk_tier(result.score)
    log.info("Ghost risk: %s (%s)", format_percent(result.score), tier.verdict)
    if result.fallback_applied:
        log.info("  (no usable score in the AI reply — neutral fallback used)")
    log.info("  %s", result.analysis)
    for factor in result.factors:
        log.info("  - %s [%s]: %s", factor.name, format_percent(factor.impact), factor.reason)
    return 0


if __name__ == "__main__":
    sys.exit(main())
