#!/usr/bin/env python3
"""
Quick Start Script for the Audit Readiness Engine
Scores the bundled sample answers for a sterile Class IIb device and writes
the export bundle and Word report to the export directory.
"""

import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(__file__))

from backend.config import settings
from backend.logging_config import setup_logging
from backend.readiness.artifacts import build_export_zip
from backend.readiness.catalog import get_filtered_questions
from backend.readiness.classification import classify_risk
from backend.readiness.context import DeviceAttributes
from backend.readiness.docx_report import build_docx_report
from backend.readiness.extraction import load_responses
from backend.readiness.scoring import score

SAMPLE_FILE = os.path.join(os.path.dirname(__file__), "data", "sample_answers.csv")


def run_sample():
    with open(SAMPLE_FILE, "rb") as fh:
        extracted = load_responses(fh.read(), os.path.basename(SAMPLE_FILE))

    classification = classify_risk(DeviceAttributes(
        fda_class="Class II", eu_class="Class IIb", is_sterile=True,
        device_category="Surgical instrument",
    ))
    questions = get_filtered_questions(["CFR_820", "ISO_13485", "MDR"])
    result = score(extracted.responses, questions, classification, settings.default_top_gaps)

    os.makedirs(settings.export_dir, exist_ok=True)
    zip_path = os.path.join(settings.export_dir, "audit_readiness_export.zip")
    docx_path = os.path.join(settings.export_dir, "audit_readiness_report.docx")
    with open(zip_path, "wb") as fh:
        fh.write(build_export_zip(result, extracted.responses, classification))
    with open(docx_path, "wb") as fh:
        fh.write(build_docx_report(result, classification))

    return result, classification, zip_path, docx_path


if __name__ == "__main__":
    setup_logging(settings.log_level)
    print("=" * 60)
    print("Audit Readiness Engine - Quick Start")
    print("=" * 60)

    result, classification, zip_path, docx_path = run_sample()

    print(f"Device risk level : {classification.level.value}")
    print(f"Readiness score   : {result.score}% ({result.status.value})")
    print(f"Raw score         : {result.raw_score}%")
    print(f"Critical failures : {', '.join(result.critical_failures) or 'none'}")
    print(f"Maturity          : {result.risk_assessment.compliance_maturity.value}")
    print()
    print("Top gaps:")
    for gap in result.top_gaps:
        print(f"  {gap.question_id:4} {gap.clause_ref:12} deficit {gap.deficit:.2f}  {gap.clause_title}")
    print()
    print(f"Export bundle : {zip_path}")
    print(f"Word report   : {docx_path}")
    print()
    print("Serve the API:  uvicorn backend.main:app --reload --port 8000")
    print("=" * 60)
