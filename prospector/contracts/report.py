"""Prospecting report contract and exporters.

The report is the JSON document written at the end of a run and the source
for the CSV export. This module defines:
- A JSON Schema (for validation)
- build_report(): ProspectingResult -> plain dict
- JSON and CSV writers

Article full text is never exported; the excerpt stands in for it.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

from jsonschema import Draft202012Validator

from prospector.config import ALIGNA, ProductProfile
from prospector.outreach.angles import opportunity_reason
from prospector.pipeline import Prospect, ProspectingResult
from prospector.scoring.prospect_scoring import SCORE_CAPS, score_explanation

logger = logging.getLogger(__name__)


_STR_OR_NULL = {"type": ["string", "null"]}

_BREAKDOWN_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": list(SCORE_CAPS),
    "properties": {name: {"type": "integer", "minimum": 0, "maximum": cap} for name, cap in SCORE_CAPS.items()},
    "additionalProperties": False,
}

REPORT_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["metadata", "prospects"],
    "properties": {
        "metadata": {
            "type": "object",
            "required": [
                "search_date",
                "queries",
                "total_found",
                "total_scored",
                "average_score",
                "high_priority_count",
                "elapsed_ms",
            ],
            "properties": {
                "search_date": {"type": "string", "minLength": 1},
                "queries": {"type": "array", "items": {"type": "string"}},
                "total_found": {"type": "integer", "minimum": 0},
                "total_scored": {"type": "integer", "minimum": 0},
                "average_score": {"type": "number", "minimum": 0, "maximum": 100},
                "high_priority_count": {"type": "integer", "minimum": 0},
                "elapsed_ms": {"type": "integer", "minimum": 0},
                "skipped_existing": {"type": "integer", "minimum": 0},
                "failed": {"type": "integer", "minimum": 0},
            },
            "additionalProperties": True,
        },
        "prospects": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "url", "title", "score", "priority", "breakdown", "author", "angle"],
                "properties": {
                    "id": {"type": "string", "minLength": 1},
                    "url": {"type": "string", "minLength": 1},
                    "title": {"type": "string"},
                    "publication": {"type": "string"},
                    "domain": {"type": "string"},
                    "content_type": {
                        "type": "string",
                        "enum": ["listicle", "guide", "comparison", "case-study", "news", "opinion", "tutorial"],
                    },
                    "word_count": {"type": "integer", "minimum": 0},
                    "publish_date": _STR_OR_NULL,
                    "last_updated": _STR_OR_NULL,
                    "excerpt": {"type": "string"},
                    "score": {"type": "integer", "minimum": 0, "maximum": 100},
                    "priority": {"type": "string", "enum": ["excellent", "strong", "moderate", "weak", "skip"]},
                    "breakdown": _BREAKDOWN_SCHEMA,
                    "author": {
                        "type": "object",
                        "required": ["name", "best_contact_method"],
                        "properties": {
                            "name": {"type": "string", "minLength": 1},
                            "best_contact_method": {
                                "type": "string",
                                "enum": ["email", "contact-form", "linkedin-dm", "twitter-dm", "unknown"],
                            },
                        },
                        "additionalProperties": True,
                    },
                    "competitors": {"type": "array", "items": {"type": "string"}},
                    "sentiment": {"type": "object"},
                    "explanation": {"type": "string"},
                    "angle": {"type": "string", "minLength": 1},
                    "opportunity_reason": {"type": "string"},
                },
                "additionalProperties": True,
            },
        },
    },
    "additionalProperties": False,
}


_VALIDATOR = Draft202012Validator(REPORT_SCHEMA)


def validate_report(payload: Dict[str, Any]) -> List[str]:
    """Return a list of human-readable validation errors (empty means valid)."""
    errors = []
    for e in sorted(_VALIDATOR.iter_errors(payload), key=lambda x: list(x.path)):
        path = ".".join(str(p) for p in e.path) or "<root>"
        errors.append(f"{path}: {e.message}")
    return errors


def _iso(dt) -> Any:
    return dt.isoformat() if dt is not None else None


def prospect_to_dict(prospect: Prospect, profile: ProductProfile = ALIGNA) -> Dict[str, Any]:
    article = prospect.article
    author = prospect.author
    analysis = prospect.sentiment
    return {
        "id": prospect.id,
        "url": article.url,
        "title": article.title,
        "publication": article.publication_name,
        "domain": article.domain,
        "content_type": article.content_type.value,
        "word_count": article.word_count,
        "publish_date": _iso(article.publish_date),
        "last_updated": _iso(article.last_updated),
        "excerpt": article.excerpt,
        "topics": sorted(article.detected_topics),
        "score": prospect.score,
        "priority": prospect.priority.value,
        "breakdown": prospect.breakdown.as_dict(),
        "explanation": score_explanation(prospect.breakdown, profile),
        "angle": prospect.angle,
        "opportunity_reason": opportunity_reason(article, prospect.score, profile),
        "author": {
            "name": author.name,
            "title": author.title,
            "publication": author.publication,
            "email": author.public_email,
            "linkedin": author.linkedin,
            "twitter": author.twitter,
            "github": author.github,
            "website": author.website,
            "contact_form_url": author.contact_form_url,
            "is_freelance": author.is_freelance,
            "is_editor": author.is_editor,
            "best_contact_method": author.best_contact_method.value,
            "contact_notes": author.contact_notes,
        },
        "competitors": sorted(article.mentioned_competitors),
        "sentiment": {
            "overall_opportunity": analysis.overall_opportunity,
            "best_angle": analysis.best_angle,
            "competitors": [
                {
                    "competitor": c.competitor,
                    "sentiment": c.sentiment.value,
                    "confidence": c.confidence.value,
                    "positioning_angle": c.positioning_angle,
                    "gap_opportunity": c.gap_opportunity,
                    "aspects": [
                        {
                            "aspect": a.aspect,
                            "sentiment": a.sentiment.value,
                            "keywords": list(a.matched_keywords),
                            "quote": a.context_quote,
                        }
                        for a in c.aspects
                    ],
                }
                for c in analysis.competitors
            ],
        },
        "created_at": _iso(prospect.created_at),
        "updated_at": _iso(prospect.updated_at),
    }


def build_report(result: ProspectingResult, profile: ProductProfile = ALIGNA) -> Dict[str, Any]:
    meta = result.metadata
    return {
        "metadata": {
            "search_date": _iso(meta.search_date),
            "queries": list(meta.queries),
            "total_found": meta.total_found,
            "total_scored": meta.total_scored,
            "average_score": meta.average_score,
            "high_priority_count": meta.high_priority_count,
            "elapsed_ms": meta.elapsed_ms,
            "skipped_existing": meta.skipped_existing,
            "failed": meta.failed,
        },
        "prospects": [prospect_to_dict(p, profile) for p in result.prospects],
    }


def write_json_report(result: ProspectingResult, path: str, profile: ProductProfile = ALIGNA) -> str:
    report = build_report(result, profile)
    errors = validate_report(report)
    if errors:
        raise ValueError("Report failed validation: " + "; ".join(errors[:5]))
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(report, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Wrote JSON report to %s", out)
    return str(out)


CSV_COLUMNS = [
    ("score", "Score"),
    ("priority", "Priority"),
    ("title", "Article Title"),
    ("url", "URL"),
    ("author", "Author"),
    ("contact", "Contact"),
    ("contact_method", "Contact Method"),
    ("publication", "Publication"),
    ("content_type", "Content Type"),
    ("word_count", "Word Count"),
    ("publish_date", "Publish Date"),
    ("angle", "Angle"),
    ("competitors", "Competitors Mentioned"),
]


def csv_record(prospect: Prospect) -> Dict[str, Any]:
    article = prospect.article
    author = prospect.author
    return {
        "score": prospect.score,
        "priority": prospect.priority.value,
        "title": article.title,
        "url": article.url,
        "author": author.name,
        "contact": author.public_email or author.linkedin or author.twitter or "Unknown",
        "contact_method": author.best_contact_method.value,
        "publication": article.publication_name,
        "content_type": article.content_type.value,
        "word_count": article.word_count,
        "publish_date": article.publish_date.date().isoformat() if article.publish_date else "Unknown",
        "angle": prospect.angle[:200],
        "competitors": ", ".join(sorted(article.mentioned_competitors)) or "None",
    }


def write_csv_report(prospects: Sequence[Prospect], path: str) -> str:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    keys = [k for k, _ in CSV_COLUMNS]
    with out.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=keys)
        writer.writerow(dict(CSV_COLUMNS))
        for p in prospects:
            writer.writerow(csv_record(p))
    logger.info("Wrote CSV report to %s (%d rows)", out, len(prospects))
    return str(out)
