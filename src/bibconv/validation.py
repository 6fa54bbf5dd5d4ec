"""Content checks run on every parsed entry."""
from __future__ import annotations

from typing import Dict, List

from .models import ConversionWarning, Entry

PERIODICAL_TYPES = {"article-journal", "article-magazine", "article-newspaper", "review", "review-book"}
CONTAINED_TYPES = {"chapter", "paper-conference", "entry-encyclopedia", "entry-dictionary"}


def check_entry(entry: Entry) -> List[ConversionWarning]:
    """Report missing title and the fields each item type is normally expected to carry."""

    issues: List[ConversionWarning] = []

    def add_issue(field_name: str, message: str, severity: str = "info") -> None:
        issues.append(
            ConversionWarning(
                entry_id=entry.id,
                severity=severity,
                category="validation-error",
                message=f"{entry.type}: {message}",
                field_name=field_name,
            )
        )

    if not entry.title:
        add_issue("title", "missing title", severity="warning")
    if entry.type in PERIODICAL_TYPES and not entry.container_title:
        add_issue("container-title", "missing journal or periodical title")
    if entry.type in CONTAINED_TYPES and not entry.container_title:
        add_issue("container-title", "missing book or proceedings title")
    if entry.type == "book" and not entry.publisher:
        add_issue("publisher", "missing publisher")
    if entry.type in {"thesis", "report"} and not entry.publisher:
        add_issue("publisher", "missing institution")
    if entry.type in {"webpage", "post", "post-weblog"} and not entry.url:
        add_issue("URL", "missing URL")
    return issues


def check_duplicates(entries: List[Entry]) -> List[ConversionWarning]:
    issues: List[ConversionWarning] = []
    seen_ids: Dict[str, Entry] = {}
    seen_dois: Dict[str, Entry] = {}

    for entry in entries:
        if entry.id in seen_ids:
            issues.append(
                ConversionWarning(
                    entry_id=entry.id,
                    severity="warning",
                    category="validation-error",
                    message=f"Duplicate entry id '{entry.id}'",
                    field_name="id",
                )
            )
        else:
            seen_ids[entry.id] = entry

        if entry.doi:
            doi_key = entry.doi.strip().lower()
            if doi_key in seen_dois:
                issues.append(
                    ConversionWarning(
                        entry_id=entry.id,
                        severity="info",
                        category="validation-error",
                        message=f"DOI {entry.doi} also used by '{seen_dois[doi_key].id}'",
                        field_name="DOI",
                    )
                )
            else:
                seen_dois[doi_key] = entry
    return issues
