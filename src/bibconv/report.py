"""Conversion reporting utilities."""
from __future__ import annotations

from typing import List

from .models import ConversionResult, ConversionWarning


def render_warnings(warnings: List[ConversionWarning]) -> List[str]:
    lines = []
    for warning in warnings:
        line = f"[{warning.severity.upper()}] {warning.category}: {warning.message}"
        context = warning.entry_id
        if warning.field_name:
            context = f"{context} ({warning.field_name})" if context else warning.field_name
        if context:
            line += f" -> {context}"
        lines.append(line)
    return lines


def render_report(result: ConversionResult, title: str = "Conversion Report") -> str:
    """Return a human-readable summary of a conversion."""

    stats = result.stats
    header_lines = [
        title,
        f"Total entries: {stats.total}",
        f"Successful: {stats.successful}",
        f"With warnings: {stats.with_warnings}",
        f"Failed: {stats.failed}",
    ]
    if not result.warnings:
        header_lines.append("No conversion warnings.")
        return "\n".join(header_lines)
    return "\n".join(header_lines + ["Warnings:"] + render_warnings(result.warnings))
