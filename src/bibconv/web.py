"""FastAPI + Tailwind interface for the bibliography converter.

Run with:
    uvicorn bibconv.web:app --reload
"""
from __future__ import annotations

from dataclasses import asdict
from html import escape
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Form, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field, field_validator

from .converter import BibliographyConverter, UnsupportedFormatError
from .models import ConversionWarning, GeneratorOptions
from .report import render_report

app = FastAPI(title="Bibliography Converter", description="Convert bibliographies from the browser")

converter = BibliographyConverter()


def _normalize_format(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().lower()
    return None if value in ("", "auto") else value


class OptionsPayload(BaseModel):
    indent: int = Field(2, ge=0, le=8)
    crlf: bool = False
    sort: bool = False
    preserve_field_order: bool = False
    include_metadata: bool = False

    def to_options(self) -> GeneratorOptions:
        return GeneratorOptions(
            indent=" " * self.indent,
            line_ending="\r\n" if self.crlf else "\n",
            sort=self.sort,
            preserve_field_order=self.preserve_field_order,
            include_metadata=self.include_metadata,
        )


class ConvertRequest(BaseModel):
    content: str
    source_format: Optional[str] = None
    target_format: str
    options: OptionsPayload = Field(default_factory=OptionsPayload)

    @field_validator("source_format", "target_format", mode="before")
    @classmethod
    def lowercase_format(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_format(value)


class DetectRequest(BaseModel):
    content: str


class ValidateRequest(BaseModel):
    content: str
    format: Optional[str] = None

    @field_validator("format", mode="before")
    @classmethod
    def lowercase_format(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_format(value)


def _resolve_source(content: str, source_format: Optional[str]) -> str:
    if source_format:
        return source_format
    detected = converter.detect_format(content)
    if detected is None:
        raise HTTPException(status_code=400, detail="Could not detect the input format")
    return detected


def _serialize_warnings(warnings: List[ConversionWarning]) -> List[Dict[str, Any]]:
    return [asdict(warning) for warning in warnings]


def _layout(content: str) -> str:
    """Wrap provided content in a Tailwind-powered HTML page."""

    return f"""
    <!doctype html>
    <html lang=\"en\" class=\"h-full bg-gray-50\">
    <head>
        <meta charset=\"utf-8\" />
        <title>Bibliography Converter</title>
        <link href=\"https://cdn.jsdelivr.net/npm/tailwindcss@3.4.4/dist/tailwind.min.css\" rel=\"stylesheet\" />
    </head>
    <body class=\"min-h-full py-10\">
        <div class=\"max-w-5xl mx-auto px-4\">
            <div class=\"bg-white shadow rounded-lg p-6\">
                <h1 class=\"text-3xl font-semibold text-gray-900\">Bibliography Converter</h1>
                <p class=\"text-gray-600 mt-2\">Paste BibTeX, BibLaTeX, RIS, EndNote XML or CSL-JSON and pick the format you need.</p>
                {content}
            </div>
        </div>
    </body>
    </html>
    """


def _format_options(selected: Optional[str], include_auto: bool) -> str:
    choices = (["auto"] if include_auto else []) + converter.supported_formats()
    rendered = []
    for choice in choices:
        marker = " selected" if choice == (selected or "auto") else ""
        rendered.append(f"<option value=\"{choice}\"{marker}>{choice}</option>")
    return "".join(rendered)


def _form_page(
    content: str = "",
    source_format: Optional[str] = None,
    target_format: str = "csl-json",
    output: Optional[str] = None,
    report: Optional[str] = None,
) -> str:
    """Render the converter form with optional output and report."""

    form = f"""
    <form action=\"/convert-text\" method=\"post\" class=\"bg-gray-50 border border-gray-200 rounded-lg p-4 mt-6\">
        <h2 class=\"text-xl font-semibold text-gray-800\">Paste Bibliography</h2>
        <label class=\"block text-sm font-medium text-gray-700 mb-2\" for=\"content\">Source text</label>
        <textarea name=\"content\" required placeholder=\"@article{{key, ...}}\" class=\"w-full h-44 border border-gray-300 rounded-md p-3 text-sm font-mono\">{escape(content)}</textarea>
        <div class=\"flex items-center gap-4 mt-3\">
            <label class=\"text-sm text-gray-700\" for=\"source_format\">From</label>
            <select id=\"source_format\" name=\"source_format\" class=\"border border-gray-300 rounded-md text-sm\">{_format_options(source_format, True)}</select>
            <label class=\"text-sm text-gray-700\" for=\"target_format\">To</label>
            <select id=\"target_format\" name=\"target_format\" class=\"border border-gray-300 rounded-md text-sm\">{_format_options(target_format, False)}</select>
        </div>
        <button type=\"submit\" class=\"mt-4 inline-flex items-center px-4 py-2 bg-indigo-600 text-white rounded-md shadow hover:bg-indigo-700\">Convert</button>
    </form>
    """

    output_block = ""
    if output is not None:
        output_block = f"""
        <div class=\"mt-8\">
            <h2 class=\"text-xl font-semibold text-gray-800\">Output ({escape(target_format)})</h2>
            <pre class=\"mt-3 bg-gray-100 text-gray-900 p-4 rounded-lg whitespace-pre-wrap text-sm\">{escape(output)}</pre>
        </div>
        """

    report_block = ""
    if report:
        report_block = f"""
        <div class=\"mt-8\">
            <h2 class=\"text-xl font-semibold text-gray-800\">Conversion Report</h2>
            <pre class=\"mt-3 bg-gray-900 text-green-100 p-4 rounded-lg whitespace-pre-wrap text-sm\">{escape(report)}</pre>
        </div>
        """

    return _layout(form + output_block + report_block)


@app.get("/", response_class=HTMLResponse)
async def home() -> HTMLResponse:
    """Serve the paste-and-convert form."""

    return HTMLResponse(_form_page())


@app.post("/convert-text", response_class=HTMLResponse)
async def convert_text(
    content: str = Form(...),
    source_format: str = Form("auto"),
    target_format: str = Form("csl-json"),
) -> HTMLResponse:
    """Convert pasted text and render the output with its report."""

    source = _resolve_source(content, _normalize_format(source_format))
    target = _normalize_format(target_format) or "csl-json"
    try:
        outcome = converter.convert(content, source, target)
    except UnsupportedFormatError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return HTMLResponse(
        _form_page(content, source, target, outcome.output, render_report(outcome.result))
    )


@app.get("/api/formats")
async def list_formats() -> Dict[str, List[str]]:
    return {"formats": converter.supported_formats()}


@app.post("/api/detect")
async def detect(request: DetectRequest) -> Dict[str, Optional[str]]:
    return {"format": converter.detect_format(request.content)}


@app.post("/api/convert")
async def convert(request: ConvertRequest) -> Dict[str, Any]:
    source = _resolve_source(request.content, request.source_format)
    try:
        outcome = converter.convert(
            request.content, source, request.target_format, request.options.to_options()
        )
    except UnsupportedFormatError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {
        "source_format": source,
        "target_format": request.target_format,
        "output": outcome.output,
        "stats": asdict(outcome.result.stats),
        "warnings": _serialize_warnings(outcome.result.warnings),
    }


@app.post("/api/validate")
async def validate(request: ValidateRequest) -> Dict[str, Any]:
    source = _resolve_source(request.content, request.format)
    try:
        issues = converter.validate(request.content, source)
    except UnsupportedFormatError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"format": source, "warnings": _serialize_warnings(issues)}


def main() -> None:
    """Run the FastAPI app using uvicorn."""

    import uvicorn

    uvicorn.run("bibconv.web:app", host="0.0.0.0", port=8000, reload=False)


__all__ = ["app", "main"]
