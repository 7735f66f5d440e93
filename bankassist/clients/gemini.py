"""Client wrapper for interacting with Google Gemini models."""

from __future__ import annotations

import asyncio
import json
import logging
from textwrap import dedent
from typing import Any, Callable, Iterable

import google.generativeai as genai
from google.api_core.exceptions import GoogleAPICallError, NotFound
from google.generativeai.types.generation_types import (
    BlockedPromptException,
    StopCandidateException,
)

from bankassist.core.config import GeminiSettings
from bankassist.schemas import ReportLanguage


_TEXT_FALLBACKS: tuple[str, ...] = (
    "gemini-2.0-flash",
    "gemini-1.5-flash",
    "gemini-1.5-pro",
)

_GENERATION_CONFIG: dict[str, Any] = {"response_mime_type": "application/json"}

logger = logging.getLogger(__name__)


class GeminiModelError(RuntimeError):
    """Raised when Gemini cannot fulfill a request due to configuration issues."""


class GeminiClient:
    """Run the loan and financial-statement analyses against Gemini."""

    def __init__(self, settings: GeminiSettings) -> None:
        self._settings = settings
        # Configure the global client once per process.
        genai.configure(api_key=settings.api_key)

    async def analyze_loan(
        self,
        *,
        csv_data: str,
        loan_id: str,
        language: ReportLanguage,
    ) -> dict[str, Any]:
        """Analyse one loan application row from a CSV dataset."""

        def _invoke() -> str:
            prompt = _build_loan_prompt(
                csv_data=csv_data, loan_id=loan_id, language=language
            )
            response = self._invoke_with_models(
                models=self._text_model_candidates(),
                env_var="GEMINI_MODEL_NAME",
                error_prefix="Gemini loan analysis failed",
                call=lambda model: model.generate_content(
                    prompt,
                    generation_config=_GENERATION_CONFIG,
                    safety_settings=[],
                ),
            )
            return _response_text(response, "Gemini loan analysis failed")

        raw = await asyncio.to_thread(_invoke)
        return _parse_json_response(raw)

    async def analyze_financial_statement(
        self,
        *,
        pdf_data: bytes,
        language: ReportLanguage,
        mime_type: str = "application/pdf",
    ) -> dict[str, Any]:
        """Analyse a financial statement supplied as a PDF document."""

        def _invoke() -> str:
            response = self._invoke_with_models(
                models=self._text_model_candidates(),
                env_var="GEMINI_MODEL_NAME",
                error_prefix="Gemini financial statement analysis failed",
                call=lambda model: model.generate_content(
                    [
                        _build_financial_prompt(language=language),
                        {"mime_type": mime_type, "data": pdf_data},
                    ],
                    generation_config=_GENERATION_CONFIG,
                    safety_settings=[],
                ),
            )
            return _response_text(
                response, "Gemini financial statement analysis failed"
            )

        raw = await asyncio.to_thread(_invoke)
        return _parse_json_response(raw)

    def _invoke_with_models(
        self,
        *,
        models: Iterable[str],
        env_var: str,
        error_prefix: str,
        call: Callable[[genai.GenerativeModel], Any],
    ) -> Any:
        """Try the configured model followed by fallbacks when available."""

        model_sequence = list(models)
        last_not_found: NotFound | None = None
        for index, model_name in enumerate(model_sequence):
            generative_model = genai.GenerativeModel(model_name)
            try:
                return call(generative_model)
            except NotFound as exc:  # pragma: no cover - network call
                last_not_found = exc
                logger.warning(
                    "Gemini model '%s' not found (attempt %d/%d); trying fallback.",
                    model_name,
                    index + 1,
                    len(model_sequence),
                )
                continue
            except GoogleAPICallError as exc:  # pragma: no cover - network call
                raise GeminiModelError(f"{error_prefix}: {exc.message}") from exc
            except (BlockedPromptException, StopCandidateException) as exc:
                raise GeminiModelError(f"{error_prefix}: response blocked ({exc})") from exc

        if last_not_found is not None:
            primary = model_sequence[0] if model_sequence else "unknown"
            raise GeminiModelError(
                f"Gemini model '{primary}' is not available. "
                f"Update {env_var} to a supported value."
            ) from last_not_found

        raise GeminiModelError(f"{error_prefix}: Unknown error invoking Gemini.")

    def _text_model_candidates(self) -> list[str]:
        return self._collect_candidates(self._settings.model_name, _TEXT_FALLBACKS)

    @staticmethod
    def _collect_candidates(
        configured: str | None,
        fallbacks: tuple[str, ...],
    ) -> list[str]:
        """Return distinct model names prioritizing the configured value."""
        seen: set[str] = set()
        candidates: list[str] = []
        for name in (configured, *fallbacks):
            if not name:
                continue
            cleaned = name.strip()
            if not cleaned or cleaned in seen:
                continue
            seen.add(cleaned)
            candidates.append(cleaned)
        return candidates


def _response_text(response: Any, error_prefix: str) -> str:
    """Return the response text; blocked or empty candidates have none."""
    try:
        return response.text or ""
    except ValueError as exc:
        raise GeminiModelError(f"{error_prefix}: no usable candidate ({exc})") from exc


def _language_instruction(language: ReportLanguage) -> str:
    return (
        "Your entire report MUST be written in the following language: "
        f"{language.display_name} ({language.value}). Keep the JSON keys in English."
    )


def _build_loan_prompt(*, csv_data: str, loan_id: str, language: ReportLanguage) -> str:
    """Construct the loan analyst prompt for a single loan identifier."""
    return dedent(
        (
            "You are an expert loan analyst for a bank. Your task is to analyze a "
            "specific loan application from a provided CSV dataset.\n\n"
            f"Find the row in the following CSV data that corresponds to the Loan ID: {loan_id}.\n"
            "Once you have located the correct loan application, perform a "
            "comprehensive analysis based on all available columns for that row.\n\n"
            f"{_language_instruction(language)}\n\n"
            "Respond strictly in JSON with the schema: {"
            '"summary": string, "prediction": string, "eligibility": string}.\n'
            "- summary: a detailed summary of the applicant's profile, highlighting "
            "key financial indicators, credit history, and loan purpose.\n"
            "- prediction: the likelihood of loan approval (e.g. Approved, Rejected, "
            "High-Risk) justified with specific data points.\n"
            "- eligibility: whether the applicant is eligible and a concise explanation.\n"
            "Do not include prose outside the JSON object.\n\n"
            "CSV data:\n"
            f"```csv\n{csv_data}\n```\n\n"
            f"Analyze the loan with ID: {loan_id}."
        )
    )


def _build_financial_prompt(*, language: ReportLanguage) -> str:
    """Construct the financial statement analyst prompt."""
    return dedent(
        (
            "You are a top-tier AI financial analyst with deep expertise in Middle "
            "Eastern financial markets, particularly Omani credit bureau standards. "
            "Perform a deep, critical analysis of the financial statement in the "
            "attached PDF, focusing exclusively on the financial data.\n\n"
            f"{_language_instruction(language)}\n\n"
            "Extract KPIs (revenue, gross profit, operating income, net income), "
            "balance sheet items, cash flows and key ratios (margins, ROE, current "
            "ratio, debt-to-equity), and identify year-over-year trends.\n\n"
            "Respond strictly in JSON with the schema: {"
            '"summary": string, "trendsAndGraphs": string, "prediction": string, '
            '"creditScorePrediction": string, "identifiedFlaws": [string], '
            '"keyMetrics": [{"period": string, "revenue": number, "netIncome": number}]}.\n'
            "- summary: an expansive, multi-paragraph summary of financial health.\n"
            "- trendsAndGraphs: the key trends and the graphs that would show them.\n"
            "- prediction: an evidence-backed prediction of the financial trajectory.\n"
            "- creditScorePrediction: a predicted credit score or tight range framed "
            "within Omani and Middle Eastern credit bureau standards, with justification.\n"
            "- identifiedFlaws: critical financial flaws, risks or red flags, one per item.\n"
            "- keyMetrics: revenue and net income per reported period, oldest first.\n"
            "Do not include prose outside the JSON object."
        )
    )


def _parse_json_response(payload: str) -> Any:
    payload = payload.strip()
    if payload.startswith("```"):
        payload = payload.strip("`")
        if payload.lower().startswith("json"):
            payload = payload[4:]
        payload = payload.strip()
    if not payload:
        return {}
    try:
        return json.loads(payload)
    except json.JSONDecodeError:
        return {"raw": payload}


__all__ = ["GeminiClient", "GeminiModelError"]
