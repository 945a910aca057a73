"""
AI-written executive summary of a finished analysis.

Uses a Pydantic response model so the LLM output is structured. Every
number in the prompt comes from the report; the model only interprets.
"""

import json
from typing import Literal

from openai import OpenAI
from pydantic import BaseModel, Field

from .log import get_logger
from .results import InsightsReport

logger = get_logger(__name__)

SYSTEM_PROMPT = """You are an inventory analyst helping an operations manager understand consumption.

Your job is to:
1. Interpret the pre-computed analysis and explain what matters
2. Write clearly for a non-technical audience
3. Turn the recommendations into a short list of concrete actions

Use only the numbers provided. Never compute new figures."""


class KeyAction(BaseModel):
    """One action the reader should take."""

    action: str = Field(description="What to do, in one sentence")
    reason: str = Field(description="Which finding this addresses")
    urgency: Literal["immediate", "this_week", "this_month"]


class ExecutiveSummary(BaseModel):
    """Structured summary of an InsightsReport."""

    headline: str = Field(description="One sentence a manager can read in five seconds")
    summary: str = Field(description="2-3 sentence overview of consumption and stock health")
    key_actions: list[KeyAction] = Field(description="At most five actions, most urgent first")


def report_facts(report: InsightsReport, limit: int = 10) -> dict:
    """The subset of a report passed to the model, as plain JSON types."""
    facts = {
        "window": {
            "start": report.summary.start_date.isoformat(),
            "end": report.summary.end_date.isoformat(),
            "days": report.summary.days_in_window,
        },
        "totals": report.summary.totals.model_dump(),
        "items": report.summary.item_count,
    }
    if report.health is not None:
        facts["health"] = report.health.model_dump(exclude={"items"})
    if report.trends is not None:
        facts["cost_trend"] = report.trends.cost_trend.model_dump()
    if report.forecast_accuracy is not None:
        facts["forecast_accuracy"] = report.forecast_accuracy.model_dump(
            exclude={"largest_misses"}
        )
    if report.seasonality is not None:
        facts["seasonality"] = report.seasonality.model_dump(mode="json")
    if report.recommendations:
        facts["recommendations"] = [
            r.model_dump(include={"priority", "category", "title", "description", "action"})
            for r in report.recommendations[:limit]
        ]
    return facts


class ExecutiveSummaryWriter:
    """
    Writes summaries of an analysis with an LLM.

    What to trust vs verify:
    - TRUST: wording, grouping of findings
    - VERIFY: any number (always taken from the report)
    """

    def __init__(self, model: str = "gpt-4o-mini", client: OpenAI | None = None):
        self.client = client or OpenAI()
        self.model = model

    def generate(self, report: InsightsReport) -> ExecutiveSummary:
        """Structured summary (headline, overview, key actions) of a report."""
        prompt = f"""Summarize this inventory consumption analysis.

## Analysis (pre-computed, use these exact numbers)
{json.dumps(report_facts(report), indent=2, default=str)}

Return a headline, a 2-3 sentence summary and at most five key actions."""

        logger.info("Requesting executive summary from %s", self.model)
        response = self.client.beta.chat.completions.parse(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            response_format=ExecutiveSummary,
        )
        return response.choices[0].message.parsed

    def generate_text(self, report: InsightsReport) -> str:
        """Free-text summary for when a structured one is not needed."""
        prompt = f"""Write a short summary for an operations manager about inventory consumption.

{json.dumps(report_facts(report), indent=2, default=str)}

Structure: Summary paragraph, Key Numbers section, Actions section.
Keep it under 300 words."""

        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": "You write clear, direct inventory summaries."},
                {"role": "user", "content": prompt},
            ],
        )
        return response.choices[0].message.content
