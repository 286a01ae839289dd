"""AI narrative report service.

Generates an operational audit of the task list with the Gemini
``generateContent`` REST endpoint. Failures never propagate: any error yields
FALLBACK_REPORT.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence

import httpx

from bpd_dashboard.models import Task
from bpd_dashboard.services.config_service import ConfigService, lookup_env

logger = logging.getLogger(__name__)

FALLBACK_REPORT = (
    "The project intelligence stream is temporarily unavailable. "
    "Please retry the audit shortly."
)

SYSTEM_INSTRUCTION = (
    "You are the Chief Operational Officer for the BPD team. Your tone is "
    "authoritative, efficient, and data-centric. Format the output with clear "
    "bullet points."
)


def build_prompt(tasks: Sequence[Task]) -> str:
    """Build the audit prompt embedding a compact task registry."""
    registry = [
        {
            "name": t.name,
            "status": t.status.value,
            "progress": t.progress,
            "end": t.planned_end_date,
            "assignedTo": t.assigned_to,
        }
        for t in tasks
    ]
    return (
        "Perform a professional operational audit of the following BPD "
        "(Broadband Policy & Development) tasks:\n\n"
        "1. Identify 'Critical Path' blockers (Tasks with 0% progress).\n"
        "2. Flag tasks that are nearing their planned end dates but are not yet 'COMPLETED'.\n"
        "3. Suggest a 3-step action plan for the team lead based on the "
        "distribution of workload.\n\n"
        f"Task Registry: {json.dumps(registry)}"
    )


def extract_text(payload: dict) -> str:
    """Concatenate the text parts of the first candidate."""
    candidates = payload.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict))


class ReportService:
    """Client for the narrative report model."""

    def __init__(
        self,
        config_service: ConfigService,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config_service.config.ai
        self.environ = config_service.environ
        self._transport = transport

    def _api_key(self) -> str:
        return lookup_env(self.config.api_key_env, self.environ)

    async def generate_report(self, tasks: Sequence[Task]) -> str:
        """Generate a narrative audit of *tasks*.

        Returns:
            The model's text, or FALLBACK_REPORT on any failure
        """
        api_key = self._api_key()
        if not api_key:
            logger.warning("No %s set; skipping report generation", self.config.api_key_env)
            return FALLBACK_REPORT

        body = {
            "systemInstruction": {"parts": [{"text": SYSTEM_INSTRUCTION}]},
            "contents": [{"role": "user", "parts": [{"text": build_prompt(tasks)}]}],
        }
        url = f"{self.config.endpoint.rstrip('/')}/models/{self.config.model}:generateContent"

        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    url, json=body, headers={"x-goog-api-key": api_key}
                )
                response.raise_for_status()
                text = extract_text(response.json())
        except Exception as e:
            logger.error("Report generation failed: %s", e)
            return FALLBACK_REPORT

        if not text.strip():
            logger.warning("Report model returned an empty response")
            return FALLBACK_REPORT
        return text
