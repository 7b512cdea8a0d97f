from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import List, Optional

import httpx

from journeyplan.core.config import settings
from journeyplan.core.errors import AnalysisError
from journeyplan.llm.client import AnalysisContext, AnalysisResult
from journeyplan.llm.prompts import ANALYSIS_SYSTEM_PROMPT
from journeyplan.models.domain import ServiceClassification

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(\w*)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)


def parse_json_content(content: str) -> dict:
    """Parse a model reply, tolerating a markdown code fence around the JSON."""
    cleaned = content.strip()
    match = _FENCE_RE.match(cleaned)
    if match and match.group(2):
        cleaned = match.group(2).strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.error("Invalid JSON from model: %s", content)
        raise AnalysisError("LLM returned invalid JSON") from exc
    if not isinstance(data, dict):
        raise AnalysisError("LLM returned a non-object JSON value")
    return data


@dataclass
class OllamaAnalysisGateway:
    """
    Gateway using Ollama's chat API.
    Expects the model to return an analysis JSON object.
    """

    host: str = settings.ollama_host
    model: str = settings.ollama_model
    timeout: float = settings.analysis_timeout_seconds
    transport: Optional[httpx.AsyncBaseTransport] = None

    def _build_messages(self, context: AnalysisContext) -> List[dict]:
        lines = [f"Request For: {context.request_for}"]
        recipient = context.recipient_context
        if context.request_for == "someone_else" and recipient:
            lines.append(f"Recipient Name: {recipient.name or 'Not specified'}")
            if recipient.contact:
                lines.append(f"Recipient Contact: {recipient.contact}")
            if recipient.notes:
                lines.append(f"Recipient Notes: {recipient.notes}")
        lines.append(f"Origin Location: {context.origin_location.label()}")
        if context.destination_location:
            lines.append(f"Destination Location: {context.destination_location.label()}")
        lines.append(f'User\'s textual input related to the request: "{context.text}"')
        return [
            {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
            {"role": "user", "content": "\n".join(lines)},
        ]

    async def analyze(self, context: AnalysisContext) -> AnalysisResult:
        payload = {
            "model": self.model,
            "messages": self._build_messages(context),
            "stream": False,
            "format": "json",
        }
        try:
            async with httpx.AsyncClient(
                base_url=self.host, timeout=self.timeout, transport=self.transport
            ) as client:
                resp = await client.post("/api/chat", json=payload)
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Ollama request failed: %s", exc)
            raise AnalysisError(f"Ollama request failed: {exc}") from exc

        content = resp.json().get("message", {}).get("content", "")
        return self._to_result(parse_json_content(content))

    @staticmethod
    def _to_result(data: dict) -> AnalysisResult:
        raw_type = str(data.get("type", "")).lower()
        try:
            classification = ServiceClassification(raw_type)
        except ValueError:
            logger.warning("Model returned an invalid service type: %r", data.get("type"))
            classification = ServiceClassification.unknown

        entities = data.get("entities") or {}
        if not isinstance(entities, dict):
            entities = {"raw": entities}

        price = data.get("priceSuggestion")
        try:
            price = float(price) if price else None
        except (TypeError, ValueError):
            price = None

        return AnalysisResult(
            classification=classification,
            summary=str(data.get("summary") or ""),
            entities=entities,
            price_estimate=price,
        )
