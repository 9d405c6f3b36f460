"""OpenAI-backed suggestion provider.

Keyword extraction, few-shot code suggestions and catalog clean-up. The
provider is advisory only: a missing API key, a transport failure or an
unparseable response all degrade to empty results with a warning.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import openai
from pydantic import ValidationError

from labormap.config import LLMConfig, get_config
from labormap.models import (
    AiSuggestion,
    CatalogEntry,
    EnrichedEntry,
    KeywordHints,
    LinkStatus,
)

logger = logging.getLogger(__name__)

ENRICHMENT_CATEGORIES = [
    "Mantenimiento",
    "Motor",
    "Suspensión",
    "Frenos",
    "Eléctrico",
    "Carrocería",
    "Transmisión",
    "Accesorios",
    "General",
]


class OpenAISuggestionProvider:
    """Suggestion provider over the OpenAI chat completions API."""

    KEYWORDS_PROMPT = """You are an expert automotive translator and parts specialist.
1. Translate the service description from Spanish to technical English.
2. Extract 15 to 20 keywords to help find this item in a master catalog.

Keyword rules:
- Deconstruct compounds: "Smart Card" -> "Smart Card", "Card", "Smart".
- Include singular and plural forms: "Brakes" -> "Brake".
- Include verb synonyms: "Replace" -> "Replacement", "Renew", "Install".
- Include standard abbreviations: "Assembly" -> "Assy", "Right" -> "RH".

Return a JSON object: {"translation": "...", "keywords": ["...", "..."]}
"""

    SUGGEST_PROMPT = """You are an automotive service engineering expert.
Suggest factory operation codes (Labor or Repair) for an unlinked dealership line.

Rules:
- Reuse patterns from the known links when an identical case exists.
- For vague descriptions ("Revision", "Ruido", "Diagnostico") do not guess a
  specific part. Suggest a generic diagnostic code and mark confidence "Low".
- Unless the text says replace/change, assume "Labor".
- Return at most 3 suggestions.

Return a JSON object:
{"suggestions": [{"code": "...", "kind": "Labor|Repair", "reasoning": "...",
  "confidence": "High|Medium|Low", "vehicle_series_match": "..."}]}
"""

    ENRICH_PROMPT = f"""You are an expert automotive workshop service manager.
Clean up and categorize catalog operations.
- clean_description: clear commercial Spanish, ready for a customer invoice.
- category: one of {ENRICHMENT_CATEGORIES}.
- tags: 3 search keywords.

Return a JSON object:
{{"items": [{{"id": "...", "clean_description": "...", "category": "...", "tags": ["..."]}}]}}
"""

    def __init__(self, config: LLMConfig | None = None, client: Any = None):
        self.config = config or get_config().llm
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._client is not None or bool(self.config.api_key)

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = openai.AsyncOpenAI(api_key=self.config.api_key)
        return self._client

    async def _call_llm(self, system_prompt: str, user_content: str) -> dict[str, Any]:
        client = self._get_client()
        response = await client.chat.completions.create(
            model=self.config.llm_model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            temperature=self.config.temperature,
            response_format={"type": "json_object"},
        )
        content = response.choices[0].message.content or "{}"
        return json.loads(content)

    async def extract_keywords(self, text: str) -> KeywordHints:
        """Translate a description and extract search keywords."""
        if not self.enabled or not text.strip():
            return KeywordHints()

        try:
            data = await self._call_llm(self.KEYWORDS_PROMPT, f'Description: "{text}"')
            return KeywordHints.model_validate(data)
        except (openai.OpenAIError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Keyword extraction unavailable: {e}")
            return KeywordHints()

    async def suggest_candidates(
        self, description: str, code: str, history: list[CatalogEntry]
    ) -> list[AiSuggestion]:
        """Propose up to three factory codes using linked entries as examples."""
        if not self.enabled:
            return []

        examples = [
            {"desc": h.description, "code": h.factory_code, "kind": h.kind.value}
            for h in history
            if h.status == LinkStatus.LINKED
        ][: self.config.history_sample_size]

        user_content = (
            f"Internal code: {code}\n"
            f'Description: "{description}"\n'
            f"Known links: {json.dumps(examples, ensure_ascii=False)}"
        )

        try:
            data = await self._call_llm(self.SUGGEST_PROMPT, user_content)
            raw = data.get("suggestions", [])
            return [AiSuggestion.model_validate(s) for s in raw][:3]
        except (openai.OpenAIError, json.JSONDecodeError, ValidationError, AttributeError) as e:
            logger.warning(f"Suggestions unavailable for {code}: {e}")
            return []

    async def enrich_catalog(self, entries: list[CatalogEntry]) -> list[EnrichedEntry]:
        """Clean descriptions and assign categories for a batch of entries."""
        if not self.enabled or not entries:
            return []

        batch = [
            {"id": e.id, "code": e.factory_code, "desc": e.description}
            for e in entries[: self.config.enrichment_batch_size]
        ]

        try:
            data = await self._call_llm(
                self.ENRICH_PROMPT, json.dumps(batch, ensure_ascii=False)
            )
            return [EnrichedEntry.model_validate(item) for item in data.get("items", [])]
        except (openai.OpenAIError, json.JSONDecodeError, ValidationError, AttributeError) as e:
            logger.warning(f"Catalog enrichment unavailable: {e}")
            return []
