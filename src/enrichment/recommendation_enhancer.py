"""
Enrichissement - Recommendation Enhancer

Enrichit les recommandations (explication détaillée, étapes de mise en
œuvre, durée estimée) via un ITextGenerator.

Toute panne du générateur (exception, timeout, réponse non JSON)
dégrade vers la recommandation de base: le chemin de création
d'incident n'en dépend jamais.
"""

import asyncio
import hashlib
import json
import re
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from src.classification.interfaces import Recommendation
from src.enrichment.interfaces import (
    EnhancedRecommendation,
    IRecommendationEnhancer,
    ITextGenerator,
    IncidentContext,
)
from src.logging.structured_logger import StructuredLogger


SYSTEM_PROMPT = (
    "You are a cybersecurity expert providing detailed analysis of incident "
    "response recommendations. Provide practical, actionable insights based on "
    "current security frameworks."
)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class _EnhancementPayload(BaseModel):
    """Réponse attendue du générateur."""

    detailed_explanation: Optional[str] = None
    implementation_steps: List[str] = Field(default_factory=list)
    estimated_time: Optional[str] = None


class EnhancementParseError(Exception):
    """Réponse du générateur illisible."""

    pass


class RecommendationEnhancer(IRecommendationEnhancer):
    """
    Enrichisseur de recommandations avec cache.

    Seuls les résultats entièrement enrichis sont mis en cache, sous une
    clé SHA-256 des recommandations et du contexte.
    """

    def __init__(
        self,
        generator: ITextGenerator,
        timeout_seconds: float = 10.0,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        self._generator = generator
        self._timeout = timeout_seconds
        self._logger = logger or StructuredLogger("recommendation-enhancer")
        self._cache: Dict[str, List[EnhancedRecommendation]] = {}

    async def enhance(
        self,
        recommendations: Sequence[Recommendation],
        context: IncidentContext,
    ) -> List[EnhancedRecommendation]:
        key = self._cache_key(recommendations, context)
        cached = self._cache.get(key)
        if cached is not None:
            return list(cached)

        results = await asyncio.gather(
            *(self._enhance_one(r, context) for r in recommendations)
        )
        enhanced = list(results)

        if enhanced and all(e.enhanced for e in enhanced):
            self._cache[key] = enhanced
        return list(enhanced)

    def clear_cache(self) -> None:
        self._cache.clear()

    async def _enhance_one(
        self, recommendation: Recommendation, context: IncidentContext
    ) -> EnhancedRecommendation:
        try:
            answer = await asyncio.wait_for(
                self._generator.generate(self._build_prompt(recommendation, context), SYSTEM_PROMPT),
                timeout=self._timeout,
            )
            payload = self._parse(answer)
        except asyncio.TimeoutError:
            self._logger.warn(
                "Enhancement timed out",
                action=recommendation.action,
                timeout_seconds=self._timeout,
            )
            return EnhancedRecommendation(recommendation=recommendation)
        except EnhancementParseError as e:
            self._logger.warn("Unparsable enhancement", action=recommendation.action, error=str(e))
            return EnhancedRecommendation(recommendation=recommendation)
        except Exception as e:
            # Générateur externe: toute panne est dégradée
            self._logger.warn("Enhancement failed", action=recommendation.action, error=str(e))
            return EnhancedRecommendation(recommendation=recommendation)

        return EnhancedRecommendation(
            recommendation=recommendation,
            detailed_explanation=payload.detailed_explanation or recommendation.reason,
            implementation_steps=tuple(payload.implementation_steps),
            estimated_time=payload.estimated_time,
            enhanced=True,
        )

    @staticmethod
    def _parse(answer: str) -> _EnhancementPayload:
        match = _JSON_OBJECT.search(answer or "")
        if not match:
            raise EnhancementParseError("No JSON object in response")
        try:
            return _EnhancementPayload.model_validate(json.loads(match.group(0)))
        except (json.JSONDecodeError, PydanticValidationError) as e:
            raise EnhancementParseError(str(e))

    @staticmethod
    def _build_prompt(recommendation: Recommendation, context: IncidentContext) -> str:
        return (
            "Analyze this cybersecurity incident and enhance the recommendation:\n\n"
            "INCIDENT CONTEXT:\n"
            f"- Type: {context.incident_type}\n"
            f"- Severity: {context.severity}\n"
            f"- Affected Users: {context.affected_users}\n\n"
            "CURRENT RECOMMENDATION:\n"
            f"- Action: {recommendation.action}\n"
            f"- Reason: {recommendation.reason}\n"
            f"- Citation: {recommendation.citation}\n"
            f"- Priority: {recommendation.priority}\n"
            f"- Category: {recommendation.category.value}\n\n"
            "Respond with a JSON object with these fields:\n"
            '{"detailed_explanation": "...", "implementation_steps": ["..."], '
            '"estimated_time": "15-30 minutes"}\n'
        )

    @staticmethod
    def _cache_key(recommendations: Sequence[Recommendation], context: IncidentContext) -> str:
        parts = [f"{r.action}-{r.priority}" for r in recommendations]
        raw = "|".join(parts) + f"#{context.incident_type}-{context.severity}-{context.affected_users}"
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()
