"""实体抽取与实体名规范化"""
import logging
import re
import unicodedata
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

from burnbook.analyzers.base import run_with_fallback
from burnbook.analyzers.llm_client import LLMClient
from burnbook.analyzers.llm_validators import validate_entity_response
from burnbook.analyzers.sentiment import MAX_TEXT_CHARS, truncate_text
from burnbook.config import get_settings
from burnbook.exceptions import ProviderUnavailable
from prompts.analysis_prompts import (
    ENTITY_SYSTEM_PROMPT,
    ENTITY_REPAIR_SYSTEM_PROMPT,
    build_entity_user_prompt,
    build_repair_prompt,
)

logger = logging.getLogger(__name__)

ENTITY_TYPES = ("company", "product", "feature")
KEYWORD_CONFIDENCE = 0.85

KNOWN_ENTITIES: List[Dict] = [
    {"name": "ImageTrend", "type": "company", "keywords": ["imagetrend", "image trend"]},
    {"name": "Elite", "type": "product", "keywords": ["elite", "elite epcr"]},
    {"name": "RescueHub", "type": "product", "keywords": ["rescuehub", "rescue hub"]},
    {"name": "Mobile App", "type": "feature", "keywords": ["mobile app", "app", "mobile"]},
    {"name": "Offline Mode", "type": "feature", "keywords": ["offline", "offline mode"]},
    {"name": "CAD Integration", "type": "feature", "keywords": ["cad", "dispatch"]},
    {"name": "Reporting", "type": "feature", "keywords": ["reporting", "reports", "analytics"]},
]


@dataclass
class ExtractedEntity:
    name: str
    type: str
    confidence: float


def normalize_entity_name(name: str) -> str:
    """规范化实体名作为身份键

    小写、去除变音符号、只保留 [a-z0-9] 与空白、去首尾空白、内部空白合并为下划线。
    """
    if not name:
        return ""
    decomposed = unicodedata.normalize("NFD", name.lower())
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    cleaned = re.sub(r"[^a-z0-9\s]", "", stripped).strip()
    return re.sub(r"\s+", "_", cleaned)


def dedupe_entities(entities: List[ExtractedEntity]) -> List[ExtractedEntity]:
    seen = set()
    result = []
    for entity in entities:
        key = entity.name.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        result.append(entity)
    return result


class EntityExtractor(ABC):
    """实体抽取能力接口"""

    @abstractmethod
    async def extract(self, text: str) -> List[ExtractedEntity]:
        pass


class KeywordEntityExtractor(EntityExtractor):
    """基于关键词表的本地确定性实现，每个表项最多命中一次"""

    def __init__(self, table: Optional[List[Dict]] = None, confidence: float = KEYWORD_CONFIDENCE):
        self.confidence = confidence
        self.table = []
        for entry in table or KNOWN_ENTITIES:
            alternation = "|".join(re.escape(k) for k in entry["keywords"])
            self.table.append((entry["name"], entry["type"], re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE)))

    async def extract(self, text: str) -> List[ExtractedEntity]:
        return self.extract_sync(text)

    def extract_sync(self, text: str) -> List[ExtractedEntity]:
        text = text or ""
        hits = [
            ExtractedEntity(name=name, type=entity_type, confidence=self.confidence)
            for name, entity_type, regex in self.table
            if regex.search(text)
        ]
        return dedupe_entities(hits)


class LLMEntityExtractor(EntityExtractor):
    """使用LLM抽取公司/产品/功能实体"""

    def __init__(self, llm: Optional[LLMClient] = None, max_chars: int = MAX_TEXT_CHARS):
        self.llm = llm or LLMClient()
        self.max_chars = max_chars

    async def extract(self, text: str) -> List[ExtractedEntity]:
        if not self.llm.is_configured:
            raise ProviderUnavailable("LLM entity provider is not configured")

        text = truncate_text(text or "", self.max_chars)
        try:
            response = await self.llm.analyze_json_with_repair(
                prompt=build_entity_user_prompt(text),
                system_prompt=ENTITY_SYSTEM_PROMPT,
                repair_system_prompt=ENTITY_REPAIR_SYSTEM_PROMPT,
                repair_user_prompt_builder=build_repair_prompt,
                validator=validate_entity_response,
            )
        except ProviderUnavailable:
            raise
        except Exception as e:
            raise ProviderUnavailable(f"LLM entity request failed: {e}") from e

        entities = [
            ExtractedEntity(
                name=item["name"].strip(),
                type=item["type"],
                confidence=round(float(item["confidence"]), 4),
            )
            for item in response.get("entities", [])
            if item.get("type") in ENTITY_TYPES
        ]
        return dedupe_entities(entities)


class FallbackEntityExtractor(EntityExtractor):
    """远程优先，失败时静默回退到关键词表"""

    def __init__(
        self,
        primary: Optional[EntityExtractor] = None,
        fallback: Optional[EntityExtractor] = None,
    ):
        self.primary = primary or LLMEntityExtractor(max_chars=get_settings().classifier_max_chars)
        self.fallback = fallback or KeywordEntityExtractor()

    async def extract(self, text: str) -> List[ExtractedEntity]:
        return await run_with_fallback(
            "entity",
            lambda: self.primary.extract(text),
            lambda: self.fallback.extract(text),
        )
