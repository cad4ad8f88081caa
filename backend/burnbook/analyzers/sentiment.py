"""情感分析器

远程与本地实现共享同一判定规则 decide_sentiment:
- 正负强度都超过 MIXED_THRESHOLD -> mixed
- 一方领先超过 DOMINANCE_MARGIN -> positive / negative
- 否则 neutral
sentiment_score 恒为 P(positive) - P(negative)。
"""
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from burnbook.analyzers.base import run_with_fallback
from burnbook.analyzers.llm_client import LLMClient
from burnbook.analyzers.llm_validators import validate_sentiment_response
from burnbook.config import get_settings
from burnbook.exceptions import ProviderUnavailable
from prompts.analysis_prompts import (
    SENTIMENT_SYSTEM_PROMPT,
    SENTIMENT_REPAIR_SYSTEM_PROMPT,
    build_sentiment_user_prompt,
    build_repair_prompt,
)

MAX_TEXT_CHARS = 5120
MIXED_THRESHOLD = 0.3
DOMINANCE_MARGIN = 0.1
KEYWORD_INCREMENT = 0.2

POSITIVE_WORDS = frozenset([
    "great", "awesome", "love", "excellent", "amazing",
    "helpful", "works", "good", "best", "fantastic",
])
NEGATIVE_WORDS = frozenset([
    "bad", "terrible", "hate", "awful", "problem",
    "issue", "bug", "broken", "worst", "useless",
])


@dataclass
class SentimentScores:
    """单段文本的情感判定"""
    sentiment: str
    confidence: float
    sentiment_score: float
    key_phrases: List[str] = field(default_factory=list)
    provider: str = "keyword"


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def decide_sentiment(positive: float, negative: float) -> str:
    if positive > MIXED_THRESHOLD and negative > MIXED_THRESHOLD:
        return "mixed"
    if positive > negative + DOMINANCE_MARGIN:
        return "positive"
    if negative > positive + DOMINANCE_MARGIN:
        return "negative"
    return "neutral"


def truncate_text(text: str, max_chars: int = MAX_TEXT_CHARS) -> str:
    return text[:max_chars] if len(text) > max_chars else text


def extract_key_phrases(text: str, limit: int = 5) -> List[str]:
    """相邻且都长于4个字符的词对"""
    words = [w.strip(".,!?;:\"'()[]") for w in text.split()]
    phrases: List[str] = []
    for first, second in zip(words, words[1:]):
        if len(first) > 4 and len(second) > 4:
            phrase = f"{first} {second}".lower()
            if phrase not in phrases:
                phrases.append(phrase)
        if len(phrases) >= limit:
            break
    return phrases


class SentimentClassifier(ABC):
    """情感分类能力接口"""

    @abstractmethod
    async def classify(self, text: str) -> SentimentScores:
        pass


class KeywordSentimentClassifier(SentimentClassifier):
    """基于固定词表的本地确定性实现"""

    def __init__(
        self,
        positive_words=POSITIVE_WORDS,
        negative_words=NEGATIVE_WORDS,
        max_chars: int = MAX_TEXT_CHARS,
    ):
        self.max_chars = max_chars
        self.positive_regex = self._build_regex(positive_words)
        self.negative_regex = self._build_regex(negative_words)

    @staticmethod
    def _build_regex(words) -> re.Pattern:
        alternation = "|".join(re.escape(w) for w in sorted(words))
        return re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE)

    def _score(self, regex: re.Pattern, text: str) -> float:
        hits = {m.group(0).lower() for m in regex.finditer(text)}
        return _clamp(len(hits) * KEYWORD_INCREMENT, 0.0, 1.0)

    async def classify(self, text: str) -> SentimentScores:
        return self.classify_sync(text)

    def classify_sync(self, text: str) -> SentimentScores:
        text = truncate_text(text or "", self.max_chars)
        positive = self._score(self.positive_regex, text)
        negative = self._score(self.negative_regex, text)

        return SentimentScores(
            sentiment=decide_sentiment(positive, negative),
            confidence=round(max(positive, negative, 0.5), 4),
            sentiment_score=round(_clamp(positive - negative, -1.0, 1.0), 4),
            key_phrases=extract_key_phrases(text),
            provider="keyword",
        )


class LLMSentimentClassifier(SentimentClassifier):
    """使用LLM输出三类概率"""

    def __init__(self, llm: Optional[LLMClient] = None, max_chars: int = MAX_TEXT_CHARS):
        self.llm = llm or LLMClient()
        self.max_chars = max_chars

    async def classify(self, text: str) -> SentimentScores:
        if not self.llm.is_configured:
            raise ProviderUnavailable("LLM sentiment provider is not configured")

        text = truncate_text(text or "", self.max_chars)
        try:
            response = await self.llm.analyze_json_with_repair(
                prompt=build_sentiment_user_prompt(text),
                system_prompt=SENTIMENT_SYSTEM_PROMPT,
                repair_system_prompt=SENTIMENT_REPAIR_SYSTEM_PROMPT,
                repair_user_prompt_builder=build_repair_prompt,
                validator=validate_sentiment_response,
            )
        except ProviderUnavailable:
            raise
        except Exception as e:
            raise ProviderUnavailable(f"LLM sentiment request failed: {e}") from e

        positive = float(response["positive"])
        neutral = float(response["neutral"])
        negative = float(response["negative"])

        return SentimentScores(
            sentiment=decide_sentiment(positive, negative),
            confidence=round(max(positive, neutral, negative), 4),
            sentiment_score=round(_clamp(positive - negative, -1.0, 1.0), 4),
            key_phrases=[p.strip() for p in response.get("key_phrases", []) if p.strip()][:5],
            provider="llm",
        )


class FallbackSentimentClassifier(SentimentClassifier):
    """远程优先，失败时回退到关键词实现"""

    def __init__(
        self,
        primary: Optional[SentimentClassifier] = None,
        fallback: Optional[SentimentClassifier] = None,
    ):
        max_chars = get_settings().classifier_max_chars
        self.primary = primary or LLMSentimentClassifier(max_chars=max_chars)
        self.fallback = fallback or KeywordSentimentClassifier(max_chars=max_chars)

    async def classify(self, text: str) -> SentimentScores:
        return await run_with_fallback(
            "sentiment",
            lambda: self.primary.classify(text),
            lambda: self.fallback.classify(text),
        )
