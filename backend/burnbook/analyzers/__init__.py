"""AI分析模块"""
from burnbook.analyzers.llm_client import LLMClient
from burnbook.analyzers.text import build_analysis_text
from burnbook.analyzers.sentiment import (
    SentimentClassifier,
    SentimentScores,
    KeywordSentimentClassifier,
    LLMSentimentClassifier,
    FallbackSentimentClassifier,
    decide_sentiment,
)
from burnbook.analyzers.entities import (
    EntityExtractor,
    ExtractedEntity,
    KeywordEntityExtractor,
    LLMEntityExtractor,
    FallbackEntityExtractor,
    normalize_entity_name,
)
from burnbook.analyzers.answer import (
    AnswerGenerator,
    LLMAnswerGenerator,
    TemplateAnswerGenerator,
    FallbackAnswerGenerator,
)

__all__ = [
    "LLMClient",
    "build_analysis_text",
    "SentimentClassifier",
    "SentimentScores",
    "KeywordSentimentClassifier",
    "LLMSentimentClassifier",
    "FallbackSentimentClassifier",
    "decide_sentiment",
    "EntityExtractor",
    "ExtractedEntity",
    "KeywordEntityExtractor",
    "LLMEntityExtractor",
    "FallbackEntityExtractor",
    "normalize_entity_name",
    "AnswerGenerator",
    "LLMAnswerGenerator",
    "TemplateAnswerGenerator",
    "FallbackAnswerGenerator",
]
