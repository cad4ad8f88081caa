"""情感分类测试"""
import asyncio

from burnbook.analyzers import (
    FallbackSentimentClassifier,
    KeywordSentimentClassifier,
    LLMSentimentClassifier,
    decide_sentiment,
)
from burnbook.analyzers.sentiment import MAX_TEXT_CHARS, extract_key_phrases, truncate_text
from burnbook.exceptions import ProviderUnavailable
from fakes import FakeLLM


def test_decide_sentiment_rules():
    assert decide_sentiment(0.4, 0.4) == "mixed"
    assert decide_sentiment(0.6, 0.31) == "mixed"
    assert decide_sentiment(0.2, 0.0) == "positive"
    assert decide_sentiment(0.0, 0.2) == "negative"
    assert decide_sentiment(0.2, 0.2) == "neutral"
    assert decide_sentiment(0.0, 0.0) == "neutral"
    assert decide_sentiment(0.3, 0.25) == "neutral"


def test_keyword_classifier_positive():
    scores = KeywordSentimentClassifier().classify_sync("Elite is great for charting calls")

    assert scores.sentiment == "positive"
    assert scores.sentiment_score == 0.2
    assert scores.confidence == 0.5
    assert scores.provider == "keyword"


def test_keyword_classifier_counts_distinct_whole_words():
    classifier = KeywordSentimentClassifier()

    repeated = classifier.classify_sync("great great GREAT")
    assert repeated.sentiment_score == 0.2

    # "greatly" 不是完整单词
    partial = classifier.classify_sync("greatly improved the workflow")
    assert partial.sentiment == "neutral"
    assert partial.sentiment_score == 0.0


def test_keyword_classifier_mixed_and_negative():
    classifier = KeywordSentimentClassifier()

    mixed = classifier.classify_sync("I love it, it is great and awesome but the bug is terrible and I hate it")
    assert mixed.sentiment == "mixed"
    assert mixed.confidence == 0.6

    negative = classifier.classify_sync("The sync is broken and useless")
    assert negative.sentiment == "negative"
    assert negative.sentiment_score == -0.4
    assert negative.confidence == 0.5


def test_keyword_scores_are_clamped():
    text = "great awesome love excellent amazing helpful works good best fantastic"
    scores = KeywordSentimentClassifier().classify_sync(text)

    assert scores.sentiment_score == 1.0
    assert scores.confidence == 1.0


def test_long_input_is_truncated_not_rejected():
    text = "x" * MAX_TEXT_CHARS + " great"
    assert len(truncate_text(text)) == MAX_TEXT_CHARS

    scores = KeywordSentimentClassifier().classify_sync(text)
    assert scores.sentiment == "neutral"


def test_extract_key_phrases():
    phrases = extract_key_phrases("Offline charting crashes constantly during long transports, honestly")

    assert phrases[0] == "offline charting"
    assert "charting crashes" in phrases
    assert len(phrases) <= 5
    assert extract_key_phrases("a b c") == []


def test_llm_classifier_maps_probabilities():
    llm = FakeLLM(json_response={
        "positive": 0.7, "neutral": 0.2, "negative": 0.1,
        "key_phrases": ["fast charting", " "],
    })
    scores = asyncio.run(LLMSentimentClassifier(llm=llm).classify("Charting is fast now"))

    assert scores.sentiment == "positive"
    assert scores.sentiment_score == 0.6
    assert scores.confidence == 0.7
    assert scores.key_phrases == ["fast charting"]
    assert scores.provider == "llm"


def test_llm_classifier_unconfigured_raises():
    llm = FakeLLM(configured=False)
    try:
        asyncio.run(LLMSentimentClassifier(llm=llm).classify("anything at all"))
    except ProviderUnavailable:
        pass
    else:
        raise AssertionError("expected ProviderUnavailable")
    assert llm.calls == 0


def test_fallback_classifier_uses_keywords_when_llm_fails():
    llm = FakeLLM(error=RuntimeError("503 Service Unavailable"))
    classifier = FallbackSentimentClassifier(primary=LLMSentimentClassifier(llm=llm))

    scores = asyncio.run(classifier.classify("Elite is great for charting calls"))

    assert llm.calls == 1
    assert scores.provider == "keyword"
    assert scores.sentiment == "positive"


def test_fallback_classifier_prefers_primary():
    llm = FakeLLM(json_response={"positive": 0.1, "neutral": 0.1, "negative": 0.8, "key_phrases": []})
    classifier = FallbackSentimentClassifier(primary=LLMSentimentClassifier(llm=llm))

    scores = asyncio.run(classifier.classify("Elite is great for charting calls"))

    assert scores.provider == "llm"
    assert scores.sentiment == "negative"
