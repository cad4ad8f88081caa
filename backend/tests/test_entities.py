"""实体抽取与规范化测试"""
import asyncio

import pytest

from burnbook.analyzers import (
    FallbackEntityExtractor,
    KeywordEntityExtractor,
    LLMEntityExtractor,
    normalize_entity_name,
)
from burnbook.exceptions import ProviderUnavailable
from fakes import FakeLLM


@pytest.mark.parametrize("raw, expected", [
    ("Café Élite!!", "cafe_elite"),
    ("!!!", ""),
    ("  Mobile   App ", "mobile_app"),
    ("CAD Integration", "cad_integration"),
    ("", ""),
])
def test_normalize_entity_name(raw, expected):
    assert normalize_entity_name(raw) == expected


def test_keyword_extractor_matches_table_entries_once():
    entities = KeywordEntityExtractor().extract_sync(
        "ImageTrend Elite crashes in the mobile app, and the app needs offline mode"
    )

    assert [(e.name, e.type) for e in entities] == [
        ("ImageTrend", "company"),
        ("Elite", "product"),
        ("Mobile App", "feature"),
        ("Offline Mode", "feature"),
    ]
    assert all(e.confidence == 0.85 for e in entities)


def test_keyword_extractor_requires_whole_words():
    assert KeywordEntityExtractor().extract_sync("The elitest happenings were applauded") == []


def test_llm_extractor_drops_unknown_types_and_duplicates():
    llm = FakeLLM(json_response={"entities": [
        {"name": "Elite", "type": "product", "confidence": 0.9},
        {"name": "elite", "type": "product", "confidence": 0.8},
        {"name": "Paramedic", "type": "person", "confidence": 0.7},
    ]})
    entities = asyncio.run(LLMEntityExtractor(llm=llm).extract("Elite is fine"))

    assert [(e.name, e.type, e.confidence) for e in entities] == [("Elite", "product", 0.9)]


def test_llm_extractor_unconfigured_raises():
    with pytest.raises(ProviderUnavailable):
        asyncio.run(LLMEntityExtractor(llm=FakeLLM(configured=False)).extract("Elite"))


def test_fallback_extractor_never_fails():
    llm = FakeLLM(error=ValueError("bad json"))
    extractor = FallbackEntityExtractor(primary=LLMEntityExtractor(llm=llm))

    entities = asyncio.run(extractor.extract("RescueHub reports are slow"))

    assert [e.name for e in entities] == ["RescueHub", "Reporting"]
