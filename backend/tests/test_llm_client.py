"""LLM客户端与输出校验测试（不访问网络）"""
import asyncio
import json

import pytest

from burnbook.analyzers.llm_client import LLMClient
from burnbook.analyzers.llm_validators import validate_entity_response, validate_sentiment_response
from burnbook.exceptions import ProviderUnavailable


def test_unconfigured_client_raises_provider_unavailable():
    client = LLMClient()

    assert not client.is_configured
    with pytest.raises(ProviderUnavailable):
        asyncio.run(client.chat([{"role": "user", "content": "ping"}]))


def test_analyze_json_with_repair_retries_once():
    client = LLMClient()
    replies = [
        "not json",
        json.dumps({"positive": 0.6, "neutral": 0.3, "negative": 0.1, "key_phrases": []}),
    ]
    prompts = []

    async def fake_chat(messages, **kwargs):
        prompts.append(messages)
        return replies.pop(0)

    client.chat = fake_chat
    data = asyncio.run(client.analyze_json_with_repair(
        prompt="Elite is great",
        system_prompt="system",
        repair_system_prompt="repair",
        repair_user_prompt_builder=lambda raw, error: f"{raw}|{error}",
        validator=validate_sentiment_response,
    ))

    assert data["positive"] == 0.6
    assert len(prompts) == 2
    assert prompts[1][0]["content"] == "repair"
    assert prompts[1][1]["content"].startswith("not json|JSON parse error")


def test_analyze_json_with_repair_gives_up():
    client = LLMClient()

    async def fake_chat(messages, **kwargs):
        return json.dumps({"positive": 2})

    client.chat = fake_chat
    with pytest.raises(ValueError):
        asyncio.run(client.analyze_json_with_repair(
            prompt="x",
            system_prompt="s",
            repair_system_prompt="r",
            repair_user_prompt_builder=lambda raw, error: raw,
            validator=validate_sentiment_response,
        ))


def test_validators():
    assert validate_sentiment_response(
        {"positive": 0.2, "neutral": 0.5, "negative": 0.3, "key_phrases": ["slow sync"]}
    ) == (True, "")
    assert not validate_sentiment_response({"positive": 0.9, "neutral": 0.9, "negative": 0.9, "key_phrases": []})[0]
    assert not validate_sentiment_response([])[0]

    assert validate_entity_response({"entities": [{"name": "Elite", "type": "product", "confidence": 0.9}]})[0]
    assert not validate_entity_response({"entities": [{"name": "Bob", "type": "person", "confidence": 0.9}]})[0]
    assert not validate_entity_response({"entities": [{"name": " ", "type": "product", "confidence": 0.9}]})[0]
