"""Tests for alias generation, entry drafting and strict model-output parsing."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest

from conftest import make_entry_data
from generators.alias_generator import AliasGenerator, parse_alias_list
from generators.concept_generator import ConceptGenerator
from generators.model_output import (
    ModelOutputSchemaError,
    ModelOutputSyntaxError,
    extract_json,
    parse_model_output,
)
from schemas.concept_entry import ConceptDraft
from schemas.fact_check import FactCheckResponse


def fake_client(text: str) -> MagicMock:
    client = MagicMock()
    client.messages.create = AsyncMock(
        return_value=SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])
    )
    return client


# ---------------------------------------------------------------------------
# Model output
# ---------------------------------------------------------------------------

def test_extract_json_from_fenced_and_bare_output():
    assert extract_json('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert extract_json('Here you go: {"a": {"b": 2}} thanks') == '{"a": {"b": 2}}'
    assert extract_json("no json") == "no json"


def test_parse_model_output_validates_camel_case_payload():
    parsed = parse_model_output(
        '{"claims": [{"claim": "CBD אינו משכר", "verified": true}], "confidenceScore": 0.9}',
        FactCheckResponse,
    )
    assert parsed.confidence_score == 0.9
    assert parsed.claims[0].verified is True
    assert parsed.unverified_claims == []


def test_syntax_and_schema_errors_are_distinct_and_keep_raw_output():
    with pytest.raises(ModelOutputSyntaxError) as syntax:
        parse_model_output("{not json", FactCheckResponse)
    assert syntax.value.raw_output == "{not json"

    with pytest.raises(ModelOutputSchemaError) as schema:
        parse_model_output('{"claims": []}', FactCheckResponse)
    assert schema.value.raw_output == '{"claims": []}'
    assert not isinstance(schema.value, ModelOutputSyntaxError)


def test_draft_requires_at_least_one_section():
    data = make_entry_data(sections=[])
    with pytest.raises(ModelOutputSchemaError):
        parse_model_output(json.dumps(data, ensure_ascii=False), ConceptDraft)


# ---------------------------------------------------------------------------
# Aliases
# ---------------------------------------------------------------------------

def test_parse_alias_list_filters_concept_short_and_duplicates():
    text = "Cannabidiol, CBD, קנבידיול, x, CBD , קאנאבידיול"
    assert parse_alias_list(text, "קנבידיול") == ["Cannabidiol", "CBD", "קאנאבידיול"]


@pytest.mark.asyncio
async def test_alias_generator_calls_model():
    client = fake_client("Myrcene, מירסן")
    aliases = await AliasGenerator(client=client, model="test-model").generate("מירצן")
    assert aliases == ["Myrcene", "מירסן"]
    kwargs = client.messages.create.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert "מירצן" in kwargs["messages"][0]["content"]


@pytest.mark.asyncio
async def test_alias_generator_returns_empty_on_api_error():
    client = MagicMock()
    client.messages.create = AsyncMock(
        side_effect=anthropic.APIConnectionError(request=httpx.Request("POST", "https://api.anthropic.com"))
    )
    assert await AliasGenerator(client=client).generate("מירצן") == []


# ---------------------------------------------------------------------------
# Drafting
# ---------------------------------------------------------------------------

def test_build_prompt_switches_on_context():
    generator = ConceptGenerator(client=MagicMock())
    with_context = generator.build_prompt("מירצן", "terpenes", "--- מקור 1 ---\nטקסט {עם סוגריים}")
    without_context = generator.build_prompt("מירצן", "terpenes", "")

    assert '"מירצן"' in with_context
    assert 'categorySlug = "terpenes"' in with_context
    assert "טקסט {עם סוגריים}" in with_context
    assert generator.no_context_text.strip() in without_context


@pytest.mark.asyncio
async def test_generate_returns_validated_draft():
    payload = json.dumps(make_entry_data(slug="myrcene", title="מירצן"), ensure_ascii=False)
    client = fake_client(f"```json\n{payload}\n```")
    draft = await ConceptGenerator(client=client, model="m").generate("מירצן", "terpenes", "")

    assert draft.slug == "myrcene"
    assert draft.structured_data.medical_name == "Cannabidiol"
    assert client.messages.create.call_args.kwargs["system"]


@pytest.mark.asyncio
async def test_generate_raises_syntax_error_on_prose():
    client = fake_client("מצטער, איני יכול לעזור בזה")
    with pytest.raises(ModelOutputSyntaxError):
        await ConceptGenerator(client=client).generate("מירצן", "terpenes", "")
