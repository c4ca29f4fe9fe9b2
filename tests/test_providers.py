from __future__ import annotations

import pytest

from chatbridge.errors import ModelNotFoundError
from chatbridge.providers import (
    MODELS,
    PROVIDERS,
    build_provider_options,
    get_model_by_id,
    get_models_by_capability,
    get_models_by_provider,
    resolve_profile,
)


def test_model_ids_are_unique_and_providers_known():
    ids = [model.id for model in MODELS]
    assert len(ids) == len(set(ids))
    assert {model.provider for model in MODELS} <= set(PROVIDERS)


def test_capabilities_record_narrows_documents_to_pdf_models():
    assert resolve_profile("claude-4-sonnet").capabilities_record.supports_documents
    assert not resolve_profile("gpt-4o").capabilities_record.supports_documents
    assert not resolve_profile("gemini-2.5-flash").capabilities_record.supports_documents


def test_capabilities_record_narrows_signature_to_reasoning_models():
    assert resolve_profile(
        "claude-4-sonnet-reasoning"
    ).capabilities_record.supports_reasoning_signature
    assert not resolve_profile("claude-4-sonnet").capabilities_record.supports_reasoning_signature
    assert not resolve_profile("gemini-2.5-pro").capabilities_record.supports_reasoning_signature


@pytest.mark.parametrize(
    ("model_id", "expected"),
    [("gpt-4o", False), ("claude-4-sonnet", False), ("gemini-2.5-flash", True)],
)
def test_assistant_image_support_follows_provider(model_id, expected):
    assert resolve_profile(model_id).capabilities_record.supports_assistant_images is expected


def test_reasoning_levels_need_more_than_one_option():
    assert resolve_profile("gemini-2.5-pro").supports_reasoning_levels
    assert resolve_profile("grok-3-mini").supports_reasoning_levels
    assert not resolve_profile("deepseek-r1-preview").supports_reasoning_levels


def test_lookups():
    assert get_model_by_id("missing") is None
    assert {model.id for model in get_models_by_provider("Anthropic")} == {
        "claude-3.7-sonnet",
        "claude-4-sonnet",
        "claude-4-sonnet-reasoning",
    }
    assert all(model.has_capability("search") for model in get_models_by_capability("search"))


def test_resolve_profile_raises_for_unknown_model():
    with pytest.raises(ModelNotFoundError) as excinfo:
        resolve_profile("gpt-99")

    assert excinfo.value.model_id == "gpt-99"
    assert str(excinfo.value) == "Model gpt-99 not found"


def test_provider_options_map_google_levels_to_thinking_budgets():
    profile = resolve_profile("gemini-2.5-pro")

    assert build_provider_options(profile, "high") == {
        "google": {"thinkingConfig": {"thinkingBudget": 8192, "includeThoughts": True}}
    }
    assert (
        build_provider_options(profile, "low")["google"]["thinkingConfig"]["thinkingBudget"]
        == 1024
    )


@pytest.mark.parametrize(
    "model_id, level, expected",
    [
        ("o4-mini", "medium", {"openai": {"reasoningEffort": "medium"}}),
        ("grok-3-mini", "high", {"xai": {"reasoningEffort": "high"}}),
        ("grok-3-mini", "medium", {}),
        ("claude-4-sonnet-reasoning", "high", {}),
        ("gpt-4o", "high", {}),
        ("gemini-2.5-pro", None, {}),
    ],
)
def test_provider_options_only_for_listed_levels(model_id, level, expected):
    assert build_provider_options(resolve_profile(model_id), level) == expected


def test_provider_options_carry_api_key_without_reasoning():
    options = build_provider_options(resolve_profile("gpt-4o"), "high", api_key="sk-test")

    assert options == {"openai": {"apiKey": "sk-test"}}
