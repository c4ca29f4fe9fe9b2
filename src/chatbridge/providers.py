"""Provider capability records and the model catalog."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Literal

from .errors import ModelNotFoundError

ModelCapability = Literal["image", "pdf", "search", "reasoning", "image-generation"]


@dataclass(frozen=True)
class ProviderCapabilities:
    """What a provider's message format accepts.

    ``supports_documents`` and ``supports_reasoning_signature`` describe the
    provider; `ModelProfile.capabilities_record` narrows them per model.
    """

    name: str
    supports_assistant_images: bool = True
    supports_documents: bool = True
    supports_reasoning_signature: bool = False


PROVIDERS: dict[str, ProviderCapabilities] = {
    "Google": ProviderCapabilities("Google"),
    "OpenAI": ProviderCapabilities("OpenAI", supports_assistant_images=False),
    "Anthropic": ProviderCapabilities(
        "Anthropic",
        supports_assistant_images=False,
        supports_reasoning_signature=True,
    ),
    "xAI": ProviderCapabilities("xAI"),
    "Groq": ProviderCapabilities("Groq"),
    "DeepSeek": ProviderCapabilities("DeepSeek"),
    "OpenRouter": ProviderCapabilities("OpenRouter"),
}


@dataclass(frozen=True)
class ModelProfile:
    id: str
    name: str
    provider: str
    api_model_name: str
    capabilities: frozenset[str] = field(default_factory=frozenset)
    reasoning_levels: tuple[str, ...] = ()
    supports_functions: bool = True
    max_tokens: int = 8192

    def has_capability(self, capability: ModelCapability) -> bool:
        return capability in self.capabilities

    @property
    def supports_reasoning_levels(self) -> bool:
        return len(self.reasoning_levels) > 1

    @property
    def capabilities_record(self) -> ProviderCapabilities:
        """Provider record narrowed to what this model can actually use."""

        base = PROVIDERS.get(self.provider) or ProviderCapabilities(self.provider)
        return replace(
            base,
            supports_documents=base.supports_documents and self.has_capability("pdf"),
            supports_reasoning_signature=(
                base.supports_reasoning_signature and self.has_capability("reasoning")
            ),
        )


def _model(
    id: str,
    name: str,
    provider: str,
    api_model_name: str,
    *capabilities: str,
    reasoning_levels: tuple[str, ...] = (),
    supports_functions: bool = True,
    max_tokens: int = 8192,
) -> ModelProfile:
    return ModelProfile(
        id=id,
        name=name,
        provider=provider,
        api_model_name=api_model_name,
        capabilities=frozenset(capabilities),
        reasoning_levels=reasoning_levels,
        supports_functions=supports_functions,
        max_tokens=max_tokens,
    )


_ALL_LEVELS = ("low", "medium", "high")

MODELS: tuple[ModelProfile, ...] = (
    # Google
    _model("gemini-2.0-flash", "Gemini 2.0 Flash", "Google", "gemini-2.0-flash", "image", "search"),
    _model(
        "gemini-2.5-flash",
        "Gemini 2.5 Flash",
        "Google",
        "gemini-2.5-flash-preview-05-20",
        "image",
        "search",
    ),
    _model(
        "gemini-2.5-pro",
        "Gemini 2.5 Pro",
        "Google",
        "gemini-2.5-pro-preview-06-05",
        "image",
        "pdf",
        "search",
        "reasoning",
        reasoning_levels=_ALL_LEVELS,
    ),
    # OpenAI
    _model("gpt-4o", "GPT-4o", "OpenAI", "gpt-4o-2024-11-20", "image", max_tokens=4096),
    _model("gpt-4o-mini", "GPT-4o Mini", "OpenAI", "gpt-4o-mini", "image", max_tokens=4096),
    _model("gpt-4.1", "GPT-4.1", "OpenAI", "gpt-4.1", "image", max_tokens=32768),
    _model(
        "o4-mini",
        "o4-mini",
        "OpenAI",
        "o4-mini-2025-04-16",
        "reasoning",
        "image",
        reasoning_levels=_ALL_LEVELS,
        supports_functions=False,
        max_tokens=4096,
    ),
    _model(
        "gpt-image-1",
        "GPT Image 1",
        "OpenAI",
        "gpt-image-1",
        "image-generation",
        "image",
        supports_functions=False,
        max_tokens=4096,
    ),
    # Anthropic
    _model(
        "claude-3.7-sonnet",
        "Claude 3.7 Sonnet",
        "Anthropic",
        "claude-3-7-sonnet-20250219",
        "image",
        "pdf",
    ),
    _model(
        "claude-4-sonnet",
        "Claude 4 Sonnet",
        "Anthropic",
        "claude-sonnet-4-20250514",
        "image",
        "pdf",
    ),
    _model(
        "claude-4-sonnet-reasoning",
        "Claude 4 Sonnet (Reasoning)",
        "Anthropic",
        "claude-sonnet-4-20250514",
        "image",
        "pdf",
        "reasoning",
        reasoning_levels=_ALL_LEVELS,
    ),
    # Groq
    _model(
        "llama-4-scout-groq",
        "Llama 4 Scout (Groq)",
        "Groq",
        "meta-llama/llama-4-scout-17b-16e-instruct",
        "image",
    ),
    # DeepSeek
    _model("deepseek-v3-chat", "DeepSeek V3 Chat", "DeepSeek", "deepseek-chat"),
    _model(
        "deepseek-r1-preview",
        "DeepSeek R1 Preview",
        "DeepSeek",
        "deepseek-reasoner",
        "reasoning",
    ),
    # xAI
    _model(
        "grok-3-mini",
        "Grok 3 Mini",
        "xAI",
        "grok-3-mini",
        "reasoning",
        reasoning_levels=("low", "high"),
        max_tokens=4096,
    ),
    # OpenRouter
    _model(
        "qwen3-30b-a3b-free",
        "Qwen3 30B A3B (Free)",
        "OpenRouter",
        "qwen/qwen3-30b-a3b:free",
        "reasoning",
        supports_functions=False,
        max_tokens=40960,
    ),
)

_MODELS_BY_ID = {model.id: model for model in MODELS}


def get_model_by_id(model_id: str) -> ModelProfile | None:
    return _MODELS_BY_ID.get(model_id)


def get_models_by_provider(provider: str) -> list[ModelProfile]:
    return [model for model in MODELS if model.provider == provider]


def get_models_by_capability(capability: ModelCapability) -> list[ModelProfile]:
    return [model for model in MODELS if model.has_capability(capability)]


def resolve_profile(model_id: str) -> ModelProfile:
    """Return the catalog entry for ``model_id`` or raise `ModelNotFoundError`."""

    profile = get_model_by_id(model_id)
    if profile is None:
        raise ModelNotFoundError(model_id)
    return profile


PROVIDER_SDK_NAMES: dict[str, str] = {
    "Google": "google",
    "OpenAI": "openai",
    "Anthropic": "anthropic",
    "xAI": "xai",
    "Groq": "groq",
    "DeepSeek": "deepseek",
    "OpenRouter": "openrouter",
}

THINKING_BUDGETS: dict[str, int] = {"low": 1024, "medium": 4096, "high": 8192}


def build_provider_options(
    profile: ModelProfile,
    reasoning_level: str | None,
    api_key: str | None = None,
) -> dict[str, dict[str, Any]]:
    """Per-provider call options keyed by the provider's SDK name.

    Reasoning settings are only emitted for levels the model lists; providers
    without a reasoning switch get nothing beyond the optional API key.
    """

    sdk_name = PROVIDER_SDK_NAMES.get(profile.provider)
    if sdk_name is None:
        return {}

    settings: dict[str, Any] = {}
    if api_key:
        settings["apiKey"] = api_key

    if reasoning_level and reasoning_level in profile.reasoning_levels:
        if profile.provider == "Google":
            settings["thinkingConfig"] = {
                "thinkingBudget": THINKING_BUDGETS[reasoning_level],
                "includeThoughts": True,
            }
        elif profile.provider in ("OpenAI", "xAI"):
            settings["reasoningEffort"] = reasoning_level

    return {sdk_name: settings} if settings else {}


__all__ = [
    "MODELS",
    "PROVIDERS",
    "PROVIDER_SDK_NAMES",
    "ModelCapability",
    "ModelProfile",
    "ProviderCapabilities",
    "THINKING_BUDGETS",
    "build_provider_options",
    "get_model_by_id",
    "get_models_by_capability",
    "get_models_by_provider",
    "resolve_profile",
]
