"""Curated model registry for on-device recognition.

Provides the known Parakeet models with their language coverage. Used by
the CLI for model selection and by the Parakeet backend to answer
language support questions.
"""

from dataclasses import dataclass, field

# Parakeet TDT v3 covers 25 European languages
_PARAKEET_V3_LANGUAGES = frozenset({
    "bg", "cs", "da", "de", "el", "en", "es", "et", "fi", "fr", "hr", "hu", "it",
    "lt", "lv", "mt", "nl", "pl", "pt", "ro", "ru", "sk", "sl", "sv", "uk",
})


@dataclass(frozen=True)
class ModelInfo:
    """Metadata for a curated speech model."""

    model_id: str
    """HuggingFace model identifier (e.g., 'mlx-community/parakeet-tdt-0.6b-v3')."""

    languages: frozenset[str]
    """Primary language subtags the model can recognize (e.g., 'en', 'fr')."""

    description: str = ""
    """Human-readable description for CLI display."""

    aliases: tuple[str, ...] = field(default_factory=tuple)
    """Short names for CLI convenience (e.g., ('parakeet', 'v3'))."""

    def supports(self, language: str) -> bool:
        return primary_subtag(language) in self.languages


def primary_subtag(language: str) -> str:
    """Return the primary language subtag of a tag: ``en-US`` -> ``en``."""
    return language.replace("_", "-").split("-", 1)[0].lower()


MODEL_REGISTRY: dict[str, ModelInfo] = {
    "mlx-community/parakeet-tdt-0.6b-v3": ModelInfo(
        model_id="mlx-community/parakeet-tdt-0.6b-v3",
        languages=_PARAKEET_V3_LANGUAGES,
        description="Parakeet TDT 0.6B v3 - Multilingual, 25 European languages",
        aliases=("parakeet-v3", "parakeet"),
    ),
    "mlx-community/parakeet-tdt-0.6b-v2": ModelInfo(
        model_id="mlx-community/parakeet-tdt-0.6b-v2",
        languages=frozenset({"en"}),
        description="Parakeet TDT 0.6B v2 - English only",
        aliases=("parakeet-v2",),
    ),
}

DEFAULT_MODEL = "mlx-community/parakeet-tdt-0.6b-v3"


def get_model_info(model_id: str) -> ModelInfo | None:
    """Get model info by exact model ID."""
    return MODEL_REGISTRY.get(model_id)


def list_models() -> list[ModelInfo]:
    """List all curated models."""
    return list(MODEL_REGISTRY.values())


def resolve_model(model_id: str) -> ModelInfo:
    """Resolve a model ID or alias to ModelInfo.

    Args:
        model_id: Full model ID or short alias.

    Returns:
        ModelInfo for the resolved model.

    Raises:
        ValueError: If model ID is not found in registry.
    """
    if model_id in MODEL_REGISTRY:
        return MODEL_REGISTRY[model_id]

    for info in MODEL_REGISTRY.values():
        if model_id in info.aliases:
            return info

    supported = sorted(MODEL_REGISTRY.keys())
    aliases = sorted(
        alias for info in MODEL_REGISTRY.values() for alias in info.aliases
    )

    raise ValueError(
        f"Unknown model: '{model_id}'. "
        f"Supported models: {supported}. "
        f"Aliases: {aliases}."
    )
