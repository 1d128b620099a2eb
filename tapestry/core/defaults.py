"""
Built-in taxonomy schemes and assistant configuration.

New models start from these; the schema migrator reconciles older models
against them.
"""

from tapestry.models.model_data import ModelData, SystemPromptConfig
from tapestry.models.taxonomy import RelationshipDefinition, TaxonomyScheme


def _defs(*pairs: tuple[str, str]) -> list[RelationshipDefinition]:
    return [RelationshipDefinition(label=label, description=desc) for label, desc in pairs]


DEFAULT_TAXONOMY_SCHEMES: list[TaxonomyScheme] = [
    TaxonomyScheme(
        id="scheme-useful-harmful",
        name="Useful Harmful",
        tag_colors={
            "Useful": "#22c55e",
            "Harmful": "#ef4444",
            "Action": "#3b82f6",
            "Emotion": "#f97316",
            "Context": "#6b7280",
            "Trend": "#14b8a6",
        },
        relationship_definitions=_defs(
            ("Enables", "allows another function to occur."),
            ("Enhances", "improves efficiency, performance, or quality."),
            ("Amplifies", "increases magnitude or speed."),
            ("Stabilises", "reduces variability or drift."),
            ("Constrains", "limits capability or range."),
            ("Degrades", "reduces efficiency or performance."),
            ("Inhibits", "slows or blocks a function."),
            ("Destabilises", "increases variability, noise, or unpredictability."),
            ("Generates", "creates a new effect, output, or state."),
            ("Consumes", "uses up a resource or capacity."),
            ("Transforms", "changes the form/structure of something."),
            ("Transfers", "moves energy, information, or material."),
            ("Compromises", "improves some aspects but harms others."),
            ("Competes with", "multiple processes draw from the same resource."),
            ("Counteracts", "opposes or reduces the effect of."),
            ("Initiates", "triggers downstream effects."),
            ("Propagates", "spreads an effect through the system."),
            ("Buffers", "absorbs or dampens shocks or variability."),
            ("Exposes", "introduces a vulnerability or makes a risk visible."),
        ),
        default_relationship_label="causes",
    ),
    TaxonomyScheme(
        id="scheme-networking",
        name="Networking",
        tag_colors={
            "Organisation": "#111827",
            "Person": "#f97316",
            "Action": "#3b82f6",
            "Product": "#22c55e",
            "Idea": "#eab308",
            "Topic": "#a855f7",
            "Question": "#ec4899",
            "Challenge": "#ef4444",
            "Trend": "#14b8a6",
        },
        relationship_definitions=_defs(
            ("related to", "A generic connection between two elements."),
            ("is a", "Indicates the element is a subtype or instance of the target."),
            ("knows", "Indicates a social or professional acquaintance."),
            ("works for", "Indicates employment or reporting hierarchy."),
            ("works with", "Indicates a peer or cooperative working relationship."),
            ("author of", "Indicates creation of a document, policy, or creative work."),
            ("member of", "Indicates belonging to a group or organization."),
            ("interested in", "Indicates curiosity or desire for a topic or outcome."),
            ("collaborates with", "Indicates active joint work on a shared goal."),
            ("manages", "Indicates responsibility for directing a person or resource."),
            ("created", "Indicates the act of bringing something into existence."),
            ("located in", "Indicates physical or logical containment."),
            ("influences", "Indicates the ability to affect the character or behavior of."),
            ("depends-on", "Indicates a requirement for the other element to function."),
            ("accountable for", "Indicates ultimate answerability for an outcome."),
            ("responsible for", "Indicates the duty to perform a task or function."),
        ),
        default_relationship_label="related to",
    ),
]

DEFAULT_SYSTEM_PROMPT_CONFIG = SystemPromptConfig(
    default_prompt=(
        "You are an assistant helping the user explore and extend a knowledge graph. "
        "Ground every answer in the elements and relationships of the current model."
    ),
    user_prompt="",
)


def default_scheme_id() -> str | None:
    """ID of the scheme selected for new models."""
    return DEFAULT_TAXONOMY_SCHEMES[0].id if DEFAULT_TAXONOMY_SCHEMES else None


def default_schemes() -> list[TaxonomyScheme]:
    """Fresh copies of the built-in schemes."""
    return [scheme.model_copy(deep=True) for scheme in DEFAULT_TAXONOMY_SCHEMES]


def merge_system_prompt_config(stored: SystemPromptConfig | None) -> SystemPromptConfig:
    """Overlay stored assistant settings on the built-in default."""
    merged = DEFAULT_SYSTEM_PROMPT_CONFIG.model_dump()
    if stored is not None:
        merged.update(stored.model_dump(exclude_unset=True))
    return SystemPromptConfig.model_validate(merged)


def new_model_data() -> ModelData:
    """Payload of a freshly created, empty model."""
    return ModelData(
        color_schemes=default_schemes(),
        active_scheme_id=default_scheme_id(),
        system_prompt_config=DEFAULT_SYSTEM_PROMPT_CONFIG.model_copy(deep=True),
    )
