"""AI product text generation.

Builds a structured prompt from product context and asks Gemini for a
summary or description. The call runs under its own deadline and a short
per-field cooldown rate-limits repeated clicks. Failures are advisory:
they surface as dependency errors and never touch product state.
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable

import google.generativeai as genai
import structlog

from horeca.catalog.business_types import BusinessTypeStore
from horeca.catalog.service import get_brand_store, get_business_type_store, get_category_store
from horeca.catalog.taxonomy import TaxonomyStore
from horeca.domain.exceptions import AICooldownError, AIGenerationError, ValidationError
from horeca.infrastructure.config import settings

logger = structlog.get_logger()

TEMPERATURE = 0.7
TOP_K = 40
TOP_P = 0.95


class TextField(str, Enum):
    SUMMARY = "summary"
    DESCRIPTION = "description"

    @property
    def max_output_tokens(self) -> int:
        return 200 if self is TextField.SUMMARY else 500


class GenerationMode(str, Enum):
    GENERATE = "generate"
    ENHANCE = "enhance"


@dataclass
class ProductContext:
    """Product fields the prompt is built from."""

    title: str = ""
    brand: str = ""
    sku: str = ""
    category_id: str | None = None
    brand_category_id: str | None = None
    business_type_slugs: list[str] = field(default_factory=list)
    specifications: list[dict[str, Any]] = field(default_factory=list)
    filters: list[dict[str, Any]] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


# Sends a prompt with a generation config and returns the generated text.
TextGenerator = Callable[[str, dict[str, Any]], Awaitable[str]]


# ============================================================================
# Gemini Client
# ============================================================================


class GeminiTextGenerator:
    """Gemini-backed text generator.

    Example usage:
        generator = GeminiTextGenerator(api_key, "gemini-1.5-flash")
        text = await generator(prompt, {"temperature": 0.7, "max_output_tokens": 200})
    """

    def __init__(self, api_key: str, model_name: str) -> None:
        self.api_key = api_key
        self.model_name = model_name

    async def __call__(self, prompt: str, generation_config: dict[str, Any]) -> str:
        if not self.api_key:
            raise AIGenerationError("AI API key not configured")
        genai.configure(api_key=self.api_key)
        model = genai.GenerativeModel(model_name=self.model_name)
        response = await model.generate_content_async(
            prompt,
            generation_config=genai.GenerationConfig(**generation_config),
        )
        return response.text


# ============================================================================
# Cooldown
# ============================================================================


class CooldownTracker:
    """Remembers the last call time per key."""

    def __init__(self, cooldown_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._last_call: dict[str, float] = {}

    def check_and_mark(self, key: str) -> None:
        """Record a call, or refuse it while the key is cooling down.

        Raises:
            AICooldownError: If the previous call for key was too recent.
        """
        now = self._clock()
        self._prune(now)
        last = self._last_call.get(key)
        if last is not None and now - last < self.cooldown_seconds:
            raise AICooldownError(key, round(self.cooldown_seconds - (now - last), 2))
        self._last_call[key] = now

    def _prune(self, now: float) -> None:
        expired = [k for k, last in self._last_call.items() if now - last >= self.cooldown_seconds]
        for k in expired:
            del self._last_call[k]

    def __len__(self) -> int:
        return len(self._last_call)


_cooldowns: CooldownTracker | None = None


def get_cooldown_tracker() -> CooldownTracker:
    """Get cooldown tracker singleton."""
    global _cooldowns
    if _cooldowns is None:
        _cooldowns = CooldownTracker(settings.ai_cooldown_seconds)
    return _cooldowns


def reset_cooldown_tracker() -> None:
    """Reset cooldown tracker (for testing)."""
    global _cooldowns
    _cooldowns = None


# ============================================================================
# Prompt Builder
# ============================================================================


def _format_specifications(specifications: list[dict[str, Any]]) -> str:
    rows = []
    for spec in specifications:
        value = " ".join(str(p) for p in (spec.get("value"), spec.get("unit")) if p)
        rows.append(f"{spec.get('label') or 'Specification'}: {value}")
    return "\n  - ".join(rows)


def _format_filters(filters: list[dict[str, Any]]) -> str:
    rows = [
        f"{f['key']}: {', '.join(f['values'])}"
        for f in filters
        if f.get("key") and f.get("values")
    ]
    return "\n  - ".join(rows)


class PromptBuilder:
    """Builds generation and enhancement prompts from product context."""

    def __init__(
        self,
        categories: TaxonomyStore,
        brands: TaxonomyStore,
        business_types: BusinessTypeStore,
    ) -> None:
        self.categories = categories
        self.brands = brands
        self.business_types = business_types

    def _path(self, store: TaxonomyStore, node_id: str | None) -> str | None:
        if not node_id:
            return None
        chain = store.ancestor_chain(node_id)
        return " > ".join(node.name for node in chain) if chain else None

    def context_lines(self, product: ProductContext, include_details: bool) -> list[str]:
        lines = [
            f"- Product name: {product.title or 'Product'}",
            f"- Brand: {product.brand or 'Not specified'}",
        ]
        brand_path = self._path(self.brands, product.brand_category_id)
        if brand_path:
            lines.append(f"- Brand category: {brand_path}")
        category_path = self._path(self.categories, product.category_id)
        if category_path:
            lines.append(f"- Product category: {category_path}")
        used_for = [n for n in (self.business_types.name_for(s) for s in product.business_type_slugs) if n]
        if used_for:
            lines.append(f"- Used for: {', '.join(used_for)}")
        if include_details and product.sku:
            lines.append(f"- SKU: {product.sku}")
        if product.tags:
            label = "Key features/tags" if include_details else "Key features"
            lines.append(f"- {label}: {', '.join(product.tags)}")
        if include_details:
            specs = _format_specifications(product.specifications)
            if specs:
                lines.append(f"- Specifications:\n  - {specs}")
            filters = _format_filters(product.filters)
            if filters:
                lines.append(f"- Filters:\n  - {filters}")
        return lines

    def build(
        self,
        product: ProductContext,
        mode: GenerationMode,
        text_field: TextField,
        existing_text: str = "",
    ) -> str:
        """Build the prompt text.

        Args:
            product: Product context.
            mode: Generate new text or enhance existing text.
            text_field: Summary or description.
            existing_text: Text to enhance.

        Returns:
            Prompt string.
        """
        if mode is GenerationMode.GENERATE:
            field_type = (
                "short description (2-3 lines)"
                if text_field is TextField.SUMMARY
                else "long description (150-200 words)"
            )
            focus = (
                "- Include details about materials, dimensions, and usage scenarios"
                if text_field is TextField.DESCRIPTION
                else "- Keep it concise and impactful"
            )
            return "\n".join([
                "You are writing a professional product description for a Horeca equipment catalog.",
                "",
                "Product Information:",
                *self.context_lines(product, include_details=True),
                "",
                f"Write a {field_type} for this product.",
                "",
                "Requirements:",
                "- Professional and clear tone",
                "- Suitable for business buyers (restaurants, hotels, cafes, etc.)",
                "- Highlight key features and benefits",
                "- No prices mentioned",
                "- No emojis",
                "- Focus on quality, durability, and commercial use",
                focus,
                "",
                f"Generate the {field_type} now:",
            ])
        return "\n".join([
            "Improve and professionally rewrite the following product description.",
            "",
            "Keep the meaning the same but make it clearer, more structured, and more "
            "appealing for Horeca business buyers.",
            "",
            "Product Context:",
            *self.context_lines(product, include_details=False),
            "",
            "Current Description:",
            '"""',
            existing_text,
            '"""',
            "",
            "Requirements:",
            "- Maintain the original meaning and key information",
            "- Improve clarity and structure",
            "- Make it more professional and appealing",
            "- Suitable for business buyers",
            "- No prices mentioned",
            "- No emojis",
            "- Better formatting and flow",
            "",
            "Provide the improved version:",
        ])


# ============================================================================
# AI Service
# ============================================================================


@dataclass
class GeneratedText:
    text: str
    field: TextField
    mode: GenerationMode


class AIService:
    """Application service for AI text generation.

    Example usage:
        service = get_ai_service(request_id)
        result = await service.generate(ProductContext(title="Brass Handi"), "generate", "summary")
    """

    def __init__(
        self,
        generator: TextGenerator | None = None,
        prompt_builder: PromptBuilder | None = None,
        cooldowns: CooldownTracker | None = None,
        timeout_seconds: float | None = None,
        request_id: str | None = None,
    ) -> None:
        self.generator = generator or GeminiTextGenerator(settings.gemini_api_key, settings.gemini_model)
        self.prompt_builder = prompt_builder or PromptBuilder(
            get_category_store(), get_brand_store(), get_business_type_store()
        )
        self.cooldowns = cooldowns or get_cooldown_tracker()
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.ai_timeout_seconds
        self.request_id = request_id

    async def generate(
        self,
        product: ProductContext,
        mode: GenerationMode | str,
        text_field: TextField | str,
        existing_text: str = "",
        requester: str = "",
    ) -> GeneratedText:
        """Generate or enhance a product summary or description.

        Args:
            product: Product context for the prompt.
            mode: "generate" or "enhance".
            text_field: "summary" or "description".
            existing_text: Text to enhance, required in enhance mode.
            requester: Caller identity scoping the cooldown.

        Returns:
            The generated text.

        Raises:
            ValidationError: On a bad mode or field, or enhance without text.
            AICooldownError: If the same field was requested too recently.
            AIGenerationError: If the model fails, times out or returns nothing.
        """
        mode = _parse(GenerationMode, mode, "mode")
        text_field = _parse(TextField, text_field, "field")
        if mode is GenerationMode.ENHANCE and not (existing_text or "").strip():
            raise ValidationError("existing_text is required for enhance mode", field="existing_text")

        self.cooldowns.check_and_mark(f"{requester}:{text_field.value}")

        prompt = self.prompt_builder.build(product, mode, text_field, existing_text.strip())
        config = {
            "temperature": TEMPERATURE,
            "top_k": TOP_K,
            "top_p": TOP_P,
            "max_output_tokens": text_field.max_output_tokens,
        }

        try:
            text = await asyncio.wait_for(self.generator(prompt, config), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("AI generation timed out", field=text_field.value, request_id=self.request_id)
            raise AIGenerationError("AI generation timed out", field=text_field.value) from None
        except AIGenerationError:
            raise
        except Exception as e:
            logger.error(
                "AI generation failed",
                field=text_field.value,
                mode=mode.value,
                error=str(e),
                request_id=self.request_id,
            )
            raise AIGenerationError(f"AI generation failed: {e}", field=text_field.value) from e

        text = (text or "").strip()
        if not text:
            raise AIGenerationError("AI generated empty response. Please try again.", field=text_field.value)

        logger.info(
            "AI text generated",
            field=text_field.value,
            mode=mode.value,
            length=len(text),
            request_id=self.request_id,
        )
        return GeneratedText(text=text, field=text_field, mode=mode)


def _parse(enum_cls: type[Enum], value: Any, field_name: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(
            f"Invalid {field_name} '{value}'",
            field=field_name,
            details={"allowed": [m.value for m in enum_cls]},
        ) from None


def get_ai_service(request_id: str | None = None) -> AIService:
    """Get AI service instance."""
    return AIService(request_id=request_id)
