"""Tests for AI product text generation."""

import asyncio
from typing import Any

import pytest

from horeca.application.ai_service import (
    AIService,
    CooldownTracker,
    GenerationMode,
    ProductContext,
    PromptBuilder,
    TextField,
)
from horeca.catalog.service import get_brand_store, get_business_type_store, get_category_store
from horeca.domain.exceptions import AICooldownError, AIGenerationError, ValidationError


class FakeGenerator:
    """Records prompts and returns canned text."""

    def __init__(self, text: str = "A sturdy brass handi.", error: Exception | None = None, delay: float = 0) -> None:
        self.text = text
        self.error = error
        self.delay = delay
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def __call__(self, prompt: str, config: dict[str, Any]) -> str:
        self.calls.append((prompt, config))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.text


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def context() -> ProductContext:
    categories = get_category_store()
    dept = categories.create("Kitchenware", "department")
    cookware = categories.create("Cookware", "category", parent_id=dept.id)
    brand = get_brand_store().create("Royal Metals", "department")
    get_business_type_store().create("Restaurants")
    return ProductContext(
        title="Brass Biryani Handi",
        brand="Royal Metals",
        sku="RM-101",
        category_id=cookware.id,
        brand_category_id=brand.id,
        business_type_slugs=["restaurants", "unknown"],
        specifications=[{"label": "Diameter", "value": "30", "unit": "cm"}],
        filters=[{"key": "Material", "values": ["Brass"]}],
        tags=["brass", "handi"],
    )


@pytest.fixture
def builder() -> PromptBuilder:
    return PromptBuilder(get_category_store(), get_brand_store(), get_business_type_store())


def make_service(generator: FakeGenerator, clock: FakeClock | None = None, timeout: float = 5.0) -> AIService:
    return AIService(
        generator=generator,
        prompt_builder=PromptBuilder(get_category_store(), get_brand_store(), get_business_type_store()),
        cooldowns=CooldownTracker(2.0, clock=clock or FakeClock()),
        timeout_seconds=timeout,
    )


class TestPromptBuilder:
    """Tests for prompt construction."""

    def test_generate_prompt_includes_context(self, builder, context) -> None:
        """Generation prompts carry the full product context."""
        prompt = builder.build(context, GenerationMode.GENERATE, TextField.DESCRIPTION)
        assert "Horeca equipment catalog" in prompt
        assert "- Product name: Brass Biryani Handi" in prompt
        assert "- Product category: Kitchenware > Cookware" in prompt
        assert "- Brand category: Royal Metals" in prompt
        assert "- Used for: Restaurants" in prompt
        assert "- SKU: RM-101" in prompt
        assert "Diameter: 30 cm" in prompt
        assert "Material: Brass" in prompt
        assert "long description (150-200 words)" in prompt

    def test_summary_prompt(self, builder, context) -> None:
        """Summaries ask for a short text."""
        prompt = builder.build(context, GenerationMode.GENERATE, TextField.SUMMARY)
        assert "short description (2-3 lines)" in prompt
        assert "Keep it concise" in prompt

    def test_enhance_prompt_quotes_existing_text(self, builder, context) -> None:
        """Enhancement prompts embed the current text without details."""
        prompt = builder.build(context, GenerationMode.ENHANCE, TextField.DESCRIPTION, "Good handi.")
        assert "Current Description:" in prompt
        assert "Good handi." in prompt
        assert "- Key features: brass, handi" in prompt
        assert "SKU" not in prompt

    def test_empty_context_defaults(self, builder) -> None:
        """Missing fields fall back to neutral wording."""
        prompt = builder.build(ProductContext(), GenerationMode.GENERATE, TextField.SUMMARY)
        assert "- Product name: Product" in prompt
        assert "- Brand: Not specified" in prompt


class TestCooldownTracker:
    """Tests for the per-key cooldown."""

    def test_expired_entries_are_dropped(self) -> None:
        """Keys past their cooldown no longer take memory."""
        clock = FakeClock()
        tracker = CooldownTracker(2.0, clock=clock)
        tracker.check_and_mark("admin:summary")
        tracker.check_and_mark("admin:description")
        assert len(tracker) == 2

        clock.now += 2.5
        tracker.check_and_mark("editor:summary")
        assert len(tracker) == 1

    def test_active_entries_still_block(self) -> None:
        """Pruning leaves keys that are still cooling down."""
        clock = FakeClock()
        tracker = CooldownTracker(2.0, clock=clock)
        tracker.check_and_mark("admin:summary")
        clock.now += 1.0
        tracker.check_and_mark("admin:description")
        with pytest.raises(AICooldownError):
            tracker.check_and_mark("admin:summary")


class TestAIService:
    """Tests for AIService.generate."""

    async def test_generate_passes_config(self, context) -> None:
        """Generation config depends on the field."""
        generator = FakeGenerator(text="  A sturdy brass handi.  ")
        result = await make_service(generator).generate(context, "generate", "summary")
        assert result.text == "A sturdy brass handi."
        assert result.field is TextField.SUMMARY
        _, config = generator.calls[0]
        assert config == {"temperature": 0.7, "top_k": 40, "top_p": 0.95, "max_output_tokens": 200}

    async def test_description_token_limit(self, context) -> None:
        """Descriptions allow longer output."""
        generator = FakeGenerator()
        await make_service(generator).generate(context, "generate", "description")
        assert generator.calls[0][1]["max_output_tokens"] == 500

    async def test_invalid_mode_or_field(self, context) -> None:
        """Unknown modes and fields are validation errors."""
        service = make_service(FakeGenerator())
        with pytest.raises(ValidationError):
            await service.generate(context, "rewrite", "summary")
        with pytest.raises(ValidationError):
            await service.generate(context, "generate", "title")

    async def test_enhance_requires_text(self, context) -> None:
        """Enhance mode needs existing text."""
        with pytest.raises(ValidationError) as exc_info:
            await make_service(FakeGenerator()).generate(context, "enhance", "summary", existing_text=" ")
        assert exc_info.value.details["field"] == "existing_text"

    async def test_cooldown_per_requester_and_field(self, context) -> None:
        """Repeated calls for the same field are refused until the cooldown passes."""
        clock = FakeClock()
        service = make_service(FakeGenerator(), clock=clock)
        await service.generate(context, "generate", "summary", requester="admin")
        await service.generate(context, "generate", "description", requester="admin")
        await service.generate(context, "generate", "summary", requester="other")

        with pytest.raises(AICooldownError) as exc_info:
            await service.generate(context, "generate", "summary", requester="admin")
        assert exc_info.value.details["retry_after_seconds"] == 2.0

        clock.now += 2.0
        await service.generate(context, "generate", "summary", requester="admin")

    async def test_generator_failure(self, context) -> None:
        """Errors from the model become AIGenerationError."""
        service = make_service(FakeGenerator(error=RuntimeError("quota exceeded")))
        with pytest.raises(AIGenerationError) as exc_info:
            await service.generate(context, "generate", "summary")
        assert "quota exceeded" in exc_info.value.message

    async def test_empty_response(self, context) -> None:
        """Blank output is a failure."""
        with pytest.raises(AIGenerationError):
            await make_service(FakeGenerator(text="   ")).generate(context, "generate", "summary")

    async def test_timeout(self, context) -> None:
        """Slow calls are cut off by the deadline."""
        service = make_service(FakeGenerator(delay=1.0), timeout=0.01)
        with pytest.raises(AIGenerationError) as exc_info:
            await service.generate(context, "generate", "summary")
        assert "timed out" in exc_info.value.message
