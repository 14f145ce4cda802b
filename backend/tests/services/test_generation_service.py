"""Tests for GenerationService and response parsing.

Coverage:
- parse_generated_response(): well-formed, fenced, partially and fully malformed responses
- generate(): fresh vs revision prompt selection (empty prior still revises)
- generate(): missing API key raises before any call
- generate(): transport errors propagate without retry
"""

from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest

from pagesmith.core.config import Settings
from pagesmith.core.exceptions import ConfigurationError
from pagesmith.services.generation_service import GenerationService, parse_generated_response
from pagesmith.services.prompts import FALLBACK_HTML, FALLBACK_README, MISSING_EXISTING_CODE, MIT_LICENSE

pytestmark = pytest.mark.unit


def _make_mock_client(response_text: str) -> MagicMock:
    client = MagicMock()
    mock_response = MagicMock()
    mock_response.content = [MagicMock(text=response_text)]
    client.messages = MagicMock()
    client.messages.create = AsyncMock(return_value=mock_response)
    return client


def _prompt_of(client: MagicMock) -> str:
    return client.messages.create.call_args.kwargs["messages"][0]["content"]


class TestParseGeneratedResponse:
    def test_well_formed_response_yields_all_sections(self, well_formed_response):
        bundle = parse_generated_response(well_formed_response)

        assert bundle.html.startswith("<!DOCTYPE html>")
        assert bundle.readme == "# Counter\nA tiny counter app."
        assert bundle.license == "MIT License"

    def test_javascript_strict_equality_does_not_end_html_section(self, well_formed_response):
        bundle = parse_generated_response(well_formed_response)

        assert "n === 0" in bundle.html
        assert bundle.html.endswith("</html>")

    def test_response_without_markers_uses_every_fallback(self):
        bundle = parse_generated_response("Sorry, I cannot help with that.")

        assert bundle.html == FALLBACK_HTML
        assert bundle.readme == FALLBACK_README
        assert bundle.license == MIT_LICENSE

    def test_empty_response_uses_every_fallback(self):
        bundle = parse_generated_response("")

        assert bundle.html == FALLBACK_HTML
        assert bundle.readme == FALLBACK_README
        assert bundle.license == MIT_LICENSE

    def test_missing_section_falls_back_alone(self):
        response = "===INDEX.HTML===\n<p>hi</p>\n===LICENSE===\nMIT"

        bundle = parse_generated_response(response)

        assert bundle.html == "<p>hi</p>"
        assert bundle.readme == FALLBACK_README
        assert bundle.license == "MIT"

    def test_sections_found_regardless_of_order_and_case(self):
        response = "===license===\nMIT\n===Readme.md===\n# R\n===index.html===\n<p>x</p>"

        bundle = parse_generated_response(response)

        assert bundle.html == "<p>x</p>"
        assert bundle.readme == "# R"
        assert bundle.license == "MIT"

    def test_code_fences_around_section_are_stripped(self):
        response = "===INDEX.HTML===\n```html\n<p>fenced</p>\n```\n===README.MD===\n# R\n===LICENSE===\nMIT"

        bundle = parse_generated_response(response)

        assert bundle.html == "<p>fenced</p>"

    def test_empty_section_body_falls_back(self):
        response = "===INDEX.HTML===\n   \n===README.MD===\n# R\n===LICENSE===\nMIT"

        bundle = parse_generated_response(response)

        assert bundle.html == FALLBACK_HTML


class TestGenerate:
    @pytest.mark.asyncio
    async def test_fresh_generation_when_no_prior_artifact(self, settings, make_spec, well_formed_response):
        client = _make_mock_client(well_formed_response)
        service = GenerationService(settings, client=client)
        spec = make_spec(checks=("#count exists",))

        bundle = await service.generate(spec, None)

        assert bundle.readme.startswith("# Counter")
        prompt = _prompt_of(client)
        assert "counter app" in prompt
        assert "#count exists" in prompt
        assert "Existing Code" not in prompt

    @pytest.mark.asyncio
    async def test_revision_prompt_carries_prior_artifact(self, settings, make_spec, well_formed_response):
        client = _make_mock_client(well_formed_response)
        service = GenerationService(settings, client=client)

        await service.generate(make_spec(round=2, brief="add a reset"), "<html>old app</html>")

        prompt = _prompt_of(client)
        assert "<html>old app</html>" in prompt
        assert "add a reset" in prompt
        assert "PRESERVE ALL ORIGINAL LOGIC" in prompt

    @pytest.mark.asyncio
    async def test_empty_prior_artifact_still_selects_revision(self, settings, make_spec, well_formed_response):
        client = _make_mock_client(well_formed_response)
        service = GenerationService(settings, client=client)

        await service.generate(make_spec(round=2), "")

        prompt = _prompt_of(client)
        assert "Existing Code" in prompt
        assert MISSING_EXISTING_CODE in prompt

    @pytest.mark.asyncio
    async def test_passes_model_and_system_prompt(self, settings, make_spec, well_formed_response):
        client = _make_mock_client(well_formed_response)
        service = GenerationService(settings, client=client)

        await service.generate(make_spec(), None)

        call_kwargs = client.messages.create.call_args.kwargs
        assert call_kwargs["model"] == settings.generation_model
        assert call_kwargs["max_tokens"] == settings.generation_max_tokens
        assert "single-file" in call_kwargs["system"]

    @pytest.mark.asyncio
    async def test_attachment_names_listed_in_prompt(self, settings, make_spec, well_formed_response):
        from pagesmith.schemas.deployment import AttachmentDescriptor

        client = _make_mock_client(well_formed_response)
        service = GenerationService(settings, client=client)
        spec = make_spec(attachments=(AttachmentDescriptor(name="data.csv", url="data:text/csv;base64,YSxi"),))

        await service.generate(spec, None)

        assert "data.csv" in _prompt_of(client)

    @pytest.mark.asyncio
    async def test_malformed_response_returns_fallback_bundle(self, settings, make_spec):
        service = GenerationService(settings, client=_make_mock_client("no sections here"))

        bundle = await service.generate(make_spec(), None)

        assert bundle.html == FALLBACK_HTML
        assert bundle.readme == FALLBACK_README
        assert bundle.license == MIT_LICENSE

    @pytest.mark.asyncio
    async def test_missing_api_key_raises_configuration_error(self, make_spec):
        service = GenerationService(Settings(_env_file=None, anthropic_api_key=""))

        with pytest.raises(ConfigurationError):
            await service.generate(make_spec(), None)

    @pytest.mark.asyncio
    async def test_transport_error_propagates_without_retry(self, settings, make_spec):
        client = MagicMock()
        client.messages = MagicMock()
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        client.messages.create = AsyncMock(side_effect=anthropic.APIConnectionError(request=request))
        service = GenerationService(settings, client=client)

        with pytest.raises(anthropic.APIConnectionError):
            await service.generate(make_spec(), None)

        assert client.messages.create.call_count == 1
