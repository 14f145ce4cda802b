"""GenerationService: Claude-powered single-file app generation.

Architecture:
- Direct anthropic.AsyncAnthropic call (no retry here; the pipeline only
  regenerates on content rejection, never on transport failure)
- Fresh generation for round 1, constrained revision for later rounds
- Response parsed section by section with permissive markers; any section that
  cannot be extracted is replaced by a fixed fallback, so formatting drift
  never fails a round
"""

import re

import anthropic
import structlog

from pagesmith.core.config import Settings
from pagesmith.core.exceptions import ConfigurationError
from pagesmith.schemas.deployment import ArtifactBundle, Specification
from pagesmith.services.prompts import (
    FALLBACK_HTML,
    FALLBACK_README,
    MIT_LICENSE,
    SYSTEM_PROMPT,
    build_new_app_prompt,
    build_revision_prompt,
)

logger = structlog.get_logger(__name__)

# Each section runs from its marker to the next section marker or end of text.
# Bare "===" is not a terminator: it is JavaScript strict equality.
_NEXT_MARKER = r"(?====\s*(?:INDEX\.HTML|README\.MD|LICENSE)\s*===|$)"

_SECTION_PATTERNS: dict[str, re.Pattern] = {
    "html": re.compile(r"===\s*INDEX\.HTML\s*===\s*([\s\S]*?)" + _NEXT_MARKER, re.IGNORECASE),
    "readme": re.compile(r"===\s*README\.MD\s*===\s*([\s\S]*?)" + _NEXT_MARKER, re.IGNORECASE),
    "license": re.compile(r"===\s*LICENSE\s*===\s*([\s\S]*?)" + _NEXT_MARKER, re.IGNORECASE),
}

_FALLBACKS: dict[str, str] = {
    "html": FALLBACK_HTML,
    "readme": FALLBACK_README,
    "license": MIT_LICENSE,
}


def _strip_code_fences(content: str) -> str:
    """Remove a markdown code fence wrapping a whole section."""
    content = content.strip()
    if content.startswith("```"):
        first_newline = content.find("\n")
        if first_newline != -1:
            content = content[first_newline + 1 :]
        if content.endswith("```"):
            content = content[:-3].rstrip()
    return content


def parse_generated_response(response: str) -> ArtifactBundle:
    """Split an LLM response into an ArtifactBundle.

    Sections are located independently; a missing or empty section gets its
    fallback content.
    """
    parts: dict[str, str] = {}
    for key, pattern in _SECTION_PATTERNS.items():
        match = pattern.search(response or "")
        text = _strip_code_fences(match.group(1)) if match else ""
        if text:
            parts[key] = text
        else:
            logger.warning("generation_section_missing", section=key, used_fallback=True)
            parts[key] = _FALLBACKS[key]

    return ArtifactBundle(**parts)


class GenerationService:
    """Produces ArtifactBundles from a Specification via Claude.

    Public API:
        generate(spec, prior_artifact=None) -> ArtifactBundle
    """

    def __init__(self, settings: Settings, client: anthropic.AsyncAnthropic | None = None) -> None:
        self.settings = settings
        self._client = client

    def _get_client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            if not self.settings.anthropic_api_key:
                raise ConfigurationError("Anthropic API key is not configured")
            self._client = anthropic.AsyncAnthropic(api_key=self.settings.anthropic_api_key)
        return self._client

    async def generate(self, spec: Specification, prior_artifact: str | None = None) -> ArtifactBundle:
        """Generate a fresh app, or revise prior_artifact when it is not None.

        An empty prior_artifact still selects the revision path.

        Raises:
            ConfigurationError: no API key configured
            anthropic.APIError: transport, rate-limit or status errors, unchanged
        """
        attachment_names = [a.name for a in spec.attachments]
        if prior_artifact is None:
            prompt = build_new_app_prompt(spec.brief, spec.checks, attachment_names)
            mode = "fresh"
        else:
            prompt = build_revision_prompt(prior_artifact, spec.brief, spec.checks, attachment_names)
            mode = "revision"

        logger.info("generation_started", mode=mode, model=self.settings.generation_model)
        raw_text = await self._call_claude(prompt)
        bundle = parse_generated_response(raw_text)
        logger.info("generation_completed", mode=mode, html_chars=len(bundle.html))
        return bundle

    async def _call_claude(self, prompt: str) -> str:
        client = self._get_client()
        response = await client.messages.create(
            model=self.settings.generation_model,
            max_tokens=self.settings.generation_max_tokens,
            temperature=self.settings.generation_temperature,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        # Non-text blocks carry no .text; an empty reply falls back section by section
        return "".join(getattr(block, "text", "") for block in response.content)
