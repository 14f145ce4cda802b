"""Shared test fixtures for all test groups."""

import pytest

from pagesmith.core.config import Settings
from pagesmith.schemas.deployment import ArtifactBundle, PublicationResult, Specification

_WELL_FORMED_RESPONSE = """===INDEX.HTML===
<!DOCTYPE html>
<html><body><h1 id="count">0</h1>
<script>let n = 0; if (n === 0) { document.getElementById('count').textContent = n; }</script>
</body></html>
===README.MD===
# Counter
A tiny counter app.
===LICENSE===
MIT License
"""


@pytest.fixture
def well_formed_response():
    """LLM reply with all three sections; the script uses JS strict equality."""
    return _WELL_FORMED_RESPONSE


@pytest.fixture
def settings():
    """Fully configured settings with no repo settle delay."""
    return Settings(
        _env_file=None,
        shared_secret="s3cret",
        github_token="ghp_test_token",
        anthropic_api_key="sk-ant-test",
        repo_settle_seconds=0,
        pages_poll_timeout_seconds=120,
        pages_poll_interval_seconds=10,
    )


@pytest.fixture
def make_spec():
    """Factory for Specifications with sensible defaults."""

    def _make(**overrides) -> Specification:
        fields = {
            "email": "student@example.com",
            "task": "demo",
            "round": 1,
            "nonce": "nonce-123",
            "brief": "counter app",
            "checks": (),
            "evaluation_url": "https://eval.example.com/notify",
        }
        fields.update(overrides)
        return Specification(**fields)

    return _make


@pytest.fixture
def bundle():
    return ArtifactBundle(html="<html>ok</html>", readme="# Readme", license="MIT License")


@pytest.fixture
def publication_result():
    return PublicationResult(
        repo_url="https://github.com/octo/demo-round1",
        commit_sha="c0ffee",
        pages_url="https://octo.github.io/demo-round1/",
    )
