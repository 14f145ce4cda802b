"""Tests for GitHubClient request handling and status mapping."""

import base64
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from pagesmith.core.config import Settings
from pagesmith.core.exceptions import ConfigurationError, GitHubAPIError
from pagesmith.integrations.github import GitHubClient

pytestmark = pytest.mark.unit

_REQUEST = "httpx.AsyncClient.request"


@pytest.mark.asyncio
async def test_sends_bearer_token_and_api_headers(settings):
    client = GitHubClient(settings)
    with patch(_REQUEST, new_callable=AsyncMock, return_value=httpx.Response(200, json={"login": "octo"})) as mock_req:
        user = await client.get_authenticated_user()

    assert user == {"login": "octo"}
    method, url = mock_req.call_args.args
    assert method == "GET"
    assert url == "https://api.github.com/user"
    headers = mock_req.call_args.kwargs["headers"]
    assert headers["Authorization"] == "Bearer ghp_test_token"
    assert headers["Accept"] == "application/vnd.github+json"


@pytest.mark.asyncio
async def test_missing_token_raises_without_network():
    client = GitHubClient(Settings(_env_file=None, github_token=""))
    with patch(_REQUEST, new_callable=AsyncMock) as mock_req:
        with pytest.raises(ConfigurationError):
            await client.get_authenticated_user()

    mock_req.assert_not_awaited()


@pytest.mark.asyncio
async def test_error_status_raises_github_api_error(settings):
    client = GitHubClient(settings)
    with patch(_REQUEST, new_callable=AsyncMock, return_value=httpx.Response(422, text="Validation Failed")):
        with pytest.raises(GitHubAPIError) as exc_info:
            await client.create_repo("demo-round1", description="x")

    assert exc_info.value.status_code == 422


@pytest.mark.asyncio
async def test_delete_missing_repo_returns_false(settings):
    client = GitHubClient(settings)
    with patch(_REQUEST, new_callable=AsyncMock, return_value=httpx.Response(404, text="Not Found")):
        assert await client.delete_repo("octo", "demo-round1") is False


@pytest.mark.asyncio
async def test_delete_existing_repo_returns_true(settings):
    client = GitHubClient(settings)
    with patch(_REQUEST, new_callable=AsyncMock, return_value=httpx.Response(204)) as mock_req:
        assert await client.delete_repo("octo", "demo-round1") is True

    assert mock_req.call_args.args == ("DELETE", "https://api.github.com/repos/octo/demo-round1")


@pytest.mark.asyncio
async def test_delete_forbidden_propagates(settings):
    client = GitHubClient(settings)
    with patch(_REQUEST, new_callable=AsyncMock, return_value=httpx.Response(403, text="Must have admin rights")):
        with pytest.raises(GitHubAPIError):
            await client.delete_repo("octo", "demo-round1")


@pytest.mark.asyncio
async def test_enable_pages_conflict_means_already_enabled(settings):
    client = GitHubClient(settings)
    with patch(_REQUEST, new_callable=AsyncMock, return_value=httpx.Response(409, text="already enabled")):
        assert await client.enable_pages("octo", "demo-round1", "main") is False


@pytest.mark.asyncio
async def test_enable_pages_sends_branch_and_path(settings):
    client = GitHubClient(settings)
    with patch(_REQUEST, new_callable=AsyncMock, return_value=httpx.Response(201, json={})) as mock_req:
        assert await client.enable_pages("octo", "demo-round1", "main") is True

    assert mock_req.call_args.kwargs["json"] == {"source": {"branch": "main", "path": "/"}}


@pytest.mark.asyncio
async def test_get_file_text_decodes_base64_content(settings):
    client = GitHubClient(settings)
    encoded = base64.b64encode("<html>héllo</html>".encode()).decode()
    with patch(_REQUEST, new_callable=AsyncMock, return_value=httpx.Response(200, json={"content": encoded})):
        assert await client.get_file_text("octo", "demo-round1", "index.html") == "<html>héllo</html>"


@pytest.mark.asyncio
async def test_branch_sha_and_git_objects(settings):
    client = GitHubClient(settings)
    responses = [
        httpx.Response(200, json={"object": {"sha": "base"}}),
        httpx.Response(201, json={"sha": "blob"}),
        httpx.Response(201, json={"sha": "tree"}),
        httpx.Response(201, json={"sha": "commit"}),
        httpx.Response(200, json={"object": {"sha": "commit"}}),
    ]
    with patch(_REQUEST, new_callable=AsyncMock, side_effect=responses) as mock_req:
        assert await client.get_branch_sha("octo", "r", "main") == "base"
        assert await client.create_blob("octo", "r", "aGk=", "base64") == "blob"
        entries = [{"path": "a", "mode": "100644", "type": "blob", "sha": "blob"}]
        assert await client.create_tree("octo", "r", "base", entries) == "tree"
        commit = await client.create_commit("octo", "r", "msg", tree="tree", parents=["base"])
        await client.update_branch("octo", "r", "main", commit["sha"])

    calls = mock_req.call_args_list
    assert calls[0].args[1].endswith("/repos/octo/r/git/ref/heads/main")
    assert calls[1].kwargs["json"] == {"content": "aGk=", "encoding": "base64"}
    assert calls[2].kwargs["json"] == {"base_tree": "base", "tree": entries}
    assert calls[3].kwargs["json"] == {"message": "msg", "tree": "tree", "parents": ["base"]}
    assert calls[4].args == ("PATCH", "https://api.github.com/repos/octo/r/git/refs/heads/main")
    assert calls[4].kwargs["json"] == {"sha": "commit"}
