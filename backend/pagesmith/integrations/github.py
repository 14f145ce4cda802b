"""GitHub Integration: repositories, Git Data API and Pages.

This module provides token-authenticated access to:
- Identity of the publishing token
- Repository deletion and creation
- Blobs, trees, commits and refs (one atomic multi-file commit per publish)
- GitHub Pages enablement
- Reading a file from a previously published repository
"""

import base64

import httpx

from pagesmith.core.config import Settings
from pagesmith.core.exceptions import ConfigurationError, GitHubAPIError


class GitHubClient:
    """Client for GitHub REST API operations using a personal access token."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.base_url = settings.github_api_url.rstrip("/")

    def _headers(self) -> dict[str, str]:
        if not self.settings.github_token:
            raise ConfigurationError("GitHub token is not configured")
        return {
            "Authorization": f"Bearer {self.settings.github_token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        data: dict | None = None,
    ) -> dict:
        """Make an authenticated request to the GitHub API.

        Raises:
            ConfigurationError: no token configured (before any network call)
            GitHubAPIError: response status >= 400
        """
        headers = self._headers()

        async with httpx.AsyncClient(timeout=self.settings.http_timeout_seconds) as client:
            response = await client.request(
                method,
                f"{self.base_url}{endpoint}",
                headers=headers,
                json=data,
            )

            if response.status_code >= 400:
                raise GitHubAPIError(response.status_code, response.text)

            if response.status_code == 204 or not response.content:
                return {}

            return response.json()

    # Identity

    async def get_authenticated_user(self) -> dict:
        """Return the user the token belongs to."""
        return await self._request("GET", "/user")

    # Repository operations

    async def delete_repo(self, owner: str, repo: str) -> bool:
        """Delete a repository. Returns False when it did not exist."""
        try:
            await self._request("DELETE", f"/repos/{owner}/{repo}")
        except GitHubAPIError as exc:
            if exc.status_code == 404:
                return False
            raise
        return True

    async def create_repo(self, name: str, description: str, auto_init: bool = True) -> dict:
        """Create a public repository for the authenticated user.

        auto_init gives the repo one baseline commit on the default branch.
        """
        return await self._request(
            "POST",
            "/user/repos",
            data={
                "name": name,
                "description": description,
                "auto_init": auto_init,
                "private": False,
            },
        )

    # Git Data operations

    async def get_branch_sha(self, owner: str, repo: str, branch: str) -> str:
        """Return the commit SHA a branch points at."""
        ref = await self._request("GET", f"/repos/{owner}/{repo}/git/ref/heads/{branch}")
        return ref["object"]["sha"]

    async def create_blob(self, owner: str, repo: str, content: str, encoding: str = "utf-8") -> str:
        """Store content as a blob and return its SHA.

        Args:
            encoding: "utf-8" for text, "base64" for binary payloads
        """
        blob = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/git/blobs",
            data={"content": content, "encoding": encoding},
        )
        return blob["sha"]

    async def create_tree(self, owner: str, repo: str, base_tree: str, entries: list[dict]) -> str:
        """Create a tree on top of base_tree and return its SHA."""
        tree = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/git/trees",
            data={"base_tree": base_tree, "tree": entries},
        )
        return tree["sha"]

    async def create_commit(self, owner: str, repo: str, message: str, tree: str, parents: list[str]) -> dict:
        """Create a commit object. The branch is not moved."""
        return await self._request(
            "POST",
            f"/repos/{owner}/{repo}/git/commits",
            data={"message": message, "tree": tree, "parents": parents},
        )

    async def update_branch(self, owner: str, repo: str, branch: str, sha: str) -> dict:
        """Point a branch at sha."""
        return await self._request(
            "PATCH",
            f"/repos/{owner}/{repo}/git/refs/heads/{branch}",
            data={"sha": sha},
        )

    # Pages

    async def enable_pages(self, owner: str, repo: str, branch: str, path: str = "/") -> bool:
        """Enable GitHub Pages. Returns False when Pages was already enabled (409)."""
        try:
            await self._request(
                "POST",
                f"/repos/{owner}/{repo}/pages",
                data={"source": {"branch": branch, "path": path}},
            )
        except GitHubAPIError as exc:
            if exc.status_code == 409:
                return False
            raise
        return True

    # File operations

    async def get_file_text(self, owner: str, repo: str, path: str) -> str:
        """Return a file's decoded text from the default branch."""
        data = await self._request("GET", f"/repos/{owner}/{repo}/contents/{path}")
        content = data.get("content") if isinstance(data, dict) else None
        if not content:
            return ""
        return base64.b64decode(content).decode("utf-8")
