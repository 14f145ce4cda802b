"""PublicationService: publish an ArtifactBundle to a fresh GitHub Pages repo.

Architecture:
- Redeploy semantics: an existing repo with the target name is deleted and
  recreated, never partially overwritten
- auto_init gives the new repo a baseline commit to build on
- All files are uploaded as blobs concurrently, then committed as ONE tree and
  ONE commit; moving the branch ref is the atomicity boundary, so Pages only
  ever sees the baseline or the full file set
- Enabling Pages is best-effort: failures are logged, never raised
"""

import asyncio
import base64

import structlog

from pagesmith.core.config import Settings
from pagesmith.core.exceptions import ConfigurationError
from pagesmith.integrations.github import GitHubClient
from pagesmith.schemas.deployment import INDEX_PATH, Attachment, ArtifactBundle, PublicationResult

logger = structlog.get_logger(__name__)

# Regular (non-executable) file mode for tree entries
FILE_MODE = "100644"


def pages_url_for(owner: str, target_name: str) -> str:
    """Public GitHub Pages URL of a repository."""
    return f"https://{owner}.github.io/{target_name}/"


class PublicationService:
    """Publishes bundles and reads back prior rounds.

    Public API:
        publish(target_name, bundle, attachments, message=None) -> PublicationResult
        fetch_primary_document(target_name) -> str
    """

    def __init__(self, settings: Settings, github: GitHubClient | None = None) -> None:
        self.settings = settings
        self.github = github or GitHubClient(settings)
        self._owner: str | None = None

    async def _resolve_owner(self) -> str:
        if self._owner is None:
            user = await self.github.get_authenticated_user()
            self._owner = user["login"]
        return self._owner

    async def publish(
        self,
        target_name: str,
        bundle: ArtifactBundle,
        attachments: list[Attachment],
        message: str | None = None,
    ) -> PublicationResult:
        """Recreate target_name and commit the bundle plus attachments in one snapshot.

        Raises:
            ConfigurationError: no GitHub token (before any network call)
            GitHubAPIError: any identity, repo, blob, tree, commit or ref failure
        """
        if not self.settings.github_token:
            raise ConfigurationError("GitHub token is not configured")

        branch = self.settings.github_default_branch
        owner = await self._resolve_owner()
        log = logger.bind(owner=owner, repo=target_name)

        deleted = await self.github.delete_repo(owner, target_name)
        log.info("publication_repo_cleared", existed=deleted)

        repo = await self.github.create_repo(
            target_name,
            description=f"Generated application {target_name}",
            auto_init=True,
        )
        log.info("publication_repo_created", repo_url=repo["html_url"])

        # Ref is not always queryable immediately after creation
        await asyncio.sleep(self.settings.repo_settle_seconds)
        base_sha = await self.github.get_branch_sha(owner, target_name, branch)

        files = self._collect_files(bundle, attachments)
        blob_shas = await asyncio.gather(
            *(
                self.github.create_blob(owner, target_name, content, encoding)
                for _, content, encoding in files
            )
        )
        tree_entries = [
            {"path": path, "mode": FILE_MODE, "type": "blob", "sha": sha}
            for (path, _, _), sha in zip(files, blob_shas)
        ]
        log.info("publication_blobs_created", files=len(tree_entries))

        tree_sha = await self.github.create_tree(owner, target_name, base_sha, tree_entries)
        commit = await self.github.create_commit(
            owner,
            target_name,
            message=message or f"Deploy {target_name}",
            tree=tree_sha,
            parents=[base_sha],
        )
        commit_sha = commit["sha"]
        await self.github.update_branch(owner, target_name, branch, commit_sha)
        log.info("publication_committed", commit_sha=commit_sha)

        await self._enable_pages(owner, target_name, branch)

        return PublicationResult(
            repo_url=repo["html_url"],
            commit_sha=commit_sha,
            pages_url=pages_url_for(owner, target_name),
        )

    @staticmethod
    def _collect_files(bundle: ArtifactBundle, attachments: list[Attachment]) -> list[tuple[str, str, str]]:
        """(path, content, encoding) for every file in the snapshot.

        Generated files own their paths; an attachment with the same name is dropped.
        """
        generated = bundle.files()
        files = [(path, text, "utf-8") for path, text in generated.items()]
        for attachment in attachments:
            if attachment.name in generated:
                logger.warning("attachment_path_conflict", name=attachment.name)
                continue
            files.append((attachment.name, base64.b64encode(attachment.content).decode("ascii"), "base64"))
        return files

    async def _enable_pages(self, owner: str, repo: str, branch: str) -> None:
        try:
            created = await self.github.enable_pages(owner, repo, branch, "/")
        except Exception as exc:
            logger.warning(
                "pages_enable_failed",
                owner=owner,
                repo=repo,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return

        if created:
            logger.info("pages_enabled", owner=owner, repo=repo)
        else:
            logger.info("pages_already_enabled", owner=owner, repo=repo)

    async def fetch_primary_document(self, target_name: str) -> str:
        """Read index.html of a previously published round. Empty string if unavailable."""
        owner = await self._resolve_owner()
        try:
            return await self.github.get_file_text(owner, target_name, INDEX_PATH)
        except Exception as exc:
            logger.warning(
                "prior_artifact_unavailable",
                repo=target_name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return ""
