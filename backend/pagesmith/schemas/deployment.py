"""Pydantic schemas for the deployment pipeline.

Flow of data:
- DeploymentRequest: intake body, validated at the HTTP edge
- Specification: immutable input to one generation round
- ArtifactBundle + Attachment: generated files and decoded attachments, published together
- PublicationResult: repo URL, commit SHA and Pages URL of one publication
- NotificationPayload: what the evaluation webhook receives
"""

from pydantic import BaseModel, ConfigDict, Field

# Paths of the generated files inside the published repository
INDEX_PATH = "index.html"
README_PATH = "README.md"
LICENSE_PATH = "LICENSE"


class AttachmentDescriptor(BaseModel):
    """Caller-supplied attachment: a file name and a data URI."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    url: str = Field(..., description="data:<mime>;base64,<payload>")


class DeploymentRequest(BaseModel):
    """Request body for POST /api-endpoint."""

    email: str
    secret: str
    task: str = Field(..., min_length=1)
    round: int = Field(..., ge=1)
    nonce: str
    brief: str
    checks: list[str] = Field(default_factory=list)
    evaluation_url: str
    attachments: list[AttachmentDescriptor] = Field(default_factory=list)

    def to_specification(self) -> "Specification":
        """Drop the shared secret and freeze everything the pipeline needs."""
        return Specification(
            email=self.email,
            task=self.task,
            round=self.round,
            nonce=self.nonce,
            brief=self.brief,
            checks=tuple(self.checks),
            evaluation_url=self.evaluation_url,
            attachments=tuple(self.attachments),
        )


class DeploymentResponse(BaseModel):
    """Acknowledgement returned before the pipeline runs."""

    status: str


class Specification(BaseModel):
    """Immutable input to a generation round.

    Round 1 is a fresh generation. Round N > 1 revises the artifact
    published for round N-1, located by naming convention.
    """

    model_config = ConfigDict(frozen=True)

    email: str
    task: str = Field(..., min_length=1)
    round: int = Field(..., ge=1)
    nonce: str
    brief: str
    checks: tuple[str, ...] = ()
    evaluation_url: str
    attachments: tuple[AttachmentDescriptor, ...] = ()

    @property
    def target_name(self) -> str:
        return target_name_for(self.task, self.round)

    @property
    def previous_target_name(self) -> str | None:
        if self.round == 1:
            return None
        return target_name_for(self.task, self.round - 1)

    @property
    def is_revision(self) -> bool:
        return self.round > 1


def target_name_for(task: str, round_number: int) -> str:
    """Repository name for a (task, round) pair."""
    return f"{task}-round{round_number}"


class Attachment(BaseModel):
    """Decoded attachment ready for upload."""

    model_config = ConfigDict(frozen=True)

    name: str
    content: bytes


class ArtifactBundle(BaseModel):
    """Generated primary document, description and license."""

    model_config = ConfigDict(frozen=True)

    html: str = Field(..., min_length=1)
    readme: str
    license: str

    def files(self) -> dict[str, str]:
        """Text files keyed by repository path."""
        return {
            INDEX_PATH: self.html,
            README_PATH: self.readme,
            LICENSE_PATH: self.license,
        }


class PublicationResult(BaseModel):
    """Outcome of one successful publication."""

    model_config = ConfigDict(frozen=True)

    repo_url: str
    commit_sha: str
    pages_url: str


class NotificationPayload(BaseModel):
    """JSON body POSTed to the evaluation webhook."""

    email: str
    task: str
    round: int
    nonce: str
    repo_url: str
    commit_sha: str
    pages_url: str

    @classmethod
    def build(cls, spec: Specification, publication: PublicationResult) -> "NotificationPayload":
        return cls(
            email=spec.email,
            task=spec.task,
            round=spec.round,
            nonce=spec.nonce,
            repo_url=publication.repo_url,
            commit_sha=publication.commit_sha,
            pages_url=publication.pages_url,
        )
