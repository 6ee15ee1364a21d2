"""GitHub data models."""

from pydantic import BaseModel, ConfigDict, Field

from issuedigger.queue.messages import ItemKind
from issuedigger.vectors.naming import RepositoryKey


class GitHubItem(BaseModel):
    """An issue or a human comment, as enumerated from the GitHub API.

    Attributes:
        kind: Issue or comment.
        id: GitHub's ID of the issue or comment.
        issue_number: Number of the issue (the comment's parent for comments).
        title: Issue title; None for comments.
        body: Markdown body, may be empty.
        repository: Owning repository.
        is_self_authored: Whether this app created the item.
    """

    model_config = ConfigDict(frozen=True)

    kind: ItemKind = Field(description="Issue or comment")
    id: int = Field(description="GitHub object ID")
    issue_number: int = Field(description="Issue number")
    title: str | None = Field(default=None, description="Issue title")
    body: str | None = Field(default=None, description="Body text")
    repository: RepositoryKey = Field(description="Owning repository")
    is_self_authored: bool = Field(default=False, description="Created by this app")
