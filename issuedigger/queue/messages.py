"""Work items carried by the queue.

Every variant holds exactly what its consumer needs to authenticate and
address GitHub again without the triggering webhook event. Items are
immutable and travel as JSON objects with a `type` discriminant.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from issuedigger.exceptions import DispatchError, ErrorCode
from issuedigger.vectors.naming import RepositoryKey


class ItemKind(str, Enum):
    """What an indexed text item is."""

    ISSUE = "issue"
    COMMENT = "comment"


class _WorkItemBase(BaseModel):
    # Unknown fields are dropped so only the declared shape is ever sent.
    model_config = ConfigDict(frozen=True, extra="ignore")

    repo_owner: str = Field(description="Repository owner login")
    repo_name: str = Field(description="Repository name")

    @property
    def repository(self) -> RepositoryKey:
        return RepositoryKey(owner=self.repo_owner, name=self.repo_name)


class IndexItem(_WorkItemBase):
    """Fold one issue or comment into the vector of its issue thread."""

    type: Literal["index"] = "index"
    kind: ItemKind = Field(description="Issue or comment")
    issue_number: int = Field(description="Issue the item belongs to")
    title: str | None = Field(default=None, description="Issue title; absent for comments")
    body: str | None = Field(default=None, description="Issue or comment body")
    is_self_authored: bool = Field(default=False, description="Created by this app")
    installation_id: int = Field(description="GitHub App installation")


class ReindexComments(_WorkItemBase):
    """Re-emit every human comment of an issue for indexing."""

    type: Literal["reindex_comments"] = "reindex_comments"
    issue_number: int = Field(description="Issue to reindex")
    installation_id: int = Field(description="GitHub App installation")


class Onboard(_WorkItemBase):
    """Backfill all issues and comments of a repository."""

    type: Literal["onboard"] = "onboard"
    installation_id: int = Field(description="GitHub App installation")


class Offboard(_WorkItemBase):
    """Delete every vector of a repository."""

    type: Literal["offboard"] = "offboard"


class PostComment(_WorkItemBase):
    """Reply on an issue with its most similar issues."""

    type: Literal["post_comment"] = "post_comment"
    issue_number: int = Field(description="Issue to reply on")
    title: str | None = Field(default=None, description="Issue title")
    body: str | None = Field(default=None, description="Issue body")
    installation_id: int = Field(description="GitHub App installation")


WorkItem = Annotated[
    Union[IndexItem, ReindexComments, Onboard, Offboard, PostComment],
    Field(discriminator="type"),
]

_work_item_adapter: TypeAdapter[WorkItem] = TypeAdapter(WorkItem)


def encode_work_item(item: WorkItem) -> str:
    """Serialize a work item to its JSON wire shape."""
    return item.model_dump_json()


def decode_work_item(raw: str | bytes | dict[str, Any]) -> WorkItem:
    """Parse a work item from its wire shape.

    Raises:
        DispatchError: If the discriminant is missing or unknown, or the
            fields do not match the variant.
    """
    try:
        if isinstance(raw, dict):
            return _work_item_adapter.validate_python(raw)
        return _work_item_adapter.validate_json(raw)
    except PydanticValidationError as e:
        error_types = {err["type"] for err in e.errors()}
        unknown_type = bool(error_types & {"union_tag_invalid", "union_tag_not_found"})
        raise DispatchError(
            "Unknown message type" if unknown_type else f"Malformed message: {e}",
            code=ErrorCode.UNKNOWN_MESSAGE_TYPE if unknown_type else ErrorCode.QUEUE_ERROR,
            details={"errors": [err["type"] for err in e.errors()]},
        ) from e
