"""Schemas for Pull Request operations."""

from typing import Any

from pydantic import BaseModel, Field


class NewPullRequest(BaseModel):
    """Payload for opening a pull request."""

    title: str
    body: str = ""
    head: str = Field(..., description="Branch the changes live on")
    base: str = Field(..., description="Branch the PR targets")
    draft: bool = False


class PullRequest(BaseModel):
    """A pull request as returned by the host."""

    number: int
    html_url: str = ""
    head: str = ""
    base: str = ""
    state: str = "open"
    draft: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "PullRequest":
        return cls(
            number=data["number"],
            html_url=data.get("html_url") or "",
            head=(data.get("head") or {}).get("ref", ""),
            base=(data.get("base") or {}).get("ref", ""),
            state=data.get("state") or "open",
            draft=bool(data.get("draft", False)),
        )


class ReviewRequest(BaseModel):
    """Reviewers to request on an opened pull request."""

    reviewers: list[str] = Field(default_factory=list)
    team_reviewers: list[str] = Field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.reviewers and not self.team_reviewers
