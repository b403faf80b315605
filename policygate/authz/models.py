"""Authorization data models."""

from pydantic import BaseModel, Field


class AuthzDecision(BaseModel):
    """Result of a non-raising authorization check."""

    allowed: bool = Field(description="Whether access is allowed")
    policy: str = Field(default="", description="Policy that handled the request")
    rule: str = Field(default="", description="Rule or method that was evaluated")
    reason: str = Field(default="", description="Explanation of the decision")
    code: str | None = Field(
        default=None,
        description="Error code when denied by the engine or an AuthorizationError"
    )
