"""Pydantic models of the declaration files compiled by the CLI."""

import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..config import StackEnvironment

IAM_PATH_PATTERN = re.compile(r"^(/|/[!-\u007F]+/)$")


def _validate_iam_path(v: str | None) -> str | None:
    if v is not None and not IAM_PATH_PATTERN.match(v):
        raise ValueError(
            "path must be '/' or start and end with '/' (e.g. '/admins/'), "
            f"got '{v}'"
        )
    return v


class DeclarationBase(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ParameterDeclaration(DeclarationBase):
    type: str = Field(default="String", description="Template parameter type.")
    default: Any = Field(default=None, description="Optional default value.")
    description: str | None = Field(default=None)


class StatementDeclaration(DeclarationBase):
    """One statement of a group's default inline policy."""

    sid: str | None = Field(default=None)
    effect: Literal["Allow", "Deny"] = Field(default="Allow")
    actions: list[str] = Field(..., min_length=1)
    resources: list[str] = Field(default_factory=lambda: ["*"])
    conditions: dict[str, dict[str, Any]] = Field(default_factory=dict)


class GroupDeclaration(DeclarationBase):
    group_name: str | None = Field(
        default=None, description="Optional physical name of the group."
    )
    path: str | None = Field(default=None, description="Optional IAM path.")
    managed_policies: list[str] = Field(
        default_factory=list,
        description=(
            "Managed policies: ARNs (starting with 'arn:') or names of AWS "
            "managed policies."
        ),
    )
    statements: list[StatementDeclaration] = Field(default_factory=list)

    @field_validator("path")
    def validate_path(cls, v: str | None) -> str | None:
        return _validate_iam_path(v)


class ImportedGroupDeclaration(DeclarationBase):
    """
    An existing group, by ARN or by name.

    ``arn`` may be ``{"Ref": "<parameter>"}`` to take the ARN from a template
    parameter at deployment time.
    """

    arn: str | dict[str, str] | None = Field(default=None)
    name: str | None = Field(default=None)

    @field_validator("arn")
    def validate_arn_ref(cls, v: Any) -> Any:
        if isinstance(v, dict) and set(v) != {"Ref"}:
            raise ValueError("arn must be a string or {'Ref': <parameter name>}")
        return v

    @model_validator(mode="after")
    def validate_exactly_one(self) -> "ImportedGroupDeclaration":
        if (self.arn is None) == (self.name is None):
            raise ValueError("exactly one of 'arn' or 'name' must be given")
        return self


class UserDeclaration(DeclarationBase):
    user_name: str | None = Field(default=None)
    path: str | None = Field(default=None)
    groups: list[str] = Field(
        default_factory=list,
        description="Ids of declared or imported groups the user belongs to.",
    )
    managed_policies: list[str] = Field(default_factory=list)

    @field_validator("path")
    def validate_path(cls, v: str | None) -> str | None:
        return _validate_iam_path(v)


class StackDeclaration(DeclarationBase):
    """Root of a declaration file."""

    stack: str = Field(
        ...,
        pattern=r"^[A-Za-z][A-Za-z0-9-]*$",
        description="Name of the stack: letters, digits and hyphens.",
    )
    description: str | None = Field(default=None)
    environment: StackEnvironment | None = Field(default=None)
    parameters: dict[str, ParameterDeclaration] = Field(default_factory=dict)
    groups: dict[str, GroupDeclaration] = Field(default_factory=dict)
    imported_groups: dict[str, ImportedGroupDeclaration] = Field(
        default_factory=dict
    )
    users: dict[str, UserDeclaration] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "StackDeclaration":
        # Every id below names a construct directly under the stack
        sections = {
            "parameters": set(self.parameters),
            "groups": set(self.groups),
            "imported_groups": set(self.imported_groups),
            "users": set(self.users),
        }
        seen: dict[str, str] = {}
        for section, ids in sections.items():
            for item_id in sorted(ids):
                if item_id in seen:
                    raise ValueError(
                        f"id '{item_id}' is used by both {seen[item_id]} "
                        f"and {section}"
                    )
                seen[item_id] = section
        return self
