from .group import (
    MAX_MANAGED_POLICIES_PER_GROUP,
    Group,
    GroupBase,
    ImportedGroup,
    compute_owned_group_arn,
)
from .util import AttachedPolicies

__all__ = [
    "MAX_MANAGED_POLICIES_PER_GROUP",
    "Group",
    "GroupBase",
    "ImportedGroup",
    "compute_owned_group_arn",
    "AttachedPolicies",
]
