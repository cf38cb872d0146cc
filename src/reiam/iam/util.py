import logging
from collections.abc import Iterator

from aws_cdk import aws_iam as iam

from ..exceptions import DuplicatePolicyNameError

logger = logging.getLogger(__name__)


class AttachedPolicies:
    """
    Inline policies attached to one identity.

    Attaching the same policy twice is ignored. Attaching a different policy
    with the same name fails, since names are unique per identity. Unnamed
    policies carry distinct deferred names and never clash.
    """

    def __init__(self):
        self._policies: list[iam.Policy] = []

    def attach(self, policy: iam.Policy) -> None:
        if any(p is policy for p in self._policies):
            return

        name = policy.policy_name
        if any(p.policy_name == name for p in self._policies):
            raise DuplicatePolicyNameError(
                f"A policy named '{name}' is already attached", policy_name=name
            )

        logger.debug("Attaching policy '%s'", policy.node.path)
        self._policies.append(policy)

    def __iter__(self) -> Iterator[iam.Policy]:
        return iter(list(self._policies))
