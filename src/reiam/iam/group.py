"""
IAM groups.

A `Group` declares a new group in the stack. `Group.from_group_arn` and
`Group.from_group_name` reference a group that already exists; they resolve
its identity but never declare a resource.
"""

import logging

import jsii
from aws_cdk import (
    Annotations,
    ArnFormat,
    IStableListProducer,
    Lazy,
    Resource,
    Stack,
    Token,
)
from aws_cdk import aws_iam as iam
from constructs import Construct
from jsii.errors import JSIIError

from ..exceptions import ArnFormatError
from .util import AttachedPolicies

logger = logging.getLogger(__name__)

# https://docs.aws.amazon.com/IAM/latest/UserGuide/reference_iam-quotas.html
MAX_MANAGED_POLICIES_PER_GROUP = 10


def _owned_group_resource_name(path: str | None, physical_name: str) -> str:
    # '/admins/' + 'NetAdmin' -> 'admins/NetAdmin'
    prefix = ""
    if path:
        prefix = path[1:] if path.startswith("/") else path
    return f"{prefix}{physical_name}"


def compute_owned_group_arn(
    scope: Construct, path: str | None, physical_name: str
) -> str:
    """
    Computes the ARN of a group declared in the stack of ``scope``.

    The resource name is the path, without a single leading '/', followed by
    the physical name: path '/admins/' and name 'NetAdmin' give
    'group/admins/NetAdmin'. IAM is global in each partition so the region is
    always empty.
    """
    return Stack.of(scope).format_arn(
        service="iam",
        region="",
        resource="group",
        resource_name=_owned_group_resource_name(path, physical_name),
    )


@jsii.implements(IStableListProducer)
class _ManagedPolicyArns:
    """Produces the ARNs of a group's managed policies at synthesis time."""

    def __init__(self, group: "Group"):
        self._group = group

    def produce(self) -> list[str] | None:
        return [p.managed_policy_arn for p in self._group.managed_policies]


@jsii.implements(iam.IGroup)
class GroupBase(Resource):
    """Behavior shared by declared and imported groups."""

    def __init__(self, scope: Construct, id: str, group_name: str | None = None):
        super().__init__(scope, id, physical_name=group_name)
        self._attached_policies = AttachedPolicies()
        self._default_policy: iam.Policy | None = None

    @property
    def grant_principal(self) -> iam.IPrincipal:
        return self

    @property
    def principal_account(self) -> str | None:
        return self.env.account

    @property
    def assume_role_action(self) -> str:
        return "sts:AssumeRole"

    @property
    def policy_fragment(self) -> iam.PrincipalPolicyFragment:
        return iam.ArnPrincipal(self.group_arn).policy_fragment

    @property
    def default_policy(self) -> iam.Policy | None:
        return self._default_policy

    @property
    def attached_policies(self) -> list[iam.Policy]:
        return list(self._attached_policies)

    def attach_inline_policy(self, policy: iam.Policy) -> None:
        """Attaches a policy to this group."""
        self._attached_policies.attach(policy)
        policy.attach_to_group(self)

    def add_managed_policy(self, policy: iam.IManagedPolicy) -> None:
        # Groups not declared in this stack are left untouched: the policy is
        # dropped without an error.
        logger.debug(
            "Ignoring managed policy for imported group '%s'", self.node.path
        )

    def add_user(self, user: iam.IUser) -> None:
        """Adds a user to this group."""
        user.add_to_group(self)

    def add_to_principal_policy(
        self, statement: iam.PolicyStatement
    ) -> iam.AddToPrincipalPolicyResult:
        """
        Adds a statement to the default inline policy of this group.

        The default policy is created on first use and reused afterwards.
        Groups accept every statement, so the result always reports it as
        added; its ``policy_dependable`` can be used to order other resources
        after the permission exists.
        """
        if self._default_policy is None:
            self._default_policy = iam.Policy(self, "DefaultPolicy")
            self._default_policy.attach_to_group(self)

        self._default_policy.add_statements(statement)
        return iam.AddToPrincipalPolicyResult(
            statement_added=True, policy_dependable=self._default_policy
        )

    def add_to_policy(self, statement: iam.PolicyStatement) -> bool:
        return self.add_to_principal_policy(statement).statement_added


class ImportedGroup(GroupBase):
    """An existing group, known only by its identity."""

    def __init__(
        self,
        scope: Construct,
        id: str,
        group_name: str,
        group_arn: str,
        principal_account: str | None = None,
    ):
        super().__init__(scope, id)
        self._group_name = group_name
        self._group_arn = group_arn
        self._principal_account = principal_account

    @property
    def group_name(self) -> str:
        return self._group_name

    @property
    def group_arn(self) -> str:
        return self._group_arn

    @property
    def principal_account(self) -> str | None:
        return self._principal_account


class Group(GroupBase):
    """
    An IAM group declared in this stack.

    Args:
        scope: Parent construct
        id: Construct id
        group_name: Optional name. When omitted the provisioning engine
                    generates one.
        managed_policies: Optional initial managed policies
        path: Optional path, '/' when omitted
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        group_name: str | None = None,
        managed_policies: list[iam.IManagedPolicy] | None = None,
        path: str | None = None,
    ):
        super().__init__(scope, id, group_name=group_name)
        self.iam_path = path
        self._managed_policies: list[iam.IManagedPolicy] = []
        for policy in managed_policies or []:
            if not any(p is policy for p in self._managed_policies):
                self._managed_policies.append(policy)

        resource = iam.CfnGroup(
            self,
            "Resource",
            group_name=self._physical_name,
            managed_policy_arns=Lazy.list(
                _ManagedPolicyArns(self), omit_empty=True
            ),
            path=path,
        )

        self._group_name = self._get_resource_name_attribute(resource.ref)
        self._group_arn = self._get_resource_arn_attribute(
            resource.attr_arn,
            region="",
            service="iam",
            resource="group",
            resource_name=_owned_group_resource_name(path, self._physical_name),
        )

        self._managed_policies_exceeded_warning()

    @classmethod
    def from_group_arn(
        cls, scope: Construct, id: str, group_arn: str
    ) -> iam.IGroup:
        """
        Imports an existing group by ARN.

        If ``group_arn`` is a token (a template parameter or an imported
        value) *and* the group has a path, as in
        'arn:aws:iam::123456789012:group/AdminGroup/NetworkAdmin', the group
        name resolves to the first path component ('AdminGroup') instead of
        the full name. The provisioning engine cannot express the full
        calculation. Supply such ARNs without the path to get the right name.
        A literal ARN resolves to the full 'AdminGroup/NetworkAdmin'.

        Raises:
            ArnFormatError: If a literal ARN has no 'group/<name>' resource
        """
        try:
            components = Stack.of(scope).split_arn(
                group_arn, ArnFormat.SLASH_RESOURCE_NAME
            )
        except (JSIIError, RuntimeError) as exc:
            raise ArnFormatError(
                str(exc), arn=group_arn, arn_format="SLASH_RESOURCE_NAME"
            ) from exc

        if Token.is_unresolved(group_arn):
            logger.debug(
                "Importing group '%s' from a deferred ARN; a path in the ARN "
                "limits the resolved name to its first segment",
                id,
            )
        elif components.resource != "group" or not components.resource_name:
            raise ArnFormatError(
                f"Expected a group ARN ending in 'group/<name>', got '{group_arn}'",
                arn=group_arn,
                arn_format="SLASH_RESOURCE_NAME",
            )

        return ImportedGroup(
            scope,
            id,
            group_name=components.resource_name,
            group_arn=group_arn,
            principal_account=components.account,
        )

    @classmethod
    def from_group_name(
        cls, scope: Construct, id: str, group_name: str
    ) -> iam.IGroup:
        """
        Imports an existing group by name, path included.

        The ARN is formatted from the name and imported through
        `from_group_arn`, with the same caveats.
        """
        group_arn = Stack.of(scope).format_arn(
            service="iam",
            region="",
            resource="group",
            resource_name=group_name,
        )
        return cls.from_group_arn(scope, id, group_arn)

    @property
    def group_name(self) -> str:
        return self._group_name

    @property
    def group_arn(self) -> str:
        return self._group_arn

    @property
    def physical_arn(self) -> str:
        """ARN computed from the path and physical name, without the resource."""
        return compute_owned_group_arn(self, self.iam_path, self._physical_name)

    @property
    def managed_policies(self) -> list[iam.IManagedPolicy]:
        return list(self._managed_policies)

    def add_managed_policy(self, policy: iam.IManagedPolicy) -> None:
        """
        Attaches a managed policy to this group.

        Adding the same policy object again is ignored. More than 10 managed
        policies exceed the IAM quota for groups and raise a warning.
        """
        if any(p is policy for p in self._managed_policies):
            return
        self._managed_policies.append(policy)
        self._managed_policies_exceeded_warning()

    def _managed_policies_exceeded_warning(self) -> None:
        count = len(self._managed_policies)
        if count > MAX_MANAGED_POLICIES_PER_GROUP:
            name = self._physical_name
            if Token.is_unresolved(name):
                name = self.node.path
            logger.debug("Group '%s' has %d managed policies", name, count)
            Annotations.of(self).add_warning(
                f"You added {count} managed policies to IAM Group {name}. "
                "The maximum number of managed policies attached to an IAM "
                f"group is {MAX_MANAGED_POLICIES_PER_GROUP}."
            )
