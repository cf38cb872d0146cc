"""Compiles declaration files into stacks."""

import logging
from typing import Any

from aws_cdk import App, CfnOutput, CfnParameter, DefaultStackSynthesizer, Stack
from aws_cdk import aws_iam as iam
from constructs import Construct

from .config import StackEnvironment
from .exceptions import ValidationError
from .iam.group import Group
from .models.declaration import (
    GroupDeclaration,
    ImportedGroupDeclaration,
    StackDeclaration,
    StatementDeclaration,
    UserDeclaration,
)

logger = logging.getLogger(__name__)

# Scope holding references to customer managed policies given by ARN
MANAGED_POLICY_SCOPE = "ManagedPolicies"


class DeclarationCompiler:
    """
    Turns a `StackDeclaration` into a `Stack` ready for synthesis.

    Managed policy entries are turned into one reference per distinct string,
    so listing a policy twice attaches it once. Each declared group gets
    ``<Id>Name`` and ``<Id>Arn`` outputs, where ``<Id>`` is the group id with
    non-alphanumeric characters removed.
    """

    def __init__(self, app: App | None = None):
        self._logger = logger.getChild(self.__class__.__name__)
        self._app = app
        self._managed_policies: dict[str, iam.IManagedPolicy] = {}
        self._parameters: dict[str, CfnParameter] = {}
        self._groups: dict[str, iam.IGroup] = {}
        self._outputs: dict[str, str] = {}
        self._declared_ids: set[str] = set()
        self._policy_scope: Construct | None = None

    def compile(self, declaration: StackDeclaration | dict[str, Any]) -> Stack:
        if isinstance(declaration, dict):
            declaration = StackDeclaration.model_validate(declaration)

        self._reset()
        self._check_reserved_ids(declaration)
        self._declared_ids = {
            *declaration.parameters,
            *declaration.groups,
            *declaration.imported_groups,
            *declaration.users,
        }

        overrides = {}
        if declaration.environment:
            overrides = declaration.environment.model_dump()
        environment = StackEnvironment.from_environment(**overrides)

        stack = Stack(
            self._app or App(),
            declaration.stack,
            env=environment.to_cdk_environment(),
            description=declaration.description,
            synthesizer=DefaultStackSynthesizer(generate_bootstrap_version_rule=False),
            analytics_reporting=False,
        )

        for name, parameter in declaration.parameters.items():
            self._parameters[name] = CfnParameter(
                stack,
                name,
                type=parameter.type,
                default=parameter.default,
                description=parameter.description,
            )

        for group_id, group_decl in declaration.groups.items():
            self._groups[group_id] = self._compile_group(stack, group_id, group_decl)

        for group_id, import_decl in declaration.imported_groups.items():
            self._groups[group_id] = self._compile_import(stack, group_id, import_decl)

        for user_id, user_decl in declaration.users.items():
            self._compile_user(stack, user_id, user_decl)

        self._logger.info(
            "Compiled stack '%s': %d group(s), %d imported group(s), %d user(s)",
            declaration.stack,
            len(declaration.groups),
            len(declaration.imported_groups),
            len(declaration.users),
        )
        return stack

    def _reset(self) -> None:
        self._managed_policies.clear()
        self._parameters.clear()
        self._groups.clear()
        self._outputs.clear()
        self._policy_scope = None

    @staticmethod
    def _check_reserved_ids(declaration: StackDeclaration) -> None:
        for section in ("parameters", "groups", "imported_groups", "users"):
            if MANAGED_POLICY_SCOPE in getattr(declaration, section):
                raise ValidationError(
                    f"'{MANAGED_POLICY_SCOPE}' is reserved and cannot be used "
                    "as an id",
                    field_name=f"{section}.{MANAGED_POLICY_SCOPE}",
                )

    def _managed_policy(self, stack: Stack, entry: str) -> iam.IManagedPolicy:
        if entry not in self._managed_policies:
            if entry.startswith("arn:"):
                if self._policy_scope is None:
                    self._policy_scope = Construct(stack, MANAGED_POLICY_SCOPE)
                policy = iam.ManagedPolicy.from_managed_policy_arn(
                    self._policy_scope,
                    f"Policy{len(self._managed_policies)}",
                    entry,
                )
            else:
                policy = iam.ManagedPolicy.from_aws_managed_policy_name(entry)
            self._managed_policies[entry] = policy
        return self._managed_policies[entry]

    def _compile_group(
        self, stack: Stack, group_id: str, decl: GroupDeclaration
    ) -> Group:
        group = Group(
            stack,
            group_id,
            group_name=decl.group_name,
            managed_policies=[
                self._managed_policy(stack, p) for p in decl.managed_policies
            ],
            path=decl.path,
        )
        for statement in decl.statements:
            group.add_to_principal_policy(self._policy_statement(statement))

        output_prefix = "".join(c for c in group_id if c.isalnum())
        self._add_output(stack, f"{output_prefix}Name", group.group_name, group_id)
        self._add_output(stack, f"{output_prefix}Arn", group.group_arn, group_id)
        return group

    @staticmethod
    def _policy_statement(decl: StatementDeclaration) -> iam.PolicyStatement:
        return iam.PolicyStatement(
            sid=decl.sid,
            effect=iam.Effect.DENY if decl.effect == "Deny" else iam.Effect.ALLOW,
            actions=list(decl.actions),
            resources=list(decl.resources),
            conditions=dict(decl.conditions) or None,
        )

    def _add_output(self, stack: Stack, name: str, value: str, group_id: str) -> None:
        owner = self._outputs.get(name)
        if owner is not None:
            raise ValidationError(
                f"Groups '{owner}' and '{group_id}' both produce output '{name}'; "
                "group ids must differ in their letters and digits",
                field_name=f"groups.{group_id}",
                actual_value=group_id,
            )
        if name in self._declared_ids or stack.node.try_find_child(name) is not None:
            raise ValidationError(
                f"Output '{name}' of group '{group_id}' clashes with the id of "
                "another declared item",
                field_name=f"groups.{group_id}",
                actual_value=name,
            )
        CfnOutput(stack, name, value=value)
        self._outputs[name] = group_id

    def _compile_import(
        self, stack: Stack, group_id: str, decl: ImportedGroupDeclaration
    ) -> iam.IGroup:
        if decl.name is not None:
            return Group.from_group_name(stack, group_id, decl.name)

        arn: Any = decl.arn
        if isinstance(arn, dict):
            parameter = self._parameters.get(arn["Ref"])
            if parameter is None:
                raise ValidationError(
                    f"Imported group '{group_id}' refers to unknown parameter "
                    f"'{arn['Ref']}'",
                    field_name=f"imported_groups.{group_id}.arn",
                )
            arn = parameter.value_as_string
        return Group.from_group_arn(stack, group_id, arn)

    def _compile_user(
        self, stack: Stack, user_id: str, decl: UserDeclaration
    ) -> iam.User:
        managed_policies = [
            self._managed_policy(stack, p) for p in decl.managed_policies
        ]
        user = iam.User(
            stack,
            user_id,
            user_name=decl.user_name,
            managed_policies=managed_policies or None,
            path=decl.path,
        )
        for group_id in decl.groups:
            group = self._groups.get(group_id)
            if group is None:
                raise ValidationError(
                    f"User '{user_id}' refers to unknown group '{group_id}'",
                    field_name=f"users.{user_id}.groups",
                )
            group.add_user(user)
        return user
