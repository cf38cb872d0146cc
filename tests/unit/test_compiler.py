"""Unit tests for compiling declarations into stacks."""

import pytest
from aws_cdk import App, Token
from aws_cdk.assertions import Match, Template

from reiam.compiler import MANAGED_POLICY_SCOPE, DeclarationCompiler
from reiam.exceptions import ValidationError
from reiam.iam import Group, ImportedGroup
from reiam.synthesis import synthesize

# ---------------------------------------------------------------------------
#                                FIXTURES
# ---------------------------------------------------------------------------


@pytest.fixture
def declaration() -> dict:
    """A declaration with owned groups, imported groups and users."""
    return {
        "stack": "NetworkAccess",
        "description": "Network team",
        "environment": {"account": "123456789012"},
        "parameters": {"LegacyGroupArn": {"description": "Old group"}},
        "groups": {
            "NetAdmins": {
                "group_name": "NetAdmin",
                "path": "/admins/",
                "managed_policies": [
                    "AmazonVPCFullAccess",
                    "arn:aws:iam::123456789012:policy/boundary",
                    "AmazonVPCFullAccess",
                ],
                "statements": [
                    {"actions": ["ec2:DescribeVpcs"]},
                    {"effect": "Deny", "actions": ["ec2:DeleteVpc"]},
                ],
            },
            "Auditors": {"managed_policies": ["ReadOnlyAccess"]},
        },
        "imported_groups": {
            "Ops": {"name": "Ops"},
            "Legacy": {"arn": {"Ref": "LegacyGroupArn"}},
        },
        "users": {
            "alice": {"user_name": "alice", "groups": ["NetAdmins", "Auditors"]},
            "bob": {"groups": ["Ops", "Legacy"]},
        },
    }


class TestDeclarationCompiler:
    """From declaration to synthesized template."""

    def test_stack_settings(self, declaration):
        stack = DeclarationCompiler().compile(declaration)
        assert stack.stack_name == "NetworkAccess"
        assert stack.account == "123456789012"
        assert Token.is_unresolved(stack.region)
        assert stack.template_options.description == "Network team"

    def test_uses_given_app(self, declaration):
        app = App()
        stack = DeclarationCompiler(app).compile(declaration)
        assert stack.node.scope is app

    def test_resources(self, declaration):
        template = Template.from_stack(DeclarationCompiler().compile(declaration))
        template.resource_count_is("AWS::IAM::Group", 2)
        template.resource_count_is("AWS::IAM::Policy", 1)
        template.resource_count_is("AWS::IAM::User", 2)
        template.has_parameter(
            "LegacyGroupArn", {"Type": "String", "Description": "Old group"}
        )
        assert set(template.find_outputs("*")) == {
            "NetAdminsName",
            "NetAdminsArn",
            "AuditorsName",
            "AuditorsArn",
        }

    def test_template_has_no_bootstrap_boilerplate(self, declaration):
        result = synthesize(DeclarationCompiler().compile(declaration))
        assert "BootstrapVersion" not in result.template["Parameters"]
        assert "Rules" not in result.template

    def test_repeated_managed_policy_is_attached_once(self, declaration):
        stack = DeclarationCompiler().compile(declaration)
        group = stack.node.find_child("NetAdmins")
        assert isinstance(group, Group)
        assert len(group.managed_policies) == 2
        Template.from_stack(stack).has_resource_properties(
            "AWS::IAM::Group",
            {
                "GroupName": "NetAdmin",
                "ManagedPolicyArns": [
                    Match.any_value(),
                    "arn:aws:iam::123456789012:policy/boundary",
                ],
            },
        )

    def test_policy_arns_live_under_reserved_scope(self, declaration):
        stack = DeclarationCompiler().compile(declaration)
        scope = stack.node.find_child(MANAGED_POLICY_SCOPE)
        assert len(scope.node.children) == 1

    def test_statements_go_to_default_policy(self, declaration):
        stack = DeclarationCompiler().compile(declaration)
        Template.from_stack(stack).has_resource_properties(
            "AWS::IAM::Policy",
            {
                "PolicyDocument": {
                    "Statement": [
                        Match.object_like(
                            {"Effect": "Allow", "Action": "ec2:DescribeVpcs"}
                        ),
                        Match.object_like(
                            {"Effect": "Deny", "Action": "ec2:DeleteVpc"}
                        ),
                    ]
                }
            },
        )

    def test_imported_groups(self, declaration):
        stack = DeclarationCompiler().compile(declaration)
        ops = stack.node.find_child("Ops")
        assert isinstance(ops, ImportedGroup)
        assert ops.group_name == "Ops"
        legacy = stack.node.find_child("Legacy")
        assert stack.resolve(legacy.group_arn) == {"Ref": "LegacyGroupArn"}

    def test_user_memberships(self, declaration):
        template = Template.from_stack(DeclarationCompiler().compile(declaration))
        template.has_resource_properties(
            "AWS::IAM::User",
            {"UserName": "alice", "Groups": [Match.any_value(), Match.any_value()]},
        )
        template.has_resource_properties(
            "AWS::IAM::User",
            {
                "UserName": Match.absent(),
                "Groups": ["Ops", Match.object_like({"Fn::Select": Match.any_value()})],
            },
        )

    def test_capacity_warning_reaches_synthesis(self, declaration):
        declaration["groups"]["NetAdmins"]["managed_policies"] = [
            f"arn:aws:iam::123456789012:policy/p{i}" for i in range(11)
        ]
        result = synthesize(DeclarationCompiler().compile(declaration))
        (warning,) = result.warnings
        assert warning.path == "/NetworkAccess/NetAdmins"


class TestDeclarationCompilerErrors:
    """References and ids the compiler rejects."""

    def test_unknown_group_for_user(self, declaration):
        declaration["users"]["bob"]["groups"] = ["Nope"]
        with pytest.raises(ValidationError) as exc_info:
            DeclarationCompiler().compile(declaration)
        assert exc_info.value.context["field_name"] == "users.bob.groups"

    def test_unknown_parameter_for_import(self, declaration):
        del declaration["parameters"]["LegacyGroupArn"]
        with pytest.raises(ValidationError, match="unknown parameter"):
            DeclarationCompiler().compile(declaration)

    def test_group_ids_with_same_output_prefix(self, declaration):
        """'net-admins' and 'netadmins' would both emit netadminsName."""
        declaration["groups"] = {"net-admins": {}, "netadmins": {}}
        with pytest.raises(ValidationError) as exc_info:
            DeclarationCompiler().compile(declaration)
        assert "'net-admins' and 'netadmins'" in str(exc_info.value)
        assert exc_info.value.context["field_name"] == "groups.netadmins"

    def test_output_name_clashing_with_declared_id(self, declaration):
        declaration["parameters"]["AuditorsArn"] = {}
        with pytest.raises(ValidationError, match="clashes with the id"):
            DeclarationCompiler().compile(declaration)

    def test_reserved_id(self, declaration):
        declaration["users"][MANAGED_POLICY_SCOPE] = {}
        with pytest.raises(ValidationError, match="reserved"):
            DeclarationCompiler().compile(declaration)
