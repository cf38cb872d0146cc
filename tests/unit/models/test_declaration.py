"""Unit tests for declaration file models."""

import pytest
from pydantic import ValidationError

from reiam.models.declaration import (
    GroupDeclaration,
    ImportedGroupDeclaration,
    StackDeclaration,
    StatementDeclaration,
)


class TestGroupDeclaration:
    def test_defaults(self):
        decl = GroupDeclaration()
        assert decl.group_name is None
        assert decl.managed_policies == []
        assert decl.statements == []

    @pytest.mark.parametrize("path", ["/", "/admins/", "/a/b/"])
    def test_valid_paths(self, path):
        assert GroupDeclaration(path=path).path == path

    @pytest.mark.parametrize("path", ["admins", "/admins", "admins/", ""])
    def test_invalid_paths(self, path):
        with pytest.raises(ValidationError):
            GroupDeclaration(path=path)

    def test_unknown_fields_are_rejected(self):
        with pytest.raises(ValidationError):
            GroupDeclaration.model_validate({"name": "x"})


class TestStatementDeclaration:
    def test_defaults(self):
        decl = StatementDeclaration(actions=["s3:*"])
        assert decl.effect == "Allow"
        assert decl.resources == ["*"]

    def test_actions_required(self):
        with pytest.raises(ValidationError):
            StatementDeclaration(actions=[])

    def test_unknown_effect(self):
        with pytest.raises(ValidationError):
            StatementDeclaration(actions=["s3:*"], effect="Maybe")


class TestImportedGroupDeclaration:
    def test_by_name(self):
        assert ImportedGroupDeclaration(name="Ops").arn is None

    def test_by_parameter_reference(self):
        decl = ImportedGroupDeclaration.model_validate({"arn": {"Ref": "P"}})
        assert decl.arn == {"Ref": "P"}

    @pytest.mark.parametrize(
        "data",
        [{}, {"name": "Ops", "arn": "arn:aws:iam::1:group/Ops"}, {"arn": {"X": "P"}}],
    )
    def test_invalid(self, data):
        with pytest.raises(ValidationError):
            ImportedGroupDeclaration.model_validate(data)


class TestStackDeclaration:
    def test_minimal(self):
        decl = StackDeclaration(stack="S")
        assert decl.groups == {}
        assert decl.environment is None

    def test_environment(self):
        decl = StackDeclaration.model_validate(
            {"stack": "S", "environment": {"account": "123456789012"}}
        )
        assert decl.environment.account == "123456789012"

    def test_id_shared_by_group_and_import_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            StackDeclaration.model_validate(
                {
                    "stack": "S",
                    "groups": {"Ops": {}},
                    "imported_groups": {"Ops": {"name": "Ops"}},
                }
            )
        assert "Ops" in str(exc_info.value)

    def test_id_shared_by_user_and_parameter_is_rejected(self):
        with pytest.raises(ValidationError, match="used by both parameters and users"):
            StackDeclaration.model_validate(
                {"stack": "S", "parameters": {"bob": {}}, "users": {"bob": {}}}
            )

    @pytest.mark.parametrize("name", ["1Stack", "my_stack", "", "a b"])
    def test_invalid_stack_names(self, name):
        with pytest.raises(ValidationError):
            StackDeclaration(stack=name)
