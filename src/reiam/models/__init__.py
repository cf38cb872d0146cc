from .declaration import (
    GroupDeclaration,
    ImportedGroupDeclaration,
    ParameterDeclaration,
    StackDeclaration,
    StatementDeclaration,
    UserDeclaration,
)

__all__ = [
    "GroupDeclaration",
    "ImportedGroupDeclaration",
    "ParameterDeclaration",
    "StackDeclaration",
    "StatementDeclaration",
    "UserDeclaration",
]
