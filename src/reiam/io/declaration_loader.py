"""Reads stack declaration files (YAML or JSON) into validated models."""

import json
import logging
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ..exceptions import DeclarationLoadError
from ..models.declaration import StackDeclaration

logger = logging.getLogger(__name__)

ROOT_KEY = "stack"


class DeclarationLoader:
    """
    Loads a declaration file and validates it as a `StackDeclaration`.

    The file format follows the extension: '.yaml'/'.yml' are read with the
    safe YAML 1.2 loader, '.json' with the json module. Structural problems
    (missing file, wrong extension, unparsable text, a top level that is not
    a mapping or lacks the ``stack`` key) raise `DeclarationLoadError` naming
    the file. Field problems inside a well-formed declaration are left to
    pydantic and raise its ``ValidationError``.
    """

    def __init__(self):
        self._logger = logger.getChild(self.__class__.__name__)
        self._yaml = YAML(typ="safe")
        self._parsers = {
            ".yaml": self._parse_yaml,
            ".yml": self._parse_yaml,
            ".json": json.loads,
        }

    @property
    def supported_extensions(self) -> list[str]:
        return sorted(self._parsers)

    def load(self, path: str | Path) -> StackDeclaration:
        file_path = Path(path)
        data = self._read_mapping(file_path)

        stack_id = data.get(ROOT_KEY)
        if not stack_id:
            raise DeclarationLoadError(
                f"{file_path.name} does not declare a stack: the "
                f"'{ROOT_KEY}' key is missing or empty",
                file_path=str(file_path),
            )

        declaration = StackDeclaration.model_validate(data)
        self._logger.info(
            "Loaded stack '%s' from %s: %d group(s), %d imported group(s), "
            "%d user(s)",
            stack_id,
            file_path,
            len(declaration.groups),
            len(declaration.imported_groups),
            len(declaration.users),
        )
        return declaration

    def _read_mapping(self, file_path: Path) -> dict[str, Any]:
        parser = self._parsers.get(file_path.suffix.lower())
        if parser is None:
            raise DeclarationLoadError(
                f"Cannot read declaration with extension '{file_path.suffix}'. "
                f"Supported: {', '.join(self.supported_extensions)}",
                file_path=str(file_path),
            )

        if not file_path.is_file():
            raise DeclarationLoadError(
                f"Declaration file not found: {file_path}", file_path=str(file_path)
            )

        try:
            data = parser(file_path.read_text(encoding="utf-8"))
        except (YAMLError, json.JSONDecodeError) as exc:
            raise DeclarationLoadError(
                f"Cannot parse declaration {file_path.name}: {exc}",
                file_path=str(file_path),
            ) from exc

        if not isinstance(data, dict):
            raise DeclarationLoadError(
                f"{file_path.name} must hold a mapping with a '{ROOT_KEY}' key, "
                f"got {type(data).__name__}",
                file_path=str(file_path),
            )

        self._logger.debug("Parsed %s (%d root keys)", file_path, len(data))
        return data

    def _parse_yaml(self, text: str) -> Any:
        return self._yaml.load(text)
