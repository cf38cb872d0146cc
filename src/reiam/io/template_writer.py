"""Serializes synthesized templates to YAML or JSON."""

import json
import logging
from io import StringIO
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML

logger = logging.getLogger(__name__)

TEMPLATE_KEY_ORDER = [
    "AWSTemplateFormatVersion",
    "Description",
    "Metadata",
    "Parameters",
    "Resources",
    "Outputs",
]

RESOURCE_KEY_ORDER = ["Type", "Properties", "DependsOn", "Metadata"]

FORMATS = ("yaml", "json")


class TemplateWriter:
    """
    Writes a template dictionary in a fixed key order.

    Top-level sections and resource keys are emitted in the conventional
    order regardless of the order synthesis produced them in.
    """

    def __init__(self):
        self._yaml = YAML()
        self._configure_yaml()

    def _configure_yaml(self):
        self._yaml.indent(mapping=2, sequence=4, offset=2)
        self._yaml.default_flow_style = False
        self._yaml.allow_unicode = True
        self._yaml.width = 4096
        self._yaml.representer.add_representer(dict, self._represent_template_dict)

    @staticmethod
    def _represent_template_dict(dumper, data):
        if "Resources" in data or "AWSTemplateFormatVersion" in data:
            key_order = TEMPLATE_KEY_ORDER
        elif "Type" in data:
            key_order = RESOURCE_KEY_ORDER
        else:
            key_order = []
        return dumper.represent_mapping(
            "tag:yaml.org,2002:map", order_template_keys(data, key_order)
        )

    def to_yaml(self, template: dict[str, Any]) -> str:
        stream = StringIO()
        self._yaml.dump(template, stream)
        return stream.getvalue()

    def to_json(self, template: dict[str, Any]) -> str:
        ordered = order_template_keys(template, TEMPLATE_KEY_ORDER)
        if "Resources" in ordered:
            ordered["Resources"] = {
                logical_id: order_template_keys(resource, RESOURCE_KEY_ORDER)
                for logical_id, resource in ordered["Resources"].items()
            }
        return json.dumps(ordered, indent=2) + "\n"

    def render(self, template: dict[str, Any], fmt: str) -> str:
        if fmt not in FORMATS:
            raise ValueError(f"Unknown template format '{fmt}'")
        return self.to_json(template) if fmt == "json" else self.to_yaml(template)

    def save_to_file(self, content: str, file_path: str | Path) -> None:
        """Saves serialized content, creating parent directories as needed."""
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.info("Template saved to: %s", path)


def order_template_keys(data: dict[str, Any], key_order: list[str]) -> dict[str, Any]:
    ordered = {key: data[key] for key in key_order if key in data}
    ordered.update((key, value) for key, value in data.items() if key not in key_order)
    return ordered
