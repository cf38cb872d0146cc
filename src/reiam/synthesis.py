"""Synthesizes compiled stacks and collects their warnings."""

import logging
from typing import Any

from aws_cdk import Stack, Stage, cx_api
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class SynthesisWarning(BaseModel):
    path: str = Field(..., description="Construct path the warning is attached to.")
    message: str


class SynthesizedStack(BaseModel):
    """Template and warnings produced for one stack."""

    stack_name: str
    template: dict[str, Any] = Field(default_factory=dict)
    warnings: list[SynthesisWarning] = Field(default_factory=list)


def synthesize(stack: Stack) -> SynthesizedStack:
    """
    Synthesizes the app owning ``stack`` and returns that stack's artifact.

    Warnings are the annotations recorded on constructs while the stack was
    built, for example a group holding too many managed policies.
    """
    assembly = Stage.of(stack).synth()
    artifact = assembly.get_stack_by_name(stack.stack_name)

    warnings = [
        SynthesisWarning(path=message.id, message=str(message.entry.data))
        for message in artifact.messages
        if message.level == cx_api.SynthesisMessageLevel.WARNING
    ]
    for warning in warnings:
        logger.debug("Warning at %s: %s", warning.path, warning.message)

    logger.info(
        "Synthesized stack '%s': %d resource(s), %d warning(s)",
        stack.stack_name,
        len(artifact.template.get("Resources", {})),
        len(warnings),
    )
    return SynthesizedStack(
        stack_name=stack.stack_name, template=artifact.template, warnings=warnings
    )
