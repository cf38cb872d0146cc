"""Stack environment configuration."""

import logging
import os
from typing import Any

from aws_cdk import Environment
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

ENV_ACCOUNT = "REIAM_DEFAULT_ACCOUNT"
ENV_REGION = "REIAM_DEFAULT_REGION"


class StackEnvironment(BaseModel):
    """
    Target account and region of a stack.

    Fields left unset are environment-agnostic: they render as the matching
    pseudo parameter and are filled in by the provisioning engine.
    """

    account: str | None = Field(
        default=None, description="Optional 12-digit AWS account id."
    )
    region: str | None = Field(default=None, description="Optional AWS region.")

    @classmethod
    def from_environment(cls, **overrides: Any) -> "StackEnvironment":
        """
        Reads defaults from REIAM_DEFAULT_* environment variables.

        Explicit keyword overrides win over the environment when not None.
        """
        values = {
            "account": os.environ.get(ENV_ACCOUNT) or None,
            "region": os.environ.get(ENV_REGION) or None,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        logger.debug("Resolved stack environment: %s", values)
        return cls(**values)

    def to_cdk_environment(self) -> Environment:
        return Environment(account=self.account, region=self.region)
