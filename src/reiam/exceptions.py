"""
ReIAM Exception Classes

Custom exceptions for error handling and debugging across the IAM constructs,
the declaration compiler and the command-line interface.
"""

from typing import Any


class ReiamError(Exception):
    """Base exception for all ReIAM errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.context = context or {}

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.error_code:
            base_msg = f"[{self.error_code}] {base_msg}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg = f"{base_msg} (Context: {context_str})"
        return base_msg


class ArnFormatError(ReiamError):
    """Raised when an ARN does not have the expected structure."""

    def __init__(
        self,
        message: str,
        arn: str | None = None,
        arn_format: str | None = None,
    ) -> None:
        context = {}
        if arn:
            context["arn"] = arn
        if arn_format:
            context["arn_format"] = arn_format
        super().__init__(message, "ARN_FORMAT_ERROR", context)

    def get_recovery_hint(self) -> str:
        """Provide a helpful hint for fixing the ARN."""
        return (
            "ARNs look like 'arn:<partition>:<service>:<region>:<account>:"
            "<resource-type>/<resource-name>'"
        )


class DuplicatePolicyNameError(ReiamError):
    """Raised when two distinct policies with the same name are attached."""

    def __init__(self, message: str, policy_name: str | None = None) -> None:
        context = {}
        if policy_name:
            context["policy_name"] = policy_name
        super().__init__(message, "DUPLICATE_POLICY_NAME", context)


class ValidationError(ReiamError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field_name: str | None = None,
        expected_type: type | None = None,
        actual_value: Any = None,
    ) -> None:
        context = {}
        if field_name:
            context["field_name"] = field_name
        if expected_type:
            context["expected_type"] = expected_type.__name__
        if actual_value is not None:
            context["actual_value"] = str(actual_value)
        super().__init__(message, "VALIDATION_ERROR", context)

    def get_recovery_hint(self) -> str:
        """Provide a helpful hint for fixing the validation error."""
        if "field_name" in self.context and "expected_type" in self.context:
            field = self.context["field_name"]
            expected = self.context["expected_type"]
            return f"Ensure '{field}' is of type {expected}"
        return "Check the input data format and required fields"


class DeclarationLoadError(ReiamError):
    """Raised when a declaration file cannot be read or parsed."""

    def __init__(self, message: str, file_path: str | None = None) -> None:
        context = {}
        if file_path:
            context["file_path"] = file_path
        super().__init__(message, "DECLARATION_LOAD_ERROR", context)
