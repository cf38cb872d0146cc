"""Model IAM groups and compile them to provisioning templates."""

from .compiler import DeclarationCompiler
from .config import StackEnvironment
from .synthesis import SynthesizedStack, synthesize

__version__ = "0.1.0"

__all__ = [
    "DeclarationCompiler",
    "StackEnvironment",
    "SynthesizedStack",
    "synthesize",
    "__version__",
]
