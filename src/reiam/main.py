"""
Command-line interface for compiling IAM group declarations to templates.

Reads a YAML/JSON declaration file, builds the stack and writes the
synthesized template as YAML or JSON.
"""

import argparse
import logging
import sys
from pathlib import Path

from jsii.errors import JSIIError
from pydantic import ValidationError as PydanticValidationError

from .compiler import DeclarationCompiler
from .exceptions import (
    ArnFormatError,
    DeclarationLoadError,
    DuplicatePolicyNameError,
    ReiamError,
    ValidationError,
)
from .io.declaration_loader import DeclarationLoader
from .io.template_writer import TemplateWriter
from .synthesis import synthesize

EXIT_OK = 0
EXIT_VALIDATION = 1
EXIT_LOAD = 2
EXIT_ARN = 3
EXIT_CONSTRUCT = 4
EXIT_STRICT = 5
EXIT_FILESYSTEM = 8
EXIT_UNEXPECTED = 9

OUTPUT_FORMATS = ("yaml", "json")


def configure_logging(debug: bool = False, verbose: bool = False) -> None:
    """Configure application logging.

    Args:
        debug: Enable debug-level logging if True.
        verbose: Enable info-level logging from every module if True.
    """
    if debug:
        level = logging.DEBUG
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    elif verbose:
        level = logging.INFO
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    else:
        level = logging.WARNING
        format_str = "%(levelname)s: %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        stream=sys.stderr,
        force=True,  # Override existing configuration
    )

    if not verbose and not debug:
        # Quiet mode still reports what the CLI itself does
        logging.getLogger(__name__).setLevel(logging.INFO)


def resolve_output_format(output_file: Path | None, requested: str | None) -> str:
    """Picks the output format from the flag, then the file extension.

    Raises:
        ValidationError: If the output extension does not match any format.
    """
    if requested:
        return requested
    if output_file is None:
        return "yaml"

    suffix = output_file.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        return "yaml"
    if suffix == ".json":
        return "json"
    raise ValidationError(
        f"Output file must have .yaml, .yml or .json extension, got: {suffix}",
        field_name="output_file",
    )


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="reiam",
        description="Compile IAM group declarations into provisioning templates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Print the template for a declaration file
  reiam samples/groups.yaml

  # Write JSON and fail on warnings
  reiam samples/groups.yaml -o out/template.json --strict

Environment:
  REIAM_DEFAULT_ACCOUNT and REIAM_DEFAULT_REGION provide the target
  environment when the declaration does not.
        """,
    )

    parser.add_argument(
        "input_file", type=Path, help="YAML or JSON declaration file to compile"
    )
    parser.add_argument(
        "-o",
        "--output",
        dest="output_file",
        type=Path,
        help="Where to save the template (default: standard output)",
    )
    parser.add_argument(
        "-f",
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        help="Template format (default: from the output extension, else yaml)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with an error when warnings were reported",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging for detailed output"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging from every module",
    )

    return parser.parse_args(argv)


def run(
    input_file: Path,
    output_file: Path | None = None,
    output_format: str | None = None,
    strict: bool = False,
    debug: bool = False,
) -> int:
    """Compile a declaration file and write the template.

    Returns:
        Process exit code (0 for success, >0 for errors).
    """
    logger = logging.getLogger(__name__)

    try:
        fmt = resolve_output_format(output_file, output_format)
        declaration = DeclarationLoader().load(input_file)

        stack = DeclarationCompiler().compile(declaration)
        result = synthesize(stack)

        writer = TemplateWriter()
        content = writer.render(result.template, fmt)
        if output_file is None:
            sys.stdout.write(content)
        else:
            writer.save_to_file(content, output_file)
            logger.info(
                "Template for stack '%s' saved to: %s", result.stack_name, output_file
            )

        for warning in result.warnings:
            print(f"[WARNING] {warning.path}: {warning.message}", file=sys.stderr)

        if strict and result.warnings:
            logger.error(
                "Found %d warning(s) and --strict is set", len(result.warnings)
            )
            return EXIT_STRICT

        return EXIT_OK

    except PydanticValidationError as e:
        logger.error(f"Invalid declaration: {e}")
        return EXIT_VALIDATION
    except ValidationError as e:
        logger.error(f"Validation failed: {e}")
        logger.info(f"Suggestion: {e.get_recovery_hint()}")
        return EXIT_VALIDATION
    except DeclarationLoadError as e:
        logger.error(f"Cannot load declaration: {e}")
        return EXIT_LOAD
    except ArnFormatError as e:
        logger.error(f"Invalid ARN: {e}")
        logger.info(f"Suggestion: {e.get_recovery_hint()}")
        return EXIT_ARN
    except (JSIIError, RuntimeError, DuplicatePolicyNameError) as e:
        logger.error(f"Invalid construct tree: {e}")
        return EXIT_CONSTRUCT
    except ReiamError as e:
        logger.error(f"Compilation error: {e}")
        return EXIT_CONSTRUCT
    except (PermissionError, FileNotFoundError, OSError) as e:
        logger.error(f"File system error: {e}")
        return EXIT_FILESYSTEM
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if debug:
            logger.exception("Full traceback:")
        return EXIT_UNEXPECTED


def main(argv: list[str] | None = None) -> None:
    args = parse_arguments(argv)
    configure_logging(args.debug, args.verbose)
    sys.exit(
        run(
            args.input_file,
            args.output_file,
            args.output_format,
            args.strict,
            args.debug,
        )
    )


if __name__ == "__main__":
    main()
