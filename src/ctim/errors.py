"""Typed errors for CTIM.

Single source of truth for exit codes lives here.

Policy:
- Errors are small and boring.
- The codec raises them only from its strict helpers; ``encode``/``decode``
  turn every one of them into ``None``.
- The CLI maps errors to stable exit codes (see EXIT_* constants).
- docs/exit_codes.md is generated from this module (scripts/gen_exit_codes_md.py).
"""

from __future__ import annotations

from dataclasses import dataclass

# -------------------------
# Exit codes (single source)
# -------------------------

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_GENERIC = 10
EXIT_OUT_OF_RANGE = 11
EXIT_MALFORMED = 12
EXIT_UNSUPPORTED_INPUT = 13
EXIT_TAG_MISMATCH = 14
EXIT_OVERFLOW = 15


@dataclass(frozen=True, slots=True)
class ExitCodeInfo:
    code: int
    name: str
    description: str


EXIT_CODES: tuple[ExitCodeInfo, ...] = (
    ExitCodeInfo(EXIT_OK, "OK", "Success"),
    ExitCodeInfo(EXIT_USAGE, "USAGE", "Usage/config error (invalid args, invalid network registry, etc.)"),
    ExitCodeInfo(EXIT_GENERIC, "GENERIC", "Generic failure (unexpected error)"),
    ExitCodeInfo(EXIT_OUT_OF_RANGE, "OUT_OF_RANGE", "A field exceeds its bit width on encode"),
    ExitCodeInfo(EXIT_MALFORMED, "MALFORMED", "CTIM text is not 16 uppercase hex characters"),
    ExitCodeInfo(EXIT_UNSUPPORTED_INPUT, "UNSUPPORTED_INPUT", "Input is neither text nor an integer"),
    ExitCodeInfo(EXIT_TAG_MISMATCH, "TAG_MISMATCH", "Top nibble is not the 0xC format tag"),
    ExitCodeInfo(EXIT_OVERFLOW, "OVERFLOW", "Integer does not fit in an unsigned 64-bit value"),
)

_EXIT_CODE_BY_CODE: dict[int, ExitCodeInfo] = {e.code: e for e in EXIT_CODES}


def exit_code_info(code: int) -> ExitCodeInfo | None:
    return _EXIT_CODE_BY_CODE.get(int(code))


def render_exit_codes_markdown() -> str:
    """Render docs/exit_codes.md content."""
    lines: list[str] = []
    lines.append("# Exit codes\n")
    lines.append("> GENERATED FILE, do not edit manually.\n")
    lines.append("> Source of truth: `src/ctim/errors.py` (EXIT_CODES).\n")
    lines.append("> Regenerate: `python scripts/gen_exit_codes_md.py`.\n\n")
    lines.append("These are the CLI exit codes you can rely on.\n\n")
    lines.append("| Code | Name | Meaning |\n")
    lines.append("|---:|---|---|\n")
    for e in sorted(EXIT_CODES, key=lambda x: x.code):
        lines.append(f"| {e.code} | `{e.name}` | {e.description} |\n")
    lines.append("\n## Notes\n")
    lines.append("- Codec errors extend `CtimError` and carry an `exit_code`.\n")
    lines.append("- `--debug` re-raises errors to show full stack traces.\n")
    lines.append(
        "- `--json` prints a JSON object to stdout (ok) or stderr (error), and returns the same exit code.\n"
    )
    return "".join(lines)


# ---------------
# Typed exceptions
# ---------------


class CtimError(Exception):
    """Base error for CTIM."""

    exit_code: int = EXIT_GENERIC
    name: str = "Error"


class UsageError(CtimError):
    exit_code = EXIT_USAGE
    name = "Usage"


class OutOfRange(CtimError):
    exit_code = EXIT_OUT_OF_RANGE
    name = "OutOfRange"


class MalformedCtim(CtimError):
    exit_code = EXIT_MALFORMED
    name = "Malformed"


class MalformedLength(MalformedCtim):
    name = "MalformedLength"


class MalformedCharacters(MalformedCtim):
    name = "MalformedCharacters"


class UnsupportedInputKind(CtimError):
    exit_code = EXIT_UNSUPPORTED_INPUT
    name = "UnsupportedInputKind"


class TagMismatch(CtimError):
    exit_code = EXIT_TAG_MISMATCH
    name = "TagMismatch"


class Overflow(CtimError):
    exit_code = EXIT_OVERFLOW
    name = "Overflow"
