"""Check documentation: reading the checks YAML file and rendering Markdown."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import yaml

_HEADER = (
    "\n"
    "<!-- Do not edit this file manually! Edit checks.yaml instead. --> \n"
    "# Check Documentation\n"
    "\n"
    "This page contains information on how each check works and provide remediation\n"
    'steps to fix the failure. All of these checks are basically "best-guesses"\n'
    "currently, and operate on a set of heuristics.\n"
    "\n"
    "They are all subject to change, and have room for improvement!\n"
    "If you have ideas for things to add, or new ways to detect things,\n"
    "please contribute!\n"
)

_DEFAULT_OUTPUT = "checks.md"


@dataclass
class CheckDoc:
    """Documentation of a single check; ``risk`` is never read from YAML."""

    risk: str = ""
    short: str = ""
    description: str = ""
    tags: str = ""
    remediation: list[str] = field(default_factory=list)


@dataclass
class Doc:
    """All check documentation, keyed by check name."""

    checks: dict[str, CheckDoc] = field(default_factory=dict)


def _as_string(name: str, value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return str(value)
    raise ValueError(f"cannot decode {name!r} as a string: {value!r}")


def _as_mapping(name: str, value: Any) -> dict[Any, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"cannot decode {name!r} as a mapping: {value!r}")
    return value


def _read_check(name: str, value: Any) -> CheckDoc:
    entry = _as_mapping(name, value)
    remediation = entry.get("remediation")
    if remediation is None:
        remediation = []
    if not isinstance(remediation, list):
        raise ValueError(f"cannot decode remediation of {name!r} as a list: {remediation!r}")
    return CheckDoc(
        short=_as_string("short", entry.get("short")),
        description=_as_string("description", entry.get("description")),
        tags=_as_string("tags", entry.get("tags")),
        remediation=[_as_string("remediation", step) for step in remediation],
    )


def read_docs(data: bytes | str) -> Doc:
    """Parse checks YAML text; raise ValueError when it is malformed."""
    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise ValueError(f"yaml.Unmarshal: {exc}") from exc
    top = _as_mapping("document", document)
    checks = _as_mapping("checks", top.get("checks"))
    return Doc(checks={str(name): _read_check(str(name), value) for name, value in checks.items()})


def render_markdown(doc: Doc) -> str:
    """Render the documentation page, checks sorted by name."""
    parts = [_HEADER]
    for name in sorted(doc.checks):
        check = doc.checks[name]
        parts.append(f"## {name} \n\n")
        parts.append(f"{check.description} \n\n")
        parts.append("**Remediation steps**\n")
        parts.extend(f"- {step}\n" for step in check.remediation)
        parts.append("\n")
    return "".join(parts)


def generate_main(argv: Sequence[str] | None = None) -> int:
    """Write the Markdown page: ``generate CHECKS_YAML [OUTPUT]``."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not 1 <= len(args) <= 2:
        raise SystemExit("usage: generate CHECKS_YAML [OUTPUT]")
    source = args[0]
    output = args[1] if len(args) == 2 else _DEFAULT_OUTPUT
    try:
        with open(source, encoding="utf-8") as handle:
            doc = read_docs(handle.read())
        with open(output, "w", encoding="utf-8", newline="") as out:
            out.write(render_markdown(doc))
    except (OSError, ValueError) as exc:
        raise SystemExit(str(exc)) from exc
    return 0


if __name__ == "__main__":
    sys.exit(generate_main())