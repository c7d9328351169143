"""Parser for .concept specification documents."""

import re
from pathlib import Path

from common.logger import get_logger

from .constants import QUERY_MARKER, SECTION_HEADERS, SPEC_EXTENSION
from .models import ConceptSpecification, DirectoryScan, SkippedItem, SpecMethod
from .text_utils import split_name_type, split_top_level

logger = get_logger(__name__)

_CONCEPT_HEADER = re.compile(r"^concept\s+(\w+)\s*(?:\[[^\]]*\])?\s*$")
_METHOD_NAME = re.compile(r"^(\w+)")
_COMMENT_PREFIXES = ("#", "//")

# (line number, stripped text) pairs collected for one section
SectionLines = list[tuple[int, str]]


class ConceptSpecParser:
    """Turns .concept text into ConceptSpecification records.

    The format is a handful of section headers (concept, purpose, state,
    actions, queries, operational principle) followed by free text. The
    parser is a line state machine that never raises on malformed input:
    whatever it can recognize ends up in the record.
    """

    def parse_one(self, text: str, path: Path) -> ConceptSpecification:
        """Parse one specification document.

        Args:
            text: Document contents
            path: Where the document came from (recorded, never read)

        Returns:
            Best-effort ConceptSpecification
        """
        spec = ConceptSpecification(
            name="",
            purpose="",
            state={},
            actions=[],
            queries=[],
            operational_principle="",
            source_location=path,
        )

        section: str | None = None
        collected: SectionLines = []

        for line_num, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip()
            if not line or line.startswith(_COMMENT_PREFIXES):
                continue

            concept_match = _CONCEPT_HEADER.match(line)
            header = line.rstrip(":").strip().lower()

            if concept_match or header in SECTION_HEADERS:
                self._flush(spec, section, collected)
                collected = []
                if concept_match:
                    spec.name = concept_match.group(1)
                    section = None
                else:
                    section = header
                continue

            if section:
                collected.append((line_num, line))

        self._flush(spec, section, collected)
        return spec

    def parse_file(self, path: Path) -> ConceptSpecification:
        """Read and parse a .concept file."""
        return self.parse_one(path.read_text(encoding="utf-8"), path)

    def scan_directory(self, directory: Path) -> DirectoryScan[ConceptSpecification]:
        """Parse every .concept file in a directory.

        Unreadable files are logged and recorded as skipped; the scan
        itself never aborts.
        """
        scan: DirectoryScan[ConceptSpecification] = DirectoryScan()
        for spec_file in sorted(directory.glob(f"*{SPEC_EXTENSION}")):
            try:
                scan.items.append(self.parse_file(spec_file))
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Skipping specification {spec_file}: {e}")
                scan.skipped.append(SkippedItem(path=str(spec_file), stage="parse", reason=str(e)))
        logger.debug(f"Parsed {len(scan.items)} specification(s) from {directory}")
        return scan

    def parse_directory(self, directory: Path) -> list[ConceptSpecification]:
        """Parse every .concept file in a directory, skipping unreadable ones."""
        return self.scan_directory(directory).items

    def validate_spec(self, spec: ConceptSpecification) -> list[str]:
        """List the ways a parsed specification is incomplete.

        Args:
            spec: Parsed specification

        Returns:
            Human-readable defects, empty when the spec is complete
        """
        defects = []

        if not spec.name:
            defects.append("Concept name is missing")
        if not spec.purpose:
            defects.append("Purpose is missing")
        if not spec.state:
            defects.append("State specification is missing")
        if not spec.actions:
            defects.append("No actions defined")

        for query in spec.queries:
            if not query.name.startswith(QUERY_MARKER):
                defects.append(f"Query '{query.name}' should start with '{QUERY_MARKER}'")

        return defects

    def _flush(self, spec: ConceptSpecification, section: str | None, lines: SectionLines) -> None:
        if not section or not lines:
            return

        if section == "purpose":
            spec.purpose = _join_text(lines)
        elif section == "operational principle":
            spec.operational_principle = _join_text(lines)
        elif section == "state":
            spec.state = self._parse_state(lines, default_entity=spec.name or "state")
        elif section == "actions":
            spec.actions = self._parse_methods(lines)
        elif section == "queries":
            spec.queries = self._parse_methods(lines)

    def _parse_state(self, lines: SectionLines, default_entity: str) -> dict[str, dict[str, str]]:
        state: dict[str, dict[str, str]] = {}
        entity: str | None = None

        for _, line in lines:
            if ":" not in line:
                entity = line
                state.setdefault(entity, {})
                continue

            field_name, type_text = split_name_type(line)
            if entity is None:
                entity = default_entity
                state.setdefault(entity, {})
            state[entity][field_name] = type_text

        return state

    def _parse_methods(self, lines: SectionLines) -> list[SpecMethod]:
        methods: list[SpecMethod] = []
        current: SpecMethod | None = None
        description: list[str] = []

        for line_num, line in lines:
            if line.startswith("-"):
                if current:
                    description.append(line[1:].strip())
            elif _is_method_signature(line):
                if current:
                    current.description = " ".join(description).strip()
                    methods.append(current)
                current = _parse_signature(line, line_num)
                description = []

        if current:
            current.description = " ".join(description).strip()
            methods.append(current)

        return methods


def _join_text(lines: SectionLines) -> str:
    return " ".join(text for _, text in lines if text)


def _closing_paren(line: str) -> int:
    """Index of the parenthesis closing the first '(' or -1."""
    depth = 0
    for index, char in enumerate(line):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return index
    return -1


def _is_method_signature(line: str) -> bool:
    """A signature looks like name(params) -> outcome or name(params): outcome."""
    if "(" not in line or ")" not in line:
        return False
    close = _closing_paren(line)
    if close < 0:
        return False
    tail = line[close + 1 :]
    return "->" in tail or ":" in tail


def _parse_signature(signature: str, line_number: int) -> SpecMethod:
    name_match = _METHOD_NAME.match(signature)
    method = SpecMethod(
        name=name_match.group(1) if name_match else "",
        signature_text=signature,
        line_number=line_number,
    )

    open_index = signature.index("(")
    close = _closing_paren(signature)

    for pair in split_top_level(signature[open_index + 1 : close]):
        param_name, type_text = split_name_type(pair)
        if param_name and type_text:
            method.inputs[param_name] = type_text

    tail = signature[close + 1 :].strip()
    if tail.startswith("->"):
        tail = tail[2:]
    elif tail.startswith(":"):
        tail = tail[1:]

    for index, outcome in enumerate(split_top_level(tail, separators="|")):
        label = re.search(r"\{([^}]*)\}", outcome)
        key = label.group(1).strip() if label and label.group(1).strip() else f"output{index}"
        method.outputs[key] = outcome

    return method
