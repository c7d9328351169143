"""Structural extraction of concept implementations from TypeScript source.

This is deliberately not a parser. Line patterns and a small character
scanner recover the facts the rules need (exposed class, imports, methods
with their signatures and bodies) and tolerate incomplete or invalid
snippets. Known blind spots: arrow-function class properties, signatures
longer than MAX_SIGNATURE_LINES lines, and object-literal return types
written without a Promise<...> wrapper when followed directly by the body.
"""

import re
from dataclasses import dataclass
from pathlib import Path

from common.logger import get_logger

from .constants import (
    DEFAULT_PERSISTENCE_HANDLE,
    ERROR_RESULT_MARKER,
    IMPL_EXCLUDED_NAMES,
    IMPL_EXCLUDED_SUFFIXES,
    IMPL_EXTENSION,
    QUERY_MARKER,
    READ_VERB_PREFIXES,
)
from .models import (
    ComplexityMetrics,
    DirectoryScan,
    ImplementationModule,
    ImplMethod,
    Parameter,
    SkippedItem,
)
from .text_utils import split_name_type, split_top_level, to_pascal_case

logger = get_logger(__name__)

MAX_SIGNATURE_LINES = 12

_CLASS_DECL = re.compile(r"^\s*export\s+(?:default\s+)?(?:abstract\s+)?class\s+(\w+)", re.MULTILINE)

_IMPORT_PATTERNS = [
    re.compile(r"^\s*import\s+(?:type\s+)?[^'\";]*?\s+from\s+['\"]([^'\"]+)['\"]", re.MULTILINE),
    re.compile(r"^\s*import\s+['\"]([^'\"]+)['\"]", re.MULTILINE),
    re.compile(
        r"^\s*export\s+(?:type\s+)?(?:\*|\{[^}]*\})(?:\s+as\s+\w+)?\s+from\s+['\"]([^'\"]+)['\"]",
        re.MULTILINE,
    ),
    re.compile(r"\brequire\(\s*['\"]([^'\"]+)['\"]\s*\)"),
]

_METHOD_START = re.compile(
    r"^\s*((?:(?:public|protected|private|static|override|readonly)\s+)*)"
    r"(async\s+)?(\w+)\s*(?:<[^>()]*>)?\s*\("
)

_NOT_METHODS = {
    "if",
    "for",
    "while",
    "switch",
    "catch",
    "return",
    "function",
    "await",
    "new",
    "typeof",
    "super",
    "else",
    "do",
    "try",
    "throw",
    "yield",
    "delete",
    "void",
    "constructor",
}

_AGGREGATE_PARAM = re.compile(r"^\s*\w+\??\s*:\s*\{(.*)\}\s*$", re.DOTALL)
_PROMISE = re.compile(r"^Promise\s*<(.*)>$", re.DOTALL)
_SEQUENCE_TYPE = re.compile(r"\b(?:Readonly)?Array\s*<")
_FAILURE_HANDLING = re.compile(r"\b(?:try|catch|throw)\b")
_BRANCH = re.compile(r"\b(?:if|else|for|while|switch|case|catch)\b|&&|\|\|")
_EXTERNAL_CALL = re.compile(r"(?:await\s+)?\bthis\.[\w.]+\s*\(|\bawait\s+[\w.]+\s*\(")


@dataclass
class _ScannedMethod:
    params_text: str
    return_text: str
    end_line: int


class SourceExtractor:
    """Extracts ImplementationModule records from concept source files."""

    def __init__(self, persistence_handle: str = DEFAULT_PERSISTENCE_HANDLE):
        """Initialize the extractor.

        Args:
            persistence_handle: Field name of the database client the concepts use
        """
        self.persistence_handle = persistence_handle
        self._handle_pattern = re.compile(rf"\b{re.escape(persistence_handle)}\b")
        self._handle_field = re.compile(
            rf"\bthis\.{re.escape(persistence_handle)}\b(?!\.)|\bprivate\s+{re.escape(persistence_handle)}\b"
        )

    def analyze_one(self, path: Path, sibling_names: set[str] | None = None) -> ImplementationModule:
        """Read and analyze one implementation file.

        Args:
            path: TypeScript source file
            sibling_names: Lowercased names of the other concepts in the same
                directory, used to recognize cross-concept imports

        Returns:
            Extracted ImplementationModule

        Raises:
            OSError: If the file cannot be read
        """
        return self.analyze_source(path.read_text(encoding="utf-8"), path, sibling_names)

    def analyze_source(
        self, text: str, path: Path, sibling_names: set[str] | None = None
    ) -> ImplementationModule:
        """Analyze implementation source text."""
        name = to_pascal_case(path.name.split(".")[0])
        imports = self._extract_imports(text)

        class_match = _CLASS_DECL.search(text)
        return ImplementationModule(
            name=name,
            exposed_type_name=class_match.group(1) if class_match else "",
            methods=self._extract_methods(text),
            imports=imports,
            dependencies=_concept_dependencies(imports, name, sibling_names),
            source_location=path,
        )

    def scan_directory(self, directory: Path) -> DirectoryScan[ImplementationModule]:
        """Analyze every implementation file in a directory.

        Files that cannot be read are logged and recorded as skipped.
        """
        files = [
            f
            for f in sorted(directory.glob(f"*{IMPL_EXTENSION}"))
            if f.name not in IMPL_EXCLUDED_NAMES and not f.name.endswith(IMPL_EXCLUDED_SUFFIXES)
        ]
        siblings = {to_pascal_case(f.name.split(".")[0]).lower() for f in files}

        scan: DirectoryScan[ImplementationModule] = DirectoryScan()
        for impl_file in files:
            try:
                scan.items.append(self.analyze_one(impl_file, siblings))
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Skipping implementation {impl_file}: {e}")
                scan.skipped.append(SkippedItem(path=str(impl_file), stage="extract", reason=str(e)))
        logger.debug(f"Analyzed {len(scan.items)} implementation(s) from {directory}")
        return scan

    def analyze_directory(self, directory: Path) -> list[ImplementationModule]:
        """Analyze every implementation file in a directory, skipping unreadable ones."""
        return self.scan_directory(directory).items

    def validate_implementation(self, module: ImplementationModule) -> list[str]:
        """List concept-design violations visible in the implementation alone.

        Args:
            module: Extracted implementation

        Returns:
            Human-readable defects, empty when none were found
        """
        defects = []

        if module.dependencies:
            defects.append(
                f"Concept has dependencies on other concepts: {', '.join(module.dependencies)}"
            )

        unmarked = [m.name for m in module.methods if looks_like_query(m)]
        if unmarked:
            defects.append(f"Queries should start with '{QUERY_MARKER}': {', '.join(unmarked)}")

        actions = [m for m in module.actions if not looks_like_query(m)]
        unhandled = [
            m.name
            for m in actions
            if not has_error_result(m) and not _FAILURE_HANDLING.search(m.body_text)
        ]
        if unhandled:
            defects.append(f"Actions may be missing error handling: {', '.join(unhandled)}")

        blocking = [m.name for m in actions if not m.is_async and self.touches_persistence(m)]
        if blocking:
            defects.append(
                f"Actions using {self.persistence_handle} should be async: {', '.join(blocking)}"
            )

        return defects

    def touches_persistence(self, method: ImplMethod) -> bool:
        """Check whether a method body references the persistence handle."""
        return bool(self._handle_pattern.search(method.body_text))

    def complexity_of(self, method: ImplMethod) -> ComplexityMetrics:
        """Rough complexity figures for a method body.

        branch_count is the number of decision points plus one for the
        straight-line path; external_call_count counts awaited calls and
        calls through `this`, each call site once.
        """
        return ComplexityMetrics(
            line_count=sum(1 for line in method.body_text.splitlines() if line.strip()),
            branch_count=len(_BRANCH.findall(method.body_text)) + 1,
            external_call_count=len(_EXTERNAL_CALL.findall(method.body_text)),
        )

    def _extract_imports(self, text: str) -> list[str]:
        found: list[tuple[int, str]] = []
        for pattern in _IMPORT_PATTERNS:
            found.extend((m.start(), m.group(1)) for m in pattern.finditer(text))

        imports: list[str] = []
        for _, source in sorted(found):
            if source not in imports:
                imports.append(source)
        return imports

    def _extract_methods(self, text: str) -> list[ImplMethod]:
        methods: list[ImplMethod] = []
        lines = text.split("\n")
        index = 0

        while index < len(lines):
            line = lines[index]
            match = _METHOD_START.match(line)
            if not match or match.group(3) in _NOT_METHODS or self._handle_field.search(line):
                index += 1
                continue

            scanned = _scan_method(lines, index, match.end() - 1)
            if scanned is None:
                index += 1
                continue

            modifiers, is_async, name = match.group(1), bool(match.group(2)), match.group(3)
            if "private" not in modifiers.split():
                methods.append(
                    ImplMethod(
                        name=name,
                        is_async=is_async,
                        parameters=_parse_parameters(scanned.params_text),
                        return_type_text=_normalize_return_type(scanned.return_text),
                        body_text="\n".join(lines[index : scanned.end_line + 1]),
                        line_number=index + 1,
                    )
                )
            # Resume after the body so calls inside it are never taken for methods
            index = scanned.end_line + 1

        return methods


def looks_like_query(method: ImplMethod) -> bool:
    """An unmarked method that reads like a query: read verb plus sequence result."""
    if method.is_query:
        return False
    name = method.name
    read_verb = any(
        name == verb or (name.startswith(verb) and not name[len(verb)].islower())
        for verb in READ_VERB_PREFIXES
    )
    return read_verb and returns_sequence(method.return_type_text)


def returns_sequence(type_text: str) -> bool:
    """Check whether a return type visibly denotes an array."""
    return "[]" in type_text or bool(_SEQUENCE_TYPE.search(type_text))


def has_error_result(method: ImplMethod) -> bool:
    """Check whether a method can produce an error-shaped result."""
    return ERROR_RESULT_MARKER in method.return_type_text or ERROR_RESULT_MARKER in method.body_text


def _concept_dependencies(
    imports: list[str], module_name: str, sibling_names: set[str] | None
) -> list[str]:
    own = module_name.lower()
    dependencies = []

    for source in imports:
        if not source.startswith("."):
            continue
        segments = [s.split(".")[0] for s in source.split("/") if s not in ("", ".", "..")]
        if not segments:
            continue

        if sibling_names is None:
            # No directory context: any relative path reaching into a folder
            if len(segments) >= 2:
                dependencies.append(source)
            continue

        targets = {to_pascal_case(s).lower() for s in segments}
        if (targets & sibling_names) - {own}:
            dependencies.append(source)

    return dependencies


def _normalize_return_type(text: str) -> str:
    text = " ".join(text.split())
    if text.startswith(":"):
        text = text[1:].strip()
    promise = _PROMISE.match(text)
    if promise:
        text = promise.group(1).strip()
    return text or "void"


def _parse_parameters(params_text: str) -> list[Parameter]:
    pieces = split_top_level(params_text, ",")
    if len(pieces) == 1:
        aggregate = _AGGREGATE_PARAM.match(pieces[0])
        if aggregate:
            pieces = split_top_level(aggregate.group(1), ",;\n")

    parameters = []
    for piece in pieces:
        declaration, has_default = _strip_default(piece)
        name, type_text = split_name_type(declaration)
        name = name.lstrip(".")
        if not name:
            continue
        parameters.append(
            Parameter(
                name=name.rstrip("?"),
                type_text=" ".join(type_text.split()) or "any",
                optional=name.endswith("?") or "undefined" in type_text or has_default,
            )
        )
    return parameters


def _strip_default(declaration: str) -> tuple[str, bool]:
    """Drop a `= default` initializer (ignoring `=>` in function types)."""
    match = re.search(r"=(?!>)", declaration)
    if not match:
        return declaration, False
    return declaration[: match.start()].strip(), True


def _scan_method(lines: list[str], start: int, open_col: int) -> _ScannedMethod | None:
    """Scan a method from its opening parenthesis to the end of its body.

    Returns None when the candidate turns out not to be a method definition
    (a call statement, an abstract declaration, or a signature that never
    reaches a body within MAX_SIGNATURE_LINES lines).
    """
    params: list[str] = []
    tail: list[str] = []
    phase = "params"
    paren = angle = type_brace = body = 0
    quote: str | None = None
    block_comment = False

    for line_index in range(start, len(lines)):
        if phase != "body" and line_index - start > MAX_SIGNATURE_LINES:
            return None

        line = lines[line_index]
        col = open_col if line_index == start else 0
        prev = ""

        while col < len(line):
            char = line[col]
            nxt = line[col + 1] if col + 1 < len(line) else ""
            buffer = params if phase == "params" else tail if phase == "tail" else None

            if block_comment:
                if char == "*" and nxt == "/":
                    block_comment = False
                    col += 1
                col += 1
                continue

            if quote:
                if buffer is not None:
                    buffer.append(char)
                if char == "\\":
                    if buffer is not None:
                        buffer.append(nxt)
                    col += 2
                    continue
                if char == quote:
                    quote = None
                col += 1
                continue

            if char == "/" and nxt == "/":
                break
            if char == "/" and nxt == "*":
                block_comment = True
                col += 2
                continue
            if char in "'\"`":
                quote = char
                if buffer is not None:
                    buffer.append(char)
                col += 1
                continue

            if phase == "params":
                if char == "(":
                    paren += 1
                    if paren > 1:
                        params.append(char)
                elif char == ")":
                    paren -= 1
                    if paren == 0:
                        phase = "tail"
                    else:
                        params.append(char)
                else:
                    params.append(char)

            elif phase == "tail":
                so_far = "".join(tail).strip()
                if not so_far and not char.isspace() and char not in ":{":
                    return None
                if char == "<":
                    angle += 1
                elif char == ">" and prev != "=":
                    angle = max(0, angle - 1)
                elif angle == 0 and char == ";" and not type_brace:
                    return None
                elif angle == 0 and char == "{":
                    if type_brace:
                        type_brace += 1
                    elif so_far[-1:] in (":", "|", "&"):
                        type_brace = 1
                    else:
                        phase = "body"
                        body = 1
                        prev = char
                        col += 1
                        continue
                elif angle == 0 and char == "}" and type_brace:
                    type_brace -= 1
                tail.append(char)

            else:
                if char == "{":
                    body += 1
                elif char == "}":
                    body -= 1
                    if body == 0:
                        return _ScannedMethod(
                            params_text="".join(params),
                            return_text="".join(tail),
                            end_line=line_index,
                        )

            prev = char
            col += 1

        if phase == "params":
            params.append("\n")
        elif phase == "tail":
            tail.append(" ")

    if phase == "body":
        return _ScannedMethod(
            params_text="".join(params), return_text="".join(tail), end_line=len(lines) - 1
        )
    return None
