"""Declaration reader for Python modules, built on libcst.

A class opts in with a derive comment placed directly above it (or among its
decorators); ordering annotations use the same comment form::

    #[derive(EnumRotate)]
    #[iteration_order(Blue, Red, Green)]
    class Color(ColorRotate, Enum):
        Red = auto()
        Green = auto()
        Blue = auto()
"""

from __future__ import annotations

import ast
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import libcst as cst
from libcst import metadata

from ..config import GeneratorConfig
from ..declaration import Attribute, TypeShape, TypeSource, VariantSource
from ..errors import AnnotationParseError, SourceError, SourceSpan
from ..ordering import parse_attribute

__all__ = ["DERIVE", "read_python_source", "read_python_types"]

LOGGER = logging.getLogger(__name__)

DERIVE = "derive"

_LITERAL_VALUES = (
    cst.Integer,
    cst.Float,
    cst.Imaginary,
    cst.SimpleString,
    cst.ConcatenatedString,
    cst.UnaryOperation,
)
_CONSTANT_NAMES = frozenset({"True", "False", "None"})


class _DeclarationCollector(cst.CSTVisitor):
    """Collect classes carrying the derive marker along with their members."""

    METADATA_DEPENDENCIES = (metadata.PositionProvider,)

    def __init__(self, path_key: str, module: cst.Module, config: GeneratorConfig) -> None:
        self._path_key = path_key
        self._module = module
        self._config = config
        self.types: List[TypeSource] = []

    def visit_ClassDef(self, node: cst.ClassDef) -> None:
        attributes = self._annotations(node)
        if not any(self._is_derive(attribute) for attribute in attributes):
            return
        shape = TypeShape.ENUM if self._is_enum(node) else TypeShape.CLASS
        variants = self._variants(node) if shape is TypeShape.ENUM else ()
        self.types.append(
            TypeSource(
                name=node.name.value,
                shape=shape,
                variants=variants,
                attributes=tuple(item for item in attributes if item.name != DERIVE),
                span=self._span(node.name),
            )
        )

    def _annotations(self, node: cst.ClassDef) -> List[Attribute]:
        class_position = self._position(node)
        if class_position is None:
            return []
        class_line = class_position.start.line
        indent_column = class_position.start.column

        blocks: List[Tuple[Sequence[cst.EmptyLine], int]] = []
        first_line = class_line
        for decorator in node.decorators:
            decorator_position = self._position(decorator)
            if decorator_position is None:
                continue
            first_line = min(first_line, decorator_position.start.line)
            blocks.append((decorator.leading_lines, decorator_position.start.line))
        blocks.append((node.lines_after_decorators, class_line))
        blocks.insert(0, (node.leading_lines, first_line))
        # comments above the first statement of a module live in the module header
        header = self._module.header
        if self._module.body and self._module.body[0] is node:
            blocks.insert(0, (header, len(header) + 1))

        attributes: List[Attribute] = []
        for lines, anchor in blocks:
            for offset, line in enumerate(lines):
                if line.comment is None:
                    continue
                column = (indent_column if line.indent else 0) + len(line.whitespace.value)
                span = SourceSpan(
                    path=self._path_key,
                    line=anchor - len(lines) + offset,
                    column=column,
                )
                attribute = Attribute(text=line.comment.value, span=span)
                if attribute.name is not None:
                    attributes.append(attribute)
        return attributes

    def _is_derive(self, attribute: Attribute) -> bool:
        if attribute.name != DERIVE:
            return False
        try:
            _, names = parse_attribute(attribute)
        except AnnotationParseError as error:
            LOGGER.warning("Ignoring malformed derive comment at %s: %s", attribute.span, error.message)
            return False
        return self._config.derive_marker in names

    def _is_enum(self, node: cst.ClassDef) -> bool:
        enum_bases = set(self._config.enum_bases)
        for base in node.bases:
            value = base.value
            if isinstance(value, cst.Name) and value.value in enum_bases:
                return True
            if isinstance(value, cst.Attribute) and value.attr.value in enum_bases:
                return True
        return False

    def _variants(self, node: cst.ClassDef) -> Tuple[VariantSource, ...]:
        body = node.body
        if isinstance(body, cst.IndentedBlock):
            small_statements: List[cst.BaseSmallStatement] = []
            for statement in body.body:
                if isinstance(statement, cst.SimpleStatementLine):
                    small_statements.extend(statement.body)
        else:
            small_statements = list(body.body)

        variants: List[VariantSource] = []
        literal_owners: Dict[Any, str] = {}
        for small in small_statements:
            targets, value = self._assignment(small)
            if not targets or value is None:
                continue
            head = targets[0]
            if head.value.startswith("_"):
                continue
            fields: Tuple[str, ...] = ()
            if isinstance(value, cst.Tuple) and value.elements:
                fields = tuple(self._module.code_for_node(element.value) for element in value.elements)

            alias_of: Optional[str] = None
            if isinstance(value, _LITERAL_VALUES) or (
                isinstance(value, cst.Name) and value.value in _CONSTANT_NAMES
            ):
                literal = self._literal_key(value)
                alias_of = literal_owners.get(literal)
                if alias_of is None:
                    literal_owners[literal] = head.value
            variants.append(
                VariantSource(name=head.value, fields=fields, span=self._span(head), alias_of=alias_of)
            )
            for extra in targets[1:]:
                variants.append(VariantSource(name=extra.value, span=self._span(extra), alias_of=head.value))
        return tuple(variants)

    def _literal_key(self, value: cst.BaseExpression) -> Any:
        """Return the evaluated literal so ``1``, ``1.0`` and ``0x1`` compare equal, as in ``Enum``."""
        code = self._module.code_for_node(value)
        try:
            evaluated = ast.literal_eval(code)
            hash(evaluated)
        except (ValueError, TypeError, SyntaxError):
            return ("source", code)
        return evaluated

    @staticmethod
    def _assignment(small: cst.BaseSmallStatement) -> Tuple[List[cst.Name], Optional[cst.BaseExpression]]:
        if isinstance(small, cst.Assign):
            targets = [target.target for target in small.targets]
            value = small.value
        elif isinstance(small, cst.AnnAssign) and small.value is not None:
            targets = [small.target]
            value = small.value
        else:
            return [], None
        names = [target for target in targets if isinstance(target, cst.Name)]
        if len(names) != len(targets):
            return [], None
        return names, value

    def _position(self, node: cst.CSTNode) -> Optional[metadata.CodeRange]:
        return self.get_metadata(metadata.PositionProvider, node, None)

    def _span(self, node: cst.CSTNode) -> SourceSpan:
        position = self._position(node)
        if position is None:
            return SourceSpan(path=self._path_key)
        return SourceSpan(path=self._path_key, line=position.start.line, column=position.start.column)


def read_python_types(
    source: str, *, path: str = "<string>", config: GeneratorConfig | None = None
) -> Tuple[TypeSource, ...]:
    """Return every annotated class declared in ``source``."""
    try:
        module = cst.parse_module(source)
    except cst.ParserSyntaxError as error:
        raise SourceError(
            f"Failed to parse {path}: {error.message}",
            span=SourceSpan(path=path, line=error.raw_line, column=error.raw_column),
        ) from error

    wrapper = metadata.MetadataWrapper(module)
    collector = _DeclarationCollector(path, wrapper.module, config or GeneratorConfig())
    wrapper.visit(collector)
    LOGGER.debug("Found %d annotated class(es) in %s", len(collector.types), path)
    return tuple(collector.types)


def read_python_source(path: Path, config: GeneratorConfig | None = None) -> Tuple[TypeSource, ...]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as error:
        raise SourceError(f"Unable to read {path}: {error}", span=SourceSpan(path=str(path))) from error
    return read_python_types(text, path=path.as_posix(), config=config)
