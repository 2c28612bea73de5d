"""
Python code generation for the block tree.

The generated module expects a single global ``this`` (the render frame)
plus the template data. Every emitted statement is tagged with a trailing
``#@<line>`` marker naming the source line it came from, which the engine
uses to locate faults.
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional

from .nodes import (
    Body,
    CallNode,
    EachNode,
    EchoNode,
    ErrorNode,
    ForeachNode,
    ForNode,
    IfNode,
    LoopControlNode,
    PythonNode,
    SectionNode,
    SetNode,
    SwitchNode,
    TemplateNode,
    TextNode,
    WhileNode,
)

LINE_MARKER_RE = re.compile(r"#@(\d+)$")

PROLOGUE = (
    "__out = this.write",
    "__e = this.escape",
    "loop = this.current_loop",
)

# keyword -> frame method whose result is written unescaped
_PRINT_HELPERS: Dict[str, str] = {
    "yield": "section",
    "stack": "section",
    "csrf": "csrf_field",
    "method": "method_field",
    "json": "json",
    "js": "js",
    "class": "class_attr",
    "style": "style_attr",
    "checked": "checked",
    "selected": "selected",
    "disabled": "disabled",
    "readonly": "readonly",
    "required": "required",
}

# keyword -> frame method whose result is escaped before output
_ESCAPED_HELPERS: Dict[str, str] = {
    "lower": "lower",
    "upper": "upper",
    "ucfirst": "ucfirst",
    "ucwords": "ucwords",
    "format": "sprintf",
    "sprintf": "sprintf",
    "wrap": "wordwrap",
}

# keyword -> frame method called for its side effect
_STATEMENT_HELPERS: Dict[str, str] = {
    "extends": "layout",
    "include": "insert",
    "includeIf": "insert_if",
    "includeWhen": "insert_when",
    "includeUnless": "insert_unless",
    "includeFirst": "insert_first",
}

_SECTION_OPENERS: Dict[str, str] = {
    "section": "start",
    "push": "push",
    "prepend": "unshift",
}


class CodeBuilder:
    """Accumulates indented source lines."""

    INDENT_STEP = 4

    def __init__(self):
        self.lines: List[str] = []
        self.indent_level = 0

    def __str__(self) -> str:
        return "\n".join(self.lines) + "\n"

    def add_line(self, code: str, line: Optional[int] = None) -> None:
        """
        Add one statement at the current indentation.

        Multi-line code is added line by line. ``line`` tags the last
        physical line with its source line marker.
        """
        pad = " " * self.indent_level
        physical = code.split("\n")
        for i, text in enumerate(physical):
            marker = f"  #@{line}" if line is not None and i == len(physical) - 1 else ""
            self.lines.append(f"{pad}{text}{marker}" if text.strip() else "")

    @contextmanager
    def indented(self) -> Iterator[None]:
        self.indent_level += self.INDENT_STEP
        mark = len(self.lines)
        try:
            yield
        finally:
            if len(self.lines) == mark:
                self.lines.append(" " * self.indent_level + "pass")
            self.indent_level -= self.INDENT_STEP


class PythonGenerator:
    """
    Emits a Python module for a block tree.

    Temporaries get a per-module counter suffix so nested constructs never
    clash (``__it1``, ``__lp2``, ...).
    """

    def __init__(self):
        self.builder = CodeBuilder()
        self._counter = 0
        self._dispatch: Dict[type, Callable[[TemplateNode], None]] = {
            TextNode: self._emit_text,
            EchoNode: self._emit_echo,
            CallNode: self._emit_call,
            SetNode: self._emit_set,
            PythonNode: self._emit_python,
            SectionNode: self._emit_section,
            IfNode: self._emit_if,
            ErrorNode: self._emit_error,
            SwitchNode: self._emit_switch,
            LoopControlNode: self._emit_loop_control,
            ForeachNode: self._emit_foreach,
            ForNode: self._emit_for,
            WhileNode: self._emit_while,
            EachNode: self._emit_each,
        }

    def generate(self, body: Body, header: str = "") -> str:
        if header:
            self.builder.add_line(f"# {header}")
        for line in PROLOGUE:
            self.builder.add_line(line)
        self._emit_body(body)
        return str(self.builder)

    def _temp(self, prefix: str) -> str:
        self._counter += 1
        return f"__{prefix}{self._counter}"

    def _emit_body(self, body: Body) -> None:
        for node in body:
            self._dispatch[type(node)](node)

    def _add(self, code: str, node_line: Optional[int] = None) -> None:
        self.builder.add_line(code, node_line)

    # -- output --------------------------------------------------------------

    def _emit_text(self, node: TextNode) -> None:
        self._add(f"__out({node.text!r})", node.line)

    def _emit_echo(self, node: EchoNode) -> None:
        if node.default is not None:
            self._add(
                f"__out(__e({node.expr}) if this.isset(lambda: ({node.expr})) else ({node.default}))",
                node.line,
            )
        elif node.escaped:
            self._add(f"__out(__e({node.expr}))", node.line)
        else:
            self._add(f"__out({node.expr})", node.line)

    def _emit_call(self, node: CallNode) -> None:
        args = ", ".join(node.args)
        if node.keyword in _PRINT_HELPERS:
            self._add(f"__out(this.{_PRINT_HELPERS[node.keyword]}({args}))", node.line)
        elif node.keyword in _ESCAPED_HELPERS:
            self._add(f"__out(__e(this.{_ESCAPED_HELPERS[node.keyword]}({args})))", node.line)
        else:
            self._add(f"this.{_STATEMENT_HELPERS[node.keyword]}({args})", node.line)

    def _emit_set(self, node: SetNode) -> None:
        if node.value is None:
            key = node.name if node.dynamic else repr(node.name)
            self._add(f"globals().pop({key}, None)", node.line)
        elif node.dynamic:
            self._add(f"globals()[{node.name}] = ({node.value})", node.line)
        else:
            self._add(f"{node.name} = ({node.value})", node.line)

    def _emit_python(self, node: PythonNode) -> None:
        if not node.block:
            self._add(node.code, node.line)
            return
        # raw lines may continue strings or use backslashes, so the marker
        # goes on a line of its own
        self.builder.add_line(f"#@{node.line}")
        for text in node.code.split("\n"):
            self.builder.add_line(text)

    # -- sections ------------------------------------------------------------

    def _emit_section(self, node: SectionNode) -> None:
        self._add(f"this.{_SECTION_OPENERS[node.keyword]}({node.name})", node.line)
        self._emit_body(node.body)
        self._add("this.stop()", node.line)

    # -- conditionals --------------------------------------------------------

    @staticmethod
    def _test(kind: str, expr: str) -> str:
        if kind == "unless":
            return f"not ({expr})"
        if kind == "isset":
            return f"this.isset(lambda: ({expr}))"
        if kind == "has":
            return f"this.has(lambda: ({expr}))"
        if kind == "empty_if":
            return f"this.empty(lambda: ({expr}))"
        return f"({expr})"

    def _emit_if(self, node: IfNode) -> None:
        for i, branch in enumerate(node.branches):
            keyword = "if" if i == 0 else "elif"
            self._add(f"{keyword} {self._test(branch.kind, branch.expr)}:", branch.line)
            with self.builder.indented():
                self._emit_body(branch.body)
        if node.orelse is not None:
            self._add("else:")
            with self.builder.indented():
                self._emit_body(node.orelse)

    def _emit_error(self, node: ErrorNode) -> None:
        self._add(f"if this.error({node.field}):", node.line)
        with self.builder.indented():
            self._add(f"message = this.error_message({node.field})", node.line)
            self._emit_body(node.body)
        if node.orelse is not None:
            self._add("else:")
            with self.builder.indented():
                self._emit_body(node.orelse)

    def _emit_switch(self, node: SwitchNode) -> None:
        subject, fallen, once = self._temp("sw"), self._temp("ft"), self._temp("once")
        self._add(f"{subject} = ({node.subject})", node.line)
        self._add(f"{fallen} = False")
        self._add(f"for {once} in (None,):")
        with self.builder.indented():
            for case in node.cases:
                if case.expr is None:
                    self._emit_body(case.body)
                    continue
                self._add(f"if {fallen} or {subject} == ({case.expr}):", case.line)
                with self.builder.indented():
                    self._add(f"{fallen} = True")
                    self._emit_body(case.body)

    # -- loops ---------------------------------------------------------------

    def _emit_loop_control(self, node: LoopControlNode) -> None:
        if node.condition is None:
            self._add(node.keyword, node.line)
            return
        self._add(f"if ({node.condition}):", node.line)
        with self.builder.indented():
            self._add(node.keyword, node.line)

    @contextmanager
    def _loop_scope(self, count: str, line: int) -> Iterator[str]:
        """Enter a loop context around the loop statement emitted inside."""
        context = self._temp("lp")
        self._add(f"{context} = this.enter_loop({count})", line)
        self._add(f"loop = {context}")
        yield context
        self._add("loop = this.exit_loop()")

    def _emit_counted_body(self, context: str, body: Body) -> None:
        self._add("try:")
        with self.builder.indented():
            self._emit_body(body)
        self._add("finally:")
        with self.builder.indented():
            self._add(f"{context}.increment()")

    def _emit_foreach(self, node: ForeachNode) -> None:
        items = self._temp("it")
        self._add(f"{items} = this.loop_source({node.iterable})", node.line)

        def emit_loop() -> None:
            with self._loop_scope(f"len({items})", node.line) as context:
                if node.key is not None:
                    self._add(f"for {node.key}, {node.target} in this.pairs({items}):", node.line)
                else:
                    self._add(f"for {node.target} in {items}:", node.line)
                with self.builder.indented():
                    self._emit_counted_body(context, node.body)

        if not node.empty:
            emit_loop()
            return
        self._add(f"if len({items}):")
        with self.builder.indented():
            emit_loop()
        self._add("else:")
        with self.builder.indented():
            self._emit_body(node.empty)

    def _emit_for(self, node: ForNode) -> None:
        for stmt in node.init:
            self._add(stmt, node.line)
        started = self._temp("started")
        self._add(f"{started} = False")
        with self._loop_scope("", node.line) as context:
            self._add("while True:")
            with self.builder.indented():
                # the step runs before every test except the first, so
                # @continue steps and @break does not
                self._add(f"if {started}:")
                with self.builder.indented():
                    for stmt in node.step:
                        self._add(stmt, node.line)
                self._add(f"{started} = True")
                self._add(f"if not ({node.condition}):", node.line)
                with self.builder.indented():
                    self._add("break")
                self._emit_counted_body(context, node.body)

    def _emit_while(self, node: WhileNode) -> None:
        with self._loop_scope("", node.line) as context:
            self._add(f"while ({node.condition}):", node.line)
            with self.builder.indented():
                self._emit_counted_body(context, node.body)

    def _emit_each(self, node: EachNode) -> None:
        items, item = self._temp("it"), self._temp("item")
        self._add(f"{items} = this.loop_source({node.items})", node.line)

        def emit_loop() -> None:
            with self._loop_scope(f"len({items})", node.line) as context:
                self._add(f"for {item} in {items}:", node.line)
                with self.builder.indented():
                    self._add("try:")
                    with self.builder.indented():
                        self._add(
                            f"this.insert({node.partial}, {{{node.var}: {item}, 'loop': {context}}})",
                            node.line,
                        )
                    self._add("finally:")
                    with self.builder.indented():
                        self._add(f"{context}.increment()")

        if node.empty_partial is None:
            emit_loop()
            return
        self._add(f"if len({items}):")
        with self.builder.indented():
            emit_loop()
        self._add("else:")
        with self.builder.indented():
            self._add(f"this.insert({node.empty_partial})", node.line)


def source_line(compiled: str, lineno: int) -> Optional[int]:
    """
    Map a line of generated code back to the template source line.

    Args:
        compiled: Generated Python text
        lineno: 1-based line in ``compiled`` (as reported by a traceback)

    Lines without a marker (raw @python code, bookkeeping statements) map
    to the nearest marker above them.

    Returns:
        Source line, or None when no marker precedes ``lineno``
    """
    lines = compiled.split("\n")
    if not 0 < lineno <= len(lines):
        return None
    for text in reversed(lines[:lineno]):
        match = LINE_MARKER_RE.search(text)
        if match:
            return int(match.group(1))
    return None


__all__ = ["CodeBuilder", "PythonGenerator", "LINE_MARKER_RE", "PROLOGUE", "source_line"]
