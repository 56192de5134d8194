from __future__ import annotations
import json
import os
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from lexer import MidError, MidLexError, Lexer
from parser import (
    Assignment,
    BinaryOp,
    CharLiteral,
    Expression,
    InputInt,
    InputString,
    IntLiteral,
    Parser,
    PrintStatement,
    Program,
    SourceLocation,
    Statement,
    StringLiteral,
    VarDecl,
    VariableRef,
)


TYPE_INT = "INT"
TYPE_STR = "STR"

_INT_INPUT = re.compile(r"\s*[+-]?[0-9]+\s*")


@dataclass(frozen=True)
class IntValue:
    value: int


@dataclass(frozen=True)
class StrValue:
    value: str


Value = Union[IntValue, StrValue]


def render_value(value: Value) -> str:
    """Text form used by print and by '+'."""
    if isinstance(value, IntValue):
        try:
            return str(value.value)
        except ValueError:
            # Past sys.get_int_max_str_digits() digits.
            raise MidRuntimeError("Integer too large to convert to text", rule="RENDER") from None
    if isinstance(value, StrValue):
        return value.value
    raise MidRuntimeError(f"Unsupported value {value!r}", rule="RENDER")


def type_name(value: Value) -> str:
    if isinstance(value, IntValue):
        return TYPE_INT
    if isinstance(value, StrValue):
        return TYPE_STR
    raise MidRuntimeError(f"Unsupported value {value!r}", rule="TYPE")


class MidRuntimeError(MidError):
    """Raised for runtime faults."""

    def __init__(
        self,
        message: str,
        *,
        location: Optional[SourceLocation] = None,
        rule: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.location = location
        self.rule = rule
        self.step_index: Optional[int] = None


@dataclass
class Environment:
    """Flat variable store for a single run."""

    values: Dict[str, Value] = field(default_factory=dict)

    def set(self, name: str, value: Value) -> None:
        self.values[name] = value

    def get(self, name: str) -> Value:
        try:
            return self.values[name]
        except KeyError:
            raise MidRuntimeError(f"Undefined variable '{name}'", rule="IDENT") from None

    def has(self, name: str) -> bool:
        return name in self.values

    def snapshot(self) -> Dict[str, str]:
        def _render(val: Value) -> str:
            try:
                rendered = render_value(val)
            except MidRuntimeError:
                rendered = "<too large to render>"
            if len(rendered) > 80:
                rendered = rendered[:77] + "..."
            return f"{type_name(val)}:{rendered}"

        return {k: _render(v) for k, v in self.values.items()}


@dataclass
class StateEntry:
    step_index: int
    state_id: str
    source_location: Optional[SourceLocation]
    statement: Optional[str]
    env_snapshot: Optional[Dict[str, str]]
    rule: str
    extra: Dict[str, Any] = field(default_factory=dict)


class StateLogger:
    def __init__(self, verbose: bool) -> None:
        self.verbose = verbose
        self.entries: List[StateEntry] = []
        self.next_state_index = 0

    def record(
        self,
        *,
        rule: str,
        location: Optional[SourceLocation],
        env_snapshot: Optional[Dict[str, str]] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> StateEntry:
        step_index = self.next_state_index
        entry = StateEntry(
            step_index=step_index,
            state_id=f"s_{step_index:06d}",
            source_location=location,
            statement=location.statement if location else None,
            env_snapshot=env_snapshot,
            rule=rule,
            extra=extra or {},
        )
        self.entries.append(entry)
        self.next_state_index += 1
        return entry

    @property
    def last(self) -> Optional[StateEntry]:
        return self.entries[-1] if self.entries else None


class Interpreter:
    def __init__(
        self,
        *,
        source: str,
        filename: str = "<string>",
        verbose: bool = False,
        input_provider: Optional[Callable[[], str]] = None,
        output_sink: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.source = source
        self._source_lines = source.splitlines()
        self.filename = filename if filename == "<string>" else os.path.abspath(filename)
        self.verbose = verbose
        self.input_provider = input_provider or input
        self.output_sink = output_sink or (lambda text: print(text, end="", flush=True))
        self.logger = StateLogger(verbose)
        self.io_log: List[Dict[str, Any]] = []
        self.env: Optional[Environment] = None

    def parse(self) -> Program:
        tokens = Lexer(self.source).tokenize()
        if tokens[-1].type == "ERROR":
            raise MidLexError.from_token(tokens[-1])
        parser = Parser(tokens, self.filename, self._source_lines)
        return parser.parse()

    def run(self) -> Environment:
        program = self.parse()
        env = Environment()
        self.evaluate(program, env)
        return env

    def evaluate(self, program: Program, env: Environment) -> None:
        self.env = env
        try:
            for statement in program.statements:
                self._execute_statement(statement, env)
        except MidRuntimeError as error:
            last = self.logger.last
            if last is not None:
                error.step_index = last.step_index
                if error.location is None:
                    error.location = last.source_location
            raise
        except Exception as exc:
            # Convert unexpected Python-level exceptions so callers only
            # need to handle MidError.
            last = self.logger.last
            wrapped = MidRuntimeError(
                f"Internal interpreter error: {exc}",
                location=last.source_location if last else None,
                rule="internal",
            )
            if last is not None:
                wrapped.step_index = last.step_index
            raise wrapped from exc

    def _execute_statement(self, statement: Statement, env: Environment) -> None:
        self._log_step(rule=statement.__class__.__name__, location=statement.location, env=env)
        if isinstance(statement, (VarDecl, Assignment)):
            # Declaration and reassignment behave the same: bind or overwrite.
            value = self._evaluate_expression(statement.expression, env)
            env.set(statement.name, value)
            return
        if isinstance(statement, PrintStatement):
            value = self._evaluate_expression(statement.expression, env)
            text = render_value(value)
            self.output_sink(text + "\n")
            self.io_log.append({"event": "PRINT", "text": text})
            return
        raise MidRuntimeError(
            f"Unsupported statement {statement.__class__.__name__}",
            location=statement.location,
            rule="STATEMENT",
        )

    def _evaluate_expression(self, expression: Expression, env: Environment) -> Value:
        if isinstance(expression, IntLiteral):
            return IntValue(expression.value)
        if isinstance(expression, StringLiteral):
            return StrValue(expression.text)
        if isinstance(expression, CharLiteral):
            return StrValue(expression.char)
        if isinstance(expression, VariableRef):
            try:
                return env.get(expression.name)
            except MidRuntimeError as error:
                error.location = expression.location
                raise
        if isinstance(expression, BinaryOp):
            left = self._evaluate_expression(expression.left, env)
            right = self._evaluate_expression(expression.right, env)
            return self._apply_operator(expression, left, right)
        if isinstance(expression, InputInt):
            text = self._read_line(expression.location, "INPUTINT")
            invalid = MidRuntimeError(
                f"Invalid integer input: '{text}'",
                location=expression.location,
                rule="INPUTINT",
            )
            if not _INT_INPUT.fullmatch(text):
                raise invalid
            try:
                return IntValue(int(text))
            except ValueError:
                raise invalid from None
        if isinstance(expression, InputString):
            return StrValue(self._read_line(expression.location, "INPUTSTRING"))
        raise MidRuntimeError(
            f"Unsupported expression {expression.__class__.__name__}",
            location=expression.location,
            rule="EXPRESSION",
        )

    def _apply_operator(self, expression: BinaryOp, left: Value, right: Value) -> Value:
        op = expression.operator
        if op == "+":
            # '+' concatenates the text forms, whatever the operand types.
            return StrValue(render_value(left) + render_value(right))
        if not isinstance(left, IntValue) or not isinstance(right, IntValue):
            raise MidRuntimeError(
                f"Operator '{op}' requires integer operands",
                location=expression.location,
                rule=op,
            )
        a, b = left.value, right.value
        if op == "-":
            return IntValue(a - b)
        if op == "*":
            return IntValue(a * b)
        if op == "/":
            return IntValue(self._safe_div(a, b, expression.location))
        raise MidRuntimeError(f"Unknown operator '{op}'", location=expression.location, rule=op)

    def _safe_div(self, a: int, b: int, location: SourceLocation) -> int:
        if b == 0:
            raise MidRuntimeError("Division by zero", location=location, rule="/")
        # Truncate toward zero.
        q = abs(a) // abs(b)
        return q if (a < 0) == (b < 0) else -q

    def _read_line(self, location: SourceLocation, rule: str) -> str:
        try:
            text = self.input_provider()
        except EOFError:
            raise MidRuntimeError("Input stream closed", location=location, rule=rule) from None
        if text.endswith("\n"):
            text = text[:-1]
        if text.endswith("\r"):
            text = text[:-1]
        self.io_log.append({"event": "INPUT", "text": text})
        self._log_step(rule=rule, location=location, extra={"text": text})
        return text

    def _log_step(
        self,
        *,
        rule: str,
        location: Optional[SourceLocation],
        env: Optional[Environment] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        env = env if env is not None else self.env
        env_snapshot = env.snapshot() if (self.logger.verbose and env is not None) else None
        self.logger.record(rule=rule, location=location, env_snapshot=env_snapshot, extra=extra)


class TracebackFormatter:
    def __init__(self, interpreter: Interpreter) -> None:
        self.interpreter = interpreter

    def format_text(self, error: MidRuntimeError, verbose: bool) -> str:
        lines = ["Traceback (most recent step last):"]
        entry = self.interpreter.logger.last
        location = error.location or (entry.source_location if entry else None)
        if location:
            lines.append(f"  File \"{location.file}\", line {location.line}, column {location.column}")
            if location.statement:
                lines.append(f"    {location.statement}")
        else:
            lines.append("  <unknown location>")
        if entry:
            lines.append(f"    State log index: {entry.step_index}  State id: {entry.state_id}")
            if verbose and entry.env_snapshot is not None:
                snapshot = ", ".join(f"{k}={v}" for k, v in entry.env_snapshot.items())
                lines.append(f"    Env snapshot: {snapshot}")
        rule = error.rule or "runtime"
        lines.append(f"{error.__class__.__name__}: {error.message} (rule: {rule})")
        return "\n".join(lines)

    def to_json(self, error: MidRuntimeError) -> str:
        steps: List[Dict[str, Any]] = []
        for entry in self.interpreter.logger.entries:
            step: Dict[str, Any] = {"step_index": entry.step_index, "state_id": entry.state_id, "rule": entry.rule}
            if entry.source_location:
                step["source_location"] = {
                    "file": entry.source_location.file,
                    "line": entry.source_location.line,
                    "column": entry.source_location.column,
                    "statement": entry.source_location.statement,
                }
            if entry.env_snapshot is not None:
                step["env_snapshot"] = entry.env_snapshot
            if entry.extra:
                step["extra"] = entry.extra
            steps.append(step)
        data = {
            "error": {
                "type": error.__class__.__name__,
                "message": error.message,
                "rule": error.rule,
                "failing_step_index": error.step_index,
            },
            "steps": steps,
        }
        return json.dumps(data, indent=2)
