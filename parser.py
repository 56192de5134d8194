from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from lexer import MidError, MidLexError, Token


class MidParseError(MidError):
    """Raised when the token stream does not match the grammar."""

    def __init__(self, expected: str, found: Token) -> None:
        self.expected = expected
        self.found = found
        self.line = found.line
        self.column = found.column
        self.message = f"Expected {expected} but found {_describe(found)} at line {found.line}, column {found.column}"
        super().__init__(self.message)


def _describe(token: Token) -> str:
    if token.type == "EOF":
        return "end of input"
    return f"{token.type} '{token.value}'"


@dataclass(frozen=True)
class SourceLocation:
    file: str
    line: int
    column: int
    statement: str


@dataclass(frozen=True)
class Node:
    location: SourceLocation


@dataclass(frozen=True)
class Program(Node):
    statements: Tuple["Statement", ...]


# ---- Statements ----

@dataclass(frozen=True)
class VarDecl(Node):
    name: str
    expression: "Expression"


@dataclass(frozen=True)
class Assignment(Node):
    name: str
    expression: "Expression"


@dataclass(frozen=True)
class PrintStatement(Node):
    expression: "Expression"


# ---- Expressions ----

@dataclass(frozen=True)
class IntLiteral(Node):
    value: int


@dataclass(frozen=True)
class StringLiteral(Node):
    text: str


@dataclass(frozen=True)
class CharLiteral(Node):
    char: str


@dataclass(frozen=True)
class VariableRef(Node):
    name: str


@dataclass(frozen=True)
class BinaryOp(Node):
    left: "Expression"
    operator: str
    right: "Expression"


@dataclass(frozen=True)
class InputInt(Node):
    pass


@dataclass(frozen=True)
class InputString(Node):
    pass


Statement = Union[VarDecl, Assignment, PrintStatement]
Expression = Union[IntLiteral, StringLiteral, CharLiteral, VariableRef, BinaryOp, InputInt, InputString]

EXPECTED = {
    "IDENT": "identifier",
    "EQUALS": "'='",
    "SEMICOLON": "';'",
    "LPAREN": "'('",
    "RPAREN": "')'",
    "EOF": "end of input",
}

ADDITIVE = {"PLUS": "+", "MINUS": "-"}
MULTIPLICATIVE = {"STAR": "*", "SLASH": "/"}


class Parser:
    def __init__(
        self,
        tokens: List[Token],
        filename: str = "<string>",
        source_lines: Optional[List[str]] = None,
    ):
        self.tokens = tokens
        self.filename = filename
        self.source_lines = source_lines if source_lines is not None else []
        self.index = 0

    def parse(self) -> Program:
        statements: List[Statement] = []
        first_token: Token = self._peek()
        while self._peek().type != "EOF":
            statements.append(self._parse_statement())
        return Program(location=self._location_from_token(first_token), statements=tuple(statements))

    def _parse_statement(self) -> Statement:
        token = self._peek()
        if token.type == "VAR":
            return self._parse_var_decl()
        if token.type in ("PRINT", "PRINTLN"):
            return self._parse_print()
        return self._parse_assignment()

    def _parse_var_decl(self) -> VarDecl:
        keyword = self._consume("VAR")
        ident = self._consume("IDENT")
        self._consume("EQUALS")
        expr = self._parse_expression()
        self._consume("SEMICOLON")
        return VarDecl(location=self._location_from_token(keyword), name=ident.value, expression=expr)

    def _parse_assignment(self) -> Assignment:
        ident = self._consume("IDENT")
        self._consume("EQUALS")
        expr = self._parse_expression()
        self._consume("SEMICOLON")
        return Assignment(location=self._location_from_token(ident), name=ident.value, expression=expr)

    def _parse_print(self) -> PrintStatement:
        keyword = self._advance()
        self._consume("LPAREN")
        expr = self._parse_expression()
        self._consume("RPAREN")
        self._consume("SEMICOLON")
        return PrintStatement(location=self._location_from_token(keyword), expression=expr)

    def _parse_expression(self) -> Expression:
        expr = self._parse_term()
        while self._peek().type in ADDITIVE:
            op = self._advance()
            right = self._parse_term()
            expr = BinaryOp(location=self._location_from_token(op), left=expr, operator=ADDITIVE[op.type], right=right)
        return expr

    def _parse_term(self) -> Expression:
        expr = self._parse_factor()
        while self._peek().type in MULTIPLICATIVE:
            op = self._advance()
            right = self._parse_factor()
            expr = BinaryOp(location=self._location_from_token(op), left=expr, operator=MULTIPLICATIVE[op.type], right=right)
        return expr

    def _parse_factor(self) -> Expression:
        token = self._peek()
        location = self._location_from_token(token)
        if token.type == "INTEGER":
            self._advance()
            return IntLiteral(location=location, value=int(token.value))
        if token.type == "STRING":
            self._advance()
            return StringLiteral(location=location, text=token.value)
        if token.type == "CHAR":
            self._advance()
            return CharLiteral(location=location, char=token.value)
        if token.type == "INPUT_INT":
            self._advance()
            self._consume("LPAREN")
            self._consume("RPAREN")
            return InputInt(location=location)
        if token.type == "INPUT_STRING":
            self._advance()
            self._consume("LPAREN")
            self._consume("RPAREN")
            return InputString(location=location)
        if token.type == "IDENT":
            self._advance()
            return VariableRef(location=location, name=token.value)
        if token.type == "LPAREN":
            self._advance()
            expr = self._parse_expression()
            self._consume("RPAREN")
            return expr
        raise MidParseError("expression", token)

    def _consume(self, token_type: str) -> Token:
        token = self._peek()
        if token.type != token_type:
            raise MidParseError(EXPECTED.get(token_type, token_type), token)
        self.index += 1
        return token

    def _advance(self) -> Token:
        token = self._peek()
        self.index += 1
        return token

    def _peek(self) -> Token:
        token = self.tokens[self.index]
        # The lexer stops at its first error, so an ERROR token is always last.
        if token.type == "ERROR":
            raise MidLexError.from_token(token)
        return token

    def _location_from_token(self, token: Token) -> SourceLocation:
        line_index = token.line - 1
        statement = ""
        if 0 <= line_index < len(self.source_lines):
            statement = self.source_lines[line_index].strip()
        return SourceLocation(file=self.filename, line=token.line, column=token.column, statement=statement)
