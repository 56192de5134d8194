from __future__ import annotations
import sys
from dataclasses import dataclass
from typing import List, Optional


class MidError(Exception):
    """Base class for interpreter errors."""


class MidLexError(MidError):
    """Raised when the source text cannot be tokenized."""

    def __init__(self, message: str, *, line: int, column: int) -> None:
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    @classmethod
    def from_token(cls, token: "Token") -> "MidLexError":
        return cls(f"{token.value} at line {token.line}, column {token.column}", line=token.line, column=token.column)


@dataclass(frozen=True)
class Token:
    type: str
    value: str
    line: int
    column: int


KEYWORDS = {
    "var": "VAR",
    "print": "PRINT",
    "println": "PRINTLN",
    "inputInt": "INPUT_INT",
    "inputString": "INPUT_STRING",
}

SYMBOLS = {
    "+": "PLUS",
    "-": "MINUS",
    "*": "STAR",
    "/": "SLASH",
    "=": "EQUALS",
    ";": "SEMICOLON",
    "(": "LPAREN",
    ")": "RPAREN",
}

DIGITS = "0123456789"

ESCAPES = {
    "n": "\n",
    "t": "\t",
    "\\": "\\",
    '"': '"',
    "'": "'",
}


class Lexer:
    def __init__(self, text: str) -> None:
        self.text = text
        self.index = 0
        self.line = 1
        self.column = 1

    def tokenize(self) -> List[Token]:
        """Scan the whole text.

        The result ends with an EOF token, or with an ERROR token when the
        text could not be scanned; nothing is produced after an ERROR token.
        """
        self.index = 0
        self.line = 1
        self.column = 1
        tokens: List[Token] = []
        tokens_append = tokens.append
        _advance = self._advance
        symbols = SYMBOLS
        text = self.text
        n = len(text)

        while self.index < n:
            ch: str = text[self.index]
            if ch == " " or ch == "\t":
                _advance()
                continue
            if ch == "\n" or ch == "\r":
                self._consume_line_terminator()
                continue
            if ch in symbols:
                tokens_append(Token(symbols[ch], ch, self.line, self.column))
                _advance()
                continue
            if ch == '"':
                token = self._consume_string()
                tokens_append(token)
                if token.type == "ERROR":
                    return tokens
                continue
            if ch == "'":
                token = self._consume_char()
                tokens_append(token)
                if token.type == "ERROR":
                    return tokens
                continue
            if ch in DIGITS:
                token = self._consume_number()
                tokens_append(token)
                if token.type == "ERROR":
                    return tokens
                continue
            if self._is_identifier_start(ch):
                tokens_append(self._consume_identifier())
                continue
            tokens_append(Token("ERROR", f"Unexpected character '{ch}'", self.line, self.column))
            return tokens
        tokens_append(Token("EOF", "", self.line, self.column))
        return tokens

    def _consume_line_terminator(self) -> None:
        # "\r\n" counts as a single terminator; a lone "\r" also ends the line.
        if self.text[self.index] == "\r" and self.index + 1 < len(self.text) and self.text[self.index + 1] == "\n":
            self.index += 1
        self.index += 1
        self.line += 1
        self.column = 1

    def _consume_number(self) -> Token:
        line, col = self.line, self.column
        digits: List[str] = []
        text = self.text
        n = len(text)
        while self.index < n and text[self.index] in DIGITS:
            digits.append(text[self.index])
            self._advance()
        # int() refuses strings longer than the interpreter's digit limit (0 means none).
        limit = sys.get_int_max_str_digits()
        if limit and len(digits) > limit:
            return Token("ERROR", f"Integer literal longer than {limit} digits", line, col)
        return Token("INTEGER", "".join(digits), line, col)

    def _consume_identifier(self) -> Token:
        line, col = self.line, self.column
        chars: List[str] = []
        text = self.text
        n = len(text)
        while self.index < n and self._is_identifier_part(text[self.index]):
            chars.append(text[self.index])
            self._advance()
        value = "".join(chars)
        token_type: str = KEYWORDS.get(value, "IDENT")
        return Token(token_type, value, line, col)

    def _consume_string(self) -> Token:
        line, col = self.line, self.column
        self._advance()  # consume opening quote
        chars: List[str] = []
        while not self._eof:
            ch = self._peek()
            if ch == '"':
                self._advance()
                return Token("STRING", "".join(chars), line, col)
            if ch == "\n" or ch == "\r":
                return Token("ERROR", "Unterminated string literal", line, col)
            if ch == "\\":
                escaped = self._consume_escape()
                if escaped is None:
                    break
                chars.append(escaped)
                continue
            chars.append(ch)
            self._advance()
        return Token("ERROR", "Unterminated string literal", line, col)

    def _consume_char(self) -> Token:
        line, col = self.line, self.column
        self._advance()  # consume opening quote
        if self._eof or self._peek() in "\r\n":
            return Token("ERROR", "Unterminated character literal", line, col)
        if self._peek() == "\\":
            value = self._consume_escape()
            if value is None:
                return Token("ERROR", "Unterminated character literal", line, col)
        else:
            value = self._peek()
            self._advance()
        if self._eof or self._peek() != "'":
            return Token("ERROR", "Unterminated character literal", line, col)
        self._advance()  # consume closing quote
        return Token("CHAR", value, line, col)

    def _consume_escape(self) -> Optional[str]:
        self._advance()  # consume backslash
        if self._eof or self._peek() in "\r\n":
            return None
        escaped = self._peek()
        self._advance()
        # Unknown escapes pass the character through unchanged.
        return ESCAPES.get(escaped, escaped)

    def _is_identifier_start(self, ch: str) -> bool:
        return ch.isascii() and (ch.isalpha() or ch == "_")

    def _is_identifier_part(self, ch: str) -> bool:
        return ch.isascii() and (ch.isalnum() or ch == "_")

    @property
    def _eof(self) -> bool:
        return self.index >= len(self.text)

    def _peek(self) -> str:
        return self.text[self.index]

    def _advance(self) -> None:
        self.column += 1
        self.index += 1
