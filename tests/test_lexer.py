"""Tests for the MidLang tokenizer."""

from lexer import Lexer, MidLexError, Token


def types(source):
    return [tok.type for tok in Lexer(source).tokenize()]


class TestTokens:
    def test_var_declaration(self):
        tokens = Lexer("var x = 10;").tokenize()
        assert [t.type for t in tokens] == ["VAR", "IDENT", "EQUALS", "INTEGER", "SEMICOLON", "EOF"]
        assert [t.column for t in tokens] == [1, 5, 7, 9, 11, 12]
        assert all(t.line == 1 for t in tokens)
        assert tokens[3].value == "10"

    def test_operators_and_punctuation(self):
        assert types("+-*/=;()") == [
            "PLUS", "MINUS", "STAR", "SLASH", "EQUALS", "SEMICOLON", "LPAREN", "RPAREN", "EOF",
        ]

    def test_keywords(self):
        assert types("var print println inputInt inputString") == [
            "VAR", "PRINT", "PRINTLN", "INPUT_INT", "INPUT_STRING", "EOF",
        ]

    def test_identifiers_are_not_keywords(self):
        tokens = Lexer("printer _x1 Var inputint").tokenize()
        assert [t.type for t in tokens[:-1]] == ["IDENT"] * 4
        assert [t.value for t in tokens[:-1]] == ["printer", "_x1", "Var", "inputint"]

    def test_integer_is_maximal_digit_run(self):
        tokens = Lexer("123abc").tokenize()
        assert (tokens[0].type, tokens[0].value) == ("INTEGER", "123")
        assert (tokens[1].type, tokens[1].value) == ("IDENT", "abc")

    def test_minus_is_always_an_operator(self):
        assert types("-5") == ["MINUS", "INTEGER", "EOF"]

    def test_empty_source(self):
        tokens = Lexer("").tokenize()
        assert tokens == [Token("EOF", "", 1, 1)]


class TestPositions:
    def test_newline_resets_column(self):
        tokens = Lexer("a\n  b").tokenize()
        assert (tokens[1].line, tokens[1].column) == (2, 3)

    def test_crlf_is_one_terminator(self):
        tokens = Lexer("a\r\nb\r\n\r\nc").tokenize()
        assert [(t.value, t.line, t.column) for t in tokens[:-1]] == [("a", 1, 1), ("b", 2, 1), ("c", 4, 1)]

    def test_lone_carriage_return_ends_line(self):
        tokens = Lexer("a\rb").tokenize()
        assert (tokens[1].line, tokens[1].column) == (2, 1)

    def test_tabs_are_skipped(self):
        tokens = Lexer("\tx").tokenize()
        assert (tokens[0].value, tokens[0].column) == ("x", 2)


class TestStringLiterals:
    def test_plain_string(self):
        tokens = Lexer('"hello world"').tokenize()
        assert (tokens[0].type, tokens[0].value) == ("STRING", "hello world")

    def test_escapes(self):
        tokens = Lexer(r'"a\nb\tc\\d\"e\'f\qg"').tokenize()
        assert tokens[0].value == "a\nb\tc\\d\"e'fqg"

    def test_unterminated_at_end_of_input(self):
        tokens = Lexer('var s = "abc').tokenize()
        error = tokens[-1]
        assert error.type == "ERROR"
        assert error.value == "Unterminated string literal"
        assert (error.line, error.column) == (1, 9)
        assert "EOF" not in [t.type for t in tokens]

    def test_line_terminator_inside_string_halts(self):
        tokens = Lexer('print("abc\n");\nprint(1);').tokenize()
        assert [t.type for t in tokens] == ["PRINT", "LPAREN", "ERROR"]

    def test_backslash_at_end_of_input(self):
        tokens = Lexer('"abc\\').tokenize()
        assert tokens[-1].type == "ERROR"


class TestCharLiterals:
    def test_single_character(self):
        tokens = Lexer("'A'").tokenize()
        assert (tokens[0].type, tokens[0].value) == ("CHAR", "A")

    def test_escaped_character(self):
        assert Lexer(r"'\n'").tokenize()[0].value == "\n"
        assert Lexer(r"'\''").tokenize()[0].value == "'"

    def test_two_characters_is_an_error(self):
        tokens = Lexer("'ab'").tokenize()
        assert [t.type for t in tokens] == ["ERROR"]
        assert tokens[0].value == "Unterminated character literal"

    def test_missing_close(self):
        assert Lexer("x = 'a").tokenize()[-1].type == "ERROR"
        assert Lexer("'").tokenize()[-1].type == "ERROR"
        assert Lexer("'\n'").tokenize()[-1].type == "ERROR"


class TestErrors:
    def test_integer_longer_than_digit_limit(self, small_digit_limit):
        tokens = Lexer("x = " + "7" * 641 + "; y = 1;").tokenize()
        assert [t.type for t in tokens] == ["IDENT", "EQUALS", "ERROR"]
        assert tokens[-1].value == "Integer literal longer than 640 digits"
        assert tokens[-1].column == 5

    def test_integer_at_digit_limit(self, small_digit_limit):
        tokens = Lexer("7" * 640).tokenize()
        assert [t.type for t in tokens] == ["INTEGER", "EOF"]

    def test_unknown_character_halts(self):
        tokens = Lexer("x = 1 @ 2;").tokenize()
        assert [t.type for t in tokens] == ["IDENT", "EQUALS", "INTEGER", "ERROR"]
        assert tokens[-1].value == "Unexpected character '@'"
        assert tokens[-1].column == 7

    def test_lex_error_from_token(self):
        error = MidLexError.from_token(Token("ERROR", "Unexpected character '#'", 3, 4))
        assert (error.line, error.column) == (3, 4)
        assert str(error) == "Unexpected character '#' at line 3, column 4"


def test_tokenize_is_deterministic():
    source = 'var a = "x" + \'y\';\r\nprint(a * (2 - 1));\n'
    lexer = Lexer(source)
    first = lexer.tokenize()
    assert lexer.tokenize() == first
    assert Lexer(source).tokenize() == first
