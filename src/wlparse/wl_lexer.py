"""
Tokenizer for Wolfram Language source text.

Classes:
    CharacterStream: Cursor over the source text that knows its line and column.
    Token: Immutable token record (type, exact text, 1-based position).
    Lexer: Produces one Token per call to `next_token`.

Features:
    - Emits whitespace, line breaks and (nested) `(* comments *)` as trivia tokens,
      so the tree keeps every character of the input
    - Operators and punctuation from `token_hashmap`, longest spelling first
    - Recognizes:
        * Symbols, including context marks (`System`Plus`) and `$` names
        * Numbers (integers, reals, `16^^FF` bases, backtick precision, `*^` exponents)
        * Strings with escape sequences (the token keeps its quotes)
        * Slots `#`, `#2`, `#name` and slot sequences `##`, `##2`

The lexer never raises on malformed input. Unknown characters and unterminated
strings come back as `ERROR` tokens and are reported by the parser.

Example:
    >>> lexer = Lexer(CharacterStream("f[x]"))
    >>> lexer.next_token()
    Token(IDENTIFIER, 'f')
"""

from collections.abc import Callable
from dataclasses import dataclass

from wlparse.wl_constants import token_hashmap

_MAX_OPERATOR_LENGTH = max(len(op) for op in token_hashmap)


class CharacterStream:
    """
    Read cursor over a source string.

    Attributes:
        source (str): Text being read.
        position (int): Offset of the next unread character.
        line (int): Line of the next unread character, starting at 1.
        column (int): Column of the next unread character, starting at 1.
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str:
        """
        Reads one character and moves the line/column counters past it.

        Raises:
            IndexError: When the stream is already exhausted.
        """
        if self.end_of_file():
            raise IndexError(f"read past end of source at {self.line}:{self.column}")
        ch = self.source[self.position]
        self.position += 1
        if ch == "\n":
            self.line, self.column = self.line + 1, 1
        else:
            self.column += 1
        return ch

    def peek(self, offset: int = 0) -> str:
        """The character `offset` places ahead, or "" outside the source."""
        index = self.position + offset
        return self.source[index] if 0 <= index < len(self.source) else ""

    def lookahead(self, length: int) -> str:
        """Up to `length` unread characters, without consuming them."""
        return self.source[self.position : self.position + length]

    def end_of_file(self) -> bool:
        return self.position >= len(self.source)


@dataclass(frozen=True)
class Token:
    """One lexical token.

    Attributes:
        type (str): Token type such as 'IDENTIFIER', 'NUMBER', 'LINE_BREAK' or 'EOF'.
        value (str): Exact source text; empty for `EOF`.
        line (int): Line of the first character, starting at 1.
        col (int): Column of the first character, starting at 1.
    """

    type: str
    value: str
    line: int = 0
    col: int = 0

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value!r})"


class Lexer:
    """Splits a CharacterStream into tokens.

    Concatenating the values of all tokens up to `EOF` reproduces the input exactly.

    Attributes:
        stream (CharacterStream): Source being tokenized.
    """

    def __init__(self, stream: CharacterStream) -> None:
        self.stream = stream

    def peek(self, offset: int = 0) -> str:
        return self.stream.peek(offset)

    def advance(self) -> str:
        return self.stream.next()

    def read_while(self, predicate: Callable[[str], bool]) -> str:
        """Consumes characters while `predicate(char)` holds and returns them."""
        start = self.stream.position
        while not self.stream.end_of_file() and predicate(self.peek()):
            self.advance()
        return self.stream.source[start : self.stream.position]

    def read_comment(self) -> str:
        """Consumes a possibly nested `(* ... *)` comment.

        An unterminated comment runs to the end of the input.
        """
        text = self.advance() + self.advance()
        depth = 1
        while not self.stream.end_of_file() and depth > 0:
            if self.peek() == "(" and self.peek(1) == "*":
                text += self.advance() + self.advance()
                depth += 1
            elif self.peek() == "*" and self.peek(1) == ")":
                text += self.advance() + self.advance()
                depth -= 1
            else:
                text += self.advance()
        return text

    def read_identifier(self) -> str:
        ident = ""
        while not self.stream.end_of_file():
            ch = self.peek()
            if ch.isalnum() or ch == "$":
                ident += self.advance()
            elif ch == "`" and (self.peek(1).isalpha() or self.peek(1) == "$"):
                ident += self.advance()
            else:
                break
        return ident

    def read_number(self) -> str:
        """Reads a numeric literal.

        Accepted shapes: `42`, `4.2`, `.5`, `16^^FF`, `1.5`20`, `2.0``10`, `1.2*^-3`.
        """
        num = self.read_while(str.isdigit)
        if self.peek() == "^" and self.peek(1) == "^":
            num += self.advance() + self.advance()
            num += self.read_while(str.isalnum)
        if self.peek() == "." and self.peek(1) != ".":
            num += self.advance()
            num += self.read_while(str.isdigit)
        if self.peek() == "`":
            num += self.advance()
            if self.peek() == "`":
                num += self.advance()
            num += self.read_while(lambda c: c.isdigit() or c == ".")
        if self.peek() == "*" and self.peek(1) == "^":
            num += self.advance() + self.advance()
            if self.peek() in ("-", "+"):
                num += self.advance()
            num += self.read_while(str.isdigit)
        return num

    def read_string(self) -> tuple[str, bool]:
        """Reads a string literal including its quotes.

        Returns:
            tuple[str, bool]: The raw text and whether the closing quote was found.
        """
        val = self.advance()
        while not self.stream.end_of_file():
            if self.peek() == "\\":
                val += self.advance()
                if not self.stream.end_of_file():
                    val += self.advance()
            elif self.peek() == '"':
                val += self.advance()
                return val, True
            else:
                val += self.advance()
        return val, False

    def read_slot(self) -> Token:
        line, col = self.stream.line, self.stream.column
        text = self.advance()
        kind = "SLOT"
        if self.peek() == "#":
            text += self.advance()
            kind = "SLOT_SEQUENCE"
        if self.peek().isdigit():
            text += self.read_while(str.isdigit)
        elif kind == "SLOT" and self.peek().isalpha():
            text += self.read_identifier()
        return Token(kind, text, line, col)

    def match_operator(self) -> Token | None:
        """Consumes the longest operator spelled at the cursor; None when nothing matches."""
        line, col = self.stream.line, self.stream.column
        text = self.stream.lookahead(_MAX_OPERATOR_LENGTH)
        for length in range(len(text), 0, -1):
            op = text[:length]
            if op in token_hashmap:
                for _ in op:
                    self.advance()
                return Token(token_hashmap[op], op, line, col)
        return None

    def next_token(self) -> Token:
        """Reads one token; once the input is exhausted every call returns `EOF`."""
        line, col = self.stream.line, self.stream.column
        if self.stream.end_of_file():
            return Token("EOF", "", line, col)

        ch = self.peek()

        # 1. Layout
        if ch in " \t\f":
            return Token("WHITESPACE", self.read_while(lambda c: c in " \t\f"), line, col)
        if ch == "\n":
            return Token("LINE_BREAK", self.advance(), line, col)
        if ch == "\r":
            text = self.advance()
            if self.peek() == "\n":
                text += self.advance()
            return Token("LINE_BREAK", text, line, col)

        # 2. Comment
        if ch == "(" and self.peek(1) == "*":
            return Token("COMMENT", self.read_comment(), line, col)

        # 3. Symbol
        if ch.isalpha() or ch == "$":
            return Token("IDENTIFIER", self.read_identifier(), line, col)

        # 4. Number
        if ch.isdigit() or (ch == "." and self.peek(1).isdigit()):
            return Token("NUMBER", self.read_number(), line, col)

        # 5. String
        if ch == '"':
            text, closed = self.read_string()
            return Token("STRING" if closed else "ERROR", text, line, col)

        # 6. Slot
        if ch == "#":
            return self.read_slot()

        # 7. Operator or punctuation
        token = self.match_operator()
        if token:
            return token

        # 8. Unknown character
        return Token("ERROR", self.advance(), line, col)


def tokenize(source: str) -> list[Token]:
    """Lexes `source` completely.

    Returns:
        list[Token]: All tokens including trivia, terminated by a single `EOF` token.
    """
    lexer = Lexer(CharacterStream(source))
    tokens: list[Token] = []
    while True:
        tok = lexer.next_token()
        tokens.append(tok)
        if tok.type == "EOF":
            return tokens


__all__ = ["CharacterStream", "Lexer", "Token", "token_hashmap", "tokenize"]
