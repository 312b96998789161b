"""
PHP array literal reader for Laravel language files.

Reads the array a `return [...]` / `return array(...)` file evaluates to,
without executing PHP. Handles nested arrays, single/double-quoted
strings, numbers, true/false/null, and // # /* */ comments.

Returns nested dicts keyed by strings (list items get their PHP index)
plus the position of every scalar value.
"""

from typing import Dict, List, Optional, Tuple

from ..models import Position
from ..parsing.extractor import LineIndex

_PUNCTUATION = {'[': '[', ']': ']', '(': '(', ')': ')', ',': ','}
_ESCAPES = {'n': '\n', 'r': '\r', 't': '\t', '\\': '\\', "'": "'", '"': '"', '$': '$'}

# (kind, value, offset); kinds: [ ] ( ) , => string ident number
Token = Tuple[str, str, int]
PathPositions = Dict[Tuple[str, ...], Position]


class PhpSyntaxError(ValueError):
    """Raised when the file holds no readable array literal."""

    def __init__(self, message: str, offset: Optional[int] = None):
        self.offset = offset
        super().__init__(message)


class _PhpLexer:
    """Turns PHP source into the handful of tokens array literals need."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def tokens(self) -> List[Token]:
        result = []
        while True:
            token = self._next()
            if token is None:
                return result
            result.append(token)

    def _next(self) -> Optional[Token]:
        text = self.text
        while True:
            self._skip_whitespace_and_comments()
            if self.pos >= len(text):
                return None

            start = self.pos
            ch = text[start]

            if text.startswith("=>", start):
                self.pos += 2
                return ("=>", "=>", start)
            if ch in _PUNCTUATION:
                self.pos += 1
                return (_PUNCTUATION[ch], ch, start)
            if ch in ("'", '"'):
                return ("string", self._read_string(ch), start)
            if ch.isdigit() or (ch == '-' and start + 1 < len(text) and text[start + 1].isdigit()):
                self.pos += 1
                while self.pos < len(text) and (text[self.pos].isdigit() or text[self.pos] == '.'):
                    self.pos += 1
                return ("number", text[start:self.pos], start)
            if ch.isalpha() or ch == '_':
                self.pos += 1
                while self.pos < len(text) and (text[self.pos].isalnum() or text[self.pos] in '_-'):
                    self.pos += 1
                return ("ident", text[start:self.pos], start)

            # Anything else (<?php, ;, ::, .) carries no array structure
            self.pos += 1

    def _skip_whitespace_and_comments(self) -> None:
        text = self.text
        while self.pos < len(text):
            if text[self.pos].isspace():
                self.pos += 1
            elif text.startswith("//", self.pos) or text.startswith("#", self.pos):
                end = text.find("\n", self.pos)
                self.pos = len(text) if end == -1 else end + 1
            elif text.startswith("/*", self.pos):
                end = text.find("*/", self.pos + 2)
                self.pos = len(text) if end == -1 else end + 2
            else:
                break

    def _read_string(self, quote: str) -> str:
        start = self.pos
        self.pos += 1
        chars = []
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            self.pos += 1
            if ch == quote:
                return "".join(chars)
            if ch == '\\' and self.pos < len(text):
                escaped = text[self.pos]
                self.pos += 1
                if quote == "'" and escaped not in ("'", '\\'):
                    # Single-quoted strings only unescape \' and \\
                    chars.append('\\' + escaped)
                else:
                    chars.append(_ESCAPES.get(escaped, escaped))
            else:
                chars.append(ch)
        raise PhpSyntaxError("unterminated string literal", start)


class _PhpArrayParser:
    """Recursive descent over lexer tokens."""

    def __init__(self, tokens: List[Token], lines: LineIndex):
        self.tokens = tokens
        self.index = 0
        self.lines = lines
        self.positions: PathPositions = {}

    def peek(self) -> Optional[Token]:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def advance(self) -> Optional[Token]:
        token = self.peek()
        if token is not None:
            self.index += 1
        return token

    def parse_root(self) -> dict:
        while True:
            token = self.peek()
            if token is None:
                raise PhpSyntaxError("no PHP array found")
            if token[0] == '[' or self._at_array_keyword():
                return self.parse_array(())
            self.advance()

    def _at_array_keyword(self) -> bool:
        token = self.peek()
        if token is None or token[0] != "ident" or token[1].lower() != "array":
            return False
        following = self.tokens[self.index + 1] if self.index + 1 < len(self.tokens) else None
        return following is not None and following[0] == '('

    def parse_array(self, path: Tuple[str, ...]) -> dict:
        opener = self.advance()
        if opener[0] == '[':
            end_kind = ']'
        else:
            self.advance()  # the '(' after 'array'
            end_kind = ')'

        items = {}
        list_index = 0
        while True:
            token = self.peek()
            if token is None:
                raise PhpSyntaxError("unterminated array", opener[2])
            if token[0] == end_kind:
                self.advance()
                return items

            first_token = token
            first = self.parse_value(None)

            following = self.peek()
            if following is not None and following[0] == "=>":
                self.advance()
                key = _value_to_key(first)
                if key is None:
                    raise PhpSyntaxError("array key must be a scalar", first_token[2])
                items[key] = self.parse_value(path + (key,))
                if key.isdigit():
                    list_index = max(list_index, int(key) + 1)
            else:
                key = str(list_index)
                list_index += 1
                items[key] = first
                if not isinstance(first, dict) and first is not None:
                    self.positions[path + (key,)] = self.lines.position(first_token[2])

            following = self.peek()
            if following is not None and following[0] == ',':
                self.advance()
            elif following is not None and following[0] != end_kind:
                raise PhpSyntaxError("expected ',' between array items", following[2])

    def parse_value(self, path: Optional[Tuple[str, ...]]):
        token = self.peek()
        if token is None:
            raise PhpSyntaxError("unexpected end of input")

        kind, value, offset = token
        if kind == '[' or self._at_array_keyword():
            # A key position cannot hold an array; let the caller reject it
            return self.parse_array(path if path is not None else ())

        self.advance()
        if kind == "string" or kind == "number":
            result = value
        elif kind == "ident":
            lowered = value.lower()
            if lowered == "true":
                result = "true"
            elif lowered == "false":
                result = "false"
            elif lowered == "null":
                return None
            else:
                result = value
        else:
            raise PhpSyntaxError(f"unexpected token {value!r}", offset)

        if path is not None:
            self.positions[path] = self.lines.position(offset)
        return result


def _value_to_key(value) -> Optional[str]:
    if value is None or isinstance(value, dict):
        return None
    return value


def parse_php_array(text: str) -> Tuple[dict, PathPositions]:
    """
    Read the returned array literal of a PHP language file.

    Returns:
        (nested dict, value positions keyed by key path)

    Raises:
        PhpSyntaxError: If no well-formed array literal is found
    """
    lines = LineIndex(text)
    parser = _PhpArrayParser(_PhpLexer(text).tokens(), lines)
    tree = parser.parse_root()
    return tree, parser.positions
