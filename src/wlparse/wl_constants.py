"""
Token tables and parser messages shared by the wlparse lexer and parser.

Exports:
    token_hashmap (dict[str, str]): Maps operator and punctuation text to its token type.
        The lexer uses it for longest-match recognition.
    TRIVIA_TOKENS (frozenset[str]): Token types the token cursor skips over
        (whitespace, line breaks and comments).
    GROUPING_PAIRS (dict[str, str]): Opening token type to the matching closing type.
    PARSER_MESSAGES (dict[str, str]): Message bundle for recoverable syntax errors.
    message(key, *args): Formats a message from the bundle.
"""

token_hashmap: dict[str, str] = {
    # Assignment
    "=": "SET",
    ":=": "SET_DELAYED",
    "^=": "UP_SET",
    "^:=": "UP_SET_DELAYED",
    "/:": "TAG_SET",
    "=.": "UNSET",
    "+=": "ADD_TO",
    "-=": "SUBTRACT_FROM",
    "*=": "TIMES_BY",
    "/=": "DIVIDE_BY",
    # Sequencing and functions
    ";": "SEMICOLON",
    ";;": "SPAN",
    "&": "FUNCTION",
    "//": "POSTFIX",
    "@": "PREFIX",
    "/@": "MAP",
    "@@": "APPLY",
    "@@@": "MAP_APPLY",
    "::": "DOUBLE_COLON",
    # Rules and patterns
    "->": "RULE",
    ":>": "RULE_DELAYED",
    "/.": "REPLACE_ALL",
    "//.": "REPLACE_REPEATED",
    "/;": "CONDITION",
    "~~": "STRING_EXPRESSION",
    ":": "COLON",
    "|": "ALTERNATIVES",
    "..": "REPEATED",
    "...": "REPEATED_NULL",
    "?": "QUESTION_MARK",
    "_": "BLANK",
    "__": "BLANK_SEQUENCE",
    "___": "BLANK_NULL_SEQUENCE",
    # Logic and comparison
    "||": "OR",
    "&&": "AND",
    "!": "EXCLAMATION",
    "!!": "FACTORIAL2",
    "==": "EQUAL",
    "!=": "UNEQUAL",
    "===": "SAME_Q",
    "=!=": "UNSAME_Q",
    "<": "LESS",
    ">": "GREATER",
    "<=": "LESS_EQUAL",
    ">=": "GREATER_EQUAL",
    # Arithmetic
    "+": "PLUS",
    "-": "MINUS",
    "*": "TIMES",
    "/": "DIVIDE",
    ".": "DOT",
    "^": "POWER",
    "<>": "STRING_JOIN",
    "++": "INCREMENT",
    "--": "DECREMENT",
    "'": "DERIVATIVE",
    # Grouping
    "[": "LEFT_BRACKET",
    "]": "RIGHT_BRACKET",
    "{": "LEFT_BRACE",
    "}": "RIGHT_BRACE",
    "(": "LEFT_PAR",
    ")": "RIGHT_PAR",
    ",": "COMMA",
}

TRIVIA_TOKENS: frozenset[str] = frozenset({"WHITESPACE", "LINE_BREAK", "COMMENT"})

GROUPING_PAIRS: dict[str, str] = {
    "LEFT_BRACKET": "RIGHT_BRACKET",
    "LEFT_BRACE": "RIGHT_BRACE",
    "LEFT_PAR": "RIGHT_PAR",
}

PARSER_MESSAGES: dict[str, str] = {
    "MessageName.no.symbol.or.string": "Symbol or string expected after '::'",
    "MessageName.arg": "Symbol or string expected after '::'",
    "general.expression.expected": "Expression expected",
    "general.closing.expected": "'{0}' expected",
    "general.unexpected.token": "Unexpected token '{0}'",
    "general.bad.character": "Bad character or unterminated literal '{0}'",
    "TagSet.assignment.expected": "'=' or ':=' expected after tag pattern",
    "Pattern.symbol.expected": "Pattern name must be a symbol",
}


def message(key: str, *args: object) -> str:
    """Looks up a parser message and fills in positional arguments.

    Args:
        key: Bundle key, e.g. ``"MessageName.arg"``.
        *args: Values substituted for ``{0}``, ``{1}``, ...

    Returns:
        The formatted message, or the key itself when it is unknown.
    """
    template = PARSER_MESSAGES.get(key, key)
    return template.format(*args) if args else template


__all__ = [
    "GROUPING_PAIRS",
    "PARSER_MESSAGES",
    "TRIVIA_TOKENS",
    "message",
    "token_hashmap",
]
