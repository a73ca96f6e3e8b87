"""Lexer for the Nexen language.

Lexing happens in two passes:

1. **Grouping**: a Lark basic lexer classifies the raw characters and
   groups runs of the same class into terminals (identifiers, numbers,
   strings, punctuation and operators). Whitespace and `//` comments are
   dropped here and Lark keeps track of line numbers for us.

2. **Classification**: the terminals are mapped onto the language's token
   kinds. Keywords get dedicated kinds (several spellings share one kind,
   e.g. `do`, `then` and `{` all open a block), digit separators are
   removed from numbers, and an identifier written directly in front of a
   parenthesis swallows the whole parenthesised argument list so that
   `name(args)` reaches the parser as a single call-shaped token.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from lark import Lark, Token
from lark.exceptions import UnexpectedCharacters

from .errors import ParseError


NEXEN_TERMINALS = r"""
    start: token*
    ?token: IDENT | NUMBER | STRING | COMPOUND_OPERATOR | OPERATOR
          | LPAREN | RPAREN | LBRACE | RBRACE | COMMA | TERMINATOR

    IDENT: /[A-Za-z_][A-Za-z0-9_]*/
    NUMBER: /[0-9][0-9._]*/
    STRING: /"(?:\\.|[^"\\])*"/
    COMPOUND_OPERATOR: "==" | "!=" | ">=" | "<=" | "&&" | "||" | "+=" | "-=" | "*=" | "/="
    OPERATOR: /[^\w\s";(){},]/
    LPAREN: "("
    RPAREN: ")"
    LBRACE: "{"
    RBRACE: "}"
    COMMA: ","
    TERMINATOR: ";"

    COMMENT: /\/\/[^\n]*/
    WS: /[ \t\r\n]+/
    %ignore WS
    %ignore COMMENT
"""


NEXEN_LEXER = Lark(
    NEXEN_TERMINALS,
    parser='lalr',
    lexer='basic',
)


# Keyword spellings -> (token kind, token value)
KEYWORDS: Dict[str, Tuple[str, str]] = {
    'let': ('LET', 'let'),
    'local': ('LET', 'local'),
    'if': ('IF', 'if'),
    'elseif': ('ELSEIF', 'elseif'),
    'else': ('ELSE', 'else'),
    'while': ('WHILE', 'while'),
    'for': ('FOR', 'for'),
    'function': ('FUNCTION', 'function'),
    'public': ('PUBLIC', 'public'),
    'private': ('PRIVATE', 'private'),
    'protected': ('PROTECTED', 'protected'),
    'be': ('OPERATOR', '='),
    'do': ('BLOCK_BEGIN', '{'),
    'then': ('BLOCK_BEGIN', '{'),
    'end': ('BLOCK_END', '}'),
    'return': ('RETURN', 'return'),
    'loop': ('LOOP', 'loop'),
    'continue': ('CONTINUE', 'continue'),
    'break': ('BREAK', 'break'),
    'true': ('BOOL', 'true'),
    'false': ('BOOL', 'false'),
}

TERMINAL_KINDS = {
    'COMPOUND_OPERATOR': 'OPERATOR',
    'OPERATOR': 'OPERATOR',
    'LBRACE': 'BLOCK_BEGIN',
    'RBRACE': 'BLOCK_END',
}


def find_closing_paren(source: str, open_pos: int) -> int:
    """Return the index of the `)` matching the `(` at `open_pos`, or -1.

    Parentheses inside string literals are ignored.
    """
    depth = 0
    in_string = False
    escape = False
    i = open_pos
    while i < len(source):
        c = source[i]
        if in_string:
            if escape:
                escape = False
            elif c == '\\':
                escape = True
            elif c == '"':
                in_string = False
        elif c == '"':
            in_string = True
        elif c == '(':
            depth += 1
        elif c == ')':
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def classify(raw: Token) -> Token:
    if raw.type == 'IDENT' and raw.value in KEYWORDS:
        kind, value = KEYWORDS[raw.value]
        return Token.new_borrow_pos(kind, value, raw)
    if raw.type == 'NUMBER':
        return Token.new_borrow_pos('NUMBER', raw.value.replace('_', ''), raw)
    if raw.type in TERMINAL_KINDS:
        return Token.new_borrow_pos(TERMINAL_KINDS[raw.type], raw.value, raw)
    return raw


def lex(source: str) -> List[Token]:
    """Convert source text into a list of tokens.

    Every token carries the line it starts on (`token.line`). Raises
    ParseError for characters that cannot start any token and for call
    argument lists that are never closed.
    """
    tokens: List[Token] = []
    skip_until = 0
    try:
        for raw in NEXEN_LEXER.lex(source):
            # tokens inside an argument list already absorbed into a call token
            if raw.start_pos < skip_until:
                continue
            token = classify(raw)
            if token.type == 'IDENT' and source[raw.end_pos:raw.end_pos + 1] == '(':
                close = find_closing_paren(source, raw.end_pos)
                if close < 0:
                    raise ParseError(f"Unclosed argument list for '{raw.value}'", raw.line)
                skip_until = close + 1
                token = Token('IDENT', source[raw.start_pos:skip_until],
                              start_pos=raw.start_pos, line=raw.line, column=raw.column,
                              end_pos=skip_until)
            tokens.append(token)
    except UnexpectedCharacters as e:
        raise ParseError(f"Unexpected character {e.char!r}", e.line) from e
    return tokens


TOKEN_LABELS = {
    'OPERATOR': 'Operator',
    'LET': 'Decl',
    'IDENT': 'Identifier',
    'NUMBER': 'Number',
    'STRING': 'String',
    'BOOL': 'Bool',
    'TERMINATOR': 'EndExpression',
    'BLOCK_BEGIN': 'ScopeBegin',
    'BLOCK_END': 'ScopeEnd',
    'LPAREN': 'OpenParenthesis',
    'RPAREN': 'CloseParenthesis',
    'COMMA': 'Comma',
    'FUNCTION': 'DeclFunction',
    'RETURN': 'ReturnVal',
}


def describe_token(token: Token) -> str:
    """Human readable form used when dumping the token stream."""
    label = TOKEN_LABELS.get(token.type, token.type.capitalize())
    if token.type == 'OPERATOR':
        return f"Token<{label}, '{token.value}'>"
    if token.type == 'IDENT':
        return f'Token<{label}, "{token.value}">'
    return f"Token<{label}, {token.value}>"
