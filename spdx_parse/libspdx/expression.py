# SPDX-FileCopyrightText: 2023-2025 Espressif Systems (Shanghai) CO LTD
# SPDX-License-Identifier: Apache-2.0

"""
SPDX license expression parser.

SPDX-specification-2-3 Annex D: SPDX License Expressions
  +, WITH, AND, OR  (OR has lowest precedence)

License identifiers are opaque strings here. Checking them against the
SPDX license list is done separately in licensing.py.
"""

from dataclasses import dataclass
from typing import List, Tuple, Union

import pyparsing as pp

from spdx_parse.libspdx.errors import (InvalidToken, NotSimpleExpression,
                                       UnbalancedParens)

# Parse actions used should not have any side effects, ensuring
# the safety of using packrat. Parsing expressions with brackets
# is very slow without caching.
pp.ParserElement.enable_packrat()

OR_LATER_SUFFIX = '-or-later'


@dataclass(frozen=True)
class Atom:
    """Single license reference, e.g. MIT, GPL-2.0+ or LicenseRef-foo."""
    license_id: str
    or_later: bool = False

    def __str__(self) -> str:
        return self.license_id + ('+' if self.or_later else '')


@dataclass(frozen=True)
class With:
    license: Atom
    exception: str

    def __str__(self) -> str:
        return f'{self.license} WITH {self.exception}'


@dataclass(frozen=True)
class And:
    args: Tuple['Expression', ...]

    def __str__(self) -> str:
        return ' AND '.join(_operand_str(arg) for arg in self.args)


@dataclass(frozen=True)
class Or:
    args: Tuple['Expression', ...]

    def __str__(self) -> str:
        return ' OR '.join(_operand_str(arg) for arg in self.args)


Expression = Union[Atom, With, And, Or]
SimpleExpression = Union[Atom, With]


def _operand_str(expr: Expression) -> str:
    # Compound operands are always parenthesized, so the rendered text
    # parses back into the very same tree.
    if isinstance(expr, (And, Or)):
        return f'({expr})'
    return str(expr)


def make_atom(token: str) -> Atom:
    """Create Atom from license id token, which may carry the "+" or
    "-or-later" or-later marker."""
    if token.endswith('+'):
        return Atom(token[:-1], True)
    if token.endswith(OR_LATER_SUFFIX) and len(token) > len(OR_LATER_SUFFIX):
        return Atom(token[:-len(OR_LATER_SUFFIX)], True)
    return Atom(token)


def _make_with(toks: pp.ParseResults) -> SimpleExpression:
    if len(toks) == 2:
        return With(toks[0], toks[1])
    return toks[0]  # type: ignore


def _make_and(toks: pp.ParseResults) -> And:
    # The tokens include, for example, [MIT, 'AND', ISC, 'AND', Zlib].
    return And(tuple(toks[0][0::2]))


def _make_or(toks: pp.ParseResults) -> Or:
    return Or(tuple(toks[0][0::2]))


# Keywords must not match a prefix of an identifier like "ANDROID-1.0".
_ID_CHARS = pp.alphanums + '-.+:'
_AND = pp.Keyword('AND', ident_chars=_ID_CHARS)
_OR = pp.Keyword('OR', ident_chars=_ID_CHARS)
_WITH = pp.Keyword('WITH', ident_chars=_ID_CHARS)
_keyword = _AND | _OR | _WITH

# idstring = 1*(ALPHA / DIGIT / "-" / "." ), optionally DocumentRef-x: prefixed
_license_id = ~_keyword + pp.Regex(r'[A-Za-z0-9.\-]+(:[A-Za-z0-9.\-]+)?\+?').set_parse_action(
    lambda t: make_atom(t[0]))
_exception_id = ~_keyword + pp.Regex(r'[A-Za-z0-9.\-]+(:[A-Za-z0-9.\-]+)?')
_with_expr = (_license_id + pp.Optional(_WITH.suppress() + _exception_id)).set_parse_action(_make_with)

_expr = pp.infix_notation(
    _with_expr,
    [
        (_AND, 2, pp.OpAssoc.LEFT, _make_and),
        (_OR, 2, pp.OpAssoc.LEFT, _make_or),
    ])


def _check_parens(text: str) -> None:
    opened: List[int] = []
    for pos, char in enumerate(text):
        if char == '(':
            opened.append(pos)
        elif char == ')':
            if not opened:
                raise UnbalancedParens(text, pos)
            opened.pop()
    if opened:
        raise UnbalancedParens(text, opened[-1])


def _token_at(text: str, pos: int) -> Tuple[str, int]:
    """Return the token starting at or after pos and its position."""
    while pos < len(text) and text[pos].isspace():
        pos += 1
    if pos >= len(text):
        return ('', pos)
    if text[pos] in '()':
        return (text[pos], pos)
    end = pos
    while end < len(text) and not text[end].isspace() and text[end] not in '()':
        end += 1
    return (text[pos:end], pos)


def parse_license_expression(text: str) -> Expression:
    """Parse license expression into expression tree.

    :param text: license expression, e.g. "(MIT AND Apache-2.0) OR GPL-2.0+"
    :returns:    Atom, With, And or Or node
    :raises InvalidToken: on empty input, stray operator or unexpected character
    :raises UnbalancedParens: on parenthesis without its counterpart
    """
    if not text.strip():
        raise InvalidToken('', 0)

    _check_parens(text)

    try:
        res = _expr.parse_string(text, parse_all=True)
    except pp.ParseBaseException as e:
        token, pos = _token_at(text, e.loc)
        raise InvalidToken(token, pos)
    return res[0]  # type: ignore


def parse_simple_license_expression(text: str) -> SimpleExpression:
    """Parse license expression, which may reference only a single license,
    optionally with an exception. Valid compound expressions are rejected
    with NotSimpleExpression."""
    parsed = parse_license_expression(text)
    if isinstance(parsed, (And, Or)):
        raise NotSimpleExpression(text)
    return parsed


def license_ids(expr: Expression) -> List[str]:
    """Return license ids referenced in expression in order of appearance.
    Exceptions are not included."""
    if isinstance(expr, Atom):
        return [expr.license_id]
    if isinstance(expr, With):
        return [expr.license.license_id]
    ids: List[str] = []
    for arg in expr.args:
        for license_id in license_ids(arg):
            if license_id not in ids:
                ids.append(license_id)
    return ids


def atoms(expr: Expression) -> List[Atom]:
    """Return all license atoms found in expression."""
    if isinstance(expr, Atom):
        return [expr]
    if isinstance(expr, With):
        return [expr.license]
    return [atom for arg in expr.args for atom in atoms(arg)]
