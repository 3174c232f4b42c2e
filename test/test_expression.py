# SPDX-FileCopyrightText: 2023-2025 Espressif Systems (Shanghai) CO LTD
# SPDX-License-Identifier: Apache-2.0

import pytest

from spdx_parse import (And, Atom, InvalidToken, NotSimpleExpression, Or,
                        UnbalancedParens, With, parse_license_expression,
                        parse_simple_license_expression)
from spdx_parse.libspdx.expression import atoms, license_ids


def test_single_license() -> None:
    assert parse_license_expression('MIT') == Atom('MIT')


def test_or() -> None:
    assert parse_license_expression('MIT OR Apache-2.0') == Or((Atom('MIT'), Atom('Apache-2.0')))


def test_nested_with_or_later_suffix() -> None:
    expected = Or((And((Atom('MIT'), Atom('Apache-2.0'))), Atom('GPL-2.0', or_later=True)))
    assert parse_license_expression('(MIT AND Apache-2.0) OR GPL-2.0-or-later') == expected


def test_with_exception() -> None:
    expected = With(Atom('MIT'), 'Classpath-exception-2.0')
    assert parse_license_expression('MIT WITH Classpath-exception-2.0') == expected


def test_plus_marker() -> None:
    assert parse_license_expression('GPL-2.0+') == Atom('GPL-2.0', True)
    assert parse_license_expression('GPL-2.0+ WITH GCC-exception-2.0') == With(Atom('GPL-2.0', True),
                                                                               'GCC-exception-2.0')


def test_precedence() -> None:
    # AND binds tighter than OR, WITH tighter than AND
    expr = parse_license_expression('MIT OR Apache-2.0 AND GPL-2.0 WITH Classpath-exception-2.0')
    assert expr == Or((Atom('MIT'), And((Atom('Apache-2.0'), With(Atom('GPL-2.0'), 'Classpath-exception-2.0')))))


def test_operator_runs_are_flattened() -> None:
    assert parse_license_expression('MIT AND ISC AND Zlib') == And((Atom('MIT'), Atom('ISC'), Atom('Zlib')))
    assert parse_license_expression('MIT OR (ISC OR Zlib)') == Or((Atom('MIT'), Or((Atom('ISC'), Atom('Zlib')))))


def test_license_refs() -> None:
    expr = parse_license_expression('LicenseRef-foo AND DocumentRef-other:LicenseRef-bar')
    assert expr == And((Atom('LicenseRef-foo'), Atom('DocumentRef-other:LicenseRef-bar')))


def test_keyword_prefixed_id() -> None:
    assert parse_license_expression('ORACLE-1.0 AND ANDROID-1.0') == And((Atom('ORACLE-1.0'), Atom('ANDROID-1.0')))


def test_whitespace_and_newlines() -> None:
    assert parse_license_expression('  (MIT\n  OR\tISC)  ') == Or((Atom('MIT'), Atom('ISC')))


def test_render_reparses() -> None:
    for text in ['MIT', 'GPL-2.0+', 'MIT WITH Classpath-exception-2.0', '(MIT AND ISC) OR Zlib',
                 'MIT AND (ISC OR Zlib) AND (BSD-3-Clause OR (GPL-2.0+ WITH GCC-exception-2.0))']:
        expr = parse_license_expression(text)
        assert parse_license_expression(str(expr)) == expr

    assert str(parse_license_expression('(MIT AND ISC) OR GPL-2.0-or-later')) == '(MIT AND ISC) OR GPL-2.0+'


def test_simple_expression() -> None:
    assert parse_simple_license_expression('MIT') == Atom('MIT')
    assert parse_simple_license_expression('(MIT WITH LLVM-exception)') == With(Atom('MIT'), 'LLVM-exception')

    with pytest.raises(NotSimpleExpression):
        parse_simple_license_expression('MIT AND Apache-2.0')

    with pytest.raises(NotSimpleExpression):
        parse_simple_license_expression('(MIT OR ISC)')


def test_unbalanced_parens() -> None:
    with pytest.raises(UnbalancedParens) as e:
        parse_license_expression('(MIT')
    assert e.value.position == 0

    with pytest.raises(UnbalancedParens) as e:
        parse_license_expression('MIT OR ISC)')
    assert e.value.position == 10


@pytest.mark.parametrize('text,token', [
    ('', ''),
    ('   ', ''),
    ('AND MIT', 'AND'),
    # the first token which cannot continue the expression is reported
    ('MIT OR', 'OR'),
    ('MIT ISC', 'ISC'),
    ('MIT AND OR ISC', 'AND'),
    ('MIT WITH', 'WITH'),
    ('MIT WITH AND', 'WITH'),
    ('MIT $ ISC', '$'),
    ('()', ')'),
])
def test_invalid_token(text: str, token: str) -> None:
    with pytest.raises(InvalidToken) as e:
        parse_license_expression(text)
    assert e.value.value == token


def test_with_requires_license_id() -> None:
    with pytest.raises(InvalidToken):
        parse_license_expression('(MIT OR ISC) WITH Classpath-exception-2.0')


def test_license_ids() -> None:
    expr = parse_license_expression('(MIT AND GPL-2.0+) OR (MIT WITH LLVM-exception)')
    assert license_ids(expr) == ['MIT', 'GPL-2.0']
    assert atoms(expr) == [Atom('MIT'), Atom('GPL-2.0', True), Atom('MIT')]
