# SPDX-FileCopyrightText: 2023-2025 Espressif Systems (Shanghai) CO LTD
# SPDX-License-Identifier: Apache-2.0

"""
Check license ids used in a document against the SPDX license list.

The parsers treat license ids as opaque strings. This is an optional check,
which uses the SPDX license list bundled with the license-expression package.
"""

from typing import Dict, List

from license_expression import ExpressionError, get_spdx_licensing
from rich.markup import escape

from spdx_parse.libspdx import log
from spdx_parse.libspdx.errors import MalformedValue
from spdx_parse.libspdx.expression import Atom, Expression, With
from spdx_parse.libspdx.model import NOASSERTION, NONE, Document

licensing = get_spdx_licensing()


def _is_local(license_id: str) -> bool:
    # Document local licenses and references into external documents
    # cannot be checked against the license list.
    return (license_id in (NONE, NOASSERTION) or license_id.startswith('LicenseRef-')
            or license_id.startswith('DocumentRef-'))


def _simple_expressions(expr: Expression) -> List[str]:
    if isinstance(expr, Atom):
        return [] if _is_local(expr.license_id) else [expr.license_id]
    if isinstance(expr, With):
        if _is_local(expr.license.license_id):
            return []
        return [f'{expr.license.license_id} WITH {expr.exception}']
    return [simple for arg in expr.args for simple in _simple_expressions(arg)]


def unknown_license_ids(expr: Expression) -> List[str]:
    """Return license and exception ids from the expression, which are not on
    the SPDX license list. The or-later marker is not part of the id."""
    unknown: List[str] = []
    for simple in _simple_expressions(expr):
        try:
            keys = licensing.unknown_license_keys(simple)
        except ExpressionError as e:
            raise MalformedValue(simple, f'cannot check license: {e}')
        unknown += [key for key in keys if key not in unknown]
    return unknown


def find_unknown_licenses(doc: Document) -> Dict[str, List[str]]:
    """Check license fields of all packages, files and snippets.

    :param doc: document to check
    :returns: dict with SPDX id of the element as key and list of unknown
              license ids as value, elements without unknown ids are not included
    """
    result: Dict[str, List[str]] = {}

    def check(spdx_id: str, exprs: List[Expression]) -> None:
        for expr in exprs:
            for key in unknown_license_ids(expr):
                ids = result.setdefault(spdx_id, [])
                if key not in ids:
                    ids.append(key)
                    log.debug(f'license "{escape(key)}" used by "{escape(spdx_id)}" is not on the SPDX license list')

    for package in doc.packages:
        exprs = [e for e in (package.license_concluded, package.license_declared) if e is not None]
        check(package.spdx_id, exprs + list(package.license_info_from_files))
    for file in doc.files:
        exprs = [file.license_concluded] if file.license_concluded is not None else []
        check(file.spdx_id, exprs + list(file.license_info_in_file))
    for snippet in doc.snippets:
        exprs = [snippet.license_concluded] if snippet.license_concluded is not None else []
        check(snippet.spdx_id, exprs + list(snippet.license_info_in_snippet))

    return result
