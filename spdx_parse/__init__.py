# SPDX-FileCopyrightText: 2023-2025 Espressif Systems (Shanghai) CO LTD
# SPDX-License-Identifier: Apache-2.0

__version__ = '0.1.0'

from spdx_parse.libspdx.errors import (DuplicateField, InvalidToken,  # noqa: E402
                                       MalformedValue, MisplacedTag,
                                       MissingField, NotSimpleExpression,
                                       ParseError, UnbalancedParens,
                                       UnknownTag, UnterminatedTextBlock)
from spdx_parse.libspdx.expression import (And, Atom, Or, With,  # noqa: E402
                                           parse_license_expression,
                                           parse_simple_license_expression)
from spdx_parse.libspdx.model import Document  # noqa: E402
from spdx_parse.libspdx.tagvalue import (document_to_tag_value,  # noqa: E402
                                         parse_tag_value)
from spdx_parse.libspdx.tree import (document_to_tree,  # noqa: E402
                                     tree_to_document)

__all__ = [
    'And', 'Atom', 'Document', 'DuplicateField', 'InvalidToken', 'MalformedValue',
    'MisplacedTag', 'MissingField', 'NotSimpleExpression', 'Or', 'ParseError',
    'UnbalancedParens', 'UnknownTag', 'UnterminatedTextBlock', 'With',
    'document_to_tag_value', 'document_to_tree', 'parse_license_expression',
    'parse_simple_license_expression', 'parse_tag_value', 'tree_to_document',
]
