# SPDX-FileCopyrightText: 2023-2025 Espressif Systems (Shanghai) CO LTD
# SPDX-License-Identifier: Apache-2.0

"""
Errors reported for malformed SPDX input.

Every error carries enough position information to point the user at the
offending input: the 1-based line number and tag name for tag-value input,
the key for structured input and the offending substring.
"""

from typing import Optional


class ParseError(RuntimeError):
    """Base class for all SPDX parsing errors."""
    def __init__(self, message: str, line: Optional[int]=None, tag: Optional[str]=None,
                 value: Optional[str]=None) -> None:
        super().__init__(message)
        self.message = message
        self.line = line
        self.tag = tag
        self.value = value

    def locate(self, line: Optional[int], tag: Optional[str]) -> 'ParseError':
        """Attach position of the tag-value record the error originates from."""
        self.line = line
        self.tag = tag
        return self

    def __str__(self) -> str:
        prefix = ''
        if self.line is not None:
            prefix += f'line {self.line}: '
        if self.tag:
            prefix += f'{self.tag}: '
        return f'{prefix}{self.message}'


class InvalidToken(ParseError):
    """Unexpected token in a license expression."""
    def __init__(self, value: str, position: Optional[int]=None) -> None:
        if value:
            message = f'invalid token "{value}" in license expression'
        else:
            message = 'empty license expression or unexpected end of expression'
        super().__init__(message, value=value)
        self.position = position


class UnbalancedParens(ParseError):
    """Parenthesis without its matching counterpart."""
    def __init__(self, expression: str, position: int) -> None:
        super().__init__(f'unbalanced parenthesis at position {position} in "{expression}"',
                         value=expression)
        self.position = position


class NotSimpleExpression(ParseError):
    """Compound expression used where only a single license reference is allowed."""
    def __init__(self, expression: str) -> None:
        super().__init__(f'"{expression}" is not a simple license expression, '
                         f'AND/OR composition is not allowed here', value=expression)


class UnknownTag(ParseError):
    def __init__(self, tag: str, line: Optional[int]=None) -> None:
        super().__init__(f'unknown tag "{tag}"', line=line, tag=tag)


class MisplacedTag(ParseError):
    """Tag valid only for a context that is not currently open."""
    def __init__(self, tag: str, line: Optional[int]=None, expected: str='') -> None:
        message = f'tag "{tag}" is not allowed here'
        if expected:
            message += f', it must follow {expected}'
        super().__init__(message, line=line, tag=tag)


class DuplicateField(ParseError):
    def __init__(self, tag: str, line: Optional[int]=None) -> None:
        super().__init__(f'tag "{tag}" specified more than once', line=line, tag=tag)


class MissingField(ParseError):
    def __init__(self, tag: str, line: Optional[int]=None, owner: str='document') -> None:
        super().__init__(f'required field "{tag}" is missing in {owner}', line=line, tag=tag)


class MalformedValue(ParseError):
    """Value does not have the expected shape, e.g. checksum or date."""
    def __init__(self, value: str, reason: str, line: Optional[int]=None,
                 tag: Optional[str]=None) -> None:
        super().__init__(f'malformed value "{value}": {reason}', line=line, tag=tag, value=value)


class UnterminatedTextBlock(ParseError):
    def __init__(self, tag: str, line: int) -> None:
        super().__init__('<text> block opened here is never closed with </text>', line=line, tag=tag)
