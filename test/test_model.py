# SPDX-FileCopyrightText: 2023-2025 Espressif Systems (Shanghai) CO LTD
# SPDX-License-Identifier: Apache-2.0

import dataclasses
import datetime
from pathlib import Path

import pytest

from spdx_parse import MalformedValue, __version__, parse_tag_value
from spdx_parse.libspdx.model import (Algorithm, Range, RelationshipType,
                                      format_date, new_document, parse_date)

EXAMPLE = Path(__file__).parent / 'data' / 'example-v2.3.spdx'


def test_range() -> None:
    assert str(Range(0, 0)) == '0:0'
    with pytest.raises(ValueError):
        Range(-1, 2)
    with pytest.raises(ValueError):
        Range(5, 4)


def test_immutable() -> None:
    doc = new_document('frozen')
    with pytest.raises(dataclasses.FrozenInstanceError):
        doc.name = 'thawed'  # type: ignore


def test_new_document() -> None:
    doc1 = new_document('project')
    doc2 = new_document('project')
    assert doc1.namespace.startswith('http://spdx.org/spdxdocs/project-')
    assert doc1.namespace != doc2.namespace
    assert doc1.creation_info.creators == (f'Tool: spdx-parse-{__version__}',)
    assert doc1.creation_info.created.tzinfo is not None
    assert doc1.spdx_version == 'SPDX-2.3'
    assert doc1.spdx_id == 'SPDXRef-DOCUMENT'


def test_queries() -> None:
    doc = parse_tag_value(EXAMPLE.read_text())

    assert doc.get_package('SPDXRef-hello-world').name == 'hello-world'  # type: ignore
    assert doc.get_package('SPDXRef-main-c') is None
    assert doc.get_file('SPDXRef-util-c').name == './src/util.c'  # type: ignore

    assert [r.relationship_type for r in doc.relationships_for('SPDXRef-hello-world')] == [
        RelationshipType.DEPENDS_ON, RelationshipType.CONTAINS, RelationshipType.CONTAINS]
    assert [r.spdx_element_id for r in doc.relationships_to('SPDXRef-hello-world')] == ['SPDXRef-DOCUMENT']
    assert [f.spdx_id for f in doc.files_for_package('SPDXRef-hello-world')] == ['SPDXRef-main-c', 'SPDXRef-util-c']
    assert doc.files_for_package('SPDXRef-missing') == []

    assert doc.license_ids() == ['MIT', 'Apache-2.0', 'GPL-2.0', 'LicenseRef-hello']
    assert doc.unique_hashes(Algorithm.SHA1) == {'2fd4e1c67a2d28fced849ee1bb76e7391b93eb12',
                                                 'de9f2c7fd25e1b3afad3e85a0bd17d9b100db4b3'}
    assert doc.unique_hashes(Algorithm.MD5) == {'624c1abb3664f4b35547e7c73864ad24'}
    assert doc.unique_hashes(Algorithm.SHA512) == set()
    assert doc.element_ids() == {'SPDXRef-DOCUMENT', 'SPDXRef-hello-world', 'SPDXRef-main-c',
                                 'SPDXRef-util-c', 'SPDXRef-snippet-1'}


def test_dates() -> None:
    date = parse_date('2010-01-29T18:30:22Z')
    assert date == datetime.datetime(2010, 1, 29, 18, 30, 22, tzinfo=datetime.timezone.utc)
    assert format_date(date) == '2010-01-29T18:30:22Z'

    # Offsets are converted to UTC
    assert format_date(parse_date('2010-01-29T20:30:22+02:00')) == '2010-01-29T18:30:22Z'
    assert format_date(parse_date('2010-01-29T18:30:22.500000Z')) == '2010-01-29T18:30:22.500000Z'

    for value in ['2010-01-29', '2010-01-29T18:30:22', 'today']:
        with pytest.raises(MalformedValue):
            parse_date(value)
