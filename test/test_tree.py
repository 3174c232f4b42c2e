# SPDX-FileCopyrightText: 2023-2025 Espressif Systems (Shanghai) CO LTD
# SPDX-License-Identifier: Apache-2.0

import copy
import datetime
import io
import json
from dataclasses import replace
from pathlib import Path
from textwrap import dedent
from typing import Any, Dict

import pytest

from spdx_parse import (Atom, Document, MalformedValue, MissingField,
                        NotSimpleExpression, document_to_tree,
                        parse_tag_value, tree_to_document)
from spdx_parse.libspdx.model import (Annotation, AnnotationType,
                                      RelationshipType, new_document)
from spdx_parse.libspdx.tree import dump_json, dump_yaml, load_json, load_yaml

EXAMPLE = Path(__file__).parent / 'data' / 'example-v2.3.spdx'


@pytest.fixture
def example() -> Document:
    return parse_tag_value(EXAMPLE.read_text())


@pytest.fixture
def minimal_tree() -> Dict[str, Any]:
    return {
        'spdxVersion': 'SPDX-2.3',
        'dataLicense': 'CC0-1.0',
        'SPDXID': 'SPDXRef-DOCUMENT',
        'name': 'minimal',
        'documentNamespace': 'http://spdx.org/spdxdocs/minimal-1',
        'creationInfo': {
            'creators': ['Tool: test'],
            'created': '2024-01-01T00:00:00Z',
        },
    }


def test_tree_round_trip(example: Document) -> None:
    assert tree_to_document(document_to_tree(example)) == example


def test_tree_field_names(example: Document) -> None:
    tree = document_to_tree(example)

    assert tree['documentNamespace'] == example.namespace
    assert tree['creationInfo']['created'] == '2024-01-29T18:30:22Z'
    assert tree['annotations'][0]['annotationType'] == 'REVIEW'

    package = tree['packages'][0]
    assert package['versionInfo'] == '1.0.0'
    assert package['licenseConcluded'] == '(MIT AND Apache-2.0) OR GPL-2.0+'
    assert package['packageVerificationCode'] == {
        'packageVerificationCodeValue': 'd6a770ba38583ed4bb4525bd96e50461655d2758',
        'packageVerificationCodeExcludedFiles': ['./package.spdx'],
    }
    assert package['annotations'][0]['annotator'] == 'Tool: scanner-2.0'
    assert package['externalRefs'][1] == {
        'referenceCategory': 'PACKAGE-MANAGER',
        'referenceType': 'purl',
        'referenceLocator': 'pkg:generic/hello-world@1.0.0',
    }

    assert tree['files'][0]['licenseInfoInFiles'] == ['MIT', 'Apache-2.0 WITH LLVM-exception']
    assert tree['snippets'][0]['ranges'] == [
        {'startPointer': {'reference': 'SPDXRef-main-c', 'offset': 310},
         'endPointer': {'reference': 'SPDXRef-main-c', 'offset': 420}},
        {'startPointer': {'reference': 'SPDXRef-main-c', 'lineNumber': 5},
         'endPointer': {'reference': 'SPDXRef-main-c', 'lineNumber': 23}},
    ]
    assert tree['hasExtractedLicensingInfos'][0]['seeAlsos'] == ['https://example.com/hello-license']


def test_unset_fields_are_omitted(minimal_tree: Dict[str, Any]) -> None:
    tree = document_to_tree(tree_to_document(minimal_tree))
    assert tree == minimal_tree

    minimal_tree['packages'] = [{'name': 'foo'}]
    package = document_to_tree(tree_to_document(minimal_tree))['packages'][0]
    assert package == {'name': 'foo', 'SPDXID': 'NOASSERTION', 'downloadLocation': 'NOASSERTION'}


def test_json_round_trip(example: Document) -> None:
    stream = io.StringIO()
    dump_json(example, stream)
    assert json.loads(stream.getvalue()) == document_to_tree(example)
    stream.seek(0)
    assert load_json(stream) == example


def test_yaml_round_trip(example: Document) -> None:
    stream = io.StringIO()
    dump_yaml(example, stream)
    stream.seek(0)
    assert load_yaml(stream) == example


def test_yaml_timestamps(minimal_tree: Dict[str, Any]) -> None:
    # YAML loader converts unquoted dates into datetime objects
    text = dedent('''\
        spdxVersion: SPDX-2.3
        dataLicense: CC0-1.0
        SPDXID: SPDXRef-DOCUMENT
        name: minimal
        documentNamespace: http://spdx.org/spdxdocs/minimal-1
        creationInfo:
          creators:
            - 'Tool: test'
          created: 2024-01-01T00:00:00Z
        ''')
    doc = load_yaml(io.StringIO(text))
    assert doc.creation_info.created == datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc)
    assert doc == tree_to_document(minimal_tree)


def test_missing_keys(minimal_tree: Dict[str, Any]) -> None:
    for key in ['spdxVersion', 'dataLicense', 'name', 'documentNamespace', 'creationInfo']:
        tree = copy.deepcopy(minimal_tree)
        del tree[key]
        with pytest.raises(MissingField) as e:
            tree_to_document(tree)
        assert e.value.tag == key

    del minimal_tree['creationInfo']['created']
    with pytest.raises(MissingField) as e:
        tree_to_document(minimal_tree)
    assert e.value.tag == 'creationInfo.created'


def test_default_document_id(minimal_tree: Dict[str, Any]) -> None:
    del minimal_tree['SPDXID']
    assert tree_to_document(minimal_tree).spdx_id == 'SPDXRef-DOCUMENT'


@pytest.mark.parametrize('key,value', [
    ('packages', [{'versionInfo': '1.0'}]),
    ('packages', [{'name': 'foo', 'filesAnalyzed': 'yes'}]),
    ('files', [{'fileName': 'foo.c', 'checksums': [{'algorithm': 'SHA1'}]}]),
    ('snippets', [{'SPDXID': 'SPDXRef-s', 'snippetFromFile': 'SPDXRef-f', 'ranges': 'all'}]),
    ('relationships', [{'spdxElementId': 'SPDXRef-a', 'relationshipType': 'CONTAINS'}]),
    ('creationInfo', 5),
    ('name', ''),
    ('documentNamespace', ''),
])
def test_malformed_structure(minimal_tree: Dict[str, Any], key: str, value: Any) -> None:
    minimal_tree[key] = value
    with pytest.raises(MalformedValue):
        tree_to_document(minimal_tree)


@pytest.mark.parametrize('key,value,tag', [
    ('packages', [{'name': 'foo', 'primaryPackagePurpose': 'GAME'}], 'primaryPackagePurpose'),
    ('packages', [{'name': 'foo', 'releaseDate': 'yesterday'}], 'releaseDate'),
    ('files', [{'fileName': 'foo.c', 'fileTypes': ['SOURCE', 'MOVIE']}], 'fileTypes'),
    ('relationships', [{'spdxElementId': 'SPDXRef-a', 'relationshipType': 'LIKES',
                        'relatedSpdxElement': 'SPDXRef-b'}], 'relationshipType'),
])
def test_malformed_values(minimal_tree: Dict[str, Any], key: str, value: Any, tag: str) -> None:
    minimal_tree[key] = value
    with pytest.raises(MalformedValue) as e:
        tree_to_document(minimal_tree)
    assert e.value.tag == tag
    assert e.value.line is None


def test_simple_expression_fields(minimal_tree: Dict[str, Any]) -> None:
    minimal_tree['files'] = [{'fileName': 'foo.c', 'licenseInfoInFiles': ['MIT AND ISC']}]
    with pytest.raises(NotSimpleExpression) as e:
        tree_to_document(minimal_tree)
    assert e.value.tag == 'licenseInfoInFiles'

    minimal_tree['files'] = [{'fileName': 'foo.c', 'licenseConcluded': 'MIT AND ISC',
                              'licenseInfoInFiles': ['MIT', 'ISC']}]
    doc = tree_to_document(minimal_tree)
    assert doc.files[0].license_info_in_file == (Atom('MIT'), Atom('ISC'))


def test_invalid_snippet_range(minimal_tree: Dict[str, Any]) -> None:
    pointer = {'reference': 'SPDXRef-f'}
    minimal_tree['snippets'] = [{
        'SPDXID': 'SPDXRef-s',
        'snippetFromFile': 'SPDXRef-f',
        'ranges': [{'startPointer': dict(pointer, offset=20), 'endPointer': dict(pointer, offset=10)}],
    }]
    with pytest.raises(MalformedValue):
        tree_to_document(minimal_tree)

    minimal_tree['snippets'][0]['ranges'] = [{'startPointer': dict(pointer, lineNumber=1),
                                              'endPointer': dict(pointer, lineNumber=2)}]
    with pytest.raises(MissingField):
        tree_to_document(minimal_tree)


def test_spdx_2_2_shorthands(minimal_tree: Dict[str, Any]) -> None:
    minimal_tree['documentDescribes'] = ['SPDXRef-foo']
    minimal_tree['packages'] = [{'name': 'foo', 'SPDXID': 'SPDXRef-foo', 'hasFiles': ['SPDXRef-a', 'SPDXRef-b']}]
    minimal_tree['files'] = [{'fileName': 'a.c', 'SPDXID': 'SPDXRef-a'}, {'fileName': 'b.c', 'SPDXID': 'SPDXRef-b'}]
    minimal_tree['relationships'] = [{'spdxElementId': 'SPDXRef-foo',
                                      'relationshipType': 'CONTAINS',
                                      'relatedSpdxElement': 'SPDXRef-a'}]
    doc = tree_to_document(minimal_tree)
    assert [str(r) for r in doc.relationships] == [
        'SPDXRef-foo CONTAINS SPDXRef-a',
        'SPDXRef-DOCUMENT DESCRIBES SPDXRef-foo',
        'SPDXRef-foo CONTAINS SPDXRef-b',
    ]
    assert [f.name for f in doc.files_for_package('SPDXRef-foo')] == ['a.c', 'b.c']


def test_annotation_placement() -> None:
    date = datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc)
    doc = new_document('annotations')
    doc = replace(doc, annotations=(
        Annotation('Person: A', date, AnnotationType.REVIEW, 'unknown element', 'SPDXRef-missing'),
        Annotation('Person: B', date, AnnotationType.OTHER, 'no element'),
    ))
    tree = document_to_tree(doc)
    assert [a['comment'] for a in tree['annotations']] == ['unknown element', 'no element']

    # Document level annotations reference the document when read back
    assert [a.spdx_ref for a in tree_to_document(tree).annotations] == ['SPDXRef-DOCUMENT', 'SPDXRef-DOCUMENT']


def test_relationship_enum_spelling(minimal_tree: Dict[str, Any]) -> None:
    minimal_tree['relationships'] = [{'spdxElementId': 'SPDXRef-a',
                                      'relationshipType': 'depends-on',
                                      'relatedSpdxElement': 'SPDXRef-b'}]
    assert tree_to_document(minimal_tree).relationships[0].relationship_type is RelationshipType.DEPENDS_ON


def test_readable_by_spdx_tools(example: Document) -> None:
    json_like_dict_parser = pytest.importorskip('spdx_tools.spdx.parser.jsonlikedict.json_like_dict_parser')
    parsed = json_like_dict_parser.JsonLikeDictParser().parse(document_to_tree(example))

    assert parsed.creation_info.name == example.name
    assert parsed.creation_info.document_namespace == example.namespace
    assert [p.name for p in parsed.packages] == [p.name for p in example.packages]
    assert [f.name for f in parsed.files] == [f.name for f in example.files]
    assert len(parsed.relationships) == len(example.relationships)


def test_tag_value_annotations_round_trip() -> None:
    doc = parse_tag_value(dedent('''\
        SPDXVersion: SPDX-2.3
        DataLicense: CC0-1.0
        SPDXID: SPDXRef-DOCUMENT
        DocumentName: test
        DocumentNamespace: http://spdx.org/spdxdocs/test-1
        Creator: Tool: test
        Created: 2024-01-01T00:00:00Z

        FileName: a.c
        SPDXID: SPDXRef-a

        Annotator: Person: A
        AnnotationDate: 2024-01-01T00:00:00Z
        AnnotationType: OTHER
        SPDXREF: SPDXRef-a
        AnnotationComment: file

        Annotator: Person: B
        AnnotationDate: 2024-01-01T00:00:00Z
        AnnotationType: OTHER
        AnnotationComment: document
        '''))
    assert tree_to_document(document_to_tree(doc)) == doc
