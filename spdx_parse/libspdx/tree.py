# SPDX-FileCopyrightText: 2023-2025 Espressif Systems (Shanghai) CO LTD
# SPDX-License-Identifier: Apache-2.0

"""
Conversion between Document and a tree of dicts and lists using the SPDX
JSON field names. The tree can be serialized with any JSON or YAML library,
helpers using json and PyYAML are provided.

Annotations are stored in the model as a flat list with the annotated SPDX
id. In the tree they are nested into the annotated element. Annotations
referencing an unknown element are placed on the document level.
"""

import datetime
import json
from typing import Any, Callable, Dict, IO, List, Optional

import schema
import yaml
from rich.markup import escape

from spdx_parse.libspdx import log
from spdx_parse.libspdx.errors import MalformedValue, MissingField, ParseError
from spdx_parse.libspdx.expression import (parse_license_expression,
                                           parse_simple_license_expression)
from spdx_parse.libspdx.model import (DOCUMENT_SPDXID, NOASSERTION,
                                      Algorithm, Annotation, AnnotationType,
                                      Checksum, CreationInfo, Document,
                                      ExternalDocumentRef, ExternalRef,
                                      ExternalRefCategory, ExtractedLicense,
                                      File, FileType, Package,
                                      PackageVerificationCode,
                                      PrimaryPackagePurpose, Range,
                                      Relationship, RelationshipType, Snippet,
                                      as_utc, format_date, parse_date)
from spdx_parse.libspdx.tagvalue import enum_value

REQUIRED_KEYS = ['spdxVersion', 'dataLicense', 'name', 'documentNamespace', 'creationInfo']


def _compact(obj: Dict[str, Any]) -> Dict[str, Any]:
    """Remove unset values and empty collections."""
    return {key: value for key, value in obj.items() if value is not None and value != [] and value != {}}


def _str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _date(value: Optional[datetime.datetime]) -> Optional[str]:
    return None if value is None else format_date(value)


def _checksums(checksums: Any) -> List[dict]:
    return [{'algorithm': c.algorithm.value, 'checksumValue': c.value} for c in checksums]


def _annotations(annotations: List[Annotation]) -> List[dict]:
    return [{
        'annotator': a.annotator,
        'annotationDate': format_date(a.date),
        'annotationType': a.annotation_type.value,
        'comment': a.comment,
    } for a in annotations]


def package_to_tree(package: Package, annotations: List[Annotation]) -> dict:
    code = package.verification_code
    verification_code = None
    if code is not None:
        verification_code = _compact({
            'packageVerificationCodeValue': code.value,
            'packageVerificationCodeExcludedFiles': list(code.excluded_files),
        })
    purpose = package.primary_package_purpose
    return _compact({
        'name': package.name,
        'SPDXID': package.spdx_id,
        'versionInfo': package.version,
        'packageFileName': package.file_name,
        'supplier': package.supplier,
        'originator': package.originator,
        'downloadLocation': package.download_location,
        'filesAnalyzed': package.files_analyzed,
        'packageVerificationCode': verification_code,
        'checksums': _checksums(package.checksums),
        'homepage': package.homepage,
        'sourceInfo': package.source_info,
        'licenseConcluded': _str(package.license_concluded),
        'licenseInfoFromFiles': [str(e) for e in package.license_info_from_files],
        'licenseDeclared': _str(package.license_declared),
        'licenseComments': package.license_comments,
        'copyrightText': package.copyright_text,
        'summary': package.summary,
        'description': package.description,
        'comment': package.comment,
        'externalRefs': [_compact({
            'referenceCategory': ref.category.value,
            'referenceType': ref.reference_type,
            'referenceLocator': ref.locator,
            'comment': ref.comment,
        }) for ref in package.external_refs],
        'attributionTexts': list(package.attribution_texts),
        # JSON schema spells purposes with underscore, e.g. OPERATING_SYSTEM
        'primaryPackagePurpose': purpose.value.replace('-', '_') if purpose else None,
        'releaseDate': _date(package.release_date),
        'builtDate': _date(package.built_date),
        'validUntilDate': _date(package.valid_until_date),
        'annotations': _annotations(annotations),
    })


def file_to_tree(file: File, annotations: List[Annotation]) -> dict:
    return _compact({
        'fileName': file.name,
        'SPDXID': file.spdx_id,
        'fileTypes': [t.value for t in file.file_types],
        'checksums': _checksums(file.checksums),
        'licenseConcluded': _str(file.license_concluded),
        'licenseInfoInFiles': [str(e) for e in file.license_info_in_file],
        'licenseComments': file.license_comments,
        'copyrightText': file.copyright_text,
        'comment': file.comment,
        'noticeText': file.notice,
        'fileContributors': list(file.contributors),
        'attributionTexts': list(file.attribution_texts),
        'annotations': _annotations(annotations),
    })


def snippet_to_tree(snippet: Snippet, annotations: List[Annotation]) -> dict:
    ranges = [{
        'startPointer': {'reference': snippet.file_spdx_id, 'offset': snippet.byte_range.start},
        'endPointer': {'reference': snippet.file_spdx_id, 'offset': snippet.byte_range.end},
    }]
    if snippet.line_range is not None:
        ranges.append({
            'startPointer': {'reference': snippet.file_spdx_id, 'lineNumber': snippet.line_range.start},
            'endPointer': {'reference': snippet.file_spdx_id, 'lineNumber': snippet.line_range.end},
        })
    return _compact({
        'SPDXID': snippet.spdx_id,
        'snippetFromFile': snippet.file_spdx_id,
        'ranges': ranges,
        'licenseConcluded': _str(snippet.license_concluded),
        'licenseInfoInSnippets': [str(e) for e in snippet.license_info_in_snippet],
        'licenseComments': snippet.license_comments,
        'copyrightText': snippet.copyright_text,
        'comment': snippet.comment,
        'name': snippet.name,
        'attributionTexts': list(snippet.attribution_texts),
        'annotations': _annotations(annotations),
    })


def document_to_tree(doc: Document) -> Dict[str, Any]:
    """Convert document into a tree with SPDX JSON field names.

    :param doc: document to convert
    :returns: dict ready to be serialized e.g. with json.dumps
    """
    annotated: Dict[str, List[Annotation]] = {spdx_id: [] for spdx_id in doc.element_ids()}
    for annotation in doc.annotations:
        ref = annotation.spdx_ref if annotation.spdx_ref in annotated else doc.spdx_id
        annotated[ref].append(annotation)  # type: ignore

    info = doc.creation_info
    return _compact({
        'spdxVersion': doc.spdx_version,
        'dataLicense': doc.data_license,
        'SPDXID': doc.spdx_id,
        'name': doc.name,
        'documentNamespace': doc.namespace,
        'comment': doc.comment,
        'externalDocumentRefs': [{
            'externalDocumentId': ref.document_ref,
            'spdxDocument': ref.spdx_document,
            'checksum': _checksums([ref.checksum])[0],
        } for ref in doc.external_document_refs],
        'creationInfo': _compact({
            'creators': list(info.creators),
            'created': format_date(info.created),
            'comment': info.comment,
            'licenseListVersion': info.license_list_version,
        }),
        'packages': [package_to_tree(p, annotated[p.spdx_id]) for p in doc.packages],
        'files': [file_to_tree(f, annotated[f.spdx_id]) for f in doc.files],
        'snippets': [snippet_to_tree(s, annotated[s.spdx_id]) for s in doc.snippets],
        'hasExtractedLicensingInfos': [_compact({
            'licenseId': lic.license_id,
            'extractedText': lic.extracted_text,
            'name': lic.name,
            'seeAlsos': list(lic.cross_refs),
            'comment': lic.comment,
        }) for lic in doc.extracted_licenses],
        'relationships': [_compact({
            'spdxElementId': r.spdx_element_id,
            'relationshipType': r.relationship_type.value,
            'relatedSpdxElement': r.related_spdx_element,
            'comment': r.comment,
        }) for r in doc.relationships],
        'annotations': _annotations(annotated[doc.spdx_id]),
    })


def _tree_schema() -> schema.Schema:
    # Dates may be already converted to datetime by the YAML loader.
    date = schema.Or(str, datetime.datetime)
    strings = [str]
    checksums = [{'algorithm': str, 'checksumValue': str}]
    annotations = [{
        'annotator': str,
        'annotationDate': date,
        'annotationType': str,
        'comment': str,
    }]
    pointer = {
        'reference': str,
        schema.Optional('offset'): int,
        schema.Optional('lineNumber'): int,
    }
    package = {
        'name': str,
        schema.Optional('SPDXID'): str,
        schema.Optional('versionInfo'): schema.Or(str, int, float),
        schema.Optional('packageFileName'): str,
        schema.Optional('supplier'): str,
        schema.Optional('originator'): str,
        schema.Optional('downloadLocation'): str,
        schema.Optional('filesAnalyzed'): bool,
        schema.Optional('packageVerificationCode'): {
            'packageVerificationCodeValue': str,
            schema.Optional('packageVerificationCodeExcludedFiles'): strings,
        },
        schema.Optional('checksums'): checksums,
        schema.Optional('homepage'): str,
        schema.Optional('sourceInfo'): str,
        schema.Optional('licenseConcluded'): str,
        schema.Optional('licenseInfoFromFiles'): strings,
        schema.Optional('licenseDeclared'): str,
        schema.Optional('licenseComments'): str,
        schema.Optional('copyrightText'): str,
        schema.Optional('summary'): str,
        schema.Optional('description'): str,
        schema.Optional('comment'): str,
        schema.Optional('externalRefs'): [{
            'referenceCategory': str,
            'referenceType': str,
            'referenceLocator': str,
            schema.Optional('comment'): str,
        }],
        schema.Optional('attributionTexts'): strings,
        schema.Optional('primaryPackagePurpose'): str,
        schema.Optional('releaseDate'): date,
        schema.Optional('builtDate'): date,
        schema.Optional('validUntilDate'): date,
        schema.Optional('annotations'): annotations,
        schema.Optional('hasFiles'): strings,
    }
    file = {
        'fileName': str,
        schema.Optional('SPDXID'): str,
        schema.Optional('fileTypes'): strings,
        schema.Optional('checksums'): checksums,
        schema.Optional('licenseConcluded'): str,
        schema.Optional('licenseInfoInFiles'): strings,
        schema.Optional('licenseComments'): str,
        schema.Optional('copyrightText'): str,
        schema.Optional('comment'): str,
        schema.Optional('noticeText'): str,
        schema.Optional('fileContributors'): strings,
        schema.Optional('attributionTexts'): strings,
        schema.Optional('annotations'): annotations,
    }
    snippet = {
        'SPDXID': str,
        'snippetFromFile': str,
        'ranges': [{'startPointer': pointer, 'endPointer': pointer}],
        schema.Optional('licenseConcluded'): str,
        schema.Optional('licenseInfoInSnippets'): strings,
        schema.Optional('licenseComments'): str,
        schema.Optional('copyrightText'): str,
        schema.Optional('comment'): str,
        schema.Optional('name'): str,
        schema.Optional('attributionTexts'): strings,
        schema.Optional('annotations'): annotations,
    }
    return schema.Schema(
        {
            'spdxVersion': str,
            'dataLicense': str,
            schema.Optional('SPDXID'): str,
            'name': schema.And(str, len),
            'documentNamespace': schema.And(str, len),
            schema.Optional('comment'): str,
            schema.Optional('externalDocumentRefs'): [{
                'externalDocumentId': str,
                'spdxDocument': str,
                'checksum': checksums[0],
            }],
            'creationInfo': {
                'creators': schema.And(strings, len),
                'created': date,
                schema.Optional('comment'): str,
                schema.Optional('licenseListVersion'): schema.Or(str, float),
            },
            schema.Optional('packages'): [package],
            schema.Optional('files'): [file],
            schema.Optional('snippets'): [snippet],
            schema.Optional('hasExtractedLicensingInfos'): [{
                'licenseId': str,
                schema.Optional('extractedText'): str,
                schema.Optional('name'): str,
                schema.Optional('seeAlsos'): strings,
                schema.Optional('comment'): str,
            }],
            schema.Optional('relationships'): [{
                'spdxElementId': str,
                'relationshipType': str,
                'relatedSpdxElement': str,
                schema.Optional('comment'): str,
            }],
            schema.Optional('annotations'): annotations,
            schema.Optional('documentDescribes'): strings,
        }, ignore_extra_keys=True)


TREE_SCHEMA = _tree_schema()


class TreeDecoder:
    """Convert validated tree into Document. Values are converted with the
    same helpers as tag-value input, errors carry the key of the offending
    value."""
    def __init__(self) -> None:
        self.annotations: List[Annotation] = []

    def convert(self, key: str, value: Any, convert: Callable[[Any], Any]) -> Any:
        if value is None:
            return None
        try:
            return convert(value)
        except ParseError as e:
            raise e.locate(None, key)

    def date(self, key: str, value: Any) -> Optional[datetime.datetime]:
        if isinstance(value, datetime.datetime):
            return self.convert(key, value, as_utc)
        return self.convert(key, value, parse_date)

    def enum(self, key: str, value: Any, enum: Any) -> Any:
        return self.convert(key, value, lambda v: enum_value(enum, v))

    def expr(self, key: str, value: Any) -> Any:
        return self.convert(key, value, parse_license_expression)

    def simple_exprs(self, key: str, values: List[str]) -> tuple:
        return tuple(self.convert(key, v, parse_simple_license_expression) for v in values)

    def checksums(self, key: str, checksums: List[dict]) -> tuple:
        return tuple(Checksum(self.enum(f'{key}.algorithm', c['algorithm'], Algorithm), c['checksumValue'])
                     for c in checksums)

    def collect_annotations(self, obj: dict, spdx_id: str) -> None:
        for a in obj.get('annotations', []):
            self.annotations.append(Annotation(a['annotator'],
                                               self.date('annotationDate', a['annotationDate']),
                                               self.enum('annotationType', a['annotationType'], AnnotationType),
                                               a['comment'],
                                               spdx_id))

    def package(self, obj: dict) -> Package:
        code = obj.get('packageVerificationCode')
        verification_code = None
        if code is not None:
            verification_code = PackageVerificationCode(code['packageVerificationCodeValue'],
                                                        tuple(code.get('packageVerificationCodeExcludedFiles', [])))
        package = Package(
            name=obj['name'],
            spdx_id=obj.get('SPDXID', NOASSERTION),
            download_location=obj.get('downloadLocation', NOASSERTION),
            version=_str(obj.get('versionInfo')),
            file_name=obj.get('packageFileName'),
            supplier=obj.get('supplier'),
            originator=obj.get('originator'),
            files_analyzed=obj.get('filesAnalyzed'),
            verification_code=verification_code,
            checksums=self.checksums('checksums', obj.get('checksums', [])),
            homepage=obj.get('homepage'),
            source_info=obj.get('sourceInfo'),
            license_concluded=self.expr('licenseConcluded', obj.get('licenseConcluded')),
            license_info_from_files=tuple(self.expr('licenseInfoFromFiles', e)
                                          for e in obj.get('licenseInfoFromFiles', [])),
            license_declared=self.expr('licenseDeclared', obj.get('licenseDeclared')),
            license_comments=obj.get('licenseComments'),
            copyright_text=obj.get('copyrightText'),
            summary=obj.get('summary'),
            description=obj.get('description'),
            comment=obj.get('comment'),
            external_refs=tuple(ExternalRef(self.enum('referenceCategory', ref['referenceCategory'],
                                                      ExternalRefCategory),
                                            ref['referenceType'], ref['referenceLocator'], ref.get('comment'))
                                for ref in obj.get('externalRefs', [])),
            attribution_texts=tuple(obj.get('attributionTexts', [])),
            primary_package_purpose=self.enum('primaryPackagePurpose', obj.get('primaryPackagePurpose'),
                                              PrimaryPackagePurpose),
            release_date=self.date('releaseDate', obj.get('releaseDate')),
            built_date=self.date('builtDate', obj.get('builtDate')),
            valid_until_date=self.date('validUntilDate', obj.get('validUntilDate')))
        self.collect_annotations(obj, package.spdx_id)
        return package

    def file(self, obj: dict) -> File:
        file = File(
            name=obj['fileName'],
            spdx_id=obj.get('SPDXID', NOASSERTION),
            file_types=tuple(self.enum('fileTypes', t, FileType) for t in obj.get('fileTypes', [])),
            checksums=self.checksums('checksums', obj.get('checksums', [])),
            license_concluded=self.expr('licenseConcluded', obj.get('licenseConcluded')),
            license_info_in_file=self.simple_exprs('licenseInfoInFiles', obj.get('licenseInfoInFiles', [])),
            license_comments=obj.get('licenseComments'),
            copyright_text=obj.get('copyrightText'),
            comment=obj.get('comment'),
            notice=obj.get('noticeText'),
            contributors=tuple(obj.get('fileContributors', [])),
            attribution_texts=tuple(obj.get('attributionTexts', [])))
        self.collect_annotations(obj, file.spdx_id)
        return file

    def snippet(self, obj: dict) -> Snippet:
        byte_range = None
        line_range = None
        for pointers in obj['ranges']:
            start, end = pointers['startPointer'], pointers['endPointer']
            if 'offset' in start and 'offset' in end:
                byte_range = self.range('ranges', start['offset'], end['offset'])
            elif 'lineNumber' in start and 'lineNumber' in end:
                line_range = self.range('ranges', start['lineNumber'], end['lineNumber'])
            else:
                raise MalformedValue(str(pointers), 'range pointers must both have "offset" or "lineNumber"',
                                     tag='ranges')
        if byte_range is None:
            raise MissingField('ranges.offset', owner=f'snippet {obj["SPDXID"]}')

        snippet = Snippet(
            spdx_id=obj['SPDXID'],
            file_spdx_id=obj['snippetFromFile'],
            byte_range=byte_range,
            line_range=line_range,
            license_concluded=self.expr('licenseConcluded', obj.get('licenseConcluded')),
            license_info_in_snippet=self.simple_exprs('licenseInfoInSnippets', obj.get('licenseInfoInSnippets', [])),
            license_comments=obj.get('licenseComments'),
            copyright_text=obj.get('copyrightText'),
            comment=obj.get('comment'),
            name=obj.get('name'),
            attribution_texts=tuple(obj.get('attributionTexts', [])))
        self.collect_annotations(obj, snippet.spdx_id)
        return snippet

    def range(self, key: str, start: int, end: int) -> Range:
        try:
            return Range(start, end)
        except ValueError as e:
            raise MalformedValue(f'{start}:{end}', str(e), tag=key)

    def relationships(self, tree: dict, doc_id: str, packages: List[dict]) -> List[Relationship]:
        relationships = [Relationship(r['spdxElementId'],
                                      self.enum('relationshipType', r['relationshipType'], RelationshipType),
                                      r['relatedSpdxElement'],
                                      r.get('comment'))
                         for r in tree.get('relationships', [])]

        # SPDX 2.2 documentDescribes and hasFiles are shorthands for relationships
        implied = [(doc_id, RelationshipType.DESCRIBES, described)
                   for described in tree.get('documentDescribes', [])]
        for package in packages:
            implied += [(package.get('SPDXID', NOASSERTION), RelationshipType.CONTAINS, file_id)
                        for file_id in package.get('hasFiles', [])]

        present = {(r.spdx_element_id, r.relationship_type, r.related_spdx_element) for r in relationships}
        for rel in implied:
            if rel in present:
                continue
            log.debug(f'adding implied relationship "{escape(rel[0])} {rel[1].value} {escape(rel[2])}"')
            relationships.append(Relationship(*rel))
            present.add(rel)
        return relationships

    def document(self, tree: dict) -> Document:
        for key in REQUIRED_KEYS:
            if key not in tree:
                raise MissingField(key)
        if not isinstance(tree['creationInfo'], dict):
            raise MalformedValue(str(tree['creationInfo']), 'expected a mapping', tag='creationInfo')
        for key in ['creators', 'created']:
            if key not in tree['creationInfo']:
                raise MissingField(f'creationInfo.{key}')

        try:
            TREE_SCHEMA.validate(tree)
        except schema.SchemaError as e:
            raise MalformedValue(str(tree['name']), f'document structure is not valid: {e}')

        doc_id = tree.get('SPDXID', DOCUMENT_SPDXID)
        info = tree['creationInfo']
        creation_info = CreationInfo(creators=tuple(info['creators']),
                                     created=self.date('created', info['created']),
                                     comment=info.get('comment'),
                                     license_list_version=_str(info.get('licenseListVersion')))

        # Document annotations first, then in order of elements.
        self.collect_annotations(tree, doc_id)
        packages = [self.package(p) for p in tree.get('packages', [])]
        files = [self.file(f) for f in tree.get('files', [])]
        snippets = [self.snippet(s) for s in tree.get('snippets', [])]

        log.debug(f'decoded document "{escape(tree["name"])}" with {len(packages)} packages, '
                  f'{len(files)} files and {len(snippets)} snippets')

        return Document(
            spdx_version=tree['spdxVersion'],
            data_license=tree['dataLicense'],
            name=tree['name'],
            namespace=tree['documentNamespace'],
            creation_info=creation_info,
            spdx_id=doc_id,
            comment=tree.get('comment'),
            external_document_refs=tuple(ExternalDocumentRef(
                ref['externalDocumentId'], ref['spdxDocument'],
                self.checksums('externalDocumentRefs.checksum', [ref['checksum']])[0])
                for ref in tree.get('externalDocumentRefs', [])),
            packages=tuple(packages),
            files=tuple(files),
            snippets=tuple(snippets),
            extracted_licenses=tuple(ExtractedLicense(lic['licenseId'],
                                                      lic.get('extractedText', ''),
                                                      lic.get('name', NOASSERTION),
                                                      tuple(lic.get('seeAlsos', [])),
                                                      lic.get('comment'))
                                     for lic in tree.get('hasExtractedLicensingInfos', [])),
            relationships=tuple(self.relationships(tree, doc_id, tree.get('packages', []))),
            annotations=tuple(self.annotations))


def tree_to_document(tree: Dict[str, Any]) -> Document:
    """Convert tree with SPDX JSON field names, e.g. loaded from JSON or YAML,
    into Document.

    :raises MissingField: if a required document key is missing
    :raises MalformedValue: if the tree does not have the expected structure
                            or a value cannot be converted
    """
    if not isinstance(tree, dict):
        raise MalformedValue(type(tree).__name__, 'document must be a mapping')
    return TreeDecoder().document(tree)


def load_json(fp: IO[str]) -> Document:
    try:
        tree = json.load(fp)
    except json.JSONDecodeError as e:
        raise MalformedValue(e.doc[e.pos:e.pos + 20], f'invalid JSON: {e.msg}', line=e.lineno)
    return tree_to_document(tree)


def dump_json(doc: Document, fp: IO[str]) -> None:
    json.dump(document_to_tree(doc), fp, indent=4)


def load_yaml(fp: IO[str]) -> Document:
    try:
        tree = yaml.safe_load(fp)
    except yaml.YAMLError as e:
        raise MalformedValue(getattr(fp, 'name', '<stream>'), f'invalid YAML: {e}')
    return tree_to_document(tree)


def dump_yaml(doc: Document, fp: IO[str]) -> None:
    yaml.safe_dump(document_to_tree(doc), fp, sort_keys=False)
