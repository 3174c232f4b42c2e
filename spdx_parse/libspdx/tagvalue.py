# SPDX-FileCopyrightText: 2023-2025 Espressif Systems (Shanghai) CO LTD
# SPDX-License-Identifier: Apache-2.0

"""
SPDX tag-value format parser and writer.

The input is scanned line by line into (line, tag, value) records. Records
are dispatched to the currently open element: package, file, snippet or
extracted license. Tags opening a new element close the current one, which
is then converted into an immutable model object and appended to the
document collections. Nothing is added to the Document until the whole
input is parsed, so no partially built document is ever exposed.

Errors are reported on the first problem found with the line number and
tag name of the offending record.
"""

import re
from dataclasses import replace
from enum import Enum
from typing import (Any, Callable, Dict, Iterator, List, NamedTuple, Optional,
                    Tuple, Type)

from rich.markup import escape

from spdx_parse.libspdx import log
from spdx_parse.libspdx.errors import (DuplicateField, MalformedValue,
                                       MisplacedTag, MissingField, ParseError,
                                       UnknownTag, UnterminatedTextBlock)
from spdx_parse.libspdx.expression import (parse_license_expression,
                                           parse_simple_license_expression)
from spdx_parse.libspdx.model import (DOCUMENT_SPDXID, NOASSERTION, NONE,
                                      SUPPORTED_VERSIONS, Algorithm,
                                      Annotation, AnnotationType,
                                      Checksum, CreationInfo, Document,
                                      ExternalDocumentRef, ExternalRef,
                                      ExternalRefCategory, ExtractedLicense,
                                      File, FileType, Package,
                                      PackageVerificationCode,
                                      PrimaryPackagePurpose, Range,
                                      Relationship, RelationshipType, Snippet,
                                      format_date, parse_date)

TAG_RE = re.compile(r'^\s*([A-Za-z0-9_]+)\s*:(.*)$')
TEXT_OPEN = '<text>'
TEXT_CLOSE = '</text>'


class Context(Enum):
    DOCUMENT = 'document'
    PACKAGE = 'package'
    FILE = 'file'
    SNIPPET = 'snippet'
    LICENSE = 'extracted license'
    ANNOTATION = 'annotation'


class Record(NamedTuple):
    line: int
    tag: str
    value: str
    text: bool


def scan(text: str) -> Iterator[Record]:
    """Split tag-value text into records. Blank and comment lines are skipped.
    Value of a <text> block is returned verbatim, possibly spanning several lines.

    :raises MalformedValue: for a line which is not a comment nor a tag line
    :raises UnterminatedTextBlock: if <text> is not closed until end of input
    """
    lines = text.splitlines()
    idx = 0
    while idx < len(lines):
        line = lines[idx]
        lineno = idx + 1
        idx += 1

        stripped = line.strip()
        if not stripped or stripped.startswith('#'):
            continue

        match = TAG_RE.match(line)
        if not match:
            raise MalformedValue(stripped, 'expected "Tag: Value" line', line=lineno)

        tag, value = match.group(1), match.group(2).lstrip()
        if not value.startswith(TEXT_OPEN):
            yield Record(lineno, tag, value.strip(), False)
            continue

        rest = value[len(TEXT_OPEN):]
        chunks = []
        while TEXT_CLOSE not in rest:
            chunks.append(rest)
            if idx >= len(lines):
                raise UnterminatedTextBlock(tag, lineno)
            rest = lines[idx]
            idx += 1

        content, trailing = rest.split(TEXT_CLOSE, 1)
        if trailing.strip():
            raise MalformedValue(trailing.strip(), f'unexpected text after {TEXT_CLOSE}', line=idx, tag=tag)
        chunks.append(content)
        yield Record(lineno, tag, '\n'.join(chunks), True)


def enum_value(enum: Type[Enum], value: str) -> Any:
    """Find enum member by its SPDX spelling. Case and the use of "-" or "_"
    as word separator do not matter."""
    normalized = value.strip().upper().replace('_', '-')
    for member in enum:
        if member.value.upper().replace('_', '-') == normalized:
            return member
    choices = ', '.join(member.value for member in enum)
    raise MalformedValue(value, f'expected one of {choices}')


def parse_checksum(value: str) -> Checksum:
    """Parse checksum, e.g. "SHA1: 85ed0817af83a24ad8da68c2b5094de69833983c"."""
    algorithm, sep, digest = value.partition(':')
    digest = digest.strip()
    if not sep or not re.fullmatch(r'[0-9a-fA-F]+', digest):
        raise MalformedValue(value, 'expected checksum in "ALGORITHM: hexdigest" format')
    return Checksum(enum_value(Algorithm, algorithm), digest)


def parse_verification_code(value: str) -> PackageVerificationCode:
    """Parse package verification code, e.g.
    "d6a770ba38583ed4bb4525bd96e50461655d2758 (excludes: ./package.spdx)"."""
    match = re.fullmatch(r'([0-9a-fA-F]+)\s*(?:\(\s*excludes:(.*)\))?', value.strip())
    if not match:
        raise MalformedValue(value, 'expected "hexdigest (excludes: file, ...)" format')
    excluded: Tuple[str, ...] = ()
    if match.group(2) is not None:
        excluded = tuple(f.strip() for f in match.group(2).split(',') if f.strip())
    return PackageVerificationCode(match.group(1), excluded)


def parse_external_ref(value: str) -> ExternalRef:
    """Parse external reference, e.g. "SECURITY cpe23Type cpe:2.3:a:...:*"."""
    parts = value.split(None, 2)
    if len(parts) != 3:
        raise MalformedValue(value, 'expected "CATEGORY type locator" format')
    return ExternalRef(enum_value(ExternalRefCategory, parts[0]), parts[1], parts[2])


def parse_external_document_ref(value: str) -> ExternalDocumentRef:
    """Parse external document reference, e.g.
    "DocumentRef-spdx-tool-1.2 http://spdx.org/spdxdocs/... SHA1: d6a7..."."""
    parts = value.split(None, 2)
    if len(parts) != 3 or not parts[0].startswith('DocumentRef-'):
        raise MalformedValue(value, 'expected "DocumentRef-id document-uri ALGORITHM: hexdigest" format')
    return ExternalDocumentRef(parts[0], parts[1], parse_checksum(parts[2]))


def parse_relationship(value: str) -> Relationship:
    """Parse relationship, e.g. "SPDXRef-DOCUMENT DESCRIBES SPDXRef-Package"."""
    parts = value.split()
    if len(parts) != 3:
        raise MalformedValue(value, 'expected "SPDXRef-A TYPE SPDXRef-B" format')
    return Relationship(parts[0], enum_value(RelationshipType, parts[1]), parts[2])


def parse_range(value: str) -> Range:
    match = re.fullmatch(r'(\d+)\s*:\s*(\d+)', value.strip())
    if not match:
        raise MalformedValue(value, 'expected range in "start:end" format')
    try:
        return Range(int(match.group(1)), int(match.group(2)))
    except ValueError as e:
        raise MalformedValue(value, str(e))


def parse_bool(value: str) -> bool:
    if value.lower() == 'true':
        return True
    if value.lower() == 'false':
        return False
    raise MalformedValue(value, 'expected "true" or "false"')


def parse_spdx_version(value: str) -> str:
    if not re.fullmatch(r'SPDX-\d+\.\d+', value):
        raise MalformedValue(value, 'expected version in "SPDX-M.N" format')
    if value not in SUPPORTED_VERSIONS:
        log.warn(f'SPDX version "{escape(value)}" is not supported, supported versions are: '
                 f'{", ".join(SUPPORTED_VERSIONS)}')
    return value


def _text(value: str) -> str:
    return value


def _enum(enum: Type[Enum]) -> Callable[[str], Any]:
    return lambda value: enum_value(enum, value)


class Field(NamedTuple):
    context: Context
    attr: str
    convert: Callable[[str], Any]
    multi: bool = False


# Tags which open a new element
OPENERS = {
    Context.PACKAGE: 'PackageName',
    Context.FILE: 'FileName',
    Context.SNIPPET: 'SnippetSPDXID',
    Context.LICENSE: 'LicenseID',
}

FIELDS: Dict[str, Field] = {
    # SPDX-specification-2-3 6: Document creation information
    'SPDXVersion': Field(Context.DOCUMENT, 'spdx_version', parse_spdx_version),
    'DataLicense': Field(Context.DOCUMENT, 'data_license', _text),
    'DocumentName': Field(Context.DOCUMENT, 'name', _text),
    'DocumentNamespace': Field(Context.DOCUMENT, 'namespace', _text),
    'DocumentComment': Field(Context.DOCUMENT, 'comment', _text),
    'ExternalDocumentRef': Field(Context.DOCUMENT, 'external_document_refs', parse_external_document_ref, True),
    'LicenseListVersion': Field(Context.DOCUMENT, 'license_list_version', _text),
    'Creator': Field(Context.DOCUMENT, 'creators', _text, True),
    'Created': Field(Context.DOCUMENT, 'created', parse_date),
    'CreatorComment': Field(Context.DOCUMENT, 'creator_comment', _text),

    # SPDX-specification-2-3 7: Package information
    'PackageName': Field(Context.PACKAGE, 'name', _text),
    'PackageVersion': Field(Context.PACKAGE, 'version', _text),
    'PackageFileName': Field(Context.PACKAGE, 'file_name', _text),
    'PackageSupplier': Field(Context.PACKAGE, 'supplier', _text),
    'PackageOriginator': Field(Context.PACKAGE, 'originator', _text),
    'PackageDownloadLocation': Field(Context.PACKAGE, 'download_location', _text),
    'FilesAnalyzed': Field(Context.PACKAGE, 'files_analyzed', parse_bool),
    'PackageVerificationCode': Field(Context.PACKAGE, 'verification_code', parse_verification_code),
    'PackageChecksum': Field(Context.PACKAGE, 'checksums', parse_checksum, True),
    'PackageHomePage': Field(Context.PACKAGE, 'homepage', _text),
    'PackageSourceInfo': Field(Context.PACKAGE, 'source_info', _text),
    'PackageLicenseConcluded': Field(Context.PACKAGE, 'license_concluded', parse_license_expression),
    'PackageLicenseInfoFromFiles': Field(Context.PACKAGE, 'license_info_from_files', parse_license_expression, True),
    'PackageLicenseDeclared': Field(Context.PACKAGE, 'license_declared', parse_license_expression),
    'PackageLicenseComments': Field(Context.PACKAGE, 'license_comments', _text),
    'PackageCopyrightText': Field(Context.PACKAGE, 'copyright_text', _text),
    'PackageSummary': Field(Context.PACKAGE, 'summary', _text),
    'PackageDescription': Field(Context.PACKAGE, 'description', _text),
    'PackageComment': Field(Context.PACKAGE, 'comment', _text),
    'ExternalRef': Field(Context.PACKAGE, 'external_refs', parse_external_ref, True),
    'PackageAttributionText': Field(Context.PACKAGE, 'attribution_texts', _text, True),
    'PrimaryPackagePurpose': Field(Context.PACKAGE, 'primary_package_purpose', _enum(PrimaryPackagePurpose)),
    'ReleaseDate': Field(Context.PACKAGE, 'release_date', parse_date),
    'BuiltDate': Field(Context.PACKAGE, 'built_date', parse_date),
    'ValidUntilDate': Field(Context.PACKAGE, 'valid_until_date', parse_date),

    # SPDX-specification-2-3 8: File information
    'FileName': Field(Context.FILE, 'name', _text),
    'FileType': Field(Context.FILE, 'file_types', _enum(FileType), True),
    'FileChecksum': Field(Context.FILE, 'checksums', parse_checksum, True),
    'LicenseConcluded': Field(Context.FILE, 'license_concluded', parse_license_expression),
    'LicenseInfoInFile': Field(Context.FILE, 'license_info_in_file', parse_simple_license_expression, True),
    'LicenseComments': Field(Context.FILE, 'license_comments', _text),
    'FileCopyrightText': Field(Context.FILE, 'copyright_text', _text),
    'FileComment': Field(Context.FILE, 'comment', _text),
    'FileNotice': Field(Context.FILE, 'notice', _text),
    'FileContributor': Field(Context.FILE, 'contributors', _text, True),
    'FileAttributionText': Field(Context.FILE, 'attribution_texts', _text, True),

    # SPDX-specification-2-3 9: Snippet information
    'SnippetSPDXID': Field(Context.SNIPPET, 'spdx_id', _text),
    'SnippetFromFileSPDXID': Field(Context.SNIPPET, 'file_spdx_id', _text),
    'SnippetByteRange': Field(Context.SNIPPET, 'byte_range', parse_range),
    'SnippetLineRange': Field(Context.SNIPPET, 'line_range', parse_range),
    'SnippetLicenseConcluded': Field(Context.SNIPPET, 'license_concluded', parse_license_expression),
    'LicenseInfoInSnippet': Field(Context.SNIPPET, 'license_info_in_snippet', parse_simple_license_expression, True),
    'SnippetLicenseComments': Field(Context.SNIPPET, 'license_comments', _text),
    'SnippetCopyrightText': Field(Context.SNIPPET, 'copyright_text', _text),
    'SnippetComment': Field(Context.SNIPPET, 'comment', _text),
    'SnippetName': Field(Context.SNIPPET, 'name', _text),
    'SnippetAttributionText': Field(Context.SNIPPET, 'attribution_texts', _text, True),

    # SPDX-specification-2-3 10: Other licensing information detected
    'LicenseID': Field(Context.LICENSE, 'license_id', _text),
    'ExtractedText': Field(Context.LICENSE, 'extracted_text', _text),
    'LicenseName': Field(Context.LICENSE, 'name', _text),
    'LicenseCrossReference': Field(Context.LICENSE, 'cross_refs', _text, True),
    'LicenseComment': Field(Context.LICENSE, 'comment', _text),

    # SPDX-specification-2-3 12: Annotations
    'Annotator': Field(Context.ANNOTATION, 'annotator', _text),
    'AnnotationDate': Field(Context.ANNOTATION, 'date', parse_date),
    'AnnotationType': Field(Context.ANNOTATION, 'annotation_type', _enum(AnnotationType)),
    'AnnotationComment': Field(Context.ANNOTATION, 'comment', _text),
    'SPDXREF': Field(Context.ANNOTATION, 'spdx_ref', _text),
}

# Tags handled directly by the parser, they are not bound to a single context.
SPECIAL_TAGS = ['SPDXID', 'ExternalRefComment', 'Relationship', 'RelationshipComment']

CANONICAL_TAGS = {tag.lower(): tag for tag in list(FIELDS) + SPECIAL_TAGS}

# Empty <text></text> is allowed for free-form text, but not for these.
NON_EMPTY_TAGS = ['DocumentName', 'DocumentNamespace']

ELEMENT_TYPES: Dict[Context, Type] = {
    Context.PACKAGE: Package,
    Context.FILE: File,
    Context.SNIPPET: Snippet,
    Context.LICENSE: ExtractedLicense,
    Context.ANNOTATION: Annotation,
}

REQUIRED_FIELDS: Dict[Context, List[str]] = {
    Context.DOCUMENT: ['SPDXVersion', 'DataLicense', 'DocumentName', 'DocumentNamespace', 'Creator', 'Created'],
    Context.SNIPPET: ['SnippetFromFileSPDXID', 'SnippetByteRange'],
    Context.ANNOTATION: ['Annotator', 'AnnotationDate', 'AnnotationType', 'AnnotationComment'],
}

CREATION_INFO_ATTRS = {
    'creators': 'creators',
    'created': 'created',
    'creator_comment': 'comment',
    'license_list_version': 'license_list_version',
}


class Builder:
    """Values collected for one element. Multi-valued fields are lists."""
    def __init__(self, context: Context, line: int) -> None:
        self.context = context
        self.line = line
        self.values: Dict[str, Any] = {}

    def set(self, field: Field, record: Record, value: Any) -> None:
        if field.multi:
            self.values.setdefault(field.attr, []).append(value)
            return
        if field.attr in self.values:
            raise DuplicateField(record.tag, record.line)
        self.values[field.attr] = value

    def check_required(self) -> None:
        for tag in REQUIRED_FIELDS.get(self.context, []):
            if FIELDS[tag].attr not in self.values:
                line = None if self.context is Context.DOCUMENT else self.line
                raise MissingField(tag, line, self.context.value)

    def kwargs(self) -> Dict[str, Any]:
        return {attr: tuple(value) if isinstance(value, list) else value
                for attr, value in self.values.items()}

    def build(self) -> Any:
        self.check_required()
        return ELEMENT_TYPES[self.context](**self.kwargs())


class TagValueParser:
    def __init__(self) -> None:
        self.document = Builder(Context.DOCUMENT, 1)
        self.element: Optional[Builder] = None
        self.annotation: Optional[Builder] = None
        self.elements: Dict[Context, List[Any]] = {context: [] for context in ELEMENT_TYPES}
        self.relationships: List[Relationship] = []
        self.last_package_id: Optional[str] = None
        # (package SPDX id, file SPDX id) for files listed after a package
        self.implied: List[Tuple[str, str]] = []

    @property
    def context(self) -> Context:
        return self.element.context if self.element else Context.DOCUMENT

    def close_element(self) -> None:
        if self.element is None:
            return
        obj = self.element.build()
        self.elements[self.element.context].append(obj)
        if isinstance(obj, Package):
            self.last_package_id = obj.spdx_id
        elif isinstance(obj, File) and self.last_package_id is not None:
            self.implied.append((self.last_package_id, obj.spdx_id))
        self.element = None

    def close_annotation(self) -> None:
        if self.annotation is None:
            return
        self.elements[Context.ANNOTATION].append(self.annotation.build())
        self.annotation = None

    def feed(self, record: Record) -> None:
        tag = CANONICAL_TAGS.get(record.tag.lower())
        if tag is None:
            raise UnknownTag(record.tag, record.line)
        record = record._replace(tag=tag)

        if not record.value.strip() and (not record.text or tag in NON_EMPTY_TAGS):
            raise MalformedValue(record.value, 'empty value', record.line, tag)

        if tag in SPECIAL_TAGS:
            self.feed_special(record)
            return

        field = FIELDS[tag]
        try:
            value = field.convert(record.value)
        except ParseError as e:
            raise e.locate(record.line, tag)

        if tag == OPENERS.get(field.context):
            self.close_annotation()
            self.close_element()
            log.debug(f'line {record.line}: opening {field.context.value} "{escape(record.value)}"')
            self.element = Builder(field.context, record.line)
        elif tag == 'Annotator':
            self.close_annotation()
            self.annotation = Builder(Context.ANNOTATION, record.line)

        if field.context is Context.DOCUMENT:
            builder = self.document
        elif field.context is Context.ANNOTATION:
            if self.annotation is None:
                raise MisplacedTag(tag, record.line, 'Annotator')
            builder = self.annotation
        elif field.context is self.context:
            builder = self.element  # type: ignore
        else:
            raise MisplacedTag(tag, record.line, OPENERS[field.context])

        builder.set(field, record, value)

    def feed_special(self, record: Record) -> None:
        tag, line = record.tag, record.line
        if tag == 'SPDXID':
            if self.context is Context.DOCUMENT:
                builder = self.document
            elif self.context in (Context.PACKAGE, Context.FILE):
                builder = self.element  # type: ignore
            else:
                raise MisplacedTag(tag, line, 'PackageName or FileName')
            builder.set(Field(self.context, 'spdx_id', _text), record, record.value)

        elif tag == 'ExternalRefComment':
            if self.context is not Context.PACKAGE or not self.element.values.get('external_refs'):  # type: ignore
                raise MisplacedTag(tag, line, 'ExternalRef')
            refs = self.element.values['external_refs']  # type: ignore
            if refs[-1].comment is not None:
                raise DuplicateField(tag, line)
            refs[-1] = replace(refs[-1], comment=record.value)

        elif tag == 'Relationship':
            try:
                self.relationships.append(parse_relationship(record.value))
            except ParseError as e:
                raise e.locate(line, tag)

        elif tag == 'RelationshipComment':
            if not self.relationships:
                raise MisplacedTag(tag, line, 'Relationship')
            if self.relationships[-1].comment is not None:
                raise DuplicateField(tag, line)
            self.relationships[-1] = replace(self.relationships[-1], comment=record.value)

    def add_implied_relationships(self) -> None:
        present = {(r.spdx_element_id, r.relationship_type, r.related_spdx_element) for r in self.relationships}
        for package_id, file_id in self.implied:
            if (package_id, RelationshipType.CONTAINS, file_id) in present:
                continue
            log.debug(f'file "{escape(file_id)}" listed after package "{escape(package_id)}", '
                      f'adding CONTAINS relationship')
            self.relationships.append(Relationship(package_id, RelationshipType.CONTAINS, file_id))
            present.add((package_id, RelationshipType.CONTAINS, file_id))

    def finish(self) -> Document:
        self.close_annotation()
        self.close_element()
        self.document.check_required()
        self.add_implied_relationships()

        doc_kwargs = self.document.kwargs()
        info_kwargs = {CREATION_INFO_ATTRS[attr]: doc_kwargs.pop(attr)
                       for attr in list(doc_kwargs) if attr in CREATION_INFO_ATTRS}

        return Document(creation_info=CreationInfo(**info_kwargs),
                        packages=tuple(self.elements[Context.PACKAGE]),
                        files=tuple(self.elements[Context.FILE]),
                        snippets=tuple(self.elements[Context.SNIPPET]),
                        extracted_licenses=tuple(self.elements[Context.LICENSE]),
                        relationships=tuple(self.relationships),
                        annotations=self.sorted_annotations(doc_kwargs.get('spdx_id', DOCUMENT_SPDXID)),
                        **doc_kwargs)

    def sorted_annotations(self, doc_id: str) -> Tuple[Annotation, ...]:
        """Annotations without SPDXREF belong to the document. They are ordered
        as nested in JSON: document first, then packages, files and snippets."""
        order: Dict[str, int] = {doc_id: 0}
        for context in [Context.PACKAGE, Context.FILE, Context.SNIPPET]:
            for obj in self.elements[context]:
                order.setdefault(obj.spdx_id, len(order))

        annotations = [annotation if annotation.spdx_ref is not None else replace(annotation, spdx_ref=doc_id)
                       for annotation in self.elements[Context.ANNOTATION]]
        annotations.sort(key=lambda annotation: order.get(annotation.spdx_ref, 0))  # type: ignore
        return tuple(annotations)


def parse_tag_value(text: str) -> Document:
    """Parse SPDX document in tag-value format.

    :param text: document text
    :returns: parsed document
    :raises ParseError: on the first problem found in the input, the error
                        carries line number and tag of the offending record
    """
    parser = TagValueParser()
    for record in scan(text):
        parser.feed(record)
    return parser.finish()


class TagValueWriter:
    """Serialize Document into tag-value text, which parses back into an
    equal Document."""
    def __init__(self) -> None:
        self.lines: List[str] = []

    def check(self, tag: str, value: str) -> None:
        if TEXT_CLOSE in value:
            raise MalformedValue(value, f'{TEXT_CLOSE} cannot be written in tag-value format', tag=tag)

    def add(self, tag: str, value: Any) -> None:
        if value is None:
            return
        value = str(value)
        self.check(tag, value)
        # Plain values are stripped and end at the line end on input
        if value.splitlines() != [value] or value != value.strip() or value.startswith(TEXT_OPEN):
            value = f'{TEXT_OPEN}{value}{TEXT_CLOSE}'
        self.lines.append(f'{tag}: {value}')

    def add_text(self, tag: str, value: Optional[str]) -> None:
        if value is None:
            return
        if value in (NONE, NOASSERTION):
            self.add(tag, value)
        else:
            self.check(tag, value)
            self.lines.append(f'{tag}: {TEXT_OPEN}{value}{TEXT_CLOSE}')

    def add_date(self, tag: str, value: Any) -> None:
        if value is not None:
            self.add(tag, format_date(value))

    def add_all(self, tag: str, values: Any, fmt: Callable[[Any], str]=str) -> None:
        for value in values:
            self.add(tag, fmt(value))

    def section(self, title: str) -> None:
        if self.lines:
            self.lines.append('')
        self.lines.append(f'# {title}')

    def write_document(self, doc: Document) -> None:
        info = doc.creation_info
        self.section('Document Information')
        self.add('SPDXVersion', doc.spdx_version)
        self.add('DataLicense', doc.data_license)
        self.add('SPDXID', doc.spdx_id)
        self.add('DocumentName', doc.name)
        self.add('DocumentNamespace', doc.namespace)
        self.add_all('ExternalDocumentRef', doc.external_document_refs,
                     lambda ref: f'{ref.document_ref} {ref.spdx_document} {ref.checksum}')
        self.add_text('DocumentComment', doc.comment)

        self.section('Creation Information')
        self.add('LicenseListVersion', info.license_list_version)
        self.add_all('Creator', info.creators)
        self.add_date('Created', info.created)
        self.add_text('CreatorComment', info.comment)

        for file in doc.files:
            self.write_file(file)
        for snippet in doc.snippets:
            self.write_snippet(snippet)
        for package in doc.packages:
            self.write_package(package)
        for lic in doc.extracted_licenses:
            self.write_license(lic)

        if doc.relationships:
            self.section('Relationships')
        for relationship in doc.relationships:
            self.add('Relationship', relationship)
            self.add_text('RelationshipComment', relationship.comment)

        for annotation in doc.annotations:
            self.section('Annotation')
            self.add('Annotator', annotation.annotator)
            self.add_date('AnnotationDate', annotation.date)
            self.add('AnnotationType', annotation.annotation_type.value)
            self.add('SPDXREF', annotation.spdx_ref)
            self.add_text('AnnotationComment', annotation.comment)

    def write_package(self, package: Package) -> None:
        self.section('Package')
        self.add('PackageName', package.name)
        self.add('SPDXID', package.spdx_id)
        self.add('PackageVersion', package.version)
        self.add('PackageFileName', package.file_name)
        self.add('PackageSupplier', package.supplier)
        self.add('PackageOriginator', package.originator)
        self.add('PackageDownloadLocation', package.download_location)
        if package.files_analyzed is not None:
            self.add('FilesAnalyzed', 'true' if package.files_analyzed else 'false')
        code = package.verification_code
        if code is not None:
            excludes = f' (excludes: {", ".join(code.excluded_files)})' if code.excluded_files else ''
            self.add('PackageVerificationCode', code.value + excludes)
        self.add_all('PackageChecksum', package.checksums)
        self.add('PackageHomePage', package.homepage)
        self.add_text('PackageSourceInfo', package.source_info)
        self.add('PackageLicenseConcluded', package.license_concluded)
        self.add_all('PackageLicenseInfoFromFiles', package.license_info_from_files)
        self.add('PackageLicenseDeclared', package.license_declared)
        self.add_text('PackageLicenseComments', package.license_comments)
        self.add_text('PackageCopyrightText', package.copyright_text)
        self.add_text('PackageSummary', package.summary)
        self.add_text('PackageDescription', package.description)
        self.add_text('PackageComment', package.comment)
        for ref in package.external_refs:
            self.add('ExternalRef', f'{ref.category.value} {ref.reference_type} {ref.locator}')
            self.add_text('ExternalRefComment', ref.comment)
        for text in package.attribution_texts:
            self.add_text('PackageAttributionText', text)
        if package.primary_package_purpose is not None:
            self.add('PrimaryPackagePurpose', package.primary_package_purpose.value)
        self.add_date('ReleaseDate', package.release_date)
        self.add_date('BuiltDate', package.built_date)
        self.add_date('ValidUntilDate', package.valid_until_date)

    def write_file(self, file: File) -> None:
        self.section('File')
        self.add('FileName', file.name)
        self.add('SPDXID', file.spdx_id)
        self.add_all('FileType', file.file_types, lambda file_type: file_type.value)
        self.add_all('FileChecksum', file.checksums)
        self.add('LicenseConcluded', file.license_concluded)
        self.add_all('LicenseInfoInFile', file.license_info_in_file)
        self.add_text('LicenseComments', file.license_comments)
        self.add_text('FileCopyrightText', file.copyright_text)
        self.add_text('FileComment', file.comment)
        self.add_text('FileNotice', file.notice)
        self.add_all('FileContributor', file.contributors)
        for text in file.attribution_texts:
            self.add_text('FileAttributionText', text)

    def write_snippet(self, snippet: Snippet) -> None:
        self.section('Snippet')
        self.add('SnippetSPDXID', snippet.spdx_id)
        self.add('SnippetFromFileSPDXID', snippet.file_spdx_id)
        self.add('SnippetByteRange', snippet.byte_range)
        self.add('SnippetLineRange', snippet.line_range)
        self.add('SnippetLicenseConcluded', snippet.license_concluded)
        self.add_all('LicenseInfoInSnippet', snippet.license_info_in_snippet)
        self.add_text('SnippetLicenseComments', snippet.license_comments)
        self.add_text('SnippetCopyrightText', snippet.copyright_text)
        self.add_text('SnippetComment', snippet.comment)
        self.add('SnippetName', snippet.name)
        for text in snippet.attribution_texts:
            self.add_text('SnippetAttributionText', text)

    def write_license(self, lic: ExtractedLicense) -> None:
        self.section('Other Licensing Information')
        self.add('LicenseID', lic.license_id)
        self.check('ExtractedText', lic.extracted_text)
        self.lines.append(f'ExtractedText: {TEXT_OPEN}{lic.extracted_text}{TEXT_CLOSE}')
        self.add('LicenseName', lic.name)
        self.add_all('LicenseCrossReference', lic.cross_refs)
        self.add_text('LicenseComment', lic.comment)

    def getvalue(self) -> str:
        return '\n'.join(self.lines) + '\n'


def document_to_tag_value(doc: Document) -> str:
    """Serialize document into SPDX tag-value text.

    :raises MalformedValue: if a value contains </text>, which cannot be
                            represented in tag-value format
    """
    writer = TagValueWriter()
    writer.write_document(doc)
    return writer.getvalue()
