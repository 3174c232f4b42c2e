# SPDX-FileCopyrightText: 2023-2025 Espressif Systems (Shanghai) CO LTD
# SPDX-License-Identifier: Apache-2.0

"""
In-memory SPDX document model.

All objects are immutable values. They are created once by the parsers or
programmatically and a modified document is created as a new object, for
example with dataclasses.replace().
"""

import datetime
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Set, Tuple

from spdx_parse import __version__
from spdx_parse.libspdx.errors import MalformedValue
from spdx_parse.libspdx.expression import (Expression, SimpleExpression,
                                           license_ids)

NOASSERTION = 'NOASSERTION'
NONE = 'NONE'
DOCUMENT_SPDXID = 'SPDXRef-DOCUMENT'
SUPPORTED_VERSIONS = ['SPDX-2.2', 'SPDX-2.3']


class Algorithm(Enum):
    SHA1 = 'SHA1'
    SHA224 = 'SHA224'
    SHA256 = 'SHA256'
    SHA384 = 'SHA384'
    SHA512 = 'SHA512'
    SHA3_256 = 'SHA3-256'
    SHA3_384 = 'SHA3-384'
    SHA3_512 = 'SHA3-512'
    BLAKE2B_256 = 'BLAKE2b-256'
    BLAKE2B_384 = 'BLAKE2b-384'
    BLAKE2B_512 = 'BLAKE2b-512'
    BLAKE3 = 'BLAKE3'
    MD2 = 'MD2'
    MD4 = 'MD4'
    MD5 = 'MD5'
    MD6 = 'MD6'
    ADLER32 = 'ADLER32'


# SPDX-specification-2-3 8.3
class FileType(Enum):
    SOURCE = 'SOURCE'
    BINARY = 'BINARY'
    ARCHIVE = 'ARCHIVE'
    APPLICATION = 'APPLICATION'
    AUDIO = 'AUDIO'
    IMAGE = 'IMAGE'
    TEXT = 'TEXT'
    VIDEO = 'VIDEO'
    DOCUMENTATION = 'DOCUMENTATION'
    SPDX = 'SPDX'
    OTHER = 'OTHER'


class AnnotationType(Enum):
    REVIEW = 'REVIEW'
    OTHER = 'OTHER'


# SPDX-specification-2-3 7.21
class ExternalRefCategory(Enum):
    SECURITY = 'SECURITY'
    PACKAGE_MANAGER = 'PACKAGE-MANAGER'
    PERSISTENT_ID = 'PERSISTENT-ID'
    OTHER = 'OTHER'


# SPDX-specification-2-3 7.24
class PrimaryPackagePurpose(Enum):
    APPLICATION = 'APPLICATION'
    FRAMEWORK = 'FRAMEWORK'
    LIBRARY = 'LIBRARY'
    CONTAINER = 'CONTAINER'
    OPERATING_SYSTEM = 'OPERATING-SYSTEM'
    DEVICE = 'DEVICE'
    FIRMWARE = 'FIRMWARE'
    SOURCE = 'SOURCE'
    ARCHIVE = 'ARCHIVE'
    FILE = 'FILE'
    INSTALL = 'INSTALL'
    OTHER = 'OTHER'


# SPDX-specification-2-3 11.1
class RelationshipType(Enum):
    DESCRIBES = 'DESCRIBES'
    DESCRIBED_BY = 'DESCRIBED_BY'
    CONTAINS = 'CONTAINS'
    CONTAINED_BY = 'CONTAINED_BY'
    DEPENDS_ON = 'DEPENDS_ON'
    DEPENDENCY_OF = 'DEPENDENCY_OF'
    DEPENDENCY_MANIFEST_OF = 'DEPENDENCY_MANIFEST_OF'
    BUILD_DEPENDENCY_OF = 'BUILD_DEPENDENCY_OF'
    DEV_DEPENDENCY_OF = 'DEV_DEPENDENCY_OF'
    OPTIONAL_DEPENDENCY_OF = 'OPTIONAL_DEPENDENCY_OF'
    PROVIDED_DEPENDENCY_OF = 'PROVIDED_DEPENDENCY_OF'
    TEST_DEPENDENCY_OF = 'TEST_DEPENDENCY_OF'
    RUNTIME_DEPENDENCY_OF = 'RUNTIME_DEPENDENCY_OF'
    EXAMPLE_OF = 'EXAMPLE_OF'
    GENERATES = 'GENERATES'
    GENERATED_FROM = 'GENERATED_FROM'
    ANCESTOR_OF = 'ANCESTOR_OF'
    DESCENDANT_OF = 'DESCENDANT_OF'
    VARIANT_OF = 'VARIANT_OF'
    DISTRIBUTION_ARTIFACT = 'DISTRIBUTION_ARTIFACT'
    PATCH_FOR = 'PATCH_FOR'
    PATCH_APPLIED = 'PATCH_APPLIED'
    COPY_OF = 'COPY_OF'
    FILE_ADDED = 'FILE_ADDED'
    FILE_DELETED = 'FILE_DELETED'
    FILE_MODIFIED = 'FILE_MODIFIED'
    EXPANDED_FROM_ARCHIVE = 'EXPANDED_FROM_ARCHIVE'
    DYNAMIC_LINK = 'DYNAMIC_LINK'
    STATIC_LINK = 'STATIC_LINK'
    DATA_FILE_OF = 'DATA_FILE_OF'
    TEST_CASE_OF = 'TEST_CASE_OF'
    BUILD_TOOL_OF = 'BUILD_TOOL_OF'
    DEV_TOOL_OF = 'DEV_TOOL_OF'
    TEST_OF = 'TEST_OF'
    TEST_TOOL_OF = 'TEST_TOOL_OF'
    DOCUMENTATION_OF = 'DOCUMENTATION_OF'
    OPTIONAL_COMPONENT_OF = 'OPTIONAL_COMPONENT_OF'
    METAFILE_OF = 'METAFILE_OF'
    PACKAGE_OF = 'PACKAGE_OF'
    AMENDS = 'AMENDS'
    PREREQUISITE_FOR = 'PREREQUISITE_FOR'
    HAS_PREREQUISITE = 'HAS_PREREQUISITE'
    REQUIREMENT_DESCRIPTION_FOR = 'REQUIREMENT_DESCRIPTION_FOR'
    SPECIFICATION_FOR = 'SPECIFICATION_FOR'
    OTHER = 'OTHER'


@dataclass(frozen=True)
class Checksum:
    algorithm: Algorithm
    value: str

    def __str__(self) -> str:
        return f'{self.algorithm.value}: {self.value}'


@dataclass(frozen=True)
class ExternalDocumentRef:
    """Reference to another SPDX document. document_ref includes
    the "DocumentRef-" prefix."""
    document_ref: str
    spdx_document: str
    checksum: Checksum


@dataclass(frozen=True)
class CreationInfo:
    creators: Tuple[str, ...]
    created: datetime.datetime
    comment: Optional[str] = None
    license_list_version: Optional[str] = None


@dataclass(frozen=True)
class PackageVerificationCode:
    value: str
    excluded_files: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ExternalRef:
    category: ExternalRefCategory
    reference_type: str
    locator: str
    comment: Optional[str] = None


@dataclass(frozen=True)
class Package:
    name: str
    spdx_id: str = NOASSERTION
    download_location: str = NOASSERTION
    version: Optional[str] = None
    file_name: Optional[str] = None
    supplier: Optional[str] = None
    originator: Optional[str] = None
    files_analyzed: Optional[bool] = None
    verification_code: Optional[PackageVerificationCode] = None
    checksums: Tuple[Checksum, ...] = ()
    homepage: Optional[str] = None
    source_info: Optional[str] = None
    license_concluded: Optional[Expression] = None
    license_info_from_files: Tuple[Expression, ...] = ()
    license_declared: Optional[Expression] = None
    license_comments: Optional[str] = None
    copyright_text: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    comment: Optional[str] = None
    external_refs: Tuple[ExternalRef, ...] = ()
    attribution_texts: Tuple[str, ...] = ()
    primary_package_purpose: Optional[PrimaryPackagePurpose] = None
    release_date: Optional[datetime.datetime] = None
    built_date: Optional[datetime.datetime] = None
    valid_until_date: Optional[datetime.datetime] = None


@dataclass(frozen=True)
class File:
    name: str
    spdx_id: str = NOASSERTION
    file_types: Tuple[FileType, ...] = ()
    checksums: Tuple[Checksum, ...] = ()
    license_concluded: Optional[Expression] = None
    license_info_in_file: Tuple[SimpleExpression, ...] = ()
    license_comments: Optional[str] = None
    copyright_text: Optional[str] = None
    comment: Optional[str] = None
    notice: Optional[str] = None
    contributors: Tuple[str, ...] = ()
    attribution_texts: Tuple[str, ...] = ()

    def checksum(self, algorithm: Algorithm) -> Optional[str]:
        for checksum in self.checksums:
            if checksum.algorithm is algorithm:
                return checksum.value
        return None


@dataclass(frozen=True)
class Range:
    """Inclusive range of bytes or lines."""
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f'invalid range {self.start}:{self.end}, expected 0 <= start <= end')

    def __str__(self) -> str:
        return f'{self.start}:{self.end}'


@dataclass(frozen=True)
class Snippet:
    spdx_id: str
    file_spdx_id: str
    byte_range: Range
    line_range: Optional[Range] = None
    license_concluded: Optional[Expression] = None
    license_info_in_snippet: Tuple[SimpleExpression, ...] = ()
    license_comments: Optional[str] = None
    copyright_text: Optional[str] = None
    comment: Optional[str] = None
    name: Optional[str] = None
    attribution_texts: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ExtractedLicense:
    """Other licensing information detected, i.e. LicenseRef-* license text."""
    license_id: str
    extracted_text: str = ''
    name: str = NOASSERTION
    cross_refs: Tuple[str, ...] = ()
    comment: Optional[str] = None


@dataclass(frozen=True)
class Relationship:
    spdx_element_id: str
    relationship_type: RelationshipType
    related_spdx_element: str
    comment: Optional[str] = None

    def __str__(self) -> str:
        return f'{self.spdx_element_id} {self.relationship_type.value} {self.related_spdx_element}'


@dataclass(frozen=True)
class Annotation:
    annotator: str
    date: datetime.datetime
    annotation_type: AnnotationType
    comment: str
    spdx_ref: Optional[str] = None


@dataclass(frozen=True)
class Document:
    spdx_version: str
    data_license: str
    name: str
    namespace: str
    creation_info: CreationInfo
    spdx_id: str = DOCUMENT_SPDXID
    comment: Optional[str] = None
    external_document_refs: Tuple[ExternalDocumentRef, ...] = ()
    packages: Tuple[Package, ...] = ()
    files: Tuple[File, ...] = ()
    snippets: Tuple[Snippet, ...] = ()
    extracted_licenses: Tuple[ExtractedLicense, ...] = ()
    relationships: Tuple[Relationship, ...] = ()
    annotations: Tuple[Annotation, ...] = ()

    def get_package(self, spdx_id: str) -> Optional[Package]:
        for package in self.packages:
            if package.spdx_id == spdx_id:
                return package
        return None

    def get_file(self, spdx_id: str) -> Optional[File]:
        for file in self.files:
            if file.spdx_id == spdx_id:
                return file
        return None

    def element_ids(self) -> Set[str]:
        """Return SPDX ids of the document and all its elements."""
        ids = {self.spdx_id}
        ids.update(p.spdx_id for p in self.packages)
        ids.update(f.spdx_id for f in self.files)
        ids.update(s.spdx_id for s in self.snippets)
        return ids

    def relationships_for(self, spdx_id: str) -> List[Relationship]:
        """Return relationships where spdx_id is the SPDX element."""
        return [r for r in self.relationships if r.spdx_element_id == spdx_id]

    def relationships_to(self, spdx_id: str) -> List[Relationship]:
        """Return relationships where spdx_id is the related SPDX element."""
        return [r for r in self.relationships if r.related_spdx_element == spdx_id]

    def files_for_package(self, spdx_id: str) -> List[File]:
        """Return files the package CONTAINS, in relationship order."""
        files = []
        for relationship in self.relationships_for(spdx_id):
            if relationship.relationship_type is not RelationshipType.CONTAINS:
                continue
            file = self.get_file(relationship.related_spdx_element)
            if file is not None:
                files.append(file)
        return files

    def license_ids(self) -> List[str]:
        """Return all license ids referenced by license fields of packages, files
        and snippets. NONE and NOASSERTION are not license ids."""
        exprs: List[Expression] = []
        for package in self.packages:
            if package.license_concluded is not None:
                exprs.append(package.license_concluded)
            if package.license_declared is not None:
                exprs.append(package.license_declared)
            exprs += package.license_info_from_files
        for file in self.files:
            if file.license_concluded is not None:
                exprs.append(file.license_concluded)
            exprs += file.license_info_in_file
        for snippet in self.snippets:
            if snippet.license_concluded is not None:
                exprs.append(snippet.license_concluded)
            exprs += snippet.license_info_in_snippet

        ids: List[str] = []
        for expr in exprs:
            for license_id in license_ids(expr):
                if license_id in (NONE, NOASSERTION) or license_id in ids:
                    continue
                ids.append(license_id)
        return ids

    def unique_hashes(self, algorithm: Algorithm) -> Set[str]:
        """Return set of file checksum values for given algorithm."""
        hashes = set()
        for file in self.files:
            value = file.checksum(algorithm)
            if value is not None:
                hashes.add(value)
        return hashes


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc).replace(microsecond=0)


def parse_date(value: str) -> datetime.datetime:
    """Parse RFC 3339 date, e.g. 2010-01-29T18:30:22Z, into timezone-aware
    datetime in UTC.

    :raises MalformedValue: if the value is not a date with time zone
    """
    try:
        date = datetime.datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
    except ValueError:
        raise MalformedValue(value, 'expected date in YYYY-MM-DDThh:mm:ssZ format')
    return as_utc(date, value)


def as_utc(date: datetime.datetime, value: str='') -> datetime.datetime:
    if date.tzinfo is None:
        raise MalformedValue(value or str(date), 'date is missing time zone, e.g. the Z suffix')
    return date.astimezone(datetime.timezone.utc)


def format_date(date: datetime.datetime) -> str:
    date = date.astimezone(datetime.timezone.utc)
    if date.microsecond:
        return date.strftime('%Y-%m-%dT%H:%M:%S.%fZ')
    return date.strftime('%Y-%m-%dT%H:%M:%SZ')


def new_document(name: str, namespace_prefix: str='http://spdx.org/spdxdocs') -> Document:
    """Create empty document with unique namespace, creation time set
    to now and this tool as the creator."""
    return Document(spdx_version=SUPPORTED_VERSIONS[-1],
                    data_license='CC0-1.0',
                    name=name,
                    namespace=f'{namespace_prefix}/{name}-{uuid.uuid4()}',
                    creation_info=CreationInfo(creators=(f'Tool: spdx-parse-{__version__}',),
                                               created=utcnow()))
