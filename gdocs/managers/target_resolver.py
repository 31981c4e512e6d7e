"""
Target Resolver

This module turns a target into an exact document range.
Each call fetches a fresh snapshot of the document (nothing is cached), so a
resolved range reflects the document at fetch time. A later write based on
it is not atomic with the read: if someone else edits the document in
between, the indices may be stale. The Docs API offers no version check that
this resolver relies on.
"""
import asyncio
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

from core.utils import handle_http_errors
from gdocs.docs_helpers import (
    count_occurrences,
    extract_document_segments,
    find_text_range,
)
from gdocs.docs_model import Block, parse_document
from gdocs.docs_ranges import (
    EditKind,
    ExplicitRange,
    PositionWithin,
    RangeKind,
    ResolvedRange,
    SectionTarget,
    TableCellTarget,
    TargetSpec,
    TextSearch,
)
from gdocs.docs_structure import (
    find_containing_paragraph,
    find_section_range,
    get_document_end,
    get_table_cell_range,
)
from gdocs.errors import (
    DocsErrorBuilder,
    InvalidRangeError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

# Minimal field masks per target kind
TEXT_SEARCH_FIELDS = (
    'body(content(startIndex,endIndex,'
    'paragraph(elements(startIndex,endIndex,textRun(content)),paragraphStyle(namedStyleType)),'
    'table,sectionBreak,tableOfContents))'
)
POSITION_FIELDS = 'body(content(startIndex,endIndex,paragraph,table,sectionBreak,tableOfContents))'
TABLE_FIELDS = 'body(content(startIndex,endIndex,table))'
SECTION_FIELDS = (
    'body(content(startIndex,endIndex,'
    'paragraph(elements(textRun(content)),paragraphStyle(namedStyleType)),'
    'table(rows,columns),sectionBreak,tableOfContents))'
)


def fields_for_target(target: TargetSpec) -> Optional[str]:
    """Field mask needed to resolve a target, or None when no fetch is needed."""
    if isinstance(target, ExplicitRange):
        return None
    if isinstance(target, TextSearch):
        return TEXT_SEARCH_FIELDS
    if isinstance(target, PositionWithin):
        return POSITION_FIELDS
    if isinstance(target, TableCellTarget):
        return TABLE_FIELDS
    if isinstance(target, SectionTarget):
        return SECTION_FIELDS
    raise TypeError(f"Unsupported target type: {type(target).__name__}")


class TargetResolver:
    """
    Resolves targets against a Google Docs document.

    The Docs API service is injected by the caller, who owns its lifecycle
    and credentials.
    """

    def __init__(self, service, tab_id: str = None):
        """
        Initialize the target resolver.

        Args:
            service: Google Docs API service instance
            tab_id: Optional tab ID for multi-tab documents
        """
        self.service = service
        self.tab_id = tab_id

    @handle_http_errors("documents.get")
    async def fetch_document(self, document_id: str, fields: str = None) -> Dict[str, Any]:
        """
        Fetch a document snapshot.

        Args:
            document_id: ID of the document
            fields: Optional field mask; ignored when a tab is selected, since
                tab bodies are only returned with the full tab content

        Returns:
            Raw document data from Google Docs API
        """
        params = {"documentId": document_id}
        if self.tab_id is not None:
            params["includeTabsContent"] = True
        elif fields:
            params["fields"] = fields

        logger.debug(f"Fetching document {document_id} with {params}")
        return await asyncio.to_thread(
            self.service.documents().get(**params).execute
        )

    async def resolve(
        self,
        document_id: str,
        target: TargetSpec,
        edit_kind: EditKind = None
    ) -> ResolvedRange:
        """
        Fetch the document and resolve one target.

        Args:
            document_id: ID of the document
            target: Target to resolve
            edit_kind: Edit the range is meant for; paragraph style on a text
                search also resolves the containing paragraph

        Returns:
            ResolvedRange in document index space
        """
        fields = fields_for_target(target)
        if fields is None:
            return self.resolve_in_document({}, target, edit_kind)

        doc_data = await self.fetch_document(document_id, fields)
        return self.resolve_in_document(doc_data, target, edit_kind)

    async def resolve_many(
        self,
        document_id: str,
        targets: List[Tuple[TargetSpec, Optional[EditKind]]]
    ) -> List[ResolvedRange]:
        """
        Resolve several targets against a single snapshot.

        Args:
            document_id: ID of the document
            targets: (target, edit_kind) pairs

        Returns:
            Resolved ranges in the order of targets
        """
        doc_data: Dict[str, Any] = {}
        if any(fields_for_target(target) is not None for target, _ in targets):
            doc_data = await self.fetch_document(document_id)

        return [self.resolve_in_document(doc_data, target, kind) for target, kind in targets]

    def resolve_in_document(
        self,
        doc_data: Dict[str, Any],
        target: TargetSpec,
        edit_kind: EditKind = None
    ) -> ResolvedRange:
        """
        Resolve one target against an already fetched snapshot.

        Args:
            doc_data: Raw document data from Google Docs API
            target: Target to resolve
            edit_kind: Edit the range is meant for

        Returns:
            ResolvedRange in document index space
        """
        if isinstance(target, ExplicitRange):
            return self._resolve_explicit(target)

        blocks = parse_document(doc_data, self.tab_id)

        if isinstance(target, TextSearch):
            resolved = self._resolve_text(blocks, target, edit_kind)
        elif isinstance(target, PositionWithin):
            resolved = self._resolve_position(blocks, target)
        elif isinstance(target, TableCellTarget):
            resolved = self._resolve_table_cell(blocks, target)
        elif isinstance(target, SectionTarget):
            resolved = self._resolve_section(blocks, target)
        else:
            raise TypeError(f"Unsupported target type: {type(target).__name__}")

        logger.info(f"Resolved {target} to {resolved.start_index}-{resolved.end_index} ({resolved.kind.value})")
        return resolved

    def _resolve_explicit(self, target: ExplicitRange) -> ResolvedRange:
        if target.end_index <= target.start_index:
            raise InvalidRangeError(
                DocsErrorBuilder.invalid_index_range(target.start_index, target.end_index)
            )
        return ResolvedRange(
            start_index=target.start_index,
            end_index=target.end_index,
            kind=RangeKind.CONTENT,
            block_start=target.start_index,
            block_end=target.end_index,
            description="explicit range",
        )

    def _resolve_text(
        self,
        blocks: List[Block],
        target: TextSearch,
        edit_kind: Optional[EditKind]
    ) -> ResolvedRange:
        if not target.text:
            raise InvalidRangeError(DocsErrorBuilder.empty_search_text())
        if target.occurrence == 0 or target.occurrence < -1:
            raise InvalidRangeError(
                DocsErrorBuilder.invalid_param_value(
                    "occurrence", target.occurrence, ["1, 2, ... (1-based)", "-1 (last)"]
                )
            )

        segments = extract_document_segments(blocks)
        match = find_text_range(segments, target.text, target.occurrence)
        if match is None:
            total = count_occurrences(segments, target.text)
            if total == 0:
                raise NotFoundError(DocsErrorBuilder.search_text_not_found(target.text))
            raise NotFoundError(
                DocsErrorBuilder.invalid_occurrence(target.occurrence, total, target.text)
            )

        if edit_kind is not None and EditKind(edit_kind) == EditKind.PARAGRAPH_STYLE:
            logger.info(
                f"Found text at range {match.start_index}-{match.end_index}, "
                f"now locating containing paragraph"
            )
            # Failures here propagate as their own errors, not as "text not found"
            paragraph = find_containing_paragraph(blocks, match.start_index)
            match = replace(match, block_start=paragraph.start_index, block_end=paragraph.end_index)

        return match

    def _resolve_position(self, blocks: List[Block], target: PositionWithin) -> ResolvedRange:
        paragraph = find_containing_paragraph(blocks, target.index)
        return ResolvedRange(
            start_index=paragraph.start_index,
            end_index=max(paragraph.start_index, paragraph.end_index - 1),
            kind=RangeKind.BLOCK,
            block_start=paragraph.start_index,
            block_end=paragraph.end_index,
            description=f"paragraph containing index {target.index}",
        )

    def _resolve_table_cell(self, blocks: List[Block], target: TableCellTarget) -> ResolvedRange:
        cell = get_table_cell_range(blocks, target.table_start_index, target.row, target.column)
        return ResolvedRange(
            start_index=cell.content_start,
            end_index=cell.content_end,
            kind=RangeKind.CONTENT,
            block_start=cell.content_start,
            block_end=cell.paragraph_end,
            description=f"cell ({target.row}, {target.column}) of table at {target.table_start_index}",
        )

    def _resolve_section(self, blocks: List[Block], target: SectionTarget) -> ResolvedRange:
        section = find_section_range(blocks, target.heading_text)

        content_end = section.section_end
        # The final newline of the body cannot be deleted
        if content_end == get_document_end(blocks) and content_end > section.heading_end:
            content_end -= 1

        return ResolvedRange(
            start_index=section.heading_end,
            end_index=content_end,
            kind=RangeKind.BLOCK,
            block_start=section.heading_start,
            block_end=section.section_end,
            description=f"section '{section.heading}'",
        )
