"""
Batch Operation Manager

This module turns resolved ranges into Google Docs batchUpdate requests and
submits them.

Features:
- One request per edit, ranges kept exactly as resolved
- Overlapping edits rejected before anything is submitted
- Replacement plans (delete, insert, style) for a single target
- Single-snapshot execution ordered from the highest index to the lowest
- Per-edit results with position shift tracking

The builder never shifts indices itself. Callers either resolve every target
against one snapshot and submit the edits highest start first (what
apply_edits does), or re-resolve after each individual mutation.
"""
import asyncio
import logging
from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from core.config import DOCS_MAX_BATCH_REQUESTS, get_document_link
from core.utils import handle_http_errors
from gdocs.docs_helpers import (
    OperationType,
    calculate_position_shift,
    create_delete_range_request,
    create_format_text_request,
    create_insert_text_request,
    create_paragraph_style_request,
)
from gdocs.docs_model import utf16_len
from gdocs.docs_ranges import (
    EditKind,
    ResolvedRange,
    TargetSpec,
    classify_range,
)
from gdocs.errors import (
    ConflictingRangesError,
    DocsErrorBuilder,
    InvalidRangeError,
)
from gdocs.managers.target_resolver import TargetResolver

logger = logging.getLogger(__name__)


class MutationKind(str, Enum):
    """Elementary mutation sent to the document service."""
    INSERT = "insert"
    DELETE = "delete"
    STYLE = "style"


EDIT_TO_MUTATION = {
    EditKind.INSERT_TEXT: MutationKind.INSERT,
    EditKind.DELETE_TEXT: MutationKind.DELETE,
    EditKind.TEXT_STYLE: MutationKind.STYLE,
    EditKind.PARAGRAPH_STYLE: MutationKind.STYLE,
}


@dataclass(frozen=True)
class PlannedEdit:
    """
    An edit waiting to be built.

    payload depends on edit_kind:
    - insert_text: {"text": str}
    - delete_text: unused
    - text_style: keyword arguments of build_text_style
    - paragraph_style: keyword arguments of build_paragraph_style
    """
    resolved: ResolvedRange
    edit_kind: EditKind
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class MutationRequest:
    """
    One elementary request of a batch.

    Inserts are a zero-width insertion point (start_index == end_index).
    """
    kind: MutationKind
    start_index: int
    end_index: int
    payload: Dict[str, Any] = field(default_factory=dict)
    edit_kind: Optional[EditKind] = None

    @property
    def is_insertion_point(self) -> bool:
        return self.kind == MutationKind.INSERT

    def describe(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "start_index": self.start_index,
            "end_index": self.end_index,
        }

    def to_api_request(self) -> Dict[str, Any]:
        """
        Convert to a Google Docs API request.

        Raises:
            ValueError: If a style request carries no style fields, or a style
                value is invalid
        """
        if self.kind == MutationKind.INSERT:
            return create_insert_text_request(self.start_index, self.payload["text"])

        if self.kind == MutationKind.DELETE:
            return create_delete_range_request(self.start_index, self.end_index)

        if self.edit_kind == EditKind.PARAGRAPH_STYLE:
            request = create_paragraph_style_request(self.start_index, self.end_index, **self.payload)
        else:
            request = create_format_text_request(self.start_index, self.end_index, **self.payload)

        if request is None:
            raise ValueError(
                f"No style fields provided for {self.edit_kind.value} "
                f"at {self.start_index}-{self.end_index}"
            )
        return request


def _conflicts(first: MutationRequest, second: MutationRequest) -> bool:
    """Whether two requests, sent in this order, collide in one snapshot."""
    if first.is_insertion_point and second.is_insertion_point:
        return first.start_index == second.start_index

    if first.is_insertion_point:
        # An earlier insertion at a range's start shifts the text it addresses
        return second.start_index <= first.start_index < second.end_index

    if second.is_insertion_point:
        return first.start_index < second.start_index < first.end_index

    return max(first.start_index, second.start_index) < min(first.end_index, second.end_index)


def _edit_order_key(edit: PlannedEdit) -> Tuple[int, int]:
    # At a shared start, deletes and styles go out before the insert
    is_delete_or_style = EDIT_TO_MUTATION[edit.edit_kind] != MutationKind.INSERT
    return classify_range(edit.resolved, edit.edit_kind).start_index, int(is_delete_or_style)


def order_edits_for_snapshot(edits: List[PlannedEdit]) -> List[PlannedEdit]:
    """
    Order edits resolved against one snapshot so none invalidates another.

    Edits are sorted by start index, highest first. At the same start, deletes
    and styles come before an insertion so they still address the original
    text. Otherwise edits that share a start keep their given order.
    """
    return sorted(edits, key=_edit_order_key, reverse=True)


class MutationBatchBuilder:
    """
    Builds mutation requests from resolved ranges.

    Each edit's range is classified for its edit kind and kept verbatim; the
    builder does not reorder edits or shift indices.
    """

    def build(self, edits: List[PlannedEdit]) -> List[MutationRequest]:
        """
        Build one request per edit.

        Args:
            edits: Planned edits in submission order

        Returns:
            List of MutationRequest in the same order

        Raises:
            InvalidRangeError: If a delete or style range is empty or inverted
            ConflictingRangesError: If two edits overlap, or an insertion is sent
                before a range that starts at its point
            StructuralMismatchError: If a paragraph style edit has no block boundary
        """
        requests = [self._build_one(edit) for edit in edits]

        for i, first in enumerate(requests):
            for second in requests[i + 1:]:
                if _conflicts(first, second):
                    logger.warning(
                        f"Rejecting batch: {first.kind.value} {first.start_index}-{first.end_index} "
                        f"overlaps {second.kind.value} {second.start_index}-{second.end_index}"
                    )
                    raise ConflictingRangesError(
                        DocsErrorBuilder.conflicting_ranges(first.describe(), second.describe())
                    )

        logger.debug(f"Built {len(requests)} mutation requests")
        return requests

    def _build_one(self, edit: PlannedEdit) -> MutationRequest:
        edit_kind = EditKind(edit.edit_kind)
        final = classify_range(edit.resolved, edit_kind)
        kind = EDIT_TO_MUTATION[edit_kind]

        if kind == MutationKind.INSERT:
            text = edit.payload.get("text")
            if not text:
                raise InvalidRangeError(
                    DocsErrorBuilder.invalid_param_value("text", text, ["a non-empty string"])
                )
            return MutationRequest(
                kind=kind,
                start_index=final.start_index,
                end_index=final.start_index,
                payload={"text": text},
                edit_kind=edit_kind,
            )

        if final.end_index <= final.start_index:
            raise InvalidRangeError(
                DocsErrorBuilder.invalid_index_range(final.start_index, final.end_index)
            )

        payload = {} if kind == MutationKind.DELETE else dict(edit.payload)
        return MutationRequest(
            kind=kind,
            start_index=final.start_index,
            end_index=final.end_index,
            payload=payload,
            edit_kind=edit_kind,
        )

    def build_replacement(
        self,
        resolved: ResolvedRange,
        text: Optional[str],
        text_style: Dict[str, Any] = None,
        paragraph_style: Dict[str, Any] = None
    ) -> List[MutationRequest]:
        """
        Plan the replacement of one target's content.

        The requests are sequential: the existing content is deleted, the new
        text inserted at the content start, then styles are applied to the
        ranges as they are after the insertion. They are ordered against each
        other and therefore exempt from the overlap check.

        Args:
            resolved: Range of the target (content boundary in start/end)
            text: Replacement text; None keeps the existing content
            text_style: Keyword arguments of build_text_style for the new text
            paragraph_style: Keyword arguments of build_paragraph_style

        Returns:
            Ordered list of MutationRequest (empty if nothing to change)
        """
        content = classify_range(resolved, EditKind.DELETE_TEXT)
        start = content.start_index
        requests: List[MutationRequest] = []

        new_end = content.end_index
        if text is not None:
            if content.end_index > start:
                requests.append(MutationRequest(
                    MutationKind.DELETE, start, content.end_index, edit_kind=EditKind.DELETE_TEXT
                ))
            new_end = start
            if text:
                requests.append(MutationRequest(
                    MutationKind.INSERT, start, start, {"text": text}, edit_kind=EditKind.INSERT_TEXT
                ))
                new_end = start + utf16_len(text)

        if text_style and new_end > start:
            requests.append(MutationRequest(
                MutationKind.STYLE, start, new_end, dict(text_style), edit_kind=EditKind.TEXT_STYLE
            ))

        if paragraph_style:
            if resolved.has_block_boundary:
                # The block grows or shrinks with its content
                delta = new_end - content.end_index
                style_start, style_end = resolved.block_start, resolved.block_end + delta
            else:
                style_start, style_end = start, new_end
            if style_end > style_start:
                requests.append(MutationRequest(
                    MutationKind.STYLE, style_start, style_end, dict(paragraph_style),
                    edit_kind=EditKind.PARAGRAPH_STYLE
                ))

        logger.debug(f"Planned replacement at {start}: {[r.kind.value for r in requests]}")
        return requests


@dataclass
class BatchOperationResult:
    """Result of a single edit within a batch."""
    index: int  # Edit index in the submitted batch
    type: str  # Edit kind
    description: str
    start_index: int
    end_index: int
    position_shift: int = 0  # How much this edit shifted later positions
    affected_range: Optional[Dict[str, int]] = None  # {"start": x, "end": y}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        result = asdict(self)
        return {k: v for k, v in result.items() if v is not None}


@dataclass
class BatchExecutionResult:
    """Complete result of batch execution."""
    success: bool
    operations_completed: int
    total_operations: int
    results: List[BatchOperationResult]
    total_position_shift: int
    message: str
    requests_count: int = 0
    replies_count: int = 0
    document_link: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON response."""
        return {
            "success": self.success,
            "operations_completed": self.operations_completed,
            "total_operations": self.total_operations,
            "results": [r.to_dict() for r in self.results],
            "total_position_shift": self.total_position_shift,
            "message": self.message,
            "requests_count": self.requests_count,
            "replies_count": self.replies_count,
            "document_link": self.document_link,
        }


def _shift_for(request: MutationRequest) -> Tuple[int, Dict[str, int]]:
    if request.kind == MutationKind.INSERT:
        return calculate_position_shift(
            OperationType.INSERT, request.start_index, None, utf16_len(request.payload["text"])
        )
    if request.kind == MutationKind.DELETE:
        return calculate_position_shift(
            OperationType.DELETE, request.start_index, request.end_index, 0
        )
    return calculate_position_shift(
        OperationType.FORMAT, request.start_index, request.end_index, 0
    )


class BatchOperationManager:
    """
    High-level manager for Google Docs batch operations.

    Handles:
    - Resolving every target of a batch against one snapshot
    - Ordering, building and validating the requests
    - Submitting them in a single batchUpdate call
    """

    def __init__(self, service, tab_id: str = None):
        """
        Initialize the batch operation manager.

        Args:
            service: Google Docs API service instance
            tab_id: Optional tab ID for multi-tab documents
        """
        self.service = service
        self.tab_id = tab_id
        self.builder = MutationBatchBuilder()

    @handle_http_errors("documents.batchUpdate")
    async def submit(self, document_id: str, requests: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Submit API requests in one batchUpdate call.

        Args:
            document_id: Document ID
            requests: List of API requests

        Returns:
            API response ({} when there was nothing to submit)
        """
        if not requests:
            logger.info(f"No requests to submit for document {document_id}")
            return {}

        if len(requests) > DOCS_MAX_BATCH_REQUESTS:
            logger.warning(
                f"Submitting {len(requests)} requests to document {document_id}, "
                f"above the usual limit of {DOCS_MAX_BATCH_REQUESTS}; the service may reject the batch"
            )

        logger.info(f"Submitting {len(requests)} requests to document {document_id}")
        return await asyncio.to_thread(
            self.service.documents().batchUpdate(
                documentId=document_id,
                body={'requests': requests}
            ).execute
        )

    async def apply_edits(
        self,
        document_id: str,
        targets_with_edits: List[Tuple[TargetSpec, EditKind, Optional[Dict[str, Any]]]]
    ) -> BatchExecutionResult:
        """
        Resolve, build and submit a batch of edits.

        Every target is resolved against one snapshot; the edits are then
        submitted from the highest start index to the lowest.

        Args:
            document_id: ID of the document to update
            targets_with_edits: (target, edit_kind, payload) triples

        Returns:
            BatchExecutionResult with per-edit position shifts
        """
        logger.info(f"Applying {len(targets_with_edits)} edits to document {document_id}")

        if not targets_with_edits:
            return BatchExecutionResult(
                success=True,
                operations_completed=0,
                total_operations=0,
                results=[],
                total_position_shift=0,
                message="No edits provided",
                document_link=get_document_link(document_id),
            )

        resolver = TargetResolver(self.service, self.tab_id)
        resolved = await resolver.resolve_many(
            document_id, [(target, EditKind(kind)) for target, kind, _ in targets_with_edits]
        )

        edits = [
            PlannedEdit(r, EditKind(kind), payload or {})
            for r, (_, kind, payload) in zip(resolved, targets_with_edits)
        ]
        requests = self.builder.build(order_edits_for_snapshot(edits))
        api_requests = [request.to_api_request() for request in requests]

        response = await self.submit(document_id, api_requests)

        results = []
        for i, request in enumerate(requests):
            shift, affected = _shift_for(request)
            results.append(BatchOperationResult(
                index=i,
                type=request.edit_kind.value,
                description=f"{request.edit_kind.value} at {request.start_index}-{request.end_index}",
                start_index=request.start_index,
                end_index=request.end_index,
                position_shift=shift,
                affected_range=affected,
            ))

        total_shift = sum(r.position_shift for r in results)
        return BatchExecutionResult(
            success=True,
            operations_completed=len(results),
            total_operations=len(targets_with_edits),
            results=results,
            total_position_shift=total_shift,
            message=f"Successfully applied {len(results)} edits",
            requests_count=len(api_requests),
            replies_count=len(response.get('replies', [])),
            document_link=get_document_link(document_id),
        )
