"""Sequential batch generation over mixed content types."""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Union

from pydantic import ValidationError as PydanticValidationError

from backend.app.core.error_handling import log_error_with_context
from backend.app.core.orchestrator import GenerationOrchestrator
from backend.app.models.batch import BatchOperation, BatchResult

logger = logging.getLogger(__name__)


class BatchRunner:
    """Runs one batch, strictly in input order; one runner per batch.

    ``progress`` (0-100) and ``errors`` are readable while the batch runs.
    """

    def __init__(self, orchestrator: GenerationOrchestrator):
        self.orchestrator = orchestrator
        self.progress = 0
        self.errors: list[str] = []
        self.is_processing = False

    async def generate_batch(
        self, operations: Iterable[Union[BatchOperation, Mapping[str, Any]]]
    ) -> list[BatchResult]:
        ops = list(operations)
        total = len(ops)
        results: list[BatchResult] = []
        self.is_processing = True
        self.progress = 0
        self.errors = []
        try:
            for index, raw in enumerate(ops):
                result = await self._run_one(index, raw)
                results.append(result)
                if not result.success:
                    self.errors.append(f"{result.type} {result.id}: {result.error}")
                self.progress = round((index + 1) / total * 100)
        finally:
            self.is_processing = False
        if total == 0:
            # An empty batch is trivially complete
            self.progress = 100
        logger.info("Batch finished: %d operations, %d failed", total, len(self.errors))
        return results

    async def _run_one(self, index: int, raw: Union[BatchOperation, Mapping[str, Any]]) -> BatchResult:
        op_id = str(index)
        op_type = "unknown"
        try:
            op = raw if isinstance(raw, BatchOperation) else BatchOperation.model_validate(raw)
        except PydanticValidationError:
            if isinstance(raw, Mapping):
                op_id = str(raw.get("id") or op_id)
                op_type = str(raw.get("type") or op_type)
            return BatchResult(id=op_id, type=op_type, success=False, error="Invalid batch operation")

        try:
            response = await self.orchestrator.generate(op.type, op.request)
        except Exception as exc:
            log_error_with_context(
                error=exc,
                component="batch",
                content_type=op.type.value,
                request_id=op.id,
            )
            return BatchResult(id=op.id, type=op.type.value, success=False, error=str(exc) or type(exc).__name__)

        if response.success:
            return BatchResult(id=op.id, type=op.type.value, success=True, data=response.data)
        return BatchResult(id=op.id, type=op.type.value, success=False, error=response.error)
