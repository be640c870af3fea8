"""
Operation result domain objects for reconverge.

Provides standardized result types for convergence stages: one detail per
declared item, one result per stage, and a report for the whole run.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional


class OperationStatus(Enum):
    """Status of an individual operation."""
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class OperationDetail:
    """
    Details of a single operation on one declared item.

    Used to track what happened to each item during a stage.
    """
    item: str
    kind: str
    status: OperationStatus
    action: str  # e.g., "installed", "cloned", "updated", "recloned"
    message: Optional[str] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        return self.status == OperationStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'item': self.item,
            'kind': self.kind,
            'status': self.status.value,
            'action': self.action,
        }
        if self.message:
            result['message'] = self.message
        if self.error:
            result['error'] = self.error
        if self.metadata:
            result.update(self.metadata)
        return result


@dataclass
class StageResult:
    """
    Outcome of one pipeline stage.

    A stage either completes (possibly with failed items) or aborts with
    ``error`` set; ``skipped`` marks a stage that had nothing to do.
    """
    stage: str
    total: int = 0
    successful: int = 0
    skipped_items: int = 0
    failed: int = 0
    skipped: bool = False
    error: Optional[str] = None
    details: List[OperationDetail] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True if the stage did not abort and no item failed."""
        return self.error is None and self.failed == 0

    def add_detail(self, detail: OperationDetail) -> OperationDetail:
        """Add an operation detail and update counts."""
        self.details.append(detail)
        self.total += 1

        if detail.status == OperationStatus.SUCCESS:
            self.successful += 1
        elif detail.status == OperationStatus.SKIPPED:
            self.skipped_items += 1
        elif detail.status == OperationStatus.FAILED:
            self.failed += 1
            if detail.error:
                self.errors.append(f"{detail.item}: {detail.error}")
        return detail

    def abort(self, error: str) -> None:
        """Mark the whole stage as failed."""
        self.error = error

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'type': 'stage',
            'stage': self.stage,
            'total': self.total,
            'successful': self.successful,
            'skipped': self.skipped,
            'failed': self.failed,
            'error': self.error,
            'errors': self.errors,
            'details': [d.to_dict() for d in self.details],
        }


@dataclass
class RunReport:
    """Structured outcome of a convergence run, in stage order."""
    stages: List[StageResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(stage.success for stage in self.stages)

    @property
    def failed_stages(self) -> List[StageResult]:
        return [stage for stage in self.stages if not stage.success]

    def stage(self, name: str) -> Optional[StageResult]:
        for stage in self.stages:
            if stage.stage == name:
                return stage
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': 'report',
            'success': self.success,
            'stages': [stage.to_dict() for stage in self.stages],
        }
