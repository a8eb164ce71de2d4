"""
Result records for reconciliation runs.

Every remote operation produces one OperationOutcome, successful or not,
so partial success is always visible to the caller.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def strip_metadata(response: Optional[dict]) -> Optional[dict]:
    """Drop boto3's ResponseMetadata from an API response."""
    if not isinstance(response, dict):
        return response
    return {key: value for key, value in response.items() if key != "ResponseMetadata"}


@dataclass
class OperationOutcome:
    """
    Result of one remote operation.

    Attributes:
        kind: "create", "update", "delete" or "schedule"
        params: Request parameters that were sent
        response: API response (or resolved record) on success
        error: The exception raised on failure
    """

    kind: str
    params: Dict[str, Any]
    response: Optional[Any] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        if self.ok:
            return {"type": self.kind, "result": self.response}
        return {"type": self.kind, "error": str(self.error)}


@dataclass
class ReconcileResult:
    """All outcomes of one reconciliation run, in operation order."""

    outcomes: List[OperationOutcome] = field(default_factory=list)

    @property
    def results(self) -> list:
        return [outcome.response for outcome in self.outcomes if outcome.ok]

    @property
    def errors(self) -> List[BaseException]:
        return [outcome.error for outcome in self.outcomes if not outcome.ok]

    @property
    def first_error(self) -> Optional[BaseException]:
        errors = self.errors
        return errors[0] if errors else None

    @property
    def failed(self) -> bool:
        return any(not outcome.ok for outcome in self.outcomes)

    def __len__(self) -> int:
        return len(self.outcomes)

    def to_list(self) -> list:
        return [outcome.to_dict() for outcome in self.outcomes]
