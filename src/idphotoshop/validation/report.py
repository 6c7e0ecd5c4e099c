from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

@dataclass(frozen=True)
class RuleResult:
    """
    Outcome of one business rule applied to a face-detection result.
    """
    rule_id: str
    passed: bool
    message: str
    metrics: dict[str, Any] | None = None

@dataclass(frozen=True)
class ValidationReport:
    """
    All rule outcomes for one detection result, in evaluation order.
    """
    passed: bool
    results: list[RuleResult]

    def first_failure(self) -> Optional[RuleResult]:
        for r in self.results:
            if not r.passed:
                return r
        return None
