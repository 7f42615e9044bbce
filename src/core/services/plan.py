"""Plan files: a JSON list of operations run through one Session.

Format::

    {"operations": [
        {"kind": "mkdir_all", "path": "/srv/app"},
        {"kind": "write", "path": "/srv/app/config.yaml", "content": "a: 1", "mode": "0640"},
        {"kind": "download", "path": "/srv/app/bin/tool", "source": "https://h/t.tgz#bin/tool"}
    ]}

Operations run in order; the first error stops the run and propagates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from core.domain.errors import PlanError
from core.domain.models import OperationRequest, Plan
from core.services.session import Session

logger = logging.getLogger(__name__)


@dataclass
class PlanResult:
    """Output of a plan run."""

    executed: list[OperationRequest] = field(default_factory=list)
    simulated: bool = False


def load_plan(path: Path) -> Plan:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PlanError(f"cannot read plan {path}: {exc}") from exc
    try:
        return Plan.model_validate_json(raw)
    except ValidationError as exc:
        raise PlanError(f"invalid plan {path}: {exc}") from exc


def run_plan(
    session: Session,
    plan: Plan,
    *,
    on_step: Callable[[int, OperationRequest], None] | None = None,
) -> PlanResult:
    result = PlanResult(simulated=session.is_simulating())
    for index, request in enumerate(plan.operations):
        if on_step:
            on_step(index, request)
        logger.info("step %d: %s %s", index + 1, request.kind.value, request.path)
        session.execute(request)
        result.executed.append(request)
    return result
