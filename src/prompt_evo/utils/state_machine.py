"""状态机 / Status state machines

优化记录与循环记录的状态写入都必须先经过这里的校验。
"""

from prompt_evo.errors import InvalidTransitionError
from prompt_evo.models.cycle import CycleStatus
from prompt_evo.models.optimization import OptimizationStatus


OPTIMIZATION_TRANSITIONS: dict[OptimizationStatus, frozenset[OptimizationStatus]] = {
    OptimizationStatus.GENERATED: frozenset({OptimizationStatus.ACCEPTED, OptimizationStatus.REJECTED}),
    OptimizationStatus.ACCEPTED: frozenset(),
    OptimizationStatus.REJECTED: frozenset(),
}

CYCLE_TRANSITIONS: dict[CycleStatus, frozenset[CycleStatus]] = {
    CycleStatus.RUNNING: frozenset({CycleStatus.PAUSED, CycleStatus.CANCELLED, CycleStatus.COMPLETED}),
    CycleStatus.PAUSED: frozenset({CycleStatus.RUNNING, CycleStatus.CANCELLED}),
    CycleStatus.COMPLETED: frozenset(),
    CycleStatus.CANCELLED: frozenset(),
}


def _transition(table: dict, kind: str, current, requested):
    allowed = table.get(current, frozenset())
    if requested not in allowed:
        raise InvalidTransitionError(
            f"Invalid {kind} status transition: '{current.value}' → '{requested.value}'"
        )
    return requested


def transition_optimization_status(
    current: OptimizationStatus, requested: OptimizationStatus
) -> OptimizationStatus:
    """校验优化记录状态迁移，合法时返回新状态"""
    return _transition(
        OPTIMIZATION_TRANSITIONS, "optimization",
        OptimizationStatus(current), OptimizationStatus(requested),
    )


def transition_cycle_status(current: CycleStatus, requested: CycleStatus) -> CycleStatus:
    """校验循环状态迁移，合法时返回新状态"""
    return _transition(CYCLE_TRANSITIONS, "cycle", CycleStatus(current), CycleStatus(requested))
