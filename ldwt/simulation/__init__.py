"""
仿真模块
========

- plans: 按仿真时间触发的预案调度
- state: 仿真状态、遥测记录与只读快照
- engine: 单步编排与仿真引擎
- runner: 墙钟节拍实时运行器
- serialization: 配置 JSON 往返
"""

from .plans import (
    ActionType,
    PlanStatus,
    PatternScope,
    ChangeDisturbance,
    ChangeSetpoint,
    PlanStep,
    PlanScheduler,
)
from .state import (
    SimulationState,
    SimulationConfig,
    TelemetryRecord,
    StateSnapshot,
)
from .engine import SimulationStatus, EngineEvent, step, SimulationEngine
from .runner import RunnerStats, RealtimeRunner
from . import serialization

__all__ = [
    'ActionType',
    'PlanStatus',
    'PatternScope',
    'ChangeDisturbance',
    'ChangeSetpoint',
    'PlanStep',
    'PlanScheduler',
    'SimulationState',
    'SimulationConfig',
    'TelemetryRecord',
    'StateSnapshot',
    'SimulationStatus',
    'EngineEvent',
    'step',
    'SimulationEngine',
    'RunnerStats',
    'RealtimeRunner',
    'serialization',
]
