"""
预案调度器
==========

按仿真时间触发的配置变更队列:
- 切换需求 (负载) 波形
- 切换设定值波形
- 直接修改设定值

每个预案只触发一次: pending -> active -> completed。
active 仅在应用载荷期间存在, 不会跨步可见。
"""

import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, ClassVar, Dict, List, Optional, Union

from ..config.validation import ConfigValidator
from ..core.disturbance import DisturbanceConfig


logger = logging.getLogger('LDWT.Plans')


class ActionType(Enum):
    """预案动作类型"""
    CHANGE_DISTURBANCE = "CHANGE_DISTURBANCE"
    CHANGE_SETPOINT = "CHANGE_SETPOINT"


class PlanStatus(Enum):
    """预案状态"""
    PENDING = "pending"
    ACTIVE = "active"          # 载荷应用中
    COMPLETED = "completed"


class PatternScope(Enum):
    """波形作用对象"""
    DEMAND = "DEMAND"          # 用户需求 (出流)
    TARGET = "TARGET"          # 设定值


@dataclass(frozen=True)
class ChangeDisturbance:
    """切换波形 (需求或设定值)"""
    config: DisturbanceConfig
    scope: PatternScope = PatternScope.DEMAND

    action_type: ClassVar[ActionType] = ActionType.CHANGE_DISTURBANCE

    def describe(self) -> str:
        target = "负载" if self.scope == PatternScope.DEMAND else "设定值"
        return f"切换{target}模式为 {self.config.type.value}"

    def to_dict(self) -> Dict:
        return {"config": self.config.to_dict(), "scope": self.scope.value}


@dataclass(frozen=True)
class ChangeSetpoint:
    """设定值改为恒定值"""
    value: float

    action_type: ClassVar[ActionType] = ActionType.CHANGE_SETPOINT

    def describe(self) -> str:
        return f"设定值调整为 {self.value:.2f} m"

    def to_dict(self) -> Dict:
        return {"value": self.value}


PlanPayload = Union[ChangeDisturbance, ChangeSetpoint]


def payload_from_dict(action_type: str, data: Dict) -> PlanPayload:
    """按动作类型还原载荷"""
    action = ActionType(action_type)
    if action == ActionType.CHANGE_DISTURBANCE:
        return ChangeDisturbance(
            config=DisturbanceConfig.from_dict(data["config"]),
            scope=PatternScope(data.get("scope", PatternScope.DEMAND.value)),
        )
    return ChangeSetpoint(value=float(data["value"]))


def _new_plan_id() -> str:
    return uuid.uuid4().hex[:8]


@dataclass
class PlanStep:
    """预案步骤"""
    trigger_time: float                  # 触发时间 (s)
    payload: PlanPayload
    description: str = ""
    id: str = field(default_factory=_new_plan_id)
    status: PlanStatus = PlanStatus.PENDING
    fired_at: Optional[float] = None     # 实际触发时刻

    @property
    def action_type(self) -> ActionType:
        return self.payload.action_type

    @property
    def is_pending(self) -> bool:
        return self.status == PlanStatus.PENDING

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "trigger_time": self.trigger_time,
            "action_type": self.action_type.value,
            "payload": self.payload.to_dict(),
            "description": self.description,
            "status": self.status.value,
            "fired_at": self.fired_at,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'PlanStep':
        return cls(
            trigger_time=float(data["trigger_time"]),
            payload=payload_from_dict(data["action_type"], data["payload"]),
            description=data.get("description", ""),
            id=data.get("id") or _new_plan_id(),
            status=PlanStatus(data.get("status", PlanStatus.PENDING.value)),
            fired_at=data.get("fired_at"),
        )


class PlanScheduler:
    """
    预案调度器

    待触发队列按触发时间升序排列; 同一时刻的预案按加入顺序触发。
    触发后的预案移入容量有限的完成记录, 每步只检查队首到期的预案。
    """

    def __init__(self, completed_size: int = 100):
        """
        Parameters:
            completed_size: 完成记录容量, 超出时丢弃最早完成的预案
        """
        self.plans: List[PlanStep] = []
        self.completed: deque = deque(maxlen=max(1, completed_size))

    def schedule(self, plan: PlanStep) -> PlanStep:
        """加入预案 (已完成的预案直接进入完成记录, 不会再次触发)"""
        ConfigValidator.raise_for([
            ConfigValidator.validate_finite(plan.trigger_time, "trigger_time")
        ])
        if plan.status != PlanStatus.PENDING:
            plan.status = PlanStatus.COMPLETED
            self.completed.append(plan)
            return plan
        self.plans.append(plan)
        # 稳定排序保持同时刻预案的加入顺序
        self.plans.sort(key=lambda p: p.trigger_time)
        logger.info(f"预案已加入: [{plan.id}] t={plan.trigger_time:.1f}s {plan.description}")
        return plan

    def schedule_after(self, now: float, delay: float, payload: PlanPayload,
                       description: str = None) -> PlanStep:
        """在当前时刻之后 delay 秒触发"""
        ConfigValidator.raise_for([ConfigValidator.validate_non_negative(delay, "delay")])
        if description is None:
            description = f"{delay:g}秒后{payload.describe()}"
        return self.schedule(PlanStep(
            trigger_time=now + delay,
            payload=payload,
            description=description
        ))

    def fire_due(self, now: float, apply: Callable[[PlanStep], None]) -> List[PlanStep]:
        """
        触发所有到期预案

        Parameters:
            now: 当前仿真时间
            apply: 载荷应用函数, 在预案处于 active 状态时调用

        Returns:
            本步触发的预案列表
        """
        fired = []
        while self.plans and self.plans[0].trigger_time <= now:
            plan = self.plans.pop(0)
            plan.status = PlanStatus.ACTIVE
            try:
                apply(plan)
            finally:
                plan.status = PlanStatus.COMPLETED
                plan.fired_at = now
                self.completed.append(plan)
            fired.append(plan)
            logger.info(f"预案触发: [{plan.id}] t={now:.1f}s {plan.description}")

        return fired

    def cancel(self, plan_id: str) -> bool:
        """取消尚未触发的预案"""
        for plan in self.plans:
            if plan.id == plan_id:
                self.plans.remove(plan)
                logger.info(f"预案已取消: [{plan_id}]")
                return True
        return False

    def pending(self) -> List[PlanStep]:
        """待触发预案"""
        return list(self.plans)

    def all_plans(self) -> List[PlanStep]:
        """完成记录 + 待触发预案 (导出用)"""
        return list(self.completed) + self.plans

    def next_trigger_time(self) -> Optional[float]:
        """下一个待触发时刻"""
        return self.plans[0].trigger_time if self.plans else None

    def reset(self):
        """重置"""
        self.plans.clear()
        self.completed.clear()

    def __len__(self) -> int:
        return len(self.plans) + len(self.completed)


__all__ = [
    'ActionType',
    'PlanStatus',
    'PatternScope',
    'ChangeDisturbance',
    'ChangeSetpoint',
    'PlanPayload',
    'PlanStep',
    'PlanScheduler',
]
