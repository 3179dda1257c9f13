"""
仿真状态与遥测
==============

SimulationState 集中保存全部可变仿真状态 (水位、滞后缓冲、控制器内部状态、
预案队列、当前波形), 由仿真引擎独占, 逐步传入各组件。
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, List

from ..config.settings import Config, ControlSettings, DesignParadigm, SimulationSettings
from ..config.validation import ConfigValidator, ValidationResult
from ..control.base import ControllerState
from ..core.delay_line import TransportDelayBuffer
from ..core.disturbance import DisturbanceConfig
from ..core.faults import FaultState
from .plans import PlanScheduler


def default_demand_pattern() -> DisturbanceConfig:
    return DisturbanceConfig.from_dict(Config.patterns.demand)


def default_setpoint_pattern() -> DisturbanceConfig:
    return DisturbanceConfig.from_dict(Config.patterns.setpoint)


@dataclass
class SimulationState:
    """仿真状态"""
    water_level: float                     # 真实水位 (m), 仅由物理积分器更新
    demand_pattern: DisturbanceConfig      # 当前需求波形
    setpoint_pattern: DisturbanceConfig    # 当前设定值波形
    delay_line: TransportDelayBuffer       # 管道滞后缓冲
    controller: ControllerState = field(default_factory=ControllerState)
    plans: PlanScheduler = field(default_factory=PlanScheduler)

    time: float = 0.0                      # 仿真时间 (s)
    tick: int = 0                          # 步数
    sensor_level: float = 0.0              # 测量水位 (m), 每步重新计算
    target_level: float = 0.0              # 当前设定值 (m)
    inflow_at_pump: float = 0.0            # 泵站出流 (m³/s)
    inflow_at_tank: float = 0.0            # 调蓄池入流 (滞后) (m³/s)
    outflow: float = 0.0                   # 用户需求 (m³/s)
    leak_flow: float = 0.0                 # 泄漏流量 (m³/s)
    valve_open: float = 100.0              # 出口阀开度 (%)

    @classmethod
    def initial(cls, settings: SimulationSettings,
                demand_pattern: DisturbanceConfig = None,
                setpoint_pattern: DisturbanceConfig = None) -> 'SimulationState':
        """按配置创建初始状态"""
        level = settings.initial_level
        controller = ControllerState()
        controller.reset(model_level=level)
        return cls(
            water_level=level,
            demand_pattern=demand_pattern or default_demand_pattern(),
            setpoint_pattern=setpoint_pattern or default_setpoint_pattern(),
            delay_line=TransportDelayBuffer(settings.buffer_size),
            controller=controller,
            plans=PlanScheduler(settings.plan_history_size),
            sensor_level=level,
            target_level=level,
            valve_open=settings.valve_open,
        )


@dataclass
class SimulationConfig:
    """单步仿真所需的配置 (不含可变状态)"""
    paradigm: DesignParadigm
    faults: FaultState = field(default_factory=FaultState)
    settings: SimulationSettings = field(default_factory=SimulationSettings)
    control: ControlSettings = field(default_factory=ControlSettings)

    def validate(self) -> List[ValidationResult]:
        """数值校验"""
        return [
            ConfigValidator.validate_positive(self.paradigm.tank_area, "tank_area"),
            ConfigValidator.validate_positive(self.settings.dt, "dt"),
            ConfigValidator.validate_non_negative(self.settings.pipe_delay_seconds,
                                                  "pipe_delay_seconds"),
            ConfigValidator.validate_non_negative(self.control.max_flow, "max_flow"),
        ] + self.faults.validate()


@dataclass(frozen=True)
class TelemetryRecord:
    """单步遥测记录"""
    t: float                 # 仿真时间 (s)
    level: float             # 真实水位 (m)
    target: float            # 设定值 (m)
    flow_in: float           # 泵站出流 (m³/s)
    flow_out: float          # 用户需求 (m³/s)
    sensed_level: float = 0.0
    tank_inflow: float = 0.0
    leak_flow: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class StateSnapshot:
    """
    只读状态快照

    每步结束后供可视化与诊断助手读取。
    """
    time: float
    true_level: float
    sensed_level: float
    target_level: float
    pump_outflow: float
    tank_inflow: float
    demand_outflow: float
    leak_flow: float
    valve_open: float
    fault_flags: Dict[str, bool]
    faults: FaultState
    paradigm: DesignParadigm
    status: str
    controller: Dict[str, float] = field(default_factory=dict)
    pending_plans: int = 0

    @property
    def error(self) -> float:
        """控制误差 (设定值 - 测量值)"""
        return self.target_level - self.sensed_level

    def to_dict(self) -> Dict:
        return {
            "time": self.time,
            "true_level": self.true_level,
            "sensed_level": self.sensed_level,
            "target_level": self.target_level,
            "pump_outflow": self.pump_outflow,
            "tank_inflow": self.tank_inflow,
            "demand_outflow": self.demand_outflow,
            "leak_flow": self.leak_flow,
            "valve_open": self.valve_open,
            "fault_flags": dict(self.fault_flags),
            "faults": self.faults.to_dict(),
            "paradigm": self.paradigm.to_dict(),
            "status": self.status,
            "controller": dict(self.controller),
            "pending_plans": self.pending_plans,
        }


__all__ = [
    'default_demand_pattern',
    'default_setpoint_pattern',
    'SimulationState',
    'SimulationConfig',
    'TelemetryRecord',
    'StateSnapshot',
]
