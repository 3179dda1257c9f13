"""
仿真引擎
========

单步编排 (固定顺序, 不可调换):
    (a) 触发到期预案
    (b) 计算当前需求与设定值
    (c) 计算测量水位 (真实水位 + 漂移 + 噪声)
    (d) 控制器组计算泵站出流
    (e) 压入滞后缓冲, 取滞后入流, 积分水位
    (f) 追加遥测记录

``step`` 为纯编排函数, 可脱离实时节拍直接批量调用;
SimulationEngine 持有状态并提供配置入口。
"""

import logging
from collections import deque
from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Callable, Dict, List, Optional, Tuple, Union

import numpy as np

from ..config.settings import (
    Config, ControlAlgorithm, ControlSettings, DesignParadigm, ParadigmType,
    SimulationSettings, get_paradigm,
)
from ..config.validation import ConfigValidator
from ..control.base import ControlInput
from ..control.bank import ControllerBank
from ..core.disturbance import DisturbanceConfig, evaluate
from ..core.faults import FAULT_CHANNELS, FaultConfig, FaultState, pump_capacity, sense_level
from ..core.physics import TankPhysics
from .plans import ChangeDisturbance, ChangeSetpoint, PatternScope, PlanPayload, PlanStep
from .state import SimulationConfig, SimulationState, StateSnapshot, TelemetryRecord


logger = logging.getLogger('LDWT.Engine')


class SimulationStatus(Enum):
    """仿真状态"""
    IDLE = auto()               # 空闲
    RUNNING = auto()            # 运行中
    PAUSED = auto()             # 暂停


@dataclass(frozen=True)
class EngineEvent:
    """操作事件记录"""
    time: float
    category: str               # paradigm / pattern / plan / fault / control
    message: str


def apply_plan(state: SimulationState, plan: PlanStep):
    """将预案载荷应用到当前波形"""
    payload = plan.payload
    if isinstance(payload, ChangeSetpoint):
        state.setpoint_pattern = DisturbanceConfig.constant(payload.value)
    elif payload.scope == PatternScope.TARGET:
        state.setpoint_pattern = payload.config
    else:
        state.demand_pattern = payload.config


def step(state: SimulationState, config: SimulationConfig, dt: float = None,
         rng: Optional[np.random.Generator] = None,
         bank: ControllerBank = None,
         on_plan: Callable[[PlanStep], None] = None) -> Tuple[SimulationState, TelemetryRecord]:
    """
    推进一个仿真步

    Parameters:
        state: 仿真状态 (原地更新)
        config: 范式/故障/参数配置
        dt: 步长 (s), 默认取 config.settings.dt
        rng: 随机源, 为 None 时噪声与随机波形取期望值
        bank: 控制器组, 默认按 config 新建
        on_plan: 预案触发后的回调

    Returns:
        (state, 本步遥测记录)
    """
    dt = dt or config.settings.dt
    if bank is None:
        bank = ControllerBank(config.paradigm, config.control)

    # 时间取整到纳秒级, 避免累加误差导致预案晚一步触发
    now = round(state.time + dt, 9)
    state.time = now
    state.tick += 1

    # (a) 预案
    def _apply(plan: PlanStep):
        apply_plan(state, plan)
        if on_plan is not None:
            on_plan(plan)

    state.plans.fire_due(now, _apply)

    # (b) 需求与设定值
    demand = evaluate(now, state.demand_pattern, rng)
    target = evaluate(now, state.setpoint_pattern, rng)

    # (c) 测量
    sensed = sense_level(state.water_level, config.faults.sensor_drift, rng)

    # (d) 控制
    max_flow = pump_capacity(config.control.max_flow, config.faults.pump_efficiency)
    pump_output = bank.compute(state.controller, ControlInput(
        target=target,
        sensed_level=sensed,
        demand=demand,
        time=now,
        dt=dt,
        tank_area=config.paradigm.tank_area,
        max_flow=max_flow,
        delay_line=state.delay_line,
        demand_pattern=state.demand_pattern
    ), algorithm=config.paradigm.algorithm)

    # (e) 物理
    tank_inflow = state.delay_line.push(pump_output)
    balance = TankPhysics.integrate(
        level=state.water_level,
        delayed_inflow=tank_inflow,
        demand=demand,
        tank_area=config.paradigm.tank_area,
        leakage=config.faults.leakage,
        dt=dt
    )

    state.water_level = balance.level
    state.sensor_level = sensed
    state.target_level = target
    state.inflow_at_pump = pump_output
    state.inflow_at_tank = tank_inflow
    state.outflow = demand
    state.leak_flow = balance.leak

    # (f) 遥测
    record = TelemetryRecord(
        t=now,
        level=balance.level,
        target=target,
        flow_in=pump_output,
        flow_out=demand,
        sensed_level=sensed,
        tank_inflow=tank_inflow,
        leak_flow=balance.leak
    )
    return state, record


class SimulationEngine:
    """
    输水系统仿真引擎

    独占全部可变仿真状态。引擎本身不加锁, 多线程场景由
    RealtimeRunner 在节拍边界串行化所有调用。
    """

    def __init__(self, paradigm: Union[DesignParadigm, ParadigmType] = None,
                 seed: Optional[int] = None,
                 settings: SimulationSettings = None,
                 control: ControlSettings = None,
                 faults: FaultState = None,
                 demand_pattern: DisturbanceConfig = None,
                 setpoint_pattern: DisturbanceConfig = None):
        paradigm = self._resolve_paradigm(paradigm or Config.DEFAULT_PARADIGM)
        self.config = SimulationConfig(
            paradigm=paradigm,
            faults=faults or FaultState(),
            settings=settings or replace(Config.simulation),
            control=control or replace(Config.control),
        )
        ConfigValidator.raise_for(self.config.validate())

        self.seed = seed
        self.rng = np.random.default_rng(seed)
        self.bank = ControllerBank(paradigm, self.config.control)

        self.state = SimulationState.initial(self.settings, demand_pattern, setpoint_pattern)

        self.history: deque = deque(maxlen=self.settings.max_history)
        self.events: deque = deque(maxlen=self.settings.event_log_size)
        self.status = SimulationStatus.IDLE
        self.last_record: Optional[TelemetryRecord] = None

        # 回调
        self.callbacks: Dict[str, Callable] = {}

    # ==========================================
    # 属性
    # ==========================================

    @property
    def settings(self) -> SimulationSettings:
        return self.config.settings

    @property
    def paradigm(self) -> DesignParadigm:
        return self.config.paradigm

    @property
    def faults(self) -> FaultState:
        return self.config.faults

    @property
    def time(self) -> float:
        return self.state.time

    @property
    def plans(self):
        return self.state.plans

    def register_callback(self, event: str, callback: Callable):
        """注册回调 (on_step / on_event)"""
        self.callbacks[event] = callback

    # ==========================================
    # 配置入口
    # ==========================================

    @staticmethod
    def _resolve_paradigm(paradigm: Union[DesignParadigm, ParadigmType]) -> DesignParadigm:
        if isinstance(paradigm, ParadigmType):
            return get_paradigm(paradigm)
        return paradigm

    def deploy_paradigm(self, paradigm: Union[DesignParadigm, ParadigmType]):
        """部署设计范式 (重置控制器内部状态)"""
        paradigm = self._resolve_paradigm(paradigm)
        ConfigValidator.raise_for([
            ConfigValidator.validate_positive(paradigm.tank_area, "tank_area")
        ])
        self.config.paradigm = paradigm
        self.bank.select(paradigm, self.state.controller, self.state.water_level)
        self._note("paradigm",
                   f"设计变更：已部署【{paradigm.name}】。控制算法切换为 "
                   f"{paradigm.algorithm.value}，调蓄池面积调整为 {paradigm.tank_area:g} m²。")

    def set_demand_pattern(self, pattern: DisturbanceConfig):
        """立即切换需求波形"""
        ConfigValidator.raise_for(pattern.validate())
        self.state.demand_pattern = pattern
        self._note("pattern", f"操作记录：用户手动切换了负载模式 ({pattern.type.value})。")

    def set_setpoint_pattern(self, pattern: DisturbanceConfig):
        """立即切换设定值波形"""
        ConfigValidator.raise_for(pattern.validate())
        self.state.setpoint_pattern = pattern
        self._note("pattern", f"操作记录：用户手动切换了设定值模式 ({pattern.type.value})。")

    def set_setpoint(self, value: float):
        """设定值改为恒定值"""
        self.set_setpoint_pattern(DisturbanceConfig.constant(value))

    def add_plan(self, plan: PlanStep) -> PlanStep:
        """加入预案 (绝对触发时间)"""
        payload = plan.payload
        if isinstance(payload, ChangeDisturbance):
            ConfigValidator.raise_for(payload.config.validate())
        else:
            ConfigValidator.raise_for([ConfigValidator.validate_finite(payload.value, "setpoint")])
        return self.state.plans.schedule(plan)

    def schedule_plan(self, delay: float, payload: PlanPayload,
                      description: str = None) -> PlanStep:
        """加入预案 (相对当前仿真时间)"""
        ConfigValidator.raise_for([ConfigValidator.validate_non_negative(delay, "delay")])
        if description is None:
            description = f"{delay:g}秒后{payload.describe()}"
        return self.add_plan(PlanStep(
            trigger_time=round(self.state.time + delay, 9),
            payload=payload,
            description=description
        ))

    def cancel_plan(self, plan_id: str) -> bool:
        """取消预案"""
        return self.state.plans.cancel(plan_id)

    def set_fault(self, channel: str, active: bool, value: float = None):
        """设置一路故障"""
        if channel not in FAULT_CHANNELS:
            raise KeyError(channel)
        current = getattr(self.faults, channel)
        fault = FaultConfig(active=active, value=current.value if value is None else float(value))
        faults = self.faults.with_fault(channel, fault)
        ConfigValidator.raise_for(faults.validate())
        self.config.faults = faults
        state_text = "注入" if active else "解除"
        self._note("fault", f"故障{state_text}：{channel} = {fault.value:g}")

    def clear_fault(self, channel: str):
        """解除一路故障"""
        self.set_fault(channel, active=False)

    def clear_faults(self):
        """解除全部故障"""
        self.config.faults = FaultState()
        self._note("fault", "故障已全部解除")

    # ==========================================
    # 运行控制
    # ==========================================

    def step(self) -> TelemetryRecord:
        """推进一步"""
        _, record = step(
            self.state, self.config,
            dt=self.settings.dt,
            rng=self.rng,
            bank=self.bank,
            on_plan=self._on_plan_fired
        )
        self.history.append(record)
        self.last_record = record

        logger.debug(f"t={record.t:.1f}s h={record.level:.3f} "
                     f"u={record.flow_in:.2f} d={record.flow_out:.2f}")

        if 'on_step' in self.callbacks:
            self.callbacks['on_step'](record)

        return record

    def run(self, steps: int) -> List[TelemetryRecord]:
        """无节拍批量推进"""
        return [self.step() for _ in range(int(steps))]

    def run_for(self, seconds: float) -> List[TelemetryRecord]:
        """按仿真时长推进"""
        return self.run(int(round(seconds / self.settings.dt)))

    def pause(self):
        if self.status == SimulationStatus.RUNNING:
            self.status = SimulationStatus.PAUSED
            self._note("control", "仿真已暂停")

    def resume(self):
        if self.status != SimulationStatus.RUNNING:
            self.status = SimulationStatus.RUNNING
            self._note("control", "仿真运行中")

    def reset(self):
        """
        重置

        水位、滞后缓冲、预案队列、控制器内部状态恢复初值,
        随机源按原种子重新播种; 当前波形、已部署范式与故障保持不变。
        """
        self.state = SimulationState.initial(
            self.settings, self.state.demand_pattern, self.state.setpoint_pattern)
        self.rng = np.random.default_rng(self.seed)
        self.history.clear()
        self.last_record = None
        self.status = SimulationStatus.IDLE
        self._note("control", "仿真已重置")

    # ==========================================
    # 读取接口
    # ==========================================

    def snapshot(self) -> StateSnapshot:
        """当前只读快照"""
        state = self.state
        return StateSnapshot(
            time=state.time,
            true_level=state.water_level,
            sensed_level=state.sensor_level,
            target_level=state.target_level,
            pump_outflow=state.inflow_at_pump,
            tank_inflow=state.inflow_at_tank,
            demand_outflow=state.outflow,
            leak_flow=state.leak_flow,
            valve_open=state.valve_open,
            fault_flags=self.faults.flags(),
            faults=self.faults,
            paradigm=self.paradigm,
            status=self.status.name,
            controller=self.bank.get_status(state.controller),
            pending_plans=len(state.plans.pending()),
        )

    def telemetry(self) -> List[TelemetryRecord]:
        """遥测历史 (最近保留窗口)"""
        return list(self.history)

    def mpc_prediction(self) -> List[Tuple[float, float, float]]:
        """MPC 预测轨迹 (非 MPC 范式时为空)"""
        if self.paradigm.algorithm != ControlAlgorithm.MPC:
            return []
        state = self.state
        return self.bank.mpc.predict_trajectory(
            level=state.sensor_level,
            time=state.time,
            dt=self.settings.dt,
            tank_area=self.paradigm.tank_area,
            delay_line=state.delay_line,
            demand_pattern=state.demand_pattern,
            hold=state.controller.last_output
        )

    def recent_events(self, count: int = 10) -> List[EngineEvent]:
        return list(self.events)[-count:]

    # ==========================================
    # 内部
    # ==========================================

    def _on_plan_fired(self, plan: PlanStep):
        payload = plan.payload
        if isinstance(payload, ChangeDisturbance) and payload.scope == PatternScope.DEMAND:
            message = "注意：系统已自动切换用户用水（负载）模式，请评估影响。"
        else:
            message = "注意：系统已自动变更控制目标（设定值），请观察响应。"
        self._note("plan", f"{message} [{plan.description}]")

    def _note(self, category: str, message: str):
        event = EngineEvent(time=self.state.time, category=category, message=message)
        self.events.append(event)
        logger.info(f"[{event.time:.1f}s] {message}")
        if 'on_event' in self.callbacks:
            self.callbacks['on_event'](event)


__all__ = [
    'SimulationStatus',
    'EngineEvent',
    'apply_plan',
    'step',
    'SimulationEngine',
]
