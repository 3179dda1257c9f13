"""
诊断助手上下文
==============

为外部诊断助手构造某一时刻的上下文:
当前设计范式、状态快照、故障快照、控制参数。
核心只负责提供上下文文本, 不解析也不执行助手的输出。
"""

from dataclasses import dataclass, field
from typing import Dict, List

from ..config.settings import DesignParadigm
from ..core.faults import FaultState
from ..simulation.engine import EngineEvent, SimulationEngine
from ..simulation.state import StateSnapshot


@dataclass(frozen=True)
class AssistantContext:
    """助手上下文 (时间点快照)"""
    paradigm: DesignParadigm
    state: StateSnapshot
    faults: FaultState
    control_params: Dict[str, float] = field(default_factory=dict)
    recent_events: List[EngineEvent] = field(default_factory=list)


def build_context(engine: SimulationEngine, event_count: int = 5) -> AssistantContext:
    """从引擎当前状态构造上下文"""
    snapshot = engine.snapshot()
    return AssistantContext(
        paradigm=engine.paradigm,
        state=snapshot,
        faults=engine.faults,
        control_params=dict(snapshot.controller.get('params', {})),
        recent_events=engine.recent_events(event_count),
    )


def format_telemetry(context: AssistantContext) -> str:
    """渲染随每次提问附带的遥测文本"""
    state = context.state
    paradigm = context.paradigm
    faults = context.faults

    lines = [
        "[系统实时遥测 - 长距离输水模型]",
        f"仿真时间: {state.time:.1f}s",
        "",
        f"[设计范式: {paradigm.name}]",
        f"类型: {paradigm.type.value}",
        f"调蓄池物理面积: {paradigm.tank_area:g} m²",
        f"控制算法: {paradigm.algorithm.value}",
        "",
        "[核心状态]",
        f"设定值 (SP): {state.target_level:.2f}m",
        f"反馈值 (PV): {state.sensed_level:.2f}m",
        f"真实水位: {state.true_level:.2f}m",
        f"误差 (e): {state.error:.2f}m",
        "",
        "[流量平衡]",
        f"泵站输出: {state.pump_outflow:.2f} m3/s",
        f"池入口流量(滞后): {state.tank_inflow:.2f} m3/s",
        f"用户需求(扰动): {state.demand_outflow:.2f} m3/s",
        "",
        "[故障状态]",
        f"泄漏: {'YES' if faults.leakage.active else 'NO'}",
        f"泵效率: {'LOW' if faults.pump_efficiency.active else 'NORMAL'}",
        f"传感器: {'DRIFTING' if faults.sensor_drift.active else 'NORMAL'}",
    ]

    if context.control_params:
        lines.append("")
        lines.append("[控制参数]")
        for name, value in context.control_params.items():
            lines.append(f"{name}: {value:g}")

    if context.recent_events:
        lines.append("")
        lines.append("[近期操作]")
        for event in context.recent_events:
            lines.append(f"[{event.time:.1f}s] {event.message}")

    return "\n".join(lines)


def system_instruction(context: AssistantContext) -> str:
    """渲染范式背景说明"""
    area = context.paradigm.tank_area
    return "\n".join([
        "你是工业控制系统专家 (ICS Expert)。",
        "",
        f"当前系统正运行在【{context.paradigm.name}】范式下。",
        "",
        "设计背景：",
        f"1. 传统范式 (PID)：依赖巨大的调蓄池 ({area:g}m²) 来缓冲波动。"
        "如果水位波动大，说明 PID 参数不佳。",
        "2. 改良范式 (Smith)：使用中型调蓄池。Smith 预估器应该能消除滞后带来的震荡。",
        f"3. 现代范式 (MPC)：使用极小的调蓄池 ({area:g}m²)。依靠高频预测控制来维持平衡。"
        "如果在此模式下出现溢流或抽空，说明 MPC 预测时域不足或模型失配。",
        "",
        "请结合当前的【设计范式】和【实时数据】进行诊断。",
    ])


def build_prompt(context: AssistantContext, question: str) -> str:
    """遥测文本 + 用户提问"""
    return f"{format_telemetry(context)}\n\n用户: {question}"


__all__ = [
    'AssistantContext',
    'build_context',
    'format_telemetry',
    'system_instruction',
    'build_prompt',
]
