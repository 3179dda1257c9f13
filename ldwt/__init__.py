"""
长距离输水控制仿真平台 (Long-Distance Water Transport, LDWT)
============================================================

泵站 -> 长距离管道(纯滞后) -> 调蓄池 -> 用户需求 的固定步长仿真核心,
在三种可互换的设计范式 (PID / 史密斯预估器 / 简化MPC) 与物理故障注入下
产生遥测数据流, 供可视化与外部诊断助手消费。

模块结构:
- config: 全局配置、验证与日志
- core: 扰动发生器、故障模型、滞后缓冲、水量平衡
- control: 控制器组 (PID / SMITH / MPC)
- simulation: 预案调度、单步编排、实时运行、配置序列化
- assistant: 诊断助手上下文与解耦通道
- analysis: 性能指标与范式对比
"""

__version__ = "1.0.0"
__author__ = "LDWT Control Team"

from .config.settings import Config, ControlAlgorithm, ParadigmType, DesignParadigm, PARADIGMS
from .core.disturbance import DisturbanceType, DisturbanceConfig
from .core.faults import FaultConfig, FaultState
from .simulation.engine import SimulationEngine, SimulationStatus, step
from .simulation.plans import ChangeDisturbance, ChangeSetpoint, PatternScope, PlanStep
from .simulation.runner import RealtimeRunner

__all__ = [
    'Config',
    'ControlAlgorithm',
    'ParadigmType',
    'DesignParadigm',
    'PARADIGMS',
    'DisturbanceType',
    'DisturbanceConfig',
    'FaultConfig',
    'FaultState',
    'SimulationEngine',
    'SimulationStatus',
    'step',
    'ChangeDisturbance',
    'ChangeSetpoint',
    'PatternScope',
    'PlanStep',
    'RealtimeRunner',
]
