"""
仿真核心
========

纯函数组件 (由仿真引擎提供输入):
- disturbance: 扰动/设定值波形发生器
- faults: 泄漏、泵效率、传感器漂移故障模型
- delay_line: 输水管道纯滞后缓冲区
- physics: 调蓄池水量平衡积分器
"""

from .disturbance import (
    DisturbanceType,
    DisturbanceConfig,
    DISTURBANCE_LABELS,
    evaluate,
    sample_window,
)
from .faults import (
    FAULT_CHANNELS,
    FaultConfig,
    FaultState,
    leak_flow,
    efficiency_factor,
    pump_capacity,
    sense_level,
)
from .delay_line import TransportDelayBuffer
from .physics import TankPhysics, TankBalance

__all__ = [
    'DisturbanceType',
    'DisturbanceConfig',
    'DISTURBANCE_LABELS',
    'evaluate',
    'sample_window',
    'FAULT_CHANNELS',
    'FaultConfig',
    'FaultState',
    'leak_flow',
    'efficiency_factor',
    'pump_capacity',
    'sense_level',
    'TransportDelayBuffer',
    'TankPhysics',
    'TankBalance',
]
