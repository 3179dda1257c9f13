"""
故障模型
========

三路相互独立的故障通道:
- 泄漏: 与水位平方根成正比的压力驱动出流
- 泵效率下降: 按比例削减泵站最大流量
- 传感器漂移: 测量值叠加恒定偏置

另外, 无论是否存在漂移故障, 水位测量始终叠加零均值噪声。
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from ..config.settings import Config
from ..config.validation import ConfigValidator, ValidationResult


FAULT_CHANNELS = ("leakage", "pump_efficiency", "sensor_drift")


@dataclass(frozen=True)
class FaultConfig:
    """单路故障配置"""
    active: bool = False
    value: float = 0.0   # 强度, 单位随故障类型而定

    def to_dict(self) -> Dict:
        return {"active": self.active, "value": self.value}

    @classmethod
    def from_dict(cls, data: Dict) -> 'FaultConfig':
        return cls(active=bool(data.get("active", False)),
                   value=float(data.get("value", 0.0)))


@dataclass(frozen=True)
class FaultState:
    """
    故障状态

    leakage: 泄漏系数 (value/10 * sqrt(h))
    pump_efficiency: 效率下降百分比 (%)
    sensor_drift: 漂移量 (m)
    """
    leakage: FaultConfig = field(default_factory=FaultConfig)
    pump_efficiency: FaultConfig = field(default_factory=FaultConfig)
    sensor_drift: FaultConfig = field(default_factory=FaultConfig)

    def with_fault(self, channel: str, fault: FaultConfig) -> 'FaultState':
        """返回替换某一路故障后的新状态"""
        if channel not in FAULT_CHANNELS:
            raise KeyError(channel)
        values = {name: getattr(self, name) for name in FAULT_CHANNELS}
        values[channel] = fault
        return FaultState(**values)

    def flags(self) -> Dict[str, bool]:
        """故障激活标志"""
        return {name: getattr(self, name).active for name in FAULT_CHANNELS}

    def any_active(self) -> bool:
        return any(self.flags().values())

    def validate(self) -> List[ValidationResult]:
        """数值校验"""
        return [
            ConfigValidator.validate_non_negative(getattr(self, name).value, name)
            for name in FAULT_CHANNELS
            if name != "sensor_drift"
        ] + [ConfigValidator.validate_finite(self.sensor_drift.value, "sensor_drift")]

    def to_dict(self) -> Dict:
        return {name: getattr(self, name).to_dict() for name in FAULT_CHANNELS}

    @classmethod
    def from_dict(cls, data: Dict) -> 'FaultState':
        return cls(**{
            name: FaultConfig.from_dict(data.get(name, {}))
            for name in FAULT_CHANNELS
        })


def leak_flow(water_level: float, fault: FaultConfig) -> float:
    """
    泄漏流量

    Q_leak = (value / 10) * sqrt(max(0, h))

    Parameters:
        water_level: 真实水位 (m)
        fault: 泄漏故障配置

    Returns:
        泄漏流量 (m³/s), 未激活时为0
    """
    if not fault.active:
        return 0.0
    coefficient = fault.value / Config.physics.leak_divisor
    return coefficient * math.sqrt(max(0.0, water_level))


def efficiency_factor(fault: FaultConfig) -> float:
    """泵效率系数 (1 - value/100), 下限为0"""
    if not fault.active:
        return 1.0
    return max(0.0, 1.0 - fault.value / 100.0)


def pump_capacity(max_flow: float, fault: FaultConfig) -> float:
    """考虑效率故障后的泵站最大可达流量"""
    return max_flow * efficiency_factor(fault)


def sense_level(true_level: float, fault: FaultConfig,
                rng: Optional[np.random.Generator] = None) -> float:
    """
    水位测量

    测量值 = 真实水位 + 漂移偏置(若激活) + 均匀噪声 U(-0.05, 0.05)

    Parameters:
        true_level: 真实水位 (m)
        fault: 传感器漂移故障配置
        rng: 随机源, 为 None 时不加噪声

    Returns:
        测量水位 (m)
    """
    sensed = true_level
    if fault.active:
        sensed += fault.value

    if rng is not None:
        half = Config.physics.sensor_noise_amplitude / 2
        sensed += float(rng.uniform(-half, half))

    return sensed


__all__ = [
    'FAULT_CHANNELS',
    'FaultConfig',
    'FaultState',
    'leak_flow',
    'efficiency_factor',
    'pump_capacity',
    'sense_level'
]
