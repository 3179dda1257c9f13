"""
扰动发生器
==========

按波形配置计算某一时刻的用户需求 (出流) 或设定值:
- 确定性波形: 恒定/阶跃/爬坡/正弦/方波/三角/锯齿/脉冲/突发
- 随机波形: 白噪声/随机游走 (随机源由调用方注入)

``evaluate`` 为纯函数，除随机波形外不依赖任何状态。
"""

import math
from dataclasses import dataclass, asdict, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..config.settings import Config
from ..config.validation import ConfigValidator, ValidationResult


class DisturbanceType(Enum):
    """波形类型"""
    CONSTANT = "CONSTANT"        # 恒定值
    STEP = "STEP"                # 阶跃突变
    RAMP = "RAMP"                # 线性爬坡
    SINE = "SINE"                # 正弦波动
    SQUARE = "SQUARE"            # 方波震荡
    TRIANGLE = "TRIANGLE"        # 三角波
    SAWTOOTH = "SAWTOOTH"        # 锯齿波
    PULSE = "PULSE"              # 脉冲干扰
    NOISE = "NOISE"              # 随机白噪声
    RANDOM_WALK = "RANDOM_WALK"  # 随机游走
    BURST = "BURST"              # 突发洪峰


DISTURBANCE_LABELS: Dict[DisturbanceType, str] = {
    DisturbanceType.CONSTANT: "恒定值 (Constant)",
    DisturbanceType.STEP: "阶跃突变 (Step)",
    DisturbanceType.RAMP: "线性爬坡 (Ramp)",
    DisturbanceType.SINE: "正弦波动 (Sine)",
    DisturbanceType.SQUARE: "方波震荡 (Square)",
    DisturbanceType.TRIANGLE: "三角波 (Triangle)",
    DisturbanceType.SAWTOOTH: "锯齿波 (Sawtooth)",
    DisturbanceType.PULSE: "脉冲干扰 (Pulse)",
    DisturbanceType.NOISE: "随机白噪声 (Noise)",
    DisturbanceType.RANDOM_WALK: "随机游走 (Walk)",
    DisturbanceType.BURST: "突发洪峰 (Burst)",
}

BURST_CYCLE = 20.0        # 突发周期 (s)
BURST_ONSET = 18.0        # 周期内突发起点 (s)
WALK_RATE = 0.1           # 随机游走慢变分量角频率 (rad/s)
WALK_JITTER = 5.0         # 随机游走抖动峰峰值


@dataclass(frozen=True)
class DisturbanceConfig:
    """
    波形配置 (不可变)

    运行中不逐字段修改，变更时整体替换。
    """
    type: DisturbanceType = DisturbanceType.CONSTANT
    base: float = 0.0
    amplitude: float = 0.0
    frequency: float = 0.0   # Hz, 使用前下限截断到 epsilon
    active: bool = True

    @property
    def period(self) -> float:
        """周期 (s)"""
        return 1.0 / max(Config.physics.epsilon, self.frequency)

    def replace(self, **changes) -> 'DisturbanceConfig':
        """返回替换部分字段后的新配置"""
        return replace(self, **changes)

    def validate(self) -> List[ValidationResult]:
        """数值校验"""
        return [
            ConfigValidator.validate_finite(self.base, "base"),
            ConfigValidator.validate_finite(self.amplitude, "amplitude"),
            ConfigValidator.validate_finite(self.frequency, "frequency"),
        ]

    def to_dict(self) -> Dict:
        """转换为字典"""
        data = asdict(self)
        data["type"] = self.type.value
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'DisturbanceConfig':
        """从字典构造"""
        return cls(
            type=DisturbanceType(data.get("type", "CONSTANT")),
            base=float(data.get("base", 0.0)),
            amplitude=float(data.get("amplitude", 0.0)),
            frequency=float(data.get("frequency", 0.0)),
            active=bool(data.get("active", True)),
        )

    @classmethod
    def constant(cls, value: float) -> 'DisturbanceConfig':
        """恒定值波形"""
        return cls(type=DisturbanceType.CONSTANT, base=float(value))


def _uniform(rng: Optional[np.random.Generator], low: float, high: float) -> float:
    """均匀分布采样; 无随机源时取期望值"""
    if rng is None:
        return 0.5 * (low + high)
    return float(rng.uniform(low, high))


def evaluate(t: float, config: DisturbanceConfig,
             rng: Optional[np.random.Generator] = None) -> float:
    """
    计算波形在时刻 t 的取值

    Parameters:
        t: 仿真时间 (s)
        config: 波形配置
        rng: 随机源 (仅 NOISE / RANDOM_WALK 使用)。
            为 None 时随机分量取期望值0，用于确定性预测。

    Returns:
        波形值
    """
    base = config.base
    amplitude = config.amplitude

    if not config.active:
        return base

    kind = config.type
    omega = 2 * math.pi * config.frequency
    period = config.period
    local_t = t % period
    phase = local_t / period

    if kind == DisturbanceType.CONSTANT:
        return base
    if kind == DisturbanceType.STEP:
        return base if local_t < period / 2 else base + amplitude
    if kind == DisturbanceType.RAMP:
        return base + amplitude * phase
    if kind == DisturbanceType.SINE:
        return base + amplitude * math.sin(omega * t)
    if kind == DisturbanceType.SQUARE:
        return base + amplitude * float(np.sign(math.sin(omega * t)))
    if kind == DisturbanceType.TRIANGLE:
        return base + amplitude * (2 * abs(2 * phase - 1) - 1)
    if kind == DisturbanceType.SAWTOOTH:
        return base + amplitude * (2 * phase - 1)
    if kind == DisturbanceType.PULSE:
        return base + amplitude if local_t < 0.1 * period else base
    if kind == DisturbanceType.NOISE:
        return base + amplitude * _uniform(rng, -0.5, 0.5)
    if kind == DisturbanceType.RANDOM_WALK:
        jitter = _uniform(rng, -WALK_JITTER / 2, WALK_JITTER / 2)
        return base + amplitude * math.sin(WALK_RATE * t) + jitter
    if kind == DisturbanceType.BURST:
        return base + 2 * amplitude if (t % BURST_CYCLE) > BURST_ONSET else base

    return base


def sample_window(config: DisturbanceConfig, start: float = 0.0,
                  duration: float = 10.0, samples: int = 100,
                  rng: Optional[np.random.Generator] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    采样一段时间窗内的波形 (用于未来预览)

    Returns:
        (时间数组, 取值数组)
    """
    samples = max(1, int(samples))
    times = start + np.arange(samples) * (duration / samples)
    values = np.array([evaluate(float(t), config, rng) for t in times])
    return times, values


__all__ = [
    'DisturbanceType',
    'DISTURBANCE_LABELS',
    'DisturbanceConfig',
    'evaluate',
    'sample_window'
]
