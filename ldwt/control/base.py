"""
控制器基类
==========

控制器本身只保存增益等参数; 积分、上次误差、内模水位、上次输出等内部状态
保存在 ControllerState 中，由仿真引擎持有并逐步传入。
"""

from dataclasses import dataclass, asdict
from typing import Dict

from ..config.settings import Config, ControlAlgorithm, ControlSettings
from ..core.delay_line import TransportDelayBuffer
from ..core.disturbance import DisturbanceConfig


@dataclass
class ControllerState:
    """控制器内部状态"""
    integral: float = 0.0        # 积分累加器 (已限幅)
    last_error: float = 0.0      # 上次误差
    model_level: float = 0.0     # 史密斯内模水位 (无滞后)
    last_output: float = 0.0     # 上次限幅后输出, SMITH/MPC 递推基准

    # 诊断量 (仅展示)
    error: float = 0.0
    derivative: float = 0.0
    mismatch: float = 0.0
    predicted_level: float = 0.0
    raw_output: float = 0.0
    is_saturated: bool = False

    def reset(self, model_level: float = 0.0):
        """清零全部内部状态"""
        self.integral = 0.0
        self.last_error = 0.0
        self.model_level = model_level
        self.last_output = 0.0
        self.error = 0.0
        self.derivative = 0.0
        self.mismatch = 0.0
        self.predicted_level = model_level
        self.raw_output = 0.0
        self.is_saturated = False

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class ControlInput:
    """单步控制输入"""
    target: float                      # 设定值 (m)
    sensed_level: float                # 测量水位 (m)
    demand: float                      # 当前需求 (m³/s)
    time: float                        # 当前仿真时间 (s)
    dt: float                          # 步长 (s)
    tank_area: float                   # 调蓄池面积 (m²)
    max_flow: float                    # 考虑故障后的最大流量 (m³/s)
    delay_line: TransportDelayBuffer   # 管道滞后缓冲 (MPC 只读)
    demand_pattern: DisturbanceConfig  # 当前需求波形 (MPC 预测用)


class LevelController:
    """
    水位控制律基类

    子类实现 ``law``，返回限幅前的泵站出流。
    """

    algorithm: ControlAlgorithm = None

    def __init__(self, settings: ControlSettings = None):
        self.settings = settings or Config.control

    def law(self, state: ControllerState, inp: ControlInput, error: float) -> float:
        """计算未限幅输出"""
        raise NotImplementedError

    def get_params(self, tank_area: float) -> Dict[str, float]:
        """控制参数 (展示用)"""
        raise NotImplementedError
