"""
PID控制器
=========

位置式PID:
- 积分限幅抗饱和 (±500)
- 误差微分
- 固定前馈偏置 (额定稳态需求)
- 按调蓄池面积调度比例增益
"""

from typing import Dict

import numpy as np

from ..config.settings import Config, ControlAlgorithm
from .base import ControllerState, ControlInput, LevelController


class PIDController(LevelController):
    """
    调蓄池水位PID控制器

    大调蓄池 (面积>100m²) 稳定裕度大, 使用激进增益 Kp=5;
    小调蓄池使用保守增益 Kp=2。
    """

    algorithm = ControlAlgorithm.PID

    def kp_for(self, tank_area: float) -> float:
        """比例增益"""
        if tank_area > self.settings.pid_area_threshold:
            return self.settings.pid_kp_large
        return self.settings.pid_kp_small

    def output(self, error: float, integral: float, derivative: float,
               tank_area: float) -> float:
        """
        PID输出 (未限幅)

        u = Kp*e + Ki*I + Kd*D + 偏置
        """
        return (self.kp_for(tank_area) * error
                + self.settings.pid_ki * integral
                + self.settings.pid_kd * derivative
                + self.settings.feedforward_bias)

    def law(self, state: ControllerState, inp: ControlInput, error: float) -> float:
        limit = self.settings.integral_limit
        state.integral = float(np.clip(state.integral + error * inp.dt, -limit, limit))

        dt = max(Config.physics.epsilon, inp.dt)
        state.derivative = (error - state.last_error) / dt

        return self.output(error, state.integral, state.derivative, inp.tank_area)

    def get_params(self, tank_area: float) -> Dict[str, float]:
        return {
            'Kp': self.kp_for(tank_area),
            'Ki': self.settings.pid_ki,
            'Kd': self.settings.pid_kd,
        }
