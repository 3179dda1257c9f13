"""
简化模型预测控制
================

有限时域开环前瞻:
1. 管道中已有的水按滞后顺序到达, 尚未泵出的部分保持上次输出
2. 需求按当前配置波形预测 (控制器已知需求波形)
3. 计算时域末端误差, 对上次输出做一次性校正

不是完整的滚动优化, 仅对时域末端误差做单次比例校正。
"""

from typing import Dict, List, Tuple

from ..config.settings import Config, ControlAlgorithm
from ..core.delay_line import TransportDelayBuffer
from ..core.disturbance import DisturbanceConfig, evaluate
from .base import ControllerState, ControlInput, LevelController


class MPCController(LevelController):
    """
    有限时域预测水位控制器

    时域 50 步 (dt=0.1 时为 5s), 输出 u = u_last + (SP - h_pred[N]) * 2.0
    """

    algorithm = ControlAlgorithm.MPC

    @property
    def horizon(self) -> int:
        return self.settings.mpc_horizon

    def predict_trajectory(self, level: float, time: float, dt: float,
                           tank_area: float, delay_line: TransportDelayBuffer,
                           demand_pattern: DisturbanceConfig,
                           hold: float) -> List[Tuple[float, float, float]]:
        """
        预测未来水位轨迹

        随机波形的需求取期望值, 预测本身不消耗随机源。

        Parameters:
            level: 起始水位 (m)
            time: 起始时间 (s)
            dt: 步长 (s)
            tank_area: 调蓄池面积 (m²)
            delay_line: 管道滞后缓冲
            demand_pattern: 需求波形
            hold: 尚未泵出部分的假定出流 (上次输出)

        Returns:
            [(时间, 预测水位, 预测需求), ...], 长度为时域步数
        """
        area = max(Config.physics.epsilon, tank_area)
        inflows = delay_line.future_inflows(self.horizon, hold)

        trajectory = []
        predicted = level
        for i, future_in in enumerate(inflows):
            future_t = time + i * dt
            future_demand = evaluate(future_t, demand_pattern)
            predicted += ((future_in - future_demand) * dt) / area
            trajectory.append((future_t, predicted, future_demand))

        return trajectory

    def law(self, state: ControllerState, inp: ControlInput, error: float) -> float:
        trajectory = self.predict_trajectory(
            level=inp.sensed_level,
            time=inp.time,
            dt=inp.dt,
            tank_area=inp.tank_area,
            delay_line=inp.delay_line,
            demand_pattern=inp.demand_pattern,
            hold=state.last_output
        )
        state.predicted_level = trajectory[-1][1] if trajectory else inp.sensed_level

        future_error = inp.target - state.predicted_level
        return state.last_output + future_error * self.settings.mpc_gain

    def get_params(self, tank_area: float) -> Dict[str, float]:
        return {
            'horizon': float(self.horizon),
            'gain': self.settings.mpc_gain,
        }
