"""
史密斯预估器
============

用于补偿已知的管道输水滞后:
内部维护一个无滞后的调蓄池模型, 以模型水位计算预测误差,
并用 (测量 - 模型) 的失配量修正。
"""

from typing import Dict

from ..config.settings import Config, ControlAlgorithm
from .base import ControllerState, ControlInput, LevelController


class SmithPredictorController(LevelController):
    """
    史密斯预估水位控制器

    内模: h_m += (u_last - Q_demand) * dt / A
    输出: u = Kp * (e_pred - mismatch) + 偏置

    模型跟踪良好时失配量趋于0; 持续的大失配说明模型与对象发散。
    """

    algorithm = ControlAlgorithm.SMITH

    def law(self, state: ControllerState, inp: ControlInput, error: float) -> float:
        area = max(Config.physics.epsilon, inp.tank_area)
        state.model_level += ((state.last_output - inp.demand) * inp.dt) / area

        pred_error = inp.target - state.model_level
        state.mismatch = inp.sensed_level - state.model_level
        state.predicted_level = state.model_level

        # 纯比例律; smith_ki 已声明但未参与计算
        return self.settings.smith_kp * (pred_error - state.mismatch) + self.settings.feedforward_bias

    def get_params(self, tank_area: float) -> Dict[str, float]:
        return {
            'Kp': self.settings.smith_kp,
            'Ki': self.settings.smith_ki,
            'Kd': 0.0,
        }
