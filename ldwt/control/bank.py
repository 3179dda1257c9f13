"""
控制器组
========

同一时刻只有一个控制律生效 (PID / SMITH / MPC), 由设计范式从外部选定。
算法之间没有运行时切换逻辑: 更换范式即替换配置并重置内部状态。
"""

import logging
from typing import Dict

import numpy as np

from ..config.settings import Config, ControlAlgorithm, ControlSettings, DesignParadigm
from .base import ControllerState, ControlInput, LevelController
from .pid import PIDController
from .smith import SmithPredictorController
from .mpc import MPCController


logger = logging.getLogger('LDWT.Control')


class ControllerBank:
    """
    控制器组

    - 按范式选择控制律
    - 统一输出限幅 [0, max_flow]
    - 无论算法, 每步都更新 last_error 与 last_output
    """

    def __init__(self, paradigm: DesignParadigm, settings: ControlSettings = None):
        self.settings = settings or Config.control
        self.controllers: Dict[ControlAlgorithm, LevelController] = {
            ControlAlgorithm.PID: PIDController(self.settings),
            ControlAlgorithm.SMITH: SmithPredictorController(self.settings),
            ControlAlgorithm.MPC: MPCController(self.settings),
        }
        self.paradigm = paradigm

    @property
    def algorithm(self) -> ControlAlgorithm:
        return self.paradigm.algorithm

    @property
    def active(self) -> LevelController:
        """当前生效的控制律"""
        return self.controllers[self.paradigm.algorithm]

    @property
    def mpc(self) -> MPCController:
        return self.controllers[ControlAlgorithm.MPC]

    def select(self, paradigm: DesignParadigm, state: ControllerState,
               current_level: float):
        """
        切换设计范式

        清零积分与上次误差, 并以当前水位重新初始化史密斯内模,
        避免旧状态在新的调蓄池面积下引起瞬态失稳。
        """
        previous = self.paradigm
        self.paradigm = paradigm
        state.reset(model_level=current_level)
        logger.info(f"控制律切换: {previous.algorithm.value} -> {paradigm.algorithm.value} "
                    f"(调蓄池 {paradigm.tank_area} m²)")

    def compute(self, state: ControllerState, inp: ControlInput,
                algorithm: ControlAlgorithm = None) -> float:
        """
        计算泵站出流

        Parameters:
            state: 控制器内部状态 (原地更新)
            inp: 单步控制输入
            algorithm: 指定控制律, 默认取当前范式

        Returns:
            限幅后的泵站出流 (m³/s)
        """
        error = inp.target - inp.sensed_level
        state.error = error

        controller = self.controllers[algorithm] if algorithm else self.active
        raw = controller.law(state, inp, error)
        max_flow = max(0.0, inp.max_flow)
        output = float(np.clip(raw, 0.0, max_flow))

        state.raw_output = raw
        state.is_saturated = output != raw
        state.last_error = error
        state.last_output = output

        return output

    def get_status(self, state: ControllerState) -> Dict:
        """获取控制器状态"""
        return {
            'algorithm': self.algorithm.value,
            'error': state.error,
            'integral': state.integral,
            'output': state.last_output,
            'is_saturated': state.is_saturated,
            'params': self.active.get_params(self.paradigm.tank_area),
        }


__all__ = ['ControllerBank']
