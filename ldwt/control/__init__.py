"""
控制算法模块
============

三种可互换的水位控制律:
- PID控制器 (带抗积分饱和与前馈偏置)
- 史密斯预估器 (无滞后内模补偿)
- 简化模型预测控制 (有限时域前瞻)
"""

from .base import ControllerState, ControlInput, LevelController
from .pid import PIDController
from .smith import SmithPredictorController
from .mpc import MPCController
from .bank import ControllerBank

__all__ = [
    'ControllerState',
    'ControlInput',
    'LevelController',
    'PIDController',
    'SmithPredictorController',
    'MPCController',
    'ControllerBank',
]
