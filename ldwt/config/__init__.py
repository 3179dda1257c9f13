"""
配置模块
========

- settings: 仿真/控制/物理参数, 设计范式
- validation: 配置边界验证
- logging_config: 日志配置
"""

from .settings import (
    Config,
    ControlAlgorithm,
    ParadigmType,
    DesignParadigm,
    PARADIGMS,
    get_paradigm,
    SimulationSettings,
    ControlSettings,
    PhysicsSettings,
)
from .validation import (
    ValidationResult,
    ConfigurationError,
    ConfigValidator,
)
from .logging_config import RunEnvironment, setup_logging

__all__ = [
    'Config',
    'ControlAlgorithm',
    'ParadigmType',
    'DesignParadigm',
    'PARADIGMS',
    'get_paradigm',
    'SimulationSettings',
    'ControlSettings',
    'PhysicsSettings',
    'ValidationResult',
    'ConfigurationError',
    'ConfigValidator',
    'RunEnvironment',
    'setup_logging',
]
