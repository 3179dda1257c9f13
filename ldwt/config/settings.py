"""
全局配置参数
============

长距离输水仿真平台的物理参数、控制参数和仿真配置。
参考拓扑固定为: 泵站 -> 长距离输水管道(纯滞后) -> 调蓄池 -> 用户需求。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple

from .validation import ConfigValidator, ConfigurationError


class ControlAlgorithm(Enum):
    """控制算法"""
    PID = "PID"          # 经典PID
    SMITH = "SMITH"      # 史密斯预估器
    MPC = "MPC"          # 简化模型预测控制


class ParadigmType(Enum):
    """设计范式"""
    TRADITIONAL = "TRADITIONAL"  # 以大设施换稳定
    IMPROVED = "IMPROVED"        # 内模控制补偿
    MODERN = "MODERN"            # 以算力换设施


@dataclass(frozen=True)
class DesignParadigm:
    """
    设计范式 (不可变)

    调蓄池面积与控制算法的组合，代表基础设施成本与算力成本之间的一个折中点。
    成本/韧性字段仅用于展示，不参与仿真计算。
    """
    type: ParadigmType
    name: str
    description: str
    tank_area: float                 # 调蓄池面积 (m²)
    algorithm: ControlAlgorithm
    infrastructure_cost: str = ""    # 展示用
    compute_cost: str = ""           # 展示用
    resilience: str = ""             # 展示用

    def __post_init__(self):
        result = ConfigValidator.validate_positive(self.tank_area, "tank_area")
        if not result.is_valid:
            raise ConfigurationError([result])

    def to_dict(self) -> Dict:
        """转换为字典"""
        return {
            "type": self.type.value,
            "name": self.name,
            "description": self.description,
            "tank_area": self.tank_area,
            "algorithm": self.algorithm.value,
            "infrastructure_cost": self.infrastructure_cost,
            "compute_cost": self.compute_cost,
            "resilience": self.resilience,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'DesignParadigm':
        """从字典构造"""
        return cls(
            type=ParadigmType(data["type"]),
            name=data.get("name", ""),
            description=data.get("description", ""),
            tank_area=float(data["tank_area"]),
            algorithm=ControlAlgorithm(data["algorithm"]),
            infrastructure_cost=data.get("infrastructure_cost", ""),
            compute_cost=data.get("compute_cost", ""),
            resilience=data.get("resilience", ""),
        )


PARADIGMS: Tuple[DesignParadigm, ...] = (
    DesignParadigm(
        type=ParadigmType.TRADITIONAL,
        name="传统设计范式",
        description="以大设施换稳定",
        tank_area=200.0,
        algorithm=ControlAlgorithm.PID,
        infrastructure_cost="$$$$",
        compute_cost="$",
        resilience="极高 (物理冗余)",
    ),
    DesignParadigm(
        type=ParadigmType.IMPROVED,
        name="改良设计范式",
        description="内模控制补偿",
        tank_area=80.0,
        algorithm=ControlAlgorithm.SMITH,
        infrastructure_cost="$$",
        compute_cost="$$",
        resilience="中 (算法补偿)",
    ),
    DesignParadigm(
        type=ParadigmType.MODERN,
        name="现代设计范式",
        description="以算力换设施",
        tank_area=15.0,
        algorithm=ControlAlgorithm.MPC,
        infrastructure_cost="$",
        compute_cost="$$$$",
        resilience="低 (依赖算力)",
    ),
)


def get_paradigm(paradigm_type: ParadigmType) -> DesignParadigm:
    """按类型获取内置设计范式"""
    for paradigm in PARADIGMS:
        if paradigm.type == paradigm_type:
            return paradigm
    raise KeyError(paradigm_type)


@dataclass
class SimulationSettings:
    """仿真配置"""
    dt: float = 0.1                      # 仿真步长 (s), 同时也是实时节拍周期
    pipe_delay_seconds: float = 5.0      # 管道输水滞后 (s)
    history_seconds: float = 60.0        # 遥测保留窗口 (s)
    initial_level: float = 295.0         # 初始水位 (m)
    valve_open: float = 100.0            # 出口阀开度 (%), 参考拓扑中恒定全开
    event_log_size: int = 200            # 事件日志容量
    plan_history_size: int = 100         # 已完成预案保留条数

    @property
    def buffer_size(self) -> int:
        """滞后缓冲区长度 (步)"""
        return int(round(self.pipe_delay_seconds / self.dt))

    @property
    def max_history(self) -> int:
        """遥测历史最大条数"""
        return int(round(self.history_seconds / self.dt))


@dataclass
class ControlSettings:
    """控制参数"""
    max_flow: float = 250.0              # 泵站最大流量 (m³/s)
    feedforward_bias: float = 50.0       # 前馈偏置, 代表额定稳态需求

    # PID
    pid_kp_large: float = 5.0            # 大调蓄池 (>100m²) 激进增益
    pid_kp_small: float = 2.0            # 小调蓄池保守增益
    pid_area_threshold: float = 100.0    # 增益切换面积阈值 (m²)
    pid_ki: float = 0.5
    pid_kd: float = 0.1
    integral_limit: float = 500.0        # 抗积分饱和限幅

    # 史密斯预估器
    smith_kp: float = 4.0
    smith_ki: float = 0.8                # 已声明但控制律未使用

    # MPC
    mpc_horizon: int = 50                # 预测时域 (步)
    mpc_gain: float = 2.0                # 时域末端误差校正增益


@dataclass
class PhysicsSettings:
    """物理与故障模型参数"""
    epsilon: float = 0.001               # 除数下限
    leak_divisor: float = 10.0           # 泄漏系数 = value / leak_divisor
    sensor_noise_amplitude: float = 0.1  # 传感器噪声峰峰值 (±0.05 m)


@dataclass
class DefaultPatterns:
    """默认扰动/设定值波形参数"""
    demand: Dict[str, object] = field(default_factory=lambda: {
        "type": "STEP", "base": 50.0, "amplitude": 100.0,
        "frequency": 0.1, "active": True,
    })
    setpoint: Dict[str, object] = field(default_factory=lambda: {
        "type": "CONSTANT", "base": 295.0, "amplitude": 0.0,
        "frequency": 0.0, "active": True,
    })


class Config:
    """全局配置 (类级默认值)"""
    simulation = SimulationSettings()
    control = ControlSettings()
    physics = PhysicsSettings()
    patterns = DefaultPatterns()

    DEFAULT_PARADIGM = ParadigmType.IMPROVED
