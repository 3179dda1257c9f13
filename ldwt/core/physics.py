"""
调蓄池物理模型
==============

一阶水量平衡, 显式欧拉积分:

    h' = max(0, h + (Q_in - Q_demand - Q_leak) * dt / A)

其中 Q_in 为经管道滞后后的入流, Q_leak 为故障泄漏流量。
"""

from dataclasses import dataclass

from ..config.settings import Config
from .faults import FaultConfig, leak_flow


@dataclass
class TankBalance:
    """单步水量平衡"""
    level: float          # 积分后水位 (m)
    inflow: float         # 滞后入流 (m³/s)
    demand: float         # 需求出流 (m³/s)
    leak: float           # 泄漏流量 (m³/s)
    net_flow: float       # 净流量 (m³/s)


class TankPhysics:
    """
    调蓄池水位积分器

    水位为真实物理量, 仅由本积分器更新; 积分后截断为非负。
    """

    @staticmethod
    def integrate(level: float, delayed_inflow: float, demand: float,
                  tank_area: float, leakage: FaultConfig, dt: float) -> TankBalance:
        """
        推进一步

        Parameters:
            level: 当前真实水位 (m)
            delayed_inflow: 滞后入流 (m³/s)
            demand: 需求出流 (m³/s)
            tank_area: 调蓄池面积 (m²), 下限截断到 epsilon
            leakage: 泄漏故障配置
            dt: 时间步长 (s)

        Returns:
            TankBalance
        """
        leak = leak_flow(level, leakage)
        net_flow = delayed_inflow - demand - leak
        area = max(Config.physics.epsilon, tank_area)

        new_level = max(0.0, level + (net_flow * dt) / area)

        return TankBalance(
            level=new_level,
            inflow=delayed_inflow,
            demand=demand,
            leak=leak,
            net_flow=net_flow
        )


__all__ = ['TankBalance', 'TankPhysics']
