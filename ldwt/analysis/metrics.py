"""
性能分析
========

基于遥测历史的控制性能指标与设计范式对比:
- 误差指标: MAE / RMSE / 最大误差
- 积分指标: IAE / ISE / ITAE (梯形积分)
- 响应特性: 超调量、调节时间
- 水位趋势: 线性回归斜率 (泄漏等缓慢失衡的征兆)
"""

from dataclasses import dataclass, asdict
from typing import Dict, List, Sequence

import numpy as np
from scipy import integrate, stats

from ..config.settings import PARADIGMS, ParadigmType
from ..core.disturbance import DisturbanceConfig
from ..core.faults import FaultState
from ..simulation.engine import SimulationEngine
from ..simulation.state import TelemetryRecord


@dataclass
class PerformanceMetrics:
    """性能指标"""
    # 误差指标
    mae: float = 0.0            # 平均绝对误差 (m)
    rmse: float = 0.0           # 均方根误差 (m)
    max_error: float = 0.0      # 最大绝对误差 (m)

    # 积分指标
    iae: float = 0.0            # 积分绝对误差
    ise: float = 0.0            # 积分平方误差
    itae: float = 0.0           # 积分时间绝对误差

    # 响应特性
    overshoot: float = 0.0      # 超调量 (%), 仅在设定值阶跃后计算
    settling_time: float = 0.0  # 调节时间 (s)

    # 水位与流量
    level_min: float = 0.0
    level_max: float = 0.0
    level_slope: float = 0.0    # 水位趋势 (m/s)
    pump_mean: float = 0.0      # 泵站平均出流 (m³/s)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


class PerformanceAnalyzer:
    """
    性能分析器

    误差取 设定值 - 真实水位。
    """

    def __init__(self, settling_band: float = 0.5):
        """
        Parameters:
            settling_band: 调节带宽 (m), 误差保持在带内视为已调节
        """
        self.settling_band = settling_band

    def analyze(self, time: np.ndarray, setpoint: np.ndarray,
                level: np.ndarray, pump: np.ndarray = None) -> PerformanceMetrics:
        """
        分析控制性能

        Parameters:
            time: 时间序列
            setpoint: 设定值序列
            level: 水位序列
            pump: 泵站出流序列 (可选)

        Returns:
            PerformanceMetrics
        """
        if len(time) < 2:
            return PerformanceMetrics()

        time = np.asarray(time, dtype=float)
        setpoint = np.asarray(setpoint, dtype=float)
        level = np.asarray(level, dtype=float)
        error = setpoint - level
        abs_error = np.abs(error)

        metrics = PerformanceMetrics()

        metrics.mae = float(np.mean(abs_error))
        metrics.rmse = float(np.sqrt(np.mean(error ** 2)))
        metrics.max_error = float(np.max(abs_error))

        elapsed = time - time[0]
        metrics.iae = float(integrate.trapezoid(abs_error, time))
        metrics.ise = float(integrate.trapezoid(error ** 2, time))
        metrics.itae = float(integrate.trapezoid(elapsed * abs_error, time))

        self._analyze_response(time, setpoint, level, metrics)

        metrics.level_min = float(np.min(level))
        metrics.level_max = float(np.max(level))
        metrics.level_slope = float(stats.linregress(time, level).slope)
        if pump is not None and len(pump) > 0:
            metrics.pump_mean = float(np.mean(pump))

        return metrics

    def _analyze_response(self, time: np.ndarray, setpoint: np.ndarray,
                          level: np.ndarray, metrics: PerformanceMetrics):
        """超调量与调节时间 (从最后一次设定值阶跃起算, 无阶跃时从起点起算)"""
        changes = np.where(np.abs(np.diff(setpoint)) > 0.01)[0]
        start = int(changes[-1]) + 1 if len(changes) > 0 else 0

        response = level[start:]
        target = setpoint[start:]
        response_time = time[start:] - time[start]
        if len(response) == 0:
            return

        if len(changes) > 0:
            before = setpoint[start - 1]
            after = setpoint[start]
            amplitude = after - before
            if amplitude > 0:
                metrics.overshoot = max(0.0, (np.max(response) - after) / amplitude * 100)
            else:
                metrics.overshoot = max(0.0, (after - np.min(response)) / abs(amplitude) * 100)

        outside = np.where(np.abs(target - response) > self.settling_band)[0]
        if len(outside) == 0:
            metrics.settling_time = 0.0
        elif outside[-1] + 1 < len(response_time):
            metrics.settling_time = float(response_time[outside[-1] + 1])
        else:
            # 未进入调节带
            metrics.settling_time = float('inf')

    def analyze_records(self, records: Sequence[TelemetryRecord]) -> PerformanceMetrics:
        """分析遥测记录序列"""
        if not records:
            return PerformanceMetrics()
        return self.analyze(
            time=np.array([r.t for r in records]),
            setpoint=np.array([r.target for r in records]),
            level=np.array([r.level for r in records]),
            pump=np.array([r.flow_in for r in records]),
        )

    @staticmethod
    def compare(results: Dict[str, PerformanceMetrics],
                metrics_to_compare: List[str] = None) -> Dict:
        """
        比较多个范式的性能

        Parameters:
            results: {名称: metrics}

        Returns:
            {'rankings': {指标: [名称...]}, 'best': {指标: 名称}}
        """
        comparison = {'rankings': {}, 'best': {}}
        metrics_to_compare = metrics_to_compare or ['iae', 'ise', 'itae', 'max_error',
                                                    'settling_time']

        for metric in metrics_to_compare:
            values = {name: getattr(m, metric) for name, m in results.items()}
            sorted_names = sorted(values.keys(), key=lambda x: values[x])
            comparison['rankings'][metric] = sorted_names
            if sorted_names:
                comparison['best'][metric] = sorted_names[0]

        return comparison


def compare_paradigms(duration: float = 60.0, seed: int = 0,
                      demand_pattern: DisturbanceConfig = None,
                      faults: FaultState = None,
                      analyzer: PerformanceAnalyzer = None) -> Dict[ParadigmType, PerformanceMetrics]:
    """
    在相同种子、相同扰动下分别运行三种设计范式

    Returns:
        {范式类型: 性能指标}
    """
    analyzer = analyzer or PerformanceAnalyzer()
    results = {}
    for paradigm in PARADIGMS:
        engine = SimulationEngine(paradigm=paradigm, seed=seed, faults=faults,
                                  demand_pattern=demand_pattern)
        records = engine.run_for(duration)
        results[paradigm.type] = analyzer.analyze_records(records)
    return results


__all__ = ['PerformanceMetrics', 'PerformanceAnalyzer', 'compare_paradigms']
