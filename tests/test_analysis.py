"""
分析模块测试
"""

import pytest
import numpy as np
import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ldwt.analysis import PerformanceAnalyzer, PerformanceMetrics, compare_paradigms
from ldwt.config.settings import ParadigmType
from ldwt.simulation.engine import SimulationEngine


class TestPerformanceAnalyzer:
    """性能分析器测试"""

    def test_integral_metrics(self):
        """恒定误差的积分指标"""
        analyzer = PerformanceAnalyzer()
        t = np.linspace(0, 10, 101)
        setpoint = np.full_like(t, 296.0)
        level = np.full_like(t, 295.0)

        metrics = analyzer.analyze(t, setpoint, level)

        assert metrics.mae == pytest.approx(1.0)
        assert metrics.rmse == pytest.approx(1.0)
        assert metrics.max_error == pytest.approx(1.0)
        assert metrics.iae == pytest.approx(10.0)
        assert metrics.ise == pytest.approx(10.0)
        assert metrics.itae == pytest.approx(50.0)

    def test_zero_error(self):
        """零误差"""
        analyzer = PerformanceAnalyzer()
        t = np.linspace(0, 10, 101)
        level = np.full_like(t, 295.0)

        metrics = analyzer.analyze(t, level, level)

        assert metrics.iae == 0.0
        assert metrics.overshoot == 0.0
        assert metrics.settling_time == 0.0
        assert metrics.level_slope == pytest.approx(0.0)

    def test_step_overshoot(self):
        """设定值阶跃后的超调量"""
        analyzer = PerformanceAnalyzer(settling_band=0.05)
        t = np.arange(11, dtype=float)
        setpoint = np.array([0, 0, 0] + [1] * 8, dtype=float)
        level = np.array([0, 0, 0, 0.5, 1.2, 1.1, 1.0, 1.0, 1.0, 1.0, 1.0])

        metrics = analyzer.analyze(t, setpoint, level)

        assert metrics.overshoot == pytest.approx(20.0)
        # 阶跃发生在 t=3, 最后一次越出调节带在 t=5
        assert metrics.settling_time == pytest.approx(3.0)

    def test_never_settles(self):
        """未进入调节带"""
        analyzer = PerformanceAnalyzer(settling_band=0.1)
        t = np.arange(10, dtype=float)
        metrics = analyzer.analyze(t, np.full(10, 300.0), np.full(10, 295.0))
        assert metrics.settling_time == float('inf')

    def test_level_slope(self):
        """水位趋势斜率"""
        analyzer = PerformanceAnalyzer()
        t = np.linspace(0, 10, 101)
        level = 295.0 - 0.2 * t
        metrics = analyzer.analyze(t, np.full_like(t, 295.0), level)
        assert metrics.level_slope == pytest.approx(-0.2)
        assert metrics.level_min == pytest.approx(293.0)

    def test_short_series(self):
        """数据不足时返回空指标"""
        metrics = PerformanceAnalyzer().analyze(np.array([0.0]), np.array([1.0]), np.array([1.0]))
        assert metrics == PerformanceMetrics()

    def test_analyze_records(self):
        """直接分析遥测记录"""
        records = SimulationEngine(seed=0).run(100)
        metrics = PerformanceAnalyzer().analyze_records(records)
        assert metrics.pump_mean > 0.0
        # 管道充满前只有出流
        assert metrics.level_min < 295.0
        assert set(metrics.to_dict()) >= {'iae', 'ise', 'itae', 'overshoot'}


class TestComparison:
    """范式对比测试"""

    def test_rankings(self):
        """按指标排名"""
        results = {
            'a': PerformanceMetrics(iae=3.0, max_error=1.0),
            'b': PerformanceMetrics(iae=1.0, max_error=2.0),
            'c': PerformanceMetrics(iae=2.0, max_error=0.5),
        }
        comparison = PerformanceAnalyzer.compare(results, ['iae', 'max_error'])
        assert comparison['rankings']['iae'] == ['b', 'c', 'a']
        assert comparison['best']['max_error'] == 'c'

    def test_compare_paradigms(self):
        """三种范式在相同种子下运行"""
        results = compare_paradigms(duration=10.0, seed=1)
        assert set(results) == {ParadigmType.TRADITIONAL, ParadigmType.IMPROVED,
                                ParadigmType.MODERN}
        for metrics in results.values():
            assert np.isfinite(metrics.iae)

    def test_compare_paradigms_reproducible(self):
        """相同种子结果一致"""
        a = compare_paradigms(duration=5.0, seed=3)
        b = compare_paradigms(duration=5.0, seed=3)
        assert a == b
