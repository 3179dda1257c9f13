"""
数据分析模块
============

遥测性能指标与设计范式对比
"""

from .metrics import PerformanceMetrics, PerformanceAnalyzer, compare_paradigms

__all__ = [
    'PerformanceMetrics',
    'PerformanceAnalyzer',
    'compare_paradigms',
]
