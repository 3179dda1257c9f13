"""
配置验证 (Configuration Validation)
===================================

配置边界的数值校验。非法配置在入口处被拒绝，不会进入仿真步进。
"""

import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional


@dataclass(frozen=True)
class ValidationResult:
    """单项校验结果"""
    is_valid: bool
    message: str
    field_name: Optional[str] = None


class ConfigurationError(ValueError):
    """配置边界拒绝的非法配置"""

    def __init__(self, results: Iterable[ValidationResult]):
        self.results: List[ValidationResult] = list(results)
        message = "; ".join(r.message for r in self.results) or "配置无效"
        super().__init__(message)


_OK = ValidationResult(is_valid=True, message="OK")


def _invalid(name: str, message: str) -> ValidationResult:
    return ValidationResult(is_valid=False, message=message, field_name=name)


class ConfigValidator:
    """数值校验规则"""

    @staticmethod
    def validate_finite(value: Any, name: str) -> ValidationResult:
        """有限数值 (排除 bool 与 NaN/inf)"""
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            return _invalid(name, f"{name} 必须为有限数值，当前值: {value!r}")
        return _OK

    @staticmethod
    def validate_positive(value: float, name: str) -> ValidationResult:
        finite = ConfigValidator.validate_finite(value, name)
        if not finite.is_valid:
            return finite
        if value <= 0:
            return _invalid(name, f"{name} 必须为正数，当前值: {value}")
        return _OK

    @staticmethod
    def validate_non_negative(value: float, name: str) -> ValidationResult:
        finite = ConfigValidator.validate_finite(value, name)
        if not finite.is_valid:
            return finite
        if value < 0:
            return _invalid(name, f"{name} 不能为负数，当前值: {value}")
        return _OK

    @staticmethod
    def raise_for(results: Iterable[ValidationResult]):
        """存在未通过的结果时抛出 ConfigurationError"""
        errors = [r for r in results if not r.is_valid]
        if errors:
            raise ConfigurationError(errors)


__all__ = [
    'ValidationResult',
    'ConfigurationError',
    'ConfigValidator'
]
