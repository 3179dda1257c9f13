"""
配置序列化
==========

完整仿真配置 (范式 + 两路波形 + 故障 + 预案队列 + 随机种子) 的 JSON 往返。
以相同种子恢复到新引擎后, 后续仿真输出与原引擎逐位一致。
"""

import json
import logging
from typing import Any, Dict

from ..config.settings import DesignParadigm
from ..config.validation import ConfigurationError, ValidationResult
from ..core.disturbance import DisturbanceConfig
from ..core.faults import FaultState
from .engine import SimulationEngine
from .plans import PlanStep


logger = logging.getLogger('LDWT.Serialization')

FORMAT_VERSION = 1


def to_dict(engine: SimulationEngine) -> Dict[str, Any]:
    """导出引擎配置"""
    state = engine.state
    return {
        "version": FORMAT_VERSION,
        "seed": engine.seed,
        "paradigm": engine.paradigm.to_dict(),
        "demand_pattern": state.demand_pattern.to_dict(),
        "setpoint_pattern": state.setpoint_pattern.to_dict(),
        "faults": engine.faults.to_dict(),
        "plans": [plan.to_dict() for plan in state.plans.all_plans()],
    }


def from_dict(data: Dict[str, Any], **engine_kwargs) -> SimulationEngine:
    """
    从字典恢复引擎

    Parameters:
        data: to_dict 的输出
        engine_kwargs: 额外传给 SimulationEngine 的参数 (settings, control)

    Raises:
        ConfigurationError: 字段缺失或枚举名无效
    """
    try:
        paradigm = DesignParadigm.from_dict(data["paradigm"])
        demand = DisturbanceConfig.from_dict(data["demand_pattern"])
        setpoint = DisturbanceConfig.from_dict(data["setpoint_pattern"])
        faults = FaultState.from_dict(data.get("faults", {}))
        plans = [PlanStep.from_dict(item) for item in data.get("plans", [])]
    except ConfigurationError:
        raise
    except (KeyError, ValueError, TypeError) as e:
        raise ConfigurationError([ValidationResult(
            is_valid=False,
            message=f"配置数据无效: {e!r}"
        )]) from e

    engine = SimulationEngine(
        paradigm=paradigm,
        seed=data.get("seed"),
        faults=faults,
        demand_pattern=demand,
        setpoint_pattern=setpoint,
        **engine_kwargs
    )
    for plan in plans:
        engine.add_plan(plan)

    logger.info(f"配置已恢复: {paradigm.name}, {len(plans)} 个预案")
    return engine


def dumps(engine: SimulationEngine, indent: int = 2) -> str:
    """导出为 JSON 文本"""
    return json.dumps(to_dict(engine), ensure_ascii=False, indent=indent)


def loads(text: str, **engine_kwargs) -> SimulationEngine:
    """从 JSON 文本恢复引擎"""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError([ValidationResult(
            is_valid=False,
            message=f"JSON 解析失败: {e}"
        )]) from e
    return from_dict(data, **engine_kwargs)


def save(engine: SimulationEngine, path: str):
    """导出到文件"""
    with open(path, 'w', encoding='utf-8') as f:
        f.write(dumps(engine))


def load(path: str, **engine_kwargs) -> SimulationEngine:
    """从文件恢复"""
    with open(path, 'r', encoding='utf-8') as f:
        return loads(f.read(), **engine_kwargs)


__all__ = ['FORMAT_VERSION', 'to_dict', 'from_dict', 'dumps', 'loads', 'save', 'load']
