"""
诊断助手边界
============

核心按需提供上下文, 助手在独立通道中消费, 不影响仿真步进。
"""

from .context import (
    AssistantContext,
    build_context,
    format_telemetry,
    system_instruction,
    build_prompt,
)
from .channel import (
    SERVICE_UNAVAILABLE,
    TelemetryChannel,
    DiagnosticAssistant,
    AssistantRelay,
)

__all__ = [
    'AssistantContext',
    'build_context',
    'format_telemetry',
    'system_instruction',
    'build_prompt',
    'SERVICE_UNAVAILABLE',
    'TelemetryChannel',
    'DiagnosticAssistant',
    'AssistantRelay',
]
