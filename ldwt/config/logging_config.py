"""
日志配置
========

按运行环境设置日志级别。各模块使用 ``logging.getLogger('LDWT.<组件>')``。
"""

import logging
from enum import Enum


class RunEnvironment(Enum):
    """运行环境"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    DEMO = "demo"
    PRODUCTION = "production"


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(environment: RunEnvironment = RunEnvironment.DEMO,
                  verbose: bool = False) -> logging.Logger:
    """
    配置日志系统

    Args:
        environment: 运行环境
        verbose: 强制 DEBUG 级别 (包含逐步日志)

    Returns:
        根日志器 ``LDWT``
    """
    log_level = {
        RunEnvironment.DEVELOPMENT: logging.DEBUG,
        RunEnvironment.TESTING: logging.DEBUG,
        RunEnvironment.DEMO: logging.INFO,
        RunEnvironment.PRODUCTION: logging.WARNING
    }.get(environment, logging.INFO)

    if verbose:
        log_level = logging.DEBUG

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
        ]
    )
    logger = logging.getLogger('LDWT')
    logger.setLevel(log_level)
    return logger
