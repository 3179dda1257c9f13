#!/usr/bin/env python3
"""
长距离输水控制仿真命令行接口
============================

用法:
    python -m ldwt.cli run [--paradigm PARADIGM] [--duration SECONDS] [--realtime]
    python -m ldwt.cli compare [--duration SECONDS] [--seed SEED]
    python -m ldwt.cli paradigms
    python -m ldwt.cli preview [--type TYPE]
    python -m ldwt.cli status
"""

import argparse
import json
import sys


PARADIGM_CHOICES = ['traditional', 'improved', 'modern']
PATTERN_CHOICES = ['constant', 'step', 'ramp', 'sine', 'square', 'triangle',
                   'sawtooth', 'pulse', 'noise', 'random_walk', 'burst']


def _pattern_from_args(kind, base, amplitude, frequency):
    from .core.disturbance import DisturbanceConfig, DisturbanceType

    return DisturbanceConfig(
        type=DisturbanceType[kind.upper()],
        base=base,
        amplitude=amplitude,
        frequency=frequency
    )


def _build_engine(args):
    from .config.settings import ParadigmType
    from .simulation import serialization
    from .simulation.engine import SimulationEngine
    from .simulation.plans import ChangeSetpoint

    if args.config:
        engine = serialization.load(args.config)
        print(f"  已加载配置: {args.config}")
    else:
        demand = None
        if args.demand:
            demand = _pattern_from_args(args.demand, args.demand_base,
                                        args.demand_amplitude, args.demand_frequency)
        engine = SimulationEngine(
            paradigm=ParadigmType[args.paradigm.upper()],
            seed=args.seed,
            demand_pattern=demand
        )
        if args.setpoint is not None:
            engine.set_setpoint(args.setpoint)

    # 故障
    if args.leak is not None:
        engine.set_fault('leakage', True, args.leak)
    if args.pump_loss is not None:
        engine.set_fault('pump_efficiency', True, args.pump_loss)
    if args.drift is not None:
        engine.set_fault('sensor_drift', True, args.drift)

    # 预案
    for delay, value in args.plan_setpoint or []:
        engine.schedule_plan(delay, ChangeSetpoint(value))

    return engine


def cmd_run(args):
    """运行仿真"""
    from .analysis.metrics import PerformanceAnalyzer
    from .config.logging_config import RunEnvironment, setup_logging
    from .config.validation import ConfigurationError
    from .simulation import serialization
    from .simulation.runner import RealtimeRunner

    setup_logging(RunEnvironment.DEMO, verbose=args.verbose)

    print(f"启动仿真...")
    print(f"  时长: {args.duration}s")

    try:
        engine = _build_engine(args)
    except (ConfigurationError, KeyError) as e:
        print(f"配置错误: {e}")
        return 2

    print(f"  范式: {engine.paradigm.name} ({engine.paradigm.algorithm.value}, "
          f"{engine.paradigm.tank_area:g} m²)")

    if args.save_config:
        serialization.save(engine, args.save_config)
        print(f"  配置已保存到: {args.save_config}")

    errors = []
    if args.realtime:
        runner = RealtimeRunner(engine)
        records = runner.run_for(args.duration)
        errors = runner.stats.errors
    else:
        records = engine.run_for(args.duration)

    # 过程输出
    interval = max(1, int(round(args.log_interval / engine.settings.dt)))
    for record in records[::interval]:
        print(f"[{record.t:6.1f}s] 水位: {record.level:8.3f}m  设定: {record.target:7.2f}m  "
              f"泵站: {record.flow_in:7.2f}  需求: {record.flow_out:7.2f}")

    metrics = PerformanceAnalyzer().analyze_records(records)

    print("\n" + "="*50)
    print("仿真完成!")
    print("="*50)
    print(f"总步数: {len(records)}")

    print("\n性能指标:")
    for key, value in metrics.to_dict().items():
        print(f"  {key}: {value:.4f}")

    if engine.events:
        print("\n事件记录:")
        for event in list(engine.events)[:10]:
            print(f"  t={event.time:.1f}s: {event.message}")

    if errors:
        print("\n错误:")
        for err in errors:
            print(f"  - {err}")

    # 保存结果
    if args.output:
        output_data = {
            'success': not errors,
            'config': serialization.to_dict(engine),
            'metrics': metrics.to_dict(),
            'telemetry': [r.to_dict() for r in records],
        }
        with open(args.output, 'w', encoding='utf-8') as f:
            json.dump(output_data, f, ensure_ascii=False, indent=2)
        print(f"\n结果已保存到: {args.output}")

    return 0 if not errors else 1


def cmd_compare(args):
    """对比三种设计范式"""
    from .analysis.metrics import PerformanceAnalyzer, compare_paradigms
    from .config.settings import get_paradigm

    demand = None
    if args.demand:
        demand = _pattern_from_args(args.demand, args.demand_base,
                                    args.demand_amplitude, args.demand_frequency)

    print(f"范式对比 (时长 {args.duration}s, 种子 {args.seed})")
    results = compare_paradigms(duration=args.duration, seed=args.seed, demand_pattern=demand)

    print("\n" + "="*60)
    print(f"{'范式':<12}{'IAE':>12}{'ISE':>12}{'最大误差':>10}{'调节时间':>10}")
    print("-"*60)
    for paradigm_type, metrics in results.items():
        name = get_paradigm(paradigm_type).name
        print(f"{name:<12}{metrics.iae:>12.2f}{metrics.ise:>12.2f}"
              f"{metrics.max_error:>10.3f}{metrics.settling_time:>10.1f}")

    comparison = PerformanceAnalyzer.compare(
        {get_paradigm(t).name: m for t, m in results.items()}
    )
    print("\n最优:")
    for metric, best in comparison['best'].items():
        print(f"  {metric}: {best}")

    return 0


def cmd_paradigms(args):
    """列出设计范式"""
    from .config.settings import PARADIGMS

    for paradigm in PARADIGMS:
        print(f"{paradigm.type.value:<12} {paradigm.name}")
        print(f"  {paradigm.description}")
        print(f"  调蓄池: {paradigm.tank_area:g} m²  算法: {paradigm.algorithm.value}")
        print(f"  基建成本: {paradigm.infrastructure_cost}  算力成本: {paradigm.compute_cost}  "
              f"韧性: {paradigm.resilience}")
    return 0


def cmd_preview(args):
    """预览波形"""
    from .core.disturbance import DISTURBANCE_LABELS, sample_window

    pattern = _pattern_from_args(args.type, args.base, args.amplitude, args.frequency)
    times, values = sample_window(pattern, start=args.start, duration=args.duration,
                                  samples=args.samples)

    print(f"{DISTURBANCE_LABELS[pattern.type]} 未来{args.duration:g}秒预览")
    for t, v in zip(times, values):
        print(f"  t={t:6.2f}s  {v:10.3f}")
    return 0


def cmd_status(args):
    """显示系统状态"""
    import importlib

    print("长距离输水控制仿真平台")
    print("="*40)

    from . import __version__
    print(f"版本: {__version__}")

    print("\n已安装模块:")
    modules = [
        ('config', '配置模块'),
        ('core', '仿真核心'),
        ('control', '控制算法'),
        ('simulation', '仿真引擎'),
        ('assistant', '诊断助手边界'),
        ('analysis', '数据分析')
    ]

    for module, desc in modules:
        try:
            importlib.import_module(f'ldwt.{module}')
            status = '✓'
        except ImportError:
            status = '✗'
        print(f"  [{status}] {module}: {desc}")

    return 0


def _add_pattern_args(parser, prefix):
    parser.add_argument(f'--{prefix}', type=str, choices=PATTERN_CHOICES,
                        help='需求波形类型')
    parser.add_argument(f'--{prefix}-base', type=float, default=50.0,
                        help='波形基值')
    parser.add_argument(f'--{prefix}-amplitude', type=float, default=100.0,
                        help='波形幅值')
    parser.add_argument(f'--{prefix}-frequency', type=float, default=0.1,
                        help='波形频率 (Hz)')


def build_parser():
    parser = argparse.ArgumentParser(
        description='长距离输水控制仿真命令行工具',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例:
  ldwt run --paradigm modern --duration 60 --leak 20
  ldwt run --plan-setpoint 10 300 --output result.json
  ldwt compare --duration 60 --seed 1
  ldwt preview --type sine --amplitude 20 --frequency 0.2
"""
    )

    subparsers = parser.add_subparsers(dest='command', help='可用命令')

    # run 命令
    run_parser = subparsers.add_parser('run', help='运行仿真')
    run_parser.add_argument('--paradigm', type=str, default='improved',
                            choices=PARADIGM_CHOICES, help='设计范式')
    run_parser.add_argument('--duration', type=float, default=60,
                            help='仿真时长(秒)')
    run_parser.add_argument('--seed', type=int, default=None,
                            help='随机种子')
    _add_pattern_args(run_parser, 'demand')
    run_parser.add_argument('--setpoint', type=float, default=None,
                            help='恒定设定值 (m)')
    run_parser.add_argument('--plan-setpoint', type=float, nargs=2, action='append',
                            metavar=('DELAY', 'VALUE'), help='预案: DELAY 秒后设定值改为 VALUE')
    run_parser.add_argument('--leak', type=float, default=None,
                            help='注入泄漏故障 (强度)')
    run_parser.add_argument('--pump-loss', type=float, default=None,
                            help='注入泵效率下降故障 (%%)')
    run_parser.add_argument('--drift', type=float, default=None,
                            help='注入传感器漂移故障 (m)')
    run_parser.add_argument('--realtime', action='store_true',
                            help='按墙钟节拍实时运行')
    run_parser.add_argument('--config', type=str,
                            help='从 JSON 配置文件加载')
    run_parser.add_argument('--save-config', type=str,
                            help='保存配置到 JSON 文件')
    run_parser.add_argument('--verbose', action='store_true',
                            help='详细输出')
    run_parser.add_argument('--log-interval', type=float, default=5,
                            help='过程输出间隔(秒)')
    run_parser.add_argument('--output', '-o', type=str,
                            help='输出文件')
    run_parser.set_defaults(func=cmd_run)

    # compare 命令
    compare_parser = subparsers.add_parser('compare', help='对比三种设计范式')
    compare_parser.add_argument('--duration', type=float, default=60,
                                help='仿真时长(秒)')
    compare_parser.add_argument('--seed', type=int, default=0,
                                help='随机种子')
    _add_pattern_args(compare_parser, 'demand')
    compare_parser.set_defaults(func=cmd_compare)

    # paradigms 命令
    paradigms_parser = subparsers.add_parser('paradigms', help='列出设计范式')
    paradigms_parser.set_defaults(func=cmd_paradigms)

    # preview 命令
    preview_parser = subparsers.add_parser('preview', help='预览波形')
    preview_parser.add_argument('--type', type=str, default='step',
                                choices=PATTERN_CHOICES, help='波形类型')
    preview_parser.add_argument('--base', type=float, default=50.0)
    preview_parser.add_argument('--amplitude', type=float, default=100.0)
    preview_parser.add_argument('--frequency', type=float, default=0.1)
    preview_parser.add_argument('--start', type=float, default=0.0,
                                help='起始时间(秒)')
    preview_parser.add_argument('--duration', type=float, default=10.0,
                                help='预览时长(秒)')
    preview_parser.add_argument('--samples', type=int, default=20,
                                help='采样点数')
    preview_parser.set_defaults(func=cmd_preview)

    # status 命令
    status_parser = subparsers.add_parser('status', help='显示系统状态')
    status_parser.set_defaults(func=cmd_status)

    return parser


def main(argv=None):
    """主入口"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
