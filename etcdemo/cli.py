#!/usr/bin/env python3
"""
Command-line interface for the etcd register harness
Builds a cluster on the given nodes, runs a register workload and reports outcomes.
"""
import sys
import json
import yaml
import argparse
import logging
import traceback
from pathlib import Path
from dataclasses import asdict, fields, replace
from typing import Any, Dict, List
from .models import ClusterConfig, TestResult, WorkloadConfig
from .control.remote import LocalRemote, SSHRemote
from .harness.runner import TestRunner


class EtcdemoCLI:
    """Command-line interface for the etcd register harness"""

    def __init__(self):
        self.config: Dict[str, Any] = {}

    def load_config_file(self, config_path: str) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file"""
        path = Path(config_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yaml', '.yml']:
                return yaml.safe_load(f) or {}
            elif path.suffix == '.json':
                return json.load(f)
            else:
                raise ValueError(f"Unsupported config format: {path.suffix}")

    def resolve_nodes(self, args) -> List[str]:
        """Nodes from --nodes, then --nodes-file, then the config file"""
        if args.nodes:
            return [node.strip() for node in args.nodes.split(',') if node.strip()]
        if args.nodes_file:
            lines = Path(args.nodes_file).read_text().splitlines()
            return [line.strip() for line in lines if line.strip() and not line.startswith('#')]
        return list(self.config.get('nodes', []))

    def build_cluster_config(self, args) -> ClusterConfig:
        section = self._section('cluster', ClusterConfig)
        if args.etcd_version:
            section['version'] = args.etcd_version
        return ClusterConfig(**section)

    def build_workload_config(self, args) -> WorkloadConfig:
        workload = WorkloadConfig(**self._section('workload', WorkloadConfig))
        overrides = {
            'concurrency': args.concurrency,
            'ops_per_key': args.ops_per_key,
            'time_limit': args.time_limit,
            'seed': args.seed,
        }
        return replace(workload, **{k: v for k, v in overrides.items() if v is not None})

    def build_remote(self, args):
        if args.local:
            return LocalRemote()
        section = dict(self.config.get('ssh', {}))
        if args.ssh_user:
            section['username'] = args.ssh_user
        if args.ssh_key:
            section['private_key'] = args.ssh_key
        return SSHRemote(**section)

    def _section(self, name: str, model) -> Dict[str, Any]:
        section = dict(self.config.get(name) or {})
        known = {f.name for f in fields(model)}
        unknown = set(section) - known
        if unknown:
            raise ValueError(f"Unknown {name} option(s): {', '.join(sorted(unknown))}")
        return section

    def run_test(self, args) -> int:
        """Execute one test run"""
        self._print_header("etcd Register Test")

        if args.config:
            try:
                self.config = self.load_config_file(args.config)
                print(f"Loaded configuration from {args.config}")
            except Exception as e:
                print(f"Error: Failed to load config file: {e}")
                print(f"\nConfig file must be YAML (.yaml, .yml) or JSON (.json)")
                return 1

        try:
            nodes = self.resolve_nodes(args)
            cluster_config = self.build_cluster_config(args)
            workload_config = self.build_workload_config(args)
            remote = self.build_remote(args)
        except (ValueError, TypeError, OSError) as e:
            print(f"Error: {e}")
            return 1

        if not nodes:
            print("Error: no nodes given; use --nodes, --nodes-file or a 'nodes' list in the config file")
            return 1

        if args.local and len(set(nodes)) > 1:
            print(f"Error: --local runs every node on this host, so it supports a single node (got {len(set(nodes))})")
            return 1

        print(f"Nodes: {', '.join(nodes)}")
        print(f"etcd: {cluster_config.version}")
        print(f"Workers: {workload_config.concurrency}, time limit: {workload_config.time_limit:.2f}s")
        print()

        runner = TestRunner(
            nodes,
            remote,
            config=cluster_config,
            workload_config=workload_config,
            store_dir=args.store_dir
        )
        result = runner.run()

        if args.verbose:
            self._print_detailed_result(result)
        else:
            self._print_summary_result(result)

        if args.output:
            self._save_result(result, args.output, args.format)

        return 0 if result.success else 1

    def _print_header(self, title: str):
        print("=" * 80)
        print(title)
        print("=" * 80)

    def _print_summary_result(self, result: TestResult):
        status = "COMPLETED" if result.success else "FAILED"
        duration = result.end_time - result.start_time
        print(f"\n{status} | {result.test_id} | {duration:.2f}s | {result.operations_executed} operations")
        for f in sorted(result.outcome_counts):
            counts = result.outcome_counts[f]
            print(f"  {f:<6} " + ', '.join(f"{status}={counts[status]}" for status in sorted(counts)))
        if result.history_file:
            print(f"History: {result.history_file}")
        if result.error_message:
            print(f"Error: {result.error_message}")

    def _print_detailed_result(self, result: TestResult):
        self._print_summary_result(result)
        for path in result.log_files:
            print(f"Log: {path}")
        if result.error_summary and result.error_summary['total_errors']:
            print("\nErrors:")
            for error in result.error_summary['recent_errors']:
                node = f" ({error['node']})" if error['node'] else ""
                print(f"  [{error['severity']}] {error['category']}{node}: {error['message']}")

    def _save_result(self, result: TestResult, output_path: str, format: str):
        path = Path(output_path)
        data = asdict(result)
        with open(path, 'w') as f:
            if format == 'yaml':
                yaml.safe_dump(data, f, default_flow_style=False)
            else:
                json.dump(data, f, indent=2)
        print(f"\nResults saved to {output_path}")


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI"""
    parser = argparse.ArgumentParser(
        prog='etcdemo',
        description='Check etcd register operations for consistency under concurrent load',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run against three nodes reachable over ssh
  etcdemo test --nodes n1,n2,n3

  # Run with a configuration file and save the result
  etcdemo test --nodes-file nodes.txt --config etcdemo.yaml --output result.json

  # Longer run with more workers
  etcdemo test --nodes n1,n2,n3,n4,n5 --concurrency 20 --time-limit 120
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version='etcdemo 0.1.0'
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    test_parser = subparsers.add_parser('test', help='Build a cluster and run a register test')
    test_parser.add_argument('--nodes', type=str, help='Comma-separated node hostnames')
    test_parser.add_argument('--nodes-file', type=str, metavar='FILE', help='File with one node hostname per line')
    test_parser.add_argument('--config', type=str, help='Path to configuration file (YAML or JSON)')
    test_parser.add_argument('--etcd-version', type=str, help='etcd release to install (default: v3.1.5)')
    test_parser.add_argument('--concurrency', type=int, help='Number of workers (default: 10)')
    test_parser.add_argument('--ops-per-key', type=int, help='Operations per independent key (default: 1000)')
    test_parser.add_argument('--time-limit', type=float, help='Seconds to run the workload (default: 30)')
    test_parser.add_argument('--seed', type=int, help='Seed for the operation mix')
    test_parser.add_argument('--ssh-user', type=str, help='ssh user on the nodes (default: root)')
    test_parser.add_argument('--ssh-key', type=str, metavar='FILE', help='ssh private key')
    test_parser.add_argument('--local', action='store_true', help='Run node commands on this host instead of over ssh')
    test_parser.add_argument('--store-dir', type=str, default='store', help='Directory for histories and logs (default: store)')
    test_parser.add_argument('--output', type=str, help='Path to save the test result')
    test_parser.add_argument('--format', choices=['json', 'yaml'], default='json',
                             help='Output format for results (default: json)')
    test_parser.add_argument('--verbose', action='store_true', help='Enable verbose output')

    return parser


def main(argv=None):
    """Main entry point for CLI"""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if getattr(args, 'verbose', False) else logging.INFO,
        format='%(levelname)-5s | %(filename)s:%(lineno)-3d | %(message)s',
        handlers=[logging.StreamHandler()],
        force=True
    )

    if not args.command:
        print("Error: No command specified\n")
        parser.print_help()
        return 1

    cli = EtcdemoCLI()

    try:
        if args.command == 'test':
            return cli.run_test(args)
    except KeyboardInterrupt:
        print("\n\netcdemo was interrupted by user")
        return 130
    except Exception as e:
        print(f"\nUnexpected error: {e}")
        if args.verbose:
            traceback.print_exc()
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
