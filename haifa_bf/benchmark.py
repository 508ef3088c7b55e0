"""
Performance benchmark for the tape VM.

Runs each program several times and records wall time, dispatched
instructions and resident memory growth.
"""

from __future__ import annotations

import argparse
import json
import statistics
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import psutil

from .bytecode import Program
from .devices import BufferInput, BufferOutput
from .loader import load_program
from .vm import BrainfuckVM


class BenchmarkRunner:
    def __init__(self, results_dir: Optional[str] = None, input_data: bytes = b""):
        self.results_dir = Path(results_dir) if results_dir else None
        self.input_data = input_data
        self.process = psutil.Process()

    def run_once(self, program: Program) -> Dict:
        output = BufferOutput()
        vm = BrainfuckVM(program, input_device=BufferInput(self.input_data), output_device=output)
        rss_before = self.process.memory_info().rss
        start_time = time.perf_counter()
        steps = vm.run()
        execution_time = time.perf_counter() - start_time
        rss_after = self.process.memory_info().rss
        return {
            "time": execution_time,
            "steps": steps,
            "rss_delta": rss_after - rss_before,
            "output_bytes": len(output),
        }

    def run_program(self, name: str, program: Program, iterations: int = 3) -> Dict:
        runs: List[Dict] = [self.run_once(program) for _ in range(iterations)]
        times = [run["time"] for run in runs]
        steps = runs[0]["steps"] if runs else 0
        avg_time = statistics.mean(times) if times else 0.0
        return {
            "script_name": name,
            "code_bytes": len(program),
            "instructions": program.instruction_count(),
            "iterations_completed": len(runs),
            "times": times,
            "avg_time": avg_time,
            "median_time": statistics.median(times) if times else 0.0,
            "min_time": min(times) if times else 0.0,
            "max_time": max(times) if times else 0.0,
            "std_dev": statistics.stdev(times) if len(times) > 1 else 0,
            "steps": steps,
            "steps_per_second": steps / avg_time if avg_time > 0 else 0.0,
            "max_rss_delta": max((run["rss_delta"] for run in runs), default=0),
            "output_bytes": runs[0]["output_bytes"] if runs else 0,
        }

    def run_suite(self, paths: Sequence[str], iterations: int = 3) -> Dict:
        results = {
            "test_info": {
                "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
                "iterations": iterations,
                "python_version": sys.version,
                "system_info": {
                    "platform": sys.platform,
                    "cpu_count": psutil.cpu_count(),
                    "total_memory": psutil.virtual_memory().total,
                },
            },
            "tests": {},
        }
        for path in paths:
            print(f"Running {path}...", file=sys.stderr)
            results["tests"][path] = self.run_program(path, load_program(path), iterations)
        return results

    def save_results(self, results: Dict, filename: Optional[str] = None) -> Path:
        if filename is None:
            timestamp = time.strftime("%Y%m%d_%H%M%S")
            filename = f"benchmark_results_{timestamp}.json"
        results_dir = self.results_dir or Path.cwd()
        results_dir.mkdir(parents=True, exist_ok=True)
        result_path = results_dir / filename
        with open(result_path, "w", encoding="utf-8") as f:
            json.dump(results, f, indent=2, ensure_ascii=False)
        return result_path


def format_summary(results: Dict) -> str:
    lines = [
        "=" * 72,
        "PERFORMANCE BENCHMARK SUMMARY",
        "=" * 72,
        f"{'Program':<30} {'Avg (s)':<10} {'Steps':<12} {'Steps/s':<12} {'RSS +KiB':<8}",
        "-" * 72,
    ]
    for name, data in results.get("tests", {}).items():
        lines.append(
            f"{Path(name).name[:30]:<30} {data['avg_time']:<10.4f} {data['steps']:<12} "
            f"{data['steps_per_second']:<12.0f} {data['max_rss_delta'] // 1024:<8}"
        )
    return "\n".join(lines)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="pybf-bench", description="Benchmark programs on the tape VM")
    parser.add_argument("programs", nargs="+", help="Program source files")
    parser.add_argument("-i", "--iterations", type=int, default=3, help="Runs per program (default: 3)")
    parser.add_argument("-o", "--output", help="Write JSON results to this file name")
    parser.add_argument("--results-dir", help="Directory for the JSON results (default: cwd)")
    parser.add_argument("--input", dest="input_path", help="Bytes fed to ',' on every run")
    args = parser.parse_args(argv)

    if args.iterations < 1:
        parser.error("--iterations must be at least 1")

    input_data = Path(args.input_path).read_bytes() if args.input_path else b""
    runner = BenchmarkRunner(args.results_dir, input_data=input_data)
    try:
        results = runner.run_suite(args.programs, iterations=args.iterations)
    except Exception as exc:  # pragma: no cover - CLI surface
        print(f"Benchmark failed: {exc}", file=sys.stderr)
        return 1
    print(format_summary(results))
    if args.output or args.results_dir:
        result_path = runner.save_results(results, args.output)
        print(f"\nDetailed results saved to: {result_path}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
