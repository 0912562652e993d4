"""
Benchmark: objectdiff vs existing structured diff tools.

This benchmark compares objectdiff against:
    1. deepdiff: popular Python structural diff library
    2. dictdiffer: lightweight dict comparison

The point is NOT "we're faster".  The point is:
    objectdiff returns a navigable change TREE with a state for every
    position, understands plain Python classes, and matches collection
    elements by identity instead of by index.
"""

import sys
import os
import time
from dataclasses import dataclass, field
from typing import Optional

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from objectdiff import (
    Configuration, KeyIdentityStrategy, NodeCollector, ObjectDiffer, State, compare,
)


# ═══════════════════════════════════════════════════════════════════
#  TEST DATA
# ═══════════════════════════════════════════════════════════════════

CONFIG_A = {
    "server": {
        "host": "0.0.0.0",
        "port": 443,
        "tls": True,
        "workers": 4,
    },
    "database": {
        "host": "db.internal",
        "port": 5432,
        "name": "production",
        "pool_size": 10,
        "ssl": True,
    },
    "logging": {
        "level": "WARN",
        "format": "json",
        "outputs": ["stdout", "file"],
    },
    "cache": {
        "backend": "redis",
        "ttl": 300,
        "max_size": 10000,
    },
}

CONFIG_B = {
    "server": {
        "host": "0.0.0.0",
        "port": 8080,        # Changed
        "tls": False,         # Changed
        "workers": 8,         # Changed
    },
    "database": {
        "host": "db.internal",
        "port": 5432,
        "name": "production",
        "pool_size": 20,      # Changed
        "ssl": True,
    },
    "logging": {
        "level": "DEBUG",     # Changed
        "format": "json",
        "outputs": ["file", "stdout", "syslog"],  # Reordered + added
    },
    "metrics": {              # Added
        "enabled": True,
        "port": 9090,
    },
}                             # "cache" removed


@dataclass
class Address:
    street: str
    city: str
    country: str = "NL"


@dataclass
class Member:
    id: int
    name: str
    email: str
    address: Optional[Address] = None


@dataclass
class Organisation:
    name: str
    members: list = field(default_factory=list)
    settings: dict = field(default_factory=dict)


def make_organisation(n, variant=0):
    members = [
        Member(i, f"member{i}", f"m{i}@example.org",
               Address(f"street {i}", "Utrecht" if (i + variant) % 7 else "Delft"))
        for i in range(n)
    ]
    if variant:
        members.reverse()
        members.append(Member(n, "newcomer", "new@example.org"))
    return Organisation("acme", members, {"plan": "pro" if variant else "free"})


def _try_import(name):
    """Safely attempt to import an optional dependency by name."""
    import importlib
    try:
        return importlib.import_module(name)
    except ImportError:
        return None


def _count(root, states):
    collector = NodeCollector(states)
    root.visit(collector)
    return len(collector.nodes)


# ═══════════════════════════════════════════════════════════════════
#  BENCHMARKS
# ═══════════════════════════════════════════════════════════════════

def benchmark_config_diff():
    """Benchmark objectdiff on a realistic config diff."""
    print("=" * 70)
    print("  §1  CONFIG DIFF (realistic use case)")
    print("=" * 70)
    print()

    t0 = time.perf_counter()
    root = compare(CONFIG_B, CONFIG_A)
    dt = time.perf_counter() - t0

    for state in (State.CHANGED, State.ADDED, State.REMOVED):
        collector = NodeCollector({state})
        root.visit(collector)
        leaves = [p for p, n in zip(collector.paths(), collector.nodes) if not n.has_children()]
        print(f"  {state.name:<9} {len(leaves):>2} leaves  {', '.join(leaves[:4])}")
    print(f"  Time:            {dt*1000:.2f}ms")
    print()


def benchmark_object_graph():
    """Benchmark objectdiff on dataclass graphs with keyed collections."""
    print("=" * 70)
    print("  §2  OBJECT GRAPH (dataclasses, keyed members)")
    print("=" * 70)
    print()

    working = make_organisation(200, variant=1)
    base = make_organisation(200)

    by_equality = ObjectDiffer()
    by_key = ObjectDiffer(
        Configuration().with_identity_strategy(KeyIdentityStrategy(lambda m: m.id),
                                               path="members"))

    for label, differ in (("natural equality", by_equality), ("keyed by id", by_key)):
        t0 = time.perf_counter()
        root = differ.compare(working, base)
        dt = time.perf_counter() - t0
        members = root.child("members")
        print(f"  {label}:")
        print(f"    changed={_count(members, {State.CHANGED})}  "
              f"added={_count(members, {State.ADDED})}  "
              f"removed={_count(members, {State.REMOVED})}")
        print(f"    Time:           {dt*1000:.2f}ms")
    print()
    print("  With natural equality an edited member is a remove plus an add;")
    print("  keyed by id it is one CHANGED member with its changed properties.")
    print()


def benchmark_vs_deepdiff():
    """Compare with deepdiff (if available)."""
    print("=" * 70)
    print("  §3  COMPARISON WITH EXISTING TOOLS")
    print("=" * 70)
    print()

    deepdiff = _try_import("deepdiff")
    dictdiffer = _try_import("dictdiffer")

    t0 = time.perf_counter()
    root = compare(CONFIG_B, CONFIG_A)
    od_time = time.perf_counter() - t0

    print(f"  objectdiff:")
    print(f"    Changed nodes:  {_count(root, {State.CHANGED, State.ADDED, State.REMOVED})}")
    print(f"    Reorder-aware:  YES (identity matching)")
    print(f"    Time:           {od_time*1000:.3f}ms")
    print()

    if deepdiff:
        t0 = time.perf_counter()
        dd_result = deepdiff.DeepDiff(CONFIG_A, CONFIG_B)
        dd_time = time.perf_counter() - t0
        dd_changes = sum(len(v) if isinstance(v, dict) else 0
                         for v in dd_result.values())
        print(f"  deepdiff:")
        print(f"    Changes found:  {dd_changes}")
        print(f"    Reorder-aware:  only with ignore_order=True")
        print(f"    Time:           {dd_time*1000:.3f}ms")
    else:
        print(f"  deepdiff:         NOT INSTALLED (pip install deepdiff)")
    print()

    if dictdiffer:
        t0 = time.perf_counter()
        dd_diffs = list(dictdiffer.diff(CONFIG_A, CONFIG_B))
        dd_time = time.perf_counter() - t0
        print(f"  dictdiffer:")
        print(f"    Diffs found:    {len(dd_diffs)}")
        print(f"    Reorder-aware:  NO (lists compared by index)")
        print(f"    Time:           {dd_time*1000:.3f}ms")
    else:
        print(f"  dictdiffer:       NOT INSTALLED (pip install dictdiffer)")
    print()


def benchmark_scaling():
    """Test how objectdiff scales with data size."""
    print("=" * 70)
    print("  §4  SCALING")
    print("=" * 70)
    print()

    for n in [10, 100, 1000, 10000]:
        a_data = {f"key_{i}": i for i in range(n)}
        b_data = {f"key_{i}": i + 1 for i in range(n)}

        t0 = time.perf_counter()
        root = compare(a_data, b_data)
        dt = time.perf_counter() - t0

        print(f"  Map size   {n:>5}: changed={len(root):>6}  time={dt*1000:>8.2f}ms")

    print()

    for n in [10, 100, 500, 1000]:
        a_data = list(range(n))
        b_data = list(range(1, n + 1))  # Shifted by 1

        t0 = time.perf_counter()
        root = compare(a_data, b_data)
        dt = time.perf_counter() - t0

        print(f"  Seq length {n:>5}: changed={len(root):>6}  time={dt*1000:>8.2f}ms")

    print()

    for n in [10, 100, 500]:
        working = make_organisation(n, variant=1)
        base = make_organisation(n)

        t0 = time.perf_counter()
        root = compare(working, base)
        dt = time.perf_counter() - t0

        print(f"  Members    {n:>5}: nodes={sum(1 for _ in root.walk()):>6}  "
              f"time={dt*1000:>8.2f}ms")

    print()


def main():
    print()
    print("╔══════════════════════════════════════════════════════════════════════╗")
    print("║          OBJECT GRAPH DIFF: BENCHMARK SUITE                          ║")
    print("║          objectdiff v0.1.0                                           ║")
    print("╚══════════════════════════════════════════════════════════════════════╝")
    print()

    benchmark_config_diff()
    benchmark_object_graph()
    benchmark_vs_deepdiff()
    benchmark_scaling()


if __name__ == "__main__":
    main()
