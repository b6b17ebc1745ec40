"""
Build random composed symbol graphs and time copy, lowering and gradient
construction.
"""

from __future__ import annotations

import argparse
import random
from time import perf_counter
from typing import Callable, List

from tiny_symbol import Symbol, Variable, ops


PROFILES = {
    "small": {"ops": 64, "vars": 8, "max_inputs": 3},
    "medium": {"ops": 512, "vars": 32, "max_inputs": 4},
    "large": {"ops": 4096, "vars": 128, "max_inputs": 6},
}


def build_random_symbol(num_ops: int, num_vars: int, max_inputs: int, *, seed: int) -> Symbol:
    rng = random.Random(seed)
    pool: List[Symbol] = [Variable(f"v{i}") for i in range(num_vars)]
    for idx in range(num_ops):
        if rng.random() < 0.5:
            picks = [rng.choice(pool) for _ in range(rng.randint(2, max_inputs))]
            sym = ops.ElementWiseSum(*picks, name=f"sum{idx}")
        else:
            sym = ops.Activation(data=rng.choice(pool), act_type="relu", name=f"act{idx}")
        pool.append(sym)
    return pool[-1]


def _time(label: str, fn: Callable[[], object], repeats: int) -> None:
    start = perf_counter()
    for _ in range(repeats):
        fn()
    elapsed_ms = (perf_counter() - start) * 1e3 / repeats
    print(f"{label:<16} {elapsed_ms:8.2f} ms")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--profile", choices=PROFILES.keys(), default="medium")
    parser.add_argument("--repeats", type=int, default=5)
    parser.add_argument("--seed", type=int, default=0)
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    cfg = PROFILES[args.profile]
    net = build_random_symbol(cfg["ops"], cfg["vars"], cfg["max_inputs"], seed=args.seed)
    graph = net.to_static_graph()
    print("=== Symbol Diagnostics ===")
    print(f"Nodes: {len(graph.nodes)}  Arguments: {len(graph.arg_nodes)}")

    arg_names = net.list_arguments()
    _time("copy", net.copy, args.repeats)
    _time("to_static_graph", net.to_static_graph, args.repeats)
    _time("infer_shape", lambda: net.infer_shape(**{n: (8, 8) for n in arg_names}), args.repeats)
    _time("grad", lambda: net.grad(arg_names), args.repeats)


if __name__ == "__main__":
    main()
