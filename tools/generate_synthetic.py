#!/usr/bin/env python3
"""Generate a synthetic score sheet for demos.

Usage:
    python tools/generate_synthetic.py --output data/synthetic_scores.csv --students 300 --classes 6 --seed 42

Each student gets a latent ability plus a per-class offset, so subjects are
correlated with each other and classes differ in their medians. The sheet has
class, name and ID columns, three core subjects (full mark 150), their
combined column, two sciences (full mark 100), a total and a school rank.
"""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Iterable, List, Optional

import numpy as np

from score_analytics.sheet import Sheet

CORE_SUBJECTS = [("语文", 150), ("数学", 150), ("英语", 150)]
SCIENCE_SUBJECTS = [("物理", 100), ("化学", 100)]
COLUMNS = ["班级", "姓名", "考号"] + [s for s, _ in CORE_SUBJECTS] + ["语数英"] + [s for s, _ in SCIENCE_SUBJECTS] + ["总分", "校次"]


def _school_ranks(totals: np.ndarray) -> List[int]:
    ordered = sorted(totals.tolist(), reverse=True)
    first_position = {}
    for idx, value in enumerate(ordered):
        first_position.setdefault(value, idx + 1)
    return [first_position[value] for value in totals.tolist()]


def generate_synthetic_sheet(n_students: int = 300, n_classes: int = 6, seed: int = 42, missing_rate: float = 0.0) -> Sheet:
    if n_students < 1 or n_classes < 1:
        raise ValueError("Need at least one student and one class")

    rng = np.random.default_rng(seed)
    class_offsets = rng.normal(0, 0.05, size=n_classes)
    classes = rng.integers(0, n_classes, size=n_students)
    ability = rng.normal(0.72, 0.12, size=n_students) + class_offsets[classes]

    scores = {}
    for subject, full_mark in CORE_SUBJECTS + SCIENCE_SUBJECTS:
        ratio = np.clip(ability + rng.normal(0, 0.07, size=n_students), 0, 1)
        scores[subject] = np.round(ratio * full_mark, 1)

    core = sum(scores[s] for s, _ in CORE_SUBJECTS)
    total = core + sum(scores[s] for s, _ in SCIENCE_SUBJECTS)
    ranks = _school_ranks(total)

    rows = []
    for i in range(n_students):
        row: List[Optional[object]] = [
            f"{int(classes[i]) + 1}班",
            f"Student_{i + 1:03d}",
            f"2024{i + 1:05d}",
        ]
        row.extend(float(scores[s][i]) for s, _ in CORE_SUBJECTS)
        row.append(round(float(core[i]), 1))
        row.extend(float(scores[s][i]) for s, _ in SCIENCE_SUBJECTS)
        row.append(round(float(total[i]), 1))
        row.append(ranks[i])

        if missing_rate > 0:
            # Absent exams blank a single subject cell; totals stay as recorded.
            for col in range(3, 3 + len(CORE_SUBJECTS)):
                if rng.random() < missing_rate:
                    row[col] = None
        rows.append(tuple(row))

    return Sheet(columns=tuple(COLUMNS), rows=tuple(rows), name="成绩-synthetic")


def write_sheet_csv(sheet: Sheet, output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    sheet.to_dataframe().to_csv(output_path, index=False)
    return output_path


def main(argv: Iterable[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Generate a synthetic score sheet for demos")
    parser.add_argument("--output", type=Path, default=Path("data/synthetic_scores.csv"), help="Where to write the CSV")
    parser.add_argument("--students", type=int, default=300, help="Number of synthetic students")
    parser.add_argument("--classes", type=int, default=6, help="Number of classes")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--missing-rate", type=float, default=0.0, help="Chance of blanking each core subject cell")
    args = parser.parse_args(list(argv) if argv is not None else None)

    sheet = generate_synthetic_sheet(args.students, args.classes, seed=args.seed, missing_rate=args.missing_rate)
    write_sheet_csv(sheet, args.output)
    print(f"Synthetic sheet written to {args.output}")


if __name__ == "__main__":
    main()
