"""Offline answer-quality evaluation runner.

Usage:
    uv run python tools/offline_eval.py --dataset eval_samples.json --output results.csv

The dataset file should contain an array of objects:
[
  {
    "user_id": "eval",
    "year": "2nd Year",
    "semester": "1st Semester",
    "subject": "Data Structures",
    "regulation": "R20",
    "unit": "2nd unit",
    "question": "Explain binary search trees",
    "expected_keywords": ["left", "right", "subtree"]
  }
]
"""
from __future__ import annotations

import argparse
import csv
import json
from pathlib import Path
from typing import Dict, Iterable, List

from fastapi.testclient import TestClient

from coursechat.main import app


FILTER_FIELDS = ("year", "semester", "subject", "regulation", "unit")


def keyword_precision(answer: str, expected_keywords: Iterable[str]) -> float:
    expected = list(expected_keywords)
    if not expected:
        return 1.0
    present = sum(1 for keyword in expected if keyword.lower() in answer.lower())
    return present / len(expected)


def run_evaluation(dataset_path: Path, output_path: Path) -> None:
    samples: List[Dict[str, object]] = json.loads(dataset_path.read_text(encoding="utf-8"))
    rows: List[Dict[str, object]] = []
    sessions: Dict[tuple, str] = {}

    with TestClient(app) as client:
        for item in samples:
            user_id = item.get("user_id", "offline-eval")
            key = (user_id,) + tuple(item.get(field, "") for field in FILTER_FIELDS)
            if key not in sessions:
                started = client.post(
                    "/chat/start",
                    json={**{field: item.get(field, "") for field in FILTER_FIELDS}, "user_id": user_id},
                )
                if started.status_code != 201:
                    rows.append(
                        {
                            "subject": item.get("subject"),
                            "unit": item.get("unit"),
                            "question": item.get("question"),
                            "status": started.status_code,
                            "refused": False,
                            "answer": started.json().get("detail", ""),
                            "keyword_precision": 0.0,
                        }
                    )
                    continue
                sessions[key] = started.json()["session_id"]

            response = client.post(
                "/chat/ask",
                json={"session_id": sessions[key], "question": item.get("question", "")},
            )
            payload = response.json()
            answer = payload.get("response") or payload.get("detail", "")

            rows.append(
                {
                    "subject": item.get("subject"),
                    "unit": item.get("unit"),
                    "question": item.get("question"),
                    "status": response.status_code,
                    "refused": payload.get("refused", False),
                    "answer": answer,
                    "keyword_precision": keyword_precision(answer, item.get("expected_keywords", [])),
                }
            )

    if not rows:
        return
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        writer.writerows(rows)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run offline answer-quality evaluation.")
    parser.add_argument("--dataset", type=Path, required=True, help="Path to evaluation samples JSON.")
    parser.add_argument("--output", type=Path, default=Path("eval_results.csv"), help="Where to store results CSV.")
    args = parser.parse_args()

    run_evaluation(dataset_path=args.dataset, output_path=args.output)
    print(f"Evaluation complete. Results saved to {args.output}")
