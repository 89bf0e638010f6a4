"""
Weekly FSRS weight personalisation job

Aggregates each learner's memory states, tunes their weights and writes one
parameter row per learner.

Usage:
    python -m hemisphere.scripts.optimize_fsrs export.json --output params.json
    python -m hemisphere.scripts.optimize_fsrs export.json --dry-run --limit 100
"""
import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, field_validator

from hemisphere.adaptive.fsrs import (
    DEFAULT_WEIGHTS,
    FSRSWeights,
    aggregate_learners,
    optimize_learner_parameters,
)
from hemisphere.core.config import settings
from hemisphere.core.logging import setup_logging
from hemisphere.schemas.review import MemoryStateRecord

logger = logging.getLogger(__name__)


class LearnerParameters(BaseModel):
    """Stored per-learner weight row"""
    user_id: str
    weights: List[float]
    target_retention: float = Field(0.9, gt=0, le=1)

    @field_validator("weights")
    @classmethod
    def _check_weights(cls, value: List[float]) -> List[float]:
        FSRSWeights.from_list(value)
        return value


class OptimizerExport(BaseModel):
    memory_states: List[MemoryStateRecord] = Field(default_factory=list)
    parameters: List[LearnerParameters] = Field(default_factory=list)


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid integer: {value}") from e
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {parsed}")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Personalise FSRS weights per learner")
    parser.add_argument("input", type=Path, help="JSON export with memory states and current parameters")
    parser.add_argument("--output", type=Path, default=None, help="Where to write the parameter rows")
    parser.add_argument("--dry-run", action="store_true", help="Compute without writing")
    parser.add_argument("--min-reviews", type=_positive_int, default=settings.OPTIMIZER_MIN_REVIEWS)
    parser.add_argument("--limit", type=_positive_int, default=None, help="Optimise at most N learners")
    return parser


def run(args: argparse.Namespace) -> Dict[str, Any]:
    export = OptimizerExport.model_validate(json.loads(args.input.read_text()))
    current = {row.user_id: row for row in export.parameters}

    aggregates = aggregate_learners(
        ((record.user_id, record.to_snapshot()) for record in export.memory_states),
        min_reviews=args.min_reviews,
    )
    if args.limit is not None:
        aggregates = aggregates[: args.limit]

    if not aggregates:
        logger.info(f"No learners eligible for optimisation (min_reviews={args.min_reviews})")
        return {"optimized": 0, "dry_run": args.dry_run}

    results = []
    for aggregate in aggregates:
        existing = current.get(aggregate.user_id)
        base = FSRSWeights.from_list(existing.weights) if existing else DEFAULT_WEIGHTS
        result = optimize_learner_parameters(aggregate, base)
        results.append(result)

        if args.dry_run:
            logger.info(
                f"[dry-run] {aggregate.user_id}: reviews={aggregate.total_reviews} "
                f"lapse_rate={result.lapse_rate:.3f} score={result.adjustment_score:.3f} "
                f"target_retention={result.target_retention:.3f}"
            )
            continue

        current[aggregate.user_id] = LearnerParameters(
            user_id=aggregate.user_id,
            weights=result.optimized_weights.to_list(),
            target_retention=result.target_retention,
        )

    if args.output is not None and not args.dry_run:
        rows = [current[user_id].model_dump() for user_id in sorted(current)]
        args.output.write_text(json.dumps(rows, indent=2))
        logger.info(f"Wrote {len(rows)} parameter rows to {args.output}")

    return {
        "optimized": len(results),
        "dry_run": args.dry_run,
        "learners": [r.to_dict() for r in results],
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(job="optimize_fsrs")
    try:
        summary = run(args)
    except (OSError, ValueError) as e:
        logger.error(f"FSRS optimisation failed: {e}")
        return 1
    print(json.dumps(summary))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
