"""
Zombie item detection batch job

Reads a snapshot export (memory states, KC states, assessment events and the
current remediation queue) and writes the updated remediation queue.

Usage:
    python -m hemisphere.scripts.detect_zombie_items export.json \\
        --output remediation.json --threshold 0.5 --min-reviews 8 --dry-run
"""
import argparse
import json
import logging
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from hemisphere.adaptive.zombie import (
    AssessmentEvent,
    InMemoryRemediationStore,
    InMemorySweepDataSource,
    KnowledgeComponentState,
    ZombieSweep,
)
from hemisphere.core.config import settings
from hemisphere.core.logging import setup_logging
from hemisphere.core.timestamps import parse_timestamp
from hemisphere.schemas.remediation import RemediationEntry
from hemisphere.schemas.review import MemoryStateRecord

logger = logging.getLogger(__name__)


class KCStateRow(BaseModel):
    user_id: str
    kc_id: str
    lh_accuracy: float
    rh_score: float
    difficulty_tier: int


class AssessmentEventRow(BaseModel):
    user_id: str
    item_id: str
    response_type: str
    is_correct: Optional[bool] = None
    score: Optional[float] = None
    latency_ms: int = Field(0, ge=0)
    learner_response: Any = None


class SweepExport(BaseModel):
    memory_states: List[MemoryStateRecord] = Field(default_factory=list)
    kc_states: List[KCStateRow] = Field(default_factory=list)
    assessment_events: List[AssessmentEventRow] = Field(default_factory=list)
    remediation_queue: List[RemediationEntry] = Field(default_factory=list)


def _threshold(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid threshold: {value}") from e
    return max(0.0, min(1.0, parsed))


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid integer: {value}") from e
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {parsed}")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Detect zombie items and sync the remediation queue"
    )
    parser.add_argument("input", type=Path, help="JSON export with memory states, KC states and events")
    parser.add_argument("--output", type=Path, default=None, help="Where to write the remediation queue")
    parser.add_argument("--dry-run", action="store_true", help="Report zombies without writing")
    parser.add_argument("--threshold", type=_threshold, default=settings.ZOMBIE_THRESHOLD)
    parser.add_argument("--min-reviews", type=_positive_int, default=settings.ZOMBIE_MIN_REVIEWS)
    parser.add_argument("--limit", type=_positive_int, default=None)
    parser.add_argument("--now", type=parse_timestamp, default=None, help="ISO-8601 timestamp (default: current time)")
    return parser


def load_export(path: Path) -> SweepExport:
    return SweepExport.model_validate(json.loads(path.read_text()))


def run(args: argparse.Namespace) -> Dict[str, Any]:
    export = load_export(args.input)
    now = args.now or datetime.now(timezone.utc)

    store = InMemoryRemediationStore(export.remediation_queue)

    events: Dict[tuple, List[AssessmentEvent]] = defaultdict(list)
    for row in export.assessment_events:
        events[(row.user_id, row.item_id)].append(
            AssessmentEvent(
                response_type=row.response_type,
                is_correct=row.is_correct,
                latency_ms=row.latency_ms,
                score=row.score,
                learner_response=row.learner_response,
            )
        )
    kc_states = {
        (row.user_id, row.kc_id): KnowledgeComponentState(
            lh_accuracy=row.lh_accuracy,
            rh_score=row.rh_score,
            difficulty_tier=row.difficulty_tier,
        )
        for row in export.kc_states
    }

    sweep = ZombieSweep(
        store=store,
        data_source=InMemorySweepDataSource(kc_states, events),
        threshold=args.threshold,
        min_reviews=args.min_reviews,
    )
    report = sweep.run(
        [record.to_sweep_candidate() for record in export.memory_states],
        now=now,
        dry_run=args.dry_run,
        limit=args.limit,
    )

    if args.output is not None and not args.dry_run:
        args.output.write_text(
            json.dumps([e.model_dump(mode="json") for e in store.list_entries()], indent=2)
        )
        logger.info(f"Wrote {len(store)} remediation entries to {args.output}")

    return report.to_dict()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(job="detect_zombie_items")
    try:
        summary = run(args)
    except (OSError, ValueError) as e:
        logger.error(f"Zombie detection failed: {e}")
        return 1
    print(json.dumps(summary))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
