"""
Match command: advisory standard-entity suggestions.
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Dict

from ..base import BaseCommand, FileOutcome, emit
from constants import ExitCode
from core.services.pipeline import ErdCompiler


logger = logging.getLogger(__name__)


class MatchCommand(BaseCommand):
    """
    Suggest standard entities for the entities of ERD files.

    Matching runs on the corrected model, so synthesized junction and stub
    entities are included. Suggestions never fail the command; only a
    rejected document does.

    Usage:
        match <path> [--threshold 0.5] [--format json]
    """

    report_suffix = "matches"

    def compiler_overrides(self, args: argparse.Namespace) -> Dict[str, Any]:
        overrides = super().compiler_overrides(args)
        overrides['match'] = True
        return overrides

    def process_file(
        self,
        compiler: ErdCompiler,
        file_path: Path,
        args: argparse.Namespace,
    ) -> FileOutcome:
        result = compiler.compile_file(str(file_path))
        text_mode = getattr(args, 'output_format', 'text') == 'text'

        if result.is_rejected:
            if text_mode:
                emit(f"✗ {result.source_name}: no entities found, document rejected.")
            return ExitCode.REJECTED, {"source": result.source_name, "state": result.state.value}

        report: Dict[str, Any] = {
            "source": result.source_name,
            "matches": result.matches.to_dict(),
            "summary": result.match_summary,
        }

        if text_mode:
            for entity_name, candidates in result.matches.matches.items():
                if not candidates:
                    emit(f"  {entity_name}: custom (no standard match)")
                    continue
                best = candidates[0]
                emit(
                    f"  {entity_name}: {best.display_name} [{best.standard_id}] "
                    f"{best.confidence:.0%} {best.match_type}, {best.level} confidence"
                )
                for other in candidates[1:3]:
                    emit(f"      also: {other.display_name} {other.confidence:.0%}")
            summary = result.match_summary
            emit(
                f"✓ {summary.get('cdmMatchesFound', 0)} of "
                f"{summary.get('totalEntitiesAnalyzed', 0)} entities match standard entities"
            )
            for recommendation in summary.get('recommendations', []):
                emit(f"  ⚠ {recommendation}")

        return ExitCode.SUCCESS, report
