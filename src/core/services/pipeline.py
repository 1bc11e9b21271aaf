"""
ERD Compilation Pipeline.

This module orchestrates the compiler stages over one ERD document and
tracks the document through an explicit state machine.

Architecture Overview:
    raw text
      -> ErdParser            (tokens, syntax errors)
      -> EntityModelBuilder   (entities, attributes)
      -> RelationshipResolver (classified relationships)
      -> ErdValidator         (initial issues, with fix previews)
      -> review callback      (optional: caller approves fix kinds)
      -> AutoFixEngine        (corrected model)
      -> ErdValidator         (final issues)
      -> StandardEntityMatcher (advisory matches)
      -> SchemaExporter       (export document, corrected ERD)

States:
    raw -> parsed -> validated -> (user_reviewed) -> auto_fixed -> validated
        -> (matched_advisory) -> exported

    ``rejected`` is terminal and is entered only when parsing recovers no
    entity at all (neither a block nor a relationship endpoint). Any other
    transition not in ALLOWED_TRANSITIONS raises PipelineStateError.

Usage:
    from core.services.pipeline import ErdCompiler

    compiler = ErdCompiler()
    result = compiler.compile(text)
    print(result.state.value)
    print(result.final_validation.get_human_readable_summary())
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Union,
)
import logging
import time

import psutil

from constants import MatchingConfig, NamingLimits, ProcessingLimits
from core.validators.input import InputValidator
from formats.erd.cdm_catalog import DEFAULT_CATALOG, StandardEntity
from formats.erd.cdm_matcher import MatchReport, StandardEntityMatcher
from formats.erd.erd_autofix import AutoFix, AutoFixEngine, FixResult
from formats.erd.erd_builder import EntityModelBuilder
from formats.erd.erd_exporter import SchemaExport, SchemaExporter, render_erd
from formats.erd.erd_models import SchemaModel
from formats.erd.erd_parser import ErdParser, SyntaxErrorToken
from formats.erd.erd_resolver import RelationshipResolver
from formats.erd.erd_validator import ErdValidator
from shared.models.validation import IssueKind, ValidationIssue, ValidationResult


logger = logging.getLogger(__name__)


# =============================================================================
# Pipeline State
# =============================================================================

class PipelineState(str, Enum):
    """State of a document in the compilation pipeline."""
    RAW = "raw"
    PARSED = "parsed"
    VALIDATED = "validated"
    USER_REVIEWED = "user_reviewed"
    AUTO_FIXED = "auto_fixed"
    MATCHED_ADVISORY = "matched_advisory"
    EXPORTED = "exported"
    REJECTED = "rejected"


ALLOWED_TRANSITIONS: Dict[PipelineState, FrozenSet[PipelineState]] = {
    PipelineState.RAW: frozenset({PipelineState.PARSED, PipelineState.REJECTED}),
    PipelineState.PARSED: frozenset({PipelineState.VALIDATED, PipelineState.REJECTED}),
    PipelineState.VALIDATED: frozenset({
        PipelineState.USER_REVIEWED,
        PipelineState.AUTO_FIXED,
        PipelineState.MATCHED_ADVISORY,
        PipelineState.EXPORTED,
    }),
    PipelineState.USER_REVIEWED: frozenset({
        PipelineState.AUTO_FIXED,
        PipelineState.MATCHED_ADVISORY,
        PipelineState.EXPORTED,
    }),
    PipelineState.AUTO_FIXED: frozenset({PipelineState.VALIDATED}),
    PipelineState.MATCHED_ADVISORY: frozenset({PipelineState.EXPORTED}),
    PipelineState.EXPORTED: frozenset(),
    PipelineState.REJECTED: frozenset(),
}


class PipelineStateError(Exception):
    """Raised on a transition the pipeline state machine does not allow."""

    def __init__(self, current: PipelineState, requested: PipelineState):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Illegal pipeline transition: {current.value} -> {requested.value}"
        )


class PipelineStateMachine:
    """Tracks the current state and the full transition history."""

    def __init__(self) -> None:
        self.history: List[PipelineState] = [PipelineState.RAW]

    @property
    def state(self) -> PipelineState:
        return self.history[-1]

    def can_transition(self, target: PipelineState) -> bool:
        return target in ALLOWED_TRANSITIONS[self.state]

    def transition(self, target: PipelineState) -> None:
        if not self.can_transition(target):
            raise PipelineStateError(self.state, target)
        logger.debug(f"Pipeline: {self.state.value} -> {target.value}")
        self.history.append(target)


# =============================================================================
# Statistics
# =============================================================================

@dataclass
class PipelineStats:
    """
    Statistics collected during compilation.

    Attributes:
        input_bytes: Size of the decoded input (UTF-8)
        entities: Entities in the final model
        relationships: Relationships in the final model
        fixes_applied: Number of fixes that changed the model
        stage_durations: Seconds spent per stage
        duration_seconds: Total execution time
        peak_memory_mb: Peak resident memory observed
    """
    input_bytes: int = 0
    entities: int = 0
    relationships: int = 0
    fixes_applied: int = 0
    stage_durations: Dict[str, float] = field(default_factory=dict)
    duration_seconds: float = 0.0
    peak_memory_mb: float = 0.0

    def sample_memory(self) -> None:
        current_mb = psutil.Process().memory_info().rss / (1024 * 1024)
        self.peak_memory_mb = max(self.peak_memory_mb, current_mb)

    def get_summary(self) -> str:
        """Generate human-readable summary."""
        lines = [
            "Pipeline Statistics:",
            f"  Input: {self.input_bytes:,} bytes",
            f"  Entities: {self.entities}  Relationships: {self.relationships}",
            f"  Fixes applied: {self.fixes_applied}",
        ]
        if self.duration_seconds > 0:
            lines.append(f"  Duration: {self.duration_seconds:.3f}s")
        if self.peak_memory_mb > 0:
            lines.append(f"  Peak memory: {self.peak_memory_mb:.1f} MB")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "inputBytes": self.input_bytes,
            "entities": self.entities,
            "relationships": self.relationships,
            "fixesApplied": self.fixes_applied,
            "stageDurations": {k: round(v, 6) for k, v in self.stage_durations.items()},
            "durationSeconds": round(self.duration_seconds, 6),
            "peakMemoryMb": round(self.peak_memory_mb, 1),
        }


# =============================================================================
# Result
# =============================================================================

ReviewCallback = Callable[
    [Sequence[ValidationIssue], Sequence[AutoFix]],
    Optional[Iterable[IssueKind]],
]
"""Receives the fixable issues and their previews; returns approved kinds (None approves all)."""


@dataclass
class CompilationResult:
    """
    Result of compiling one ERD document.

    Attributes:
        source_name: File name or label of the input.
        history: Every state the document passed through.
        model: Final model (auto-fixed when fixing ran).
        initial_validation: Issues of the parsed model, with fix previews.
        final_validation: Issues after auto-fix (same as initial otherwise).
        previews: Fixes that were offered for the initial issues.
        fix_result: Auto-fix outcome, when fixing ran.
        matches: Advisory standard-entity matches.
        match_summary: Summary of the matches.
        export: Export document.
        corrected_erd: The final model rendered as ERD text.
        syntax_errors: Parser syntax errors.
        stats: Execution statistics.
    """
    source_name: Optional[str] = None
    history: List[PipelineState] = field(default_factory=lambda: [PipelineState.RAW])
    model: Optional[SchemaModel] = None
    initial_validation: Optional[ValidationResult] = None
    final_validation: Optional[ValidationResult] = None
    previews: List[AutoFix] = field(default_factory=list)
    fix_result: Optional[FixResult] = None
    matches: Optional[MatchReport] = None
    match_summary: Dict[str, Any] = field(default_factory=dict)
    export: Optional[SchemaExport] = None
    corrected_erd: Optional[str] = None
    syntax_errors: List[SyntaxErrorToken] = field(default_factory=list)
    stats: PipelineStats = field(default_factory=PipelineStats)

    @property
    def state(self) -> PipelineState:
        return self.history[-1]

    @property
    def is_rejected(self) -> bool:
        return self.state == PipelineState.REJECTED

    @property
    def applied_fixes(self) -> List[AutoFix]:
        return list(self.fix_result.applied) if self.fix_result else []

    @property
    def is_valid(self) -> bool:
        return self.final_validation is not None and self.final_validation.is_valid

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        result: Dict[str, Any] = {
            "state": self.state.value,
            "history": [s.value for s in self.history],
        }
        if self.source_name:
            result["source"] = self.source_name
        if self.initial_validation is not None:
            result["initialValidation"] = self.initial_validation.to_dict()
        if self.final_validation is not None:
            result["finalValidation"] = self.final_validation.to_dict()
        if self.fix_result is not None:
            result["autoFix"] = self.fix_result.to_dict()
        if self.model is not None:
            result["model"] = self.model.to_dict()
        if self.matches is not None:
            result["matches"] = self.matches.to_dict()
            result["matchSummary"] = self.match_summary
        if self.export is not None:
            result["export"] = self.export.to_dict()
        if self.corrected_erd is not None:
            result["correctedErd"] = self.corrected_erd
        result["stats"] = self.stats.to_dict()
        return result


# =============================================================================
# Compiler
# =============================================================================

class ErdCompiler:
    """
    Run the full compilation pipeline over ERD text.

    Example:
        >>> compiler = ErdCompiler()
        >>> result = compiler.compile('erDiagram\\n CUSTOMER { string name }')
        >>> result.model.get_entity("CUSTOMER").primary_key.name
        'id'
    """

    def __init__(
        self,
        auto_fix: bool = True,
        strict: bool = False,
        match: bool = True,
        match_threshold: float = MatchingConfig.DEFAULT_THRESHOLD,
        reserved_names: Optional[Iterable[str]] = None,
        max_name_length: int = NamingLimits.MAX_ENTITY_NAME_LENGTH,
        catalog: Sequence[StandardEntity] = DEFAULT_CATALOG,
        known_option_sets: Optional[Mapping[str, Sequence[str]]] = None,
    ):
        """
        Initialize the compiler.

        Args:
            auto_fix: Apply fixes for fixable issues.
            strict: Treat warnings as failures in validation results.
            match: Run the advisory standard-entity matcher.
            match_threshold: Lowest confidence reported by the matcher.
            reserved_names: Extra names to treat as reserved.
            max_name_length: Entity and attribute name length limit.
            catalog: Standard-entity catalog.
            known_option_sets: Option sets that already exist on the target.
        """
        self.auto_fix = auto_fix
        self.match = match
        self.parser = ErdParser()
        self.builder = EntityModelBuilder()
        self.resolver = RelationshipResolver()
        self.validator = ErdValidator(
            reserved_names=reserved_names,
            strict_mode=strict,
            max_entity_name_length=max_name_length,
            max_attribute_name_length=max_name_length,
        )
        self.fixer = AutoFixEngine(self.validator)
        self.matcher = StandardEntityMatcher(catalog=catalog, threshold=match_threshold)
        self.exporter = SchemaExporter(known_option_sets=known_option_sets)

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "ErdCompiler":
        """Build a compiler from the ``compiler`` section of a configuration dict."""
        section = (config or {}).get("compiler", {}) or {}
        return cls(
            auto_fix=section.get("auto_fix", True),
            strict=section.get("strict", False),
            match=section.get("match", True),
            match_threshold=section.get("match_threshold", MatchingConfig.DEFAULT_THRESHOLD),
            reserved_names=section.get("reserved_names") or None,
            max_name_length=section.get("max_name_length", NamingLimits.MAX_ENTITY_NAME_LENGTH),
            known_option_sets=section.get("known_option_sets") or None,
        )

    def compile(
        self,
        content: Union[str, bytes],
        source_name: Optional[str] = None,
        *,
        auto_fix: Optional[bool] = None,
        review: Optional[ReviewCallback] = None,
    ) -> CompilationResult:
        """
        Compile one ERD document.

        Args:
            content: ERD text or UTF-8 bytes.
            source_name: Optional file name for logs and output.
            auto_fix: Override the compiler's auto-fix setting.
            review: Optional callback deciding which fix kinds to apply.

        Returns:
            CompilationResult; ``state`` is ``exported`` or ``rejected``.

        Raises:
            ValueError: If content is None, undecodable or too large.
            TypeError: If content is neither str nor bytes.
        """
        text = InputValidator.validate_erd_content(content)
        machine = PipelineStateMachine()
        result = CompilationResult(source_name=source_name, history=machine.history)
        result.stats.input_bytes = len(text.encode("utf-8", errors="surrogatepass"))
        start_time = time.perf_counter()
        fixing = self.auto_fix if auto_fix is None else auto_fix

        try:
            # Parse, build and resolve
            stage_start = time.perf_counter()
            parse_result = self.parser.parse(text, source_name=source_name)
            result.syntax_errors = list(parse_result.syntax_errors)
            if parse_result.is_empty:
                machine.transition(PipelineState.REJECTED)
                result.initial_validation = self.validator.validate(SchemaModel(), parse_result.syntax_errors)
                result.final_validation = result.initial_validation
                logger.warning(f"Rejected {source_name or 'input'}: no entities found")
                return result
            model = self.builder.build(parse_result)
            model = self.resolver.resolve(model, parse_result.relationships)
            machine.transition(PipelineState.PARSED)
            self._finish_stage(result, "parse", stage_start)

            if len(model.entities) > ProcessingLimits.MAX_ENTITIES:
                logger.warning(
                    f"Document declares {len(model.entities)} entities "
                    f"(more than {ProcessingLimits.MAX_ENTITIES})"
                )

            # Validate and preview fixes
            stage_start = time.perf_counter()
            initial = self.validator.validate(model, parse_result.syntax_errors)
            result.previews = self.fixer.preview(model, initial.issues)
            result.initial_validation = self.fixer.annotate(model, initial)
            result.final_validation = result.initial_validation
            machine.transition(PipelineState.VALIDATED)
            self._finish_stage(result, "validate", stage_start)

            # Review
            approved: Optional[FrozenSet[IssueKind]] = None
            if review is not None and result.previews:
                fixable = result.initial_validation.fixable
                decision = review(fixable, result.previews)
                approved = None if decision is None else frozenset(decision)
                machine.transition(PipelineState.USER_REVIEWED)
                logger.info(
                    "Review approved "
                    + ("all fix kinds" if approved is None else f"{len(approved)} fix kind(s)")
                )

            # Auto-fix and re-validate
            if fixing and result.previews and (approved is None or approved):
                stage_start = time.perf_counter()
                result.fix_result = self.fixer.fix(model, kinds=approved)
                model = result.fix_result.model
                machine.transition(PipelineState.AUTO_FIXED)
                final = self.validator.validate(model, parse_result.syntax_errors)
                result.final_validation = self.fixer.annotate(model, final)
                machine.transition(PipelineState.VALIDATED)
                result.stats.fixes_applied = len(result.fix_result.applied)
                self._finish_stage(result, "auto_fix", stage_start)

            result.model = model

            # Advisory matching
            if self.match:
                stage_start = time.perf_counter()
                result.matches = self.matcher.match_model(model)
                result.match_summary = self.matcher.summarize(result.matches)
                machine.transition(PipelineState.MATCHED_ADVISORY)
                self._finish_stage(result, "match", stage_start)

            # Export
            stage_start = time.perf_counter()
            result.export = self.exporter.export(model)
            result.corrected_erd = render_erd(model)
            machine.transition(PipelineState.EXPORTED)
            self._finish_stage(result, "export", stage_start)

            result.stats.entities = len(model.entities)
            result.stats.relationships = len(model.relationships)
            return result

        finally:
            result.stats.duration_seconds = time.perf_counter() - start_time
            result.stats.sample_memory()
            logger.debug(result.stats.get_summary())

    def compile_file(self, file_path: str, **kwargs: Any) -> CompilationResult:
        """Read and compile an ERD file (UTF-8, BOM allowed)."""
        path = InputValidator.validate_input_erd_path(file_path)
        return self.compile(path.read_bytes(), source_name=path.name, **kwargs)

    @staticmethod
    def _finish_stage(result: CompilationResult, stage: str, stage_start: float) -> None:
        result.stats.stage_durations[stage] = time.perf_counter() - stage_start
        result.stats.sample_memory()


__all__ = [
    "ALLOWED_TRANSITIONS",
    "CompilationResult",
    "ErdCompiler",
    "PipelineState",
    "PipelineStateError",
    "PipelineStateMachine",
    "PipelineStats",
    "ReviewCallback",
]
