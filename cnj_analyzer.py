"""
CNJ Analyzer
Combines decomposition, check digit validation and jurisdiction classification
into a single analysis of a CNJ number.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Any, Iterable, Union

from cnj_classifiers import CourtClassifier, SegmentClassifier, SourceUnitClassifier, SourceUnitType
from cnj_validator_base import (
    CNJErrorType, CNJValidationError, DecomposedCNJ,
    calculate_verifying_digit, decompose_cnj
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisCNJ:
    """Complete analysis of a CNJ number"""
    received_cnj: str
    valid_cnj: bool
    segment_name: str
    segment_short: str
    source_unit_type: str
    source_unit_number: str
    court_type: str
    court_number: str
    detailed: DecomposedCNJ

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BatchFailure:
    """A batch item that could not be analyzed"""
    cnj: str
    error: str
    index: int = 0


AnalysisOutcome = Union[AnalysisCNJ, BatchFailure]


class CnjAnalyzer:
    """
    Runs the full CNJ pipeline: decompose, check digit, segment, source unit and court.
    """

    def __init__(self, strict_source_unit: bool = False):
        self.logger = logger.getChild(self.__class__.__name__)
        self.segment_classifier = SegmentClassifier()
        self.court_classifier = CourtClassifier()
        self.source_unit_classifier = SourceUnitClassifier(strict=strict_source_unit)

    def analyze(self, cnj: str) -> AnalysisCNJ:
        """
        Analyze a CNJ number.

        Args:
            cnj: CNJ number in masked or compact form

        Returns:
            AnalysisCNJ; an invalid check digit yields valid_cnj=False

        Raises:
            CNJValidationError: malformed number or unclassifiable segment/court
        """
        try:
            decomposed = decompose_cnj(cnj)
            expected_digit = calculate_verifying_digit(decomposed.arg_number)
            is_valid = decomposed.verifying_digit == expected_digit

            segment = self.segment_classifier.classify(decomposed.segment)
            if segment is None:
                raise CNJValidationError.invalid_segment(decomposed.segment)

            source_unit = self.source_unit_classifier.classify(decomposed.source_unit, segment)
            origin_court = self.court_classifier.classify(decomposed.court, segment)

            return AnalysisCNJ(
                received_cnj=cnj,
                valid_cnj=is_valid,
                segment_name=segment.name,
                segment_short=segment.short,
                source_unit_type=source_unit.source_unit_type,
                source_unit_number=source_unit.source_unit_number,
                court_type=origin_court.origin_court_type,
                court_number=origin_court.origin_court_number,
                detailed=decomposed,
            )

        except CNJValidationError as e:
            e.details.setdefault('cnj', cnj)
            raise
        except Exception as e:
            self.logger.error(f"Unexpected error analyzing {cnj!r}: {e}")
            raise CNJValidationError(
                CNJErrorType.CALCULATION_ERROR,
                f"Erro na análise do CNJ {cnj!r}: {e}",
                code='ANALYSIS_ERROR',
                details={'cnj': cnj},
            ) from e

    def analyze_safe(self, cnj: str, index: int = 0) -> AnalysisOutcome:
        """Analyze without raising; failures become BatchFailure"""
        try:
            return self.analyze(cnj)
        except CNJValidationError as e:
            self.logger.warning(f"Item {index} ({cnj!r}) failed: {e.message}")
            return BatchFailure(cnj=cnj, error=e.message, index=index)

    def analyze_batch(self, cnjs: Iterable[str], max_workers: Optional[int] = None) -> List[AnalysisOutcome]:
        """
        Analyze many CNJ numbers; one failure never aborts the batch.

        Results keep the input order. With max_workers > 1 items are fanned out
        over a thread pool.
        """
        items = list(cnjs)
        indexes = range(1, len(items) + 1)

        if max_workers and max_workers > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                return list(executor.map(self.analyze_safe, items, indexes))

        return [self.analyze_safe(cnj, index) for cnj, index in zip(items, indexes)]

    def is_valid_complete(self, cnj: str) -> bool:
        """True only when the number analyzes cleanly and the check digit matches"""
        try:
            return self.analyze(cnj).valid_cnj
        except CNJValidationError:
            return False


def get_batch_statistics(results: List[AnalysisOutcome]) -> Dict[str, Any]:
    """Summary statistics for analyze_batch results"""
    total = len(results)
    errors = sum(1 for item in results if isinstance(item, BatchFailure))
    valid = sum(1 for item in results if isinstance(item, AnalysisCNJ) and item.valid_cnj)
    invalid = sum(1 for item in results if isinstance(item, AnalysisCNJ) and not item.valid_cnj)

    return {
        'total': total,
        'successful': total - errors,
        'errors': errors,
        'valid': valid,
        'invalid': invalid,
        'success_rate': ((total - errors) / total * 100) if total > 0 else 0,
        'validity_rate': (valid / total * 100) if total > 0 else 0,
    }


def write_cnj(analysis: AnalysisCNJ) -> str:
    """Describe an analyzed CNJ number in one line"""
    detailed = analysis.detailed
    if not detailed.lawsuit_number:
        raise ValueError("AnalysisCNJ has no usable data")

    source_unit_name = detailed.district or analysis.source_unit_number
    court_name = detailed.uf or analysis.court_number
    preposition = 'o' if analysis.source_unit_type == SourceUnitType.CIVIL_UNIT else 'a'

    return (f"Processo número: {detailed.lawsuit_number}, protocolado n{preposition} "
            f"{analysis.source_unit_type} de {source_unit_name}, no ano {detailed.protocol_year} | "
            f"{analysis.court_type}: {court_name} | "
            f"{analysis.segment_name} ({analysis.segment_short})")


# Default analyzer and function-style API
_default_analyzer = CnjAnalyzer()


def analyze_cnj(cnj: str) -> AnalysisCNJ:
    return _default_analyzer.analyze(cnj)


def analyze_cnj_batch(cnjs: Iterable[str], max_workers: Optional[int] = None) -> List[AnalysisOutcome]:
    return _default_analyzer.analyze_batch(cnjs, max_workers=max_workers)


def is_valid_cnj_complete(cnj: str) -> bool:
    return _default_analyzer.is_valid_complete(cnj)
