"""
CNJ Jurisdiction Classifiers
Translate segment, court and source unit codes into jurisdiction classifications
"""

import logging
from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Dict, List, Optional, Union
from dataclasses import dataclass

from cnj_reference_data import SegmentInfo, get_all_segments, get_segment
from cnj_validator_base import CNJValidationError

logger = logging.getLogger(__name__)


class CourtType:
    ORIGINAL_LAWSUIT = 'Processo Originário'
    MARTIAL_COURT = 'Tribunal Militar Estadual'
    REGION = 'região'
    ESTATE = 'unidade federativa'
    JUDICIAL_CIRCUIT = 'circunscrição judiciária'


class SourceUnitType:
    JUSTICE_SECTION = 'subseção judiciária'
    LABOR_UNIT = 'vara do trabalho'
    ELECTORAL_UNIT = 'zona eleitoral'
    MILITARY_UNIT = 'auditoria militar'
    CIVIL_UNIT = 'foro'
    COURT_UNIT_SINGLE = 'competência originária do Tribunal'
    COURT_UNIT = 'competência originária da Turma Recursal'


SPECIAL_COURT_ORIGINAL = '00'
SPECIAL_COURT_COUNCIL = '90'

# 0 means the segment has no numbered courts
MAX_COURT_BY_SEGMENT = MappingProxyType({
    1: 0,   # STF
    2: 0,   # CNJ
    3: 0,   # STJ
    4: 5,   # TRF - 5 regiões
    5: 24,  # TRT - 24 regiões
    6: 27,  # TRE - 27 unidades federativas
    7: 12,  # STM - 12 circunscrições
    8: 27,  # TJ - 27 unidades federativas
})

MILITARY_COURTS = MappingProxyType({
    13: 'Minas Gerais - MG',
    21: 'Rio Grande do Sul - RS',
    26: 'São Paulo - SP',
})

ORIGINAL_LAWSUIT_COURTS = MappingProxyType({
    5: 'Tribunal Superior do Trabalho (TST)',
    6: 'Tribunal Superior Eleitoral (TSE)',
    7: 'Superior Tribunal Militar (STM)',
    9: 'Superior Tribunal Militar (STM)',
})

COUNCIL_COURTS = MappingProxyType({
    4: 'Conselho da Justiça Federal',
    5: 'Conselho Superior da Justiça do Trabalho',
})

COURT_TYPE_BY_SEGMENT = MappingProxyType({
    4: CourtType.REGION,
    5: CourtType.REGION,
    6: CourtType.ESTATE,
    7: CourtType.JUDICIAL_CIRCUIT,
    8: CourtType.ESTATE,
})

SOURCE_UNIT_CONFIG = MappingProxyType({
    1: SourceUnitType.COURT_UNIT_SINGLE,
    2: SourceUnitType.COURT_UNIT_SINGLE,
    3: SourceUnitType.COURT_UNIT_SINGLE,
    4: SourceUnitType.JUSTICE_SECTION,
    5: SourceUnitType.LABOR_UNIT,
    6: SourceUnitType.ELECTORAL_UNIT,
    7: SourceUnitType.MILITARY_UNIT,
    8: SourceUnitType.CIVIL_UNIT,
    9: SourceUnitType.MILITARY_UNIT,
})


@dataclass(frozen=True)
class OriginCourt:
    """Court classification of a CNJ number"""
    origin_court_type: str
    origin_court_number: str


@dataclass(frozen=True)
class SourceUnit:
    """Source unit classification of a CNJ number"""
    source_unit_type: str
    source_unit_number: str


class SegmentClassifier:
    """Look up segments in the static segment table"""

    def classify(self, segment_code: Union[str, int]) -> Optional[SegmentInfo]:
        """Return the segment, or None so callers can decide to escalate"""
        return get_segment(segment_code)

    def all(self) -> List[SegmentInfo]:
        return get_all_segments()


class JurisdictionClassifier(ABC):
    """Abstract base class for segment-dependent code classifiers"""

    @abstractmethod
    def classify(self, code: str, segment: SegmentInfo):
        """Classify a code within the given segment"""
        pass


class CourtClassifier(JurisdictionClassifier):
    """Classifier for the 2-digit court code (CT)"""

    def classify(self, court: str, segment: SegmentInfo) -> OriginCourt:
        if court == SPECIAL_COURT_ORIGINAL:
            return self._original_lawsuit(segment)
        if court == SPECIAL_COURT_COUNCIL:
            return self._council(segment)
        return self._numbered_court(court, segment)

    def _original_lawsuit(self, segment: SegmentInfo) -> OriginCourt:
        """Court 00: lawsuit originated at a superior court"""
        if segment.number in (1, 2, 3):
            origin_court = f"{segment.name} ({segment.short})"
        elif segment.number in ORIGINAL_LAWSUIT_COURTS:
            origin_court = ORIGINAL_LAWSUIT_COURTS[segment.number]
        else:
            raise CNJValidationError.invalid_court(SPECIAL_COURT_ORIGINAL, segment.number)

        return OriginCourt(CourtType.ORIGINAL_LAWSUIT, origin_court)

    def _council(self, segment: SegmentInfo) -> OriginCourt:
        """Court 90: council competence"""
        if segment.number not in COUNCIL_COURTS:
            raise CNJValidationError.invalid_court(SPECIAL_COURT_COUNCIL, segment.number)

        return OriginCourt(CourtType.ORIGINAL_LAWSUIT, COUNCIL_COURTS[segment.number])

    def _numbered_court(self, court: str, segment: SegmentInfo) -> OriginCourt:
        if not court.isdigit() or not court.isascii():
            raise CNJValidationError.invalid_court(court, segment.number)

        court_number = int(court)

        if segment.number == 9:
            if court_number not in MILITARY_COURTS:
                raise CNJValidationError.invalid_court(court, segment.number)
            return OriginCourt(CourtType.MARTIAL_COURT, MILITARY_COURTS[court_number])

        if not is_court_valid(segment, court_number) or segment.number not in COURT_TYPE_BY_SEGMENT:
            raise CNJValidationError.invalid_court(court, segment.number)

        return OriginCourt(COURT_TYPE_BY_SEGMENT[segment.number], str(court_number))


class SourceUnitClassifier(JurisdictionClassifier):
    """
    Classifier for the 4-digit source unit code (OOOO)

    Unknown segments fall back to the civil forum label unless strict is set.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict

    def classify(self, source_unit: str, segment: SegmentInfo) -> SourceUnit:
        # Original competence takes precedence over the segment default
        if source_unit == '0000':
            return SourceUnit(SourceUnitType.COURT_UNIT_SINGLE, source_unit)

        if source_unit[:1] == '9':
            return SourceUnit(SourceUnitType.COURT_UNIT, source_unit)

        if segment.number not in SOURCE_UNIT_CONFIG:
            if self.strict:
                raise CNJValidationError.invalid_source_unit(source_unit, segment.number)
            logger.debug(f"Segment {segment.number} has no source unit type, using default")

        return SourceUnit(get_source_unit_type_by_segment(segment.number), source_unit)


def is_court_valid(segment: SegmentInfo, court_number: int) -> bool:
    """Check the court number against the segment maximum"""
    max_court = MAX_COURT_BY_SEGMENT.get(segment.number, 0)
    if max_court == 0:
        return False
    return 1 <= court_number <= max_court


def get_max_court_by_segment(segment_number: int) -> int:
    return MAX_COURT_BY_SEGMENT.get(segment_number, 0)


def is_valid_source_unit(source_unit: str) -> bool:
    return len(source_unit) == 4 and source_unit.isdigit() and source_unit.isascii()


def get_source_unit_type_by_segment(segment_number: int) -> str:
    return SOURCE_UNIT_CONFIG.get(segment_number, SourceUnitType.CIVIL_UNIT)


# Module-level classifiers for function-style access
_court_classifier = CourtClassifier()
_source_unit_classifier = SourceUnitClassifier()


def get_origin_court(court: str, segment: SegmentInfo) -> OriginCourt:
    return _court_classifier.classify(court, segment)


def get_source_unit(source_unit: str, segment: SegmentInfo) -> SourceUnit:
    return _source_unit_classifier.classify(source_unit, segment)


def get_classifier_summary() -> Dict[str, Dict]:
    """Per-segment classification rules, for display"""
    summary = {}
    for segment in get_all_segments():
        court_type = COURT_TYPE_BY_SEGMENT.get(segment.number, '')
        if segment.number == 9:
            court_type = CourtType.MARTIAL_COURT

        summary[segment.short] = {
            'number': segment.number,
            'name': segment.name,
            'max_court': get_max_court_by_segment(segment.number),
            'court_type': court_type,
            'source_unit_type': get_source_unit_type_by_segment(segment.number),
        }
    return summary
