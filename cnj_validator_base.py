"""
CNJ Validator Base
Decomposition and check digit validation of CNJ process numbers
Format: NNNNNNN-DD.AAAA.J.CT.OOOO or NNNNNNNDDAAAAJCTOOOO
"""

import re
import logging
from enum import Enum
from typing import Dict, Optional, Any
from dataclasses import dataclass, asdict

from cnj_reference_data import (
    SegmentInfo, generate_district_key, get_district_index, get_segment
)

logger = logging.getLogger(__name__)

MOD = 97
SUB = 98
MATH_SUFFIX = '00'

CNJ_LENGTH = 20
MIN_INPUT_LENGTH = 20
MAX_INPUT_LENGTH = 25

# Segments whose tribunal code uses the court number instead of the state
COURT_NUMBER_TJ_SEGMENTS = frozenset({1, 2, 3, 4, 7})

FIELD_WIDTHS = (
    ('lawsuit_number', 7),
    ('verifying_digit', 2),
    ('protocol_year', 4),
    ('segment', 1),
    ('court', 2),
    ('source_unit', 4),
)

EXPECTED_SHAPE = "NNNNNNN-DD.AAAA.J.CT.OOOO ou NNNNNNNDDAAAAJCTOOOO"


class CNJErrorType(str, Enum):
    INVALID_FORMAT = 'INVALID_FORMAT'
    INVALID_LENGTH = 'INVALID_LENGTH'
    INVALID_VERIFYING_DIGIT = 'INVALID_VERIFYING_DIGIT'
    INVALID_SEGMENT = 'INVALID_SEGMENT'
    INVALID_COURT = 'INVALID_COURT'
    INVALID_SOURCE_UNIT = 'INVALID_SOURCE_UNIT'
    INVALID_YEAR = 'INVALID_YEAR'
    DISTRICT_NOT_FOUND = 'DISTRICT_NOT_FOUND'
    CALCULATION_ERROR = 'CALCULATION_ERROR'


class CNJValidationError(ValueError):
    """Error raised for malformed or unclassifiable CNJ numbers"""

    def __init__(self, error_type: CNJErrorType, message: str,
                 code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.code = code or error_type.value
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.error_type.value,
            'code': self.code,
            'message': self.message,
            'details': self.details,
        }

    @classmethod
    def invalid_format(cls, received: str) -> 'CNJValidationError':
        return cls(
            CNJErrorType.INVALID_FORMAT,
            f"Formato CNJ inválido: {received}. Esperado: {EXPECTED_SHAPE}",
            details={'received': received},
        )

    @classmethod
    def invalid_length(cls, received: str, expected_length: int = CNJ_LENGTH) -> 'CNJValidationError':
        return cls(
            CNJErrorType.INVALID_LENGTH,
            f"Tamanho CNJ inválido: {len(received)} ({received}). "
            f"Esperado: {expected_length} dígitos no formato {EXPECTED_SHAPE}",
            details={'received': received, 'received_length': len(received),
                     'expected_length': expected_length},
        )

    @classmethod
    def invalid_verifying_digit(cls, received: str, expected: str) -> 'CNJValidationError':
        return cls(
            CNJErrorType.INVALID_VERIFYING_DIGIT,
            f"Dígito verificador inválido. Esperado: {expected}, Recebido: {received}",
            details={'received': received, 'expected': expected},
        )

    @classmethod
    def invalid_segment(cls, segment: str) -> 'CNJValidationError':
        return cls(
            CNJErrorType.INVALID_SEGMENT,
            f"Código de segmento inválido: {segment}. Deve ser entre 1 e 9",
            details={'segment': segment},
        )

    @classmethod
    def invalid_court(cls, court: str, segment: int) -> 'CNJValidationError':
        return cls(
            CNJErrorType.INVALID_COURT,
            f"Código de tribunal inválido: {court} para segmento {segment}",
            details={'court': court, 'segment': segment},
        )

    @classmethod
    def invalid_source_unit(cls, source_unit: str, segment: int) -> 'CNJValidationError':
        return cls(
            CNJErrorType.INVALID_SOURCE_UNIT,
            f"Unidade de origem inválida: {source_unit} para segmento {segment}",
            details={'source_unit': source_unit, 'segment': segment},
        )

    @classmethod
    def district_not_found(cls, key: str) -> 'CNJValidationError':
        return cls(
            CNJErrorType.DISTRICT_NOT_FOUND,
            f"Distrito não encontrado para chave: {key}",
            details={'key': key},
        )

    @classmethod
    def calculation_error(cls, arg_number: Any) -> 'CNJValidationError':
        return cls(
            CNJErrorType.CALCULATION_ERROR,
            f"Erro no cálculo do dígito verificador: {arg_number!r} não é um número inteiro não negativo",
            code='CALC_ERROR',
            details={'arg_number': arg_number},
        )


@dataclass(frozen=True)
class DecomposedCNJ:
    """CNJ number split into its fixed-width fields plus lookup enrichment"""
    lawsuit_cnj_format: str
    lawsuit_number: str
    verifying_digit: str
    protocol_year: str
    segment: str
    court: str
    source_unit: str
    arg_number: str
    district: str = ''
    uf: str = ''
    tj: str = ''

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


class ValidationResult:
    """Structured check digit validation result"""

    def __init__(self, is_valid: bool, expected_digit: Optional[str] = None,
                 received_digit: Optional[str] = None, error: Optional[str] = None,
                 error_code: Optional[str] = None):
        self.is_valid = is_valid
        self.expected_digit = expected_digit
        self.received_digit = received_digit
        self.error = error
        self.error_code = error_code

    def __repr__(self) -> str:
        return (f"ValidationResult(is_valid={self.is_valid}, expected_digit={self.expected_digit!r}, "
                f"received_digit={self.received_digit!r}, error={self.error!r})")

    def to_dict(self) -> Dict:
        """Convert to dictionary format"""
        return {
            'is_valid': self.is_valid,
            'expected_digit': self.expected_digit,
            'received_digit': self.received_digit,
            'error': self.error,
            'error_code': self.error_code
        }


# ==================== Decomposition ====================
def decompose_cnj(cnj: str) -> DecomposedCNJ:
    """
    Decompose a CNJ number into its components

    Args:
        cnj: CNJ number, masked (NNNNNNN-DD.AAAA.J.CT.OOOO) or compact (20 digits)

    Returns:
        DecomposedCNJ with fields, argument number and district enrichment

    Raises:
        CNJValidationError: INVALID_LENGTH or INVALID_FORMAT
    """
    if not isinstance(cnj, str):
        raise CNJValidationError.invalid_format(repr(cnj))

    if len(cnj) > MAX_INPUT_LENGTH or len(cnj) < MIN_INPUT_LENGTH:
        raise CNJValidationError.invalid_length(cnj)

    if '-' in cnj:
        components = _split_masked(cnj)
    else:
        components = _split_compact(cnj)

    try:
        validate_cnj_components(**components)
    except CNJValidationError as e:
        # Report the whole identifier, keep the offending field in the details
        raise CNJValidationError(
            CNJErrorType.INVALID_FORMAT,
            f"Formato CNJ inválido: {cnj}. {e.message}. Esperado: {EXPECTED_SHAPE}",
            code=e.code,
            details={'received': cnj, **e.details},
        )

    return _build_decomposed(**components)


def _split_masked(cnj: str) -> Dict[str, str]:
    parts = cnj.split('-')
    if len(parts) != 2:
        raise CNJValidationError.invalid_format(cnj)

    remaining = parts[1].split('.')
    if len(remaining) != 5:
        raise CNJValidationError.invalid_format(cnj)

    verifying_digit, protocol_year, segment, court, source_unit = remaining
    return {
        'lawsuit_number': parts[0],
        'verifying_digit': verifying_digit,
        'protocol_year': protocol_year,
        'segment': segment,
        'court': court,
        'source_unit': source_unit,
    }


def _split_compact(cnj: str) -> Dict[str, str]:
    if len(cnj) != CNJ_LENGTH:
        raise CNJValidationError.invalid_length(cnj)
    if not cnj.isdigit():
        raise CNJValidationError.invalid_format(cnj)

    return {
        'lawsuit_number': cnj[0:7],
        'verifying_digit': cnj[7:9],
        'protocol_year': cnj[9:13],
        'segment': cnj[13:14],
        'court': cnj[14:16],
        'source_unit': cnj[16:20],
    }


def _build_decomposed(lawsuit_number: str, verifying_digit: str, protocol_year: str,
                      segment: str, court: str, source_unit: str) -> DecomposedCNJ:
    arg_number = lawsuit_number + protocol_year + segment + court + source_unit + MATH_SUFFIX

    district_key = generate_district_key(segment, court, source_unit)
    district_info = get_district_index().get(district_key)
    if district_info is None:
        logger.debug(f"No district record for key {district_key}")

    uf = district_info.uf if district_info else ''
    segment_info = get_segment(segment)

    return DecomposedCNJ(
        lawsuit_cnj_format=f"{lawsuit_number}-{verifying_digit}.{protocol_year}.{segment}.{court}.{source_unit}",
        lawsuit_number=lawsuit_number,
        verifying_digit=verifying_digit,
        protocol_year=protocol_year,
        segment=segment,
        court=court,
        source_unit=source_unit,
        arg_number=arg_number,
        district=district_info.source_unit if district_info else '',
        uf=uf,
        tj=generate_tj_code(court, uf, segment_info),
    )


def generate_tj_code(court: str, uf: str, segment_info: Optional[SegmentInfo]) -> str:
    """Composite tribunal code, e.g. TRF1 or TJSP"""
    if segment_info is None:
        return ''

    if segment_info.number in COURT_NUMBER_TJ_SEGMENTS:
        if not court.isdigit():
            return ''
        return f"{segment_info.short}{int(court)}"

    return f"{segment_info.short}{uf}"


def validate_cnj_components(lawsuit_number: str, verifying_digit: str, protocol_year: str,
                            segment: str, court: str, source_unit: str) -> None:
    """Check width and digit content of every field"""
    values = {
        'lawsuit_number': lawsuit_number,
        'verifying_digit': verifying_digit,
        'protocol_year': protocol_year,
        'segment': segment,
        'court': court,
        'source_unit': source_unit,
    }
    labels = {
        'lawsuit_number': ('Número do processo', 'INVALID_LAWSUIT_NUMBER'),
        'verifying_digit': ('Dígito verificador', 'INVALID_VERIFYING_DIGIT'),
        'protocol_year': ('Ano de protocolo', 'INVALID_PROTOCOL_YEAR'),
        'segment': ('Segmento', 'INVALID_SEGMENT'),
        'court': ('Código do tribunal', 'INVALID_COURT'),
        'source_unit': ('Código da unidade de origem', 'INVALID_SOURCE_UNIT'),
    }

    for field_name, width in FIELD_WIDTHS:
        value = values[field_name]
        if len(value) != width or not value.isdigit() or not value.isascii():
            label, code = labels[field_name]
            raise CNJValidationError(
                CNJErrorType.INVALID_FORMAT,
                f"{label} deve ter {width} dígito(s)",
                code=code,
                details={field_name: value},
            )


# ==================== Check Digit ====================
def calculate_verifying_digit(arg_number: str) -> str:
    """
    Calculate the 2-digit verifying code for an argument number

    Args:
        arg_number: lawsuit + year + segment + court + source unit + "00"

    Returns:
        Zero-padded 98 - (arg_number mod 97)
    """
    if not isinstance(arg_number, str) or not arg_number.isdigit() or not arg_number.isascii():
        raise CNJValidationError.calculation_error(arg_number)

    remainder = int(arg_number) % MOD
    return f"{SUB - remainder:02d}"


def validate_cnj(cnj: str) -> ValidationResult:
    """Validate a CNJ number check digit; never raises"""
    try:
        decomposed = decompose_cnj(cnj)
        expected_digit = calculate_verifying_digit(decomposed.arg_number)
    except CNJValidationError as e:
        return ValidationResult(is_valid=False, error=e.message, error_code=e.code)

    received_digit = decomposed.verifying_digit
    if received_digit == expected_digit:
        return ValidationResult(is_valid=True, expected_digit=expected_digit,
                                received_digit=received_digit)

    mismatch = CNJValidationError.invalid_verifying_digit(received_digit, expected_digit)
    return ValidationResult(
        is_valid=False,
        expected_digit=expected_digit,
        received_digit=received_digit,
        error=mismatch.message,
        error_code=mismatch.code,
    )


def validate_cnj_format(cnj: str) -> bool:
    """Check the format only, without the check digit"""
    try:
        decompose_cnj(cnj)
        return True
    except CNJValidationError:
        return False


def is_valid_cnj(cnj: str) -> bool:
    return validate_cnj(cnj).is_valid


# ==================== Format Helpers ====================
def normalize_cnj(cnj: str) -> str:
    """Remove every non-digit character"""
    return re.sub(r'\D', '', cnj)


def format_cnj(cnj: str) -> str:
    """Render a 20-digit CNJ number with the NNNNNNN-DD.AAAA.J.CT.OOOO mask"""
    normalized = normalize_cnj(cnj)
    if len(normalized) != CNJ_LENGTH:
        raise CNJValidationError.invalid_length(cnj)

    return (f"{normalized[0:7]}-{normalized[7:9]}.{normalized[9:13]}."
            f"{normalized[13:14]}.{normalized[14:16]}.{normalized[16:20]}")


def detect_cnj_format(cnj: str) -> str:
    """Return 'formatted', 'unformatted' or 'invalid'"""
    if len(normalize_cnj(cnj)) != CNJ_LENGTH:
        return 'invalid'

    if '-' in cnj and '.' in cnj:
        return 'formatted'

    if re.fullmatch(r'\d{20}', cnj):
        return 'unformatted'

    return 'invalid'


# ==================== Field Extraction ====================
def extract_year(cnj: str) -> str:
    try:
        return decompose_cnj(cnj).protocol_year
    except CNJValidationError:
        return ''


def extract_segment(cnj: str) -> str:
    try:
        return decompose_cnj(cnj).segment
    except CNJValidationError:
        return ''


def extract_court(cnj: str) -> str:
    try:
        return decompose_cnj(cnj).court
    except CNJValidationError:
        return ''


def is_from_year(cnj: str, year: str) -> bool:
    return extract_year(cnj) == year


def is_from_segment(cnj: str, segment: str) -> bool:
    return extract_segment(cnj) == segment
