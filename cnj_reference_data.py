"""
CNJ Reference Data
Static segment table and district index used to enrich CNJ numbers
"""

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Optional, Any, Mapping, Union
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_DISTRICTS_PATH = str(Path(__file__).resolve().parent / "districts.json")

BRAZILIAN_STATES = MappingProxyType({
    'AC': 'Acre',
    'AL': 'Alagoas',
    'AP': 'Amapá',
    'AM': 'Amazonas',
    'BA': 'Bahia',
    'CE': 'Ceará',
    'DF': 'Distrito Federal',
    'ES': 'Espírito Santo',
    'GO': 'Goiás',
    'MA': 'Maranhão',
    'MT': 'Mato Grosso',
    'MS': 'Mato Grosso do Sul',
    'MG': 'Minas Gerais',
    'PA': 'Pará',
    'PB': 'Paraíba',
    'PR': 'Paraná',
    'PE': 'Pernambuco',
    'PI': 'Piauí',
    'RJ': 'Rio de Janeiro',
    'RN': 'Rio Grande do Norte',
    'RS': 'Rio Grande do Sul',
    'RO': 'Rondônia',
    'RR': 'Roraima',
    'SC': 'Santa Catarina',
    'SP': 'São Paulo',
    'SE': 'Sergipe',
    'TO': 'Tocantins',
})


@dataclass(frozen=True)
class SegmentInfo:
    """Judiciary segment (the J digit of a CNJ number)"""
    number: int
    name: str
    short: str


@dataclass(frozen=True)
class DistrictInfo:
    """District record for a segment.court.sourceUnit key"""
    source_unit: str
    uf: str
    district: str

    def __post_init__(self):
        """Validate that the record is complete"""
        if not self.source_unit:
            raise ValueError("District record missing source unit name")
        if len(self.uf) != 2 or not self.uf.isalpha():
            raise ValueError(f"District record has invalid state code: {self.uf!r}")

    def to_dict(self) -> Dict[str, str]:
        return {'source_unit': self.source_unit, 'uf': self.uf, 'district': self.district}


# ==================== Segment Table ====================
SEGMENTS: Mapping[int, SegmentInfo] = MappingProxyType({
    1: SegmentInfo(1, 'Supremo Tribunal Federal', 'STF'),
    2: SegmentInfo(2, 'Conselho Nacional de Justiça', 'CNJ'),
    3: SegmentInfo(3, 'Superior Tribunal de Justiça', 'STJ'),
    4: SegmentInfo(4, 'Justiça Federal', 'TRF'),
    5: SegmentInfo(5, 'Justiça do Trabalho', 'TRT'),
    6: SegmentInfo(6, 'Justiça Eleitoral', 'TRE'),
    7: SegmentInfo(7, 'Justiça Militar da União', 'STM'),
    8: SegmentInfo(8, 'Justiça dos Estados e do Distrito Federal e Territórios', 'TJ'),
    9: SegmentInfo(9, 'Justiça Militar Estadual', 'TJM'),
})


def _segment_number(segment_code: Union[str, int]) -> Optional[int]:
    if isinstance(segment_code, bool):
        return None
    if isinstance(segment_code, int):
        return segment_code
    code = str(segment_code).strip()
    if not code.isdigit():
        return None
    return int(code)


def get_segment(segment_code: Union[str, int]) -> Optional[SegmentInfo]:
    """Get segment by code, or None when the code is not 1-9"""
    number = _segment_number(segment_code)
    if number is None or number < 1 or number > 9:
        return None
    return SEGMENTS.get(number)


def is_valid_segment_code(segment_code: Union[str, int]) -> bool:
    return get_segment(segment_code) is not None


def get_all_segments() -> List[SegmentInfo]:
    """List all segments ordered by number"""
    return [SEGMENTS[number] for number in sorted(SEGMENTS)]


# ==================== District Index ====================
def generate_district_key(segment: str, court: str, source_unit: str) -> str:
    """Compose district key in the format segment.court.sourceUnit"""
    return f"{segment}.{court}.{source_unit}"


class DistrictIndex:
    """Read-only lookup of district records keyed by segment.court.sourceUnit"""

    def __init__(self, districts: Mapping[str, DistrictInfo], source: str = "<memory>"):
        self._districts = MappingProxyType(dict(districts))
        self.source = source

    def __len__(self) -> int:
        return len(self._districts)

    def __contains__(self, key: object) -> bool:
        return key in self._districts

    @property
    def districts(self) -> Mapping[str, DistrictInfo]:
        return self._districts

    def get(self, key: str) -> Optional[DistrictInfo]:
        """Get district by key; a miss is not an error"""
        return self._districts.get(key)

    def has_district(self, key: str) -> bool:
        return key in self._districts

    def get_by_uf(self, uf: str) -> List[DistrictInfo]:
        """Get all districts of a state"""
        uf = uf.upper()
        return [info for info in self._districts.values() if info.uf == uf]

    def get_by_segment(self, segment: str) -> List[DistrictInfo]:
        """Get all districts registered under a segment"""
        prefix = f"{segment}."
        return [info for key, info in self._districts.items() if key.startswith(prefix)]

    def get_statistics(self) -> Dict[str, Any]:
        """Summary of the loaded dataset"""
        states = sorted({info.uf for info in self._districts.values()})
        segment_counts: Dict[str, int] = {}
        for key in self._districts:
            segment = key.split('.')[0]
            segment_counts[segment] = segment_counts.get(segment, 0) + 1

        return {
            'total_districts': len(self._districts),
            'total_states': len(states),
            'states': states,
            'segment_counts': segment_counts,
            'source': self.source,
        }


class DistrictIndexBuilder:
    """Collects district records before freezing them into a DistrictIndex"""

    def __init__(self):
        self._districts: Dict[str, DistrictInfo] = {}
        self._built = False

    def add(self, key: str, district: DistrictInfo) -> 'DistrictIndexBuilder':
        if self._built:
            raise RuntimeError("DistrictIndexBuilder already built; create a new builder")
        parts = key.split('.')
        if len(parts) != 3 or not all(part.isdigit() for part in parts):
            raise ValueError(f"Invalid district key: {key!r}. Expected segment.court.sourceUnit")
        if key in self._districts:
            logger.debug(f"Overriding district record for key {key}")
        self._districts[key] = district
        return self

    def add_from_dict(self, data: Mapping[str, Mapping[str, str]]) -> 'DistrictIndexBuilder':
        """Add records from the districts.json layout"""
        for key, record in data.items():
            self.add(key, DistrictInfo(
                source_unit=record['source_unit'],
                uf=record['uf'],
                district=record.get('district', ''),
            ))
        return self

    def build(self, source: str = "<memory>") -> DistrictIndex:
        self._built = True
        return DistrictIndex(self._districts, source=source)


def load_district_index(path: str = DEFAULT_DISTRICTS_PATH,
                        extra: Optional[Mapping[str, DistrictInfo]] = None) -> DistrictIndex:
    """Load district index from a JSON file, optionally extended with extra records"""
    districts_file = Path(path)
    if not districts_file.exists():
        raise FileNotFoundError(f"Districts file not found: {path}")

    try:
        with open(districts_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in districts file: {e}")
        raise ValueError(f"Invalid JSON in districts file {path}: {e}")

    builder = DistrictIndexBuilder().add_from_dict(data.get('districts', data))
    for key, district in (extra or {}).items():
        builder.add(key, district)

    index = builder.build(source=str(districts_file))
    logger.info(f"Loaded {len(index)} districts from {districts_file}")
    return index


# Global district index
_district_index: Optional[DistrictIndex] = None


def get_district_index() -> DistrictIndex:
    """Get the process-wide district index, loading the bundled dataset on first use"""
    global _district_index

    if _district_index is None:
        _district_index = load_district_index()

    return _district_index


def set_district_index(index: DistrictIndex) -> None:
    """Install a prebuilt index as the process-wide one (call once at startup)"""
    global _district_index
    _district_index = index


# Convenience functions for easy access
def get_district_info(key: str) -> Optional[DistrictInfo]:
    return get_district_index().get(key)


def has_district(key: str) -> bool:
    return get_district_index().has_district(key)


def get_districts_by_uf(uf: str) -> List[DistrictInfo]:
    return get_district_index().get_by_uf(uf)


def get_districts_by_segment(segment: str) -> List[DistrictInfo]:
    return get_district_index().get_by_segment(segment)
