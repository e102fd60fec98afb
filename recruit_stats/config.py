"""
설정 모듈

컬럼 역할 매핑, 지원분야 그룹, 결과 역할 매핑 등 계산에 필요한 설정 타입과
애플리케이션 기본 설정을 제공합니다.
"""

import copy
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from recruit_stats.roles import normalize_cell_text


# ═══════════════════════════════════════════════════════════════════
# 역할 상수
# ═══════════════════════════════════════════════════════════════════

ROLE_PASS = "합격"
ROLE_FAIL = "불합격"
ROLE_EXCLUDED = "평가제외"
ROLE_OTHER = "기타"

PHASE_ROLES = (ROLE_PASS, ROLE_FAIL, ROLE_EXCLUDED, ROLE_OTHER)
FINAL_ROLES = (ROLE_PASS, ROLE_FAIL, ROLE_OTHER)

SCHEMA_VERSION = "v1"
DEFAULT_SNAPSHOT_NAME = "기본 분석"


# ═══════════════════════════════════════════════════════════════════
# 애플리케이션 기본 설정
# ═══════════════════════════════════════════════════════════════════

DEFAULT_APP_CONFIG: Dict[str, Any] = {
    # ============= 저장소 =============
    'storage': {
        'db_path': os.environ.get('RECRUIT_STATS_DB', 'recruit_stats.db'),
        'busy_timeout_ms': 5000,
    },

    # ============= 스냅샷 =============
    'snapshot': {
        'default_name': DEFAULT_SNAPSHOT_NAME,
        'schema_version': SCHEMA_VERSION,
    },

    # ============= 표시 형식 =============
    'display': {
        'rate_digits': 1,
        'score_digits': 2,
        'corr_digits': 3,
    },
}


def get_config(config: Mapping[str, Any], path: str, default=None):
    """
    중첩 설정에서 값을 안전하게 가져옵니다.

    사용 예시:
        get_config(DEFAULT_APP_CONFIG, 'storage.db_path')      → 'recruit_stats.db'
        get_config(DEFAULT_APP_CONFIG, 'display.rate_digits')  → 1
        get_config(DEFAULT_APP_CONFIG, 'display.missing', 0)   → 0
    """
    value: Any = config
    for key in path.split('.'):
        if isinstance(value, Mapping) and key in value:
            value = value[key]
        else:
            return default
    return value


def set_config(config: Dict[str, Any], path: str, value) -> None:
    """
    중첩 설정 값을 변경합니다. 중간 경로가 없으면 만들어 둡니다.

    사용 예시:
        set_config(app_config, 'storage.db_path', '/tmp/stats.db')
    """
    keys = path.split('.')
    node = config
    for key in keys[:-1]:
        if not isinstance(node.get(key), dict):
            node[key] = {}
        node = node[key]
    node[keys[-1]] = value


def new_app_config() -> Dict[str, Any]:
    """기본 설정의 독립된 사본을 반환합니다."""
    return copy.deepcopy(DEFAULT_APP_CONFIG)


# ═══════════════════════════════════════════════════════════════════
# 계산 설정 타입
# ═══════════════════════════════════════════════════════════════════

def _clean_text(value) -> Optional[str]:
    """셀 값과 같은 규칙으로 정리하고, 빈 값은 None으로 통일합니다."""
    return normalize_cell_text(value) or None


def _unique_in_order(values: Iterable) -> List[str]:
    if isinstance(values, str):
        values = [values]
    seen = set()
    result = []
    for v in values or []:
        text = _clean_text(v)
        if text is None or text in seen:
            continue
        seen.add(text)
        result.append(text)
    return result


@dataclass
class FieldRoleMapping:
    """
    원본 컬럼이 어떤 의미를 갖는지 지정합니다.

    단수 역할(수험번호, 지원분야, 전형결과, 최종결과)은 컬럼 하나씩,
    평가항목은 여러 컬럼을 가질 수 있습니다 (표시 순서 유지).
    """

    candidate_id_field: Optional[str] = None
    category_field: Optional[str] = None
    evaluation_fields: List[str] = field(default_factory=list)
    phase_result_field: Optional[str] = None
    final_result_field: Optional[str] = None

    # 마법사 화면에서 쓰던 키 이름
    _LEGACY_KEYS = {
        'examNo': 'candidate_id_field',
        'supportField': 'category_field',
        'evalFields': 'evaluation_fields',
        'phaseResult': 'phase_result_field',
        'finalResult': 'final_result_field',
    }

    def __post_init__(self):
        self.candidate_id_field = _clean_text(self.candidate_id_field)
        self.category_field = _clean_text(self.category_field)
        self.phase_result_field = _clean_text(self.phase_result_field)
        self.final_result_field = _clean_text(self.final_result_field)
        self.evaluation_fields = _unique_in_order(self.evaluation_fields)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "FieldRoleMapping":
        """
        딕셔너리에서 매핑을 만듭니다. 누락된 항목은 None / 빈 리스트로 채웁니다.

        Examples:
            >>> m = FieldRoleMapping.from_dict({'supportField': '지원분야', 'evalFields': ['면접']})
            >>> m.category_field, m.evaluation_fields
            ('지원분야', ['면접'])
        """
        if isinstance(data, cls):
            return data
        data = dict(data or {})
        kwargs: Dict[str, Any] = {}
        for legacy, name in cls._LEGACY_KEYS.items():
            if name in data:
                kwargs[name] = data[name]
            elif legacy in data:
                kwargs[name] = data[legacy]
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'candidate_id_field': self.candidate_id_field,
            'category_field': self.category_field,
            'evaluation_fields': list(self.evaluation_fields),
            'phase_result_field': self.phase_result_field,
            'final_result_field': self.final_result_field,
        }


@dataclass
class GroupDefinition:
    """
    지원분야 상위 카테고리 정의 (그룹명 → 원본 지원분야 값 목록).

    하나의 원본 값이 여러 그룹에 들어 있어도 허용합니다. 이 경우 해당 행은
    그 값을 가진 모든 그룹에 포함됩니다.
    """

    groups: Dict[str, List[str]] = field(default_factory=dict)

    def __post_init__(self):
        cleaned: Dict[str, List[str]] = {}
        for name, values in (self.groups or {}).items():
            cleaned[str(name)] = _unique_in_order(values)
        self.groups = cleaned

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Iterable]]) -> "GroupDefinition":
        if isinstance(data, cls):
            return data
        return cls(dict(data or {}))

    @classmethod
    def from_values(cls, values: Iterable) -> "GroupDefinition":
        """
        원본 지원분야 값을 그대로 하나씩 그룹으로 만듭니다.

        Examples:
            >>> GroupDefinition.from_values(['일반행정', '지역행정']).groups
            {'일반행정': ['일반행정'], '지역행정': ['지역행정']}
        """
        return cls({v: [v] for v in _unique_in_order(values)})

    def names(self) -> List[str]:
        return list(self.groups.keys())

    def members(self, name: str) -> List[str]:
        return list(self.groups.get(name, []))

    def to_dict(self) -> Dict[str, List[str]]:
        return {name: list(values) for name, values in self.groups.items()}


@dataclass
class ResultRoleMapping:
    """
    전형결과/최종결과 원본 값 → 역할 매핑 테이블.

    역할이 비어 있는 항목은 매핑되지 않은 것으로 보고 제거합니다.
    """

    phase: Dict[str, str] = field(default_factory=dict)
    final: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self.phase = self._clean_table(self.phase)
        self.final = self._clean_table(self.final)

    @staticmethod
    def _clean_table(table: Optional[Mapping[str, Any]]) -> Dict[str, str]:
        cleaned = {}
        for raw, role in (table or {}).items():
            key = normalize_cell_text(raw)
            role_text = _clean_text(role)
            if role_text is None:
                continue
            cleaned[key] = role_text
        return cleaned

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "ResultRoleMapping":
        if isinstance(data, cls):
            return data
        data = dict(data or {})
        return cls(phase=data.get('phase') or {}, final=data.get('final') or {})

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {'phase': dict(self.phase), 'final': dict(self.final)}


@dataclass
class CalcConfig:
    """
    스냅샷에 함께 저장되는 계산 설정 전체.

    style_config는 화면 표시 설정으로, 계산에는 쓰이지 않습니다.
    """

    mapping: FieldRoleMapping = field(default_factory=FieldRoleMapping)
    support_groups: GroupDefinition = field(default_factory=GroupDefinition)
    result_mapping: ResultRoleMapping = field(default_factory=ResultRoleMapping)
    included_fields_by_group: Dict[str, List[str]] = field(default_factory=dict)
    group_order: List[str] = field(default_factory=list)
    style_config: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "CalcConfig":
        data = dict(data or {})
        groups = GroupDefinition.from_dict(data.get('support_groups'))
        order = data.get('group_order') or groups.names()
        return cls(
            mapping=FieldRoleMapping.from_dict(data.get('mapping')),
            support_groups=groups,
            result_mapping=ResultRoleMapping.from_dict(data.get('result_mapping')),
            included_fields_by_group={
                str(k): _unique_in_order(v)
                for k, v in (data.get('included_fields_by_group') or {}).items()
            },
            group_order=[str(g) for g in order],
            style_config=dict(data.get('style_config') or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'mapping': self.mapping.to_dict(),
            'support_groups': self.support_groups.to_dict(),
            'result_mapping': self.result_mapping.to_dict(),
            'included_fields_by_group': {
                k: list(v) for k, v in self.included_fields_by_group.items()
            },
            'group_order': list(self.group_order or self.support_groups.names()),
            'style_config': dict(self.style_config),
        }
