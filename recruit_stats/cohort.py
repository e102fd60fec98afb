"""
후보자 구성 모듈

원본 행을 지원분야 그룹별로 나누고, 역할 변환과 점수 변환을 적용해
후보자(Candidate) 목록을 만듭니다.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from recruit_stats.config import (
    ROLE_EXCLUDED,
    FieldRoleMapping,
    GroupDefinition,
    ResultRoleMapping,
)
from recruit_stats.roles import normalize_cell_text, resolve_role

logger = logging.getLogger(__name__)

_DECIMAL_RE = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$')


def coerce_score(raw) -> Optional[float]:
    """
    셀 값을 점수(숫자)로 변환합니다.

    Args:
        raw: 셀 값 (문자열, 숫자, None 등)

    Returns:
        Optional[float]: 숫자 값 (변환할 수 없으면 None)

    Note:
        - None, NaN, 공백 문자열 → None
        - 천 단위 구분자(,)는 제거 후 변환
        - inf/nan 같은 유한하지 않은 값 → None

    Examples:
        >>> coerce_score('1,250.5')
        1250.5
        >>> coerce_score(' 85 ')
        85.0
        >>> coerce_score('결시') is None
        True
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float, np.integer, np.floating)):
        value = float(raw)
        return value if math.isfinite(value) else None

    text = str(raw).strip().replace(',', '')
    if not text or not _DECIMAL_RE.match(text):
        return None
    value = float(text)
    return value if math.isfinite(value) else None


@dataclass
class Candidate:
    """한 그룹 안의 지원자 1명 (계산할 때마다 새로 만듭니다)."""

    row_index: int
    group_name: str
    candidate_id: Optional[str] = None
    phase_role: Optional[str] = None
    final_role: Optional[str] = None
    eval_scores: Dict[str, float] = field(default_factory=dict)
    total_score: Optional[float] = None


def _score_row(row: Mapping[str, Any], evaluation_fields: Sequence[str]) -> Dict[str, float]:
    scores = {}
    for f in evaluation_fields:
        value = coerce_score(row.get(f))
        if value is not None:
            scores[f] = value
    return scores


def total_of(scores: Mapping[str, float]) -> Optional[float]:
    """숫자로 변환된 평가항목의 합계 (하나도 없으면 None)."""
    if not scores:
        return None
    return float(sum(scores.values()))


def build_cohorts(
    rows: Sequence[Mapping[str, Any]],
    mapping: FieldRoleMapping,
    support_groups: GroupDefinition,
    result_mapping: ResultRoleMapping,
) -> Dict[str, List[Candidate]]:
    """
    지원분야 그룹별 후보자 목록을 만듭니다.

    Args:
        rows (Sequence[Mapping]): 원본 행 목록 [{헤더: 값}, ...]
        mapping (FieldRoleMapping): 컬럼 역할 매핑
        support_groups (GroupDefinition): 지원분야 그룹 정의
        result_mapping (ResultRoleMapping): 결과 역할 매핑

    Returns:
        Dict[str, List[Candidate]]: {그룹명: 후보자 목록} (그룹 순서, 행 순서 유지)

    Note:
        - 전형결과 역할이 '평가제외'인 행은 후보자로 만들지 않습니다.
        - 총점이 None인 후보자도 목록에 남습니다 (인원 n에는 포함).
        - 지원분야 컬럼이 지정되지 않으면 모든 그룹이 빈 목록이 됩니다.
    """
    category_field = mapping.category_field
    phase_field = mapping.phase_result_field
    final_field = mapping.final_result_field
    id_field = mapping.candidate_id_field

    # 행별 계산은 그룹과 무관하므로 한 번만 수행
    categories = [
        normalize_cell_text(row.get(category_field)) if category_field else None
        for row in rows
    ]

    cohorts: Dict[str, List[Candidate]] = {}
    for group_name in support_groups.names():
        members = set(support_groups.members(group_name))
        candidates = []

        if category_field:
            for idx, row in enumerate(rows):
                if categories[idx] not in members:
                    continue

                phase_role = resolve_role(row.get(phase_field), result_mapping.phase) if phase_field else None
                if phase_role == ROLE_EXCLUDED:
                    continue

                final_role = resolve_role(row.get(final_field), result_mapping.final) if final_field else None
                scores = _score_row(row, mapping.evaluation_fields)
                raw_id = row.get(id_field) if id_field else None

                candidates.append(Candidate(
                    row_index=idx,
                    group_name=group_name,
                    candidate_id=normalize_cell_text(raw_id) or None,
                    phase_role=phase_role,
                    final_role=final_role,
                    eval_scores=scores,
                    total_score=total_of(scores),
                ))

        logger.debug("group %r: %d candidates", group_name, len(candidates))
        cohorts[group_name] = candidates

    return cohorts


def available_fields(candidates: Sequence[Candidate], evaluation_fields: Sequence[str]) -> List[str]:
    """
    한 명 이상의 후보자에게서 숫자 값이 나온 평가항목을 매핑 순서대로 반환합니다.

    Examples:
        >>> c = Candidate(row_index=0, group_name='행정', eval_scores={'면접': 80.0})
        >>> available_fields([c], ['서류', '면접'])
        ['면접']
    """
    present = set()
    for c in candidates:
        present.update(c.eval_scores.keys())
    return [f for f in evaluation_fields if f in present]


def default_included_fields(
    cohorts: Mapping[str, Sequence[Candidate]],
    mapping: FieldRoleMapping,
) -> Dict[str, List[str]]:
    """그룹별 기본 포함 평가항목 (해당 그룹에서 숫자로 잡힌 항목 전체)."""
    return {
        name: available_fields(candidates, mapping.evaluation_fields)
        for name, candidates in cohorts.items()
    }
