"""
지원분야 간 요약 모듈

그룹별 통계를 지원분야 간 비교표로 모으고, 전체 계산의 진입점(compute_stats)을 제공합니다.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import pandas as pd

from recruit_stats.cohort import Candidate, build_cohorts
from recruit_stats.config import FieldRoleMapping, GroupDefinition, ResultRoleMapping
from recruit_stats.statistics import (
    cutoff,
    cutoff_percentile,
    group_detail_stats,
    mean,
    pass_rate,
    scored_totals,
)

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = {
    'group_name': '지원분야(통합)',
    'n': '통계 대상 인원',
    'pass_rate': '전형 합격률(%)',
    'avg_total': '총점 평균',
    'cutoff': '전형 합격 커트라인 점수',
    'cutoff_percentile': '합격컷 상위 %',
}


def summarize_group(group_name: str, candidates: Sequence[Candidate]) -> Dict[str, Any]:
    """
    그룹 1개를 비교표 한 줄로 요약합니다.

    Returns:
        Dict[str, Any]: {group_name, n, pass_rate, avg_total, cutoff, cutoff_percentile}
            (후보자가 없으면 n=0, 나머지는 모두 None)
    """
    if not candidates:
        return {
            'group_name': group_name,
            'n': 0,
            'pass_rate': None,
            'avg_total': None,
            'cutoff': None,
            'cutoff_percentile': None,
        }

    cut = cutoff(candidates)
    return {
        'group_name': group_name,
        'n': len(candidates),
        'pass_rate': pass_rate(candidates),
        'avg_total': mean(scored_totals(candidates)),
        'cutoff': cut,
        'cutoff_percentile': cutoff_percentile(candidates, cut),
    }


def cross_group_summary(cohorts: Mapping[str, Sequence[Candidate]]) -> List[Dict[str, Any]]:
    """
    지원분야 간 요약 비교표를 만듭니다. 빈 그룹도 빠짐없이 포함됩니다.

    Examples:
        >>> rows = cross_group_summary({'행정': [], '기술': candidates})
        >>> [r['group_name'] for r in rows]
        ['행정', '기술']
    """
    return [summarize_group(name, candidates) for name, candidates in cohorts.items()]


def _as_records(rows) -> List[Mapping[str, Any]]:
    if isinstance(rows, pd.DataFrame):
        return rows.to_dict('records')
    return list(rows or [])


def compute_stats(
    rows: Union[Sequence[Mapping[str, Any]], pd.DataFrame],
    mapping: Union[FieldRoleMapping, Mapping[str, Any]],
    support_groups: Union[GroupDefinition, Mapping[str, Any]],
    result_mapping: Union[ResultRoleMapping, Mapping[str, Any]],
    included_fields_by_group: Optional[Mapping[str, Sequence[str]]] = None,
) -> Dict[str, Any]:
    """
    원본 행과 설정으로 전체 통계를 계산합니다.

    Args:
        rows: 원본 행 목록 [{헤더: 값}, ...] 또는 DataFrame
        mapping: 컬럼 역할 매핑 (FieldRoleMapping 또는 dict)
        support_groups: 지원분야 그룹 정의 (GroupDefinition 또는 dict)
        result_mapping: 결과 역할 매핑 (ResultRoleMapping 또는 dict)
        included_fields_by_group: {그룹명: 포함할 평가항목} (없는 그룹은 기본값 사용)

    Returns:
        Dict[str, Any]: {'cross_group_summary': [...], 'groups': {그룹명: 상세 통계}}

    Examples:
        >>> stats = compute_stats(rows, {'supportField': '지원분야', 'evalFields': ['점수'],
        ...                              'phaseResult': '전형결과'},
        ...                       {'행정': ['행정']}, {'phase': {'합격': '합격'}})
        >>> stats['cross_group_summary'][0]['n']
        3
    """
    mapping = FieldRoleMapping.from_dict(mapping)
    support_groups = GroupDefinition.from_dict(support_groups)
    result_mapping = ResultRoleMapping.from_dict(result_mapping)

    cohorts = build_cohorts(_as_records(rows), mapping, support_groups, result_mapping)
    return stats_from_cohorts(cohorts, mapping, included_fields_by_group)


def stats_from_cohorts(
    cohorts: Mapping[str, Sequence[Candidate]],
    mapping: FieldRoleMapping,
    included_fields_by_group: Optional[Mapping[str, Sequence[str]]] = None,
) -> Dict[str, Any]:
    """
    이미 구성된 그룹별 후보자 목록으로 통계를 계산합니다.

    build_cohorts() 결과를 차트에도 함께 쓸 때 사용합니다.
    """
    included_fields_by_group = included_fields_by_group or {}

    groups = {}
    for name, candidates in cohorts.items():
        included = included_fields_by_group.get(name)
        groups[name] = group_detail_stats(
            candidates,
            mapping.evaluation_fields,
            list(included) if included is not None else None,
        )

    logger.info("computed stats for %d groups", len(groups))
    return {
        'cross_group_summary': cross_group_summary(cohorts),
        'groups': groups,
    }


def summary_to_frame(summary: Sequence[Mapping[str, Any]]) -> pd.DataFrame:
    """
    요약 비교표를 표시용 DataFrame으로 변환합니다 (숫자는 소수 둘째 자리 반올림).

    Returns:
        pd.DataFrame: 컬럼 = 지원분야(통합), 통계 대상 인원, 전형 합격률(%),
            총점 평균, 전형 합격 커트라인 점수, 합격컷 상위 %
    """
    df = pd.DataFrame(list(summary), columns=list(SUMMARY_COLUMNS.keys()))
    numeric_cols = ['pass_rate', 'avg_total', 'cutoff', 'cutoff_percentile']
    df[numeric_cols] = df[numeric_cols].astype(float).round(2)
    return df.rename(columns=SUMMARY_COLUMNS)
