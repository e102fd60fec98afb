"""
통계 계산 모듈

지원분야 그룹(코호트)의 요약 통계(평균, 중앙값, 표준편차), 전형 합격률,
커트라인, 합격컷 상위 %, 평가항목별 합격 공헌도(상관계수)를 계산합니다.

모든 함수는 계산할 수 없는 경우 예외 대신 None을 반환합니다.
"""

from typing import Any, Dict, List, Optional, Sequence

import numpy as np
from scipy.stats import pearsonr

from recruit_stats.cohort import Candidate, available_fields
from recruit_stats.config import ROLE_FAIL, ROLE_PASS

FINAL_PASS_LABEL = "최종 합격"
FINAL_FAIL_PHASE_PASS_LABEL = "최종 불합격(전형 합격)"


def mean(xs: Sequence[float]) -> Optional[float]:
    """
    산술 평균을 계산합니다.

    Examples:
        >>> mean([80, 60, 90])
        76.66666666666667
        >>> mean([]) is None
        True
    """
    if len(xs) == 0:
        return None
    return float(np.mean(np.asarray(xs, dtype=float)))


def median(xs: Sequence[float]) -> Optional[float]:
    """
    중앙값을 계산합니다 (짝수 개이면 가운데 두 값의 평균).

    Examples:
        >>> median([3, 1, 2, 4])
        2.5
    """
    if len(xs) == 0:
        return None
    return float(np.median(np.asarray(xs, dtype=float)))


def std_dev(xs: Sequence[float]) -> Optional[float]:
    """
    모표준편차를 계산합니다 (n으로 나눔, 표본 보정 없음).

    Args:
        xs (Sequence[float]): 값 목록

    Returns:
        Optional[float]: 표준편차 (값이 2개 미만이면 None)

    Formula:
        sqrt(mean((x - mean(x))^2))

    Examples:
        >>> std_dev([2, 4, 4, 4, 5, 5, 7, 9])
        2.0
    """
    if len(xs) < 2:
        return None
    return float(np.std(np.asarray(xs, dtype=float), ddof=0))


def correlation(xs: Sequence[float], ys: Sequence[float]) -> Optional[float]:
    """
    피어슨 상관계수를 계산합니다.

    Args:
        xs (Sequence[float]): 첫 번째 값 목록
        ys (Sequence[float]): 두 번째 값 목록 (xs와 같은 순서)

    Returns:
        Optional[float]: -1 ~ 1 사이의 상관계수

    Note:
        다음의 경우 None을 반환합니다.
        - 쌍이 2개 미만이거나 길이가 다를 때
        - 어느 한쪽의 분산이 0일 때 (모든 값이 같을 때)

    Examples:
        >>> round(correlation([10, 20, 30, 40], [0, 0, 1, 1]), 3)
        0.894
    """
    if len(xs) < 2 or len(xs) != len(ys):
        return None
    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)
    if np.ptp(x) == 0 or np.ptp(y) == 0:
        return None
    r, _ = pearsonr(x, y)
    return float(np.clip(r, -1.0, 1.0))


# ═══════════════════════════════════════════════════════════════════
# 후보자 목록 기반 통계
# ═══════════════════════════════════════════════════════════════════

def scored_totals(candidates: Sequence[Candidate]) -> List[float]:
    """총점이 있는 후보자의 총점 목록."""
    return [c.total_score for c in candidates if c.total_score is not None]


def role_totals(candidates: Sequence[Candidate], role: str) -> List[float]:
    """특정 전형결과 역할을 가진 후보자의 총점 목록."""
    return [
        c.total_score for c in candidates
        if c.phase_role == role and c.total_score is not None
    ]


def pass_rate(candidates: Sequence[Candidate]) -> Optional[float]:
    """
    전형 합격률(%)을 계산합니다.

    분모는 평가제외를 뺀 전체 인원(n)이며, 총점 유무와 관계없습니다.

    Examples:
        >>> cs = [Candidate(0, 'A', phase_role='합격'), Candidate(1, 'A', phase_role='불합격')]
        >>> pass_rate(cs)
        50.0
    """
    n = len(candidates)
    if n == 0:
        return None
    passed = sum(1 for c in candidates if c.phase_role == ROLE_PASS)
    return passed / n * 100


def cutoff(candidates: Sequence[Candidate]) -> Optional[float]:
    """
    전형 합격 커트라인 (총점이 있는 합격자 중 최저 총점).
    """
    pass_scores = role_totals(candidates, ROLE_PASS)
    if not pass_scores:
        return None
    return min(pass_scores)


def cutoff_percentile(candidates: Sequence[Candidate], cut: Optional[float]) -> Optional[float]:
    """
    합격컷 상위 %를 계산합니다.

    총점이 있는 후보자 중 커트라인 이상인 사람의 비율(%)입니다.
    일반적인 백분위 순위(percentile rank)가 아니라, 커트라인 이상 구간이
    채점된 전체에서 차지하는 비율이라는 점에 주의합니다.

    Args:
        candidates (Sequence[Candidate]): 그룹 후보자 목록
        cut (Optional[float]): 커트라인 점수

    Returns:
        Optional[float]: 비율(%) (커트라인이 없거나 총점 보유자가 없으면 None)
    """
    if cut is None:
        return None
    totals = scored_totals(candidates)
    if not totals:
        return None
    above = sum(1 for s in totals if s >= cut)
    return above / len(totals) * 100


def field_correlation(candidates: Sequence[Candidate], field: str) -> Optional[float]:
    """
    평가항목 점수와 전형 합격 여부(합격=1, 불합격=0)의 상관계수 (합격 공헌도).

    전형결과가 합격/불합격이고 해당 항목이 숫자인 후보자만 사용합니다.
    따라서 합격률·커트라인과 분모가 다를 수 있습니다.
    """
    xs, ys = [], []
    for c in candidates:
        value = c.eval_scores.get(field)
        if value is None:
            continue
        if c.phase_role == ROLE_PASS:
            xs.append(value)
            ys.append(1)
        elif c.phase_role == ROLE_FAIL:
            xs.append(value)
            ys.append(0)
    return correlation(xs, ys)


def field_stats(candidates: Sequence[Candidate], fields: Sequence[str]) -> List[Dict[str, Any]]:
    """
    평가항목별 합격자/불합격자 평균과 합격 공헌도를 계산합니다.

    Returns:
        List[Dict]: [{'field', 'pass_avg', 'fail_avg', 'corr'}, ...] (fields 순서)
    """
    result = []
    for f in fields:
        pass_scores = [
            c.eval_scores[f] for c in candidates
            if c.phase_role == ROLE_PASS and f in c.eval_scores
        ]
        fail_scores = [
            c.eval_scores[f] for c in candidates
            if c.phase_role == ROLE_FAIL and f in c.eval_scores
        ]
        result.append({
            'field': f,
            'pass_avg': mean(pass_scores),
            'fail_avg': mean(fail_scores),
            'corr': field_correlation(candidates, f),
        })
    return result


def final_compare(candidates: Sequence[Candidate]) -> Dict[str, float]:
    """
    최종 합격자 vs 최종 불합격(전형 합격)자의 총점 평균.

    해당하는 총점이 없는 항목은 결과에서 빠집니다.
    """
    final_pass = [
        c.total_score for c in candidates
        if c.final_role == ROLE_PASS and c.total_score is not None
    ]
    final_fail_phase_pass = [
        c.total_score for c in candidates
        if c.final_role == ROLE_FAIL and c.phase_role == ROLE_PASS and c.total_score is not None
    ]
    result = {}
    if final_pass:
        result[FINAL_PASS_LABEL] = mean(final_pass)
    if final_fail_phase_pass:
        result[FINAL_FAIL_PHASE_PASS_LABEL] = mean(final_fail_phase_pass)
    return result


def group_detail_stats(
    candidates: Sequence[Candidate],
    evaluation_fields: Sequence[str],
    included_fields: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    """
    지원분야 그룹 1개의 상세 통계를 계산합니다.

    Args:
        candidates (Sequence[Candidate]): 그룹 후보자 목록 (평가제외 제거 후)
        evaluation_fields (Sequence[str]): 매핑된 평가항목 전체 (표시 순서)
        included_fields (Optional[Sequence[str]]): 항목별 통계에 포함할 평가항목
            (None이면 그룹에서 숫자로 잡힌 항목 전체)

    Returns:
        Dict[str, Any]: 상세 통계
            n, pass_count, scored_count, pass_rate, avg_total, median, std_dev,
            min, max, fail_max, cutoff, cutoff_percentile, phase_avg,
            final_compare, available_fields, included_fields, field_stats

    Examples:
        >>> detail = group_detail_stats(candidates, ['서류', '면접'])
        >>> detail['n'], detail['cutoff']
        (3, 80.0)
    """
    totals = scored_totals(candidates)
    pass_totals = role_totals(candidates, ROLE_PASS)
    fail_totals = role_totals(candidates, ROLE_FAIL)

    available = available_fields(candidates, evaluation_fields)
    if included_fields is None:
        included = list(available)
    else:
        included = [f for f in included_fields if f in evaluation_fields]

    cut = cutoff(candidates)

    phase_avg = {}
    if pass_totals:
        phase_avg[ROLE_PASS] = mean(pass_totals)
    if fail_totals:
        phase_avg[ROLE_FAIL] = mean(fail_totals)

    return {
        'n': len(candidates),
        'pass_count': sum(1 for c in candidates if c.phase_role == ROLE_PASS),
        'scored_count': len(totals),
        'pass_rate': pass_rate(candidates),
        'avg_total': mean(totals),
        'median': median(totals),
        'std_dev': std_dev(totals),
        'min': min(totals) if totals else None,
        'max': max(totals) if totals else None,
        'fail_max': max(fail_totals) if fail_totals else None,
        'cutoff': cut,
        'cutoff_percentile': cutoff_percentile(candidates, cut),
        'phase_avg': phase_avg,
        'final_compare': final_compare(candidates),
        'available_fields': available,
        'included_fields': included,
        'field_stats': field_stats(candidates, included),
    }
