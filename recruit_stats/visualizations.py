"""
시각화 모듈

Plotly 기반의 지원분야별 통계 차트를 생성합니다.
"""

from typing import Any, Mapping, Sequence

import numpy as np
import pandas as pd
import plotly.graph_objects as go

from recruit_stats.cohort import Candidate
from recruit_stats.config import ROLE_FAIL, ROLE_OTHER, ROLE_PASS


# 전형결과 역할별 색상 정의
ROLE_COLORS = {
    ROLE_PASS: '#54A0FF',   # 파랑색
    ROLE_FAIL: '#EE5A6F',   # 빨강색
    ROLE_OTHER: '#868E96',  # 회색
}

FINAL_COLORS = ['#1DD1A1', '#FFD93D']


def _base_layout(fig: go.Figure, title: str, height: int = 320, **kwargs) -> go.Figure:
    fig.update_layout(
        title=title,
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(240,242,246,0.3)",
        font_family="Pretendard",
        height=height,
        margin=dict(l=60, r=40, t=70, b=60),
        **kwargs
    )
    return fig


def create_phase_average_chart(detail: Mapping[str, Any], group_name: str) -> go.Figure:
    """
    전형 결과별 총점 평균 (합격 vs 불합격) 막대 그래프를 생성합니다.

    Args:
        detail (Mapping): group_detail_stats() 결과
        group_name (str): 그룹명

    Returns:
        go.Figure: Plotly Figure 객체 (평균이 없는 역할은 막대가 없음)
    """
    phase_avg = detail.get('phase_avg', {})
    roles = [r for r in (ROLE_PASS, ROLE_FAIL) if phase_avg.get(r) is not None]

    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=roles,
        y=[phase_avg[r] for r in roles],
        name="총점 평균",
        marker=dict(color=[ROLE_COLORS[r] for r in roles]),
        text=[f"<b>{phase_avg[r]:.2f}</b>" for r in roles],
        textposition='outside',
    ))
    return _base_layout(
        fig,
        f"<b>{group_name} · 전형 결과별 총점 평균</b>",
        showlegend=False,
        xaxis_title="전형 결과",
        yaxis_title="총점 평균",
    )


def create_field_comparison_chart(detail: Mapping[str, Any], group_name: str) -> go.Figure:
    """
    평가항목별 합격자/불합격자 평균 묶음 막대 그래프를 생성합니다.

    Returns:
        go.Figure: 합격자 평균, 불합격자 평균 2개의 trace
    """
    stats = detail.get('field_stats', [])
    fields = [fs['field'] for fs in stats]

    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=fields,
        y=[fs['pass_avg'] for fs in stats],
        name="합격자 평균",
        marker=dict(color=ROLE_COLORS[ROLE_PASS]),
    ))
    fig.add_trace(go.Bar(
        x=fields,
        y=[fs['fail_avg'] for fs in stats],
        name="불합격자 평균",
        marker=dict(color=ROLE_COLORS[ROLE_FAIL]),
    ))
    return _base_layout(
        fig,
        f"<b>{group_name} · 평가항목별 합/불 평균</b>",
        height=360,
        barmode='group',
        xaxis_title="평가항목",
        yaxis_title="평균 점수",
    )


def create_final_compare_chart(detail: Mapping[str, Any], group_name: str) -> go.Figure:
    """최종 합격 vs 최종 불합격(전형 합격) 총점 평균 막대 그래프."""
    compare = detail.get('final_compare', {})
    labels = list(compare.keys())

    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=labels,
        y=[compare[k] for k in labels],
        name="총점 평균",
        marker=dict(color=FINAL_COLORS[:len(labels)]),
        text=[f"<b>{compare[k]:.2f}</b>" for k in labels],
        textposition='outside',
    ))
    return _base_layout(
        fig,
        f"<b>{group_name} · 최종 결과별 총점 평균</b>",
        showlegend=False,
        yaxis_title="총점 평균",
    )


def create_cross_group_chart(summary: Sequence[Mapping[str, Any]]) -> go.Figure:
    """
    지원분야별 전형 합격률 막대 그래프를 생성합니다.

    합격률이 없는 그룹(인원 0명)도 x축에는 표시됩니다.
    """
    names = [row['group_name'] for row in summary]
    rates = [row['pass_rate'] for row in summary]

    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=names,
        y=rates,
        name="전형 합격률(%)",
        marker=dict(color=ROLE_COLORS[ROLE_PASS]),
        text=[f"{r:.1f}%" if r is not None else "-" for r in rates],
        textposition='outside',
        customdata=[row['n'] for row in summary],
        hovertemplate="<b>%{x}</b><br>합격률: %{y:.1f}%<br>인원: %{customdata}명<extra></extra>",
    ))
    return _base_layout(
        fig,
        "<b>지원분야별 전형 합격률</b>",
        showlegend=False,
        xaxis_title="지원분야(통합)",
        yaxis=dict(title="합격률(%)", range=[0, 110]),
    )


def create_score_distribution_chart(
    candidates: Sequence[Candidate],
    group_name: str,
    bin_size: float = 10,
) -> go.Figure:
    """
    총점 분포 막대 그래프를 전형결과 역할별로 생성합니다.

    Args:
        candidates (Sequence[Candidate]): 그룹 후보자 목록
        group_name (str): 그룹명
        bin_size (float): 구간 폭 (기본값: 10점)

    Returns:
        go.Figure: 역할(합격/불합격/기타)별 trace
    """
    records = [
        {'총점': c.total_score, '전형결과': c.phase_role if c.phase_role in (ROLE_PASS, ROLE_FAIL) else ROLE_OTHER}
        for c in candidates if c.total_score is not None
    ]
    score_df = pd.DataFrame(records, columns=['총점', '전형결과'])

    fig = go.Figure()
    if not score_df.empty:
        low = np.floor(score_df['총점'].min() / bin_size) * bin_size
        high = np.floor(score_df['총점'].max() / bin_size) * bin_size + bin_size
        bins = np.arange(low, high + bin_size, bin_size)
        score_df['bin'] = pd.cut(score_df['총점'], bins=bins, right=False)
        bin_counts = score_df.groupby(['bin', '전형결과'], observed=False).size().unstack(fill_value=0)
        bin_labels = [f"{interval.left:g}-{interval.right:g}" for interval in bin_counts.index]

        for role in (ROLE_PASS, ROLE_FAIL, ROLE_OTHER):
            if role not in bin_counts.columns:
                continue
            fig.add_trace(go.Bar(
                x=bin_labels,
                y=bin_counts[role].tolist(),
                name=role,
                marker=dict(color=ROLE_COLORS[role], line=dict(color='rgba(0,0,0,0.4)', width=1)),
            ))

    return _base_layout(
        fig,
        f"<b>{group_name} · 총점 분포</b>",
        height=360,
        barmode='stack',
        bargap=0.05,
        xaxis_title="총점 구간",
        yaxis_title="인원",
    )
