"""
스냅샷 서비스 모듈

전형 권한 확인 후 계산 결과 스냅샷을 조회/저장/삭제하고, 저장된 전형 데이터로
통계를 계산하는 경계(boundary) 함수를 제공합니다.

각 함수는 오류를 아래처럼 구분해 올립니다.
    - ValidationError (400): 저장 요청 본문 형식 오류 (저장소 접근 전)
    - ForbiddenError (403): 다른 프로젝트의 전형에 접근
    - RoundNotFoundError / SnapshotNotFoundError (404)
    - sqlite3.Error: 저장소 오류 (그대로 전달, 재시도 없음)
"""

import logging
from typing import Any, Dict, Mapping, Optional, Sequence

from recruit_stats.errors import ForbiddenError, RoundNotFoundError, SnapshotNotFoundError
from recruit_stats.repository import RoundRepository
from recruit_stats.snapshot import validate_snapshot_body
from recruit_stats.summary import compute_stats

logger = logging.getLogger(__name__)


def find_round_with_auth(repo: RoundRepository, round_id: int, project_id: Optional[int]) -> Dict[str, Any]:
    """
    전형 존재 여부와 프로젝트 권한을 확인합니다.

    Raises:
        RoundNotFoundError: 전형이 없을 때
        ForbiddenError: project_id가 없거나 전형의 프로젝트와 다를 때
    """
    round_ = repo.get_round(round_id)
    if round_ is None:
        raise RoundNotFoundError("전형을 찾을 수 없습니다.")

    if project_id is None or int(project_id) != int(round_['project_id']):
        logger.warning("project %s denied access to round %s", project_id, round_id)
        raise ForbiddenError("이 전형에 접근할 권한이 없습니다.")

    return round_


def compute_stats_for_round(
    repo: RoundRepository,
    round_id: int,
    project_id: Optional[int],
    included_fields_by_group: Optional[Mapping[str, Sequence[str]]] = None,
) -> Dict[str, Any]:
    """저장된 전형 데이터(행 + 매핑 + 그룹 + 결과 매핑)로 통계를 다시 계산합니다."""
    round_ = find_round_with_auth(repo, round_id, project_id)
    return compute_stats(
        round_['rows'],
        round_['mapping'],
        round_['support_groups'],
        round_['result_mapping'],
        included_fields_by_group,
    )


def update_round_for_project(
    repo: RoundRepository,
    round_id: int,
    project_id: Optional[int],
    name: str,
    headers: Sequence[str],
    rows: Sequence[Mapping[str, Any]],
    mapping: Mapping[str, Any],
    support_groups: Mapping[str, Any],
    result_mapping: Mapping[str, Any],
) -> Dict[str, Any]:
    """
    권한 확인 후 전형의 원본 행과 매핑을 현재 화면 값으로 교체합니다.

    스냅샷을 저장하기 전에 호출하면 compute_stats_for_round() 결과가 저장된
    스냅샷과 같은 데이터를 기준으로 계산됩니다.
    """
    find_round_with_auth(repo, round_id, project_id)
    repo.update_round(round_id, name, headers, rows, mapping, support_groups, result_mapping)
    return repo.get_round(round_id)


def get_calc_for_round(repo: RoundRepository, round_id: int, project_id: Optional[int]) -> Dict[str, Any]:
    """
    저장된 계산 결과를 조회합니다.

    Returns:
        Dict[str, Any]: {'calc': 스냅샷 레코드}

    Raises:
        SnapshotNotFoundError: 저장된 결과가 없을 때 (직접 계산 후 저장해야 함)
    """
    find_round_with_auth(repo, round_id, project_id)

    snapshot = repo.load_snapshot(round_id)
    if snapshot is None:
        raise SnapshotNotFoundError("저장된 계산 결과가 없습니다.")

    return {'calc': snapshot.to_dict()}


def save_calc_for_round(
    repo: RoundRepository,
    round_id: int,
    project_id: Optional[int],
    body: Optional[Mapping[str, Any]],
) -> Dict[str, Any]:
    """
    계산 결과를 저장하거나 덮어씁니다.

    Args:
        body: {'name'?: str, 'config': dict, 'stats': dict}

    Returns:
        Dict[str, Any]: {'message', 'created', 'calc'}
    """
    payload = validate_snapshot_body(body)
    find_round_with_auth(repo, round_id, project_id)

    snapshot, created = repo.save_snapshot(
        round_id, payload['name'], payload['config'], payload['stats']
    )
    return {
        'message': "계산 결과가 새로 저장되었습니다." if created else "계산 결과가 업데이트되었습니다.",
        'created': created,
        'calc': snapshot.to_dict(),
    }


def delete_calc_for_round(repo: RoundRepository, round_id: int, project_id: Optional[int]) -> Dict[str, Any]:
    """
    저장된 계산 결과를 삭제합니다. 없으면 deleted=0으로 알려줍니다.

    Returns:
        Dict[str, Any]: {'message', 'deleted'}
    """
    find_round_with_auth(repo, round_id, project_id)

    deleted = repo.delete_snapshot(round_id)
    if deleted == 0:
        return {'message': "삭제할 계산 결과가 없습니다.", 'deleted': 0}
    return {'message': "계산 결과가 삭제되었습니다.", 'deleted': deleted}
