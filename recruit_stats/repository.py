"""
저장소 모듈

SQLite를 단일 저장소로 사용해 전형(eval_rounds)과 전형당 1개의 계산 결과
스냅샷(eval_round_calcs)을 보관합니다.

Usage:
    from recruit_stats.repository import RoundRepository
    with RoundRepository("recruit_stats.db") as repo:
        repo.init_db()
        round_id = repo.create_round(project_id=1, name="1차 서류", ...)
        snapshot, created = repo.save_snapshot(round_id, "기본 분석", config, stats)

Note:
    - 스냅샷은 eval_round_id UNIQUE 제약 + INSERT ... ON CONFLICT DO UPDATE 로
      저장하므로 같은 전형에 대해 동시에 저장해도 행이 2개가 되지 않습니다.
    - 전형을 삭제하면 스냅샷도 함께 삭제됩니다 (ON DELETE CASCADE).
"""

import contextlib
import datetime as _dt
import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from recruit_stats.config import SCHEMA_VERSION
from recruit_stats.snapshot import CalcSnapshot, normalize_snapshot_name

logger = logging.getLogger(__name__)


def _utc_now_iso() -> str:
    return _dt.datetime.now(tz=_dt.timezone.utc).replace(tzinfo=None).isoformat(timespec='microseconds') + "Z"


def _json_dumps(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"), default=str)


def _json_loads(value: Any, default: Any):
    if value is None:
        return default
    return json.loads(value)


class RoundRepository:
    def __init__(self, db_path: Union[str, Path], busy_timeout_ms: int = 5000):
        self.db_path = str(db_path)
        # 자동 커밋 모드, BEGIN/COMMIT은 transaction()에서 실행
        self._conn = sqlite3.connect(self.db_path, isolation_level=None)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON;")
        self._conn.execute("PRAGMA journal_mode = WAL;")
        self._conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)};")
        self._tx_depth = 0

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "RoundRepository":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @contextlib.contextmanager
    def transaction(self, *, write: bool = True) -> Iterator[sqlite3.Cursor]:
        """
        트랜잭션 컨텍스트.

        - 가장 바깥: BEGIN (읽기) 또는 BEGIN IMMEDIATE (쓰기)
        - 중첩: SAVEPOINT / RELEASE (안쪽 블록만 롤백)
        """
        cur = self._conn.cursor()
        depth0 = self._tx_depth
        sp_name: Optional[str] = None
        try:
            if depth0 == 0:
                self._conn.execute("BEGIN IMMEDIATE;" if write else "BEGIN;")
            else:
                sp_name = f"sp_{depth0}"
                cur.execute(f"SAVEPOINT {sp_name};")

            self._tx_depth += 1
            try:
                yield cur
            except Exception:
                if depth0 == 0:
                    self._conn.rollback()
                else:
                    cur.execute(f"ROLLBACK TO SAVEPOINT {sp_name};")
                    cur.execute(f"RELEASE SAVEPOINT {sp_name};")
                raise
            else:
                if depth0 == 0:
                    self._conn.commit()
                else:
                    cur.execute(f"RELEASE SAVEPOINT {sp_name};")
            finally:
                self._tx_depth -= 1
        finally:
            cur.close()

    # ------------------------
    # 스키마
    # ------------------------

    def init_db(self) -> None:
        if self._tx_depth != 0:
            # executescript()는 암묵적으로 COMMIT 함
            raise RuntimeError("init_db() must not run inside an active transaction")
        cur = self._conn.cursor()
        try:
            cur.executescript(
                """
                CREATE TABLE IF NOT EXISTS eval_rounds (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    project_id INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    headers_json TEXT NOT NULL,
                    rows_json TEXT NOT NULL,
                    mapping_json TEXT NOT NULL,
                    support_groups_json TEXT NOT NULL,
                    result_mapping_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_eval_rounds_project_id ON eval_rounds(project_id);

                CREATE TABLE IF NOT EXISTS eval_round_calcs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    eval_round_id INTEGER NOT NULL,
                    name TEXT NOT NULL DEFAULT '기본 분석',
                    config_json TEXT NOT NULL,
                    stats_json TEXT NOT NULL,
                    schema_version TEXT NOT NULL DEFAULT 'v1',
                    calculated_at TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    FOREIGN KEY(eval_round_id) REFERENCES eval_rounds(id) ON DELETE CASCADE
                );
                CREATE UNIQUE INDEX IF NOT EXISTS ux_eval_round_calcs_round_id
                    ON eval_round_calcs(eval_round_id);
                """
            )
        finally:
            cur.close()

    # ------------------------
    # 전형
    # ------------------------

    def create_round(
        self,
        project_id: int,
        name: str,
        headers: Sequence[str],
        rows: Sequence[Mapping[str, Any]],
        mapping: Mapping[str, Any],
        support_groups: Mapping[str, Any],
        result_mapping: Mapping[str, Any],
    ) -> int:
        """전형을 등록하고 id를 반환합니다."""
        now = _utc_now_iso()
        with self.transaction() as cur:
            cur.execute(
                """
                INSERT INTO eval_rounds(
                    project_id, name, headers_json, rows_json, mapping_json,
                    support_groups_json, result_mapping_json, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    int(project_id),
                    str(name),
                    _json_dumps(list(headers)),
                    _json_dumps([dict(r) for r in rows]),
                    _json_dumps(dict(mapping)),
                    _json_dumps(dict(support_groups)),
                    _json_dumps(dict(result_mapping)),
                    now,
                    now,
                ),
            )
            round_id = int(cur.lastrowid)
        logger.info("created round %s for project %s", round_id, project_id)
        return round_id

    def update_round(
        self,
        round_id: int,
        name: str,
        headers: Sequence[str],
        rows: Sequence[Mapping[str, Any]],
        mapping: Mapping[str, Any],
        support_groups: Mapping[str, Any],
        result_mapping: Mapping[str, Any],
    ) -> int:
        """전형의 원본 데이터와 설정을 교체합니다. 갱신된 전형 수를 반환합니다."""
        with self.transaction() as cur:
            cur.execute(
                """
                UPDATE eval_rounds SET
                    name=?, headers_json=?, rows_json=?, mapping_json=?,
                    support_groups_json=?, result_mapping_json=?, updated_at=?
                WHERE id=?;
                """,
                (
                    str(name),
                    _json_dumps(list(headers)),
                    _json_dumps([dict(r) for r in rows]),
                    _json_dumps(dict(mapping)),
                    _json_dumps(dict(support_groups)),
                    _json_dumps(dict(result_mapping)),
                    _utc_now_iso(),
                    int(round_id),
                ),
            )
            updated = cur.rowcount
        logger.info("updated round %s (%d rows)", round_id, updated)
        return updated

    def get_round(self, round_id: int) -> Optional[Dict[str, Any]]:
        """전형 정보 {id, project_id, name, headers, rows, mapping, support_groups, result_mapping}."""
        with self.transaction(write=False) as cur:
            row = cur.execute("SELECT * FROM eval_rounds WHERE id=?;", (int(round_id),)).fetchone()
        if row is None:
            return None
        return {
            'id': row['id'],
            'project_id': row['project_id'],
            'name': row['name'],
            'headers': _json_loads(row['headers_json'], []),
            'rows': _json_loads(row['rows_json'], []),
            'mapping': _json_loads(row['mapping_json'], {}),
            'support_groups': _json_loads(row['support_groups_json'], {}),
            'result_mapping': _json_loads(row['result_mapping_json'], {}),
            'created_at': row['created_at'],
            'updated_at': row['updated_at'],
        }

    def list_rounds(self, project_id: int) -> List[Dict[str, Any]]:
        with self.transaction(write=False) as cur:
            rows = cur.execute(
                "SELECT id, name, created_at FROM eval_rounds WHERE project_id=? ORDER BY id;",
                (int(project_id),),
            ).fetchall()
        return [dict(r) for r in rows]

    def delete_round(self, round_id: int) -> int:
        """전형을 삭제합니다 (스냅샷 포함). 삭제된 전형 수를 반환합니다."""
        with self.transaction() as cur:
            cur.execute("DELETE FROM eval_rounds WHERE id=?;", (int(round_id),))
            deleted = cur.rowcount
        logger.info("deleted round %s (%d rows)", round_id, deleted)
        return deleted

    # ------------------------
    # 스냅샷
    # ------------------------

    @staticmethod
    def _row_to_snapshot(row: sqlite3.Row) -> CalcSnapshot:
        return CalcSnapshot(
            id=row['id'],
            round_id=row['eval_round_id'],
            name=row['name'],
            config=_json_loads(row['config_json'], {}),
            stats=_json_loads(row['stats_json'], {}),
            schema_version=row['schema_version'],
            calculated_at=row['calculated_at'],
            created_at=row['created_at'],
            updated_at=row['updated_at'],
        )

    def save_snapshot(
        self,
        round_id: int,
        name: Optional[str],
        config: Mapping[str, Any],
        stats: Mapping[str, Any],
    ) -> Tuple[CalcSnapshot, bool]:
        """
        전형의 스냅샷을 저장합니다. 이미 있으면 통째로 덮어씁니다.

        Returns:
            Tuple[CalcSnapshot, bool]: (저장된 스냅샷, 새로 만들었는지 여부)

        Raises:
            sqlite3.IntegrityError: 전형이 존재하지 않을 때
        """
        now = _utc_now_iso()
        with self.transaction() as cur:
            existing = cur.execute(
                "SELECT id FROM eval_round_calcs WHERE eval_round_id=?;", (int(round_id),)
            ).fetchone()
            cur.execute(
                """
                INSERT INTO eval_round_calcs(
                    eval_round_id, name, config_json, stats_json, schema_version,
                    calculated_at, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(eval_round_id) DO UPDATE SET
                    name=excluded.name,
                    config_json=excluded.config_json,
                    stats_json=excluded.stats_json,
                    schema_version=excluded.schema_version,
                    calculated_at=excluded.calculated_at,
                    updated_at=excluded.updated_at;
                """,
                (
                    int(round_id),
                    normalize_snapshot_name(name),
                    _json_dumps(dict(config)),
                    _json_dumps(dict(stats)),
                    SCHEMA_VERSION,
                    now,
                    now,
                    now,
                ),
            )
            row = cur.execute(
                "SELECT * FROM eval_round_calcs WHERE eval_round_id=?;", (int(round_id),)
            ).fetchone()

        created = existing is None
        logger.info("%s snapshot for round %s", "created" if created else "replaced", round_id)
        return self._row_to_snapshot(row), created

    def load_snapshot(self, round_id: int) -> Optional[CalcSnapshot]:
        """저장된 스냅샷 (없으면 None)."""
        with self.transaction(write=False) as cur:
            row = cur.execute(
                "SELECT * FROM eval_round_calcs WHERE eval_round_id=?;", (int(round_id),)
            ).fetchone()
        return self._row_to_snapshot(row) if row is not None else None

    def delete_snapshot(self, round_id: int) -> int:
        """스냅샷을 삭제하고 삭제된 행 수(0 또는 1)를 반환합니다."""
        with self.transaction() as cur:
            cur.execute("DELETE FROM eval_round_calcs WHERE eval_round_id=?;", (int(round_id),))
            deleted = cur.rowcount
        logger.info("deleted snapshot for round %s (%d rows)", round_id, deleted)
        return deleted
