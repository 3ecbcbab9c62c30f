from __future__ import annotations
import sqlite3
from contextlib import closing
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional


DB_PATH: Optional[Path] = None

# Job counter name -> jobs column
COUNTER_COLUMNS = {
    "rows": "rows_total",
    "identical": "identical",
    "differ": "differ",
    "error": "errors",
}

JOB_COLUMNS = (
    "id", "file_id", "status", "group_size", "group_delay", "strict",
    "created_at", "started_at", "finished_at", "result_path", "error",
) + tuple(COUNTER_COLUMNS.values())


def _ts(value) -> Optional[str]:
    if isinstance(value, datetime):
        return value.isoformat()
    return value or None


def _connect() -> sqlite3.Connection:
    assert DB_PATH is not None, "init_db() was not called"
    conn = sqlite3.connect(str(DB_PATH))
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: Path) -> None:
    global DB_PATH
    DB_PATH = db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with closing(_connect()) as conn, conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS files (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                path TEXT NOT NULL,
                size INTEGER NOT NULL,
                created_at TEXT NOT NULL
            )
            """
        )
        # One row per reconcile run; counters stay NULL until the run finishes
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS jobs (
                id TEXT PRIMARY KEY,
                file_id TEXT NOT NULL REFERENCES files(id),
                status TEXT NOT NULL,
                group_size INTEGER NOT NULL,
                group_delay REAL NOT NULL,
                strict INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                started_at TEXT,
                finished_at TEXT,
                result_path TEXT,
                error TEXT,
                rows_total INTEGER,
                identical INTEGER,
                differ INTEGER,
                errors INTEGER
            )
            """
        )


def add_file(info: Dict) -> None:
    with closing(_connect()) as conn, conn:
        conn.execute(
            "INSERT OR REPLACE INTO files(id,name,path,size,created_at) VALUES(?,?,?,?,?)",
            (info["id"], info["name"], info["path"], int(info["size"]), _ts(info["created_at"])),
        )


def get_file(file_id: str) -> Optional[Dict]:
    with closing(_connect()) as conn:
        r = conn.execute("SELECT * FROM files WHERE id=?", (file_id,)).fetchone()
    return dict(r) if r else None


def list_files() -> List[Dict]:
    with closing(_connect()) as conn:
        return [dict(r) for r in conn.execute("SELECT * FROM files ORDER BY created_at DESC")]


def _job_from_row(r: sqlite3.Row) -> Dict:
    d = dict(r)
    d["strict"] = bool(d["strict"])
    counters = {name: d.pop(column) for name, column in COUNTER_COLUMNS.items()}
    d["counters"] = counters if counters["rows"] is not None else {}
    return d


def save_job(job: Dict) -> None:
    """Insert or replace a job row from a ``Job``-shaped dict."""
    counters = job.get("counters") or {}
    values = dict(job)
    values.update({column: counters.get(name) for name, column in COUNTER_COLUMNS.items()})
    values["strict"] = int(bool(values.get("strict")))
    for key in ("created_at", "started_at", "finished_at"):
        values[key] = _ts(values.get(key))
    placeholders = ",".join("?" for _ in JOB_COLUMNS)
    with closing(_connect()) as conn, conn:
        conn.execute(
            f"INSERT OR REPLACE INTO jobs({','.join(JOB_COLUMNS)}) VALUES({placeholders})",
            tuple(values.get(column) for column in JOB_COLUMNS),
        )


def get_job(job_id: str) -> Optional[Dict]:
    with closing(_connect()) as conn:
        r = conn.execute("SELECT * FROM jobs WHERE id=?", (job_id,)).fetchone()
    return _job_from_row(r) if r else None


def list_jobs(file_id: Optional[str] = None) -> List[Dict]:
    query = "SELECT * FROM jobs"
    params: tuple = ()
    if file_id:
        query += " WHERE file_id=?"
        params = (file_id,)
    with closing(_connect()) as conn:
        return [_job_from_row(r) for r in conn.execute(query + " ORDER BY created_at DESC", params)]
