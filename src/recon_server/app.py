from __future__ import annotations
import logging
import os
import shutil
import uuid
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from fastapi import BackgroundTasks, FastAPI, File, HTTPException, UploadFile
from fastapi.responses import FileResponse
from pydantic import BaseModel, Field

from shipping_recon.config import ConfigError
from shipping_recon.io import InputRow, read_input_rows
from shipping_recon.pipeline import reconcile_one, reconcile_rows, write_output
from . import db
from . import settings as app_settings


log = logging.getLogger(__name__)

UPLOADS: Path = Path("uploads")
RESULTS: Path = Path("results")


def configure(data_dir: Path) -> None:
    """Point uploads, results, the job database and settings at ``data_dir``."""
    global UPLOADS, RESULTS
    UPLOADS = data_dir / "uploads"
    RESULTS = data_dir / "results"
    UPLOADS.mkdir(parents=True, exist_ok=True)
    RESULTS.mkdir(parents=True, exist_ok=True)
    db.init_db(data_dir / "app.sqlite3")
    app_settings.init_settings(data_dir / "settings.json")


app = FastAPI(title="EOM ↔ GIV Shipping Reconciliation API", version="0.1.0")
configure(Path(os.getenv("RECON_DATA_DIR") or Path.cwd() / "data"))


class JobStatus:
    queued = "queued"
    running = "running"
    succeeded = "succeeded"
    failed = "failed"


class Job(BaseModel):
    id: str
    file_id: str
    status: str
    group_size: int
    group_delay: float
    strict: bool = False
    created_at: datetime
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    result_path: Optional[str] = None
    error: Optional[str] = None
    counters: Dict = {}


JOBS: Dict[str, Job] = {}


class FileInfo(BaseModel):
    id: str
    name: str
    path: str
    size: int
    created_at: datetime


class ReconcileJobRequest(BaseModel):
    file_id: str
    group_size: Optional[int] = Field(default=None, gt=0)
    group_delay: Optional[float] = Field(default=None, ge=0)
    strict: Optional[bool] = None


class RowRequest(BaseModel):
    itemID: str
    comunaCode: str
    locality: str
    startDate: str
    strict: Optional[bool] = None


class SettingsUpdate(BaseModel):
    eom_url: Optional[str] = None
    eom_api_key: Optional[str] = None
    eom_source: Optional[str] = None
    giv_base_url: Optional[str] = None
    giv_cookie: Optional[str] = None
    timeout: Optional[float] = Field(default=None, gt=0)
    group_size: Optional[int] = Field(default=None, gt=0)
    group_delay: Optional[float] = Field(default=None, ge=0)
    strict: Optional[bool] = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _save_job(job: Job) -> None:
    try:
        db.save_job(job.model_dump())
    except Exception as e:
        log.warning(f"Could not persist job {job.id}: {e}")


def _load_job(job_id: str) -> Job:
    if job_id in JOBS:
        return JOBS[job_id]
    j = db.get_job(job_id)
    if j:
        return Job(**j)
    raise HTTPException(404, "job not found")


def _config(**overrides):
    try:
        return app_settings.settings_to_config(app_settings.get_settings(), **overrides).validate()
    except ConfigError as e:
        raise HTTPException(400, str(e))


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/files", response_model=FileInfo)
def upload_file(file: UploadFile = File(...)) -> FileInfo:
    file_id = uuid.uuid4().hex
    name = Path(file.filename or "input.csv").name
    dest = UPLOADS / f"{file_id}_{name}"
    with dest.open("wb") as out:
        shutil.copyfileobj(file.file, out)
    info = FileInfo(id=file_id, name=name, path=str(dest), size=dest.stat().st_size, created_at=_now())
    db.add_file(info.model_dump())
    return info


@app.get("/files", response_model=List[FileInfo])
def list_files() -> List[FileInfo]:
    return [FileInfo(**f) for f in db.list_files()]


@app.post("/jobs/reconcile", response_model=Job)
def create_reconcile_job(req: ReconcileJobRequest, bg: BackgroundTasks) -> Job:
    file_info = db.get_file(req.file_id)
    if not file_info:
        raise HTTPException(404, "file_id not found")
    cfg = _config(group_size=req.group_size, group_delay=req.group_delay, strict=req.strict)

    job_id = uuid.uuid4().hex
    job = Job(
        id=job_id,
        file_id=req.file_id,
        status=JobStatus.queued,
        group_size=cfg.group_size,
        group_delay=cfg.group_delay,
        strict=cfg.strict,
        created_at=_now(),
    )
    JOBS[job_id] = job
    _save_job(job)

    async def run():
        j = JOBS[job_id]
        j.status = JobStatus.running
        j.started_at = _now()
        _save_job(j)
        try:
            rows = read_input_rows(Path(file_info["path"]))
            records = await reconcile_rows(rows, cfg)
            out = RESULTS / f"{job_id}.csv"
            write_output(out, records)
            statuses = Counter(r.status for r in records)
            j.counters = {
                "rows": len(records),
                "identical": statuses.get("identical", 0),
                "differ": statuses.get("differ", 0),
                "error": statuses.get("error", 0),
            }
            j.result_path = str(out)
            j.status = JobStatus.succeeded
        except Exception as e:
            log.error(f"Reconcile job {job_id} failed: {e}")
            j.status = JobStatus.failed
            j.error = str(e)
        finally:
            j.finished_at = _now()
            _save_job(j)

    bg.add_task(run)
    return job


@app.get("/jobs", response_model=List[Job])
def list_jobs(file_id: Optional[str] = None) -> List[Job]:
    return [Job(**j) for j in db.list_jobs(file_id)]


@app.get("/jobs/{job_id}", response_model=Job)
def get_job(job_id: str) -> Job:
    return _load_job(job_id)


@app.get("/jobs/{job_id}/download")
def download_job(job_id: str):
    job = _load_job(job_id)
    if job.status != JobStatus.succeeded or not job.result_path:
        raise HTTPException(400, "job not completed or no result available")
    return FileResponse(path=job.result_path, filename=f"reconciliation_{job_id}.csv", media_type="text/csv")


@app.post("/reconcile")
async def reconcile_single(req: RowRequest) -> Dict:
    cfg = _config(strict=req.strict)
    record = await reconcile_one(InputRow(req.itemID, req.comunaCode, req.locality, req.startDate), cfg)
    return record.to_row()


def _public_settings(s: Dict) -> Dict:
    # Credentials are write-only
    out = dict(s)
    for key in ("eom_api_key", "giv_cookie"):
        out[key] = "***" if out.get(key) else ""
    return out


@app.get("/settings")
def read_settings() -> Dict:
    return _public_settings(app_settings.get_settings())


@app.post("/settings")
def update_settings(req: SettingsUpdate) -> Dict:
    cur = app_settings.get_settings()
    cur.update({k: v for k, v in req.model_dump().items() if v is not None})
    app_settings.save_settings(cur)
    return _public_settings(cur)
