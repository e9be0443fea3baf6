"""
Parity launcher FastAPI application.

Owns the parity supervisor for the lifetime of the app: launches parity on
startup, stops it on shutdown, and provides a REST API for starting and
stopping it, viewing its status, run history and output.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request
from pydantic import BaseModel

from .config import config
from .errors import ParityError
from .host import HostExitPolicy, HostState
from .models import LogEntry, ParityRun, initialize_db
from .monitor import ResourceMonitor, get_process_metrics
from .process import ParityExit, ParitySupervisor

# Configure logging with rotation
log_formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

# Rotating file handler (auto-compaction)
file_handler = RotatingFileHandler(
    config.launcher_log,
    maxBytes=config.log_max_bytes,
    backupCount=config.log_backup_count,
)
file_handler.setFormatter(log_formatter)

# Console handler
console_handler = logging.StreamHandler()
console_handler.setFormatter(log_formatter)

# Configure root logger
logging.basicConfig(
    level=logging.INFO,
    handlers=[file_handler, console_handler],
)
logger = logging.getLogger(__name__)

# Initialize database
initialize_db()


class RunRecorder:
    """Persists parity launches and their output."""

    def __init__(self):
        self._runs: dict[int, ParityRun] = {}

    def started(self, supervisor: ParitySupervisor) -> Optional[ParityRun]:
        """Record a launch if the supervisor actually spawned a process."""
        if supervisor.pid is None:
            return None
        run = ParityRun.create(command=supervisor.command, pid=supervisor.pid)
        self._runs[run.pid] = run
        return run

    def on_output(self, pid: int, text: str):
        run = self._runs.get(pid)
        if run is not None:
            LogEntry.create(run=run, message=text[:2000])

    def on_exit(self, result: ParityExit):
        run = self._runs.pop(result.pid, None)
        if run is None:
            return
        data = result.to_dict()
        run.ended_at = datetime.now()
        run.exit_code = data["exit_code"]
        run.signal = data["signal"]
        run.outcome = data["outcome"]
        run.last_output = data["last_output"][:2000] if data["last_output"] else None
        run.save()


async def launch_parity(app: FastAPI) -> bool:
    """Start parity through the app's supervisor and record the launch."""
    supervisor: ParitySupervisor = app.state.parity
    await supervisor.start(app.state.host)
    return app.state.recorder.started(supervisor) is not None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    logger.info("Starting parity launcher...")

    recorder = RunRecorder()
    exit_policy = HostExitPolicy()
    app.state.host = HostState()
    app.state.recorder = recorder
    app.state.parity = ParitySupervisor.from_config(
        config,
        on_output=recorder.on_output,
        on_exit=recorder.on_exit,
        on_error=exit_policy,
    )

    try:
        await launch_parity(app)
    except ParityError as e:
        exit_policy(e)

    monitor = ResourceMonitor()
    await monitor.start()

    yield

    # Shutdown
    logger.info("Shutting down parity launcher...")
    await monitor.stop()
    await app.state.parity.shutdown()


app = FastAPI(
    title="Parity Launcher",
    description="Runs and supervises a local Parity Ethereum client",
    version="0.1.0",
    lifespan=lifespan,
)


# Pydantic models for API
class StatusResponse(BaseModel):
    running: bool
    parity_running: bool
    pid: Optional[int] = None
    command: Optional[str] = None
    launch_args: list[str] = []
    last_output: Optional[str] = None
    metrics: Optional[dict] = None


# Parity control
@app.get("/api/parity/status", response_model=StatusResponse)
async def get_parity_status(request: Request):
    """Get the state of the supervised parity process."""
    supervisor: ParitySupervisor = request.app.state.parity
    return {
        "running": supervisor.is_running,
        "parity_running": request.app.state.host.is_parity_running,
        "pid": supervisor.pid,
        "command": supervisor.command,
        "launch_args": supervisor.launch_args,
        "last_output": supervisor.last_output,
        "metrics": get_process_metrics(supervisor.pid, supervisor.started_at),
    }


@app.post("/api/parity/start")
async def start_parity(request: Request):
    """Start parity."""
    supervisor: ParitySupervisor = request.app.state.parity
    if supervisor.is_running:
        return {"status": "already_running", "pid": supervisor.pid}

    try:
        launched = await launch_parity(request.app)
    except ParityError as e:
        raise HTTPException(status_code=500, detail=str(e))

    if not launched:
        return {"status": "not_started", "parity_running": request.app.state.host.is_parity_running}
    return {"status": "started", "pid": supervisor.pid}


@app.post("/api/parity/stop")
async def stop_parity(request: Request):
    """Stop parity."""
    supervisor: ParitySupervisor = request.app.state.parity
    if not supervisor.is_running:
        return {"status": "not_running"}

    await supervisor.stop()
    return {"status": "stopped"}


# History
@app.get("/api/parity/runs")
async def list_parity_runs(limit: int = Query(20, ge=1, le=100)):
    """Get recent parity launches."""
    runs = ParityRun.select().order_by(ParityRun.started_at.desc()).limit(limit)
    return [run.to_dict() for run in runs]


@app.get("/api/parity/logs")
async def get_parity_logs(
    run_id: Optional[int] = Query(None, description="Only output from this run"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    """Get recent parity output."""
    query = LogEntry.select()
    if run_id is not None:
        if not ParityRun.get_or_none(ParityRun.id == run_id):
            raise HTTPException(status_code=404, detail=f"Run {run_id} not found")
        query = query.where(LogEntry.run == run_id)

    logs = query.order_by(LogEntry.timestamp.desc(), LogEntry.id.desc()).offset(offset).limit(limit)
    return [log.to_dict() for log in logs]


@app.get("/api/events")
async def list_events(request: Request, limit: int = Query(100, ge=1, le=100)):
    """Get notifications the launcher has received."""
    return [event.to_dict() for event in request.app.state.host.events(limit)]


# Launcher logs
@app.get("/api/launcher/logs")
async def get_launcher_logs(lines: int = Query(100, ge=1, le=1000)):
    """Get recent launcher log entries."""
    try:
        with open(config.launcher_log, "r") as f:
            all_lines = f.readlines()
            return {"lines": all_lines[-lines:], "total": len(all_lines)}
    except FileNotFoundError:
        return {"lines": [], "total": 0}
