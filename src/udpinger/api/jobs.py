import uuid
import asyncio
import logging
from dataclasses import asdict
from typing import Dict, List, Optional, Any
from pydantic import BaseModel, Field
from datetime import datetime, timedelta

from udpinger.core import Pinger
from udpinger.models import RunConfig

logger = logging.getLogger(__name__)


class RunStatus(BaseModel):
    id: str
    status: str  # "pending", "running", "cancelling", "completed", "failed", "cancelled"
    progress: float = 0.0
    config: Dict[str, Any]
    created_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    output: List[str] = []  # PING header, PONG lines and the report, as printed by the CLI
    summary: Optional[Dict[str, Any]] = None
    results: List[Dict[str, Any]] = []
    error: Optional[str] = None


class RunManager:
    def __init__(self, retention: timedelta = timedelta(hours=24)):
        self.retention = retention
        self.runs: Dict[str, RunStatus] = {}
        self._pingers: Dict[str, Pinger] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._cleanup_task: Optional[asyncio.Task] = None

    def create_run(self, config: RunConfig) -> str:
        """Start a run in the background. Must be called from inside the event loop."""
        run_id = str(uuid.uuid4())
        run = RunStatus(id=run_id, status="pending", config=asdict(config))
        self.runs[run_id] = run

        def progress_callback(completed: int, total: int) -> None:
            run.progress = (completed / total) * 100 if total > 0 else 0

        pinger = Pinger(
            config,
            emit=run.output.append,
            progress_callback=progress_callback,
        )
        self._pingers[run_id] = pinger
        self._tasks[run_id] = asyncio.create_task(self._run(run, pinger))

        if self._cleanup_task is None:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
        logger.info(f"Run {run_id} created for {config.target_address}:{config.target_port}")
        return run_id

    async def _run(self, run: RunStatus, pinger: Pinger):
        if run.status == "pending":
            run.status = "running"
        try:
            stats = await pinger.run()
            run.summary = asdict(pinger.summary)
            run.results = [r.to_dict() for r in sorted(stats.results, key=lambda r: r.sequence)]
            run.status = "cancelled" if pinger.controller.cancelled else "completed"
            run.progress = 100.0
        except Exception as e:
            logger.error(f"Run {run.id} failed: {e}")
            run.status = "failed"
            run.error = str(e)
        finally:
            run.completed_at = datetime.now()
            self._pingers.pop(run.id, None)
            self._tasks.pop(run.id, None)

    def get_run(self, run_id: str) -> Optional[RunStatus]:
        return self.runs.get(run_id)

    def list_runs(self) -> List[RunStatus]:
        return sorted(self.runs.values(), key=lambda x: x.created_at, reverse=True)

    def delete_run(self, run_id: str):
        """Forget a finished run; a live run is cancelled and stays visible until it ends."""
        pinger = self._pingers.get(run_id)
        if pinger is None:
            self.runs.pop(run_id, None)
            return
        # stop dispatching; the in-flight probes finish on their own deadline
        pinger.cancel()
        self.runs[run_id].status = "cancelling"

    async def wait(self, run_id: str) -> Optional[RunStatus]:
        task = self._tasks.get(run_id)
        if task is not None:
            await task
        return self.runs.get(run_id)

    async def _cleanup_loop(self):
        """Periodically forget finished runs older than the retention window."""
        while True:
            await asyncio.sleep(3600)
            now = datetime.now()
            expired = [
                run_id
                for run_id, run in self.runs.items()
                if run.completed_at and now - run.created_at > self.retention
            ]
            for run_id in expired:
                logger.info(f"Cleaning up old run: {run_id}")
                self.delete_run(run_id)
