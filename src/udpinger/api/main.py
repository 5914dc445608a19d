from typing import List
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from udpinger.api.jobs import RunManager, RunStatus
from udpinger.models import ConfigError, RunConfig
from udpinger.utils import resolve_host_async

app = FastAPI(title="udpinger API", description="Start UDP ping runs and read their statistics")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

run_manager = RunManager()


class RunCreate(BaseModel):
    server_ip: str
    server_port: int
    count: int
    period: int
    timeout: int


@app.post("/api/runs", response_model=dict)
async def create_run(request: RunCreate):
    try:
        address = await resolve_host_async(request.server_ip, request.server_port)
        config = RunConfig(
            target_address=address,
            target_port=request.server_port,
            count=request.count,
            period_ms=request.period,
            timeout_ms=request.timeout,
        )
    except ConfigError as e:
        raise HTTPException(status_code=422, detail=str(e))
    run_id = run_manager.create_run(config)
    return {"run_id": run_id}


@app.get("/api/runs", response_model=List[RunStatus])
async def list_runs():
    return run_manager.list_runs()


@app.get("/api/runs/{run_id}", response_model=RunStatus)
async def get_run(run_id: str):
    run = run_manager.get_run(run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Run not found")
    return run


@app.delete("/api/runs/{run_id}")
async def delete_run(run_id: str):
    run = run_manager.get_run(run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Run not found")
    run_manager.delete_run(run_id)
    remaining = run_manager.get_run(run_id)
    return {"status": remaining.status if remaining else "deleted"}


@app.get("/")
async def read_root():
    return {"message": "udpinger API is running."}


def serve():
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    serve()
