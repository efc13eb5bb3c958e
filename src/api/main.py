from __future__ import annotations

from fastapi import FastAPI

from src.api.v1.routes import scripts
from src.infra.observability.structured_logging import configure_logging

# 配置日志（需要在应用启动前）
configure_logging()

app = FastAPI(title="解说脚本时间线 API")
app.include_router(scripts.router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """探活。"""
    return {"status": "ok"}
