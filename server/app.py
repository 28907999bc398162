"""
FastAPI server for the menu scraper.

Endpoints:
- GET /health: Health check
- GET /metrics: JSON metrics
- GET /fetch-menu?url=...: Menu records as JSON
- GET /fetch-menu-excel?url=...: Menu records as an xlsx download
"""

import os
import sys
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
import logging

from fastapi import FastAPI, Query, Request
from fastapi.responses import FileResponse, JSONResponse
from starlette.types import Receive, Scope, Send
import structlog
import uvicorn

from src.scraper.config import ConfigError, get_config, init_config
from src.scraper.export import XLSX_MEDIA_TYPE, artifact_filename, write_records
from src.scraper.service import fetch_menu


# Initialize structured logging
def configure_logging(log_level: str = "INFO") -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if log_level != "DEBUG" else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Set log level
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

logger = structlog.get_logger(__name__)

URL_REQUIRED = {"error": "URL parameter is required"}
NO_DATA = {"error": "No data found"}


@dataclass
class ServerMetrics:
    """Server-wide metrics."""
    start_time: float = field(default_factory=time.time)
    total_requests: int = 0
    json_requests: int = 0
    excel_requests: int = 0
    empty_results: int = 0
    records_served: int = 0
    errors: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uptime_seconds": round(time.time() - self.start_time, 2),
            "total_requests": self.total_requests,
            "json_requests": self.json_requests,
            "excel_requests": self.excel_requests,
            "empty_results": self.empty_results,
            "records_served": self.records_served,
            "errors": self.errors,
        }


# Global metrics
metrics = ServerMetrics()


def discard_artifact(path: Path) -> None:
    """Delete a download artifact; failures are logged only."""
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error("Failed to delete file", path=str(path), error=str(e))


class TemporaryFileResponse(FileResponse):
    """FileResponse that deletes its file once the response is over, sent or not."""

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        except Exception as e:
            logger.error("Download error", path=str(self.path), error=str(e))
            metrics.errors += 1
            raise
        finally:
            discard_artifact(Path(self.path))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting menu scraper server...")

    try:
        # Initialize and validate configuration
        config = init_config()
        configure_logging(config.log_level)

        logger.info(
            "Server ready",
            host=config.host,
            port=config.port,
        )

    except ConfigError as e:
        logger.error("Configuration error", error=str(e))
        sys.exit(1)
    except SystemExit:
        raise
    except Exception as e:
        logger.error("Startup failed", error=str(e))
        sys.exit(1)

    yield

    # Shutdown
    logger.info("Shutting down server...")


# Create FastAPI app
app = FastAPI(
    title="Menu Scraper",
    description="Extracts restaurant menus from client-rendered pages",
    version="1.0.0",
    lifespan=lifespan,
)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(
        content={
            "status": "healthy",
            "timestamp": time.time(),
        }
    )


@app.get("/metrics")
async def get_metrics() -> JSONResponse:
    """Metrics endpoint."""
    return JSONResponse(content=metrics.to_dict())


@app.get("/fetch-menu")
async def fetch_menu_json(url: Optional[str] = Query(default=None)) -> JSONResponse:
    """
    Render `url` and return its menu records as a JSON array.

    An empty array is a successful result.
    """
    metrics.total_requests += 1
    if not url:
        return JSONResponse(status_code=400, content=URL_REQUIRED)

    metrics.json_requests += 1
    records = await fetch_menu(url)
    if not records:
        metrics.empty_results += 1
    metrics.records_served += len(records)

    return JSONResponse(content=[record.to_dict() for record in records])


@app.get("/fetch-menu-excel")
async def fetch_menu_excel(url: Optional[str] = Query(default=None)):
    """
    Render `url` and return its menu records as an xlsx attachment.

    Responds 404 when no records were extracted.
    """
    metrics.total_requests += 1
    if not url:
        return JSONResponse(status_code=400, content=URL_REQUIRED)

    metrics.excel_requests += 1
    records = await fetch_menu(url)
    if not records:
        metrics.empty_results += 1
        return JSONResponse(status_code=404, content=NO_DATA)

    config = get_config()
    filename = artifact_filename(config.export_prefix)
    path = Path(config.resolved_export_dir) / filename
    try:
        write_records(records, path, sheet_title=config.sheet_title)
    except OSError:
        discard_artifact(path)
        raise
    metrics.records_served += len(records)

    logger.info("Serving menu export", url=url, filename=filename, num_records=len(records))
    return TemporaryFileResponse(path, filename=filename, media_type=XLSX_MEDIA_TYPE)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        error=str(exc),
    )
    metrics.errors += 1

    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
    )


def main() -> None:
    """Run the server."""
    config = get_config()
    configure_logging(config.log_level)

    logger.info(
        "Starting server",
        host=config.host,
        port=config.port,
    )

    uvicorn.run(
        "server.app:app",
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    main()
