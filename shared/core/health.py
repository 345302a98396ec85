"""
Health checks following the Health Check Response Format draft and the
Kubernetes liveness / readiness / startup probe split.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from typing import Dict, Any, Iterable, Optional
import os
import time
import redis
from datetime import datetime, timezone
from enum import Enum
import psutil
import logging

logger = logging.getLogger(__name__)

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

class HealthStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"

class ServiceHealth:
    """
    Health endpoints for one service bound to its datastore engines.

    `stores` maps a component name ("inventory", "ledger") to the engine
    backing it; `required_tables` lists what the startup probe expects to find.
    Stores named in `degradable_stores` report WARN instead of FAIL, so their
    outage never takes the instance out of rotation.
    """

    def __init__(
        self,
        service_name: str,
        version: str = "1.0.0",
        stores: Optional[Dict[str, Engine]] = None,
        required_tables: Iterable[str] = (),
        degradable_stores: Iterable[str] = (),
    ):
        self.service_name = service_name
        self.version = version
        self.stores = stores or {}
        self.required_tables = tuple(required_tables)
        self.degradable_stores = frozenset(degradable_stores)
        self.start_time = time.time()
        self.checks_performed = 0
        self.last_check_time = None

    def create_health_router(self) -> APIRouter:
        router = APIRouter(tags=["health"])

        @router.get("/health", status_code=status.HTTP_200_OK)
        def health_check() -> Dict[str, Any]:
            """Liveness summary, no dependency checks"""
            return {
                "status": HealthStatus.PASS,
                "service": self.service_name,
                "version": self.version,
                "releaseId": os.getenv("RELEASE_ID", "unknown"),
                "timestamp": _now()
            }

        @router.get("/health/live", status_code=status.HTTP_200_OK)
        def liveness() -> Dict[str, Any]:
            return {"status": "alive"}

        @router.get("/health/ready")
        def readiness() -> JSONResponse:
            """Readiness probe: every dependency is checked and reported"""
            checks = self.perform_readiness_checks()
            overall_status = self.calculate_overall_status(checks)
            status_code = (
                status.HTTP_503_SERVICE_UNAVAILABLE
                if overall_status == HealthStatus.FAIL
                else status.HTTP_200_OK
            )

            response = {
                "status": overall_status,
                "version": self.version,
                "releaseId": os.getenv("RELEASE_ID", "unknown"),
                "checks": checks,
                "serviceId": self.service_name,
                "description": f"{self.service_name} microservice",
                "timestamp": _now()
            }
            return JSONResponse(status_code=status_code, content=response)

        @router.get("/health/startup")
        def startup() -> JSONResponse:
            checks = self.perform_startup_checks()
            if self.calculate_overall_status(checks) == HealthStatus.FAIL:
                return JSONResponse(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    content={"status": "starting", "checks": checks}
                )
            return JSONResponse(content={"status": "started", "checks": checks})

        @router.get("/metrics")
        def metrics() -> Dict[str, Any]:
            process = psutil.Process()
            memory = process.memory_info()
            return {
                "service": self.service_name,
                "version": self.version,
                "uptime_seconds": time.time() - self.start_time,
                "checks_performed": self.checks_performed,
                "timestamp": _now(),
                "system": {
                    "memory_rss_bytes": memory.rss,
                    "memory_vms_bytes": memory.vms,
                    "cpu_percent": process.cpu_percent(),
                    "num_threads": process.num_threads()
                }
            }

        return router

    def perform_readiness_checks(self) -> Dict[str, Dict[str, Any]]:
        self.checks_performed += 1
        self.last_check_time = time.time()

        checks = {}
        for name, engine in self.stores.items():
            checks[f"{name}:connectivity"] = self._degrade(name, self._check_database(engine))

        if os.getenv("REDIS_URL"):
            checks["cache:connectivity"] = self._check_redis()

        checks["storage:disk_space"] = self._check_disk_space()
        checks["system:memory"] = self._check_memory()
        return checks

    def perform_startup_checks(self) -> Dict[str, Dict[str, Any]]:
        return {
            f"{name}:schema": self._degrade(name, self._check_schema(engine))
            for name, engine in self.stores.items()
        }

    def _degrade(self, name: str, check: Dict[str, Any]) -> Dict[str, Any]:
        if name in self.degradable_stores and check["status"] == HealthStatus.FAIL:
            check["status"] = HealthStatus.WARN
        return check

    def _check_database(self, engine: Engine) -> Dict[str, Any]:
        try:
            start_time = time.time()
            with engine.connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            response_time = (time.time() - start_time) * 1000
            return {
                "status": HealthStatus.PASS,
                "componentType": "datastore",
                "observedValue": f"{response_time:.2f}",
                "observedUnit": "ms",
                "time": _now()
            }
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            # Driver detail stays in the log
            return {
                "status": HealthStatus.FAIL,
                "componentType": "datastore",
                "output": "datastore unreachable",
                "time": _now()
            }

    def _check_schema(self, engine: Engine) -> Dict[str, Any]:
        try:
            existing = set(inspect(engine).get_table_names())
        except SQLAlchemyError as e:
            logger.error(f"Schema inspection failed: {e}")
            return {"status": HealthStatus.FAIL, "componentType": "datastore",
                    "output": "datastore unreachable", "time": _now()}

        missing = [t for t in self.required_tables if t not in existing]
        if missing:
            return {
                "status": HealthStatus.FAIL,
                "componentType": "datastore",
                "output": f"Missing tables: {', '.join(missing)}",
                "time": _now()
            }
        return {"status": HealthStatus.PASS, "componentType": "datastore", "time": _now()}

    def _check_redis(self) -> Dict[str, Any]:
        try:
            start_time = time.time()
            r = redis.from_url(os.getenv("REDIS_URL"), socket_connect_timeout=1)
            r.ping()
            response_time = (time.time() - start_time) * 1000
            return {
                "status": HealthStatus.PASS,
                "componentType": "cache",
                "observedValue": f"{response_time:.2f}",
                "observedUnit": "ms",
                "time": _now()
            }
        except redis.RedisError as e:
            # Cache is optional for this service
            return {
                "status": HealthStatus.WARN,
                "componentType": "cache",
                "output": str(e),
                "time": _now()
            }

    def _check_disk_space(self) -> Dict[str, Any]:
        free_gb = psutil.disk_usage('/').free / (1024 ** 3)
        if free_gb < 1:
            status_val = HealthStatus.FAIL
        elif free_gb < 5:
            status_val = HealthStatus.WARN
        else:
            status_val = HealthStatus.PASS
        return {
            "status": status_val,
            "componentType": "system",
            "observedValue": f"{free_gb:.2f}",
            "observedUnit": "GB",
            "time": _now()
        }

    def _check_memory(self) -> Dict[str, Any]:
        available_mb = psutil.virtual_memory().available / (1024 ** 2)
        if available_mb < 100:
            status_val = HealthStatus.FAIL
        elif available_mb < 500:
            status_val = HealthStatus.WARN
        else:
            status_val = HealthStatus.PASS
        return {
            "status": status_val,
            "componentType": "system",
            "observedValue": f"{available_mb:.2f}",
            "observedUnit": "MB",
            "time": _now()
        }

    @staticmethod
    def calculate_overall_status(checks: Dict[str, Dict[str, Any]]) -> HealthStatus:
        statuses = [check.get("status", HealthStatus.PASS) for check in checks.values()]
        if HealthStatus.FAIL in statuses:
            return HealthStatus.FAIL
        if HealthStatus.WARN in statuses:
            return HealthStatus.WARN
        return HealthStatus.PASS
