from shared.core import ServiceHealth, HealthStatus
from inventory_service.infrastructure.db import REQUIRED_TABLES, build_engine

def test_liveness(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "pass"
    assert resp.json()["service"] == "inventory-service"
    assert client.get("/health/live").json() == {"status": "alive"}

def test_readiness_reports_inventory_store(client):
    resp = client.get("/health/ready")

    assert resp.status_code in (200, 503)
    checks = resp.json()["checks"]
    assert checks["inventory:connectivity"]["status"] == "pass"
    assert "storage:disk_space" in checks

def test_startup_endpoint_checks_schema(client):
    resp = client.get("/health/startup")

    assert resp.status_code == 200
    assert resp.json()["checks"]["inventory:schema"]["status"] == "pass"

def test_startup_checks_flag_missing_tables(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    health = ServiceHealth("inventory-service", stores={"inventory": engine}, required_tables=REQUIRED_TABLES)

    checks = health.perform_startup_checks()

    assert checks["inventory:schema"]["status"] == HealthStatus.FAIL
    assert "inventory_adjustments" in checks["inventory:schema"]["output"]
    engine.dispose()

def test_unreachable_store_fails_readiness_without_leaking_driver_detail(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'nowhere' / 'x.db'}")
    health = ServiceHealth("inventory-service", stores={"inventory": engine})

    check = health.perform_readiness_checks()["inventory:connectivity"]

    assert check["status"] == HealthStatus.FAIL
    assert check["output"] == "datastore unreachable"

def test_degradable_store_outage_is_a_warning(engine, tmp_path):
    down = build_engine(f"sqlite:///{tmp_path / 'nowhere' / 'ledger.db'}")
    health = ServiceHealth(
        "inventory-service",
        stores={"inventory": engine, "ledger": down},
        required_tables=REQUIRED_TABLES,
        degradable_stores=("ledger",),
    )

    ready = health.perform_readiness_checks()
    startup = health.perform_startup_checks()

    assert ready["inventory:connectivity"]["status"] == HealthStatus.PASS
    assert ready["ledger:connectivity"]["status"] == HealthStatus.WARN
    assert startup["ledger:schema"]["status"] == HealthStatus.WARN
    assert ServiceHealth.calculate_overall_status(startup) == HealthStatus.WARN

def test_overall_status_precedence():
    fail = {"status": HealthStatus.FAIL}
    warn = {"status": HealthStatus.WARN}
    ok = {"status": HealthStatus.PASS}
    assert ServiceHealth.calculate_overall_status({"a": ok, "b": warn}) == HealthStatus.WARN
    assert ServiceHealth.calculate_overall_status({"a": warn, "b": fail}) == HealthStatus.FAIL
    assert ServiceHealth.calculate_overall_status({}) == HealthStatus.PASS

def test_metrics(client):
    body = client.get("/metrics").json()
    assert body["service"] == "inventory-service"
    assert body["uptime_seconds"] >= 0
    assert body["system"]["memory_rss_bytes"] > 0
