import logging

from shopdesk import create_app
from shopdesk.logger import get_logger


def test_handler_installed_once_across_apps():
    create_app("shopdesk.config.TestConfig")
    create_app("shopdesk.config.TestConfig", LOG_LEVEL="DEBUG")

    root = logging.getLogger("shopdesk")
    ours = [h for h in root.handlers if getattr(h, "_shopdesk", False)]
    assert len(ours) == 1
    assert root.level == logging.DEBUG


def test_module_loggers_live_under_the_app_namespace():
    assert get_logger("shopdesk.inventory").name == "shopdesk.inventory"
    assert get_logger("reports").name == "shopdesk.reports"


def test_blocked_delete_is_logged(client, caplog):
    client.post("/api/brands", json={"name": "Acme"})
    client.post("/api/categories", json={"name": "Tools"})
    client.post("/api/products", json={
        "name": "Widget", "priceSale": 1, "quantityStock": 1, "brandId": 1, "categoryId": 1,
    })

    with caplog.at_level(logging.WARNING, logger="shopdesk"):
        assert client.delete("/api/brands/1").status_code == 409

    assert any("blocked by 1 product(s)" in r.getMessage() for r in caplog.records)
