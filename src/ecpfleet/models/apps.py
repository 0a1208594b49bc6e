from __future__ import annotations

APP_QUICKESIGN = "37835"
APP_QUICKEMENU = "133480"
APP_QESIGN = "232432"

DEFAULT_APP_ID = APP_QUICKESIGN

KNOWN_APPS: dict[str, str] = {
    APP_QUICKESIGN: "Quickesign",
    APP_QUICKEMENU: "Quickemenu",
    APP_QESIGN: "Qesign",
}


def app_label(app_id: str) -> str:
    return KNOWN_APPS.get(app_id, app_id)
