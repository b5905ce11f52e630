"""Shared fixtures: an in-memory Udata API behind patched httpx calls."""

import itertools
import re
from unittest.mock import patch
from urllib.parse import urlsplit

import httpx
import pytest

from udata_catalog.helpers.log import PluginLog

CATALOG_URL = "https://udata.test"


class FakeUdata:
    """Just enough of the Udata API to exercise the connector end to end."""

    def __init__(self) -> None:
        self.datasets: dict[str, dict] = {}
        self.licenses: list[dict] = []
        self.zones: dict[str, list[dict]] = {}
        self.zone_failures: set[str] = set()
        self.me: dict = {"id": "user-1", "organizations": []}
        self.fail: dict[tuple[str, str], int] = {}
        self.calls: list[tuple[str, str, dict]] = []
        self._ids = itertools.count(1)

    # ── Fixtures helpers ────────────────────────────────────

    def add_dataset(self, dataset_id: str, title: str, resources=None, **extra) -> dict:
        ds = {
            "id": dataset_id,
            "title": title,
            "description": extra.pop("description", f"About {title}"),
            "page": f"{CATALOG_URL}/datasets/{dataset_id}/",
            "resources": resources or [],
            "deleted": None,
            **extra,
        }
        self.datasets[dataset_id] = ds
        return ds

    def paths(self, method: str | None = None) -> list[str]:
        return [p for m, p, _ in self.calls if method is None or m == method]

    # ── Transport ───────────────────────────────────────────

    def _response(self, method: str, url: str, status: int, payload=None) -> httpx.Response:
        request = httpx.Request(method, url)
        if payload is None:
            return httpx.Response(status, request=request)
        return httpx.Response(status, json=payload, request=request)

    def _dispatch(self, method: str, url: str, params=None, body=None, headers=None):
        path = urlsplit(url).path
        self.calls.append((method, path, {"params": params or {}, "json": body, "headers": headers or {}}))
        if (method, path) in self.fail:
            return self._response(method, url, self.fail[(method, path)], {"message": "forced failure"})
        status, payload = self._route(method, path, params or {}, body)
        return self._response(method, url, status, payload)

    def _route(self, method: str, path: str, params: dict, body):
        if method == "GET":
            if path == "/api/1/datasets/":
                return 200, self._search(params)
            if path in ("/api/1/me/org_datasets", "/api/1/me/datasets"):
                return 200, list(self.datasets.values())
            if path == "/api/1/datasets/licenses/":
                return 200, self.licenses
            if path == "/api/1/me/":
                return 200, self.me
            if path == "/api/1/spatial/zones/suggest/":
                if params.get("q") in self.zone_failures:
                    return 500, {"message": "zone index unavailable"}
                return 200, self.zones.get(params.get("q"), [])[: int(params.get("size", 10))]

        m = re.fullmatch(r"/api/1/datasets/([^/]+)/resources/(?:([^/]+)/)?", path)
        if m:
            return self._resource(method, m.group(1), m.group(2), body)

        m = re.fullmatch(r"/api/1/datasets/([^/]+)/", path)
        if m:
            return self._dataset(method, m.group(1), body)
        if method == "POST" and path == "/api/1/datasets/":
            return self._create(body)
        return 404, {"message": "Not Found"}

    def _search(self, params: dict) -> dict:
        items = list(self.datasets.values())
        if params.get("organization"):
            items = [d for d in items if (d.get("organization") or {}).get("id") == params["organization"]]
        total = len(items)
        if params.get("page") and params.get("page_size"):
            start = (int(params["page"]) - 1) * int(params["page_size"])
            items = items[start:start + int(params["page_size"])]
        return {"data": items, "total": total, "page": params.get("page", 1)}

    def _assign_resource_ids(self, resources: list[dict]) -> None:
        for r in resources:
            if not r.get("id"):
                r["id"] = f"res-{next(self._ids)}"

    def _create(self, body: dict):
        ds_id = f"ds-{next(self._ids)}"
        ds = {**body, "id": ds_id, "page": f"{CATALOG_URL}/datasets/{ds_id}/", "deleted": None}
        ds["resources"] = [dict(r) for r in body.get("resources", [])]
        self._assign_resource_ids(ds["resources"])
        self.datasets[ds_id] = ds
        return 201, ds

    def _dataset(self, method: str, ds_id: str, body):
        if ds_id not in self.datasets:
            return 404, {"message": "Not Found"}
        if method == "GET":
            return 200, self.datasets[ds_id]
        if method == "PUT":
            ds = {**body, "id": ds_id}
            ds["resources"] = [dict(r) for r in body.get("resources", [])]
            self._assign_resource_ids(ds["resources"])
            self.datasets[ds_id] = ds
            return 200, ds
        if method == "DELETE":
            del self.datasets[ds_id]
            return 204, None
        return 405, {"message": "Method Not Allowed"}

    def _resource(self, method: str, ds_id: str, res_id: str | None, body):
        ds = self.datasets.get(ds_id)
        if ds is None:
            return 404, {"message": "Not Found"}
        if method == "POST" and res_id is None:
            res = {**body, "id": f"res-{next(self._ids)}"}
            ds["resources"].append(res)
            return 201, res
        idx = next((i for i, r in enumerate(ds["resources"]) if r["id"] == res_id), None)
        if idx is None:
            return 404, {"message": "Not Found"}
        if method == "PUT":
            ds["resources"][idx] = {**body, "id": res_id}
            return 200, ds["resources"][idx]
        if method == "DELETE":
            ds["resources"].pop(idx)
            return 204, None
        return 405, {"message": "Method Not Allowed"}

    # ── httpx entry points ──────────────────────────────────

    def get(self, url, params=None, headers=None, **_):
        return self._dispatch("GET", url, params=params, headers=headers)

    def post(self, url, json=None, headers=None, **_):
        return self._dispatch("POST", url, body=json, headers=headers)

    def put(self, url, json=None, headers=None, **_):
        return self._dispatch("PUT", url, body=json, headers=headers)

    def delete(self, url, headers=None, **_):
        return self._dispatch("DELETE", url, headers=headers)


class RecordingLog(PluginLog):
    """Collects every message for assertions."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def info(self, msg, extra=None):
        self.messages.append(("info", msg))

    def warning(self, msg, extra=None):
        self.messages.append(("warning", msg))

    def error(self, msg, extra=None):
        self.messages.append(("error", msg))

    def step(self, msg):
        self.messages.append(("step", msg))

    def task(self, key, msg, total):
        self.messages.append(("task", f"{key}:{total}"))

    def progress(self, key, progress, total=None):
        self.messages.append(("progress", f"{key}:{progress}"))

    def of(self, level: str) -> list[str]:
        return [m for lvl, m in self.messages if lvl == level]


@pytest.fixture
def udata():
    fake = FakeUdata()
    with patch("httpx.get", side_effect=fake.get), \
         patch("httpx.post", side_effect=fake.post), \
         patch("httpx.put", side_effect=fake.put), \
         patch("httpx.delete", side_effect=fake.delete):
        yield fake


@pytest.fixture
def plugin_log():
    return RecordingLog()
