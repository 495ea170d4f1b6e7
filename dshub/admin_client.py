"""
REST clients for the organization, user, screen and Canva template backends.

Copyright (C) 2025 Andreas Vogler

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.
"""

import logging

import requests

from .errors import ApiError, ValidationError
from .models import Page

logger = logging.getLogger(__name__)


def _list_params(page=None, size=None, sort_by=None, sort_order=None, q=None, **extra) -> dict:
    params = {"page": page, "size": size, "sortBy": sort_by, "sortOrder": sort_order, "q": q}
    params.update(extra)
    return {k: v for k, v in params.items() if v is not None and v != ""}


def _as_list(payload) -> list:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("content"), list):
        return payload["content"]
    return []


def _require(payload: dict, field: str, kind: str):
    value = (payload or {}).get(field)
    if value is None or not str(value).strip():
        raise ValidationError(f"{kind} {field} is required")


class RestClient:
    def __init__(self, token: str = None, session=None, timeout: float = 10):
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    def request(self, method: str, base_url: str, path: str, params: dict = None, body=None):
        url = f"{base_url.rstrip('/')}/{path.lstrip('/')}"
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        response = self.session.request(
            method, url, params=params, json=body, headers=headers, timeout=self.timeout,
        )
        if not 200 <= response.status_code < 300:
            logger.error("%s %s failed: %s", method, url, response.status_code)
            raise ApiError(response.status_code, f"Request failed: {response.status_code} {response.reason} {response.text}")

        if "application/json" in response.headers.get("Content-Type", ""):
            return response.json()
        return response.text


class DSHubClient(RestClient):
    """Organizations, users and screens from the OMS, UMS and CMS admin APIs.

    Live player connectivity comes from the socket server (SMS).
    """

    def __init__(self, oms_base_url: str, ums_base_url: str, cms_base_url: str,
                 sms_base_url: str = "http://localhost:9006", **kwargs):
        super().__init__(**kwargs)
        self.oms_base_url = oms_base_url
        self.ums_base_url = ums_base_url
        self.cms_base_url = cms_base_url
        self.sms_base_url = sms_base_url

    @classmethod
    def from_config(cls, config, **kwargs) -> "DSHubClient":
        admin = config.admin
        return cls(admin["oms_base_url"], admin["ums_base_url"], admin["cms_base_url"], admin["sms_base_url"], **kwargs)

    def list_organizations(self, page=None, size=None, sort_by=None, sort_order=None, q=None) -> Page:
        payload = self.request("GET", self.oms_base_url, "/dsadmin/dac/organizations",
                               params=_list_params(page, size, sort_by, sort_order, q))
        return Page.from_payload(payload)

    def get_organization(self, org_id):
        payload = self.request("GET", self.oms_base_url, f"/dsadmin/dac/organizations/{org_id}")
        if isinstance(payload, dict) and isinstance(payload.get("content"), list):
            return payload["content"][0] if payload["content"] else None
        return payload or None

    def org_screens(self, org_id) -> list:
        return _as_list(self.request("GET", self.cms_base_url, f"/dsadmin/dac/organizations/{org_id}/screens"))

    def org_playlists(self, org_id) -> list:
        return _as_list(self.request("GET", self.cms_base_url, f"/dsadmin/dac/organizations/{org_id}/playlists"))

    def org_schedules(self, org_id) -> list:
        return _as_list(self.request("GET", self.cms_base_url, f"/dsadmin/dac/organizations/{org_id}/schedules"))

    def org_users(self, org_id) -> list:
        return _as_list(self.request("GET", self.ums_base_url, f"/dsadmin/dac/organizations/{org_id}/users"))

    def list_signed_up_users(self, page=None, size=None, sort_by=None, sort_order=None, q=None) -> Page:
        params = _list_params(page, size, sort_by, sort_order, q, status="SIGNED_UP")
        return Page.from_payload(self.request("GET", self.ums_base_url, "/dsadmin/dac/users", params=params))

    def list_screens(self, page=None, size=None, sort_by=None, sort_order=None, q=None, pair_status=None) -> Page:
        params = _list_params(page, size, sort_by, sort_order, q, pairStatus=pair_status)
        return Page.from_payload(self.request("GET", self.cms_base_url, "/dsadmin/dac/screens", params=params))

    def screen_status(self, screen_id):
        return self.request("GET", self.cms_base_url, f"/dsadmin/dac/screens/{screen_id}/status")

    def screen_statuses(self, ids):
        """Connection status for several screens at once; ``ids`` is a list or a comma-separated string."""
        ids = ",".join(str(i) for i in ids) if isinstance(ids, (list, tuple)) else str(ids)
        return self.request("GET", self.sms_base_url, f"/client-status/v2/{ids}")

    def connected_screens(self):
        return self.request("GET", self.sms_base_url, "/connected-dshub-players")


class CanvaClient(RestClient):
    """Canva templates and template categories from the TMS admin API."""

    def __init__(self, base_url: str, **kwargs):
        super().__init__(**kwargs)
        self.base_url = base_url

    @classmethod
    def from_config(cls, config, **kwargs) -> "CanvaClient":
        return cls(config.admin["tms_base_url"], **kwargs)

    def list_templates(self, page=None, size=None, q=None, sort_by=None, sort_order=None, category_id=None) -> Page:
        params = _list_params(page, size, sort_by, sort_order, q, categoryId=category_id)
        return Page.from_payload(self.request("GET", self.base_url, "/dsadmin/dactc/templates", params=params))

    def get_template(self, template_id, include_categories: bool = False) -> dict:
        params = {"includeCategories": "true"} if include_categories else None
        return self.request("GET", self.base_url, f"/dsadmin/dactc/templates/{template_id}", params=params)

    def create_template(self, payload: dict) -> dict:
        _require(payload, "title", "Template")
        return self.request("POST", self.base_url, "/dsadmin/dactc/templates", body=payload)

    def update_template(self, template_id, payload: dict) -> dict:
        _require(payload, "title", "Template")
        return self.request("PUT", self.base_url, f"/dsadmin/dactc/templates/{template_id}", body=payload)

    def delete_template(self, template_id):
        self.request("DELETE", self.base_url, f"/dsadmin/dactc/templates/{template_id}")

    def list_categories(self) -> list:
        return _as_list(self.request("GET", self.base_url, "/dsadmin/dactc/categories"))

    def get_category(self, category_id) -> dict:
        return self.request("GET", self.base_url, f"/dsadmin/dactc/categories/{category_id}")

    def create_category(self, payload: dict) -> dict:
        _require(payload, "name", "Category")
        return self.request("POST", self.base_url, "/dsadmin/dactc/categories", body=payload)

    def update_category(self, category_id, payload: dict) -> dict:
        _require(payload, "name", "Category")
        return self.request("PUT", self.base_url, f"/dsadmin/dactc/categories/{category_id}", body=payload)

    def delete_category(self, category_id):
        self.request("DELETE", self.base_url, f"/dsadmin/dactc/categories/{category_id}")
