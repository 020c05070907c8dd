from __future__ import annotations
# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0

"""Administrative configuration endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ValidationError

from core.config import NotifierConfig, resolve_credentials, validate_config
from core.exceptions import TransportError
from server.dependencies import require_admin

logger = logging.getLogger("buildherald.routes.config")


def _mask_secrets(obj: object) -> object:
    """Recursively mask sensitive values in a config dict."""
    if isinstance(obj, dict):
        return {k: _mask_value(k, v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_mask_secrets(item) for item in obj]
    return obj


def _mask_value(key: str, value: object) -> object:
    """Mask a value if its key suggests it contains a secret."""
    if isinstance(value, str) and any(
        kw in key.lower() for kw in ("key", "token", "secret", "password")
    ):
        if not value:
            return ""
        if len(value) > 8:
            return value[:3] + "..." + value[-4:]
        return "***"
    if isinstance(value, (dict, list)):
        return _mask_secrets(value)
    return value


class CredentialsUpdate(BaseModel):
    url: str | None = None
    email: str | None = None
    api_key: str | None = None


class GlobalConfigUpdate(BaseModel):
    stream: str | None = None
    topic: str | None = None
    hudson_url: str | None = None
    smart_notify: bool | None = None
    credentials: CredentialsUpdate | None = None


def create_config_router() -> APIRouter:
    router = APIRouter(prefix="/config", dependencies=[Depends(require_admin)])

    @router.get("")
    def get_config(request: Request):
        """Return the current configuration with masked secrets."""
        config = request.app.state.config_store.snapshot()
        return _mask_secrets(config.model_dump(mode="json"))

    @router.put("/global")
    def update_global(update: GlobalConfigUpdate, request: Request):
        changes = update.model_dump(exclude_unset=True)
        try:
            config = request.app.state.config_store.update_global(**changes)
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=str(exc))
        logger.info("Global config updated: %s", ", ".join(sorted(changes)) or "no fields")
        return _mask_secrets(config.global_config.model_dump(mode="json"))

    @router.put("/jobs/{job_name}")
    def set_job(job_name: str, job_config: NotifierConfig, request: Request):
        request.app.state.config_store.set_job(job_name, job_config)
        logger.info("Job override set: %s", job_name)
        return job_config.model_dump(mode="json")

    @router.delete("/jobs/{job_name}")
    def remove_job(job_name: str, request: Request):
        if not request.app.state.config_store.remove_job(job_name):
            raise HTTPException(status_code=404, detail=f"No override for job '{job_name}'")
        logger.info("Job override removed: %s", job_name)
        return {"ok": True}

    @router.post("/validate")
    def validate(request: Request):
        problems = validate_config(request.app.state.config_store.snapshot())
        return {"ok": not problems, "problems": problems}

    @router.post("/test-connection")
    def test_connection(request: Request):
        dispatcher = request.app.state.dispatcher
        check = getattr(dispatcher, "check_connection", None)
        if check is None:
            raise HTTPException(
                status_code=400,
                detail=f"{dispatcher.transport_type} transport cannot test connections",
            )
        config = request.app.state.config_store.snapshot()
        try:
            account = check(resolve_credentials(config.global_config.credentials))
        except TransportError as exc:
            logger.warning("Connection test failed: %s", exc)
            raise HTTPException(status_code=502, detail=str(exc))
        return {"ok": True, "account": account}

    return router
