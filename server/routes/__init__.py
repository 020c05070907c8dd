from __future__ import annotations
# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0

from fastapi import APIRouter

from server.routes.builds import create_builds_router
from server.routes.config_routes import create_config_router
from server.routes.system import create_system_router


def create_router() -> APIRouter:
    router = APIRouter()
    api = APIRouter(prefix="/api")

    api.include_router(create_builds_router())
    api.include_router(create_config_router())
    api.include_router(create_system_router())

    router.include_router(api)

    return router
