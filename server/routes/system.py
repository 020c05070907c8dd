from __future__ import annotations
# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0

from fastapi import APIRouter, Request


def create_system_router() -> APIRouter:
    router = APIRouter(prefix="/system")

    @router.get("/health")
    async def health(request: Request):
        return {
            "status": "ok",
            "transport": request.app.state.dispatcher.transport_type,
        }

    return router
