from __future__ import annotations
# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0

"""Build-completion endpoint called by the CI server."""

import logging

from fastapi import APIRouter, Request

from core.host import BuildEvent, EventBuildHost

logger = logging.getLogger("buildherald.routes.builds")


def create_builds_router() -> APIRouter:
    router = APIRouter(prefix="/builds", tags=["builds"])

    @router.post("/completed")
    def build_completed(event: BuildEvent, request: Request) -> dict:
        """Notify about a completed build.

        Always answers 200: a notification problem must not be reported
        as a failure of the build that triggered it.
        """
        store = request.app.state.config_store
        store.reload_if_changed()
        host = EventBuildHost(event)
        result = request.app.state.notifier.publish(
            host.build, host, store.snapshot(), host.job_name,
        )
        logger.info(
            "Build %s %s: notification %s",
            host.job_name, host.build.display_name, result.status,
        )
        return result.to_dict()

    return router
