from __future__ import annotations
# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0

import hmac
import logging
import os

from fastapi import HTTPException, Request

logger = logging.getLogger("buildherald.auth")


def require_admin(request: Request) -> None:
    """Guard administrative routes with ``BUILDHERALD_ADMIN_TOKEN``.

    When the variable is unset the routes are open (local deployments).
    """
    expected = os.environ.get("BUILDHERALD_ADMIN_TOKEN", "")
    if not expected:
        return
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not hmac.compare_digest(token, expected):
        logger.warning("Rejected admin request to %s", request.url.path)
        raise HTTPException(status_code=401, detail="Invalid admin token")
