# -*- coding: utf-8 -*-
"""
Account API
-----------
- DELETE /me : borra los datos de la app (consents, entries) y la cuenta de Auth.

El borrado de la cuenta de Auth usa el endpoint admin de Supabase (service_role).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Header, HTTPException

from entries_store import (
    CONSENTS_TABLE,
    ENTRIES_TABLE,
    StorageQueryError,
    delete_auth_user,
    delete_user_rows,
)
from observability import log_event
from supabase_auth import require_user

logger = logging.getLogger("me_api")


def register_me_routes(app: FastAPI) -> None:
    """Registra DELETE /me."""

    @app.delete("/me")
    async def delete_me(
        authorization: Optional[str] = Header(default=None, alias="Authorization"),
    ) -> Dict[str, Any]:
        user = await require_user(authorization)

        try:
            await delete_user_rows(CONSENTS_TABLE, user.id)
            await delete_user_rows(ENTRIES_TABLE, user.id)
            await delete_auth_user(user.id)
        except StorageQueryError as exc:
            logger.error("Account deletion failed: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to delete account")

        log_event(logger, "account_deleted", user_id=user.id)
        return {"ok": True}
