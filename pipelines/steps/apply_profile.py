from __future__ import annotations

import logging
from typing import Iterable, Optional

from models.outcome import ProfileWriteFailed
from pipelines.runner import IngestionState, RunContext
from ports.repos import ProfilesRepoPort
from services.reconciler import build_profile_update


logger = logging.getLogger(__name__)


class ApplyProfileUpdate:
    def __init__(self, profiles: ProfilesRepoPort, accepted_fields: Optional[Iterable[str]] = None) -> None:
        self.profiles = profiles
        self.accepted_fields = list(accepted_fields) if accepted_fields is not None else None

    def run(self, ctx: RunContext) -> RunContext:
        if ctx.extracted is None:
            raise RuntimeError("ApplyProfileUpdate requires an extracted profile")
        update = build_profile_update(ctx.extracted, self.accepted_fields)
        if update:
            try:
                self.profiles.update_profile(ctx.account_id, update)
            except Exception as exc:
                logger.error(
                    "Profile update failed",
                    extra={"step": "apply", "status": "error", "document": ctx.resume_path, "error": str(exc)},
                )
                raise ProfileWriteFailed(f"Failed to update profile: {exc}") from exc
            logger.info(
                f"Updated profile for account {ctx.account_id} with {len(update)} fields",
                extra={"step": "apply", "status": "ok", "document": ctx.resume_path},
            )
        ctx.updated_fields = list(update.keys())
        ctx.state = IngestionState.APPLIED
        return ctx
