from __future__ import annotations

from models.profile import ExistingProfileRecord
from pipelines.runner import IngestionState, RunContext
from ports.repos import ProfilesRepoPort
from services.reconciler import count_sections_with_changes, reconcile


class ReconcileProfile:
    def __init__(self, profiles: ProfilesRepoPort) -> None:
        self.profiles = profiles

    def run(self, ctx: RunContext) -> RunContext:
        if ctx.extracted is None:
            raise RuntimeError("ReconcileProfile requires an extracted profile")
        existing = self.profiles.get_profile(ctx.account_id) or ExistingProfileRecord(account_id=ctx.account_id)
        ctx.diffs = reconcile(existing, ctx.extracted)
        ctx.meta["sections_with_changes"] = count_sections_with_changes(ctx.diffs)
        ctx.state = IngestionState.RECONCILED
        return ctx
