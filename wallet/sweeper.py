import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from .errors import WalletServiceError
from .models import SweepOutcome, SweepStatus, SweepSummary
from .withdrawals import WithdrawalOrchestrator

logger = logging.getLogger(__name__)


class EodSweeper:
    """
    End-of-day sweep: withdraw each eligible user's full balance.

    Users are locked one at a time through the orchestrator. A failure for
    one user is recorded in the summary and the sweep moves on.
    """

    def __init__(
        self,
        orchestrator: WithdrawalOrchestrator,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.orchestrator = orchestrator
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def run_sweep(self) -> SweepSummary:
        summary = SweepSummary(ran_at=self._clock())
        store = self.orchestrator.store
        limiter = self.orchestrator.limiter

        for user in self.orchestrator.users.all():
            with store.locks.hold(user.id):
                balance = store.get_balance(user.id)
                if balance <= 0:
                    outcome = SweepOutcome(user_id=user.id, status=SweepStatus.SKIPPED, reason="No balance")
                elif not limiter.can_withdraw(user.id, user.role):
                    outcome = SweepOutcome(user_id=user.id, status=SweepStatus.SKIPPED, reason="Withdraw limit reached")
                else:
                    outcome = self._sweep_user(user.id, balance)
            summary.outcomes.append(outcome)

        summary.swept = sum(1 for o in summary.outcomes if o.status == SweepStatus.SWEPT)
        summary.skipped = sum(1 for o in summary.outcomes if o.status == SweepStatus.SKIPPED)
        summary.failed = sum(1 for o in summary.outcomes if o.status == SweepStatus.FAILED)

        logger.info(
            "EOD sweep completed: swept=%d skipped=%d failed=%d",
            summary.swept, summary.skipped, summary.failed,
        )
        return summary

    def _sweep_user(self, user_id, balance) -> SweepOutcome:
        try:
            result = self.orchestrator.withdraw(user_id, balance)
        except WalletServiceError as e:
            logger.warning("EOD sweep failed for user=%s: %s", user_id, e)
            return SweepOutcome(user_id=user_id, status=SweepStatus.FAILED, amount=balance, reason=str(e))
        return SweepOutcome(user_id=user_id, status=SweepStatus.SWEPT, amount=result.amount)
