"""
결제 순번 (Rotation) Ledger

참가자별 결제 금액/횟수/출석 횟수를 추적하고
공정성 비율(fairness ratio)이 낮은 순서로 다음 결제자를 결정.

사용 예시:
```python
from core.rotation import LedgerStore, RotationEngine

store = LedgerStore(db, seed_roster=settings.roster, ratio_policy=settings.ratio_policy)
engine = RotationEngine(store)
await engine.start()

ranking = engine.rank()
result = await engine.record_payment(150, attendees=["A", "B"], payers=["A", "B"])
```
"""

from core.rotation.engine import RotationEngine
from core.rotation.errors import (
    DuplicateNameError,
    EmptyAttendanceError,
    InsufficientParticipantsError,
    InvalidAmountError,
    InvalidCorrectionError,
    InvalidPayerSelectionError,
    NotInitializedError,
    ParticipantNotFoundError,
    PreconditionError,
    RotationError,
    ValidationError,
)
from core.rotation.models import (
    Ledger,
    Participant,
    PaymentSummary,
    RotationResult,
    compute_fairness_ratio,
)
from core.rotation.store import LedgerStore

__all__ = [
    # 핵심 클래스
    "RotationEngine",
    "LedgerStore",
    "Ledger",
    "Participant",
    "PaymentSummary",
    "RotationResult",
    "compute_fairness_ratio",
    # 예외
    "RotationError",
    "ValidationError",
    "PreconditionError",
    "InvalidAmountError",
    "EmptyAttendanceError",
    "InvalidPayerSelectionError",
    "InvalidCorrectionError",
    "DuplicateNameError",
    "ParticipantNotFoundError",
    "InsufficientParticipantsError",
    "NotInitializedError",
]
