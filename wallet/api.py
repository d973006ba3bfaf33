import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional
from uuid import UUID

from fastapi import Depends, FastAPI, HTTPException, Query, status
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .errors import (
    BelowMinimumError, ConflictError, InsufficientBalanceError,
    InvalidAmountError, LimitExceededError, NotFoundError,
)
from .models import (
    InitiateReferralRequest, InitiateReferralResponse, Referral,
    RegisterUserRequest, RegisterUserResponse, SweepSummary, User,
    VendorRegisterRequest, VendorRegisterResponse, Wallet,
    WithdrawRequest, WithdrawalResult,
)
from .service import WalletService

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

wallet_service = WalletService()


def get_wallet_service() -> WalletService:
    return wallet_service


async def _periodic_eod_sweep() -> None:
    interval_minutes = max(int(settings.EOD_SWEEP_INTERVAL_MINUTES), 0)
    if interval_minutes <= 0:
        return
    while True:
        await asyncio.sleep(interval_minutes * 60)
        try:
            summary = await asyncio.to_thread(wallet_service.run_eod_sweep)
            logger.info(
                "Scheduled EOD sweep: swept=%d skipped=%d failed=%d",
                summary.swept, summary.skipped, summary.failed,
            )
        except Exception:
            logger.exception("Scheduled EOD sweep tick failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    sweep_task = None
    if int(settings.EOD_SWEEP_INTERVAL_MINUTES) > 0:
        sweep_task = asyncio.create_task(_periodic_eod_sweep())
        logger.info("EOD sweep loop enabled (every %d min).", int(settings.EOD_SWEEP_INTERVAL_MINUTES))
    yield
    if sweep_task is not None:
        sweep_task.cancel()
        try:
            await sweep_task
        except asyncio.CancelledError:
            pass


app = FastAPI(
    title="Referral Wallet API",
    description="Referral onboarding rewards with per-user wallets, daily withdrawal limits and EOD sweeps",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["System"])
def health_check():
    return {"status": "healthy", "service": "referral-wallet"}


@app.post("/register", response_model=RegisterUserResponse, status_code=status.HTTP_201_CREATED, tags=["Users"])
def register_user(
    request: RegisterUserRequest,
    service: WalletService = Depends(get_wallet_service),
) -> RegisterUserResponse:
    return service.register_user(request)


@app.get("/users/{user_id}", response_model=User, tags=["Users"])
def get_user(user_id: UUID, service: WalletService = Depends(get_wallet_service)) -> User:
    try:
        return service.get_user(user_id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User {user_id} not found")


@app.post("/initiate-referral", response_model=InitiateReferralResponse, status_code=status.HTTP_201_CREATED, tags=["Referrals"])
def initiate_referral(
    request: InitiateReferralRequest,
    service: WalletService = Depends(get_wallet_service),
) -> InitiateReferralResponse:
    return service.initiate_referral(request)


@app.post("/vendor-register", response_model=VendorRegisterResponse, tags=["Referrals"])
def vendor_register(
    request: VendorRegisterRequest,
    service: WalletService = Depends(get_wallet_service),
) -> VendorRegisterResponse:
    try:
        return service.complete_vendor_registration(request)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Referral not found")
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@app.get("/referrals/{vendor_id}", response_model=Referral, tags=["Referrals"])
def get_referral(vendor_id: UUID, service: WalletService = Depends(get_wallet_service)) -> Referral:
    try:
        return service.get_referral(vendor_id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Referral {vendor_id} not found")


@app.get("/wallet/{user_id}", response_model=Wallet, tags=["Wallet"])
def get_wallet(
    user_id: UUID,
    limit: Optional[int] = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    service: WalletService = Depends(get_wallet_service),
) -> Wallet:
    return service.get_wallet(user_id, limit, offset)


@app.post("/withdraw", response_model=WithdrawalResult, tags=["Wallet"])
def withdraw(
    request: WithdrawRequest,
    service: WalletService = Depends(get_wallet_service),
) -> WithdrawalResult:
    try:
        return service.withdraw(request.user_id, request.amount)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    except LimitExceededError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except (BelowMinimumError, InsufficientBalanceError, InvalidAmountError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@app.post("/eod-auto-withdraw", response_model=SweepSummary, tags=["Wallet"])
def eod_auto_withdraw(service: WalletService = Depends(get_wallet_service)) -> SweepSummary:
    return service.run_eod_sweep()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
