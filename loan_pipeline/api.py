from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field, field_validator

from loan_pipeline.app.producer import LoanProducer
from loan_pipeline.infra.redis_infra import RedisLoanStore, RedisQueue, create_redis_client
from loan_pipeline.models import LoanRecord, LoanStatus
from loan_pipeline.utils import get_logger

logger = get_logger(__name__)


class CreateLoanRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(alias="userId")
    loan_amount: Decimal = Field(alias="loanAmount", gt=0)
    property_address: str = Field(alias="propertyAddress")

    @field_validator("property_address")
    @classmethod
    def address_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("propertyAddress must not be empty")
        return value


class CreateLoanResponse(BaseModel):
    message: str
    loanId: int
    status: LoanStatus


class LoanResponse(BaseModel):
    id: int
    userId: int
    loanAmount: Optional[Decimal] = None
    propertyAddress: str
    status: LoanStatus
    createdAt: datetime

    @classmethod
    def from_record(cls, loan: LoanRecord) -> "LoanResponse":
        return cls(
            id=loan.id,
            userId=loan.user_id,
            loanAmount=loan.amount,
            propertyAddress=loan.address,
            status=loan.status,
            createdAt=loan.created_at,
        )


class HealthResponse(BaseModel):
    status: str


def create_app(store=None, queue=None) -> FastAPI:
    """Build the intake app. Without a store and queue it connects to Redis on startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        redis_client = None
        if store is None or queue is None:
            redis_client = create_redis_client()
        app.state.store = store or RedisLoanStore(redis_client)
        app.state.producer = LoanProducer(app.state.store, queue or RedisQueue(redis_client))
        yield
        if redis_client is not None:
            await redis_client.aclose()

    app = FastAPI(title="Loan Pipeline", version="1.0.0", lifespan=lifespan)

    @app.post("/loans", response_model=CreateLoanResponse, status_code=201)
    async def create_loan(req: CreateLoanRequest, request: Request):
        loan = await request.app.state.producer.submit(req.user_id, req.loan_amount, req.property_address)
        return CreateLoanResponse(message="Loan created successfully", loanId=loan.id, status=loan.status)

    @app.get("/loans", response_model=List[LoanResponse])
    async def list_loans(request: Request):
        logger.info("Fetching all loans")
        loans = await request.app.state.store.list()
        return [LoanResponse.from_record(loan) for loan in loans]

    @app.get("/loans/{loan_id}", response_model=LoanResponse)
    async def get_loan(loan_id: int, request: Request):
        logger.info(f"Fetching loan: {loan_id}")
        loan = await request.app.state.store.get(loan_id)
        if loan is None:
            raise HTTPException(status_code=404, detail="Loan not found")
        return LoanResponse.from_record(loan)

    @app.get("/health", response_model=HealthResponse)
    def health():
        return {"status": "ok"}

    return app


app = create_app()
