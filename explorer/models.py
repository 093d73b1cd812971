"""Pydantic response models for the REST API."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class ApiResponse(BaseModel):
    """Base for API payloads; unset optional fields are left out of the JSON."""

    def to_response(self) -> dict:
        return {k: v for k, v in self.model_dump().items() if v is not None}


class ErrorResponse(ApiResponse):
    success: bool = False
    error: str


class AccountListResponse(ApiResponse):
    success: bool = True
    accounts: List[Dict[str, Any]] = []
    totalAccounts: Optional[int] = None
    totalPages: Optional[int] = None


class TransactionListResponse(ApiResponse):
    success: bool = True
    transactions: List[Dict[str, Any]] = []
    totalTransactions: Optional[int] = None
    totalPages: Optional[int] = None


class TotalTxsDetail(ApiResponse):
    success: bool = True
    totalTransactions: int
    totalTransferTxs: int
    totalMessageTxs: int
    totalDepositStakeTxs: int
    totalWithdrawStakeTxs: int


class CoinSummary(ApiResponse):
    success: bool = True
    totalSupply: float
    totalStaked: float
    lastUpdatedCycle: int


class MarkerModel(BaseModel):
    timestamp: int
    value: float


class PointModel(BaseModel):
    timestamp: int
    value: float
    breakdown: Dict[str, Any] = {}


class SeriesResponse(ApiResponse):
    success: bool = True
    name: str
    points: List[PointModel] = []
    highest: Optional[MarkerModel] = None
    lowest: Optional[MarkerModel] = None
    current: Optional[MarkerModel] = None
