from __future__ import annotations

"""Pydantic request schemas for the pool API.

Amounts are integers in base units. Amount validation beyond the sign
is done by the pool itself so that HTTP and in-process callers see the
same rejections.
"""

from typing import Optional

from pydantic import BaseModel, Field


class StakeRequest(BaseModel):
    participant: str = Field(..., min_length=1, description="Participant account id")
    amount: int = Field(..., ge=0, description="Stake amount in base units")


class UnstakeRequest(BaseModel):
    participant: str = Field(..., min_length=1, description="Participant account id")
    amount: int = Field(..., ge=0, description="Amount to withdraw in base units")


class ClaimRequest(BaseModel):
    participant: str = Field(..., min_length=1, description="Participant account id")
    amount: Optional[int] = Field(default=None, ge=0, description="Omit to claim everything settled")


class SettleRequest(BaseModel):
    participant: str = Field(..., min_length=1, description="Participant account id")


class MintRequest(BaseModel):
    asset: str = Field(..., min_length=1)
    account: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0)
