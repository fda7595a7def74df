# billing_api/models.py
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

# Decimal in Python, plain JSON number on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


# JSON keys use the table column names (ClientId, paymentDate, ...)
class ApiContract(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    terms: str
    status: str
    client_id: int = Field(..., serialization_alias="ClientId")
    contractor_id: int = Field(..., serialization_alias="ContractorId")
    created_at: Optional[datetime] = Field(None, serialization_alias="createdAt")
    updated_at: Optional[datetime] = Field(None, serialization_alias="updatedAt")


class ApiJob(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str
    price: Money
    paid: Optional[bool] = None
    payment_date: Optional[datetime] = Field(None, serialization_alias="paymentDate")
    contract_id: int = Field(..., serialization_alias="ContractId")
    created_at: Optional[datetime] = Field(None, serialization_alias="createdAt")
    updated_at: Optional[datetime] = Field(None, serialization_alias="updatedAt")
    contract: Optional[ApiContract] = Field(None, serialization_alias="Contract")


class DepositIn(BaseModel):
    deposit: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)


class SuccessOut(BaseModel):
    success: str
    status: int = 200


class BestProfession(BaseModel):
    total: Money
    profession: str


class BestClient(BaseModel):
    total: Money
    id: int
    name: str
