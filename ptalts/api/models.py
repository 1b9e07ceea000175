"""
Request and response shapes of the PTAlts commerce API.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ptalts.util.account_parser import AccountInformation, is_valid_format, parse


class ApiModel(BaseModel):
    """Base for wire shapes: immutable, populated by field name or alias."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class AccountsMixin:
    """Parsing for responses that carry raw account lines."""

    def parsed_accounts(self) -> List[AccountInformation]:
        """Parse every well-formed account line; malformed lines are skipped."""
        return [parse(line) for line in self.accounts if is_valid_format(line)]


class StatusResponse(ApiModel):
    members: int


class BalanceResponse(ApiModel):
    balance: int
    discord_id: str = Field(alias="user_id")


class PurchaseRequest(ApiModel):
    type: str
    quantity: int = Field(gt=0)


class VerificationInformation(ApiModel):
    """Account checks run before a purchase is charged."""

    checked: int = 0
    elapsed_seconds: float = 0.0
    moved_to_banned: int = 0
    moved_to_unbanned: int = 0


class PurchaseResponse(AccountsMixin, ApiModel):
    """Purchase outcome.

    The service answers 400 with ``success: false`` when verification fails,
    so everything except ``success`` may be missing. ``requested``,
    ``charged`` and ``verification`` are only sent by the VoxAlts deployment.
    """

    success: bool = False
    order_id: Optional[str] = None
    type: Optional[str] = None
    quantity: int = 0
    requested: Optional[int] = None
    charged: Optional[int] = None
    verification: Optional[VerificationInformation] = None
    cost: int = 0
    new_balance: int = 0
    accounts: List[str] = Field(default_factory=list)
    error: Optional[str] = None


class RedeemRequest(ApiModel):
    code: str
    referral: Optional[str] = None


class RedeemResponse(ApiModel):
    success: bool
    tokens_added: int = 0
    old_balance: int = 0
    new_balance: int = 0
    referral_bonus: int = 0
    total_with_bonus: int = 0


class OrderHistory(ApiModel):
    order_id: str = Field(alias="orderId")
    type: str
    quantity: int
    cost: int
    created_at: str = Field(alias="createdAt")
    status: str


class OrderHistoryResponse(ApiModel):
    orders: List[OrderHistory] = Field(default_factory=list)


class OrderDetailsResponse(AccountsMixin, OrderHistory):
    accounts: List[str] = Field(default_factory=list)


class ClientStatusRequest(ApiModel):
    client_name: str = Field(alias="client")
    status: str


class ClientStatusResponse(ApiModel):
    success: bool
    user_id: str
    client_name: str = Field(alias="client")
    status: str
    client_id: str


class ClientInfo(ApiModel):
    status: str
    client_id: str
    last_seen: str


class ClientsStatusResponse(ApiModel):
    user_id: str
    clients: Dict[str, ClientInfo] = Field(default_factory=dict)


class PushTokenRequest(ApiModel):
    client_id: str
    order_id: str


class PushTokenResponse(ApiModel):
    success: bool
    tokens_sent: int = 0
    client_id: str
    order_id: str
