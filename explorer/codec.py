"""
codec.py - Value codec for stored payloads.

JSON columns hold the account / transaction payloads exactly as the network
produced them. Integers outside the IEEE-754 safe range travel as a
``{"dataType": "bi", "value": "<hex>"}`` envelope so JavaScript consumers
never lose precision; ``loads`` turns the envelope back into ``int`` and
``dumps`` produces it again.

``decode_account_data`` dispatches on the ``accountType`` discriminator and
returns a typed view of the polymorphic ``data`` payload.
"""

import json
from dataclasses import dataclass, field
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any, ClassVar, Dict, Optional, Tuple, Type

from explorer.types import AccountType

MAX_SAFE_INTEGER = 2**53 - 1
BIGINT_TAG = "bi"
TOKEN_DECIMALS = 18


class CodecError(ValueError):
    """Raised when a payload cannot be encoded or decoded."""


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------

def _wrap_bigints(value):
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if abs(value) > MAX_SAFE_INTEGER:
            return {"dataType": BIGINT_TAG, "value": format(value, "x")}
        return value
    if isinstance(value, dict):
        return {k: _wrap_bigints(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_wrap_bigints(v) for v in value]
    return value


def _unwrap_bigint(obj: dict):
    if len(obj) == 2 and obj.get("dataType") == BIGINT_TAG and isinstance(obj.get("value"), str):
        try:
            return int(obj["value"], 16)
        except ValueError:
            return obj
    return obj


def dumps(value) -> str:
    try:
        return json.dumps(_wrap_bigints(value), separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise CodecError(f"Cannot encode payload: {e}") from e


def loads(text):
    """Decode a stored JSON column. ``None`` and already-decoded values pass through.

    Numeric payloads come back from SQLite as numbers (JSON columns have
    numeric affinity), so those are returned as they are.
    """
    if text is None or isinstance(text, (dict, list, int, float)):
        return text
    if isinstance(text, bytes):
        text = text.decode("utf-8")
    try:
        return json.loads(text, object_hook=_unwrap_bigint)
    except (TypeError, ValueError) as e:
        raise CodecError(f"Cannot decode payload: {e}") from e


def encode_column(value):
    """Serialize any payload for a JSON column; ``loads`` is its inverse."""
    if value is None:
        return None
    return dumps(value)


# ---------------------------------------------------------------------------
# Token amounts
# ---------------------------------------------------------------------------

def to_int(value) -> int:
    """Coerce an on-chain amount (int, decimal/hex string, bigint envelope) to int."""
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, dict):
        unwrapped = _unwrap_bigint(value)
        if isinstance(unwrapped, int):
            return unwrapped
        raise CodecError(f"Not an amount: {value!r}")
    if isinstance(value, str):
        s = value.strip()
        try:
            if s.lower().startswith("0x"):
                return int(s, 16)
            return int(s)
        except ValueError as e:
            raise CodecError(f"Not an amount: {value!r}") from e
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise CodecError(f"Not an amount: {value!r}")


def format_token_amount(value, decimals: int = TOKEN_DECIMALS, precision: Optional[int] = None) -> str:
    """Render base units as a plain decimal string, e.g. 1500000000000000000 -> "1.5"."""
    amount = Decimal(to_int(value)).scaleb(-decimals)
    if precision is not None:
        amount = amount.quantize(Decimal(1).scaleb(-precision), rounding=ROUND_DOWN)
    text = format(amount.normalize(), "f")
    return "0" if text in ("-0", "") else text


def to_decimal(value) -> Decimal:
    """Exact decimal for a numeric stat value; floats go through their repr."""
    if value is None or value == "":
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError) as e:
        raise CodecError(f"Not a number: {value!r}") from e


# ---------------------------------------------------------------------------
# Typed account payloads
# ---------------------------------------------------------------------------

def _dig(data: dict, path: str):
    node: Any = data
    for part in path.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    return node


@dataclass
class AccountData:
    id: str = ""
    type: str = ""
    hash: str = ""
    timestamp: int = 0
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    # (attribute, json path, is_amount)
    FIELDS: ClassVar[Tuple[Tuple[str, str, bool], ...]] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "AccountData":
        values = {}
        for attr, path, is_amount in cls.FIELDS:
            value = _dig(data, path)
            if is_amount and value is not None:
                value = to_int(value)
            values[attr] = value
        return cls(
            id=data.get("id", ""),
            type=data.get("type", ""),
            hash=data.get("hash", ""),
            timestamp=data.get("timestamp", 0) or 0,
            raw=data,
            **values,
        )


@dataclass
class UserAccountData(AccountData):
    alias: Optional[str] = None
    balance: Optional[int] = None
    stake: Optional[int] = None
    toll: Optional[int] = None
    public_key: Optional[str] = None

    FIELDS = (
        ("alias", "alias", False),
        ("balance", "data.balance", True),
        ("stake", "data.stake", True),
        ("toll", "data.toll", True),
        ("public_key", "publicKey", False),
    )


@dataclass
class NodeAccountData(AccountData):
    nominator: Optional[str] = None
    stake_lock: Optional[int] = None
    reward: Optional[int] = None
    penalty: Optional[int] = None
    reward_start_time: Optional[int] = None
    reward_end_time: Optional[int] = None
    rewarded: Optional[bool] = None

    FIELDS = (
        ("nominator", "nominator", False),
        ("stake_lock", "stakeLock", True),
        ("reward", "reward", True),
        ("penalty", "penalty", True),
        ("reward_start_time", "rewardStartTime", False),
        ("reward_end_time", "rewardEndTime", False),
        ("rewarded", "rewarded", False),
    )


@dataclass
class AliasAccountData(AccountData):
    inbox: Optional[str] = None
    address: Optional[str] = None

    FIELDS = (("inbox", "inbox", False), ("address", "address", False))


@dataclass
class ChatAccountData(AccountData):
    messages: Optional[list] = None

    FIELDS = (("messages", "messages", False),)


@dataclass
class NetworkAccountData(AccountData):
    current: Optional[dict] = None
    next: Optional[dict] = None
    windows: Optional[dict] = None
    issue: Optional[int] = None
    dev_issue: Optional[int] = None

    FIELDS = (
        ("current", "current", False),
        ("next", "next", False),
        ("windows", "windows", False),
        ("issue", "issue", False),
        ("dev_issue", "devIssue", False),
    )


@dataclass
class IssueAccountData(AccountData):
    active: Optional[bool] = None
    proposals: Optional[list] = None
    proposal_count: Optional[int] = None
    tallied: Optional[bool] = None
    number: Optional[int] = None
    winner_id: Optional[str] = None

    FIELDS = (
        ("active", "active", False),
        ("proposals", "proposals", False),
        ("proposal_count", "proposalCount", False),
        ("tallied", "tallied", False),
        ("number", "number", False),
        ("winner_id", "winnerId", False),
    )


@dataclass
class DevIssueAccountData(AccountData):
    dev_proposals: Optional[list] = None
    dev_proposal_count: Optional[int] = None
    winners: Optional[list] = None
    active: Optional[bool] = None
    tallied: Optional[bool] = None
    number: Optional[int] = None

    FIELDS = (
        ("dev_proposals", "devProposals", False),
        ("dev_proposal_count", "devProposalCount", False),
        ("winners", "winners", False),
        ("active", "active", False),
        ("tallied", "tallied", False),
        ("number", "number", False),
    )


@dataclass
class ProposalAccountData(AccountData):
    power: Optional[int] = None
    total_votes: Optional[int] = None
    parameters: Optional[dict] = None
    winner: Optional[bool] = None
    number: Optional[int] = None

    FIELDS = (
        ("power", "power", False),
        ("total_votes", "totalVotes", False),
        ("parameters", "parameters", False),
        ("winner", "winner", False),
        ("number", "number", False),
    )


@dataclass
class DevProposalAccountData(AccountData):
    approve: Optional[int] = None
    reject: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    total_votes: Optional[int] = None
    total_amount: Optional[int] = None
    pay_address: Optional[str] = None
    approved: Optional[bool] = None
    number: Optional[int] = None

    FIELDS = (
        ("approve", "approve", True),
        ("reject", "reject", True),
        ("title", "title", False),
        ("description", "description", False),
        ("total_votes", "totalVotes", False),
        ("total_amount", "totalAmount", True),
        ("pay_address", "payAddress", False),
        ("approved", "approved", False),
        ("number", "number", False),
    )


ACCOUNT_DATA_TYPES: Dict[AccountType, Type[AccountData]] = {
    AccountType.USER: UserAccountData,
    AccountType.NODE: NodeAccountData,
    AccountType.ALIAS: AliasAccountData,
    AccountType.CHAT: ChatAccountData,
    AccountType.NETWORK: NetworkAccountData,
    AccountType.ISSUE: IssueAccountData,
    AccountType.DEV_ISSUE: DevIssueAccountData,
    AccountType.PROPOSAL: ProposalAccountData,
    AccountType.DEV_PROPOSAL: DevProposalAccountData,
}


def decode_account_data(account_type, data) -> AccountData:
    """Typed view of an account payload, chosen by its ``accountType``."""
    if isinstance(data, (str, bytes)):
        data = loads(data)
    if not isinstance(data, dict):
        raise CodecError(f"Account data must be an object, got {type(data).__name__}")
    try:
        kind = AccountType(account_type)
    except ValueError as e:
        raise CodecError(f"Unknown account type: {account_type!r}") from e
    return ACCOUNT_DATA_TYPES[kind].from_dict(data)
