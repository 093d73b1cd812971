"""Domain enumerations shared by storage, loader and API layers."""

from enum import Enum


class AccountType(str, Enum):
    USER = "UserAccount"
    NODE = "NodeAccount"
    ALIAS = "AliasAccount"
    CHAT = "ChatAccount"
    NETWORK = "NetworkAccount"
    ISSUE = "IssueAccount"
    DEV_ISSUE = "DevIssueAccount"
    PROPOSAL = "ProposalAccount"
    DEV_PROPOSAL = "DevProposalAccount"


class TransactionType(str, Enum):
    INIT_NETWORK = "init_network"
    NETWORK_WINDOWS = "network_windows"
    SNAPSHOT = "snapshot"
    EMAIL = "email"
    GOSSIP_EMAIL_HASH = "gossip_email_hash"
    VERIFY = "verify"
    REGISTER = "register"
    CREATE = "create"
    TRANSFER = "transfer"
    DISTRIBUTE = "distribute"
    MESSAGE = "message"
    READ = "read"
    RECLAIM_TOLL = "reclaim_toll"
    UPDATE_CHAT_TOLL = "update_chat_toll"
    UPDATE_TOLL_REQUIRED = "update_toll_required"
    TOLL = "toll"
    FRIEND = "friend"
    REMOVE_FRIEND = "remove_friend"
    STAKE = "stake"
    REMOVE_STAKE = "remove_stake"
    REMOVE_STAKE_REQUEST = "remove_stake_request"
    NODE_REWARD = "node_reward"
    SNAPSHOT_CLAIM = "snapshot_claim"
    ISSUE = "issue"
    PROPOSAL = "proposal"
    VOTE = "vote"
    TALLY = "tally"
    APPLY_TALLY = "apply_tally"
    PARAMETERS = "parameters"
    APPLY_PARAMETERS = "apply_parameters"
    DEV_ISSUE = "dev_issue"
    DEV_PROPOSAL = "dev_proposal"
    DEV_VOTE = "dev_vote"
    DEV_TALLY = "dev_tally"
    APPLY_DEV_TALLY = "apply_dev_tally"
    DEV_PARAMETERS = "dev_parameters"
    APPLY_DEV_PARAMETERS = "apply_dev_parameters"
    DEVELOPER_PAYMENT = "developer_payment"
    APPLY_DEVELOPER_PAYMENT = "apply_developer_payment"
    CHANGE_CONFIG = "change_config"
    APPLY_CHANGE_CONFIG = "apply_change_config"
    CHANGE_NETWORK_PARAM = "change_network_param"
    APPLY_CHANGE_NETWORK_PARAM = "apply_change_network_param"
    DEPOSIT_STAKE = "deposit_stake"
    WITHDRAW_STAKE = "withdraw_stake"
    SET_CERT_TIME = "set_cert_time"
    INIT_REWARD = "init_reward"
    CLAIM_REWARD = "claim_reward"
    APPLY_PENALTY = "apply_penalty"


class TransactionSearchType(str, Enum):
    """Search pseudo-types accepted next to concrete transaction types."""

    ALL = "all"
    STAKING = "stakingTxs"


STAKING_TX_TYPES = (TransactionType.DEPOSIT_STAKE, TransactionType.WITHDRAW_STAKE)


class ResponseType(str, Enum):
    ARRAY = "array"
    OBJECT = "object"


def parse_account_type(value):
    """Return the AccountType for ``value`` or None when it is not one."""
    if value is None or isinstance(value, AccountType):
        return value
    try:
        return AccountType(value)
    except ValueError:
        return None


def parse_tx_search_type(value):
    """Return a TransactionType / TransactionSearchType for ``value`` or None."""
    if value is None or isinstance(value, (TransactionType, TransactionSearchType)):
        return value
    for enum_cls in (TransactionSearchType, TransactionType):
        try:
            return enum_cls(value)
        except ValueError:
            continue
    return None
