SCHEMA_VERSION = 2

SCHEMA_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version   INTEGER NOT NULL,
    applied_at REAL NOT NULL
);

-- Accounts: latest observed state per address
CREATE TABLE IF NOT EXISTS accounts (
    accountId        TEXT NOT NULL PRIMARY KEY,
    data             JSON NOT NULL,
    timestamp        BIGINT NOT NULL,
    hash             TEXT NOT NULL,
    cycleNumber      INTEGER NOT NULL,
    createdTimestamp BIGINT NOT NULL,
    isGlobal         BOOLEAN NOT NULL,
    accountType      TEXT NOT NULL
);

-- Transactions: one row per txId
CREATE TABLE IF NOT EXISTS transactions (
    txId            TEXT NOT NULL PRIMARY KEY,
    timestamp       BIGINT NOT NULL,
    cycleNumber     INTEGER NOT NULL,
    transactionType TEXT,
    txFrom          TEXT,
    txTo            TEXT,
    txFee           REAL NOT NULL DEFAULT 0,
    data            JSON NOT NULL,
    originalTxData  JSON NOT NULL
);

-- Per-cycle coin stats
CREATE TABLE IF NOT EXISTS coin_stats (
    cycle             INTEGER NOT NULL PRIMARY KEY,
    timestamp         BIGINT NOT NULL,
    totalSupplyChange REAL NOT NULL DEFAULT 0,
    totalStakeChange  REAL NOT NULL DEFAULT 0,
    transactionFee    REAL NOT NULL DEFAULT 0,
    networkCommission REAL NOT NULL DEFAULT 0
);

-- Daily rollups, keyed by day-start timestamp
CREATE TABLE IF NOT EXISTS daily_accounts (
    dateStartTime   BIGINT NOT NULL PRIMARY KEY,
    newAccounts     INTEGER NOT NULL DEFAULT 0,
    newUserAccounts INTEGER NOT NULL DEFAULT 0,
    activeAccounts  INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS daily_transactions (
    dateStartTime         BIGINT NOT NULL PRIMARY KEY,
    totalTxs              INTEGER NOT NULL DEFAULT 0,
    totalUserTxs          INTEGER NOT NULL DEFAULT 0,
    totalTransferTxs      INTEGER NOT NULL DEFAULT 0,
    totalMessageTxs       INTEGER NOT NULL DEFAULT 0,
    totalDepositStakeTxs  INTEGER NOT NULL DEFAULT 0,
    totalWithdrawStakeTxs INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS daily_coin_stats (
    dateStartTime          BIGINT NOT NULL PRIMARY KEY,
    mintedCoin             REAL NOT NULL DEFAULT 0,
    transactionFee         REAL NOT NULL DEFAULT 0,
    burntFee               REAL NOT NULL DEFAULT 0,
    stakeAmount            REAL NOT NULL DEFAULT 0,
    unStakeAmount          REAL NOT NULL DEFAULT 0,
    rewardAmountRealized   REAL NOT NULL DEFAULT 0,
    rewardAmountUnrealized REAL NOT NULL DEFAULT 0,
    penaltyAmount          REAL NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS daily_network (
    dateStartTime          BIGINT NOT NULL PRIMARY KEY,
    stabilityFactorStr     TEXT NOT NULL DEFAULT '0',
    transactionFeeUsdStr   TEXT NOT NULL DEFAULT '0',
    stakeRequiredUsdStr    TEXT NOT NULL DEFAULT '0',
    nodeRewardAmountUsdStr TEXT NOT NULL DEFAULT '0',
    nodePenaltyUsdStr      TEXT NOT NULL DEFAULT '0',
    defaultTollUsdStr      TEXT NOT NULL DEFAULT '0',
    minTollUsdStr          TEXT NOT NULL DEFAULT '0',
    activeNodes            INTEGER NOT NULL DEFAULT 0,
    standbyNodes           INTEGER NOT NULL DEFAULT 0
);

-- Indexes for common queries
CREATE INDEX IF NOT EXISTS accounts_idx ON accounts(cycleNumber DESC, timestamp DESC);
CREATE INDEX IF NOT EXISTS accounts_created_timestamp_idx ON accounts(createdTimestamp DESC);
CREATE INDEX IF NOT EXISTS accounts_accountType_idx ON accounts(accountType);
CREATE INDEX IF NOT EXISTS transactions_timestamp ON transactions(timestamp DESC);
CREATE INDEX IF NOT EXISTS transactions_cycle_timestamp ON transactions(cycleNumber DESC, timestamp DESC);
CREATE INDEX IF NOT EXISTS transactions_txType ON transactions(transactionType);
CREATE INDEX IF NOT EXISTS transactions_txFrom ON transactions(txFrom);
CREATE INDEX IF NOT EXISTS transactions_txTo ON transactions(txTo);
CREATE INDEX IF NOT EXISTS transactions_txFee ON transactions(txFee);
"""
