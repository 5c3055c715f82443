"""Names of every optional relation the engine may read.

Any of these may be missing from a given deployment: aggregator tables
appear once the external sync migration has run, legacy ledger tables
disappear once a deployment has been fully migrated, and the billing,
notes and reports tables ship with their own feature migrations.
"""

# Aggregator generation (externally synced, decimal currency units)
PLUGGY_ACCOUNTS = "pluggy_accounts"
PLUGGY_INVESTMENTS = "pluggy_investments"
PLUGGY_CREDIT_CARDS = "pluggy_credit_cards"
PLUGGY_TRANSACTIONS = "pluggy_transactions"

# Legacy generation (ledger style, minor units)
BANK_ACCOUNTS = "bank_accounts"
HOLDINGS = "holdings"
CARD_INVOICES = "card_invoices"
TRANSACTIONS = "transactions"

# Relationship / platform
CUSTOMER_CONSULTANTS = "customer_consultants"
CLIENT_NOTES = "client_notes"
REPORTS = "reports"
PAYMENTS = "payments"
SUBSCRIPTIONS = "subscriptions"
PLANS = "plans"
SYSTEM_ALERTS = "system_alerts"

OPTIONAL_RELATIONS: tuple[str, ...] = (
    PLUGGY_ACCOUNTS,
    PLUGGY_INVESTMENTS,
    PLUGGY_CREDIT_CARDS,
    PLUGGY_TRANSACTIONS,
    BANK_ACCOUNTS,
    HOLDINGS,
    CARD_INVOICES,
    TRANSACTIONS,
    CUSTOMER_CONSULTANTS,
    CLIENT_NOTES,
    REPORTS,
    PAYMENTS,
    SUBSCRIPTIONS,
    PLANS,
    SYSTEM_ALERTS,
)
