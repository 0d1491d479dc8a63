"""Constants for the fee-share configuration engine."""

# Basis points (10000 = 100%)
TOTAL_BPS = 10000

# Recipient limits
MIN_RECIPIENTS = 1
MAX_RECIPIENTS = 100

# Recipients that fit inline in the config transaction; above this
# addresses must go through lookup tables.
NON_BATCHED_CAPACITY = 15

# Addresses per lookup table (one extend transaction each)
ADDRESS_BATCH_CAPACITY = 20

# Slots a freshly created lookup table must age before it can be extended
LOOKUP_TABLE_SETTLING_SLOTS = 1

# Partner overlay policy default (25% of gross fees)
DEFAULT_PARTNER_BPS = 2500

# Social providers accepted by the launch wallet directory
SUPPORTED_SOCIAL_PROVIDERS = ("twitter", "kick", "github")

# Commitment levels, least to most confirmed
COMMITMENT_PROCESSED = "processed"
COMMITMENT_CONFIRMED = "confirmed"
COMMITMENT_FINALIZED = "finalized"
COMMITMENT_LEVELS = (COMMITMENT_PROCESSED, COMMITMENT_CONFIRMED, COMMITMENT_FINALIZED)
DEFAULT_COMMITMENT = COMMITMENT_PROCESSED
LAUNCH_COMMITMENT = COMMITMENT_CONFIRMED

LAMPORTS_PER_SOL = 1_000_000_000

# Solana address lookup table program
ADDRESS_LOOKUP_TABLE_PROGRAM_ID = "AddressLookupTab1e1111111111111111111111111"
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"

# Bags public API
DEFAULT_BAGS_API_URL = "https://public-api-v2.bags.fm/api/v1"
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0

# Bags API endpoints
ENDPOINT_LAUNCH_WALLET = "/token-launch/fee-share/wallet/v2"
ENDPOINT_FEE_SHARE_CONFIG = "/fee-share/config"
ENDPOINT_PARTNER_CONFIG = "/fee-share/partner-config"
ENDPOINT_PARTNER_CONFIG_CREATE = "/fee-share/partner-config/creation-tx"
ENDPOINT_CREATE_TOKEN_INFO = "/token-launch/create-token-info"
ENDPOINT_CREATE_LAUNCH_TX = "/token-launch/create-launch-transaction"
ENDPOINT_CLAIMABLE_POSITIONS = "/token-launch/claimable-positions"
ENDPOINT_CLAIM_TXS = "/token-launch/claim-txs/v2"

# Retry and polling defaults
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 0.5
MAX_BACKOFF_SECONDS = 8.0
DEFAULT_POLL_INTERVAL_SECONDS = 0.4

# Error codes
# Validation
ERR_INVALID_SPLIT = "invalid_fee_split"
ERR_TOO_MANY_RECIPIENTS = "invalid_fee_split_too_many_recipients"
ERR_DUPLICATE_RECIPIENT = "invalid_fee_split_duplicate_recipient"

# Resolution
ERR_UNLINKED_IDENTITY = "unlinked_identity"
ERR_DIRECTORY_UNAVAILABLE = "identity_directory_unavailable"

# Ledger and sequencing
ERR_TRANSIENT_FAILURE = "transient_failure"
ERR_LEDGER_REJECTION = "ledger_rejection"
ERR_DEADLINE_EXCEEDED = "sequence_deadline_exceeded"
ERR_SETTLING_NOT_ELAPSED = "settling_not_elapsed"
ERR_DEPENDENCY_NOT_CONFIRMED = "dependency_not_confirmed"
ERR_SEQUENCE_CANCELLED = "sequence_cancelled"
ERR_INVALID_TRANSITION = "invalid_state_transition"

# Partner, API and configuration
ERR_PARTNER_OVERLAY = "invalid_partner_overlay"
ERR_API = "bags_api_error"
ERR_CONFIG = "invalid_configuration"
