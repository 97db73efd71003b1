"""Infrastructure-related constants, particularly for the database."""

# Database constants
POOL_RECYCLE_SECONDS = 3600  # 1 hour
COMMAND_TIMEOUT_SECONDS = 60
MAX_LOGGED_STATEMENT_LENGTH = 500

# Naming convention for constraints to ensure consistency
# and avoid conflicts during migrations
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Separator for multi-value filters (``userId=1,2`` -> ``IN (1, 2)``)
FILTER_VALUE_SEPARATOR = ","

# Range of a signed 64-bit integer column (BIGINT)
MAX_INTEGER_VALUE = 2**63 - 1
MIN_INTEGER_VALUE = -(2**63)
