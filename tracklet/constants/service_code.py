HTTP_STATUS_CODES = {
    "OK": 200,
    "CREATED": 201,
    "NO_CONTENT": 204,
    "BAD_REQUEST": 400,
    "UNAUTHORIZED": 401,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "CONFLICT": 409,
    "VALIDATION_ERROR": 422,
    "TOO_MANY_REQUESTS": 429,
    "INTERNAL_SERVER_ERROR": 500,
    "SERVICE_UNAVAILABLE": 503,
}

AUTHENTICATION_MESSAGES = {
    "AUTHENTICATION_REQUIRED": "Authentication Required",
    "TOKEN_EXPIRED": "Token expired",
    "INVALID_TOKEN": "Invalid token",
}

# Tank lifecycle states
TANK_STATUS = {
    "ACTIVE": "Active",
    "INACTIVE": "Inactive",
    "MAINTENANCE": "Maintenance",
}

# Ledger row types
STOCK_TRANSACTION_TYPES = {
    "ADD": "add",
    "DEDUCT": "deduct",
    "FREEZE": "freeze",
    "UNFREEZE": "unfreeze",
}

# Deduction allocation policies
ALLOCATION_POLICIES = {
    "GREEDY": "greedy",
    "SEQUENTIAL": "sequential",
}

KG_PER_TON = 1000
