"""
Spin Wheel Configuration
All configurable parameters for round settlement
"""

import os

# Draw derivation (changing any of these breaks verification of past rounds)
SEED_DELIMITER = "-"          # serverSeed-clientSeed-nonce
DRAW_HEX_CHARS = 8            # first 8 hex chars of the SHA-512 digest = 32 bits
SERVER_SEED_BYTES = 32        # 64 character hex string

# Draw modulus for weighted-pot selection. The full 32-bit range keeps every
# pot share reachable; 37 is the roulette wheel position.
DRAW_MODULUS = int(os.getenv("SPIN_DRAW_MODULUS", str(2 ** 32)))
ROULETTE_MODULUS = 37

# House fee (basis points of the pot, 10 = 0.1%)
HOUSE_FEE_BASIS_POINTS = int(os.getenv("SPIN_HOUSE_FEE_BPS", "10"))
MAX_HOUSE_FEE_BASIS_POINTS = 500

# Pot limits (amounts in lamports). A full pot must stay within the draw
# modulus: 10 players x 0.4 SOL = 4e9 < 2**32.
MAX_PLAYERS = int(os.getenv("SPIN_MAX_PLAYERS", "10"))
MIN_BET_AMOUNT = int(os.getenv("SPIN_MIN_BET", "10000000"))        # 0.01 SOL
MAX_BET_AMOUNT = int(os.getenv("SPIN_MAX_BET", "400000000"))       # 0.4 SOL

# Storage & broadcast
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///spin_wheel.db")
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)
REDIS_URL = os.getenv("REDIS_URL")
ROUND_EVENTS_CHANNEL = "spin:rounds"

# History & fairness reports
DEFAULT_HISTORY_SIZE = 10
FAIRNESS_SIMULATIONS = 1000
