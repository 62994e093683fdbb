"""
LMC Toolkit - Machine / Runtime Configuration
==============================================

Fixed architectural constants of the Little Minion Computer plus the
runtime defaults the CLI can override (--max-cycles, --verbose, --debug).
"""

# =============================================================================
#  ARCHITECTURE (fixed by the machine definition)
# =============================================================================
MAILBOX_COUNT = 100        # mailboxes 00-99
WORD_MIN = 0
WORD_MAX = 999             # 3-digit decimal word
COUNTER_MIN = 0
COUNTER_MAX = 99           # 2-digit program counter

# Instruction word layout: opcode = word // 100, operand = word % 100
OPCODE_DIVISOR = 100


# =============================================================================
#  RUNTIME DEFAULTS
# =============================================================================
DEFAULT_MAX_CYCLES = 10_000  # fetch-execute cycles before MaxCyclesHit
INPUT_PROMPT = "Input: "     # written before a blocking IN read


# =============================================================================
#  LOGGING
# =============================================================================
LOG_NAME = "lmc"
