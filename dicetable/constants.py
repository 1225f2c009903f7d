"""Game constants for the dice table."""

# Dice mechanics
NUM_DICE = 5
MAX_ROLLS = 3
MIN_FACE = 1
MAX_FACE = 6
UNROLLED = 0
WILD_FACE = 1  # 1s are wild in Horses

# Ship, Captain and Crew faces, frozen in this order
SHIP_FACE = 6
CAPTAIN_FACE = 5
CREW_FACE = 4

# Table limits
MAX_SEATS = 8
MIN_SEATS = 1

# Bot thresholds
BOT_SAFETY_MARGIN = 100  # One full of-a-kind tier in Horses rank units
SCC_HOLD_CARGO = 8  # Ship, Captain and Crew bots stop rolling at cargo >= 8

# Replication
ROUND_STATE_KEY = "round_state:{round_id}"
ROUND_STATE_CHANNEL = "round_state_events:{round_id}"
ROUND_ACTION_CHANNEL = "round_actions:{round_id}"
REDIS_PUBLISH_TIMEOUT = 5
