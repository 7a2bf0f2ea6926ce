GRID_ROWS = 8
GRID_COLS = 8

# Palette order matters: a level with K types spawns the first K names.
CANDY_NAMES = ('candy', 'lollipop', 'chocolate', 'donut', 'cupcake', 'cookie')
MIN_TILE_TYPES = 2
MAX_TILE_TYPES = len(CANDY_NAMES)

# Points
POINTS_PER_MATCHED_CELL = 10
POINTS_PER_ACTIVATION_CELL = 15     # cells swept by specials caught inside a match
POINTS_PER_TAP_CELL = 12            # double-tap activation of a single special
POINTS_PER_RAINBOW_SWAP_CELL = 10   # rainbow swapped with a plain candy
POINTS_PER_COMBO_CELL = 20          # two specials swapped together
COMBO_STEP_FACTOR = 1.5

# Move finder weights
HINT_RAINBOW_BONUS = 50
HINT_ROCKET_BONUS = 20
HINT_SQUARE_BONUS = 15
HINT_SPECIAL_ENDPOINT_BONUS = 30

# Special geometry
BOMB_RADIUS = 1
BOMB_COMBO_RADIUS = 2
LIGHTNING_STRIKES = 5
LIGHTNING_COMBO_STRIKES = 15
LIGHTNING_CONVERT_STRIKES = 3

# Attempt budgets
INIT_MAX_ATTEMPTS = 100
INIT_RELAXED_ATTEMPTS = 50
SHUFFLE_MAX_ATTEMPTS = 20
SHUFFLE_REROLL_LIMIT = 100

STAR_THRESHOLDS = (1500, 3000, 4500)
