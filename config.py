# config.py

import os

# --- Operational Limits (tons) ---
MAX_INVENTORY_TONS = float(os.getenv('MAX_INVENTORY_TONS', 60000))
MAX_PRODUCTION_TONS = float(os.getenv('MAX_PRODUCTION_TONS', 60000))
MAX_SALES_TONS = float(os.getenv('MAX_SALES_TONS', 60000))
MAX_EMISSIONS_TONS = float(os.getenv('MAX_EMISSIONS_TONS', 150000))

# --- Sensitivity Sweep (sales as % of production) ---
SWEEP_START_PERCENT = int(os.getenv('SWEEP_START_PERCENT', 65))
SWEEP_STOP_PERCENT = int(os.getenv('SWEEP_STOP_PERCENT', 100))
SWEEP_STEP_PERCENT = int(os.getenv('SWEEP_STEP_PERCENT', 1))

# --- Presentation ---
CURRENCY_SYMBOL = os.getenv('CURRENCY_SYMBOL', '₹')

# --- Logging ---
LOG_LEVEL = os.getenv('LOG_LEVEL', 'WARNING')
