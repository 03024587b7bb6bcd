"""
Constants for the Fridge Tracker inventory core.

This module defines system-wide constants including:
- Database file naming
- Inventory precision and shelf-life defaults
"""

# ============================================================================
# Database
# ============================================================================

DATABASE_FILENAME = "fridge_tracker.db"

# ============================================================================
# Environment Variables
# ============================================================================

ENV_VAR_ENVIRONMENT = "FRIDGE_TRACKER_ENV"
ENV_VAR_DATABASE_URL = "FRIDGE_TRACKER_DATABASE_URL"
ENV_VAR_COOKED_EXPIRY_DAYS = "FRIDGE_TRACKER_COOKED_EXPIRY_DAYS"

# ============================================================================
# Inventory Defaults
# ============================================================================

# Shelf life of a freshly cooked dish lot
DEFAULT_COOKED_EXPIRY_DAYS = 3

# Quantities are kept at 3 decimal places; prices at 2
QUANTITY_DECIMAL_PLACES = 3
PRICE_DECIMAL_PLACES = 2

# Shown on shopping list lines when the ingredient is stocked in another unit
DIFFERENT_UNIT_NOTE = "Available in the fridge under a different unit. Please check."
