class TierOrderError(ValueError):
    """A floorplan tier was priced before its next lower tier was finalized."""
