"""Campaign Lambda: campaign lifecycle, world state and persistence."""
