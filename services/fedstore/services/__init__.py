"""Domain services over the local store."""
