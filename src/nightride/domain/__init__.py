"""Domain layer - stations, track metadata, player control and reconciliation."""
