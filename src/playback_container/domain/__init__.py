"""Domain layer - playback container business logic."""
