"""Session state, persistence and health diagnosis."""
