"""Account lifecycle: registration, approval, activation and login."""
