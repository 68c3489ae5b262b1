"""Collaborators the workflows talk to: identity, documents and sessions."""
