"""Feed reader core: RSS/Atom parsing and feed catalog management."""
