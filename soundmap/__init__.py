"""soundmap: personal song catalog service."""
