"""Detection pipeline and request handling."""
