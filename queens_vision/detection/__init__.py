"""Board geometry and region recovery stages."""
