"""External process integration."""
