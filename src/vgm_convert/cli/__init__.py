"""Command line interface for VGM Convert."""
