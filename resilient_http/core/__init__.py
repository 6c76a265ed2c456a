"""Core layer: request descriptions and transport interfaces."""
