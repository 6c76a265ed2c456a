"""Test suite for resilient-http."""
