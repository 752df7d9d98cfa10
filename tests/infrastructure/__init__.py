"""Test infrastructure: mocks and helpers shared across test tiers."""
