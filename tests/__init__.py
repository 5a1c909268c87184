"""
Test Suite for the Security Risk Dashboard engine

Includes:
- Unit tests for series math and CVI
- Ranking and screening tests
- Portfolio aggregation scenarios
- Boundary validation, storage and job orchestration tests
"""
