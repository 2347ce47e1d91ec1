"""
Bowling Chat API - PyTest Test Suite

This test suite verifies:
1. Filter extraction and time normalization
2. Label stability and working-set intersection
3. Tier routing, SQL validation and the offline fallback guarantee
4. /v1/chat status codes and response shapes (in-memory, no server)
"""
