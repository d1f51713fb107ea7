"""
Test Harness - Test Suite Package.

Unit tests per harness module, plus pytester-driven tests of the pytest plugin.
"""
