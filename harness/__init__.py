"""
Test Harness Support Package.

This package contains the pluggable services a test run relies on:
- Capability Registry: first-available backend selection with no-op fallbacks.
- Issue Tracking: Jira/GitHub trackers and automatic filing for failing tests.
- Notification, Logging, Reporting: swappable output channels.
- Data Readers: JSON/YAML/CSV/TSV test data loading.
- Configuration: YAML/JSON settings loading with schema validation.
"""

__version__ = "0.1.0"
