"""
Tests for notifications app.

This package contains test modules for:
- test_models.py: NotificationType and Notification model tests
- test_services.py: NotificationService and escalation email task tests

Usage:
    pytest notifications/tests/
    pytest notifications/tests/test_services.py
"""
